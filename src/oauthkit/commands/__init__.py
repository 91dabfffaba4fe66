"""Built-in CLI sub-commands for oauthkit.

Each module defines a Typer sub-application or plain command function that
is registered on the root app in :mod:`oauthkit.app`:

- :mod:`~oauthkit.commands.grants` -- ``url``, ``exchange``, ``password``, ``refresh``
- :mod:`~oauthkit.commands.profile` -- ``profile add|show|list|remove|use``
"""
