"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~oauthkit.exceptions.OAuthKitError` subclass.
Shell wrappers can inspect the exit code to tell a rejected grant apart
from a network failure without parsing stderr.

Example::

    $ oauthkit exchange bad-code
    $ echo $?
    3   # EXIT_TOKEN_FAILURE -- the token endpoint refused the grant
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_TOKEN_FAILURE = 3
"""The token endpoint rejected the request or returned an unusable response."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
