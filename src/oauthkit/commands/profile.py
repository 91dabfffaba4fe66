"""Profile commands -- manage stored provider descriptions.

Provides the ``oauthkit profile`` sub-command group. A profile records a
provider's endpoints, the registered client id, where to find the client
secret, the requested scopes, and the client authentication style.
Profiles are JSON files in the config directory; secrets are only ever
stored as credential source descriptors.
"""

from __future__ import annotations

from typing import Optional

import typer

from oauthkit.models import AuthStyle
from oauthkit.output import error, info, show_record, show_table, success, suggest


profile_app = typer.Typer(no_args_is_help=True)

_STYLE_NAMES = {
    "auto": AuthStyle.AUTO_DETECT,
    "params": AuthStyle.IN_PARAMS,
    "header": AuthStyle.IN_HEADER,
}


@profile_app.command("add")
def profile_add(
    name: str = typer.Argument(help="Profile name."),
    token_url: str = typer.Option(..., "--token-url", help="Token endpoint URL."),
    auth_url: str = typer.Option("", "--auth-url", help="Authorization endpoint URL."),
    client_id: str = typer.Option("", "--client-id", help="Registered client id."),
    client_secret_source: Optional[str] = typer.Option(
        None,
        "--client-secret-source",
        help="Where to read the client secret: env:VAR, file:/path, prompt, literal:VALUE.",
    ),
    redirect_url: str = typer.Option("", "--redirect-url", help="Redirect URI."),
    scope: Optional[list[str]] = typer.Option(
        None, "--scope", help="Requested scope (repeatable)."
    ),
    auth_style: str = typer.Option(
        "auto", "--auth-style", help="Client authentication: auto, params, header."
    ),
    timeout: float = typer.Option(30.0, "--timeout", help="Request timeout in seconds."),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing profile."),
) -> None:
    """Create or replace a provider profile.

    Example::

        oauthkit profile add github \\
            --auth-url https://github.com/login/oauth/authorize \\
            --token-url https://github.com/login/oauth/access_token \\
            --client-id abc --client-secret-source env:GITHUB_SECRET \\
            --scope repo --scope user
    """
    from oauthkit.config import profile_exists, save_profile
    from oauthkit.models import Profile, RequestConfig

    style = _STYLE_NAMES.get(auth_style.lower())
    if style is None:
        error(f"Unknown auth style: {auth_style} (expected auto, params, or header)")
        raise typer.Exit(code=2)

    if profile_exists(name) and not force:
        error(f'Profile "{name}" already exists.')
        suggest(f"Overwrite it: oauthkit profile add {name} --force ...")
        raise typer.Exit(code=2)

    profile = Profile(
        name=name,
        client_id=client_id,
        client_secret_source=client_secret_source,
        auth_url=auth_url,
        token_url=token_url,
        redirect_url=redirect_url,
        scopes=scope or [],
        auth_style=style,
        request=RequestConfig(timeout=timeout),
    )
    save_profile(profile)
    success(f'Profile "{name}" saved.')


@profile_app.command("show")
def profile_show(
    name: str = typer.Argument(help="Profile name."),
) -> None:
    """Show a stored profile."""
    from oauthkit.config import load_profile

    profile = load_profile(name)
    show_record(profile.model_dump(mode="json"), title=f"Profile {name}")


@profile_app.command("list")
def profile_list() -> None:
    """List stored profiles."""
    from oauthkit.config import list_profiles, load_global_config, load_profile

    names = list_profiles()
    if not names:
        info("No profiles configured.")
        suggest("Create one: oauthkit profile add NAME --token-url URL")
        return

    default = load_global_config().default_profile
    rows = []
    for name in names:
        profile = load_profile(name)
        rows.append([
            name,
            profile.token_url,
            profile.auth_style.name.lower(),
            "*" if name == default else "",
        ])
    show_table(["name", "token_url", "auth_style", "default"], rows, title="Profiles")


@profile_app.command("remove")
def profile_remove(
    name: str = typer.Argument(help="Profile name."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Delete a stored profile."""
    from oauthkit.config import delete_profile, load_global_config, save_global_config

    if not force:
        confirmed = typer.confirm(f'Delete profile "{name}"?')
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    delete_profile(name)
    config = load_global_config()
    if config.default_profile == name:
        config.default_profile = None
        save_global_config(config)
    success(f'Profile "{name}" deleted.')


@profile_app.command("use")
def profile_use(
    name: str = typer.Argument(help="Profile name."),
) -> None:
    """Make a profile the default."""
    from oauthkit.config import load_global_config, profile_exists, save_global_config

    if not profile_exists(name):
        error(f'Profile "{name}" not found.')
        raise typer.Exit(code=2)

    config = load_global_config()
    config.default_profile = name
    save_global_config(config)
    success(f'Default profile set to "{name}".')
