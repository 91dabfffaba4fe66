"""Persistent CLI configuration: directories, profiles, and credential sources.

Layout on disk::

    <config_dir>/config.json           GlobalConfig
    <config_dir>/profiles/<name>.json  one Profile per provider
    <data_dir>/logs/                   crash logs written by oauthkit.app
    ./oauthkit.json                    optional project file ({"default_profile": ...})

``<config_dir>`` is ``$XDG_CONFIG_HOME/oauthkit`` (default
``~/.config/oauthkit``) and ``<data_dir>`` is ``$XDG_DATA_HOME/oauthkit``
(default ``~/.local/share/oauthkit``) on Linux and the BSDs. Other
platforms use ``~/.oauthkit`` and ``~/.oauthkit/logs``.

Files are replaced atomically. Client secrets and issued tokens are never
written: a profile only records *where* its secret comes from, see
:func:`resolve_credential`.
"""

from __future__ import annotations

import getpass
import json
import logging
import os
import platform
import re
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import ValidationError

from oauthkit.exceptions import ConfigError
from oauthkit.models import Config, GlobalConfig, Profile

logger = logging.getLogger(__name__)

_APP_NAME = "oauthkit"
_PROJECT_FILE = "oauthkit.json"
_PROFILE_ENV = "OAUTHKIT_PROFILE"
_PROFILE_NAME = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: tuple[str, ...], fallback: tuple[str, ...]) -> Path:
    """Resolve and create one of the application directories."""
    home = Path.home()
    if _is_xdg_platform():
        base = Path(os.environ.get(xdg_var) or home.joinpath(*xdg_default))
        path = base / _APP_NAME
    else:
        path = home.joinpath(f".{_APP_NAME}", *fallback)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Directory holding ``config.json`` and ``profiles/``."""
    return _app_dir("XDG_CONFIG_HOME", (".config",), ())


def get_data_dir() -> Path:
    """Directory for crash logs."""
    return _app_dir("XDG_DATA_HOME", (".local", "share"), ("logs",))


def get_profiles_dir() -> Path:
    path = get_config_dir() / "profiles"
    path.mkdir(exist_ok=True)
    return path


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* so readers never see a partial file.

    The temporary file is created next to *path* (same filesystem, so
    ``os.replace`` is a rename) and removed again if anything fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _write_model(path: Path, data: dict[str, Any]) -> None:
    _atomic_write(path, json.dumps(data, indent=2) + "\n")


def _read_json(path: Path, what: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc


# Global config


def _global_config_path() -> Path:
    return get_config_dir() / "config.json"


def load_global_config() -> GlobalConfig:
    """Load ``config.json``; a missing file yields the defaults.

    Raises:
        ConfigError: If the file is not valid JSON or does not validate.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        return GlobalConfig.model_validate(_read_json(path, "global config"))
    except ValidationError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    _write_model(_global_config_path(), config.model_dump(mode="json"))


# Profiles


def _profile_path(name: str) -> Path:
    if not _PROFILE_NAME.fullmatch(name):
        raise ConfigError(
            f"Invalid profile name {name!r}: use letters, digits, '.', '_' or '-'"
        )
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    """Names of all stored profiles, sorted."""
    return sorted(path.stem for path in get_profiles_dir().glob("*.json") if path.is_file())


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


def load_profile(name: str) -> Profile:
    """Read and validate the profile called *name*.

    Raises:
        ConfigError: If it does not exist or its file is invalid.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    try:
        return Profile.model_validate(_read_json(path, f"profile '{name}'"))
    except ValidationError as exc:
        raise ConfigError(f"Invalid profile '{name}' at {path}: {exc}") from exc


def save_profile(profile: Profile) -> None:
    _write_model(_profile_path(profile.name), profile.model_dump(mode="json"))


def delete_profile(name: str) -> None:
    """Remove a stored profile.

    Raises:
        ConfigError: If there is no such profile.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    path.unlink()


def load_project_config() -> Optional[dict[str, Any]]:
    """Parse ``./oauthkit.json`` if present, else return ``None``."""
    path = Path.cwd() / _PROJECT_FILE
    if not path.is_file():
        return None
    return _read_json(path, "project config")


def resolve_config(
    cli_profile: Optional[str] = None,
) -> tuple[GlobalConfig, Optional[Profile]]:
    """Work out which profile a command should use.

    The first name found wins:

    1. ``--profile`` on the command line
    2. the ``OAUTHKIT_PROFILE`` environment variable
    3. ``default_profile`` in ``./oauthkit.json``
    4. ``default_profile`` in the global config
    5. the only stored profile, when ``auto_select_single_profile`` is on

    Returns:
        ``(global_config, profile)``; *profile* is ``None`` when nothing
        selects one.

    Raises:
        ConfigError: If the selected profile cannot be loaded.
    """
    global_cfg = load_global_config()
    project = load_project_config() or {}

    candidates = (
        ("--profile", cli_profile),
        (_PROFILE_ENV, os.environ.get(_PROFILE_ENV)),
        (_PROJECT_FILE, project.get("default_profile")),
        ("global config", global_cfg.default_profile),
    )
    origin, name = next(((o, n) for o, n in candidates if n), ("", None))

    if name is None and global_cfg.auto_select_single_profile:
        stored = list_profiles()
        if len(stored) == 1:
            origin, name = "single stored profile", stored[0]

    if name is None:
        return global_cfg, None
    logger.debug("Using profile %s (from %s)", name, origin)
    return global_cfg, load_profile(name)


# Credential sources


def _from_env(var_name: str) -> str:
    value = os.environ.get(var_name)
    if value is None:
        raise ConfigError(f"Environment variable '{var_name}' is not set (source: env:{var_name})")
    return value


def _from_file(raw_path: str) -> str:
    path = Path(raw_path).expanduser()
    if not path.is_file():
        raise ConfigError(f"Credential file not found: {path} (source: file:{raw_path})")
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc


_SOURCES: dict[str, Callable[[str], str]] = {
    "env:": _from_env,
    "file:": _from_file,
    "literal:": lambda value: value,
}


def resolve_credential(source: str) -> str:
    """Turn a credential source descriptor into the secret it names.

    Descriptors:
        ``env:VAR`` (environment variable), ``file:/path`` (file contents,
        whitespace stripped), ``prompt`` (hidden interactive input, needs a
        TTY), ``literal:VALUE`` (the value itself).

    Raises:
        ConfigError: If the descriptor is unknown or cannot be resolved.
    """
    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for credentials: stdin is not a TTY (source: prompt)")
        return getpass.getpass("Enter credential: ")

    for prefix, reader in _SOURCES.items():
        if source.startswith(prefix):
            return reader(source[len(prefix):])
    raise ConfigError(f"Unknown credential source format: {source}")


def build_client_config(profile: Profile) -> Config:
    """Build the :class:`~oauthkit.models.Config` a :class:`~oauthkit.client.Client` needs.

    A profile without ``client_secret_source`` is a public client and gets
    an empty secret.
    """
    secret = ""
    if profile.client_secret_source:
        secret = resolve_credential(profile.client_secret_source)
    return Config(
        client_id=profile.client_id,
        client_secret=secret,
        auth_url=profile.auth_url,
        token_url=profile.token_url,
        redirect_url=profile.redirect_url,
        scopes=list(profile.scopes),
        auth_style=profile.auth_style,
    )
