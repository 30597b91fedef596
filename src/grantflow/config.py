"""Configuration management with XDG paths, atomic writes, and credential sources.

This module handles the persistent configuration for grantflow:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.grantflow/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Client profiles** -- One JSON file per registered OAuth client, each
  deserialised into a :class:`~grantflow.models.ClientConfig`. Managed via
  :func:`load_client_config`, :func:`save_client_config`,
  :func:`delete_client_config`.
* **Credential resolution** -- :func:`resolve_credential` reads secrets from
  env vars or files so that client secrets need not live in profile files.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from grantflow.exceptions import ConfigError
from grantflow.models import ClientConfig

_APP_NAME = "grantflow"
_SECRET_SOURCE_KEY = "client_secret_source"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/grantflow/`` (default ``~/.config/grantflow/``).
    On macOS/Windows: ``~/.grantflow/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (stored secrets), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/grantflow/`` (default ``~/.local/share/grantflow/``).
    On macOS/Windows: ``~/.grantflow/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_clients_dir() -> Path:
    """Return the client profiles directory (``<config_dir>/clients/``), creating it if necessary."""
    path = get_config_dir() / "clients"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: bytes, mode: int = 0o600) -> None:
    """Write *data* to *path* atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  Permissions are
    applied before any content is written.  On any failure the temp file is
    removed and the exception re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp_path = fd.name
        os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Client profiles ---


def _client_path(name: str) -> Path:
    return get_clients_dir() / f"{name}.json"


def list_client_configs() -> list[str]:
    """Return all client profile names, sorted alphabetically."""
    return sorted(p.stem for p in get_clients_dir().glob("*.json") if p.is_file())


def load_client_config(name: str) -> ClientConfig:
    """Load and validate a client profile from disk.

    A profile may name a ``client_secret_source`` (see
    :func:`resolve_credential`) instead of embedding ``client_secret``; the
    source is resolved here and never stored on the returned model.

    Args:
        name: Profile name (``<name>.json`` in the clients directory).

    Raises:
        ConfigError: If the file does not exist, contains invalid JSON, fails
            validation, or names a secret source that cannot be resolved.
    """
    path = _client_path(name)
    if not path.is_file():
        raise ConfigError(f"Client profile '{name}' not found at {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid client profile '{name}' at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid client profile '{name}' at {path}: expected an object")

    source = data.pop(_SECRET_SOURCE_KEY, None)
    if source is not None:
        if data.get("client_secret"):
            raise ConfigError(
                f"Client profile '{name}' sets both client_secret and {_SECRET_SOURCE_KEY}"
            )
        data["client_secret"] = resolve_credential(source)

    try:
        return ClientConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid client profile '{name}' at {path}: {exc}") from exc


def save_client_config(
    name: str,
    config: ClientConfig,
    client_secret_source: Optional[str] = None,
) -> None:
    """Persist a client profile atomically.

    When *client_secret_source* is given, the source descriptor is stored in
    place of the secret itself.
    """
    data = config.model_dump(mode="json")
    if client_secret_source is not None:
        data.pop("client_secret", None)
        data[_SECRET_SOURCE_KEY] = client_secret_source
    text = json.dumps(data, indent=2) + "\n"
    atomic_write(_client_path(name), text.encode("utf-8"))


def delete_client_config(name: str) -> None:
    """Delete a client profile.

    Raises:
        ConfigError: If the profile does not exist.
    """
    path = _client_path(name)
    if not path.is_file():
        raise ConfigError(f"Client profile '{name}' not found at {path}")
    path.unlink()


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    raise ConfigError(f"Unknown credential source format: {source}")
