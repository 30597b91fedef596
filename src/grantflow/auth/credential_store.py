"""Secret stores for persisted tokens.

A secret store is a key/value store of opaque byte strings that survives
process restarts and records, per key, when the current value was written.
Flows only depend on the :class:`SecretStore` contract; two implementations
ship with the package:

- :class:`MemorySecretStore` -- process-local, for tests and short-lived tools.
- :class:`FileSecretStore` -- one JSON file per key under
  ``~/.local/share/grantflow/secrets/`` (XDG) or the platform equivalent.
  Files are written atomically with ``0o600`` permissions so that secrets are
  never world-readable, even momentarily.

Every :meth:`SecretStore.set` resets the key's creation time: token age is
measured from the last save, not from the first one.
"""

from __future__ import annotations

import base64
import binascii
import json
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import quote

from pydantic import BaseModel, Field

from grantflow.config import atomic_write, get_data_dir


class SecretStore(ABC):
    """Abstract key/value secret store.

    Implementations must make :meth:`get` and :meth:`set` atomic per key.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the value stored under *key*, or ``None``."""
        ...

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Store *value* under *key*, replacing any previous value."""
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove *key*.  Returns ``True`` if something was deleted."""
        ...

    @abstractmethod
    def created_at(self, key: str) -> Optional[float]:
        """Return the POSIX time at which *key*'s current value was written."""
        ...

    def contains(self, key: str) -> bool:
        return self.get(key) is not None


class MemorySecretStore(SecretStore):
    """In-memory :class:`SecretStore`.

    Args:
        clock: Source of POSIX timestamps for :meth:`created_at`.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._values: dict[str, tuple[bytes, float]] = {}

    def get(self, key: str) -> Optional[bytes]:
        entry = self._values.get(key)
        return entry[0] if entry is not None else None

    def set(self, key: str, value: bytes) -> None:
        self._values[key] = (bytes(value), self._clock())

    def delete(self, key: str) -> bool:
        return self._values.pop(key, None) is not None

    def created_at(self, key: str) -> Optional[float]:
        entry = self._values.get(key)
        return entry[1] if entry is not None else None

    def set_created_at(self, key: str, timestamp: float) -> None:
        """Backdate (or postdate) the creation time of an existing key."""
        value, _ = self._values[key]
        self._values[key] = (value, timestamp)


class SecretEntry(BaseModel):
    """On-disk representation of one :class:`FileSecretStore` key."""

    key: str
    created_at: float = Field(description="POSIX time the value was written")
    value: str = Field(description="Base64-encoded secret bytes")


class FileSecretStore(SecretStore):
    """File-backed :class:`SecretStore`.

    Each key maps to exactly one JSON file holding a :class:`SecretEntry`.
    File names are the percent-encoded key, so ``"abc:tokens"`` is stored as
    ``abc%3Atokens.json``.

    Args:
        directory: Where to keep the files.  Defaults to
            ``<data_dir>/secrets``.
        clock: Source of POSIX timestamps for :meth:`created_at`.

    Example::

        store = FileSecretStore()
        store.set("abc:tokens", b"...")
        assert store.get("abc:tokens") == b"..."
    """

    def __init__(
        self,
        directory: Optional[Path] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._directory = directory if directory is not None else get_data_dir() / "secrets"
        self._clock = clock

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        """The filesystem path backing *key*."""
        return self._directory / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> Optional[bytes]:
        entry = self._load(key)
        if entry is None:
            return None
        return base64.b64decode(entry.value)

    def set(self, key: str, value: bytes) -> None:
        """Persist *value* atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written (permissions, disk full, etc.).
        """
        entry = SecretEntry(
            key=key,
            created_at=self._clock(),
            value=base64.b64encode(value).decode("ascii"),
        )
        atomic_write(self.path_for(key), (entry.model_dump_json() + "\n").encode("utf-8"))

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        if path.is_file():
            path.unlink()
            return True
        return False

    def created_at(self, key: str) -> Optional[float]:
        entry = self._load(key)
        return entry.created_at if entry is not None else None

    def _load(self, key: str) -> Optional[SecretEntry]:
        """Read the entry for *key*; unreadable or foreign files count as absent."""
        path = self.path_for(key)
        if not path.is_file():
            return None
        try:
            entry = SecretEntry.model_validate(json.loads(path.read_text(encoding="utf-8")))
            base64.b64decode(entry.value, validate=True)
        except (json.JSONDecodeError, ValueError, binascii.Error, OSError):
            return None
        if entry.key != key:
            return None
        return entry
