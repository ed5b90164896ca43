"""Durable key-value slots backing session and history persistence.

A slot holds one string value.  Callers own the encoding; the stores
only read, write and delete raw text, mirroring browser local storage.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict

from loguru import logger


class KeyValueStore(ABC):
    """Abstract key-value slot backend."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value stored under ``key`` or ``None`` if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any prior value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``.  Missing keys are ignored."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed slots.  Data is lost when the process exits."""

    def __init__(self) -> None:
        self._slots: Dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._slots.get(key)

    def set(self, key: str, value: str) -> None:
        self._slots[key] = value

    def delete(self, key: str) -> None:
        self._slots.pop(key, None)

    @property
    def backend_type(self) -> str:
        return "in_memory"


class FileKeyValueStore(KeyValueStore):
    """One file per slot inside a root directory.

    Keys are sanitised into file names; the directory is created on
    first write.
    """

    _unsafe = re.compile(r"[^A-Za-z0-9_.-]")

    def __init__(self, root: str | Path = ".chatwidget") -> None:
        self._root = Path(root)

    def _path(self, key: str) -> Path:
        return self._root / f"{self._unsafe.sub('_', key)}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Replace atomically; readers never see a partial slot
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("Slot {} already absent", key)

    @property
    def backend_type(self) -> str:
        return "file"


def create_kv_store(storage_type: str = "in_memory", **kwargs: Any) -> KeyValueStore:
    """Create a key-value store backend.

    Args:
        storage_type: Backend type ("in_memory" or "file")
        **kwargs: Backend-specific configuration

    Raises:
        ValueError: If backend type is not supported
    """
    if storage_type == "in_memory":
        return InMemoryKeyValueStore()

    elif storage_type == "file":
        return FileKeyValueStore(**kwargs)

    raise ValueError(
        f"Unsupported storage backend: {storage_type}. "
        f"Supported backends: in_memory, file"
    )
