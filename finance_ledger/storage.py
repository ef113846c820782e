"""Key-value persistence for ledger and goal state.

Two backends share the same small interface:

* :class:`JsonFileStorage` keeps one ``<key>.json`` file per record in a
  data directory and writes atomically via a temporary file.
* :class:`MemoryStorage` keeps payloads in a dict, for tests and for
  sessions that should not touch disk.

``load`` returns ``None`` for a missing record and raises
:class:`~finance_ledger.errors.PersistenceError` for one that cannot be
decoded; callers decide how to recover.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from . import config
from .errors import PersistenceError


class StoragePort(Protocol):
    def load(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    def save(self, key: str, payload: Dict[str, Any]) -> None:
        ...


def safe_key(key: str) -> str:
    """Turn a storage key into a filename stem."""
    cleaned = ''.join(c for c in key if c.isalnum() or c in {'-', '_'})
    return cleaned or 'state'


class JsonFileStorage:
    """Handles state file storage operations."""

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir is not None else config.DATA_DIR

    def get_path(self, key: str) -> Path:
        return self.data_dir / f"{safe_key(key)}.json"

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        target = self.get_path(key)
        if not target.exists():
            return None
        try:
            with target.open('r', encoding='utf-8') as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
            raise PersistenceError(f"Could not read {target.name}: {exc}") from exc
        if not isinstance(data, dict):
            raise PersistenceError(f"{target.name} does not contain a JSON object")
        return data

    def save(self, key: str, payload: Dict[str, Any]) -> None:
        target = self.get_path(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_suffix('.tmp')
        try:
            with tmp.open('w', encoding='utf-8') as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
            os.replace(tmp, target)
        finally:
            if tmp.exists():
                tmp.unlink()

    def delete(self, key: str) -> None:
        self.get_path(key).unlink(missing_ok=True)


class MemoryStorage:
    """In-process storage; payloads are deep-copied in and out."""

    def __init__(self, initial: Optional[Dict[str, Dict[str, Any]]] = None):
        self._data: Dict[str, Dict[str, Any]] = copy.deepcopy(initial or {})
        self.saves = 0

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        payload = self._data.get(key)
        if payload is None:
            return None
        if not isinstance(payload, dict):
            raise PersistenceError(f"Stored value for {key!r} is not an object")
        return copy.deepcopy(payload)

    def save(self, key: str, payload: Dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(payload)
        self.saves += 1

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def raw(self, key: str) -> Any:
        return self._data.get(key)
