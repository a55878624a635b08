"""Flat key-value stores backing pad persistence."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Protocol, runtime_checkable

from ..errors import StorageError

__all__ = ["KeyValueStore", "MemoryKeyValueStore", "JsonFileKeyValueStore"]

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """String-to-string storage with the semantics of browser local storage."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def keys(self) -> list[str]:
        ...


class MemoryKeyValueStore:
    """Ephemeral dict-backed store."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileKeyValueStore:
    """Persistence adapter keeping every key in a single JSON object on disk.

    Reads go to disk each time so that several sessions sharing one file see
    each other's writes. Writes are atomic (temp file + replace).
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        value = self._read_payload().get(key)
        if value is None:
            return None
        return value if isinstance(value, str) else json.dumps(value)

    def set(self, key: str, value: str) -> None:
        payload = self._read_payload()
        payload[key] = value
        self._write_payload(payload)

    def remove(self, key: str) -> None:
        payload = self._read_payload()
        if key not in payload:
            return
        payload.pop(key)
        self._write_payload(payload)

    def keys(self) -> list[str]:
        return list(self._read_payload())

    def _read_payload(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageError(message=f"Unable to read {self._path}: {exc}") from exc
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            LOGGER.warning("Store %s is not valid JSON: %s", self._path, exc)
            raise StorageError(message=f"Store {self._path} is corrupt") from exc
        if not isinstance(data, Mapping):
            raise StorageError(message=f"Store {self._path} does not contain an object")
        return dict(data)

    def _write_payload(self, payload: Mapping[str, Any]) -> None:
        body = json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(".tmp")
            tmp_path.write_text(body, encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            raise StorageError(message=f"Unable to write {self._path}: {exc}") from exc
