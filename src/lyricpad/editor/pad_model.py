"""Pad records, save-state enum and identifier helpers."""

from __future__ import annotations

import json
import secrets
import time
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping

__all__ = [
    "PAD_PREFIX",
    "CURRENT_PAD_KEY",
    "Pad",
    "SaveState",
    "generate_pad_id",
    "format_timestamp",
    "next_timestamp",
    "pad_key",
]

PAD_PREFIX = "pad:"
CURRENT_PAD_KEY = "current-pad-id"
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
_ID_SUFFIX_LENGTH = 10


class SaveState(str, Enum):
    """Observable autosave status for the active pad."""

    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"


@dataclass(slots=True, frozen=True)
class Pad:
    """One saved document: lyrics text, inspiration and timestamps."""

    id: str
    content: str = ""
    inspiration: str = ""
    created_at: str = ""
    updated_at: str = ""

    def with_content(self, content: str) -> "Pad":
        return replace(self, content=content)

    def with_inspiration(self, inspiration: str) -> "Pad":
        return replace(self, inspiration=inspiration)

    def to_record(self) -> dict[str, Any]:
        """Return the JSON shape stored under ``pad:<id>``."""
        return {
            "id": self.id,
            "content": self.content,
            "inspiration": self.inspiration,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_record(), ensure_ascii=False)

    @classmethod
    def from_record(cls, record: Mapping[str, Any], *, pad_id: str | None = None) -> "Pad":
        return cls(
            id=pad_id or str(record.get("id") or ""),
            content=str(record.get("content") or ""),
            inspiration=str(record.get("inspiration") or ""),
            created_at=str(record.get("createdAt") or ""),
            updated_at=str(record.get("updatedAt") or ""),
        )


def pad_key(pad_id: str) -> str:
    return f"{PAD_PREFIX}{pad_id}"


def _to_base36(value: int) -> str:
    if value <= 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_pad_id(now_ms: int | None = None) -> str:
    """Return a time-prefixed opaque id: base-36 milliseconds + random suffix."""

    stamp = int(time.time() * 1000) if now_ms is None else now_ms
    suffix = "".join(secrets.choice(_BASE36) for _ in range(_ID_SUFFIX_LENGTH))
    return _to_base36(stamp) + suffix


def format_timestamp(moment: datetime) -> str:
    """Format ``moment`` as ISO-8601 UTC with millisecond precision."""

    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def _parse_timestamp(value: str) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def next_timestamp(now: datetime, previous: str | None = None) -> str:
    """Return a timestamp for ``now`` that sorts strictly after ``previous``."""

    stamp = now.astimezone(timezone.utc).replace(microsecond=(now.microsecond // 1000) * 1000)
    last = _parse_timestamp(previous or "")
    if last is not None and stamp <= last:
        stamp = last + timedelta(milliseconds=1)
    return format_timestamp(stamp)
