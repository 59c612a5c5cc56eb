"""ISO-8601 / JSON encoding used at the storage boundary."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from larder.models.inventory import InventoryItem


def encode_timestamp(value: datetime) -> str:
    """Render ``value`` as an ISO-8601 string in UTC (naive values are taken as UTC)."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def decode_timestamp(raw: str) -> datetime:
    parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def encode_history(history: Iterable[datetime]) -> str:
    return json.dumps([encode_timestamp(stamp) for stamp in history])


def decode_history(raw: Optional[str]) -> List[datetime]:
    if not raw:
        return []
    return [decode_timestamp(stamp) for stamp in json.loads(raw)]


def encode_snapshot(item: Optional[InventoryItem]) -> Optional[str]:
    if item is None:
        return None
    return item.model_dump_json(by_alias=True)


def decode_snapshot(raw: Optional[str]) -> Optional[InventoryItem]:
    if not raw:
        return None
    return InventoryItem.model_validate_json(raw)


def encode_value(value: Any) -> str:
    return json.dumps(value)


def decode_value(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    return json.loads(raw)


__all__ = [
    "decode_history",
    "decode_snapshot",
    "decode_timestamp",
    "decode_value",
    "encode_history",
    "encode_snapshot",
    "encode_timestamp",
    "encode_value",
]
