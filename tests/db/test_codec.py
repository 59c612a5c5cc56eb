"""Unit tests for the storage encoding helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from larder.db.codec import (
    decode_history,
    decode_snapshot,
    decode_timestamp,
    decode_value,
    encode_history,
    encode_snapshot,
    encode_timestamp,
    encode_value,
)
from larder.models.inventory import InventoryItem


def test_timestamps_are_written_as_utc_iso8601():
    local = datetime(2025, 3, 1, 11, 30, tzinfo=timezone(timedelta(hours=2)))

    assert encode_timestamp(local) == "2025-03-01T09:30:00+00:00"
    assert encode_timestamp(datetime(2025, 3, 1, 9, 30)) == "2025-03-01T09:30:00+00:00"


@pytest.mark.parametrize(
    "raw",
    ["2025-03-01T09:30:00Z", "2025-03-01T09:30:00+00:00", "2025-03-01T11:30:00+02:00", "2025-03-01T09:30:00"],
)
def test_decode_timestamp_accepts_common_iso_forms(raw):
    assert decode_timestamp(raw) == datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


def test_history_handles_empty_column():
    assert decode_history(None) == []
    assert decode_history("") == []

    stamps = [datetime(2025, 1, 1, tzinfo=timezone.utc), datetime(2025, 2, 1, tzinfo=timezone.utc)]
    assert decode_history(encode_history(stamps)) == stamps


def test_snapshot_uses_camel_case_json():
    item = InventoryItem(id="a", name="Milk", subcategory="Door Bottles", quantity=0.4, order=2)

    raw = encode_snapshot(item)

    assert '"subcategory":"Door Bottles"' in raw
    assert '"isIgnored":false' in raw
    assert decode_snapshot(raw) == item
    assert encode_snapshot(None) is None
    assert decode_snapshot(None) is None


def test_values_keep_their_json_type():
    assert decode_value(encode_value(0.5)) == 0.5
    assert decode_value(encode_value(True)) is True
    assert decode_value(encode_value("Oat Milk")) == "Oat Milk"
    assert decode_value(encode_value(None)) is None
    assert decode_value(None) is None
