from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.latex_manager.latex_manager.common.datetime_utils import parse_iso_datetime, parse_reader_timestamp
from src.latex_manager.latex_manager.core.exceptions import ValidationError


def test_naive_timestamp_kept_as_is():
    assert parse_iso_datetime("2026-03-02T09:00:00") == datetime(2026, 3, 2, 9, 0)


def test_offset_timestamp_becomes_naive_local_time():
    parsed = parse_iso_datetime("2026-03-02T09:00:00+05:30")

    assert parsed.tzinfo is None
    assert parsed == datetime(2026, 3, 2, 3, 30, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)


@pytest.mark.parametrize("value", ["", "02-03-2026", "tomorrow", None])
def test_bad_iso_timestamps_rejected(value):
    with pytest.raises(ValidationError):
        parse_iso_datetime(value)


def test_reader_timestamp_format():
    assert parse_reader_timestamp("02-03-2026", "17:05:09") == datetime(2026, 3, 2, 17, 5, 9)
    with pytest.raises(ValidationError):
        parse_reader_timestamp("2026-03-02", "17:05:09")
