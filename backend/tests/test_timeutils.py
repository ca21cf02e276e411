"""
Scan Barang Backend — Date Helper Tests
=========================================

What:  DD-MM-YYYY parsing and the application clock.
"""

from datetime import date, datetime, timezone

import pytest

from scanbarang.exceptions import ValidationError
from scanbarang.timeutils import (
    DATE_FORMAT_HINT,
    now_local,
    parse_client_date,
    to_local,
)


class TestParseClientDate:
    def test_valid_date(self):
        assert parse_client_date("05-03-2024") == date(2024, 3, 5)

    def test_single_digit_parts(self):
        assert parse_client_date("5-3-2024") == date(2024, 3, 5)

    def test_iso_form(self):
        assert parse_client_date("31-12-2023").isoformat() == "2023-12-31"

    @pytest.mark.parametrize(
        "value",
        ["", "2024-03-05", "05/03/2024", "05-03", "aa-bb-cccc", "05-03-24", "31-02-2024", "05-03-2024-1"],
    )
    def test_malformed_dates_rejected(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_client_date(value)
        assert exc_info.value.message == DATE_FORMAT_HINT
        assert exc_info.value.status_code == 400


class TestClock:
    def test_now_local_uses_application_timezone(self):
        assert str(now_local().tzinfo) == "Asia/Jakarta"

    def test_to_local_converts_aware(self):
        utc = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
        local = to_local(utc)
        assert local.hour == 7
        assert local.utcoffset().total_seconds() == 7 * 3600

    def test_to_local_keeps_naive(self):
        naive = datetime(2024, 1, 1, 9, 30)
        assert to_local(naive) is naive
