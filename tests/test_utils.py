"""Tests for shared utility functions and the business clock."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from salonbook.clock import BusinessClock, FixedClock, business_timezone, time_of_day, today
from salonbook.utils import (
    add_minutes,
    format_hhmm,
    format_phone,
    normalize_phone,
    parse_hhmm,
    phone_pattern,
)


class TestNormalizePhone:
    def test_strips_spaces(self):
        assert normalize_phone("0700 111 222") == "0700111222"

    def test_strips_dashes(self):
        assert normalize_phone("0700-111-222") == "0700111222"

    def test_preserves_leading_plus(self):
        assert normalize_phone("+996 700 111 222") == "+996700111222"

    def test_mixed_separators(self):
        assert normalize_phone(" +996 (700) 111-222 ") == "+996700111222"


class TestFormatPhone:
    def test_prefixes_missing_country_code(self):
        assert format_phone("700111222") == "+996700111222"

    def test_keeps_existing_country_code(self):
        assert format_phone("996 700 111 222") == "+996700111222"

    def test_truncates_extra_digits(self):
        assert format_phone("+996 700 111 222 33") == "+996700111222"

    def test_custom_country(self):
        assert format_phone("9991234567", country_code="7", subscriber_digits=10) == "+79991234567"


class TestPhonePattern:
    @pytest.mark.parametrize("phone", ["+996700111222", "+996555000111"])
    def test_accepts_valid(self, phone):
        assert phone_pattern().match(phone)

    @pytest.mark.parametrize(
        "phone",
        ["996700111222", "+99670011122", "+9967001112223", "+7700111222", "+996 700111222", ""],
    )
    def test_rejects_invalid(self, phone):
        assert not phone_pattern().match(phone)


class TestTimeHelpers:
    def test_parse_hhmm(self):
        assert parse_hhmm("09:30") == time(9, 30)

    def test_parse_drops_seconds(self):
        assert parse_hhmm("14:00:59") == time(14, 0)

    def test_parse_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_hhmm("noon")

    def test_format_hhmm(self):
        assert format_hhmm(time(7, 5)) == "07:05"

    def test_add_minutes(self):
        assert add_minutes(time(11, 0), 90) == time(12, 30)

    def test_add_minutes_may_end_at_midnight(self):
        assert add_minutes(time(23, 0), 60) == time(0, 0)

    def test_add_minutes_past_midnight_rejected(self):
        with pytest.raises(ValueError, match="midnight"):
            add_minutes(time(23, 30), 60)


class TestBusinessClock:
    def test_business_timezone_offset(self):
        assert business_timezone(6).utcoffset(None) == timedelta(hours=6)

    def test_real_clock_reports_business_offset(self):
        now = BusinessClock(offset_hours=6).now()
        assert now.utcoffset() == timedelta(hours=6)

    def test_fixed_clock_naive_is_business_local(self):
        clock = FixedClock(datetime(2026, 10, 19, 10, 30), offset_hours=6)
        assert today(clock) == date(2026, 10, 19)
        assert time_of_day(clock) == time(10, 30)

    def test_fixed_clock_converts_aware_instant(self):
        # 20:00 UTC is already the next day at UTC+6
        clock = FixedClock(datetime(2026, 10, 19, 20, 0, tzinfo=timezone.utc), offset_hours=6)
        assert today(clock) == date(2026, 10, 20)
        assert time_of_day(clock) == time(2, 0)

    def test_fixed_clock_advance(self):
        clock = FixedClock(datetime(2026, 10, 19, 10, 30), offset_hours=6)
        clock.advance(minutes=45)
        assert time_of_day(clock) == time(11, 15)
