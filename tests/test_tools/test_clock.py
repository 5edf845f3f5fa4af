"""
Tests for Calendar Helpers
Tests time parsing and conversions between local wall time and stored UTC
"""

import pytest
from datetime import datetime, date, time, timezone
from zoneinfo import ZoneInfo

from exceptions import ValidationError
from tools.clock import (
    parse_hhmm,
    normalize_hhmm,
    get_zone,
    utc_now,
    to_utc_naive,
    to_local,
    local_day_bounds,
    local_range_bounds,
)


SAO_PAULO = ZoneInfo("America/Sao_Paulo")
NEW_YORK = ZoneInfo("America/New_York")
UTC = ZoneInfo("UTC")


# =============================================================================
# Test Time Parsing
# =============================================================================

class TestParseHHMM:
    """Tests for 24-hour time parsing"""

    @pytest.mark.unit
    def test_parse_valid_time(self):
        assert parse_hhmm("08:30") == time(8, 30)
        assert parse_hhmm("00:00") == time(0, 0)
        assert parse_hhmm("23:59") == time(23, 59)

    @pytest.mark.unit
    def test_parse_accepts_seconds(self):
        """Seconds are accepted and dropped"""
        assert parse_hhmm("07:15:42") == time(7, 15)

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["24:00", "8:30", "12:60", "noon", "", "0830"])
    def test_parse_invalid_time(self, value):
        with pytest.raises(ValidationError):
            parse_hhmm(value)

    @pytest.mark.unit
    def test_parse_rejects_non_string(self):
        with pytest.raises(ValidationError):
            parse_hhmm(830)

    @pytest.mark.unit
    def test_normalize(self):
        assert normalize_hhmm(" 07:05:00 ") == "07:05"


# =============================================================================
# Test Zones
# =============================================================================

class TestZones:
    """Tests for timezone resolution"""

    @pytest.mark.unit
    def test_default_zone(self):
        assert get_zone().key == "America/Sao_Paulo"

    @pytest.mark.unit
    def test_named_zone(self):
        assert get_zone("Europe/Lisbon").key == "Europe/Lisbon"

    @pytest.mark.unit
    def test_unknown_zone(self):
        with pytest.raises(ValidationError):
            get_zone("Mars/Olympus_Mons")

    @pytest.mark.unit
    def test_utc_now_is_naive(self):
        now = utc_now()
        assert now.tzinfo is None
        assert abs((datetime.now(timezone.utc).replace(tzinfo=None) - now).total_seconds()) < 5


# =============================================================================
# Test Conversions
# =============================================================================

class TestConversions:
    """Tests for local/UTC conversions"""

    @pytest.mark.unit
    def test_naive_local_to_utc(self):
        assert to_utc_naive(datetime(2024, 3, 10, 8, 0), SAO_PAULO) == datetime(2024, 3, 10, 11, 0)

    @pytest.mark.unit
    def test_aware_input_keeps_offset(self):
        aware = datetime(2024, 3, 10, 8, 0, tzinfo=timezone.utc)
        assert to_utc_naive(aware, SAO_PAULO) == datetime(2024, 3, 10, 8, 0)

    @pytest.mark.unit
    def test_stored_to_local_crosses_midnight(self):
        """02:00 UTC is still the previous evening in Sao Paulo"""
        local = to_local(datetime(2024, 3, 10, 2, 0), SAO_PAULO)
        assert local.date() == date(2024, 3, 9)
        assert local.hour == 23


# =============================================================================
# Test Day Windows
# =============================================================================

class TestDayBounds:
    """Tests for local calendar day windows"""

    @pytest.mark.unit
    def test_day_bounds_sao_paulo(self):
        start, end = local_day_bounds(date(2024, 3, 10), SAO_PAULO)
        assert start == datetime(2024, 3, 10, 3, 0)
        assert end == datetime(2024, 3, 11, 3, 0)

    @pytest.mark.unit
    def test_day_bounds_dst_day_is_23_hours(self):
        """Spring-forward day in New York"""
        start, end = local_day_bounds(date(2024, 3, 10), NEW_YORK)
        assert start == datetime(2024, 3, 10, 5, 0)
        assert end == datetime(2024, 3, 11, 4, 0)
        assert (end - start).total_seconds() == 23 * 3600

    @pytest.mark.unit
    def test_range_bounds_inclusive(self):
        start, end = local_range_bounds(date(2024, 3, 1), date(2024, 3, 3), UTC)
        assert start == datetime(2024, 3, 1)
        assert end == datetime(2024, 3, 4)
