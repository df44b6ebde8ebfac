"""Tests for quiet-hours evaluation."""

from datetime import datetime, time

import pytest

from alert_engine.quiet_hours import (
    QuietHours,
    is_sending_allowed,
    is_within_quiet_hours,
    parse_hhmm,
)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 6, 3, hour, minute)


class TestParse:
    def test_parse_hhmm(self):
        assert parse_hhmm("00:00") == 0
        assert parse_hhmm("08:30") == 8 * 60 + 30
        assert parse_hhmm("23:59") == 23 * 60 + 59

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            parse_hhmm("25:00")


class TestOvernightWindow:
    """Window 20:00-08:00 wraps midnight."""

    @pytest.fixture
    def overnight(self):
        return QuietHours(enabled=True, start="20:00", end="08:00")

    @pytest.mark.parametrize("hour,minute", [(23, 0), (2, 0), (8, 0), (20, 0), (0, 0)])
    def test_inside(self, overnight, hour, minute):
        assert is_within_quiet_hours(at(hour, minute), overnight) is True
        assert is_sending_allowed(at(hour, minute), overnight) is False

    @pytest.mark.parametrize("hour,minute", [(12, 0), (8, 1), (19, 59)])
    def test_outside(self, overnight, hour, minute):
        assert is_within_quiet_hours(at(hour, minute), overnight) is False
        assert is_sending_allowed(at(hour, minute), overnight) is True

    def test_accepts_time(self, overnight):
        assert is_within_quiet_hours(time(22, 15), overnight) is True


class TestDaytimeWindow:
    """Window that does not cross midnight is [start, end)."""

    def test_bounds(self):
        quiet = QuietHours(enabled=True, start="12:00", end="14:00")
        assert is_within_quiet_hours(at(11, 59), quiet) is False
        assert is_within_quiet_hours(at(12, 0), quiet) is True
        assert is_within_quiet_hours(at(13, 59), quiet) is True
        assert is_within_quiet_hours(at(14, 0), quiet) is False

    def test_equal_start_end_is_empty(self):
        quiet = QuietHours(enabled=True, start="09:00", end="09:00")
        assert is_within_quiet_hours(at(9, 0), quiet) is False


class TestDisabledAndInvalid:
    def test_disabled_never_quiet(self):
        quiet = QuietHours(enabled=False, start="00:00", end="23:59")
        assert is_within_quiet_hours(at(12), quiet) is False
        assert is_sending_allowed(at(12), quiet) is True

    def test_invalid_times_treated_as_not_quiet(self):
        quiet = QuietHours(enabled=True, start="late", end="08:00")
        assert is_within_quiet_hours(at(23), quiet) is False


class TestQuietHoursModel:
    def test_from_dict_fills_missing_from_default(self):
        default = QuietHours(enabled=True, start="20:00", end="08:00")
        merged = QuietHours.from_dict({"start": "22:00"}, default=default)
        assert merged == QuietHours(enabled=True, start="22:00", end="08:00")

    def test_from_dict_non_mapping(self):
        assert QuietHours.from_dict(None) == QuietHours()

    @pytest.mark.parametrize("enabled", ["false", 0, None])
    def test_non_boolean_enabled_ignored(self, enabled):
        default = QuietHours(enabled=False)
        assert QuietHours.from_dict({"enabled": enabled}, default=default).enabled is False

    @pytest.mark.parametrize("value", ["25:99", "soon", 2000, None])
    def test_invalid_time_keeps_previous(self, value):
        default = QuietHours(enabled=True, start="20:00", end="08:00")
        merged = QuietHours.from_dict({"start": value, "end": "07:30"}, default=default)
        assert merged == QuietHours(enabled=True, start="20:00", end="07:30")
