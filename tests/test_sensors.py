"""Tests for the daily Hebrew date and month sensors."""

from datetime import datetime
from types import SimpleNamespace

import pytest

from custom_components.kehila import date_sensor
from custom_components.kehila.date_sensor import (
    CHODESH_OPTIONS,
    HebrewDateSensor,
    HebrewMonthSensor,
)
from custom_components.kehila.kehila_lib.result import Failure, Result

ENTRY = SimpleNamespace(entry_id="e1", title="Synagogue Nun")


def _freeze(monkeypatch, when: datetime) -> None:
    monkeypatch.setattr(date_sensor.dt_util, "now", lambda: when)


class TestHebrewMonthSensor:
    """Enum sensor: its value is always one of its options, or None."""

    def test_value_is_an_option(self):
        sensor = HebrewMonthSensor(None, ENTRY)
        sensor._refresh()
        assert sensor.native_value in CHODESH_OPTIONS
        assert sensor.options == CHODESH_OPTIONS

    @pytest.mark.parametrize(
        "when, expected",
        [
            (datetime(2025, 9, 29, 12), "תשרי"),
            # 21 Adar I 5784
            (datetime(2024, 3, 1, 12), "אדר א׳"),
            # 21 Adar II 5784
            (datetime(2024, 3, 31, 12), "אדר ב׳"),
        ],
    )
    def test_month_names(self, monkeypatch, when, expected):
        _freeze(monkeypatch, when)
        sensor = HebrewMonthSensor(None, ENTRY)
        sensor._refresh()
        assert sensor.native_value == expected
        assert expected in CHODESH_OPTIONS

    def test_conversion_failure_gives_none(self, monkeypatch):
        monkeypatch.setattr(
            date_sensor,
            "gregorian_to_hebrew",
            lambda value: Result.failure(Failure.INVALID_DATE, "out of range"),
        )
        sensor = HebrewMonthSensor(None, ENTRY)
        sensor._refresh()
        assert sensor.native_value is None


class TestHebrewDateSensor:
    def test_formatted_date(self, monkeypatch):
        _freeze(monkeypatch, datetime(2025, 9, 29, 12))
        sensor = HebrewDateSensor(None, ENTRY)
        sensor._refresh()
        assert sensor.native_value == "ז׳ תשרי תשפ״ו"
        assert sensor.extra_state_attributes["Month"] == 7
        assert sensor.extra_state_attributes["Leap_Year"] is False

    def test_conversion_failure_gives_none(self, monkeypatch):
        monkeypatch.setattr(
            date_sensor,
            "gregorian_to_hebrew",
            lambda value: Result.failure(Failure.INVALID_DATE, "out of range"),
        )
        sensor = HebrewDateSensor(None, ENTRY)
        sensor._refresh()
        assert sensor.native_value is None
        assert sensor.extra_state_attributes == {}
