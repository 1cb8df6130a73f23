from __future__ import annotations

import logging
from datetime import date, timedelta

from homeassistant.components.sensor import SensorDeviceClass, SensorEntity
from homeassistant.const import STATE_UNAVAILABLE, STATE_UNKNOWN
from homeassistant.helpers.restore_state import RestoreEntity
from homeassistant.util import dt as dt_util

from .device import KehilaDevice
from .kehila_lib.helper import (
    HEBREW_MONTHS,
    format_pyluach_date,
    get_english_month_name,
    get_hebrew_month_name,
    gregorian_to_hebrew,
    is_leap_year,
)

_LOGGER = logging.getLogger(__name__)

# Every label the month sensor can show, including both Adar forms of a leap year
CHODESH_OPTIONS = [m.label for m in HEBREW_MONTHS] + ["אדר א׳"]


class _DailyHebrewSensor(KehilaDevice, RestoreEntity, SensorEntity):
    """Shared plumbing: restore, compute once, then re-check every minute for a date change."""

    def __init__(self, hass, entry, slug: str) -> None:
        super().__init__(hass, entry, slug)
        self._last_calculated_date: date | None = None

    async def async_added_to_hass(self) -> None:
        await super().async_added_to_hass()

        last = await self.async_get_last_state()
        if last and last.state not in (STATE_UNKNOWN, STATE_UNAVAILABLE):
            if not self.options or last.state in self.options:
                self._attr_native_value = last.state

        self._refresh()
        self._register_interval(self.hass, self._handle_minute_tick, timedelta(minutes=1))

    async def _handle_minute_tick(self, now) -> None:
        if self._last_calculated_date != dt_util.now().date():
            self._refresh()
            self.async_write_ha_state()


class HebrewDateSensor(_DailyHebrewSensor):
    """Today’s Hebrew date, e.g. 'ז׳ תשרי תשפ״ו'. Flips at local midnight."""

    _attr_name = "Hebrew date"
    _attr_icon = "mdi:calendar-range"

    def __init__(self, hass, entry) -> None:
        super().__init__(hass, entry, "hebrew_date")

    def _refresh(self) -> None:
        today = dt_util.now().date()
        self._last_calculated_date = today

        res = gregorian_to_hebrew(today)
        if not res.ok:
            _LOGGER.debug("Hebrew date unavailable for %s: %s", today, res.detail)
            self._attr_native_value = None
            self._attr_extra_state_attributes = {}
            return

        hd = res.value
        self._attr_native_value = format_pyluach_date(hd)
        self._attr_extra_state_attributes = {
            "Day": hd.day,
            "Month": hd.month,
            "Year": hd.year,
            "Month_Name": get_hebrew_month_name(hd.month, hd.year),
            "Month_Name_English": get_english_month_name(hd.month, hd.year),
            "Leap_Year": is_leap_year(hd.year),
            "Gregorian": today.isoformat(),
        }


class HebrewMonthSensor(_DailyHebrewSensor):
    """Current Hebrew month (enum)."""

    _attr_name = "Chodesh"
    _attr_icon = "mdi:calendar-month"
    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = CHODESH_OPTIONS

    def __init__(self, hass, entry) -> None:
        super().__init__(hass, entry, "chodesh")

    def _refresh(self) -> None:
        today = dt_util.now().date()
        self._last_calculated_date = today
        res = gregorian_to_hebrew(today)
        if not res.ok:
            _LOGGER.debug("Hebrew month unavailable for %s: %s", today, res.detail)
            self._attr_native_value = None
            return
        self._attr_native_value = get_hebrew_month_name(res.value.month, res.value.year)
