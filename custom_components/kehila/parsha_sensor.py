# custom_components/kehila/parsha_sensor.py
from __future__ import annotations

from datetime import date, timedelta

from homeassistant.components.sensor import SensorEntity
from homeassistant.util import dt as dt_util

from .device import KehilaDevice
from .kehila_lib.helper import format_gregorian_as_hebrew, upcoming_shabbat
from .kehila_lib.parshiot import resolve_parasha


class ParshaSensor(KehilaDevice, SensorEntity):
    """Weekly portion of the upcoming Shabbat, Israel or diaspora schedule."""

    _attr_name = "Parsha"
    _attr_icon = "mdi:book-open-page-variant"

    def __init__(self, hass, entry, is_in_israel: bool) -> None:
        super().__init__(hass, entry, "parsha")
        self._israel = is_in_israel
        self._state: str | None = None
        self._last_calculated_date: date | None = None
        self._attr_extra_state_attributes = {}

    async def async_added_to_hass(self) -> None:
        await super().async_added_to_hass()
        self._refresh()
        self.async_write_ha_state()
        self._register_interval(self.hass, self._handle_minute_tick, timedelta(minutes=1))

    async def _handle_minute_tick(self, now) -> None:
        """Recalculate once the calendar date rolls over."""
        if self._last_calculated_date != dt_util.now().date():
            self._refresh()
            self.async_write_ha_state()

    @property
    def state(self) -> str:
        return self._state or ""

    def _refresh(self) -> None:
        today = dt_util.now().date()
        self._last_calculated_date = today
        shabbat = upcoming_shabbat(today)

        res = resolve_parasha(shabbat, israel=self._israel)
        attrs = {
            "Next_Shabbos_Date": shabbat.isoformat(),
            "Next_Shabbos_Hebrew_Date": format_gregorian_as_hebrew(shabbat),
            "Israel": self._israel,
        }
        if res.ok:
            self._state = res.value.display
            attrs["English"] = res.value.english
            attrs["Combined"] = res.value.is_combined
        else:
            # Festival Shabbat: no weekly reading
            self._state = ""
            attrs["Reason"] = res.reason.value
        self._attr_extra_state_attributes = attrs
