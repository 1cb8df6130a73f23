# custom_components/kehila/binary_sensor.py
from __future__ import annotations

import logging
from datetime import timedelta

from homeassistant.components.binary_sensor import BinarySensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import STATE_ON
from homeassistant.core import HomeAssistant
from homeassistant.helpers.restore_state import RestoreEntity
from homeassistant.util import dt as dt_util

from .const import DOMAIN
from .device import KehilaDevice
from .kehila_lib.calendar import holidays_for_date
from .kehila_lib.helper import is_shabbat

_LOGGER = logging.getLogger(__name__)


class _CivilDayBinarySensor(KehilaDevice, RestoreEntity, BinarySensorEntity):
    """On for the whole civil day; re-evaluated once a minute."""

    async def async_added_to_hass(self) -> None:
        await super().async_added_to_hass()

        last = await self.async_get_last_state()
        if last:
            self._attr_is_on = last.state == STATE_ON

        await self.async_update()
        self._register_interval(self.hass, self.async_update, timedelta(minutes=1))

    async def async_update(self, now=None) -> None:
        self._refresh()
        if now is not None:
            self.async_write_ha_state()


class ShabbatSensor(_CivilDayBinarySensor):
    _attr_name = "Shabbat"
    _attr_icon = "mdi:candle"

    def __init__(self, hass, entry) -> None:
        super().__init__(hass, entry, "shabbat")

    def _refresh(self) -> None:
        self._attr_is_on = is_shabbat(dt_util.now().date())


class HolidaySensor(_CivilDayBinarySensor):
    """On when today is a holiday or fast; the name is in the attributes."""

    _attr_name = "Holiday"
    _attr_icon = "mdi:star-david"

    def __init__(self, hass, entry, is_in_israel: bool) -> None:
        super().__init__(hass, entry, "holiday")
        self._israel = is_in_israel
        self._attr_extra_state_attributes = {}

    def _refresh(self) -> None:
        names = holidays_for_date(dt_util.now().date(), self._israel)
        self._attr_is_on = bool(names)
        self._attr_extra_state_attributes = {"Holiday_Name": names[0] if names else ""}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities,
) -> None:
    data = hass.data[DOMAIN][entry.entry_id]
    async_add_entities(
        [
            ShabbatSensor(hass, entry),
            HolidaySensor(hass, entry, data.is_in_israel),
        ],
        update_before_add=True,
    )
