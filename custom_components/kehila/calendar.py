from __future__ import annotations

import logging
from datetime import datetime, timedelta

from homeassistant.components.calendar import CalendarEntity, CalendarEvent
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util

from .device import KehilaDevice
from .kehila_lib.calendar import CalendarEvent as KehilaEvent

_LOGGER = logging.getLogger(__name__)


def _to_ha_event(ev: KehilaEvent) -> CalendarEvent:
    """All-day event: start date to the following date."""
    return CalendarEvent(
        start=ev.gregorian,
        end=ev.gregorian + timedelta(days=1),
        summary=ev.title,
        description=ev.hebrew_date,
        uid=ev.uid,
    )


class KehilaCalendar(KehilaDevice, CalendarEntity):
    """Weekly portions, holidays, fasts and custom events of the selected Hebrew years."""

    _attr_name = "Events"
    _attr_icon = "mdi:calendar-star"

    def __init__(self, hass, entry) -> None:
        super().__init__(hass, entry, "calendar")

    async def async_added_to_hass(self) -> None:
        await super().async_added_to_hass()
        self._register_data_updates()

    @property
    def event(self) -> CalendarEvent | None:
        upcoming = self.data.calendar.upcoming(dt_util.now().date(), limit=1)
        return _to_ha_event(upcoming[0]) if upcoming else None

    async def async_get_events(
        self, hass: HomeAssistant, start_date: datetime, end_date: datetime
    ) -> list[CalendarEvent]:
        cal = self.data.calendar
        return [
            _to_ha_event(ev)
            for ev in cal.events_between(start_date.date(), end_date.date())
        ]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry, async_add_entities):
    async_add_entities([KehilaCalendar(hass, entry)])
