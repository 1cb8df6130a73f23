from __future__ import annotations

from datetime import timedelta

from homeassistant.components.sensor import SensorEntity
from homeassistant.util import dt as dt_util

from .device import KehilaDevice


class UpcomingEventSensor(KehilaDevice, SensorEntity):
    """
    Next calendar event (weekly portion, holiday, fast or custom) within the
    configured lookahead window. Attributes list everything in that window.
    """

    _attr_name = "Upcoming event"
    _attr_icon = "mdi:calendar-star"

    def __init__(self, hass, entry, lookahead_days: int) -> None:
        super().__init__(hass, entry, "upcoming_event")
        self._lookahead = lookahead_days
        self._state: str | None = None
        self._attr_extra_state_attributes = {}

    async def async_added_to_hass(self) -> None:
        await super().async_added_to_hass()
        self._refresh()
        self.async_write_ha_state()
        self._register_data_updates()
        self._register_interval(self.hass, self._handle_tick, timedelta(minutes=30))

    async def _handle_tick(self, now) -> None:
        self.data.calendar.ensure_window(dt_util.now().date(), self._lookahead)
        self._refresh()
        self.async_write_ha_state()

    @property
    def state(self) -> str:
        return self._state or ""

    def _refresh(self) -> None:
        today = dt_util.now().date()
        events = self.data.calendar.upcoming(today, limit=None, days=self._lookahead)

        if not events:
            self._state = ""
            self._attr_extra_state_attributes = {"Lookahead_Days": self._lookahead, "Events": []}
            return

        nxt = events[0]
        self._state = nxt.title
        self._attr_extra_state_attributes = {
            "Date": nxt.gregorian.isoformat(),
            "Hebrew_Date": nxt.hebrew_date,
            "Event_Type": nxt.event_type.value,
            "Days_Until": (nxt.gregorian - today).days,
            "Lookahead_Days": self._lookahead,
            "Events": [e.as_dict() for e in events],
        }
