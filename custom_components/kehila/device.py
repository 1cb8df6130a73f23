# custom_components/kehila/device.py
from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity import Entity
from homeassistant.helpers.event import async_track_time_interval

from .const import DOMAIN, SIGNAL_DATA_UPDATED


class KehilaDevice(Entity):
    """Base mixin for ALL Kehila entities: one device per synagogue entry
    + listener management.
    """

    _attr_has_entity_name = True
    _attr_should_poll = False

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry, slug: str) -> None:
        super().__init__()
        self.hass = hass
        self._entry = entry
        self._listener_unsubs: list[Callable[[], None]] = []
        self._attr_unique_id = f"{entry.entry_id}_{slug}"
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, entry.entry_id)},
            name=entry.title,
            manufacturer="Kehila",
            model="Synagogue Administration",
            entry_type="service",
        )

    @property
    def data(self):
        """The entry's KehilaData (session, stores, calendar)."""
        return self.hass.data[DOMAIN][self._entry.entry_id]

    # --- Listener helpers (usable by any subclass) ---
    def _register_listener(self, unsub: Callable[[], None]) -> None:
        self._listener_unsubs.append(unsub)

    def _register_interval(self, hass, callback_, interval: timedelta):
        """Register an interval callback and remember its unsubscribe."""
        unsub = async_track_time_interval(hass, callback_, interval)
        self._register_listener(unsub)
        return unsub

    def _register_data_updates(self) -> None:
        """Refresh whenever a service call changes this entry's data."""

        @callback
        def _on_update(entry_id: str) -> None:
            if entry_id == self._entry.entry_id:
                self._refresh()
                self.async_write_ha_state()

        self._register_listener(
            async_dispatcher_connect(self.hass, SIGNAL_DATA_UPDATED, _on_update)
        )

    def _refresh(self) -> None:
        """Recompute state from self.data. Subclasses override."""

    async def async_will_remove_from_hass(self) -> None:
        """On entity removal, clean up any registered listeners."""
        for unsub in self._listener_unsubs:
            unsub()
        self._listener_unsubs.clear()
        await super().async_will_remove_from_hass()
