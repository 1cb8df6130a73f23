from __future__ import annotations

import logging

from homeassistant.components.sensor import SensorEntity, SensorStateClass
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import DOMAIN
from .date_sensor import HebrewDateSensor, HebrewMonthSensor
from .device import KehilaDevice
from .kehila_lib.reports import build_dashboard_summary
from .parsha_sensor import ParshaSensor
from .upcoming_event_sensor import UpcomingEventSensor

_LOGGER = logging.getLogger(__name__)


class _DataSensor(KehilaDevice, SensorEntity):
    """Sensor computed from the entry's stores, refreshed on every data change."""

    async def async_added_to_hass(self) -> None:
        await super().async_added_to_hass()
        self._refresh()
        self.async_write_ha_state()
        self._register_data_updates()


class CongregantsSensor(_DataSensor):
    _attr_name = "Congregants"
    _attr_icon = "mdi:account-group"
    _attr_state_class = SensorStateClass.MEASUREMENT

    def __init__(self, hass, entry) -> None:
        super().__init__(hass, entry, "congregants")

    def _refresh(self) -> None:
        registry = self.data.registry
        active = registry.active()
        self._attr_native_value = len(registry.congregants)
        self._attr_extra_state_attributes = {
            "Active": len(active),
            "Inactive": len(registry.congregants) - len(active),
        }


class OutstandingBalanceSensor(_DataSensor):
    """Total still owed on aliyot, pledges and purchases."""

    _attr_name = "Outstanding balance"
    _attr_icon = "mdi:cash-clock"

    def __init__(self, hass, entry, currency: str) -> None:
        super().__init__(hass, entry, "outstanding_balance")
        self._attr_native_unit_of_measurement = currency

    def _refresh(self) -> None:
        charges = self.data.ledger.outstanding_charges()
        self._attr_native_value = round(sum(c.amount for c in charges), 2)
        self._attr_extra_state_attributes = {
            "Pending_Charges": len(charges),
            "Charges": [
                {
                    "id": c.id,
                    "congregant": c.congregant_name,
                    "description": c.description,
                    "event": c.event_title,
                    "amount": c.amount,
                }
                for c in charges[:20]
            ],
        }


class RevenueSensor(_DataSensor):
    _attr_name = "Revenue"
    _attr_icon = "mdi:cash-multiple"
    _attr_state_class = SensorStateClass.TOTAL

    def __init__(self, hass, entry, currency: str) -> None:
        super().__init__(hass, entry, "revenue")
        self._attr_native_unit_of_measurement = currency

    def _refresh(self) -> None:
        data = self.data
        summary = build_dashboard_summary(data.registry, data.ledger, data.calendar)
        self._attr_native_value = summary.total_revenue
        self._attr_extra_state_attributes = {
            "Recent_Payments": summary.as_dict()["recent_payments"],
        }


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities,
) -> None:
    """Set up calendar and bookkeeping sensors for one synagogue."""
    data = hass.data[DOMAIN][entry.entry_id]

    sensors = [
        HebrewDateSensor(hass, entry),
        HebrewMonthSensor(hass, entry),
        ParshaSensor(hass, entry, data.is_in_israel),
        UpcomingEventSensor(hass, entry, data.lookahead_days),
        CongregantsSensor(hass, entry),
        OutstandingBalanceSensor(hass, entry, data.currency),
        RevenueSensor(hass, entry, data.currency),
    ]
    async_add_entities(sensors)
