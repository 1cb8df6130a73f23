from __future__ import annotations

import logging
from dataclasses import dataclass

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant

from .const import (
    CONF_ADMIN_EMAIL,
    CONF_ADMIN_NAME,
    CONF_CURRENCY,
    CONF_IS_IN_ISRAEL,
    CONF_SYNAGOGUE_HEBREW_NAME,
    CONF_SYNAGOGUE_NAME,
    CONF_UPCOMING_LOOKAHEAD_DAYS,
    DEFAULT_CURRENCY,
    DEFAULT_IS_IN_ISRAEL,
    DEFAULT_UPCOMING_LOOKAHEAD_DAYS,
    DOMAIN,
)
from .kehila_lib.calendar import EventCalendar
from .kehila_lib.congregants import CongregantRegistry
from .kehila_lib.directory import AdminDirectory, Session, UserRole
from .kehila_lib.payments import PaymentLedger
from .services import async_setup_services, async_unload_services

_LOGGER = logging.getLogger(__name__)

PLATFORMS = [Platform.SENSOR, Platform.BINARY_SENSOR, Platform.CALENDAR]


@dataclass
class KehilaData:
    """Everything one config entry owns while it is loaded."""

    session: Session
    directory: AdminDirectory
    registry: CongregantRegistry
    ledger: PaymentLedger
    calendar: EventCalendar
    is_in_israel: bool
    currency: str
    lookahead_days: int


def _build_runtime(entry: ConfigEntry) -> KehilaData:
    initial = entry.data or {}
    opts = entry.options or {}

    is_in_israel = opts.get(
        CONF_IS_IN_ISRAEL,
        initial.get(CONF_IS_IN_ISRAEL, DEFAULT_IS_IN_ISRAEL),
    )
    lookahead = int(
        opts.get(
            CONF_UPCOMING_LOOKAHEAD_DAYS,
            initial.get(CONF_UPCOMING_LOOKAHEAD_DAYS, DEFAULT_UPCOMING_LOOKAHEAD_DAYS),
        )
    )
    currency = opts.get(CONF_CURRENCY, initial.get(CONF_CURRENCY, DEFAULT_CURRENCY))

    directory = AdminDirectory()
    synagogue = directory.create_synagogue(
        initial.get(CONF_SYNAGOGUE_NAME) or entry.title,
        hebrew_name=initial.get(CONF_SYNAGOGUE_HEBREW_NAME, ""),
        contact_email=initial.get(CONF_ADMIN_EMAIL),
        currency=currency,
    )
    admin = directory.create_user(
        initial.get(CONF_ADMIN_EMAIL, ""),
        initial.get(CONF_ADMIN_NAME) or "Admin",
        role=UserRole.SUPER_ADMIN,
    )
    directory.update_synagogue(synagogue.id, admin_user_id=admin.id)

    session = Session(directory=directory, synagogue_id=synagogue.id, is_in_israel=is_in_israel)
    session.login(admin.id)

    registry = CongregantRegistry()
    return KehilaData(
        session=session,
        directory=directory,
        registry=registry,
        ledger=PaymentLedger(registry),
        calendar=EventCalendar(israel=is_in_israel),
        is_in_israel=is_in_israel,
        currency=currency,
        lookahead_days=lookahead,
    )


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Kehila from a config entry."""
    entry.async_on_unload(entry.add_update_listener(_async_update_options))

    data = _build_runtime(entry)
    # pyluach walks every day of the initial window; keep it off the loop
    await hass.async_add_executor_job(data.calendar.initialize)
    if data.calendar.current_year is not None:
        data.session.hebrew_year = data.calendar.current_year.year

    hass.data.setdefault(DOMAIN, {})
    hass.data[DOMAIN][entry.entry_id] = data
    async_setup_services(hass)

    _LOGGER.info(
        "Kehila ready for %s (%s, %d events)",
        entry.title,
        "Israel" if data.is_in_israel else "diaspora",
        len(data.calendar.events),
    )
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def _async_update_options(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Called when the user hits Submit on the Options page."""
    _LOGGER.debug("Kehila: reloading entry %s after options change", entry.entry_id)
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry; its in-memory data goes with it."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unloaded:
        entries = hass.data.get(DOMAIN, {})
        entries.pop(entry.entry_id, None)
        if not entries:
            async_unload_services(hass)
    return unloaded
