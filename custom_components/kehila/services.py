# custom_components/kehila/services.py
"""
Service surface of the integration: every create/update/delete on the
in-memory stores goes through here, as do the read-only annual report and
month grid. Store errors become Home Assistant errors; every successful
change is announced with SIGNAL_DATA_UPDATED.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import voluptuous as vol
from homeassistant.core import HomeAssistant, ServiceCall, SupportsResponse, callback
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.util import dt as dt_util

from .const import DOMAIN, SIGNAL_DATA_UPDATED
from .kehila_lib.calendar import (
    EventType,
    HebrewYear,
    build_month_grid,
    next_month,
    previous_month,
)
from .kehila_lib.congregants import (
    AliyahType,
    CongregantStatus,
    PledgeStatus,
    PledgeType,
    PurchaseType,
)
from .kehila_lib.directory import UserRole, require_access_synagogue
from .kehila_lib.exceptions import NotFound, PermissionDenied, ValidationError
from .kehila_lib.helper import (
    get_current_hebrew_date,
    get_hebrew_month_name,
    months_for_year,
    year_to_gematria,
)
from .kehila_lib.payments import PaymentMethod
from .kehila_lib.reports import build_annual_report

if TYPE_CHECKING:
    from . import KehilaData

_LOGGER = logging.getLogger(__name__)

ATTR_ENTRY_ID = "config_entry_id"

_ENTRY = {vol.Optional(ATTR_ENTRY_ID): cv.string}
_MONEY = vol.All(vol.Coerce(float), vol.Range(min=0))

_CONGREGANT_FIELDS = {
    vol.Optional("father_name"): cv.string,
    vol.Optional("identity_number"): cv.string,
    vol.Optional("secondary_phone"): cv.string,
    vol.Optional("email"): cv.string,
    vol.Optional("address"): dict,
    vol.Optional("status"): vol.In([s.value for s in CongregantStatus]),
    vol.Optional("family_unit_id"): cv.string,
    vol.Optional("notes"): cv.string,
}
_SYNAGOGUE_FIELDS = {
    vol.Optional("hebrew_name"): cv.string,
    vol.Optional("address"): cv.string,
    vol.Optional("contact_phone"): cv.string,
    vol.Optional("contact_email"): cv.string,
    vol.Optional("logo_url"): cv.string,
    vol.Optional("active"): cv.boolean,
    vol.Optional("timezone"): cv.string,
    vol.Optional("currency"): cv.string,
    vol.Optional("language"): cv.string,
}


def _optional(data: dict, *skip: str) -> dict:
    return {k: v for k, v in data.items() if k not in skip and k != ATTR_ENTRY_ID}


def _require_synagogue(data: KehilaData) -> None:
    require_access_synagogue(data.session.current_user, data.session.synagogue_id)


# ─── Handlers ────────────────────────────────────────────────────────────────
# Each takes the entry's runtime data and the validated call data and returns
# the response dict.

def _add_congregant(data: KehilaData, call: dict) -> dict:
    _require_synagogue(data)
    congregant = data.registry.add(
        call["first_name"],
        call["last_name"],
        call["phone"],
        **_optional(call, "first_name", "last_name", "phone"),
    )
    return {"congregant_id": congregant.id}


def _update_congregant(data: KehilaData, call: dict) -> dict:
    _require_synagogue(data)
    congregant = data.registry.update(call["congregant_id"], **_optional(call, "congregant_id"))
    return {"congregant_id": congregant.id}


def _remove_congregant(data: KehilaData, call: dict) -> dict:
    _require_synagogue(data)
    congregant = data.registry.remove(call["congregant_id"])
    return {"congregant_id": congregant.id}


def _add_aliyah(data: KehilaData, call: dict) -> dict:
    _require_synagogue(data)
    aliyah = data.registry.add_aliyah(
        call["congregant_id"],
        call["date"],
        call["aliyah_type"],
        parasha=call.get("parasha"),
        amount=call.get("amount", 0),
        aliyah_number=call.get("aliyah_number"),
        notes=call.get("notes"),
        israel=data.is_in_israel,
    )
    return {"aliyah_id": aliyah.id, "parasha": aliyah.parasha, "hebrew_date": aliyah.hebrew_date}


def _add_pledge(data: KehilaData, call: dict) -> dict:
    _require_synagogue(data)
    pledge = data.registry.add_pledge(
        call["congregant_id"],
        call["title"],
        call["amount"],
        call["date"],
        pledge_type=call.get("pledge_type", PledgeType.GENERAL),
        description=call.get("description"),
        notes=call.get("notes"),
    )
    return {"pledge_id": pledge.id}


def _update_pledge(data: KehilaData, call: dict) -> dict:
    _require_synagogue(data)
    pledge = data.ledger.update_pledge(call["pledge_id"], **_optional(call, "pledge_id"))
    return {"pledge_id": pledge.id, "payment_status": pledge.payment_status.value}


def _add_purchase(data: KehilaData, call: dict) -> dict:
    _require_synagogue(data)
    purchase = data.registry.add_purchase(
        call["congregant_id"],
        call["title"],
        call["amount"],
        call["date"],
        purchase_type=call.get("purchase_type", PurchaseType.OTHER),
        description=call.get("description"),
        notes=call.get("notes"),
    )
    return {"purchase_id": purchase.id}


def _record_payment(data: KehilaData, call: dict) -> dict:
    _require_synagogue(data)
    payment = data.ledger.record_payment(
        call["congregant_id"],
        call["amount"],
        method=call.get("method", PaymentMethod.CASH),
        on=call.get("date"),
        reference=call.get("reference"),
    )
    return {"payment_id": payment.id, "hebrew_date": payment.hebrew_date}


def _allocate_payment(data: KehilaData, call: dict) -> dict:
    _require_synagogue(data)
    charges = call["charges"]
    if isinstance(charges, list):
        charges = {cid: None for cid in charges}
    created = data.ledger.allocate(call["payment_id"], charges)
    payment = data.ledger.get(call["payment_id"])
    return {
        "allocation_ids": [a.id for a in created],
        "unallocated": payment.unallocated,
    }


def _create_synagogue(data: KehilaData, call: dict) -> dict:
    synagogue = data.directory.create_synagogue(
        call["name"], actor=data.session.current_user, **_optional(call, "name")
    )
    return {"synagogue_id": synagogue.id}


def _update_synagogue(data: KehilaData, call: dict) -> dict:
    synagogue = data.directory.update_synagogue(
        call["synagogue_id"], actor=data.session.current_user, **_optional(call, "synagogue_id")
    )
    return {"synagogue_id": synagogue.id}


def _delete_synagogue(data: KehilaData, call: dict) -> dict:
    if call["synagogue_id"] == data.session.synagogue_id:
        raise ValidationError("synagogue_id", "Cannot delete the synagogue this entry manages")
    removed = data.directory.delete_synagogue(call["synagogue_id"], actor=data.session.current_user)
    return {"removed_user_ids": removed}


def _create_user(data: KehilaData, call: dict) -> dict:
    user = data.directory.create_user(
        call["email"],
        call["name"],
        role=call.get("role", UserRole.USER),
        synagogue_id=call.get("synagogue_id", data.session.synagogue_id),
        actor=data.session.current_user,
    )
    return {"user_id": user.id}


def _update_user(data: KehilaData, call: dict) -> dict:
    user = data.directory.update_user(
        call["user_id"], actor=data.session.current_user, **_optional(call, "user_id")
    )
    return {"user_id": user.id}


def _delete_user(data: KehilaData, call: dict) -> dict:
    data.directory.delete_user(call["user_id"], actor=data.session.current_user)
    return {"user_id": call["user_id"]}


async def _create_hebrew_year(hass: HomeAssistant, data: KehilaData, call: dict) -> dict:
    calendar = data.calendar
    new_year = calendar.new_year(label=call.get("label"), year=call.get("year"))
    # pyluach walks every day of the year; only that part leaves the loop
    events = await hass.async_add_executor_job(calendar.generate_events_for_year, new_year)
    year = calendar.add_year(new_year, events)
    return {
        "year_id": year.id,
        "label": year.label,
        "start": year.start.isoformat(),
        "end": year.end.isoformat(),
    }


def _select_hebrew_year(data: KehilaData, call: dict) -> dict:
    year = data.calendar.select_year(call["year_id"])
    data.session.hebrew_year = year.year
    return {"year_id": year.id, "label": year.label}


def _add_event(data: KehilaData, call: dict) -> dict:
    event = data.calendar.add_event(
        call["title"], call["date"], call.get("event_type", EventType.OTHER)
    )
    return {"uid": event.uid, "hebrew_date": event.hebrew_date}


def _get_annual_report(data: KehilaData, call: dict) -> dict:
    _require_synagogue(data)
    year = call.get("year", data.session.hebrew_year)
    if year is None:
        raise ValidationError("year", "No Hebrew year selected")
    hebrew_year = data.calendar.years.get(str(year)) or HebrewYear.for_year(int(year))
    report = build_annual_report(
        data.registry,
        data.ledger,
        call["congregant_id"],
        hebrew_year,
        opening_balance=call.get("opening_balance", 0.0),
    )
    return report.as_dict()


def _get_month_grid(data: KehilaData, call: dict) -> dict:
    today = dt_util.now().date()
    current = get_current_hebrew_date(today)
    month = call.get("month", current["month"])
    year = call.get("year", current["year"])
    if month not in months_for_year(year):
        raise ValidationError("month", f"Month {month} does not exist in {year}")

    next_m, next_y = next_month(month, year)
    prev_m, prev_y = previous_month(month, year)
    days = build_month_grid(month, year, today=today, israel=data.is_in_israel)
    return {
        "month": month,
        "year": year,
        "month_name": get_hebrew_month_name(month, year),
        "year_label": year_to_gematria(year),
        "next": {"month": next_m, "year": next_y},
        "previous": {"month": prev_m, "year": prev_y},
        "days": [day.as_dict() for day in days],
    }


@dataclass(frozen=True)
class _Service:
    handler: Callable[..., Any]
    schema: dict
    # Coroutine taking (hass, data, call) instead of (data, call)
    is_async: bool = False
    # Read-only services skip SIGNAL_DATA_UPDATED and always return a response
    mutates: bool = True


SERVICES: dict[str, _Service] = {
    "add_congregant": _Service(
        _add_congregant,
        {
            vol.Required("first_name"): cv.string,
            vol.Required("last_name"): cv.string,
            vol.Required("phone"): cv.string,
            **_CONGREGANT_FIELDS,
        },
    ),
    "update_congregant": _Service(
        _update_congregant,
        {
            vol.Required("congregant_id"): cv.string,
            vol.Optional("first_name"): cv.string,
            vol.Optional("last_name"): cv.string,
            vol.Optional("phone"): cv.string,
            **_CONGREGANT_FIELDS,
        },
    ),
    "remove_congregant": _Service(
        _remove_congregant, {vol.Required("congregant_id"): cv.string}
    ),
    "add_aliyah": _Service(
        _add_aliyah,
        {
            vol.Required("congregant_id"): cv.string,
            vol.Required("date"): cv.date,
            vol.Required("aliyah_type"): vol.In([t.value for t in AliyahType]),
            vol.Optional("parasha"): cv.string,
            vol.Optional("amount"): _MONEY,
            vol.Optional("aliyah_number"): vol.All(vol.Coerce(int), vol.Range(min=1, max=8)),
            vol.Optional("notes"): cv.string,
        },
    ),
    "add_pledge": _Service(
        _add_pledge,
        {
            vol.Required("congregant_id"): cv.string,
            vol.Required("title"): cv.string,
            vol.Required("amount"): _MONEY,
            vol.Required("date"): cv.date,
            vol.Optional("pledge_type"): vol.In([t.value for t in PledgeType]),
            vol.Optional("description"): cv.string,
            vol.Optional("notes"): cv.string,
        },
    ),
    "update_pledge": _Service(
        _update_pledge,
        {
            vol.Required("pledge_id"): cv.string,
            vol.Optional("title"): cv.string,
            vol.Optional("amount"): _MONEY,
            vol.Optional("status"): vol.In([s.value for s in PledgeStatus]),
            vol.Optional("pledge_type"): vol.In([t.value for t in PledgeType]),
            vol.Optional("description"): cv.string,
            vol.Optional("notes"): cv.string,
        },
    ),
    "add_purchase": _Service(
        _add_purchase,
        {
            vol.Required("congregant_id"): cv.string,
            vol.Required("title"): cv.string,
            vol.Required("amount"): _MONEY,
            vol.Required("date"): cv.date,
            vol.Optional("purchase_type"): vol.In([t.value for t in PurchaseType]),
            vol.Optional("description"): cv.string,
            vol.Optional("notes"): cv.string,
        },
    ),
    "record_payment": _Service(
        _record_payment,
        {
            vol.Required("congregant_id"): cv.string,
            vol.Required("amount"): _MONEY,
            vol.Optional("method"): vol.In([m.value for m in PaymentMethod]),
            vol.Optional("date"): cv.date,
            vol.Optional("reference"): cv.string,
        },
    ),
    "allocate_payment": _Service(
        _allocate_payment,
        {
            vol.Required("payment_id"): cv.string,
            vol.Required("charges"): vol.Any(
                [cv.string],
                {cv.string: vol.Any(None, _MONEY)},
            ),
        },
    ),
    "create_synagogue": _Service(
        _create_synagogue, {vol.Required("name"): cv.string, **_SYNAGOGUE_FIELDS}
    ),
    "update_synagogue": _Service(
        _update_synagogue,
        {
            vol.Required("synagogue_id"): cv.string,
            vol.Optional("name"): cv.string,
            vol.Optional("admin_user_id"): cv.string,
            **_SYNAGOGUE_FIELDS,
        },
    ),
    "delete_synagogue": _Service(
        _delete_synagogue, {vol.Required("synagogue_id"): cv.string}
    ),
    "create_user": _Service(
        _create_user,
        {
            vol.Required("email"): cv.string,
            vol.Required("name"): cv.string,
            vol.Optional("role"): vol.In([r.value for r in UserRole]),
            vol.Optional("synagogue_id"): cv.string,
        },
    ),
    "update_user": _Service(
        _update_user,
        {
            vol.Required("user_id"): cv.string,
            vol.Optional("email"): cv.string,
            vol.Optional("name"): cv.string,
            vol.Optional("role"): vol.In([r.value for r in UserRole]),
            vol.Optional("synagogue_id"): cv.string,
            vol.Optional("active"): cv.boolean,
        },
    ),
    "delete_user": _Service(_delete_user, {vol.Required("user_id"): cv.string}),
    "create_hebrew_year": _Service(
        _create_hebrew_year,
        {
            vol.Optional("year"): vol.All(vol.Coerce(int), vol.Range(min=5000, max=6000)),
            vol.Optional("label"): cv.string,
        },
        is_async=True,
    ),
    "select_hebrew_year": _Service(
        _select_hebrew_year, {vol.Required("year_id"): cv.string}
    ),
    "add_event": _Service(
        _add_event,
        {
            vol.Required("title"): cv.string,
            vol.Required("date"): cv.date,
            vol.Optional("event_type"): vol.In([t.value for t in EventType]),
        },
    ),
    "get_annual_report": _Service(
        _get_annual_report,
        {
            vol.Required("congregant_id"): cv.string,
            vol.Optional("year"): vol.All(vol.Coerce(int), vol.Range(min=5000, max=6000)),
            vol.Optional("opening_balance"): vol.Coerce(float),
        },
        mutates=False,
    ),
    "get_month_grid": _Service(
        _get_month_grid,
        {
            vol.Optional("month"): vol.All(vol.Coerce(int), vol.Range(min=1, max=13)),
            vol.Optional("year"): vol.All(vol.Coerce(int), vol.Range(min=5000, max=6000)),
        },
        mutates=False,
    ),
}


def _entry_data(hass: HomeAssistant, call: ServiceCall) -> tuple[str, KehilaData]:
    entries: dict[str, KehilaData] = hass.data.get(DOMAIN, {})
    entry_id = call.data.get(ATTR_ENTRY_ID)
    if entry_id:
        if entry_id not in entries:
            raise ServiceValidationError(f"Unknown Kehila config entry {entry_id}")
        return entry_id, entries[entry_id]
    if len(entries) != 1:
        raise ServiceValidationError(
            f"{ATTR_ENTRY_ID} is required when {len(entries)} Kehila entries are loaded"
        )
    return next(iter(entries.items()))


def _make_handler(hass: HomeAssistant, name: str, service: _Service):
    async def _handle(call: ServiceCall) -> dict[str, Any]:
        entry_id, data = _entry_data(hass, call)
        payload = dict(call.data)
        try:
            if service.is_async:
                response = await service.handler(hass, data, payload)
            else:
                response = service.handler(data, payload)
        except (ValidationError, NotFound) as err:
            _LOGGER.warning("Kehila %s rejected: %s", name, err)
            raise ServiceValidationError(str(err)) from err
        except PermissionDenied as err:
            _LOGGER.warning("Kehila %s denied: %s", name, err)
            raise HomeAssistantError(str(err)) from err

        if service.mutates:
            _LOGGER.info("Kehila %s done (%s)", name, entry_id)
            async_dispatcher_send(hass, SIGNAL_DATA_UPDATED, entry_id)
        return response

    return _handle


@callback
def async_setup_services(hass: HomeAssistant) -> None:
    """Register the domain services once, however many entries are loaded."""
    for name, service in SERVICES.items():
        if hass.services.has_service(DOMAIN, name):
            continue
        hass.services.async_register(
            DOMAIN,
            name,
            _make_handler(hass, name, service),
            schema=vol.Schema({**_ENTRY, **service.schema}),
            supports_response=(
                SupportsResponse.OPTIONAL if service.mutates else SupportsResponse.ONLY
            ),
        )


@callback
def async_unload_services(hass: HomeAssistant) -> None:
    for name in SERVICES:
        hass.services.async_remove(DOMAIN, name)
