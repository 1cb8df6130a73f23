# custom_components/kehila/kehila_lib/calendar.py
"""
Calendar days, month grids and the Hebrew-year event calendar.

Holidays and fasts come from pyluach (HebrewDate.holiday / fast_day), weekly
readings from parshiot.resolve_parasha. Nothing in here raises out of a
lookup: a day that pyluach cannot describe is just a plain day.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Iterator

from pyluach.hebrewcal import HebrewDate as PHebrewDate

from .exceptions import NotFound, ValidationError
from .helper import (
    day_to_gematria,
    format_gregorian_as_hebrew,
    get_days_in_hebrew_month,
    get_hebrew_month_name,
    is_leap_year,
    is_shabbat,
    months_for_year,
    to_pydate,
    year_to_gematria,
)
from .parshiot import format_parasha_name, parasha_for_date, resolve_parasha

_LOGGER = logging.getLogger(__name__)

PERIOD_DAYS_BACK = 7
PERIOD_DAYS_AHEAD = 56


class EventType(str, Enum):
    SHABBAT_PARASHA = "SHABBAT_PARASHA"
    HOLIDAY = "HOLIDAY"
    FAST = "FAST"
    OTHER = "OTHER"


@dataclass
class CalendarDay:
    hebrew: PHebrewDate
    gregorian: date
    hebrew_day: str
    hebrew_month: str
    hebrew_year: str
    is_shabbat: bool = False
    is_holiday: bool = False
    is_today: bool = False
    is_current_month: bool = True
    holiday_name: str | None = None
    parasha: str | None = None

    def as_dict(self) -> dict:
        return {
            "date": self.gregorian.isoformat(),
            "hebrew": {"day": self.hebrew.day, "month": self.hebrew.month, "year": self.hebrew.year},
            "hebrew_day": self.hebrew_day,
            "hebrew_month": self.hebrew_month,
            "hebrew_year": self.hebrew_year,
            "is_shabbat": self.is_shabbat,
            "is_holiday": self.is_holiday,
            "is_today": self.is_today,
            "is_current_month": self.is_current_month,
            "holiday_name": self.holiday_name,
            "parasha": self.parasha,
        }


@dataclass
class CalendarEvent:
    uid: str
    event_type: EventType
    gregorian: date
    hebrew_date: str
    title: str
    parasha: str | None = None

    def as_dict(self) -> dict:
        return {
            "uid": self.uid,
            "event_type": self.event_type.value,
            "date": self.gregorian.isoformat(),
            "hebrew_date": self.hebrew_date,
            "title": self.title,
            "parasha": self.parasha,
        }


# ─── Day lookups ─────────────────────────────────────────────────────────────

def _holiday_lookup(gdate: date, israel: bool) -> tuple[str | None, bool]:
    """(Hebrew holiday or fast name, is_fast) for a Gregorian date."""
    hd = PHebrewDate.from_pydate(gdate)
    name = hd.holiday(israel=israel, hebrew=True, prefix_day=True)
    if not name:
        return None, False
    return name, bool(hd.fast_day(hebrew=True))


def holidays_for_date(gdate: date, israel: bool = True) -> list[str]:
    try:
        name, _ = _holiday_lookup(gdate, israel)
    except Exception as err:  # pyluach edge cases are treated as plain days
        _LOGGER.debug("Holiday lookup failed for %s: %s", gdate, err)
        return []
    return [name] if name else []


def build_calendar_day(
    hd: PHebrewDate,
    today: date | None = None,
    israel: bool = True,
    current_month: bool = True,
) -> CalendarDay:
    gdate = hd.to_pydate()
    holidays = holidays_for_date(gdate, israel)
    shabbat = is_shabbat(gdate)
    return CalendarDay(
        hebrew=hd,
        gregorian=gdate,
        hebrew_day=day_to_gematria(hd.day),
        hebrew_month=get_hebrew_month_name(hd.month, hd.year),
        hebrew_year=year_to_gematria(hd.year),
        is_shabbat=shabbat,
        is_holiday=bool(holidays),
        is_today=today is not None and gdate == today,
        is_current_month=current_month,
        holiday_name=holidays[0] if holidays else None,
        parasha=parasha_for_date(gdate, israel) if shabbat else None,
    )


def build_month_grid(
    month: int, year: int, today: date | None = None, israel: bool = True
) -> list[CalendarDay]:
    """
    All days of a Hebrew month, preceded by the tail of the previous month so
    that the first cell is a Sunday.
    """
    try:
        first = PHebrewDate(year, month, 1)
    except ValueError as err:
        _LOGGER.debug("No month %s in year %s: %s", month, year, err)
        return []

    first_greg = first.to_pydate()
    leading = (first_greg.weekday() + 1) % 7  # Sunday=0
    days: list[CalendarDay] = []

    for offset in range(leading, 0, -1):
        prev = PHebrewDate.from_pydate(first_greg - timedelta(days=offset))
        days.append(build_calendar_day(prev, today, israel, current_month=False))

    for day in range(1, get_days_in_hebrew_month(month, year) + 1):
        days.append(build_calendar_day(PHebrewDate(year, month, day), today, israel))
    return days


def next_month(month: int, year: int) -> tuple[int, int]:
    """Following Hebrew month; Elul rolls over into Tishrei of the next year."""
    order = months_for_year(year)
    if month not in order:
        raise ValueError(f"Month {month} does not exist in {year}")
    idx = order.index(month)
    if idx == len(order) - 1:
        return 7, year + 1
    return order[idx + 1], year


def previous_month(month: int, year: int) -> tuple[int, int]:
    order = months_for_year(year)
    if month not in order:
        raise ValueError(f"Month {month} does not exist in {year}")
    idx = order.index(month)
    if idx == 0:
        return 6, year - 1
    return order[idx - 1], year


# ─── Events ──────────────────────────────────────────────────────────────────

def _events_on(gdate: date, israel: bool) -> list[CalendarEvent]:
    found: list[CalendarEvent] = []
    hebrew_str = format_gregorian_as_hebrew(gdate)
    iso = gdate.isoformat()

    if is_shabbat(gdate):
        res = resolve_parasha(gdate, israel=israel)
        if res.ok:
            found.append(
                CalendarEvent(
                    uid=f"parasha-{iso}",
                    event_type=EventType.SHABBAT_PARASHA,
                    gregorian=gdate,
                    hebrew_date=hebrew_str,
                    title=format_parasha_name(res.value.hebrew),
                    parasha=res.value.hebrew,
                )
            )

    name, is_fast = _holiday_lookup(gdate, israel)
    if name:
        kind = EventType.FAST if is_fast else EventType.HOLIDAY
        found.append(
            CalendarEvent(
                uid=f"{kind.value.lower()}-{iso}",
                event_type=kind,
                gregorian=gdate,
                hebrew_date=hebrew_str,
                title=name,
            )
        )
    return found


def iter_events(start, end, israel: bool = True) -> Iterator[CalendarEvent]:
    """Weekly readings, holidays and fasts between start and end, inclusive, by date."""
    current = to_pydate(start)
    last = to_pydate(end)
    while current <= last:
        try:
            yield from _events_on(current, israel)
        except Exception as err:  # skip the day, keep the range
            _LOGGER.debug("Skipping events on %s: %s", current, err)
        current += timedelta(days=1)


# ─── Hebrew years ────────────────────────────────────────────────────────────

def hebrew_year_bounds(year: int) -> tuple[date, date]:
    """1 Tishrei and 29 Elul of the same Hebrew year."""
    return PHebrewDate(year, 7, 1).to_pydate(), PHebrewDate(year, 6, 29).to_pydate()


@dataclass(frozen=True)
class HebrewYear:
    id: str
    year: int
    label: str
    start: date
    end: date

    @classmethod
    def for_year(cls, year: int, label: str | None = None) -> "HebrewYear":
        start, end = hebrew_year_bounds(year)
        return cls(str(year), year, label or year_to_gematria(year), start, end)

    @property
    def is_leap(self) -> bool:
        return is_leap_year(self.year)

    def contains(self, gdate: date) -> bool:
        return self.start <= gdate <= self.end


@dataclass
class EventCalendar:
    """Known Hebrew years, the selected one, and the events on display."""

    israel: bool = True
    years: dict[str, HebrewYear] = field(default_factory=dict)
    current_year: HebrewYear | None = None
    events: list[CalendarEvent] = field(default_factory=list)

    def initialize(self, today: date | None = None) -> None:
        today = today or date.today()
        year = HebrewYear.for_year(PHebrewDate.from_pydate(today).year)
        self.years = {year.id: year}
        self.current_year = year

        start = today - timedelta(days=PERIOD_DAYS_BACK)
        end = today + timedelta(days=PERIOD_DAYS_AHEAD)
        events = list(iter_events(start, end, self.israel))
        if not events:
            _LOGGER.info("No events around %s, loading all of %s", today, year.label)
            events = self.generate_events_for_year(year)
        self.events = events
        _LOGGER.debug("Calendar initialized for %s with %d events", year.label, len(events))

    def generate_events_for_year(self, year: HebrewYear) -> list[CalendarEvent]:
        """Events of a whole year. Reads no calendar state, so it may run off the loop."""
        return list(iter_events(year.start, year.end, self.israel))

    def select_year(self, year_id: str) -> HebrewYear:
        year = self.years.get(str(year_id))
        if year is None:
            raise NotFound("Hebrew year", year_id)
        self.current_year = year
        return year

    def new_year(self, label: str | None = None, year: int | None = None) -> HebrewYear:
        """
        Validate a year to add (default: the one after the latest known)
        without registering it.
        """
        if year is None:
            known = [y.year for y in self.years.values()]
            if not known:
                known = [PHebrewDate.from_pydate(date.today()).year]
            year = max(known) + 1
        if str(year) in self.years:
            raise ValidationError("year", f"Hebrew year {year} already exists")
        return HebrewYear.for_year(year, label)

    def add_year(self, year: HebrewYear, events: list[CalendarEvent]) -> HebrewYear:
        """Register a year and merge its generated events."""
        if year.id in self.years:
            raise ValidationError("year", f"Hebrew year {year.id} already exists")
        self.years[year.id] = year
        self._merge(events)
        _LOGGER.info("Created Hebrew year %s (%s)", year.id, year.label)
        return year

    def create_year(self, label: str | None = None, year: int | None = None) -> HebrewYear:
        """Add a Hebrew year and load its events in one step."""
        new_year = self.new_year(label, year)
        return self.add_year(new_year, self.generate_events_for_year(new_year))

    def add_event(
        self, title: str, on, event_type: EventType | str = EventType.OTHER
    ) -> CalendarEvent:
        if not title or not str(title).strip():
            raise ValidationError("title", "Event title is required")
        try:
            gdate = to_pydate(on)
        except (TypeError, ValueError) as err:
            raise ValidationError("date", f"Invalid date: {on!r}") from err

        event = CalendarEvent(
            uid=uuid.uuid4().hex,
            event_type=EventType(event_type),
            gregorian=gdate,
            hebrew_date=format_gregorian_as_hebrew(gdate),
            title=str(title).strip(),
        )
        self._merge([event])
        return event

    def remove_event(self, uid: str) -> None:
        before = len(self.events)
        self.events = [e for e in self.events if e.uid != uid]
        if len(self.events) == before:
            raise NotFound("Event", uid)

    def ensure_window(self, today: date, days: int) -> None:
        """Generate any missing events between today and today + days."""
        self._merge(list(iter_events(today, today + timedelta(days=days), self.israel)))

    def events_between(self, start: date, end: date) -> list[CalendarEvent]:
        return [e for e in self.events if start <= e.gregorian <= end]

    def upcoming(
        self, today: date | None = None, limit: int | None = 5, days: int | None = None
    ) -> list[CalendarEvent]:
        today = today or date.today()
        horizon = today + timedelta(days=days) if days is not None else None
        found = [
            e for e in self.events
            if e.gregorian >= today and (horizon is None or e.gregorian <= horizon)
        ]
        return found[:limit] if limit is not None else found

    def _merge(self, new_events: list[CalendarEvent]) -> None:
        seen = {e.uid for e in self.events}
        self.events.extend(e for e in new_events if e.uid not in seen)
        self.events.sort(key=lambda e: e.gregorian)
