"""Tests for the month grid, event enumeration and Hebrew years."""

from datetime import date, timedelta

import pytest
from pyluach.hebrewcal import HebrewDate

from custom_components.kehila.kehila_lib.calendar import (
    EventCalendar,
    EventType,
    HebrewYear,
    build_month_grid,
    hebrew_year_bounds,
    iter_events,
    next_month,
    previous_month,
)
from custom_components.kehila.kehila_lib.exceptions import NotFound, ValidationError


class TestMonthGrid:
    """Sunday-aligned grid of a Hebrew month."""

    def setup_method(self):
        self.grid = build_month_grid(7, 5786, today=date(2025, 9, 29))

    def test_first_cell_is_sunday(self):
        assert self.grid[0].gregorian.weekday() == 6

    def test_leading_days_belong_to_previous_month(self):
        # 1 Tishrei 5786 is a Tuesday: Sunday and Monday come from Elul
        leading = [d for d in self.grid if not d.is_current_month]
        assert len(leading) == 2
        assert all(d.hebrew.month == 6 for d in leading)
        assert len(self.grid) == 32

    def test_month_days(self):
        first = self.grid[2]
        assert first.gregorian == date(2025, 9, 23)
        assert first.hebrew_day == "א׳"
        assert first.hebrew_month == "תשרי"
        assert first.hebrew_year == "תשפ״ו"
        assert first.is_holiday and first.holiday_name

    def test_today_is_marked_once(self):
        today = [d for d in self.grid if d.is_today]
        assert len(today) == 1
        assert today[0].hebrew.day == 7

    def test_parasha_only_on_shabbat(self):
        by_date = {d.gregorian: d for d in self.grid}
        assert by_date[date(2025, 10, 4)].is_shabbat
        assert by_date[date(2025, 10, 4)].parasha == "האזינו"
        assert all(d.parasha is None for d in self.grid if not d.is_shabbat)

    def test_day_as_dict(self):
        d = self.grid[2].as_dict()
        assert d["date"] == "2025-09-23"
        assert d["hebrew"] == {"day": 1, "month": 7, "year": 5786}
        assert d["hebrew_month"] == "תשרי"
        assert d["is_holiday"] is True
        assert d["is_current_month"] is True
        assert d["parasha"] is None

    def test_missing_month_gives_empty_grid(self):
        assert build_month_grid(13, 5786) == []


class TestMonthNavigation:
    def test_next_month(self):
        assert next_month(7, 5786) == (8, 5786)
        assert next_month(6, 5785) == (7, 5786)
        assert next_month(12, 5785) == (1, 5785)
        assert next_month(12, 5784) == (13, 5784)
        assert next_month(13, 5784) == (1, 5784)

    def test_previous_month(self):
        assert previous_month(7, 5786) == (6, 5785)
        assert previous_month(1, 5784) == (13, 5784)
        assert previous_month(1, 5785) == (12, 5785)

    def test_adar_two_in_ordinary_year(self):
        with pytest.raises(ValueError):
            next_month(13, 5785)
        with pytest.raises(ValueError):
            previous_month(13, 5785)


class TestIterEvents:
    """Readings, holidays and fasts over a range."""

    def setup_method(self):
        self.events = list(iter_events(date(2025, 9, 22), date(2025, 10, 5)))

    def test_sorted_by_date(self):
        dates = [e.gregorian for e in self.events]
        assert dates == sorted(dates)

    def test_rosh_hashana_and_fast(self):
        uids = {e.uid: e for e in self.events}
        assert uids["holiday-2025-09-23"].event_type is EventType.HOLIDAY
        assert uids["fast-2025-09-25"].event_type is EventType.FAST

    def test_parasha_events_fall_on_shabbat(self):
        readings = [e for e in self.events if e.event_type is EventType.SHABBAT_PARASHA]
        assert readings
        assert all(e.gregorian.weekday() == 5 for e in readings)
        assert all(e.title.startswith("פרשת ") for e in readings)

    def test_hebrew_date_attached(self):
        assert all(e.hebrew_date for e in self.events)

    def test_as_dict(self):
        d = self.events[0].as_dict()
        assert set(d) == {"uid", "event_type", "date", "hebrew_date", "title", "parasha"}


class TestHebrewYear:
    def test_bounds(self):
        start, end = hebrew_year_bounds(5786)
        assert start == date(2025, 9, 23)
        assert end + timedelta(days=1) == HebrewDate(5787, 7, 1).to_pydate()

    def test_for_year(self):
        year = HebrewYear.for_year(5786)
        assert year.id == "5786"
        assert year.label == "תשפ״ו"
        assert not year.is_leap
        assert year.contains(date(2026, 1, 1))
        assert not year.contains(date(2025, 9, 22))


class TestEventCalendar:
    """Selected year, generated and custom events."""

    def test_initialize(self, tishrei_calendar):
        cal = tishrei_calendar
        assert cal.current_year.year == 5786
        assert list(cal.years) == ["5786"]
        assert cal.events
        assert all(
            date(2025, 9, 24) <= e.gregorian <= date(2025, 11, 26) for e in cal.events
        )

    def test_upcoming(self, tishrei_calendar):
        today = date(2025, 10, 1)
        upcoming = tishrei_calendar.upcoming(today, limit=3)
        assert 0 < len(upcoming) <= 3
        assert all(e.gregorian >= today for e in upcoming)

    def test_create_year_defaults_to_next(self):
        cal = EventCalendar()
        cal.initialize(date(2025, 10, 1))
        created = cal.create_year()
        assert created.year == 5787
        assert created.start == date(2026, 9, 12)
        assert any(e.gregorian >= created.start for e in cal.events)
        uids = [e.uid for e in cal.events]
        assert len(uids) == len(set(uids))

        with pytest.raises(ValidationError):
            cal.create_year(year=5787)

    def test_new_year_only_validates(self, tishrei_calendar):
        cal = tishrei_calendar
        years, events = dict(cal.years), list(cal.events)
        pending = cal.new_year(label="Next year")
        assert (pending.year, pending.label) == (5787, "Next year")
        assert cal.years == years
        assert cal.events == events

    def test_generating_events_leaves_calendar_untouched(self, tishrei_calendar):
        cal = tishrei_calendar
        events = list(cal.events)
        generated = cal.generate_events_for_year(HebrewYear.for_year(5787))
        assert generated
        assert all(e.gregorian >= date(2026, 9, 12) for e in generated)
        assert cal.events == events
        assert "5787" not in cal.years

    def test_add_year_registers_and_merges(self):
        cal = EventCalendar()
        cal.initialize(date(2025, 10, 1))
        pending = cal.new_year()
        events = cal.generate_events_for_year(pending)
        assert cal.add_year(pending, events) is pending
        assert cal.years["5787"] is pending
        assert any(e.gregorian >= pending.start for e in cal.events)
        assert [e.gregorian for e in cal.events] == sorted(e.gregorian for e in cal.events)

        with pytest.raises(ValidationError):
            cal.new_year(year=5787)
        with pytest.raises(ValidationError):
            cal.add_year(pending, events)

    def test_select_year(self):
        cal = EventCalendar(years={"5786": HebrewYear.for_year(5786)})
        assert cal.select_year("5786").year == 5786
        assert cal.current_year.id == "5786"
        with pytest.raises(NotFound):
            cal.select_year("1234")

    def test_custom_events(self):
        cal = EventCalendar()
        event = cal.add_event("Board meeting", "2025-10-20")
        assert event.event_type is EventType.OTHER
        assert event.hebrew_date
        assert cal.upcoming(date(2025, 10, 19), limit=None) == [event]

        cal.remove_event(event.uid)
        assert cal.events == []
        with pytest.raises(NotFound):
            cal.remove_event(event.uid)

    def test_custom_event_validation(self):
        cal = EventCalendar()
        with pytest.raises(ValidationError):
            cal.add_event("  ", "2025-10-20")
        with pytest.raises(ValidationError):
            cal.add_event("Meeting", "tomorrow")

    def test_ensure_window_adds_missing_days_only(self):
        cal = EventCalendar()
        cal.ensure_window(date(2025, 9, 22), 7)
        count = len(cal.events)
        cal.ensure_window(date(2025, 9, 22), 7)
        assert len(cal.events) == count
        assert cal.events_between(date(2025, 9, 23), date(2025, 9, 23))
