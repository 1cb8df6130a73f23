# custom_components/kehila/kehila_lib/helper.py

"""
Hebrew date helpers built on pyluach.

pyluach is the source of truth for month lengths and leap years. Everything
here is adaptation (probing, conversion to ISO strings) and formatting
(gematria, month names, picker lists).

Requires:
    pip install pyluach
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from pyluach.hebrewcal import HebrewDate as PHebrewDate

from .result import Failure, Result

_LOGGER = logging.getLogger(__name__)

GERESH = "׳"
GERSHAYIM = "״"

_ONES = ["", "א", "ב", "ג", "ד", "ה", "ו", "ז", "ח", "ט"]
_TENS = ["", "י", "כ", "ל", "מ", "נ", "ס", "ע", "פ", "צ"]
# 500–900 are written by stacking tav before the remainder
_HUNDREDS = ["", "ק", "ר", "ש", "ת", "תק", "תר", "תש", "תת", "תתק"]


@dataclass(frozen=True)
class HebrewMonth:
    value: int
    label: str
    english: str


# pyluach numbering: 1=Nissan … 7=Tishrei … 12=Adar (Adar I in a leap year), 13=Adar II
HEBREW_MONTHS: tuple[HebrewMonth, ...] = (
    HebrewMonth(1, "ניסן", "Nisan"),
    HebrewMonth(2, "אייר", "Iyyar"),
    HebrewMonth(3, "סיון", "Sivan"),
    HebrewMonth(4, "תמוז", "Tamuz"),
    HebrewMonth(5, "אב", "Av"),
    HebrewMonth(6, "אלול", "Elul"),
    HebrewMonth(7, "תשרי", "Tishrei"),
    HebrewMonth(8, "חשוון", "Cheshvan"),
    HebrewMonth(9, "כסלו", "Kislev"),
    HebrewMonth(10, "טבת", "Tevet"),
    HebrewMonth(11, "שבט", "Shvat"),
    HebrewMonth(12, "אדר", "Adar"),
    HebrewMonth(13, "אדר ב׳", "Adar II"),
)

_MONTHS_BY_VALUE = {m.value: m for m in HEBREW_MONTHS}


def is_shabbat(gdate: date) -> bool:
    """Return True if the given Gregorian date is Saturday (Shabbat)."""
    return gdate.weekday() == 5  # Python: Monday=0 … Saturday=5


def upcoming_shabbat(gdate: date) -> date:
    """Return the Shabbat on or after gdate."""
    return gdate + timedelta(days=(5 - gdate.weekday()) % 7)


def to_pydate(value: date | datetime | str) -> date:
    """Normalize a date, datetime or ISO string into a datetime.date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise TypeError(f"Unsupported date value: {value!r}")


# ─── Gematria ────────────────────────────────────────────────────────────────

def to_gematria(num: int) -> str:
    """
    Convert an integer (1–999) into Hebrew letters with geresh/gershayim.
    E.g. 5 → 'ה׳', 15 → 'ט״ו', 115 → 'קט״ו', 786 → 'תשפ״ו'.
    Anything outside 1–999 comes back as plain digits.
    """
    if num <= 0 or num > 999:
        return str(num)

    hundreds, rest = divmod(num, 100)
    result = _HUNDREDS[hundreds]

    # Avoid spelling the divine name for 15 and 16
    if rest == 15:
        result += "טו"
    elif rest == 16:
        result += "טז"
    else:
        tens, ones = divmod(rest, 10)
        result += _TENS[tens] + _ONES[ones]

    if len(result) > 1:
        return f"{result[:-1]}{GERSHAYIM}{result[-1]}"
    return f"{result}{GERESH}"


def year_to_gematria(year: int) -> str:
    """Hebrew years are written without the thousands: 5786 → 'תשפ״ו'."""
    return to_gematria(year % 1000)


def day_to_gematria(day: int) -> str:
    return to_gematria(day)


# ─── Month names ─────────────────────────────────────────────────────────────

def get_hebrew_month_name(month: int, year: int | None = None) -> str:
    """
    Map pyluach month numbers to Hebrew month names, handling leap years.
    Without a year, month 12 is plain Adar.
    """
    if month == 12 and year is not None and is_leap_year(year):
        return "אדר א׳"
    entry = _MONTHS_BY_VALUE.get(month)
    return entry.label if entry else ""


def get_english_month_name(month: int, year: int | None = None) -> str:
    if month == 12 and year is not None and is_leap_year(year):
        return "Adar I"
    entry = _MONTHS_BY_VALUE.get(month)
    return entry.english if entry else ""


def get_all_hebrew_months() -> list[HebrewMonth]:
    """The twelve months of an ordinary year (no Adar II)."""
    return list(HEBREW_MONTHS[:12])


def months_for_year(year: int) -> list[int]:
    """Month numbers of a Hebrew year in calendar order, Tishrei first."""
    last = 13 if is_leap_year(year) else 12
    return list(range(7, last + 1)) + list(range(1, 7))


# ─── Conversion ──────────────────────────────────────────────────────────────

def hebrew_to_gregorian(day: int, month: int, year: int) -> Result[str]:
    """Return the ISO (YYYY-MM-DD) Gregorian date of a Hebrew date."""
    try:
        gdate = PHebrewDate(year, month, day).to_pydate()
    except (ValueError, TypeError) as err:
        _LOGGER.debug("Invalid Hebrew date %s/%s/%s: %s", day, month, year, err)
        return Result.failure(Failure.INVALID_DATE, str(err))
    return Result.success(gdate.isoformat())


def gregorian_to_hebrew(value: date | datetime | str) -> Result[PHebrewDate]:
    """Return the pyluach HebrewDate for a Gregorian date or ISO string."""
    try:
        return Result.success(PHebrewDate.from_pydate(to_pydate(value)))
    except (ValueError, TypeError) as err:
        _LOGGER.debug("Cannot convert %r to a Hebrew date: %s", value, err)
        return Result.failure(Failure.INVALID_DATE, str(err))


def get_days_in_hebrew_month(month: int, year: int) -> int:
    """Return 29 or 30 by asking pyluach whether day 30 exists."""
    try:
        PHebrewDate(year, month, 30)  # will raise if month has only 29
        return 30
    except ValueError:
        return 29


def is_leap_year(year: int) -> bool:
    """True when 1 Adar II can be constructed for the year."""
    try:
        PHebrewDate(year, 13, 1)
        return True
    except ValueError:
        return False


# ─── Formatting ──────────────────────────────────────────────────────────────

def format_hebrew_date(day: int, month: int, year: int) -> str:
    """7, 7, 5786 → 'ז׳ תשרי תשפ״ו'."""
    return f"{day_to_gematria(day)} {get_hebrew_month_name(month, year)} {year_to_gematria(year)}"


def format_hebrew_date_short(day: int, month: int, year: int | None = None) -> str:
    return f"{day_to_gematria(day)} {get_hebrew_month_name(month, year)}"


def format_pyluach_date(hd: PHebrewDate) -> str:
    return format_hebrew_date(hd.day, hd.month, hd.year)


def format_gregorian_as_hebrew(value: date | datetime | str) -> str:
    """Formatted Hebrew date for a Gregorian value, or '' if it cannot be converted."""
    res = gregorian_to_hebrew(value)
    if not res.ok:
        return ""
    return format_pyluach_date(res.value)


def get_current_hebrew_date(today: date | None = None) -> dict:
    hd = PHebrewDate.from_pydate(today or date.today())
    return {
        "day": hd.day,
        "month": hd.month,
        "year": hd.year,
        "formatted": format_pyluach_date(hd),
    }


# ─── Picker lists ────────────────────────────────────────────────────────────

def get_hebrew_years_list(start_year: int = 5776, count: int = 21) -> list[dict]:
    return [
        {"value": year, "label": year_to_gematria(year)}
        for year in range(start_year, start_year + count)
    ]


def get_hebrew_days_list(month: int, year: int) -> list[dict]:
    return [
        {"value": day, "label": day_to_gematria(day)}
        for day in range(1, get_days_in_hebrew_month(month, year) + 1)
    ]


def get_hebrew_months_list(year: int) -> list[dict]:
    return [
        {"value": month, "label": get_hebrew_month_name(month, year)}
        for month in months_for_year(year)
    ]
