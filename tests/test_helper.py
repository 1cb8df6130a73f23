"""Tests for the Hebrew date helpers."""

from datetime import date, datetime

import pytest

from custom_components.kehila.kehila_lib.helper import (
    GERESH,
    GERSHAYIM,
    day_to_gematria,
    format_gregorian_as_hebrew,
    format_hebrew_date,
    format_hebrew_date_short,
    get_all_hebrew_months,
    get_current_hebrew_date,
    get_days_in_hebrew_month,
    get_english_month_name,
    get_hebrew_days_list,
    get_hebrew_month_name,
    get_hebrew_months_list,
    get_hebrew_years_list,
    gregorian_to_hebrew,
    hebrew_to_gregorian,
    is_leap_year,
    is_shabbat,
    months_for_year,
    to_gematria,
    to_pydate,
    upcoming_shabbat,
    year_to_gematria,
)
from custom_components.kehila.kehila_lib.result import Failure

LETTER_VALUES = {
    "א": 1, "ב": 2, "ג": 3, "ד": 4, "ה": 5, "ו": 6, "ז": 7, "ח": 8, "ט": 9,
    "י": 10, "כ": 20, "ל": 30, "מ": 40, "נ": 50, "ס": 60, "ע": 70, "פ": 80, "צ": 90,
    "ק": 100, "ר": 200, "ש": 300, "ת": 400,
}


def _letters(text):
    return text.replace(GERESH, "").replace(GERSHAYIM, "")


class TestGematria:
    """Number to Hebrew letters."""

    @pytest.mark.parametrize(
        "number,expected",
        [
            (1, "א׳"),
            (10, "י׳"),
            (15, "ט״ו"),
            (16, "ט״ז"),
            (30, "ל׳"),
            (115, "קט״ו"),
            (400, "ת׳"),
            (786, "תשפ״ו"),
            (999, "תתקצ״ט"),
        ],
    )
    def test_known_values(self, number, expected):
        assert to_gematria(number) == expected

    def test_letters_add_up_for_every_number(self):
        for n in range(1, 1000):
            text = to_gematria(n)
            assert sum(LETTER_VALUES[ch] for ch in _letters(text)) == n, text

    def test_punctuation_placement(self):
        for n in range(1, 1000):
            text = to_gematria(n)
            letters = _letters(text)
            if len(letters) == 1:
                assert text == letters + GERESH
            else:
                assert text == f"{letters[:-1]}{GERSHAYIM}{letters[-1]}"

    def test_fifteen_and_sixteen_avoid_divine_name(self):
        for n in range(1, 1000):
            if n % 100 in (15, 16):
                assert not _letters(to_gematria(n)).endswith(("יה", "יו"))

    @pytest.mark.parametrize("number", [0, -3, 1000, 5786])
    def test_out_of_range_is_plain_digits(self, number):
        assert to_gematria(number) == str(number)

    def test_year_drops_thousands(self):
        assert year_to_gematria(5786) == "תשפ״ו"
        assert year_to_gematria(5776) == "תשע״ו"

    def test_day(self):
        assert day_to_gematria(7) == "ז׳"
        assert day_to_gematria(29) == "כ״ט"


class TestConversion:
    """Hebrew to Gregorian and back."""

    def test_round_trip_seven_tishrei_5786(self):
        res = hebrew_to_gregorian(7, 7, 5786)
        assert res.ok
        assert res.value == "2025-09-29"

        back = gregorian_to_hebrew(res.value)
        assert back.ok
        assert (back.value.day, back.value.month, back.value.year) == (7, 7, 5786)

    def test_accepts_date_and_datetime(self):
        assert gregorian_to_hebrew(date(2025, 9, 23)).value.day == 1
        assert gregorian_to_hebrew(datetime(2025, 9, 23, 18, 30)).value.month == 7

    def test_adar_two_in_ordinary_year_is_invalid(self):
        res = hebrew_to_gregorian(1, 13, 5786)
        assert not res.ok
        assert res.reason is Failure.INVALID_DATE
        assert res.unwrap_or("") == ""

    def test_day_thirty_in_short_month_is_invalid(self):
        assert hebrew_to_gregorian(30, 6, 5785).reason is Failure.INVALID_DATE

    def test_unparseable_gregorian_is_invalid(self):
        res = gregorian_to_hebrew("not-a-date")
        assert not res
        assert res.reason is Failure.INVALID_DATE

    def test_to_pydate_rejects_other_types(self):
        with pytest.raises(TypeError):
            to_pydate(20250929)


class TestMonths:
    """Month lengths, leap years and names."""

    def test_fixed_month_lengths(self):
        for year in (5784, 5785, 5786, 5787):
            assert get_days_in_hebrew_month(7, year) == 30  # Tishrei
            assert get_days_in_hebrew_month(10, year) == 29  # Tevet
            assert get_days_in_hebrew_month(11, year) == 30  # Shvat
            assert get_days_in_hebrew_month(1, year) == 30  # Nisan
            assert get_days_in_hebrew_month(2, year) == 29  # Iyar
            assert get_days_in_hebrew_month(6, year) == 29  # Elul

    def test_adar_lengths(self):
        # Leap year: Adar I has 30 days, Adar II 29
        assert get_days_in_hebrew_month(12, 5784) == 30
        assert get_days_in_hebrew_month(13, 5784) == 29
        # Ordinary year: a single 29-day Adar
        assert get_days_in_hebrew_month(12, 5785) == 29

    def test_known_leap_years(self):
        assert is_leap_year(5784)
        assert is_leap_year(5787)
        assert not is_leap_year(5785)
        assert not is_leap_year(5786)

    def test_leap_years_follow_nineteen_year_cycle(self):
        for year in range(5700, 5800):
            assert is_leap_year(year) == ((7 * year + 1) % 19 < 7), year

    def test_month_names(self):
        assert get_hebrew_month_name(7) == "תשרי"
        assert get_hebrew_month_name(12) == "אדר"
        assert get_hebrew_month_name(12, 5784) == "אדר א׳"
        assert get_hebrew_month_name(12, 5785) == "אדר"
        assert get_hebrew_month_name(13, 5784) == "אדר ב׳"
        assert get_hebrew_month_name(99) == ""
        assert get_english_month_name(12, 5784) == "Adar I"
        assert get_english_month_name(1) == "Nisan"

    def test_all_months_has_no_adar_two(self):
        months = get_all_hebrew_months()
        assert len(months) == 12
        assert all(m.value != 13 for m in months)

    def test_months_for_year_start_at_tishrei(self):
        ordinary = months_for_year(5785)
        leap = months_for_year(5784)
        assert ordinary[0] == 7 and ordinary[-1] == 6
        assert len(ordinary) == 12 and 13 not in ordinary
        assert len(leap) == 13 and leap.index(13) == leap.index(12) + 1


class TestFormatting:
    """Display strings and picker lists."""

    def test_format_hebrew_date(self):
        assert format_hebrew_date(7, 7, 5786) == "ז׳ תשרי תשפ״ו"
        assert format_hebrew_date_short(15, 11) == "ט״ו שבט"

    def test_format_gregorian_as_hebrew(self):
        assert format_gregorian_as_hebrew("2025-09-29") == "ז׳ תשרי תשפ״ו"
        assert format_gregorian_as_hebrew("garbage") == ""

    def test_current_hebrew_date(self):
        current = get_current_hebrew_date(date(2025, 9, 29))
        assert current == {"day": 7, "month": 7, "year": 5786, "formatted": "ז׳ תשרי תשפ״ו"}

    def test_years_list(self):
        years = get_hebrew_years_list()
        assert len(years) == 21
        assert years[0] == {"value": 5776, "label": "תשע״ו"}
        assert years[-1]["value"] == 5796

    def test_days_list_follows_month_length(self):
        assert len(get_hebrew_days_list(7, 5786)) == 30
        assert len(get_hebrew_days_list(6, 5786)) == 29
        assert get_hebrew_days_list(7, 5786)[14] == {"value": 15, "label": "ט״ו"}

    def test_months_list(self):
        labels = [m["label"] for m in get_hebrew_months_list(5784)]
        assert labels[0] == "תשרי"
        assert "אדר א׳" in labels and "אדר ב׳" in labels


class TestShabbat:
    def test_is_shabbat(self):
        assert is_shabbat(date(2025, 10, 4))
        assert not is_shabbat(date(2025, 10, 3))

    def test_upcoming_shabbat(self):
        assert upcoming_shabbat(date(2025, 10, 1)) == date(2025, 10, 4)
        assert upcoming_shabbat(date(2025, 10, 4)) == date(2025, 10, 4)
        assert upcoming_shabbat(date(2025, 10, 5)) == date(2025, 10, 11)
