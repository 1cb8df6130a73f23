# custom_components/kehila/kehila_lib/parshiot.py
"""
Weekly Torah portions: one canonical Hebrew/English table, a resolver that
asks pyluach which portion is read on a given Shabbat, and the display
formatter used by the calendar and the parsha sensor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime

from pyluach import dates, parshios

from .helper import to_pydate, upcoming_shabbat
from .result import Failure, Result

_LOGGER = logging.getLogger(__name__)

PARASHA_PREFIX = "פרשת"

# Reading order. Position N matches pyluach's parsha index N.
PARSHIOT: tuple[tuple[str, str], ...] = (
    # Bereishis
    ("Bereshit", "בראשית"),
    ("Noach", "נח"),
    ("Lech-Lecha", "לך לך"),
    ("Vayera", "וירא"),
    ("Chayei Sara", "חיי שרה"),
    ("Toldot", "תולדות"),
    ("Vayetzei", "ויצא"),
    ("Vayishlach", "וישלח"),
    ("Vayeshev", "וישב"),
    ("Miketz", "מקץ"),
    ("Vayigash", "ויגש"),
    ("Vayechi", "ויחי"),
    # Shemos
    ("Shemot", "שמות"),
    ("Vaera", "וארא"),
    ("Bo", "בא"),
    ("Beshalach", "בשלח"),
    ("Yitro", "יתרו"),
    ("Mishpatim", "משפטים"),
    ("Terumah", "תרומה"),
    ("Tetzaveh", "תצוה"),
    ("Ki Tisa", "כי תשא"),
    ("Vayakhel", "ויקהל"),
    ("Pekudei", "פקודי"),
    # Vayikra
    ("Vayikra", "ויקרא"),
    ("Tzav", "צו"),
    ("Shmini", "שמיני"),
    ("Tazria", "תזריע"),
    ("Metzora", "מצורע"),
    ("Achrei Mot", "אחרי מות"),
    ("Kedoshim", "קדושים"),
    ("Emor", "אמור"),
    ("Behar", "בהר"),
    ("Bechukotai", "בחקתי"),
    # Bamidbar
    ("Bamidbar", "במדבר"),
    ("Nasso", "נשא"),
    ("Beha'alotcha", "בהעלתך"),
    ("Sh'lach", "שלח לך"),
    ("Korach", "קרח"),
    ("Chukat", "חקת"),
    ("Balak", "בלק"),
    ("Pinchas", "פינחס"),
    ("Matot", "מטות"),
    ("Masei", "מסעי"),
    # Devarim
    ("Devarim", "דברים"),
    ("Vaetchanan", "ואתחנן"),
    ("Eikev", "עקב"),
    ("Re'eh", "ראה"),
    ("Shoftim", "שפטים"),
    ("Ki Teitzei", "כי תצא"),
    ("Ki Tavo", "כי תבוא"),
    ("Nitzavim", "נצבים"),
    ("Vayeilech", "וילך"),
    ("Ha'azinu", "האזינו"),
    ("Vezot Haberakhah", "וזאת הברכה"),
)

# Pairs that are read together on one Shabbat in some years
COMBINED_INDICES: tuple[tuple[int, int], ...] = (
    (21, 22),  # Vayakhel-Pekudei
    (26, 27),  # Tazria-Metzora
    (28, 29),  # Achrei Mot-Kedoshim
    (31, 32),  # Behar-Bechukotai
    (38, 39),  # Chukat-Balak
    (41, 42),  # Matot-Masei
    (50, 51),  # Nitzavim-Vayeilech
)

COMBINED_PARSHIOT: tuple[tuple[str, str], ...] = tuple(
    (f"{PARSHIOT[a][0]}-{PARSHIOT[b][0]}", f"{PARSHIOT[a][1]}-{PARSHIOT[b][1]}")
    for a, b in COMBINED_INDICES
)

# Other spellings seen in the wild; translated one way only
_ENGLISH_ALIASES = {
    "Bereishit": "בראשית",
    "Bereishis": "בראשית",
    "Lech Lecha": "לך לך",
    "Vayeira": "וירא",
    "Chayei Sarah": "חיי שרה",
    "Toldos": "תולדות",
    "Vayeishev": "וישב",
    "Mikeitz": "מקץ",
    "Shemos": "שמות",
    "Va'eira": "וארא",
    "Yisro": "יתרו",
    "Ki Sisa": "כי תשא",
    "Shemini": "שמיני",
    "Acharei Mot": "אחרי מות",
    "Acharei Mos": "אחרי מות",
    "Bechukosai": "בחקתי",
    "Behaaloscha": "בהעלתך",
    "Shelach": "שלח לך",
    "Chukas": "חקת",
    "Matos": "מטות",
    "Vaeschanan": "ואתחנן",
    "Ki Seitzei": "כי תצא",
    "Ki Savo": "כי תבוא",
    "Vayelech": "וילך",
    "Haazinu": "האזינו",
    "Ha'Azinu": "האזינו",
    "Vezot Habracha": "וזאת הברכה",
    "V'Zot HaBerachah": "וזאת הברכה",
}
# Full (plene) Hebrew spellings, normalized to the table's spelling before lookup
_HEBREW_ALIASES = {
    "בחוקתי": "בחקתי",
    "בחוקותי": "בחקתי",
    "בהעלותך": "בהעלתך",
    "שלח": "שלח לך",
    "שופטים": "שפטים",
    "פנחס": "פינחס",
}


def _build_tables() -> tuple[dict[str, str], dict[str, str]]:
    to_hebrew: dict[str, str] = {}
    to_english: dict[str, str] = {}
    for english, hebrew in PARSHIOT + COMBINED_PARSHIOT:
        to_hebrew[english] = hebrew
        to_english[hebrew] = english
    for alias, hebrew in _ENGLISH_ALIASES.items():
        to_hebrew.setdefault(alias, hebrew)
    return to_hebrew, to_english


_TO_HEBREW, _TO_ENGLISH = _build_tables()


def to_hebrew_parasha(name: str) -> str:
    """English → Hebrew. Unknown names are returned unchanged."""
    return _TO_HEBREW.get(name, name)


def to_english_parasha(name: str) -> str:
    """Hebrew → English, plene spellings included. Unknown names are returned unchanged."""
    return _TO_ENGLISH.get(normalize_hebrew_parasha(name), name)


def normalize_hebrew_parasha(name: str) -> str:
    """Plene spellings such as 'פנחס' → the table's 'פינחס'. Others unchanged."""
    return _HEBREW_ALIASES.get(name, name)


def _translate_compound(name: str, lookup) -> str:
    """Exact match first; otherwise translate each half of a hyphen pair."""

    def translate(part: str) -> str:
        return lookup(normalize_hebrew_parasha(part))

    translated = translate(name)
    if translated != name or "-" not in name:
        return translated
    return "-".join(translate(part.strip()) for part in name.split("-"))


def _strip_prefix(name: str) -> str:
    for prefix in ("Parashat ", "Parshas ", f"{PARASHA_PREFIX} "):
        if name.startswith(prefix):
            return name[len(prefix):].strip()
    return name


def format_parasha_name(name, show_english: bool = False) -> str:
    """
    Normalize a portion name for display: 'Parashat Matot-Masei' → 'פרשת מטות-מסעי'.
    Special Shabbat and Chol HaMoed labels are passed through as-is.
    """
    if not name:
        return ""
    if isinstance(name, (list, tuple)):
        name = name[0]
    text = str(name).strip()

    if "שבת" in text or "חול המועד" in text:
        return text

    clean = _strip_prefix(text)
    hebrew = _translate_compound(clean, to_hebrew_parasha)
    display = f"{PARASHA_PREFIX} {hebrew}"

    if show_english:
        english = _translate_compound(clean, to_english_parasha)
        if english != hebrew:
            return f"{display}\n({english})"
    return display


@dataclass(frozen=True)
class Parasha:
    """The reading for one Shabbat; two indices for a combined reading."""

    indices: tuple[int, ...]
    shabbat: date

    @property
    def english(self) -> str:
        return "-".join(PARSHIOT[i][0] for i in self.indices)

    @property
    def hebrew(self) -> str:
        return "-".join(PARSHIOT[i][1] for i in self.indices)

    @property
    def display(self) -> str:
        return f"{PARASHA_PREFIX} {self.hebrew}"

    @property
    def is_combined(self) -> bool:
        return len(self.indices) > 1


def resolve_parasha(value: date | datetime | str, israel: bool = True) -> Result[Parasha]:
    """
    Portion read on the Shabbat on or after `value`.
    A Shabbat that falls on a festival has no weekly reading (NO_EVENT).
    """
    try:
        shabbat = upcoming_shabbat(to_pydate(value))
        greg = dates.GregorianDate(shabbat.year, shabbat.month, shabbat.day)
        indices = parshios.getparsha(greg, israel=israel)
    except Exception as err:  # calendar lookups must not break the caller
        _LOGGER.debug("Parsha lookup failed for %r: %s", value, err)
        return Result.failure(Failure.LIBRARY_ERROR, str(err))

    if not indices:
        return Result.failure(Failure.NO_EVENT, f"no weekly reading on {shabbat.isoformat()}")
    return Result.success(Parasha(tuple(indices), shabbat))


def parasha_for_date(value: date | datetime | str, israel: bool = True) -> str | None:
    """Hebrew name (hyphen-joined when combined) or None."""
    res = resolve_parasha(value, israel=israel)
    return res.value.hebrew if res.ok else None


def get_parshiot_for_select() -> list[dict]:
    return [
        {"value": english, "label": hebrew}
        for english, hebrew in PARSHIOT + COMBINED_PARSHIOT
    ]
