# custom_components/kehila/kehila_lib/congregants.py
"""
Congregants and the records hung off them: aliyot (Torah honours), pledges
and purchases. Every record carries the Gregorian date it happened on and
the Hebrew date string shown next to it.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from enum import Enum

from .exceptions import NotFound, ValidationError
from .helper import format_gregorian_as_hebrew, to_pydate
from .parshiot import parasha_for_date

_LOGGER = logging.getLogger(__name__)


class CongregantStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class AliyahType(str, Enum):
    KOHEN = "KOHEN"
    LEVI = "LEVI"
    SHLISHI = "SHLISHI"
    REVI = "REVI"
    CHAMISHI = "CHAMISHI"
    SHISHI = "SHISHI"
    SHVII = "SHVII"
    MAFTIR = "MAFTIR"


ALIYAH_LABELS = {
    AliyahType.KOHEN: "כהן",
    AliyahType.LEVI: "לוי",
    AliyahType.SHLISHI: "שלישי",
    AliyahType.REVI: "רביעי",
    AliyahType.CHAMISHI: "חמישי",
    AliyahType.SHISHI: "שישי",
    AliyahType.SHVII: "שביעי",
    AliyahType.MAFTIR: "מפטיר",
}


class PledgeType(str, Enum):
    KIDDUSH = "KIDDUSH"
    SEUDA_SHLISHIT = "SEUDA_SHLISHIT"
    YAHRZEIT = "YAHRZEIT"
    SIMCHA = "SIMCHA"
    GENERAL = "GENERAL"


class PledgeStatus(str, Enum):
    PENDING = "PENDING"
    FULFILLED = "FULFILLED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class PurchaseType(str, Enum):
    SEFER_TORAH = "SEFER_TORAH"
    MEZUZAH = "MEZUZAH"
    TEFILLIN = "TEFILLIN"
    TALLIT = "TALLIT"
    SIDDUR = "SIDDUR"
    PAROCHET = "PAROCHET"
    OTHER = "OTHER"


class PurchaseStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Address:
    street: str = ""
    house_number: str = ""
    apartment: str | None = None
    city: str = ""
    postal_code: str | None = None


@dataclass
class Congregant:
    id: str
    first_name: str
    last_name: str
    phone: str
    father_name: str | None = None
    identity_number: str | None = None
    secondary_phone: str | None = None
    email: str | None = None
    address: Address | None = None
    status: CongregantStatus = CongregantStatus.ACTIVE
    family_unit_id: str | None = None
    notes: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_active(self) -> bool:
        return self.status is CongregantStatus.ACTIVE


@dataclass
class Aliyah:
    id: str
    congregant_id: str
    gregorian: date
    hebrew_date: str
    parasha: str
    aliyah_type: AliyahType
    aliyah_number: int | None = None
    amount: float = 0.0
    notes: str | None = None
    created_at: datetime = field(default_factory=_now)

    @property
    def label(self) -> str:
        return ALIYAH_LABELS[self.aliyah_type]


@dataclass
class Pledge:
    id: str
    congregant_id: str
    pledge_type: PledgeType
    title: str
    gregorian: date
    hebrew_date: str
    amount: float
    description: str | None = None
    status: PledgeStatus = PledgeStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    notes: str | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class Purchase:
    id: str
    congregant_id: str
    purchase_type: PurchaseType
    title: str
    amount: float
    gregorian: date
    description: str | None = None
    status: PurchaseStatus = PurchaseStatus.ACTIVE
    notes: str | None = None
    created_at: datetime = field(default_factory=_now)


_CONGREGANT_FIELDS = {f.name for f in fields(Congregant)} - {"id"}
_PLEDGE_FIELDS = {
    "title", "description", "amount", "status", "payment_status", "notes", "pledge_type",
}


def _required(value, name: str, message: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(name, message)
    return str(value).strip()


def _amount(value, name: str = "amount", allow_zero: bool = True) -> float:
    try:
        amount = round(float(value), 2)
    except (TypeError, ValueError):
        raise ValidationError(name, f"Invalid amount: {value!r}") from None
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(name, "Amount must be positive")
    return amount


def _date(value, name: str = "date") -> date:
    try:
        return to_pydate(value)
    except (TypeError, ValueError):
        raise ValidationError(name, f"Invalid date: {value!r}") from None


def _enum(kind, value, name: str):
    try:
        return kind(value)
    except ValueError:
        raise ValidationError(name, f"Unknown {name}: {value!r}") from None


def _address(value) -> Address | None:
    if value is None or isinstance(value, Address):
        return value
    if isinstance(value, dict):
        known = {f.name for f in fields(Address)}
        return Address(**{k: v for k, v in value.items() if k in known})
    raise ValidationError("address", "Address must be a mapping")


class CongregantRegistry:
    """In-memory congregants with their aliyot, pledges and purchases."""

    def __init__(self) -> None:
        self.congregants: dict[str, Congregant] = {}
        self.aliyot: dict[str, Aliyah] = {}
        self.pledges: dict[str, Pledge] = {}
        self.purchases: dict[str, Purchase] = {}

    # Congregants

    def get(self, congregant_id: str) -> Congregant:
        try:
            return self.congregants[congregant_id]
        except KeyError:
            raise NotFound("Congregant", congregant_id) from None

    def add(self, first_name: str, last_name: str, phone: str, **extra) -> Congregant:
        unknown = set(extra) - _CONGREGANT_FIELDS
        if unknown:
            raise ValidationError(sorted(unknown)[0], "Unknown congregant field")
        if "status" in extra:
            extra["status"] = _enum(CongregantStatus, extra["status"], "status")
        if "address" in extra:
            extra["address"] = _address(extra["address"])

        congregant = Congregant(
            id=_new_id(),
            first_name=_required(first_name, "first_name", "First name is required"),
            last_name=_required(last_name, "last_name", "Last name is required"),
            phone=_required(phone, "phone", "Phone is required"),
            **extra,
        )
        self.congregants[congregant.id] = congregant
        _LOGGER.info("Added congregant %s", congregant.full_name)
        return congregant

    def update(self, congregant_id: str, **changes) -> Congregant:
        congregant = self.get(congregant_id)
        unknown = set(changes) - _CONGREGANT_FIELDS
        if unknown:
            raise ValidationError(sorted(unknown)[0], "Unknown congregant field")

        for key in ("first_name", "last_name", "phone"):
            if key in changes:
                changes[key] = _required(changes[key], key, f"{key} cannot be empty")
        if "status" in changes:
            changes["status"] = _enum(CongregantStatus, changes["status"], "status")
        if "address" in changes:
            changes["address"] = _address(changes["address"])

        for key, value in changes.items():
            setattr(congregant, key, value)
        return congregant

    def remove(self, congregant_id: str) -> Congregant:
        """Drop a congregant together with their aliyot, pledges and purchases."""
        congregant = self.get(congregant_id)
        del self.congregants[congregant_id]
        for store in (self.aliyot, self.pledges, self.purchases):
            for record_id in [k for k, v in store.items() if v.congregant_id == congregant_id]:
                del store[record_id]
        _LOGGER.info("Removed congregant %s", congregant.full_name)
        return congregant

    def search(self, term: str | None = None) -> list[Congregant]:
        """Case-insensitive match on first/last name, phone or email."""
        people = list(self.congregants.values())
        if not term or not term.strip():
            return people
        needle = term.strip().lower()
        return [
            c for c in people
            if any(
                needle in (value or "").lower()
                for value in (c.first_name, c.last_name, c.phone, c.email)
            )
        ]

    def active(self) -> list[Congregant]:
        return [c for c in self.congregants.values() if c.is_active]

    # Aliyot

    def add_aliyah(
        self,
        congregant_id: str,
        on,
        aliyah_type: AliyahType | str,
        parasha: str | None = None,
        amount=0,
        aliyah_number: int | None = None,
        notes: str | None = None,
        israel: bool = True,
    ) -> Aliyah:
        self.get(congregant_id)
        gdate = _date(on)
        if not parasha:
            parasha = parasha_for_date(gdate, israel=israel) or ""
        if aliyah_number is not None:
            try:
                aliyah_number = int(aliyah_number)
            except (TypeError, ValueError):
                raise ValidationError(
                    "aliyah_number", f"Invalid aliyah number: {aliyah_number!r}"
                ) from None
            if not 1 <= aliyah_number <= 8:
                raise ValidationError("aliyah_number", "Aliyah number must be between 1 and 8")

        aliyah = Aliyah(
            id=_new_id(),
            congregant_id=congregant_id,
            gregorian=gdate,
            hebrew_date=format_gregorian_as_hebrew(gdate),
            parasha=parasha,
            aliyah_type=_enum(AliyahType, aliyah_type, "aliyah_type"),
            aliyah_number=aliyah_number,
            amount=_amount(amount),
            notes=notes,
        )
        self.aliyot[aliyah.id] = aliyah
        return aliyah

    # Pledges

    def add_pledge(
        self,
        congregant_id: str,
        title: str,
        amount,
        on,
        pledge_type: PledgeType | str = PledgeType.GENERAL,
        description: str | None = None,
        notes: str | None = None,
    ) -> Pledge:
        self.get(congregant_id)
        gdate = _date(on)
        pledge = Pledge(
            id=_new_id(),
            congregant_id=congregant_id,
            pledge_type=_enum(PledgeType, pledge_type, "pledge_type"),
            title=_required(title, "title", "Pledge title is required"),
            gregorian=gdate,
            hebrew_date=format_gregorian_as_hebrew(gdate),
            amount=_amount(amount, allow_zero=False),
            description=description,
            notes=notes,
        )
        self.pledges[pledge.id] = pledge
        return pledge

    def get_pledge(self, pledge_id: str) -> Pledge:
        try:
            return self.pledges[pledge_id]
        except KeyError:
            raise NotFound("Pledge", pledge_id) from None

    def update_pledge(self, pledge_id: str, **changes) -> Pledge:
        pledge = self.get_pledge(pledge_id)
        unknown = set(changes) - _PLEDGE_FIELDS
        if unknown:
            raise ValidationError(sorted(unknown)[0], "Unknown pledge field")
        if "amount" in changes:
            changes["amount"] = _amount(changes["amount"], allow_zero=False)
        if "title" in changes:
            changes["title"] = _required(changes["title"], "title", "Pledge title is required")
        if "status" in changes:
            changes["status"] = _enum(PledgeStatus, changes["status"], "status")
        if "payment_status" in changes:
            changes["payment_status"] = _enum(PaymentStatus, changes["payment_status"], "payment_status")
        if "pledge_type" in changes:
            changes["pledge_type"] = _enum(PledgeType, changes["pledge_type"], "pledge_type")

        for key, value in changes.items():
            setattr(pledge, key, value)
        pledge.updated_at = _now()
        return pledge

    # Purchases

    def add_purchase(
        self,
        congregant_id: str,
        title: str,
        amount,
        on,
        purchase_type: PurchaseType | str = PurchaseType.OTHER,
        description: str | None = None,
        notes: str | None = None,
    ) -> Purchase:
        self.get(congregant_id)
        purchase = Purchase(
            id=_new_id(),
            congregant_id=congregant_id,
            purchase_type=_enum(PurchaseType, purchase_type, "purchase_type"),
            title=_required(title, "title", "Purchase title is required"),
            amount=_amount(amount, allow_zero=False),
            gregorian=_date(on),
            description=description,
            notes=notes,
        )
        self.purchases[purchase.id] = purchase
        return purchase

    # Per-congregant accessors

    def aliyot_for(self, congregant_id: str) -> list[Aliyah]:
        return sorted(
            (a for a in self.aliyot.values() if a.congregant_id == congregant_id),
            key=lambda a: a.gregorian,
        )

    def pledges_for(self, congregant_id: str) -> list[Pledge]:
        return sorted(
            (p for p in self.pledges.values() if p.congregant_id == congregant_id),
            key=lambda p: p.gregorian,
        )

    def purchases_for(self, congregant_id: str) -> list[Purchase]:
        return sorted(
            (p for p in self.purchases.values() if p.congregant_id == congregant_id),
            key=lambda p: p.gregorian,
        )
