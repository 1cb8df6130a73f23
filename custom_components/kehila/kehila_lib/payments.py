# custom_components/kehila/kehila_lib/payments.py
"""
Payments received from congregants and their allocation against what those
congregants owe for aliyot, pledges and purchases.

A charge id is "<TYPE>:<record id>", e.g. "PLEDGE:3f2a…". What a charge still
owes is its amount minus everything already allocated to it.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from .congregants import (
    ALIYAH_LABELS,
    CongregantRegistry,
    PaymentStatus,
    Pledge,
    PledgeStatus,
    PurchaseStatus,
)
from .exceptions import NotFound, ValidationError
from .helper import format_gregorian_as_hebrew, to_pydate
from .parshiot import format_parasha_name

_LOGGER = logging.getLogger(__name__)


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CHECK = "CHECK"
    TRANSFER = "TRANSFER"
    CARD = "CARD"
    STANDING_ORDER = "STANDING_ORDER"


METHOD_LABELS = {
    PaymentMethod.CASH: "מזומן",
    PaymentMethod.CHECK: "צ'ק",
    PaymentMethod.TRANSFER: "העברה בנקאית",
    PaymentMethod.CARD: "כרטיס אשראי",
    PaymentMethod.STANDING_ORDER: "הוראת קבע",
}


class ChargeType(str, Enum):
    ALIYAH = "ALIYAH"
    PLEDGE = "PLEDGE"
    PURCHASE = "PURCHASE"


PLEDGE_LABELS = {
    "KIDDUSH": "קידוש",
    "SEUDA_SHLISHIT": "סעודה שלישית",
    "YAHRZEIT": "יארצייט",
    "SIMCHA": "שמחה",
    "GENERAL": "נדבה",
}


@dataclass
class PaymentAllocation:
    id: str
    target_type: ChargeType
    target_id: str
    target_description: str
    amount: float


@dataclass
class Payment:
    id: str
    congregant_id: str
    congregant_name: str
    amount: float
    method: PaymentMethod
    gregorian: date
    hebrew_date: str
    reference: str | None = None
    allocations: list[PaymentAllocation] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def allocated(self) -> float:
        return round(sum(a.amount for a in self.allocations), 2)

    @property
    def unallocated(self) -> float:
        return round(self.amount - self.allocated, 2)


@dataclass(frozen=True)
class OutstandingCharge:
    id: str
    charge_type: ChargeType
    record_id: str
    description: str
    amount: float
    event_title: str
    congregant_id: str
    congregant_name: str


def charge_id(charge_type: ChargeType, record_id: str) -> str:
    return f"{charge_type.value}:{record_id}"


class PaymentLedger:
    """Payments for one synagogue, checked against a CongregantRegistry."""

    def __init__(self, registry: CongregantRegistry) -> None:
        self.registry = registry
        self.payments: dict[str, Payment] = {}

    def get(self, payment_id: str) -> Payment:
        try:
            return self.payments[payment_id]
        except KeyError:
            raise NotFound("Payment", payment_id) from None

    def record_payment(
        self,
        congregant_id: str,
        amount,
        method: PaymentMethod | str = PaymentMethod.CASH,
        on=None,
        reference: str | None = None,
    ) -> Payment:
        if not congregant_id:
            raise ValidationError("congregant_id", "Congregant is required")
        congregant = self.registry.get(congregant_id)
        try:
            amount = round(float(amount), 2)
        except (TypeError, ValueError):
            raise ValidationError("amount", f"Invalid amount: {amount!r}") from None
        if amount <= 0:
            raise ValidationError("amount", "Payment amount must be positive")
        try:
            method = PaymentMethod(method)
        except ValueError:
            raise ValidationError("method", f"Unknown payment method {method!r}") from None
        try:
            gdate = to_pydate(on) if on is not None else date.today()
        except (TypeError, ValueError):
            raise ValidationError("date", f"Invalid date: {on!r}") from None

        payment = Payment(
            id=uuid.uuid4().hex,
            congregant_id=congregant.id,
            congregant_name=congregant.full_name,
            amount=amount,
            method=method,
            gregorian=gdate,
            hebrew_date=format_gregorian_as_hebrew(gdate),
            reference=reference or None,
        )
        self.payments[payment.id] = payment
        _LOGGER.info("Recorded %s payment of %.2f from %s", method.value, amount, congregant.full_name)
        return payment

    def paid_for(self, charge_type: ChargeType | str, record_id: str) -> float:
        charge_type = ChargeType(charge_type)
        return round(
            sum(
                a.amount
                for p in self.payments.values()
                for a in p.allocations
                if a.target_type is charge_type and a.target_id == record_id
            ),
            2,
        )

    def _charges(self) -> list[OutstandingCharge]:
        reg = self.registry
        found: list[OutstandingCharge] = []

        def add(kind, record, description, event_title):
            owed = round(record.amount - self.paid_for(kind, record.id), 2)
            if owed <= 0:
                return
            person = reg.congregants.get(record.congregant_id)
            found.append(
                OutstandingCharge(
                    id=charge_id(kind, record.id),
                    charge_type=kind,
                    record_id=record.id,
                    description=description,
                    amount=owed,
                    event_title=event_title,
                    congregant_id=record.congregant_id,
                    congregant_name=person.full_name if person else "",
                )
            )

        for aliyah in reg.aliyot.values():
            add(
                ChargeType.ALIYAH,
                aliyah,
                f"עלייה {ALIYAH_LABELS[aliyah.aliyah_type]}",
                format_parasha_name(aliyah.parasha) or aliyah.hebrew_date,
            )
        for pledge in reg.pledges.values():
            if pledge.status is not PledgeStatus.CANCELLED:
                add(
                    ChargeType.PLEDGE,
                    pledge,
                    PLEDGE_LABELS.get(pledge.pledge_type.value, pledge.title),
                    pledge.title,
                )
        for purchase in reg.purchases.values():
            if purchase.status is not PurchaseStatus.CANCELLED:
                add(
                    ChargeType.PURCHASE,
                    purchase,
                    purchase.title,
                    format_gregorian_as_hebrew(purchase.gregorian),
                )
        return found

    def outstanding_charges(self, congregant_id: str | None = None) -> list[OutstandingCharge]:
        charges = self._charges()
        if congregant_id is not None:
            charges = [c for c in charges if c.congregant_id == congregant_id]
        return charges

    def total_outstanding(self) -> float:
        return round(sum(c.amount for c in self._charges()), 2)

    def allocate(self, payment_id: str, amounts: dict[str, float | None]) -> list[PaymentAllocation]:
        """
        Allocate part of a payment to outstanding charges of the same congregant.
        A None amount means "whatever is still owed". Nothing is applied unless
        every line is valid.
        """
        payment = self.get(payment_id)
        if not amounts:
            raise ValidationError("allocations", "Select at least one charge")
        open_charges = {c.id: c for c in self.outstanding_charges(payment.congregant_id)}

        planned: list[tuple[OutstandingCharge, float]] = []
        for cid, requested in amounts.items():
            charge = open_charges.get(cid)
            if charge is None:
                raise ValidationError("charge_id", f"No outstanding charge {cid!r} for this congregant")
            try:
                amount = charge.amount if requested is None else round(float(requested), 2)
            except (TypeError, ValueError):
                raise ValidationError("amount", f"Invalid amount: {requested!r}") from None
            if amount <= 0:
                raise ValidationError("amount", "Allocation amount must be positive")
            if amount > charge.amount:
                raise ValidationError("amount", f"Charge {cid} only owes {charge.amount:.2f}")
            planned.append((charge, amount))

        total = round(sum(amount for _, amount in planned), 2)
        if total > payment.unallocated:
            raise ValidationError(
                "amount", f"Allocating {total:.2f} exceeds the unallocated {payment.unallocated:.2f}"
            )

        created = []
        for charge, amount in planned:
            allocation = PaymentAllocation(
                id=uuid.uuid4().hex,
                target_type=charge.charge_type,
                target_id=charge.record_id,
                target_description=f"{charge.description} - {charge.event_title}",
                amount=amount,
            )
            payment.allocations.append(allocation)
            created.append(allocation)
            if charge.charge_type is ChargeType.PLEDGE:
                self._refresh_pledge_status(charge.record_id)
        return created

    def update_pledge(self, pledge_id: str, **changes) -> Pledge:
        """Update a pledge; its payment status is re-derived from the allocations."""
        changes.pop("payment_status", None)
        pledge = self.registry.update_pledge(pledge_id, **changes)
        self._refresh_pledge_status(pledge_id)
        return pledge

    def _refresh_pledge_status(self, pledge_id: str) -> None:
        pledge = self.registry.get_pledge(pledge_id)
        paid = self.paid_for(ChargeType.PLEDGE, pledge_id)
        if paid >= pledge.amount:
            status = PaymentStatus.PAID
        elif paid > 0:
            status = PaymentStatus.PARTIAL
        else:
            status = PaymentStatus.UNPAID
        self.registry.update_pledge(pledge_id, payment_status=status)

    def payments_for(self, congregant_id: str) -> list[Payment]:
        return sorted(
            (p for p in self.payments.values() if p.congregant_id == congregant_id),
            key=lambda p: p.gregorian,
        )

    def recent(self, limit: int = 5) -> list[Payment]:
        return sorted(self.payments.values(), key=lambda p: p.gregorian, reverse=True)[:limit]

    def total_received(self, start: date | None = None, end: date | None = None) -> float:
        return round(
            sum(
                p.amount
                for p in self.payments.values()
                if (start is None or p.gregorian >= start) and (end is None or p.gregorian <= end)
            ),
            2,
        )
