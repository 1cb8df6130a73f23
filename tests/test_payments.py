"""Tests for payments and their allocation to charges."""

from datetime import date

import pytest

from custom_components.kehila.kehila_lib.congregants import PaymentStatus
from custom_components.kehila.kehila_lib.exceptions import NotFound, ValidationError
from custom_components.kehila.kehila_lib.payments import (
    ChargeType,
    PaymentMethod,
    charge_id,
)


class TestRecordPayment:
    def test_record(self, ledger, david):
        payment = ledger.record_payment(david.id, "250.5", method="TRANSFER", on="2025-09-29", reference="4471")
        assert payment.amount == 250.5
        assert payment.method is PaymentMethod.TRANSFER
        assert payment.congregant_name == "David Levi"
        assert payment.hebrew_date == "ז׳ תשרי תשפ״ו"
        assert payment.unallocated == 250.5
        assert ledger.get(payment.id) is payment

    def test_defaults_to_today(self, ledger, david):
        assert ledger.record_payment(david.id, 10).gregorian == date.today()

    @pytest.mark.parametrize("amount", [0, -20, "lots"])
    def test_amount_must_be_positive(self, ledger, david, amount):
        with pytest.raises(ValidationError) as exc:
            ledger.record_payment(david.id, amount)
        assert exc.value.field == "amount"

    def test_unknown_method(self, ledger, david):
        with pytest.raises(ValidationError):
            ledger.record_payment(david.id, 10, method="BITCOIN")

    def test_unknown_congregant(self, ledger):
        with pytest.raises(NotFound):
            ledger.record_payment("missing", 10)
        with pytest.raises(ValidationError):
            ledger.record_payment("", 10)


class TestAllocation:
    """Allocating payments against aliyot, pledges and purchases."""

    @pytest.fixture(autouse=True)
    def charges(self, registry, ledger, david, yosef):
        self.registry = registry
        self.ledger = ledger
        self.david = david
        self.aliyah = registry.add_aliyah(david.id, "2025-10-04", "KOHEN", amount=180)
        self.pledge = registry.add_pledge(david.id, "Kiddush", 300, "2025-10-04", pledge_type="KIDDUSH")
        self.purchase = registry.add_purchase(david.id, "Mezuzah", 100, "2025-10-05")
        self.other = registry.add_pledge(yosef.id, "Kiddush", 250, "2025-10-04")

        self.aliyah_charge = charge_id(ChargeType.ALIYAH, self.aliyah.id)
        self.pledge_charge = charge_id(ChargeType.PLEDGE, self.pledge.id)
        self.purchase_charge = charge_id(ChargeType.PURCHASE, self.purchase.id)
        self.other_charge = charge_id(ChargeType.PLEDGE, self.other.id)

    def test_outstanding(self):
        charges = {c.id: c for c in self.ledger.outstanding_charges(self.david.id)}
        assert set(charges) == {self.aliyah_charge, self.pledge_charge, self.purchase_charge}
        assert charges[self.aliyah_charge].description == "עלייה כהן"
        assert charges[self.aliyah_charge].event_title == "פרשת האזינו"
        assert charges[self.pledge_charge].description == "קידוש"
        assert self.ledger.total_outstanding() == 830.0

    def test_zero_amount_aliyah_is_not_a_charge(self):
        free = self.registry.add_aliyah(self.david.id, "2025-10-04", "LEVI")
        ids = {c.id for c in self.ledger.outstanding_charges()}
        assert charge_id(ChargeType.ALIYAH, free.id) not in ids

    def test_cancelled_pledge_is_not_a_charge(self):
        self.registry.update_pledge(self.pledge.id, status="CANCELLED")
        ids = {c.id for c in self.ledger.outstanding_charges()}
        assert self.pledge_charge not in ids

    def test_full_and_partial_allocation(self):
        payment = self.ledger.record_payment(self.david.id, 400)
        created = self.ledger.allocate(
            payment.id, {self.aliyah_charge: None, self.pledge_charge: 120}
        )
        assert [a.amount for a in created] == [180.0, 120.0]
        assert created[0].target_description == "עלייה כהן - פרשת האזינו"
        assert payment.unallocated == 100.0
        assert self.ledger.paid_for(ChargeType.PLEDGE, self.pledge.id) == 120.0
        assert self.pledge.payment_status is PaymentStatus.PARTIAL

        remaining = {c.id: c.amount for c in self.ledger.outstanding_charges(self.david.id)}
        assert remaining == {self.pledge_charge: 180.0, self.purchase_charge: 100.0}

    def test_pledge_paid_in_full(self):
        payment = self.ledger.record_payment(self.david.id, 300)
        self.ledger.allocate(payment.id, {self.pledge_charge: None})
        assert self.pledge.payment_status is PaymentStatus.PAID
        assert self.pledge_charge not in {c.id for c in self.ledger.outstanding_charges()}

    def test_more_than_owed(self):
        payment = self.ledger.record_payment(self.david.id, 1000)
        with pytest.raises(ValidationError):
            self.ledger.allocate(payment.id, {self.pledge_charge: 350})

    def test_more_than_unallocated_applies_nothing(self):
        payment = self.ledger.record_payment(self.david.id, 200)
        with pytest.raises(ValidationError):
            self.ledger.allocate(payment.id, {self.aliyah_charge: None, self.pledge_charge: None})
        assert payment.allocations == []
        assert self.pledge.payment_status is PaymentStatus.UNPAID

    def test_non_positive_amount(self):
        payment = self.ledger.record_payment(self.david.id, 200)
        with pytest.raises(ValidationError):
            self.ledger.allocate(payment.id, {self.aliyah_charge: 0})

    def test_other_congregants_charge(self):
        payment = self.ledger.record_payment(self.david.id, 250)
        with pytest.raises(ValidationError):
            self.ledger.allocate(payment.id, {self.other_charge: None})

    def test_unknown_charge_and_payment(self):
        payment = self.ledger.record_payment(self.david.id, 250)
        with pytest.raises(ValidationError):
            self.ledger.allocate(payment.id, {"PLEDGE:missing": 10})
        with pytest.raises(ValidationError):
            self.ledger.allocate(payment.id, {})
        with pytest.raises(NotFound):
            self.ledger.allocate("missing", {self.aliyah_charge: None})


class TestUpdatePledge:
    """Editing a pledge keeps its payment status in step with its allocations."""

    @pytest.fixture(autouse=True)
    def partly_paid(self, registry, ledger, david):
        self.ledger = ledger
        self.pledge = registry.add_pledge(david.id, "Kiddush", 100, "2025-10-04")
        self.charge = charge_id(ChargeType.PLEDGE, self.pledge.id)
        payment = ledger.record_payment(david.id, 60)
        ledger.allocate(payment.id, {self.charge: 60})
        assert self.pledge.payment_status is PaymentStatus.PARTIAL

    def test_lowering_amount_to_paid_marks_paid(self):
        updated = self.ledger.update_pledge(self.pledge.id, amount=60)
        assert updated.payment_status is PaymentStatus.PAID
        assert self.charge not in {c.id for c in self.ledger.outstanding_charges()}

    def test_raising_amount_back_marks_partial(self):
        self.ledger.update_pledge(self.pledge.id, amount=60)
        updated = self.ledger.update_pledge(self.pledge.id, amount=200)
        assert updated.payment_status is PaymentStatus.PARTIAL
        owed = {c.id: c.amount for c in self.ledger.outstanding_charges()}
        assert owed[self.charge] == 140.0

    def test_explicit_payment_status_is_ignored(self):
        updated = self.ledger.update_pledge(self.pledge.id, title="Seuda", payment_status="PAID")
        assert updated.title == "Seuda"
        assert updated.payment_status is PaymentStatus.PARTIAL

    def test_registry_validation_still_applies(self):
        with pytest.raises(ValidationError):
            self.ledger.update_pledge(self.pledge.id, amount=0)
        with pytest.raises(NotFound):
            self.ledger.update_pledge("missing", amount=10)


class TestTotals:
    def test_recent_and_received(self, ledger, david, yosef):
        first = ledger.record_payment(david.id, 100, on="2025-01-10")
        second = ledger.record_payment(yosef.id, 50, on="2025-03-01")
        third = ledger.record_payment(david.id, 25, on="2025-02-01")

        assert ledger.recent(2) == [second, third]
        assert ledger.payments_for(david.id) == [first, third]
        assert ledger.total_received() == 175.0
        assert ledger.total_received(start=date(2025, 2, 1)) == 75.0
        assert ledger.total_received(end=date(2025, 1, 31)) == 100.0
