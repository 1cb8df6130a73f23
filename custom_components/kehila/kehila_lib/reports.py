# custom_components/kehila/kehila_lib/reports.py
"""Annual congregant statement and the dashboard summary."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from .calendar import CalendarEvent, EventCalendar, HebrewYear
from .congregants import ALIYAH_LABELS, CongregantRegistry, PledgeStatus, PurchaseStatus
from .helper import format_gregorian_as_hebrew
from .payments import METHOD_LABELS, Payment, PaymentLedger


@dataclass(frozen=True)
class ReportLine:
    gregorian: date
    hebrew_date: str
    label: str
    amount: float


@dataclass
class AnnualReport:
    congregant_id: str
    congregant_name: str
    year: HebrewYear
    opening_balance: float = 0.0
    aliyot: list[ReportLine] = field(default_factory=list)
    purchases: list[ReportLine] = field(default_factory=list)
    pledges: list[ReportLine] = field(default_factory=list)
    payments: list[ReportLine] = field(default_factory=list)

    @property
    def total_charges(self) -> float:
        return round(sum(l.amount for l in self.aliyot + self.purchases + self.pledges), 2)

    @property
    def total_payments(self) -> float:
        return round(sum(l.amount for l in self.payments), 2)

    @property
    def closing_balance(self) -> float:
        """Negative means the congregant owes money."""
        return round(self.opening_balance - self.total_charges + self.total_payments, 2)

    def as_dict(self) -> dict:
        def lines(items):
            return [
                {"date": l.gregorian.isoformat(), "hebrew_date": l.hebrew_date,
                 "label": l.label, "amount": l.amount}
                for l in items
            ]

        return {
            "congregant_id": self.congregant_id,
            "congregant_name": self.congregant_name,
            "year": self.year.id,
            "year_label": self.year.label,
            "opening_balance": self.opening_balance,
            "aliyot": lines(self.aliyot),
            "purchases": lines(self.purchases),
            "pledges": lines(self.pledges),
            "payments": lines(self.payments),
            "total_charges": self.total_charges,
            "total_payments": self.total_payments,
            "closing_balance": self.closing_balance,
        }


def build_annual_report(
    registry: CongregantRegistry,
    ledger: PaymentLedger,
    congregant_id: str,
    hebrew_year: HebrewYear | int,
    opening_balance: float = 0.0,
) -> AnnualReport:
    congregant = registry.get(congregant_id)
    year = hebrew_year if isinstance(hebrew_year, HebrewYear) else HebrewYear.for_year(int(hebrew_year))

    report = AnnualReport(
        congregant_id=congregant.id,
        congregant_name=congregant.full_name,
        year=year,
        opening_balance=round(float(opening_balance), 2),
    )
    for a in registry.aliyot_for(congregant.id):
        if year.contains(a.gregorian):
            report.aliyot.append(
                ReportLine(a.gregorian, a.hebrew_date, ALIYAH_LABELS[a.aliyah_type], a.amount)
            )
    for p in registry.purchases_for(congregant.id):
        if p.status is not PurchaseStatus.CANCELLED and year.contains(p.gregorian):
            report.purchases.append(
                ReportLine(p.gregorian, format_gregorian_as_hebrew(p.gregorian), p.title, p.amount)
            )
    for p in registry.pledges_for(congregant.id):
        if p.status is not PledgeStatus.CANCELLED and year.contains(p.gregorian):
            report.pledges.append(ReportLine(p.gregorian, p.hebrew_date, p.title, p.amount))
    for p in ledger.payments_for(congregant.id):
        if year.contains(p.gregorian):
            report.payments.append(
                ReportLine(p.gregorian, p.hebrew_date, METHOD_LABELS[p.method], p.amount)
            )
    return report


@dataclass
class DashboardSummary:
    total_congregants: int
    active_congregants: int
    upcoming_events: list[CalendarEvent]
    pending_charges: int
    total_outstanding: float
    total_revenue: float
    recent_payments: list[Payment]

    def as_dict(self) -> dict:
        return {
            "total_congregants": self.total_congregants,
            "active_congregants": self.active_congregants,
            "upcoming_events": [e.as_dict() for e in self.upcoming_events],
            "pending_charges": self.pending_charges,
            "total_outstanding": self.total_outstanding,
            "total_revenue": self.total_revenue,
            "recent_payments": [
                {"congregant": p.congregant_name, "amount": p.amount, "date": p.gregorian.isoformat()}
                for p in self.recent_payments
            ],
        }


def build_dashboard_summary(
    registry: CongregantRegistry,
    ledger: PaymentLedger,
    calendar: EventCalendar,
    today: date | None = None,
    upcoming_limit: int = 5,
    recent_limit: int = 5,
) -> DashboardSummary:
    today = today or date.today()
    charges = ledger.outstanding_charges()
    return DashboardSummary(
        total_congregants=len(registry.congregants),
        active_congregants=len(registry.active()),
        upcoming_events=calendar.upcoming(today, limit=upcoming_limit),
        pending_charges=len(charges),
        total_outstanding=round(sum(c.amount for c in charges), 2),
        total_revenue=ledger.total_received(),
        recent_payments=ledger.recent(recent_limit),
    )
