"""Shared fixtures for the Kehila library tests."""

from datetime import date

import pytest

from custom_components.kehila.kehila_lib.calendar import EventCalendar
from custom_components.kehila.kehila_lib.congregants import CongregantRegistry
from custom_components.kehila.kehila_lib.directory import AdminDirectory, UserRole
from custom_components.kehila.kehila_lib.payments import PaymentLedger


@pytest.fixture
def registry():
    return CongregantRegistry()


@pytest.fixture
def ledger(registry):
    return PaymentLedger(registry)


@pytest.fixture
def david(registry):
    return registry.add("David", "Levi", "052-9876543", email="david@example.com")


@pytest.fixture
def yosef(registry):
    return registry.add("Yosef", "Cohen", "050-1234567", email="yosef@example.com")


@pytest.fixture
def directory():
    """Two synagogues, a super admin, an admin and a user of the first one."""
    d = AdminDirectory()
    d.nun = d.create_synagogue("Synagogue Nun", hebrew_name="בית כנסת נון")
    d.shalom = d.create_synagogue("Beth Shalom", hebrew_name="בית שלום")
    d.root = d.create_user("root@example.com", "System admin", role=UserRole.SUPER_ADMIN)
    d.gabbai = d.create_user(
        "gabbai@nun.org.il", "Gabbai Nun", role=UserRole.ADMIN, synagogue_id=d.nun.id
    )
    d.member = d.create_user(
        "member@nun.org.il", "Member", role=UserRole.USER, synagogue_id=d.nun.id
    )
    return d


@pytest.fixture(scope="module")
def tishrei_calendar():
    """Israel calendar initialized on 9 Tishrei 5786 (2025-10-01)."""
    cal = EventCalendar(israel=True)
    cal.initialize(date(2025, 10, 1))
    return cal
