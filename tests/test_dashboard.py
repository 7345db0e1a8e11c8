from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from models import User
from schemas import AccountIn
from services import AccountService, DashboardService


def make_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal()


def make_user(session, name: str) -> User:
    user = User(username=name, email=f"{name}@example.com", password_hash="x")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def add(service, title, type_, amount, due=date(2025, 3, 1), paid=False):
    account = service.create(
        AccountIn(title=title, amount=Decimal(amount), type=type_, due_date=due)
    )
    if paid:
        account = service.mark_paid(account.id)
    return account


def test_empty_dashboard_is_all_zero() -> None:
    session = make_session()
    alice = make_user(session, "alice")
    dashboard = DashboardService(session, alice.id)

    summary = dashboard.summarize()

    assert summary.total_accounts == 0
    assert summary.total_payable == 0
    assert summary.total_receivable == 0
    assert summary.pending_payable == 0
    assert summary.pending_receivable == 0
    assert summary.paid_payable == 0
    assert summary.paid_receivable == 0
    assert summary.balance == 0
    assert dashboard.recent() == []
    assert dashboard.overdue(today=date(2025, 6, 1)) == []


def test_summary_splits_by_type_and_status() -> None:
    session = make_session()
    alice = make_user(session, "alice")
    service = AccountService(session, alice.id)
    add(service, "Rent", "payable", "1200.00", paid=True)
    add(service, "Power", "payable", "80.50")
    add(service, "Salary", "receivable", "3000.00", paid=True)
    add(service, "Invoice 42", "receivable", "450.25")

    summary = DashboardService(session, alice.id).summarize()

    assert summary.total_accounts == 4
    assert summary.total_payable == Decimal("1280.50")
    assert summary.total_receivable == Decimal("3450.25")
    assert summary.pending_payable == Decimal("80.50")
    assert summary.pending_receivable == Decimal("450.25")
    assert summary.paid_payable == Decimal("1200.00")
    assert summary.paid_receivable == Decimal("3000.00")
    assert summary.balance == Decimal("1800.00")


@pytest.mark.parametrize(
    "rows,expected",
    [
        ([("payable", "10", False)], Decimal("0")),
        ([("receivable", "10", False)], Decimal("0")),
        ([("payable", "10", True)], Decimal("-10")),
        ([("receivable", "10", True), ("payable", "2.50", True)], Decimal("7.50")),
    ],
)
def test_balance_only_counts_paid_amounts(rows, expected) -> None:
    session = make_session()
    alice = make_user(session, "alice")
    service = AccountService(session, alice.id)
    for i, (type_, amount, paid) in enumerate(rows):
        add(service, f"Row {i}", type_, amount, paid=paid)

    summary = DashboardService(session, alice.id).summarize()

    assert summary.balance == expected
    assert summary.balance == summary.paid_receivable - summary.paid_payable


def test_summary_ignores_other_owners() -> None:
    session = make_session()
    alice = make_user(session, "alice")
    bob = make_user(session, "bob")
    add(AccountService(session, alice.id), "Rent", "payable", "500", paid=True)

    summary = DashboardService(session, bob.id).summarize()

    assert summary.total_accounts == 0
    assert summary.balance == 0


def test_recent_is_newest_first_and_capped() -> None:
    session = make_session()
    alice = make_user(session, "alice")
    service = AccountService(session, alice.id)
    for i in range(7):
        add(service, f"Bill {i}", "payable", "1")

    recent = DashboardService(session, alice.id).recent()

    assert [a.title for a in recent] == [
        "Bill 6",
        "Bill 5",
        "Bill 4",
        "Bill 3",
        "Bill 2",
    ]
    assert len(DashboardService(session, alice.id).recent(limit=2)) == 2


def test_overdue_is_pending_and_strictly_before_today() -> None:
    session = make_session()
    alice = make_user(session, "alice")
    service = AccountService(session, alice.id)
    add(service, "Due today", "payable", "1", due=date(2025, 6, 15))
    add(service, "Old paid", "payable", "1", due=date(2025, 1, 1), paid=True)
    add(service, "Late receivable", "receivable", "1", due=date(2025, 6, 1))
    add(service, "Very late", "payable", "1", due=date(2025, 2, 1))
    add(service, "Future", "payable", "1", due=date(2025, 7, 1))

    overdue = DashboardService(session, alice.id).overdue(today=date(2025, 6, 15))

    assert [a.title for a in overdue] == ["Very late", "Late receivable"]


def test_overdue_defaults_to_server_date(monkeypatch) -> None:
    import services

    session = make_session()
    alice = make_user(session, "alice")
    add(AccountService(session, alice.id), "Late", "payable", "1", due=date(2025, 1, 1))
    monkeypatch.setattr(services, "reference_today", lambda: date(2025, 1, 2))

    overdue = DashboardService(session, alice.id).overdue()

    assert [a.title for a in overdue] == ["Late"]
