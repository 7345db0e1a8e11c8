from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from errors import IntegrityConflict, NotFoundError, StoreError, ValidationError
from models import AccountStatus, AccountType, User
from schemas import AccountIn
from services import AccountService
from store import RecordStore


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


def electricity(**overrides) -> AccountIn:
    data = {
        "title": "Electricity",
        "description": "March bill",
        "amount": Decimal("150.75"),
        "type": "payable",
        "due_date": date(2025, 4, 10),
    }
    data.update(overrides)
    return AccountIn(**data)


def test_create_starts_pending_and_preserves_amount() -> None:
    session = make_session()
    alice = make_user(session, "alice")

    account = AccountService(session, alice.id).create(electricity())

    assert account.id is not None
    assert account.owner_id == alice.id
    assert account.status == AccountStatus.pending
    assert account.type == AccountType.payable
    assert account.amount == Decimal("150.75")
    assert account.amount_cents == 15075
    assert account.created_at is not None
    assert account.updated_at is not None


def test_create_ignores_submitted_status() -> None:
    session = make_session()
    alice = make_user(session, "alice")

    account = AccountService(session, alice.id).create(electricity(status="paid"))

    assert account.status == AccountStatus.pending


def test_create_defaults_description_to_empty() -> None:
    session = make_session()
    alice = make_user(session, "alice")

    account = AccountService(session, alice.id).create(electricity(description=None))

    assert account.description == ""


def test_create_reports_every_missing_field() -> None:
    session = make_session()
    alice = make_user(session, "alice")

    with pytest.raises(ValidationError) as excinfo:
        AccountService(session, alice.id).create(AccountIn(title="  "))

    assert excinfo.value.message == "Please provide all required fields"
    assert set(excinfo.value.errors) == {"title", "amount", "type", "due_date"}


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00")])
def test_create_rejects_non_positive_amount(amount) -> None:
    session = make_session()
    alice = make_user(session, "alice")

    with pytest.raises(ValidationError, match="Amount must be greater than 0"):
        AccountService(session, alice.id).create(electricity(amount=amount))


def test_create_rejects_unknown_type() -> None:
    session = make_session()
    alice = make_user(session, "alice")

    with pytest.raises(ValidationError) as excinfo:
        AccountService(session, alice.id).create(electricity(type="loan"))

    assert "type" in excinfo.value.errors


def test_create_rejects_sub_cent_amount() -> None:
    session = make_session()
    alice = make_user(session, "alice")

    with pytest.raises(ValidationError) as excinfo:
        AccountService(session, alice.id).create(electricity(amount=Decimal("1.005")))

    assert "amount" in excinfo.value.errors


def test_update_replaces_fields_and_refreshes_updated_at() -> None:
    session = make_session()
    alice = make_user(session, "alice")
    service = AccountService(session, alice.id)
    account = service.create(electricity())
    before = account.updated_at

    updated = service.update(
        account.id,
        AccountIn(
            title="Salary",
            amount=Decimal("3000"),
            type="receivable",
            due_date=date(2025, 5, 1),
            status="paid",
        ),
    )

    assert updated.id == account.id
    assert updated.title == "Salary"
    assert updated.description == ""
    assert updated.amount == Decimal("3000.00")
    assert updated.type == AccountType.receivable
    assert updated.status == AccountStatus.paid
    assert updated.updated_at >= before


def test_create_rejects_oversized_amount() -> None:
    session = make_session()
    alice = make_user(session, "alice")

    with pytest.raises(ValidationError) as excinfo:
        AccountService(session, alice.id).create(
            electricity(amount=Decimal("100000000000000000"))
        )

    assert excinfo.value.errors == {"amount": "Amount is too large"}


def test_update_requires_valid_status() -> None:
    session = make_session()
    alice = make_user(session, "alice")
    service = AccountService(session, alice.id)
    account = service.create(electricity())

    with pytest.raises(ValidationError) as excinfo:
        service.update(account.id, electricity(status="overdue"))

    assert "status" in excinfo.value.errors


def test_update_with_non_positive_amount_leaves_record_unchanged() -> None:
    session = make_session()
    alice = make_user(session, "alice")
    service = AccountService(session, alice.id)
    account = service.create(electricity())

    with pytest.raises(ValidationError):
        service.update(account.id, electricity(amount=Decimal("0"), status="paid"))

    session.expire_all()
    stored = service.get(account.id)
    assert stored.amount_cents == 15075
    assert stored.status == AccountStatus.pending


def test_update_unknown_id_is_not_found() -> None:
    session = make_session()
    alice = make_user(session, "alice")

    with pytest.raises(NotFoundError):
        AccountService(session, alice.id).update(999, electricity(status="paid"))


@pytest.mark.parametrize("account_id", [0, -1, 2**63, 2**70])
def test_out_of_range_id_is_not_found(account_id) -> None:
    session = make_session()
    alice = make_user(session, "alice")
    service = AccountService(session, alice.id)
    service.create(electricity())

    with pytest.raises(NotFoundError, match="Account not found"):
        service.get(account_id)
    with pytest.raises(NotFoundError):
        service.delete(account_id)


def test_mark_paid_is_idempotent() -> None:
    session = make_session()
    alice = make_user(session, "alice")
    service = AccountService(session, alice.id)
    account = service.create(electricity())

    first = service.mark_paid(account.id)
    second = service.mark_paid(account.id)

    assert first.status == AccountStatus.paid
    assert second.status == AccountStatus.paid
    assert second.amount_cents == 15075
    assert second.title == "Electricity"
    assert second.description == "March bill"


def test_delete_is_permanent() -> None:
    session = make_session()
    alice = make_user(session, "alice")
    service = AccountService(session, alice.id)
    account = service.create(electricity())

    service.delete(account.id)

    with pytest.raises(NotFoundError):
        service.get(account.id)
    with pytest.raises(NotFoundError):
        service.delete(account.id)


def test_other_owner_cannot_touch_account() -> None:
    session = make_session()
    alice = make_user(session, "alice")
    bob = make_user(session, "bob")
    account = AccountService(session, alice.id).create(electricity())
    intruder = AccountService(session, bob.id)

    with pytest.raises(NotFoundError, match="Account not found"):
        intruder.get(account.id)
    with pytest.raises(NotFoundError, match="Account not found"):
        intruder.update(account.id, electricity(title="Hijacked", status="paid"))
    with pytest.raises(NotFoundError, match="Account not found"):
        intruder.mark_paid(account.id)
    with pytest.raises(NotFoundError, match="Account not found"):
        intruder.delete(account.id)

    session.expire_all()
    stored = AccountService(session, alice.id).get(account.id)
    assert stored.title == "Electricity"
    assert stored.status == AccountStatus.pending


def test_store_failure_surfaces_as_store_error() -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:")
    session = sessionmaker(bind=engine)()

    with pytest.raises(StoreError):
        AccountService(session, 1).get(1)


def test_constraint_violation_surfaces_as_integrity_conflict() -> None:
    session = make_session()
    make_user(session, "alice")
    store = RecordStore(session)

    with pytest.raises(IntegrityConflict) as excinfo:
        store.add(User(username="alice", email="other@example.com", password_hash="x"))

    assert isinstance(excinfo.value, StoreError)
    assert make_user(session, "bob").id is not None
