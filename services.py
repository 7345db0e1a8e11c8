from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.orm import Session

from amounts import cents_to_decimal, parse_amount
from config import get_settings
from errors import IntegrityConflict, NotFoundError, Unauthenticated, ValidationError
from filters import AccountFilters, count_statement, listing_statement, page_count
from models import Account, AccountStatus, AccountType, User, utcnow
from schemas import AccountIn, DashboardSummary, RegisterIn
from security import hash_password, verify_password, verify_dummy_password
from store import RecordStore

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "Please provide all required fields"
TITLE_MAX_LENGTH = 200


def reference_today() -> date:
    """Today's date on the server, in the configured reference timezone."""
    settings = get_settings()
    return datetime.now(ZoneInfo(settings.timezone)).date()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_account(data: AccountIn, *, require_status: bool) -> dict[str, Any]:
    """Check submitted account fields and return them cleaned.

    All problems are collected before raising, so the caller sees every bad
    field at once. Nothing here touches the store.
    """
    errors: dict[str, str] = {}
    missing = False

    title = (data.title or "").strip()
    if not title:
        errors["title"] = "Title is required"
        missing = True
    elif len(title) > TITLE_MAX_LENGTH:
        errors["title"] = f"Title must be at most {TITLE_MAX_LENGTH} characters"

    amount_cents = None
    if _is_blank(data.amount):
        errors["amount"] = "Amount is required"
        missing = True
    else:
        try:
            amount_cents = parse_amount(data.amount)
        except ValueError as exc:
            errors["amount"] = str(exc)
        else:
            if amount_cents <= 0:
                errors["amount"] = "Amount must be greater than 0"

    account_type = None
    if _is_blank(data.type):
        errors["type"] = "Type is required"
        missing = True
    else:
        try:
            account_type = AccountType(data.type)
        except ValueError:
            errors["type"] = 'Type must be either "payable" or "receivable"'

    if data.due_date is None:
        errors["due_date"] = "Due date is required"
        missing = True

    status = AccountStatus.pending
    if require_status:
        try:
            status = AccountStatus(data.status)
        except ValueError:
            errors["status"] = 'Status must be either "pending" or "paid"'

    if errors:
        message = REQUIRED_MESSAGE if missing else next(iter(errors.values()))
        raise ValidationError(message, errors)

    return {
        "title": title,
        "description": (data.description or "").strip(),
        "amount_cents": amount_cents,
        "type": account_type,
        "due_date": data.due_date,
        "status": status,
    }


@dataclass
class AccountPage:
    accounts: list[Account]
    page: int
    page_size: int
    total: int

    @property
    def pages(self) -> int:
        return page_count(self.total, self.page_size)


class AccountService:
    def __init__(self, session: Session, owner_id: int) -> None:
        self.store = RecordStore(session)
        self.owner_id = owner_id

    def get(self, account_id: int) -> Account:
        account = self.store.owned_account(self.owner_id, account_id)
        if account is None:
            raise NotFoundError("Account not found")
        return account

    def list(self, filters: AccountFilters) -> AccountPage:
        accounts = self.store.fetch(listing_statement(filters, self.owner_id))
        total = self.count(filters)
        return AccountPage(
            accounts=accounts,
            page=filters.page,
            page_size=filters.page_size,
            total=total,
        )

    def count(self, filters: AccountFilters) -> int:
        return int(self.store.scalar(count_statement(filters, self.owner_id)) or 0)

    def create(self, data: AccountIn) -> Account:
        fields = validate_account(data, require_status=False)
        account = Account(
            owner_id=self.owner_id,
            title=fields["title"],
            description=fields["description"],
            amount_cents=fields["amount_cents"],
            type=fields["type"],
            due_date=fields["due_date"],
            status=AccountStatus.pending,
        )
        self.store.add(account)
        logger.info(
            f"account_created: owner_id={self.owner_id} account_id={account.id}"
        )
        return account

    def update(self, account_id: int, data: AccountIn) -> Account:
        fields = validate_account(data, require_status=True)
        account = self.get(account_id)
        account.title = fields["title"]
        account.description = fields["description"]
        account.amount_cents = fields["amount_cents"]
        account.type = fields["type"]
        account.due_date = fields["due_date"]
        account.status = fields["status"]
        account.updated_at = utcnow()
        self.store.save(account)
        logger.info(
            f"account_updated: owner_id={self.owner_id} account_id={account.id} "
            f"status={account.status.value}"
        )
        return account

    def mark_paid(self, account_id: int) -> Account:
        account = self.get(account_id)
        if account.status == AccountStatus.paid:
            return account
        return self.update(
            account_id,
            AccountIn(
                title=account.title,
                description=account.description,
                amount=account.amount,
                type=account.type.value,
                due_date=account.due_date,
                status=AccountStatus.paid.value,
            ),
        )

    def delete(self, account_id: int) -> None:
        account = self.get(account_id)
        self.store.remove(account)
        logger.info(f"account_deleted: owner_id={self.owner_id} account_id={account_id}")


class DashboardService:
    def __init__(self, session: Session, owner_id: int) -> None:
        self.store = RecordStore(session)
        self.owner_id = owner_id

    def summarize(self) -> DashboardSummary:
        def total_where(*conditions) -> Any:
            return func.coalesce(
                func.sum(case((and_(*conditions), Account.amount_cents), else_=0)), 0
            )

        payable = Account.type == AccountType.payable
        receivable = Account.type == AccountType.receivable
        pending = Account.status == AccountStatus.pending
        paid = Account.status == AccountStatus.paid

        stmt = select(
            func.count(Account.id),
            total_where(payable),
            total_where(receivable),
            total_where(payable, pending),
            total_where(receivable, pending),
            total_where(payable, paid),
            total_where(receivable, paid),
        ).where(Account.owner_id == self.owner_id)
        row = self.store.row(stmt)
        (
            total_accounts,
            total_payable,
            total_receivable,
            pending_payable,
            pending_receivable,
            paid_payable,
            paid_receivable,
        ) = (int(value or 0) for value in row)

        return DashboardSummary(
            total_accounts=total_accounts,
            total_payable=cents_to_decimal(total_payable),
            total_receivable=cents_to_decimal(total_receivable),
            pending_payable=cents_to_decimal(pending_payable),
            pending_receivable=cents_to_decimal(pending_receivable),
            paid_payable=cents_to_decimal(paid_payable),
            paid_receivable=cents_to_decimal(paid_receivable),
            balance=cents_to_decimal(paid_receivable - paid_payable),
        )

    def recent(self, limit: int = 5) -> list[Account]:
        stmt = (
            select(Account)
            .where(Account.owner_id == self.owner_id)
            .order_by(Account.created_at.desc(), Account.id.desc())
            .limit(limit)
        )
        return self.store.fetch(stmt)

    def overdue(self, today: Optional[date] = None) -> list[Account]:
        today = today or reference_today()
        stmt = (
            select(Account)
            .where(
                Account.owner_id == self.owner_id,
                Account.status == AccountStatus.pending,
                Account.due_date < today,
            )
            .order_by(Account.due_date.asc(), Account.id.asc())
        )
        return self.store.fetch(stmt)


class UserService:
    def __init__(self, session: Session) -> None:
        self.store = RecordStore(session)

    def register(self, data: RegisterIn) -> User:
        errors: dict[str, str] = {}
        username = (data.username or "").strip()
        email = (data.email or "").strip().lower()
        password = data.password or ""
        if not username:
            errors["username"] = "Username is required"
        if not email:
            errors["email"] = "Email is required"
        if not password:
            errors["password"] = "Password is required"
        if errors:
            raise ValidationError(REQUIRED_MESSAGE, errors)
        if len(username) > 50:
            errors["username"] = "Username must be at most 50 characters"
        if "@" not in email:
            errors["email"] = "Email address is invalid"
        if len(password) < 6:
            errors["password"] = "Password must be at least 6 characters"
        if errors:
            raise ValidationError(next(iter(errors.values())), errors)

        existing = self.store.first(
            select(User).where(or_(User.email == email, User.username == username))
        )
        if existing is not None:
            raise ValidationError("User already exists", {"email": "User already exists"})

        user = User(
            username=username, email=email, password_hash=hash_password(password)
        )
        try:
            self.store.add(user)
        except IntegrityConflict as exc:
            raise ValidationError(
                "User already exists", {"email": "User already exists"}
            ) from exc
        logger.info(f"user_registered: user_id={user.id}")
        return user

    def authenticate(self, email: Optional[str], password: Optional[str]) -> User:
        if not email or not password:
            raise ValidationError(
                "Please provide email and password",
                {
                    key: "This field is required"
                    for key, value in (("email", email), ("password", password))
                    if not value
                },
            )
        user = self.store.first(select(User).where(User.email == email.strip().lower()))
        if user is None:
            verify_dummy_password()
            raise Unauthenticated("Invalid credentials")
        if not verify_password(password, user.password_hash):
            raise Unauthenticated("Invalid credentials")
        logger.info(f"user_login: user_id={user.id}")
        return user
