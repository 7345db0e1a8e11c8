from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from models import AccountStatus, AccountType


class AccountIn(BaseModel):
    """Request body for create and update.

    Every field is optional at this layer so that missing or empty values are
    reported by the service with the same field-level detail as invalid ones.
    """

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[Decimal] = None
    type: Optional[str] = None
    due_date: Optional[date] = None
    status: Optional[str] = None


class RegisterIn(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str


class AccountOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    title: str
    description: str
    amount: Decimal
    amount_cents: int
    type: AccountType
    due_date: date
    status: AccountStatus
    created_at: datetime
    updated_at: datetime


class DashboardSummary(BaseModel):
    total_accounts: int = 0
    total_payable: Decimal = Decimal("0.00")
    total_receivable: Decimal = Decimal("0.00")
    pending_payable: Decimal = Decimal("0.00")
    pending_receivable: Decimal = Decimal("0.00")
    paid_payable: Decimal = Decimal("0.00")
    paid_receivable: Decimal = Decimal("0.00")
    balance: Decimal = Decimal("0.00")


class DashboardOut(BaseModel):
    summary: DashboardSummary
    recent_accounts: list[AccountOut]
    overdue_accounts: list[AccountOut]


class PaginationOut(BaseModel):
    page: int
    page_size: int
    total: int
    pages: int


class AccountListOut(BaseModel):
    accounts: list[AccountOut]
    pagination: PaginationOut
