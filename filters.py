"""Listing filters for accounts.

The fetch statement and the count statement are built from the same
`build_predicate` result, so a page of rows and the total it is paginated
against can never disagree.
"""

import math
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import ColumnElement, Select, and_, func, or_, select

from errors import ValidationError
from models import Account, AccountStatus, AccountType


# page * page_size stays inside a signed 64-bit OFFSET
MAX_PAGE = 1_000_000_000


def coerce_positive_int(value: Any, default: int, maximum: int = MAX_PAGE) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return min(max(number, 1), maximum)


@dataclass
class AccountFilters:
    type: Optional[AccountType] = None
    status: Optional[AccountStatus] = None
    query: Optional[str] = None
    page: int = 1
    page_size: int = 10

    def __post_init__(self) -> None:
        self.page = coerce_positive_int(self.page, 1)
        self.page_size = coerce_positive_int(self.page_size, 10)
        if not self.query:
            self.query = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def parse_filters(
    type_value: Optional[str] = None,
    status_value: Optional[str] = None,
    query: Optional[str] = None,
    page: Any = 1,
    page_size: Any = 10,
) -> AccountFilters:
    """Build filters from raw request values.

    Empty strings mean "no filter". A type or status outside its enum is
    rejected rather than ignored.
    """
    errors: dict[str, str] = {}
    account_type = None
    if type_value:
        try:
            account_type = AccountType(type_value)
        except ValueError:
            errors["type"] = 'Type must be either "payable" or "receivable"'
    account_status = None
    if status_value:
        try:
            account_status = AccountStatus(status_value)
        except ValueError:
            errors["status"] = 'Status must be either "pending" or "paid"'
    if errors:
        raise ValidationError(next(iter(errors.values())), errors)
    return AccountFilters(
        type=account_type,
        status=account_status,
        query=query,
        page=page,
        page_size=page_size,
    )


def filter_clauses(filters: AccountFilters, owner_id: int) -> list[ColumnElement[bool]]:
    clauses: list[ColumnElement[bool]] = [Account.owner_id == owner_id]
    if filters.type:
        clauses.append(Account.type == filters.type)
    if filters.status:
        clauses.append(Account.status == filters.status)
    if filters.query:
        clauses.append(
            or_(
                Account.title.icontains(filters.query, autoescape=True),
                func.coalesce(Account.description, "").icontains(
                    filters.query, autoescape=True
                ),
            )
        )
    return clauses


def build_predicate(
    filters: AccountFilters, owner_id: int
) -> tuple[ColumnElement[bool], dict[str, Any]]:
    """Return the combined WHERE predicate and the parameters bound into it."""
    predicate = and_(*filter_clauses(filters, owner_id))
    return predicate, dict(predicate.compile().params)


def listing_statement(filters: AccountFilters, owner_id: int) -> Select:
    predicate, _ = build_predicate(filters, owner_id)
    return (
        select(Account)
        .where(predicate)
        .order_by(Account.due_date.asc(), Account.created_at.desc(), Account.id.desc())
        .offset(filters.offset)
        .limit(filters.page_size)
    )


def count_statement(filters: AccountFilters, owner_id: int) -> Select:
    predicate, _ = build_predicate(filters, owner_id)
    return select(func.count(Account.id)).where(predicate)


def page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total else 0
