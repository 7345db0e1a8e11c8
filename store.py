import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.engine import Row
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from errors import IntegrityConflict, StoreError
from models import Account

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ROW_ID = 2**63 - 1


class RecordStore:
    """Single persistence path for the services.

    Takes SQLAlchemy statements (values always bound, never spliced into the
    SQL text) and hands back ORM records. Any driver failure rolls the session
    back and surfaces as ``StoreError``.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            self.session.rollback()
            logger.warning(f"store_conflict: operation={operation}")
            raise IntegrityConflict(f"Constraint violated: {operation}") from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception(f"store_error: operation={operation}")
            raise StoreError(f"Store operation failed: {operation}") from exc

    def fetch(self, stmt: Select) -> list[Any]:
        with self._guard("fetch"):
            return list(self.session.scalars(stmt).all())

    def first(self, stmt: Select) -> Optional[Any]:
        with self._guard("first"):
            return self.session.scalars(stmt.limit(1)).first()

    def scalar(self, stmt: Select) -> Any:
        with self._guard("scalar"):
            return self.session.execute(stmt).scalar_one()

    def row(self, stmt: Select) -> Row:
        with self._guard("row"):
            return self.session.execute(stmt).one()

    def owned_account(self, owner_id: int, account_id: int) -> Optional[Account]:
        if not 1 <= account_id <= MAX_ROW_ID:
            return None
        stmt = select(Account).where(
            Account.id == account_id, Account.owner_id == owner_id
        )
        return self.first(stmt)

    def add(self, record: T) -> T:
        with self._guard("add"):
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
        return record

    def save(self, record: T) -> T:
        with self._guard("save"):
            self.session.commit()
            self.session.refresh(record)
        return record

    def remove(self, record: object) -> None:
        with self._guard("remove"):
            self.session.delete(record)
            self.session.commit()