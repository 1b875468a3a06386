"""
Store adapters

Every read opens its own short-lived session so parallel range queries never
share one. Writes take the caller's session (one transaction per settlement)
or, when none is given, run in a unit of work of their own.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterable, Iterator, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import OperationalError, ProgrammingError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from retail_ledger.common.exceptions import ConsistencyViolation, LedgerError, StoreUnavailable
from retail_ledger.logger_config import logger

RecordT = TypeVar("RecordT", bound=BaseModel)

# postgres: feature_not_supported, undefined_function, undefined_object
MISSING_CAPABILITY_PGCODES = {"0A000", "42883", "42704"}
MISSING_CAPABILITY_MARKERS = ("no such index", "no such function", "not supported", "unsupported")


def is_missing_capability(error: SQLAlchemyError) -> bool:
    """True when the backend rejected the query shape rather than failing to run it."""
    orig = getattr(error, "orig", None)
    if getattr(orig, "pgcode", None) in MISSING_CAPABILITY_PGCODES:
        return True
    message = str(orig if orig is not None else error).lower()
    return any(marker in message for marker in MISSING_CAPABILITY_MARKERS)


@contextmanager
def unit_of_work(session_factory: sessionmaker) -> Iterator[Session]:
    """
    Commit on success, roll back on any error.

    StaleDataError is re-raised untouched so settlement callers can retry;
    other database errors surface as StoreUnavailable.
    """
    db = session_factory()
    try:
        yield db
        db.commit()
    except (LedgerError, StaleDataError):
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Store write failed, transaction rolled back")
        raise StoreUnavailable(f"Store write failed: {e}") from e
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


class SqlStore:
    """Base adapter: session handling, boundary validation and range queries."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _session(self, db: Optional[Session] = None) -> Iterator[Session]:
        if db is not None:
            yield db
            return
        session = self.session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            logger.exception(f"{type(self).__name__} read failed")
            raise StoreUnavailable(f"{type(self).__name__} read failed: {e}") from e
        finally:
            session.close()

    @contextmanager
    def _writing(self, db: Optional[Session] = None) -> Iterator[Session]:
        if db is not None:
            yield db
            return
        with unit_of_work(self.session_factory) as session:
            yield session

    @staticmethod
    def _validate(schema: Type[RecordT], row: Any) -> RecordT:
        try:
            return schema.model_validate(row)
        except ValidationError as e:
            row_id = getattr(row, "id", None)
            logger.error(f"{schema.__name__} {row_id} failed validation: {e}")
            raise ConsistencyViolation(f"{schema.__name__} {row_id} failed validation") from e

    def _validate_all(self, schema: Type[RecordT], rows: Iterable[Any]) -> List[RecordT]:
        return [self._validate(schema, row) for row in rows]

    def _fetch_ordered(self, query: Query, order_by: Any) -> List[Any]:
        return query.order_by(order_by).all()

    def _range_query(
        self,
        model: Any,
        column: Any,
        schema: Type[RecordT],
        sort_key: Callable[[RecordT], datetime],
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        criteria: Iterable[Any] = (),
    ) -> List[RecordT]:
        """
        Rows with start <= column <= end, newest first.

        When the backend cannot serve the ordered shape (missing index,
        unsupported expression) the query is re-issued unordered and
        sorted in memory.
        """
        with self._session() as db:
            query = db.query(model)
            for criterion in criteria:
                query = query.filter(criterion)
            if start is not None:
                query = query.filter(column >= start)
            if end is not None:
                query = query.filter(column <= end)
            logger.debug(f"{model.__tablename__} range query start={start} end={end}")

            try:
                rows = self._fetch_ordered(query, column.desc())
                ordered = True
            except (OperationalError, ProgrammingError) as e:
                if not is_missing_capability(e):
                    raise
                logger.warning(
                    f"Ordered query on {model.__tablename__} failed ({e.orig}); "
                    f"falling back to unordered query with in-memory sort"
                )
                db.rollback()
                rows = query.all()
                ordered = False

            records = self._validate_all(schema, rows)

        if not ordered:
            records.sort(key=sort_key, reverse=True)
        return records
