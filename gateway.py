"""Store access for the pages.

Reads are equality filters on one or two fields, optionally ordered and
limited. Writes are independent single-record commits, except
:meth:`StoreGateway.save_all` which writes a group of records in one
transaction and reports a single failure for the whole group.

:class:`DemoGateway` exposes the same interface over canned records and never
persists a write.
"""

from __future__ import annotations

import itertools
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from app_logging import StoreTimer, get_logger
from errors import BatchWriteFailed, StoreUnavailable
from models import db

T = TypeVar('T')

_logger = get_logger('school.store')


def _primary_key(model) -> str:
    return model.__mapper__.primary_key[0].key


def _record_id(record) -> Any:
    return getattr(record, _primary_key(type(record)))


class StoreGateway:
    """Gateway over the SQLAlchemy session."""

    demo = False

    def __init__(self, session=None) -> None:
        self._session = session if session is not None else db.session

    def _run(self, action: str, operation: Callable[[], T]) -> T:
        with StoreTimer():
            try:
                return operation()
            except SQLAlchemyError as exc:
                self._session.rollback()
                _logger.exception('store operation failed', extra={'action': action})
                raise StoreUnavailable(f"Could not {action}. Please try again.") from exc

    def get(self, model: Type[T], record_id: Optional[str]) -> Optional[T]:
        if not record_id:
            return None
        return self._run(f"load {model.__tablename__}", lambda: self._session.get(model, record_id))

    def find(self, model: Type[T], order_by: Optional[str] = None, descending: bool = False,
             limit: Optional[int] = None, **equals: Any) -> List[T]:
        def query() -> List[T]:
            stmt = db.select(model).filter_by(**equals)
            if order_by:
                column = getattr(model, order_by)
                stmt = stmt.order_by(column.desc() if descending else column.asc())
            if limit:
                stmt = stmt.limit(limit)
            return list(self._session.execute(stmt).scalars())

        return self._run(f"load {model.__tablename__}", query)

    def first(self, model: Type[T], **equals: Any) -> Optional[T]:
        rows = self.find(model, limit=1, **equals)
        return rows[0] if rows else None

    def save(self, record) -> Any:
        def write():
            self._session.add(record)
            self._session.commit()
            return _record_id(record)

        return self._run(f"save {record.__tablename__}", write)

    def update(self, record, **fields: Any) -> Any:
        def write():
            for name, value in fields.items():
                setattr(record, name, value)
            self._session.commit()
            return _record_id(record)

        return self._run(f"update {record.__tablename__}", write)

    def delete(self, record) -> None:
        def write():
            self._session.delete(record)
            self._session.commit()

        self._run(f"delete {record.__tablename__}", write)

    def save_all(self, records: Sequence) -> List[Any]:
        """Write ``records`` all-or-nothing.

        Each member is flushed in turn so a failure can be pinned to its
        position; any failure rolls back the members already flushed.
        """
        records = list(records)
        index = None
        with StoreTimer():
            try:
                for index, record in enumerate(records):
                    self._session.add(record)
                    self._session.flush()
                self._session.commit()
            except SQLAlchemyError as exc:
                self._session.rollback()
                _logger.exception(
                    'batch write failed',
                    extra={'failed_index': index, 'batch_size': len(records)},
                )
                raise BatchWriteFailed(
                    'Could not save all records; nothing was saved. Please try again.',
                    failed_index=index,
                    size=len(records),
                ) from exc
        return [_record_id(record) for record in records]


class DemoGateway:
    """Serves canned records and acknowledges writes without keeping them."""

    demo = True

    def __init__(self, records: Mapping[type, Iterable[Any]]) -> None:
        self._records: Dict[type, List[Any]] = {model: list(rows) for model, rows in records.items()}
        self._ids = itertools.count(1)

    def get(self, model: Type[T], record_id: Optional[str]) -> Optional[T]:
        if not record_id:
            return None
        key = _primary_key(model)
        for record in self._records.get(model, ()):
            if getattr(record, key) == record_id:
                return record
        return None

    def find(self, model: Type[T], order_by: Optional[str] = None, descending: bool = False,
             limit: Optional[int] = None, **equals: Any) -> List[T]:
        rows = [
            record for record in self._records.get(model, ())
            if all(getattr(record, name) == value for name, value in equals.items())
        ]
        if order_by:
            rows.sort(key=lambda record: getattr(record, order_by), reverse=descending)
        return rows[:limit] if limit else rows

    def first(self, model: Type[T], **equals: Any) -> Optional[T]:
        rows = self.find(model, limit=1, **equals)
        return rows[0] if rows else None

    def _acknowledge(self, record) -> Any:
        key = _primary_key(type(record))
        if not getattr(record, key):
            setattr(record, key, f"demo-{record.__tablename__}-{next(self._ids)}")
        return getattr(record, key)

    def save(self, record) -> Any:
        return self._acknowledge(record)

    def update(self, record, **fields: Any) -> Any:
        for name, value in fields.items():
            setattr(record, name, value)
        return self._acknowledge(record)

    def delete(self, record) -> None:
        _logger.info('demo mode: delete acknowledged', extra={'table': record.__tablename__})

    def save_all(self, records: Sequence) -> List[Any]:
        return [self._acknowledge(record) for record in records]


__all__ = ['DemoGateway', 'StoreGateway']
