"""
Repository - Unfiltered Data Access

Plain lookup, count, update and delete operations for one mapped model.
Nothing here knows about soft deletion: these are the host operations that
paranoid.soft_delete wraps, and the escape hatches it exposes unchanged.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generic, Iterator, List, Optional, Sequence, Type, TypeVar, Union

from sqlalchemy import Select, delete, func, inspect, select, update
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from paranoid.exceptions import ConfigurationError, RecordNotFound
from paranoid.scopes import QueryScope

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

ALL = "all"
FIRST = "first"

Criteria = Union[ColumnElement, Sequence[ColumnElement], None]


def _as_tuple(value: Any) -> tuple:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


class Repository(Generic[ModelT]):
    """Data access for a single mapped class, bound to a session"""

    def __init__(self, db: Session, model: Type[ModelT]):
        self.db = db
        self.model = model

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.model.__name__}>"

    @property
    def table_name(self) -> str:
        return self.model.__table__.name  # type: ignore[attr-defined]

    @property
    def primary_key(self) -> ColumnElement:
        keys = inspect(self.model).primary_key
        if len(keys) != 1:
            raise ConfigurationError(f"{self.model.__name__} must have a single-column primary key")
        return keys[0]

    def identity(self, record: ModelT) -> Any:
        return inspect(self.model).primary_key_from_instance(record)[0]

    def is_persisted(self, record: ModelT) -> bool:
        """True once the record has a row, whether attached to this session or detached"""
        return inspect(record).has_identity

    def coerce_id(self, ident: Any) -> Any:
        """Convert a requested id (e.g. a string from a URL) to the primary key's Python type"""
        try:
            python_type = self.primary_key.type.python_type
        except NotImplementedError:
            return ident
        if isinstance(ident, python_type):
            return ident
        try:
            return python_type(ident)
        except (TypeError, ValueError):
            raise RecordNotFound(self.model, [ident])

    def statement(
        self,
        where: Criteria = (),
        order_by: Any = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        scope: Optional[QueryScope] = None,
    ) -> Select:
        """
        Build the select a lookup runs

        Scope criteria come first, then caller conditions, all joined by AND.
        """
        stmt = select(self.model)
        if scope is not None:
            stmt = scope.apply(stmt)
        criteria = _as_tuple(where)
        if criteria:
            stmt = stmt.where(*criteria)
        ordering = _as_tuple(order_by)
        if ordering:
            stmt = stmt.order_by(*ordering)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt

    def find(
        self,
        *args: Any,
        where: Criteria = (),
        order_by: Any = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        scope: Optional[QueryScope] = None,
    ) -> Any:
        """
        Look records up

        find("all", ...)      -> list of records
        find("first", ...)    -> record or None
        find(1)               -> record, RecordNotFound when missing
        find(1, 2) / find([1, 2]) -> list, RecordNotFound unless all are found

        limit and offset only apply to "all" and "first"; passing them with
        ids raises ValueError.
        """
        if not args:
            raise RecordNotFound(self.model)

        head = args[0]
        if isinstance(head, str) and head in (ALL, FIRST) and len(args) == 1:
            if head == FIRST:
                stmt = self.statement(where=where, order_by=order_by, limit=1, offset=offset, scope=scope)
                return self.db.scalars(stmt).first()
            stmt = self.statement(where=where, order_by=order_by, limit=limit, offset=offset, scope=scope)
            return list(self.db.scalars(stmt).all())

        if limit is not None or offset is not None:
            raise ValueError("limit and offset cannot be combined with id lookups")
        if len(args) == 1 and isinstance(head, (list, tuple, set)):
            return self._find_from_ids(list(head), True, where, order_by, scope)
        return self._find_from_ids(list(args), len(args) > 1, where, order_by, scope)

    def _find_from_ids(
        self,
        ids: List[Any],
        expects_list: bool,
        where: Criteria,
        order_by: Any,
        scope: Optional[QueryScope],
    ) -> Any:
        ids = list(dict.fromkeys(self.coerce_id(i) for i in ids))
        if not ids:
            if expects_list:
                return []
            raise RecordNotFound(self.model)

        stmt = self.statement(where=where, order_by=order_by, scope=scope)
        stmt = stmt.where(self.primary_key.in_(ids))
        found: Dict[Any, ModelT] = {self.identity(r): r for r in self.db.scalars(stmt).all()}

        missing = [i for i in ids if i not in found]
        if missing:
            logger.debug("%s lookup missed ids %s", self.model.__name__, missing)
            raise RecordNotFound(self.model, ids)

        if not expects_list:
            return found[ids[0]]
        if order_by is not None:
            return list(found.values())
        return [found[i] for i in ids]

    def count(self, *criteria: ColumnElement, scope: Optional[QueryScope] = None) -> int:
        stmt = select(func.count()).select_from(self.model)
        if scope is not None:
            stmt = scope.apply(stmt)
        if criteria:
            stmt = stmt.where(*criteria)
        return int(self.db.scalar(stmt) or 0)

    def update_all(self, values: Dict[str, Any], *criteria: ColumnElement) -> int:
        """Write values straight to storage, bypassing hooks and the unit of work"""
        stmt = (
            update(self.model)
            .where(*criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount

    def delete(self, record: ModelT) -> int:
        """Permanently remove a record's row, bypassing hooks"""
        if not self.is_persisted(record):
            return 0
        ident = self.identity(record)
        stmt = delete(self.model).where(self.primary_key == ident).execution_options(synchronize_session=False)
        rows = self.db.execute(stmt).rowcount
        if record in self.db:
            self.db.expunge(record)
        logger.info("Hard deleted %s id=%s (%d row)", self.model.__name__, ident, rows)
        return rows

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """SAVEPOINT inside an open transaction, otherwise a new transaction"""
        if self.db.in_transaction():
            with self.db.begin_nested():
                yield self.db
        else:
            with self.db.begin():
                yield self.db
