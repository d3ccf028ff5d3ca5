"""
Soft Delete Query Scopes

Explicit, immutable condition sets merged into lookups and counts.
A scope is passed as an argument for the duration of one call and never
stored on the model, the session or in thread-local state.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from sqlalchemy import Select, and_, true
from sqlalchemy.sql.elements import ColumnElement

from paranoid.exceptions import ConfigurationError

DELETED_AT = "deleted_at"


@dataclass(frozen=True, eq=False)
class QueryScope:
    """A set of criteria combined with AND"""

    criteria: Tuple[ColumnElement, ...] = ()

    @classmethod
    def of(cls, *criteria: ColumnElement) -> "QueryScope":
        return cls(tuple(criteria))

    def merge(self, other: Optional["QueryScope"]) -> "QueryScope":
        """Return a scope holding this scope's criteria followed by other's"""
        if other is None or not other.criteria:
            return self
        return QueryScope(self.criteria + other.criteria)

    def where(self, *criteria: ColumnElement) -> "QueryScope":
        return QueryScope(self.criteria + tuple(criteria))

    def apply(self, stmt: Select) -> Select:
        if not self.criteria:
            return stmt
        return stmt.where(*self.criteria)

    @property
    def clause(self) -> ColumnElement:
        if not self.criteria:
            return true()
        if len(self.criteria) == 1:
            return self.criteria[0]
        return and_(*self.criteria)

    def __bool__(self) -> bool:
        return bool(self.criteria)

    def __str__(self) -> str:
        return str(self.clause.compile(compile_kwargs={"literal_binds": True}))


def deleted_at_column(model: Any) -> ColumnElement:
    """Return the table column backing ``deleted_at`` for a mapped model"""
    table = getattr(model, "__table__", None)
    if table is None or DELETED_AT not in table.c:
        raise ConfigurationError(f"{getattr(model, '__name__', model)} has no {DELETED_AT} column")
    return table.c[DELETED_AT]


def live_scope(model: Any) -> QueryScope:
    """<table>.deleted_at IS NULL"""
    return QueryScope.of(deleted_at_column(model).is_(None))


def deleted_scope(model: Any) -> QueryScope:
    """<table>.deleted_at IS NOT NULL"""
    return QueryScope.of(deleted_at_column(model).is_not(None))


def filter_deleted(stmt: Select, model: Any) -> Select:
    """Filter out soft-deleted records from a select"""
    return live_scope(model).apply(stmt)


def only_deleted(stmt: Select, model: Any) -> Select:
    """Filter to show only soft-deleted records"""
    return deleted_scope(model).apply(stmt)

