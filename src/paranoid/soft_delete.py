"""
Soft Delete Repositories

Wraps a plain Repository so that lookups and counts only see live rows,
and destroying a record sets its deleted_at timestamp instead of removing
the row. The wrapped repository's operations stay reachable as
find_with_deleted, count_with_deleted and hard_destroy.

    repo = enable_soft_delete(Repository(db, Widget))

    repo.find("all")
    # SELECT ... FROM widgets WHERE widgets.deleted_at IS NULL

    repo.find("first", where=[Widget.title == "test"], order_by=Widget.title)
    # SELECT ... WHERE widgets.deleted_at IS NULL AND widgets.title = ? ORDER BY widgets.title LIMIT 1

    repo.find_with_deleted("all")
    repo.find("all", with_deleted=True)
    # SELECT ... FROM widgets

    repo.count(Widget.title == "test")
    # SELECT count(*) FROM widgets WHERE widgets.deleted_at IS NULL AND widgets.title = ?

    repo.destroy(widget)
    # UPDATE widgets SET deleted_at=? WHERE widgets.id = ?

    repo.hard_destroy(widget)
    # DELETE FROM widgets WHERE widgets.id = ?
"""

import abc
import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Optional, Union

from sqlalchemy import Select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy.sql.elements import ColumnElement

from paranoid.config import UTC
from paranoid.exceptions import ConfigurationError
from paranoid.models import ParanoidMixin
from paranoid.repository import Repository
from paranoid.scopes import DELETED_AT, QueryScope, deleted_at_column, deleted_scope, live_scope

logger = logging.getLogger(__name__)

Clock = Callable[[Optional[tzinfo]], datetime]


class SoftDeletable(abc.ABC):
    """Capability implemented by repositories that soft delete"""

    @abc.abstractmethod
    def find(self, *args: Any, **options: Any) -> Any: ...

    @abc.abstractmethod
    def count(self, *criteria: ColumnElement, **options: Any) -> int: ...

    @abc.abstractmethod
    def find_with_deleted(self, *args: Any, **options: Any) -> Any: ...

    @abc.abstractmethod
    def count_with_deleted(self, *criteria: ColumnElement, **options: Any) -> int: ...

    @abc.abstractmethod
    def soft_destroy(self, record: Any) -> Any: ...

    @abc.abstractmethod
    def hard_destroy(self, record: Any) -> int: ...


class SoftDeleteRepository(SoftDeletable):
    """Decorates a Repository with soft-delete semantics"""

    def __init__(self, base: Repository, clock: Optional[Clock] = None):
        model = base.model
        if not (isinstance(model, type) and issubclass(model, ParanoidMixin)):
            raise ConfigurationError(f"{getattr(model, '__name__', model)} must mix in ParanoidMixin")
        deleted_at_column(model)
        self.base = base
        self.clock: Clock = clock or datetime.now

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.model.__name__}>"

    @property
    def model(self) -> Any:
        return self.base.model

    @property
    def db(self) -> Session:
        return self.base.db

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def live_scope(self) -> QueryScope:
        return live_scope(self.model)

    def _scoped(self, scope: Optional[QueryScope], with_deleted: bool) -> Optional[QueryScope]:
        if with_deleted:
            return scope
        return self.live_scope().merge(scope)

    def statement(self, with_deleted: bool = False, scope: Optional[QueryScope] = None, **options: Any) -> Select:
        return self.base.statement(scope=self._scoped(scope, with_deleted), **options)

    def find(self, *args: Any, with_deleted: bool = False, scope: Optional[QueryScope] = None, **options: Any) -> Any:
        return self.find_with_deleted(*args, scope=self._scoped(scope, with_deleted), **options)

    def count(
        self, *criteria: ColumnElement, with_deleted: bool = False, scope: Optional[QueryScope] = None
    ) -> int:
        return self.count_with_deleted(*criteria, scope=self._scoped(scope, with_deleted))

    def find_with_deleted(self, *args: Any, **options: Any) -> Any:
        return self.base.find(*args, **options)

    def count_with_deleted(self, *criteria: ColumnElement, **options: Any) -> int:
        return self.base.count(*criteria, **options)

    def find_only_deleted(self, *args: Any, scope: Optional[QueryScope] = None, **options: Any) -> Any:
        return self.base.find(*args, scope=deleted_scope(self.model).merge(scope), **options)

    def count_only_deleted(self, *criteria: ColumnElement, scope: Optional[QueryScope] = None) -> int:
        return self.base.count(*criteria, scope=deleted_scope(self.model).merge(scope))

    # ------------------------------------------------------------------
    # Destroying
    # ------------------------------------------------------------------

    def current_time(self) -> datetime:
        """
        Now, in UTC or local time according to the model's timezone mode

        Always naive, the way a plain DateTime column reads back.
        """
        if self.model.timezone_mode() == UTC:
            return self.clock(timezone.utc).replace(tzinfo=None)
        return self.clock(None)

    def soft_destroy(self, record: ParanoidMixin) -> ParanoidMixin:
        """
        Mark a record deleted without running hooks

        Records with a row, attached to this session or detached, get a
        single UPDATE of deleted_at. New records are left alone in storage.
        Either way the record is frozen.
        """
        if self.base.is_persisted(record):
            now = self.current_time()
            ident = self.base.identity(record)
            rows = self.base.update_all({DELETED_AT: now}, self.base.primary_key == ident)
            set_committed_value(record, DELETED_AT, now)
            logger.info("Soft deleted %s id=%s at %s (%d row)", self.model.__name__, ident, now.isoformat(), rows)
        else:
            logger.debug("Skipping soft delete update for unsaved %s", self.model.__name__)
        record.freeze()
        return record

    def soft_destroy_with_callbacks(self, record: ParanoidMixin) -> Union[ParanoidMixin, bool]:
        """Run before_destroy, soft_destroy and after_destroy; False if cancelled"""
        if record.before_destroy() is False:
            logger.warning("before_destroy cancelled deletion of %s", self.model.__name__)
            return False
        result = self.soft_destroy(record)
        record.after_destroy()
        return result

    def destroy(self, record: ParanoidMixin) -> Union[ParanoidMixin, bool]:
        """
        Soft delete with hooks inside a transaction

        Any exception rolls the transaction back, restores the record's
        previous deleted_at in memory, unfreezes it and propagates.
        """
        was_frozen = record.is_frozen
        previous = record.deleted_at
        try:
            with self.base.transaction():
                return self.soft_destroy_with_callbacks(record)
        except Exception as e:
            logger.error(f"Rolled back soft delete of {self.model.__name__}: {e}")
            set_committed_value(record, DELETED_AT, previous)
            if not was_frozen:
                record.thaw()
            raise

    def hard_destroy(self, record: ParanoidMixin) -> int:
        """Permanently remove the row; no scope and no hooks"""
        return self.base.delete(record)


def is_paranoid(target: Any) -> bool:
    """True if soft deletion already applies to a repository or model class"""
    if isinstance(target, type):
        return issubclass(target, (SoftDeletable, ParanoidMixin))
    return isinstance(target, SoftDeletable)


def enable_soft_delete(repository: Union[Repository, SoftDeletable], clock: Optional[Clock] = None) -> Any:
    """
    Give a repository soft-delete semantics

    Already paranoid repositories are returned unchanged, so calling this
    twice never wraps find/count twice.
    """
    if is_paranoid(repository):
        logger.debug("%r is already paranoid", repository)
        return repository
    return SoftDeleteRepository(repository, clock=clock)


def paranoid_repository(db: Session, model: Any, clock: Optional[Clock] = None) -> SoftDeleteRepository:
    return enable_soft_delete(Repository(db, model), clock=clock)
