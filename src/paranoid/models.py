"""
Paranoid Models

Declarative base and the mixin that turns a mapped class into a paranoid
record: a nullable ``deleted_at`` timestamp, destroy hooks, and freezing
once the record has been soft deleted.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, Optional

from sqlalchemy import Column, DateTime, inspect
from sqlalchemy.orm import declarative_base

from paranoid.config import get_settings, normalize_timezone
from paranoid.exceptions import FrozenRecordError

Base = declarative_base()

_FROZEN_FLAG = "_paranoid_frozen"


class ParanoidMixin:
    """
    Soft-delete columns and record behaviour

    Mix into a declarative class:

        class Widget(ParanoidMixin, Base):
            __tablename__ = "widgets"
            id = Column(Integer, primary_key=True)

    Set ``default_timezone`` to "utc" or "local" on the class to override
    PARANOID_DEFAULT_TIMEZONE for that model.
    """

    deleted_at = Column(DateTime, nullable=True, index=True)

    default_timezone: ClassVar[Optional[str]] = None

    @classmethod
    def timezone_mode(cls) -> str:
        if cls.default_timezone is not None:
            return normalize_timezone(cls.default_timezone)
        return get_settings().default_timezone

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_frozen(self) -> bool:
        return bool(self.__dict__.get(_FROZEN_FLAG, False))

    def freeze(self) -> None:
        """Forbid any further attribute assignment on this instance"""
        self.__dict__[_FROZEN_FLAG] = True

    def thaw(self) -> None:
        self.__dict__.pop(_FROZEN_FLAG, None)

    def __setattr__(self, key: str, value: Any) -> None:
        # ORM bookkeeping (_sa_instance_state etc.) must keep working
        if self.__dict__.get(_FROZEN_FLAG) and not key.startswith("_sa_"):
            raise FrozenRecordError(self, key)
        super().__setattr__(key, value)

    def __delattr__(self, key: str) -> None:
        if self.__dict__.get(_FROZEN_FLAG) and not key.startswith("_sa_"):
            raise FrozenRecordError(self, key)
        super().__delattr__(key)

    def before_destroy(self) -> Optional[bool]:
        """Called before a soft delete; return False to cancel it"""
        return None

    def after_destroy(self) -> None:
        """Called after a soft delete has been written"""
        return None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for attr in inspect(type(self)).column_attrs:
            value = getattr(self, attr.key)
            if isinstance(value, (datetime, date)):
                value = value.isoformat()
            elif isinstance(value, Decimal):
                value = float(value)
            result[attr.key] = value
        return result
