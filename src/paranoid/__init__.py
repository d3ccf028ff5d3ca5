"""
Paranoid - soft-delete records for SQLAlchemy

Destroying a paranoid record sets its deleted_at timestamp; standard
lookups and counts then exclude it, with explicit escape hatches for
querying deleted rows and for permanent removal.
"""

from paranoid.exceptions import ConfigurationError, FrozenRecordError, ParanoidError, RecordNotFound
from paranoid.models import Base, ParanoidMixin
from paranoid.repository import ALL, FIRST, Repository
from paranoid.scopes import QueryScope, filter_deleted, live_scope, only_deleted
from paranoid.soft_delete import (
    SoftDeletable,
    SoftDeleteRepository,
    enable_soft_delete,
    is_paranoid,
    paranoid_repository,
)

__all__ = [
    "ALL",
    "FIRST",
    "Base",
    "ConfigurationError",
    "FrozenRecordError",
    "ParanoidError",
    "ParanoidMixin",
    "QueryScope",
    "RecordNotFound",
    "Repository",
    "SoftDeletable",
    "SoftDeleteRepository",
    "enable_soft_delete",
    "filter_deleted",
    "is_paranoid",
    "live_scope",
    "only_deleted",
    "paranoid_repository",
]
