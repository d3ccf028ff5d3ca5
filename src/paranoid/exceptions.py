"""
Paranoid Exceptions

Error types raised by soft-delete repositories and paranoid records.
Storage failures are not wrapped: SQLAlchemy errors propagate as-is.
"""

from typing import Any, Sequence


class ParanoidError(Exception):
    """Base class for all paranoid errors"""


class ConfigurationError(ParanoidError, ValueError):
    """Invalid settings, or a model that cannot be made paranoid"""


class RecordNotFound(ParanoidError, LookupError):
    """Raised by find() when one or more requested ids are not visible"""

    def __init__(self, model: type, ids: Sequence[Any] = ()):
        self.model = model
        self.ids = tuple(ids)
        name = getattr(model, "__name__", str(model))
        if not self.ids:
            message = f"Couldn't find {name} without an ID"
        elif len(self.ids) == 1:
            message = f"Couldn't find {name} with ID={self.ids[0]}"
        else:
            message = f"Couldn't find all {name} with IDs ({', '.join(str(i) for i in self.ids)})"
        super().__init__(message)


class FrozenRecordError(ParanoidError, AttributeError):
    """Raised when assigning to a record after it has been soft deleted"""

    def __init__(self, record: Any, attribute: str):
        self.record = record
        self.attribute = attribute
        super().__init__(f"can't modify frozen {type(record).__name__}: attribute {attribute!r}")
