"""
Analytics Errors

Validation failures abort a computation and carry enough context
(entity, id, field) to locate the offending record.
"""

from typing import Any, Optional


class AnalyticsError(Exception):
    """Base class for retail analytics errors"""


class DataValidationError(AnalyticsError, ValueError):
    """A record in the input snapshot is unusable"""

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        entity_id: Any = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.entity = entity
        self.entity_id = entity_id
        self.field = field

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "entity": self.entity,
            "entity_id": self.entity_id,
            "field": self.field,
        }


class ReferentialIntegrityError(DataValidationError):
    """A foreign key does not resolve to an existing row"""


class InvalidValueError(DataValidationError):
    """A field holds a missing, negative, non-numeric or duplicate value"""
