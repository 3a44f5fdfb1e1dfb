"""
Store exceptions

Lookups that find nothing return None or an empty list; they never raise.
Connection and timeout failures from asyncpg are not wrapped so callers can
apply their own retry policy.
"""
from typing import Optional


class StoreError(Exception):
    """Base class for errors raised by the repositories."""

    def __init__(self, message: str, operation: str, entity: Optional[str] = None):
        self.operation = operation
        self.entity = entity
        context = f"{operation}({entity})" if entity else operation
        super().__init__(f"{context}: {message}")


class ConstraintViolationError(StoreError):
    """Raised when a write breaks a schema constraint (e.g. unknown sender)."""
    pass
