"""
Exceptions shared by the sync adapter and the database handles.
Organized by concern: configuration, backend operations, dispatch.
"""

from typing import Any, Optional


class CouchSyncError(Exception):
    """Base class for every error reported by couchsync."""


# ==================== Configuration Exceptions ====================

class MissingDatabase(CouchSyncError):
    """Raised when neither the model nor the adapter provides a database."""

    def __init__(self, message: str = "Model or Collection must have a database!"):
        self.message = message
        super().__init__(message)


# ==================== Database Layer Exceptions ====================

class DatabaseError(CouchSyncError):
    """Raised for any backend failure (connection, HTTP status, bad response)."""

    def __init__(self, e=None, message=None, status: Optional[int] = None,
                 error: Optional[str] = None, reason: Optional[str] = None):
        if message:
            super().__init__(message)
        elif reason:
            super().__init__(f"{error}: {reason}" if error else reason)
        elif e:
            super().__init__(str(e))
        else:
            super().__init__("Database error")
        self.e = e
        self.message = message
        self.status = status
        self.error = error
        self.reason = reason


class DocumentNotFound(DatabaseError):
    """Raised when a document (or database) does not exist."""

    def __init__(self, e=None, message=None, status: Optional[int] = 404,
                 error: Optional[str] = "not_found", reason: Optional[str] = None):
        if not (message or reason or e):
            message = "Document not found"
        super().__init__(e, message, status, error, reason)


class ConflictError(DatabaseError):
    """Raised when a write is rejected because of a stale or missing revision."""

    def __init__(self, e=None, message=None, status: Optional[int] = 409,
                 error: Optional[str] = "conflict", reason: Optional[str] = None):
        if not (message or reason or e):
            message = "Document update conflict"
        super().__init__(e, message, status, error, reason)


# ==================== Dispatch Exceptions ====================

class NoResults(CouchSyncError):
    """Single-document read failed. The backend error is kept in ``error``."""

    def __init__(self, error: Optional[BaseException] = None, message: str = "No results"):
        self.error = error
        self.message = message
        super().__init__(message)


class MissingId(CouchSyncError):
    """Raised when update or delete is requested for a model that has no id."""

    def __init__(self, method: str):
        self.method = method
        self.message = f"Cannot {method} a model without an id"
        super().__init__(self.message)


class UnsupportedMethod(CouchSyncError):
    """Raised for a sync verb other than read, create, update or delete."""

    def __init__(self, method: Any):
        self.method = method
        self.message = f"Unsupported sync method: {method!r}"
        super().__init__(self.message)
