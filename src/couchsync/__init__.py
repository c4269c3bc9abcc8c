"""
couchsync package.

Backbone-style model persistence for CouchDB: a sync adapter translating
read, create, update and delete into document database calls, plus the
Model and Collection classes that use it.
"""

__version__ = "0.1.0"

from .exceptions import (
    ConflictError,
    CouchSyncError,
    DatabaseError,
    DocumentNotFound,
    MissingDatabase,
    MissingId,
    NoResults,
    UnsupportedMethod,
)
from .models import Collection, Model
from .sync import Method, SyncAdapter, get_view_name

__all__ = [
    "SyncAdapter", "Method", "get_view_name",
    "Model", "Collection",
    "CouchSyncError", "MissingDatabase", "DatabaseError", "DocumentNotFound",
    "ConflictError", "MissingId", "NoResults", "UnsupportedMethod",
]
