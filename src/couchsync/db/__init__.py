"""
Database handles for the sync adapter.

Architecture:
- DatabaseHandle: contract every backend implements (get, view, all, save, remove)
- CouchDatabase / CouchConnection: CouchDB over HTTP
- MemoryDatabase: in-process handle with CouchDB semantics
- DatabaseFactory: resolves a model's database value to a handle
"""

from .handle import DatabaseHandle, Row
from .factory import DatabaseFactory, database_source
from .couchdb import CouchConnection, CouchDatabase
from .memory import MemoryDatabase

__all__ = ['DatabaseHandle', 'Row', 'DatabaseFactory', 'database_source',
           'CouchConnection', 'CouchDatabase', 'MemoryDatabase']
