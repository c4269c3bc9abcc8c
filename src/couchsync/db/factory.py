"""
Database resolution for models and collections.

The ``database`` attribute of a model or collection may hold nothing, a
database name, a prepared handle, or a provider function. Each shape is
classified once into a source object, and every source knows how to
produce its handle.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .handle import DatabaseHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DefaultDatabase:
    """No database given - use the adapter default"""

    def resolve(self, factory: "DatabaseFactory", context: Any) -> Any:
        return factory.default


@dataclass(frozen=True)
class DatabaseName:
    """A database name opened with the default connection settings"""
    name: str

    def resolve(self, factory: "DatabaseFactory", context: Any) -> Any:
        return factory.connection().database(self.name)


@dataclass(frozen=True)
class PreparedHandle:
    """An already opened handle, used as is"""
    handle: Any

    def resolve(self, factory: "DatabaseFactory", context: Any) -> Any:
        return self.handle


@dataclass(frozen=True)
class DatabaseProvider:
    """A function returning the handle, called with the model or collection"""
    provider: Callable[..., Any]

    def resolve(self, factory: "DatabaseFactory", context: Any) -> Any:
        # a method already bound to the model receives it as self
        if getattr(self.provider, '__self__', None) is context:
            return self.provider()
        return self.provider(context)


DatabaseSource = Union[DefaultDatabase, DatabaseName, PreparedHandle, DatabaseProvider]


def database_source(value: Any) -> DatabaseSource:
    """Classify a model's ``database`` value"""
    if value is None or value == '':
        return DefaultDatabase()
    if isinstance(value, str):
        return DatabaseName(value)
    if isinstance(value, DatabaseHandle):
        return PreparedHandle(value)
    if callable(value):
        return DatabaseProvider(value)
    return PreparedHandle(value)


class DatabaseFactory:
    """
    Resolves database handles for one adapter.

    Usage:
        factory = DatabaseFactory(default=MemoryDatabase(), connection_factory=CouchConnection)
        db = factory.resolve('todos', model)        # CouchConnection().database('todos')
        db = factory.resolve(None, model)           # the default
    """

    def __init__(self, default: Optional[Any] = None,
                 connection_factory: Optional[Callable[[], Any]] = None):
        self.default = default
        self._connection_factory = connection_factory
        self._connection: Optional[Any] = None

    def connection(self) -> Any:
        """Connection used to open databases given by name, built on first use"""
        if self._connection is None:
            if self._connection_factory is None:
                from .couchdb import CouchConnection
                self._connection_factory = CouchConnection
            self._connection = self._connection_factory()
            logger.info(f"DatabaseFactory: opened default connection {self._connection!r}")
        return self._connection

    def resolve(self, value: Any, context: Any = None) -> Optional[Any]:
        """Handle for a ``database`` value; may be None when nothing is configured"""
        return database_source(value).resolve(self, context)

    async def close(self) -> None:
        """Close the default connection if one was opened"""
        if self._connection is not None:
            aclose = getattr(self._connection, 'aclose', None)
            if aclose is not None:
                await aclose()
            self._connection = None
