"""
Backbone-style sync for CouchDB.

Translates the persistence verbs read, create, update and delete into calls
on a database handle and reports the outcome through the ``success`` or
``error`` callback of the options mapping. Exactly one callback fires per
call; failures are never raised from sync().
"""

import logging
from collections.abc import Mapping
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from .config import Config
from .db.factory import DatabaseFactory
from .exceptions import MissingDatabase, MissingId, NoResults, UnsupportedMethod
from .models import Collection, Model
from .utils import maybe_await, setup_logging

logger = logging.getLogger(__name__)


class Method:
    """Sync verbs"""
    READ = 'read'
    CREATE = 'create'
    UPDATE = 'update'
    DELETE = 'delete'


def _noop(*args: Any) -> None:
    return None


def get_view_name(value: Any) -> Optional[str]:
    """View name from a string or from a function returning one"""
    if callable(value):
        return value()
    if isinstance(value, str):
        return value
    return None


def row_document(row: Any) -> Any:
    """Document carried by a view / all-docs row; None for error rows and deleted ids"""
    if isinstance(row, Mapping):
        if 'error' in row:
            return None
        return row.get('doc', row)
    return getattr(row, 'doc', row)


class SyncAdapter:
    """
    Sync adapter bound to a default database.

    Usage:
        couch = SyncAdapter(database=CouchConnection().database('todos'))

        class Todo(couch.Model):
            def initialize(self):
                self.set(type='Todo')

        class Tasks(couch.Collection):
            view_name = 'Tasks/all'

        todo = Todo(name='Test Todo')
        await todo.save()
    """

    def __init__(self, database: Optional[Any] = None,
                 connection_factory: Optional[Callable[[], Any]] = None):
        self.factory = DatabaseFactory(database, connection_factory)
        self.Model = type('Model', (Model,), {'adapter': self, '__module__': __name__})
        self.Collection = type('Collection', (Collection,), {
            'adapter': self,
            'model': self.Model,
            '__module__': __name__,
        })

    @classmethod
    def from_config(cls, config_file: str = '') -> "SyncAdapter":
        """Adapter whose connection and default database come from a config file"""
        from .db.couchdb import CouchConnection

        Config.initialize(config_file)
        setup_logging(Config.get('log_level', 'info'))
        settings = Config.get_connection_settings()
        adapter = cls(connection_factory=partial(CouchConnection.from_settings, settings))

        db_name = Config.get_db_name()
        if db_name:
            adapter.factory.default = adapter.factory.connection().database(db_name)
        logger.info(f"SyncAdapter: configured for {settings.url} (default database: {db_name})")
        return adapter

    @property
    def default(self) -> Optional[Any]:
        return self.factory.default

    def get_database(self, model: Any) -> Optional[Any]:
        """Handle used for a model or collection"""
        return self.factory.resolve(getattr(model, 'database', None), model)

    async def close(self) -> None:
        await self.factory.close()

    async def sync(self, method: str, model: Any, options: Optional[Dict[str, Any]] = None) -> None:
        options = options or {}
        success = options.get('success') or _noop
        error = options.get('error') or _noop

        async def fail(err: BaseException) -> None:
            logger.warning(f"sync {method} failed for {model!r}: {err}")
            await maybe_await(error(err))

        try:
            db = self.get_database(model)
        except Exception as e:
            return await fail(e)
        if db is None:
            return await fail(MissingDatabase())

        logger.debug(f"sync {method} {model!r} on {db!r}")

        if method == Method.READ:
            model_id = getattr(model, 'id', None)
            if model_id:
                try:
                    doc = await db.get(model_id)
                except Exception as e:
                    failure = NoResults(e)
                    failure.__cause__ = e
                    return await fail(failure)
                await maybe_await(success(doc))
                return

            view_name = get_view_name(getattr(model, 'view_name', None))
            data = dict(options.get('data') or {})
            data['include_docs'] = True
            try:
                if view_name:
                    rows = await db.view(view_name, data)
                else:
                    rows = await db.all(data)
            except Exception as e:
                return await fail(e)
            docs: List[Any] = [doc for doc in map(row_document, rows) if doc is not None]
            await maybe_await(success(docs))

        elif method in (Method.UPDATE, Method.DELETE) and not getattr(model, 'id', None):
            await fail(MissingId(method))

        elif method == Method.CREATE:
            try:
                res = await db.save(model.to_json())
            except Exception as e:
                return await fail(e)
            await maybe_await(success({'_rev': res['rev'], '_id': res['id']}))

        elif method == Method.UPDATE:
            # full overwrite with the current attributes, not a merge
            try:
                res = await db.save(model.id, model.to_json())
            except Exception as e:
                return await fail(e)
            await maybe_await(success({'_rev': res['rev']}))

        elif method == Method.DELETE:
            rev = model.to_json().get('_rev')
            try:
                if rev:
                    res = await db.remove(model.id, rev)
                else:
                    res = await db.remove(model.id)
            except Exception as e:
                return await fail(e)
            await maybe_await(success({'_rev': res['rev']}))

        else:
            await fail(UnsupportedMethod(method))


_shared_adapter: Optional[SyncAdapter] = None


def shared_adapter() -> SyncAdapter:
    """Adapter used by models that were not created from a SyncAdapter"""
    global _shared_adapter
    if _shared_adapter is None:
        _shared_adapter = SyncAdapter()
    return _shared_adapter
