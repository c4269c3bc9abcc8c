"""
In-process database handle with CouchDB semantics.
Used for tests and for running models without a CouchDB server.
"""

import copy
import logging
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .handle import DatabaseHandle, Document, Row, SaveResult, split_view_name
from ..exceptions import ConflictError, DocumentNotFound

logger = logging.getLogger(__name__)

DESIGN_PREFIX = '_design/'


def collation_key(value: Any) -> Tuple[int, Any]:
    """Sort key following CouchDB view collation: null, false, true, numbers, strings, arrays, objects"""
    if value is None:
        return (0, 0)
    if value is False:
        return (1, 0)
    if value is True:
        return (2, 0)
    if isinstance(value, (int, float)):
        return (3, value)
    if isinstance(value, str):
        return (4, value)
    if isinstance(value, (list, tuple)):
        return (5, tuple(collation_key(v) for v in value))
    if isinstance(value, dict):
        return (6, tuple((k, collation_key(v)) for k, v in value.items()))
    return (7, str(value))


class MemoryDatabase(DatabaseHandle):
    """
    Dictionary-backed database handle.

    Revisions follow the CouchDB "<generation>-<hex>" shape and writes
    without the current revision are rejected, except for save(id, doc)
    which overwrites the latest revision. Views are declared with design
    documents whose map functions are Python callables returning
    (key, value) pairs:

        await db.save('_design/Tasks', {'views': {'all': {
            'map': lambda doc: [(doc['_id'], 1)] if doc.get('type') == 'Task' else []
        }}})
    """

    def __init__(self, name: str = 'memory'):
        self.name = name
        self._docs: Dict[str, Document] = {}
        self._revs: Dict[str, str] = {}     # latest revision, tombstones included

    def __repr__(self) -> str:
        return f"MemoryDatabase({self.name!r}, docs={len(self._docs)})"

    def _next_rev(self, id: str) -> str:
        current = self._revs.get(id)
        generation = int(current.split('-', 1)[0]) + 1 if current else 1
        return f"{generation}-{uuid.uuid4().hex}"

    async def get(self, id: str) -> Document:
        doc = self._docs.get(id)
        if doc is None:
            reason = 'deleted' if id in self._revs else 'missing'
            raise DocumentNotFound(reason=reason)
        return copy.deepcopy(doc)

    async def save(self, *args: Any):
        id, body = self._split_save_args(args)
        if id is None and isinstance(body, list):
            return [self._bulk_save_one(doc) for doc in body]
        return self._save_one(id, body)

    def _bulk_save_one(self, doc: Document) -> SaveResult:
        try:
            return self._save_one(None, doc)
        except ConflictError as e:
            return {'id': doc.get('_id'), 'error': e.error, 'reason': e.reason}

    def _save_one(self, id: Optional[str], doc: Document) -> SaveResult:
        overwrite = id is not None
        if id is None:
            id = doc.get('_id') or uuid.uuid4().hex
        rev = doc.get('_rev')
        current = self._docs.get(id)

        if current is not None:
            if rev != current['_rev'] and not (overwrite and not rev):
                raise ConflictError(reason='Document update conflict.')
        elif rev and rev != self._revs.get(id):
            raise ConflictError(reason='Document update conflict.')

        new_rev = self._next_rev(id)
        stored = copy.deepcopy(doc)
        stored['_id'] = id
        stored['_rev'] = new_rev
        self._docs[id] = stored
        self._revs[id] = new_rev
        logger.debug(f"{self.name}: saved {id} at {new_rev}")
        return {'ok': True, 'id': id, 'rev': new_rev}

    async def remove(self, id: str, rev: Optional[str] = None) -> SaveResult:
        current = self._docs.get(id)
        if current is None:
            raise DocumentNotFound(reason='deleted' if id in self._revs else 'missing')
        if rev and rev != current['_rev']:
            raise ConflictError(reason='Document update conflict.')

        new_rev = self._next_rev(id)
        del self._docs[id]
        self._revs[id] = new_rev
        logger.debug(f"{self.name}: removed {id} at {new_rev}")
        return {'ok': True, 'id': id, 'rev': new_rev}

    async def all(self, params: Optional[Dict[str, Any]] = None) -> List[Row]:
        rows = [
            Row(id=id, key=id, value={'rev': doc['_rev']}, doc=doc)
            for id, doc in sorted(self._docs.items())
        ]
        return self._apply_params(rows, params or {})

    async def view(self, name: str, params: Optional[Dict[str, Any]] = None) -> List[Row]:
        design, view = split_view_name(name)
        ddoc = self._docs.get(DESIGN_PREFIX + design)
        if ddoc is None:
            raise DocumentNotFound(reason='missing')
        map_fn = ddoc.get('views', {}).get(view, {}).get('map')
        if not callable(map_fn):
            raise DocumentNotFound(reason='missing_named_view')

        rows = []
        for id, doc in sorted(self._docs.items()):
            if id.startswith(DESIGN_PREFIX):
                continue
            for key, value in self._emit(map_fn, doc):
                rows.append(Row(id=id, key=key, value=value, doc=doc))
        rows.sort(key=lambda row: (collation_key(row.key), row.id))
        return self._apply_params(rows, params or {})

    @staticmethod
    def _emit(map_fn: Callable[[Document], Iterable], doc: Document) -> Iterable:
        return map_fn(copy.deepcopy(doc)) or ()

    def _apply_params(self, rows: List[Row], params: Dict[str, Any]) -> List[Row]:
        descending = bool(params.get('descending'))
        if descending:
            rows = list(reversed(rows))

        if 'key' in params:
            wanted = collation_key(params['key'])
            rows = [row for row in rows if collation_key(row.key) == wanted]
        if 'keys' in params:
            rows = [row for key in params['keys'] for row in rows
                    if collation_key(row.key) == collation_key(key)]

        lower, upper = params.get('startkey'), params.get('endkey')
        if descending:
            lower, upper = upper, lower
        if lower is not None:
            rows = [row for row in rows if collation_key(row.key) >= collation_key(lower)]
        if upper is not None:
            rows = [row for row in rows if collation_key(row.key) <= collation_key(upper)]

        skip = int(params.get('skip') or 0)
        rows = rows[skip:]
        if params.get('limit') is not None:
            rows = rows[:int(params['limit'])]

        include_docs = bool(params.get('include_docs'))
        return [
            Row(id=row.id, key=row.key, value=row.value,
                doc=copy.deepcopy(row.doc) if include_docs else None)
            for row in rows
        ]
