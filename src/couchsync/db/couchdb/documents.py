"""
CouchDB document operations.
Contains the CouchDatabase handle speaking the CouchDB HTTP API.
"""

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from urllib.parse import quote

from ..handle import DatabaseHandle, Document, Row, SaveResult, split_view_name
from ...exceptions import DatabaseError, DocumentNotFound

if TYPE_CHECKING:
    from .core import CouchConnection

logger = logging.getLogger(__name__)

# query parameters CouchDB expects as JSON values
JSON_PARAMS = {'key', 'keys', 'startkey', 'endkey', 'start_key', 'end_key'}


def encode_params(params: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Encode view query options as CouchDB query string values"""
    encoded = {}
    for key, value in (params or {}).items():
        if key in JSON_PARAMS:
            encoded[key] = json.dumps(value)
        elif isinstance(value, bool):
            encoded[key] = 'true' if value else 'false'
        else:
            encoded[key] = str(value)
    return encoded


def quote_id(id: str) -> str:
    """URL-quote a document id, keeping the _design/ prefix readable"""
    if id.startswith('_design/'):
        return '_design/' + quote(id[len('_design/'):], safe='')
    return quote(id, safe='')


def save_result(body: Dict[str, Any]) -> SaveResult:
    if 'rev' not in body:
        raise DatabaseError(message=f"Unexpected CouchDB save response: {body}")
    return {'ok': body.get('ok', True), 'id': body.get('id'), 'rev': body['rev']}


class CouchDatabase(DatabaseHandle):
    """CouchDB implementation of DatabaseHandle"""

    def __init__(self, connection: "CouchConnection", name: str):
        self.connection = connection
        self.name = name

    def __repr__(self) -> str:
        return f"CouchDatabase({self.connection.url!r}, {self.name!r})"

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, CouchDatabase)
                and other.name == self.name
                and other.connection.url == self.connection.url)

    def __hash__(self) -> int:
        return hash((self.connection.url, self.name))

    def _path(self, *parts: str) -> str:
        return '/' + '/'.join([quote(self.name, safe='')] + list(parts))

    # Database level operations

    async def create(self) -> None:
        await self.connection.request('PUT', self._path())
        logger.info(f"CouchDatabase: created {self.name}")

    async def destroy(self) -> None:
        await self.connection.request('DELETE', self._path())
        logger.info(f"CouchDatabase: destroyed {self.name}")

    async def exists(self) -> bool:
        try:
            await self.connection.request('HEAD', self._path())
            return True
        except DocumentNotFound:
            return False

    async def info(self) -> Dict[str, Any]:
        response = await self.connection.request('GET', self._path())
        return response.json()

    # Document operations

    async def get(self, id: str) -> Document:
        response = await self.connection.request('GET', self._path(quote_id(id)))
        return response.json()

    async def head(self, id: str) -> str:
        """Current revision of a document, read from the ETag header"""
        response = await self.connection.request('HEAD', self._path(quote_id(id)))
        etag = response.headers.get('etag', '')
        return etag.strip('"')

    async def _current_rev(self, id: str) -> Optional[str]:
        try:
            return await self.head(id) or None
        except DocumentNotFound:
            return None

    async def save(self, *args: Any):
        id, body = self._split_save_args(args)

        if id is None and isinstance(body, list):
            response = await self.connection.request('POST', self._path('_bulk_docs'), json={'docs': body})
            return [
                save_result(item) if 'rev' in item else item
                for item in response.json()
            ]

        if id is None:
            doc_id = body.get('_id')
            if doc_id:
                response = await self.connection.request('PUT', self._path(quote_id(doc_id)), json=body)
            else:
                response = await self.connection.request('POST', self._path(), json=body)
            return save_result(response.json())

        # overwrite the latest revision unless the caller pinned one
        doc = {k: v for k, v in body.items() if k != '_id'}
        if not doc.get('_rev'):
            doc.pop('_rev', None)
            rev = await self._current_rev(id)
            if rev:
                doc['_rev'] = rev
        response = await self.connection.request('PUT', self._path(quote_id(id)), json=doc)
        return save_result(response.json())

    async def remove(self, id: str, rev: Optional[str] = None) -> SaveResult:
        if not rev:
            rev = await self.head(id)
        response = await self.connection.request('DELETE', self._path(quote_id(id)), params={'rev': rev})
        return save_result(response.json())

    # Queries

    async def all(self, params: Optional[Dict[str, Any]] = None) -> List[Row]:
        return await self._query(self._path('_all_docs'), params)

    async def view(self, name: str, params: Optional[Dict[str, Any]] = None) -> List[Row]:
        design, view = split_view_name(name)
        path = self._path('_design', quote(design, safe=''), '_view', quote(view, safe=''))
        return await self._query(path, params)

    async def _query(self, path: str, params: Optional[Dict[str, Any]]) -> List[Row]:
        params = dict(params or {})
        keys = params.pop('keys', None)
        if keys is not None:
            response = await self.connection.request('POST', path, params=encode_params(params), json={'keys': keys})
        else:
            response = await self.connection.request('GET', path, params=encode_params(params))
        return [Row.from_json(row) for row in response.json().get('rows', [])]
