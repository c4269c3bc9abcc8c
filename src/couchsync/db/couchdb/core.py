"""
CouchDB connection management.
Contains CouchConnection, which owns the HTTP client shared by every
CouchDatabase handle opened through it.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ...config import ConnectionSettings
from ...exceptions import ConflictError, DatabaseError, DocumentNotFound
from .documents import CouchDatabase

logger = logging.getLogger(__name__)

DEFAULT_URL = 'http://127.0.0.1:5984'


def error_from_response(response: httpx.Response) -> DatabaseError:
    """Map a CouchDB error response ({"error": ..., "reason": ...}) to an exception"""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    error = body.get('error')
    reason = body.get('reason')
    status = response.status_code

    if status == 404:
        return DocumentNotFound(status=status, error=error or 'not_found', reason=reason)
    if status == 409:
        return ConflictError(status=status, error=error or 'conflict', reason=reason)
    message = None if reason else f"CouchDB returned HTTP {status}"
    return DatabaseError(message=message, status=status, error=error, reason=reason)


class CouchConnection:
    """
    Connection to one CouchDB server.

    Usage:
        async with CouchConnection('http://localhost:5984') as couch:
            db = couch.database('todos')
            await db.save({'name': 'Test Todo'})
    """

    def __init__(
        self,
        url: str = DEFAULT_URL,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url.rstrip('/')
        auth = (username, password or '') if username else None
        self._client = httpx.AsyncClient(
            base_url=self.url,
            auth=auth,
            timeout=timeout,
            transport=transport,
            headers={'Accept': 'application/json'},
        )

    @classmethod
    def from_settings(cls, settings: ConnectionSettings,
                      transport: Optional[httpx.AsyncBaseTransport] = None) -> "CouchConnection":
        return cls(settings.url, settings.username, settings.password, settings.timeout, transport)

    def __repr__(self) -> str:
        return f"CouchConnection({self.url!r})"

    def database(self, name: str) -> CouchDatabase:
        """Handle for the named database (no request is made)"""
        return CouchDatabase(self, name)

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send one request, raising a DatabaseError subclass for failures"""
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            logger.error(f"CouchDB {method} {path} failed: {e}")
            raise DatabaseError(e, message=f"CouchDB request failed: {e}") from e

        if response.status_code >= 400:
            raise error_from_response(response)
        return response

    async def info(self) -> Dict[str, Any]:
        """Server welcome document (version, vendor)"""
        response = await self.request('GET', '/')
        return response.json()

    async def aclose(self) -> None:
        await self._client.aclose()
        logger.info(f"CouchConnection: closed {self.url}")

    async def __aenter__(self) -> "CouchConnection":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
