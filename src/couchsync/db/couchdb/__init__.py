"""
CouchDB database driver implementation.
"""

from .core import CouchConnection, error_from_response
from .documents import CouchDatabase, encode_params

__all__ = ['CouchConnection', 'CouchDatabase', 'encode_params', 'error_from_response']
