"""
Database handle contract used by the sync adapter.
A handle represents one database on one backend; the adapter only decides
which handle to use and never implements persistence itself.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union


@dataclass
class Row:
    """One row of a view or all-documents query"""
    id: Optional[str]
    key: Any = None
    value: Any = None
    doc: Optional[Dict[str, Any]] = None

    @classmethod
    def from_json(cls, row: Dict[str, Any]) -> "Row":
        return cls(id=row.get('id'), key=row.get('key'), value=row.get('value'), doc=row.get('doc'))


Document = Dict[str, Any]
SaveResult = Dict[str, Any]


class DatabaseHandle(ABC):
    """
    Abstract document database.

    Every operation is a coroutine that returns the backend result or raises
    a couchsync.exceptions.DatabaseError subclass.
    """

    name: str = ""

    @abstractmethod
    async def get(self, id: str) -> Document:
        """Fetch one document by id"""
        pass

    @abstractmethod
    async def view(self, name: str, params: Optional[Dict[str, Any]] = None) -> List[Row]:
        """Query a named view ("design/view")"""
        pass

    @abstractmethod
    async def all(self, params: Optional[Dict[str, Any]] = None) -> List[Row]:
        """Query every document in the database"""
        pass

    @abstractmethod
    async def save(self, *args: Any) -> Union[SaveResult, List[SaveResult]]:
        """
        Save documents.

        save(doc)         -> create (or write under doc['_id'])
        save(id, doc)     -> overwrite the document stored under id
        save([doc, ...])  -> bulk save, one result per document

        Each result carries 'id' and 'rev'.
        """
        pass

    @abstractmethod
    async def remove(self, id: str, rev: Optional[str] = None) -> SaveResult:
        """Delete a document; without rev the current revision is removed"""
        pass

    def _split_save_args(self, args: tuple) -> tuple:
        """Normalize save() arguments to (id, doc-or-docs)"""
        if len(args) == 1:
            return None, args[0]
        if len(args) == 2:
            return args[0], args[1]
        raise TypeError(f"save() takes a document, an id and a document, or a list of documents ({len(args)} arguments given)")


def split_view_name(name: str) -> tuple:
    """Split "design/view" into its two parts"""
    if name.startswith('_design/'):
        name = name[len('_design/'):]
    design, _, view = name.partition('/')
    if not design or not view:
        raise ValueError(f"View name must look like 'design/view', got '{name}'")
    return design, view
