"""
Model and Collection base classes persisted through a SyncAdapter.

CouchDB documents always use ``_id`` and ``_rev``; both are kept in the
attribute bag so that a saved model round-trips unchanged.
"""

import copy
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from .utils import maybe_await


def _adapter_for(obj: Any):
    adapter = type(obj).adapter
    if adapter is None:
        from .sync import shared_adapter
        adapter = shared_adapter()
    return adapter


async def _run_sync(obj: Any, method: str, options: Optional[Dict[str, Any]],
                    on_success: Callable[[Any], None]) -> bool:
    """Call sync with wrapped callbacks; user callbacks receive (obj, response)"""
    options = dict(options or {})
    user_success = options.get('success')
    user_error = options.get('error')
    outcome = {'ok': False}

    async def success(resp: Any) -> None:
        on_success(resp)
        outcome['ok'] = True
        if user_success:
            await maybe_await(user_success(obj, resp))

    async def error(err: BaseException) -> None:
        if user_error:
            await maybe_await(user_error(obj, err))

    options['success'] = success
    options['error'] = error
    await obj.sync(method, options)
    return outcome['ok']


class Model:
    """A single document"""

    id_attribute: str = '_id'
    # database name, handle or provider; None uses the adapter default
    database: Any = None
    defaults: Dict[str, Any] = {}
    adapter = None

    def __init__(self, attributes: Optional[Dict[str, Any]] = None, **kwargs: Any):
        self.attributes: Dict[str, Any] = {}
        self.collection: Optional["Collection"] = None
        self.set({**copy.deepcopy(self.defaults), **(attributes or {}), **kwargs})
        self.initialize()

    def initialize(self) -> None:
        """Hook for subclasses, called at the end of __init__"""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id!r})"

    @property
    def id(self) -> Any:
        return self.attributes.get(self.id_attribute)

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def has(self, key: str) -> bool:
        return self.attributes.get(key) is not None

    def set(self, attributes: Optional[Dict[str, Any]] = None, **kwargs: Any) -> "Model":
        self.attributes.update(attributes or {})
        self.attributes.update(kwargs)
        return self

    def unset(self, key: str) -> "Model":
        self.attributes.pop(key, None)
        return self

    def is_new(self) -> bool:
        return self.id is None

    def to_json(self) -> Dict[str, Any]:
        """Plain snapshot of the attributes"""
        return copy.deepcopy(self.attributes)

    def parse(self, resp: Dict[str, Any]) -> Dict[str, Any]:
        return resp

    async def sync(self, method: str, options: Optional[Dict[str, Any]] = None) -> None:
        await _adapter_for(self).sync(method, self, options)

    async def fetch(self, options: Optional[Dict[str, Any]] = None) -> bool:
        """Reload the document stored under this model's id"""
        return await _run_sync(self, 'read', options, lambda resp: self.set(self.parse(resp)))

    async def save(self, attributes: Optional[Dict[str, Any]] = None,
                   options: Optional[Dict[str, Any]] = None) -> bool:
        """Set attributes, then create or overwrite the document"""
        if attributes:
            self.set(attributes)
        method = 'create' if self.is_new() else 'update'
        return await _run_sync(self, method, options, lambda resp: self.set(self.parse(resp)))

    async def destroy(self, options: Optional[Dict[str, Any]] = None) -> bool:
        """Delete the document and drop the model from its collection"""
        def removed(resp: Any) -> None:
            if self.collection is not None:
                self.collection.remove(self)

        if self.is_new():
            removed(None)
            user_success = (options or {}).get('success')
            if user_success:
                await maybe_await(user_success(self, None))
            return True
        return await _run_sync(self, 'delete', options, removed)


class Collection:
    """An ordered set of models loaded from a view or from all documents"""

    model = Model
    database: Any = None
    # view name ("design/view") or a method returning one; empty reads all documents
    view_name: Any = ''
    adapter = None

    def __init__(self, models: Optional[List[Any]] = None):
        self.models: List[Model] = []
        if models:
            self.add(models)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self.models)} models)"

    def __len__(self) -> int:
        return len(self.models)

    def __iter__(self) -> Iterator[Model]:
        return iter(self.models)

    def __getitem__(self, index: int) -> Model:
        return self.models[index]

    def _prepare(self, item: Union[Model, Dict[str, Any]]) -> Model:
        model = item if isinstance(item, Model) else self.model(item)
        model.collection = self
        return model

    def add(self, models: Union[Model, Dict[str, Any], List[Any]]) -> "Collection":
        if not isinstance(models, list):
            models = [models]
        self.models.extend(self._prepare(item) for item in models)
        return self

    def remove(self, model: Model) -> "Collection":
        if model in self.models:
            self.models.remove(model)
            model.collection = None
        return self

    def reset(self, models: Optional[List[Any]] = None) -> "Collection":
        for model in self.models:
            model.collection = None
        self.models = []
        if models:
            self.add(models)
        return self

    def get(self, id: Any) -> Optional[Model]:
        for model in self.models:
            if model.id == id:
                return model
        return None

    def first(self) -> Optional[Model]:
        return self.models[0] if self.models else None

    def last(self) -> Optional[Model]:
        return self.models[-1] if self.models else None

    def to_json(self) -> List[Dict[str, Any]]:
        return [model.to_json() for model in self.models]

    def parse(self, resp: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return resp

    async def sync(self, method: str, options: Optional[Dict[str, Any]] = None) -> None:
        await _adapter_for(self).sync(method, self, options)

    async def fetch(self, options: Optional[Dict[str, Any]] = None) -> bool:
        """Replace the contents with the documents of the view (or all documents)"""
        return await _run_sync(self, 'read', options, lambda resp: self.reset(self.parse(resp)))
