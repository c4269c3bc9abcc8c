"""Tests for ``couchsync.sync`` - verb dispatch and result normalization."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from couchsync import SyncAdapter, get_view_name
from couchsync.db import DatabaseHandle, Row
from couchsync.exceptions import (
    ConflictError,
    DocumentNotFound,
    MissingDatabase,
    MissingId,
    NoResults,
    UnsupportedMethod,
)


def mock_handle():
    handle = MagicMock(spec=DatabaseHandle)
    handle.get = AsyncMock()
    handle.view = AsyncMock(return_value=[])
    handle.all = AsyncMock(return_value=[])
    handle.save = AsyncMock(return_value={'ok': True, 'id': 'generated', 'rev': '1-a'})
    handle.remove = AsyncMock(return_value={'ok': True, 'id': 'generated', 'rev': '2-b'})
    return handle


class TestViewName:
    def test_string_used_verbatim(self):
        assert get_view_name('Tasks/all') == 'Tasks/all'

    def test_callable_is_called(self):
        assert get_view_name(lambda: 'Tasks/by_name') == 'Tasks/by_name'

    def test_other_values_mean_no_view(self):
        assert get_view_name(None) is None
        assert get_view_name(42) is None


class TestMissingDatabase:
    @pytest.mark.asyncio
    async def test_error_without_backend_call(self, recorder):
        adapter = SyncAdapter()
        model = adapter.Model(name='A')

        await adapter.sync('create', model, recorder.options())

        assert recorder.successes == []
        assert len(recorder.errors) == 1
        assert isinstance(recorder.errors[0], MissingDatabase)
        assert str(recorder.errors[0]) == "Model or Collection must have a database!"

    @pytest.mark.asyncio
    async def test_provider_failure_goes_to_error(self, adapter, recorder):
        def broken(model):
            raise RuntimeError("no database today")

        class Broken(adapter.Model):
            database = staticmethod(broken)

        await adapter.sync('read', Broken(_id='x'), recorder.options())

        assert isinstance(recorder.errors[0], RuntimeError)
        assert recorder.successes == []


class TestRead:
    @pytest.mark.asyncio
    async def test_read_by_id_returns_document(self, adapter, db, recorder):
        await db.save({'_id': 'doc1', 'name': 'A'})

        await adapter.sync('read', adapter.Model(_id='doc1'), recorder.options())

        assert recorder.errors == []
        assert recorder.successes[0]['name'] == 'A'
        assert recorder.successes[0]['_id'] == 'doc1'

    @pytest.mark.asyncio
    async def test_read_missing_document_is_generic_failure(self, adapter, recorder):
        await adapter.sync('read', adapter.Model(_id='missing'), recorder.options())

        assert recorder.successes == []
        failure = recorder.errors[0]
        assert isinstance(failure, NoResults)
        assert str(failure) == 'No results'
        assert isinstance(failure.error, DocumentNotFound)
        assert failure.__cause__ is failure.error

    @pytest.mark.asyncio
    async def test_read_collapses_any_backend_error(self, recorder):
        handle = mock_handle()
        handle.get.side_effect = ConnectionError("network down")
        adapter = SyncAdapter(database=handle)

        await adapter.sync('read', adapter.Model(_id='doc1'), recorder.options())

        assert isinstance(recorder.errors[0], NoResults)
        assert isinstance(recorder.errors[0].error, ConnectionError)

    @pytest.mark.asyncio
    async def test_collection_read_forces_include_docs(self, recorder):
        handle = mock_handle()
        handle.all.return_value = [Row('a', key='a', doc={'_id': 'a'}), Row('b', key='b', doc={'_id': 'b'})]
        adapter = SyncAdapter(database=handle)
        data = {'include_docs': False, 'limit': 5}

        await adapter.sync('read', adapter.Collection(), recorder.options(data=data))

        handle.all.assert_awaited_once_with({'include_docs': True, 'limit': 5})
        handle.view.assert_not_awaited()
        assert recorder.successes == [[{'_id': 'a'}, {'_id': 'b'}]]
        assert data == {'include_docs': False, 'limit': 5}

    @pytest.mark.asyncio
    async def test_collection_read_without_data(self, recorder):
        handle = mock_handle()
        adapter = SyncAdapter(database=handle)

        await adapter.sync('read', adapter.Collection(), recorder.options())

        handle.all.assert_awaited_once_with({'include_docs': True})
        assert recorder.successes == [[]]

    @pytest.mark.asyncio
    async def test_collection_read_uses_named_view(self, recorder):
        handle = mock_handle()
        handle.view.return_value = [{'id': 't1', 'key': 't1', 'doc': {'_id': 't1', 'type': 'Task'}}]
        adapter = SyncAdapter(database=handle)

        class Tasks(adapter.Collection):
            view_name = 'Tasks/all'

        await adapter.sync('read', Tasks(), recorder.options())

        handle.view.assert_awaited_once_with('Tasks/all', {'include_docs': True})
        handle.all.assert_not_awaited()
        assert recorder.successes == [[{'_id': 't1', 'type': 'Task'}]]

    @pytest.mark.asyncio
    async def test_collection_view_name_method(self, recorder):
        handle = mock_handle()
        adapter = SyncAdapter(database=handle)

        class ByName(adapter.Collection):
            def view_name(self):
                return 'Tasks/by_name'

        await adapter.sync('read', ByName(), recorder.options())

        handle.view.assert_awaited_once_with('Tasks/by_name', {'include_docs': True})

    @pytest.mark.asyncio
    async def test_collection_read_forwards_backend_error(self, recorder):
        handle = mock_handle()
        failure = DocumentNotFound(reason='missing_named_view')
        handle.view.side_effect = failure
        adapter = SyncAdapter(database=handle)

        class Tasks(adapter.Collection):
            view_name = 'Tasks/nope'

        await adapter.sync('read', Tasks(), recorder.options())

        assert recorder.errors == [failure]
        assert recorder.successes == []

    @pytest.mark.asyncio
    async def test_collection_read_skips_rows_without_documents(self, recorder):
        handle = mock_handle()
        handle.all.return_value = [
            Row('a', key='a', doc={'_id': 'a'}),
            Row(None, key='zz'),
            Row('d', key='d', value={'rev': '2-d', 'deleted': True}),
            {'key': 'yy', 'error': 'not_found'},
        ]
        adapter = SyncAdapter(database=handle)

        await adapter.sync('read', adapter.Collection(), recorder.options(data={'keys': ['a', 'zz', 'd', 'yy']}))

        assert recorder.successes == [[{'_id': 'a'}]]


class TestWrite:
    @pytest.mark.asyncio
    async def test_create_returns_rev_and_id(self, adapter, recorder):
        await adapter.sync('create', adapter.Model(name='A'), recorder.options())

        assert recorder.errors == []
        result = recorder.successes[0]
        assert set(result) == {'_rev', '_id'}
        assert result['_rev'] and result['_id']

    @pytest.mark.asyncio
    async def test_update_sends_every_attribute(self, recorder):
        handle = mock_handle()
        adapter = SyncAdapter(database=handle)
        model = adapter.Model(_id='t1', name='X', type='Todo', done=False)
        model.set(name='Y')

        await adapter.sync('update', model, recorder.options())

        handle.save.assert_awaited_once_with('t1', {'_id': 't1', 'name': 'Y', 'type': 'Todo', 'done': False})
        assert recorder.successes == [{'_rev': '1-a'}]

    @pytest.mark.asyncio
    async def test_update_conflict_forwarded(self, recorder):
        handle = mock_handle()
        failure = ConflictError(reason='Document update conflict.')
        handle.save.side_effect = failure
        adapter = SyncAdapter(database=handle)

        await adapter.sync('update', adapter.Model(_id='t1'), recorder.options())

        assert recorder.errors == [failure]

    @pytest.mark.asyncio
    async def test_delete_passes_known_revision(self, recorder):
        handle = mock_handle()
        adapter = SyncAdapter(database=handle)

        await adapter.sync('delete', adapter.Model(_id='t1', _rev='1-a'), recorder.options())

        handle.remove.assert_awaited_once_with('t1', '1-a')
        assert recorder.successes == [{'_rev': '2-b'}]

    @pytest.mark.asyncio
    async def test_delete_without_revision(self, recorder):
        handle = mock_handle()
        adapter = SyncAdapter(database=handle)

        await adapter.sync('delete', adapter.Model(_id='t1'), recorder.options())

        handle.remove.assert_awaited_once_with('t1')

    @pytest.mark.asyncio
    @pytest.mark.parametrize('method', ['update', 'delete'])
    async def test_update_and_delete_need_an_id(self, method, recorder):
        handle = mock_handle()
        adapter = SyncAdapter(database=handle)

        await adapter.sync(method, adapter.Model(name='A'), recorder.options())

        handle.save.assert_not_awaited()
        handle.remove.assert_not_awaited()
        assert recorder.successes == []
        assert isinstance(recorder.errors[0], MissingId)
        assert recorder.errors[0].method == method

    @pytest.mark.asyncio
    async def test_update_without_id_stores_nothing(self, adapter, db, recorder):
        await adapter.sync('update', adapter.Model(name='A'), recorder.options())

        assert isinstance(recorder.errors[0], MissingId)
        assert await db.all() == []


class TestDispatch:
    @pytest.mark.asyncio
    async def test_unknown_method_fails_loudly(self, adapter, recorder):
        await adapter.sync('patch', adapter.Model(_id='t1'), recorder.options())

        assert recorder.successes == []
        assert isinstance(recorder.errors[0], UnsupportedMethod)
        assert recorder.errors[0].method == 'patch'

    @pytest.mark.asyncio
    async def test_missing_callbacks_are_tolerated(self, adapter):
        await adapter.sync('read', adapter.Model(_id='missing'), {})
        await adapter.sync('create', adapter.Model(name='A'), None)

    @pytest.mark.asyncio
    async def test_coroutine_callbacks_are_awaited(self, adapter):
        seen = []

        async def success(result):
            seen.append(result)

        await adapter.sync('create', adapter.Model(name='A'), {'success': success})

        assert len(seen) == 1
        assert '_rev' in seen[0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize('method, attributes', [
        ('read', {'_id': 'seed'}),
        ('read', {'_id': 'missing'}),
        ('create', {'name': 'A'}),
        ('update', {'_id': 'seed', 'name': 'B'}),
        ('delete', {'_id': 'seed'}),
        ('delete', {'_id': 'missing'}),
    ])
    async def test_exactly_one_callback(self, adapter, db, recorder, method, attributes):
        await db.save({'_id': 'seed', 'name': 'A'})

        await adapter.sync(method, adapter.Model(attributes), recorder.options())

        assert recorder.calls == 1

    @pytest.mark.asyncio
    async def test_create_update_delete_read_cycle(self, adapter, recorder):
        model = adapter.Model(_id='t1', name='X')

        await adapter.sync('create', model, recorder.options())
        r1 = recorder.successes[-1]['_rev']
        assert recorder.successes[-1]['_id'] == 't1'
        model.set(_rev=r1, name='Y')

        await adapter.sync('update', model, recorder.options())
        r2 = recorder.successes[-1]['_rev']
        model.set(_rev=r2)

        await adapter.sync('delete', model, recorder.options())
        r3 = recorder.successes[-1]['_rev']

        await adapter.sync('read', adapter.Model(_id='t1'), recorder.options())

        assert len({r1, r2, r3}) == 3
        assert [rev.split('-')[0] for rev in (r1, r2, r3)] == ['1', '2', '3']
        assert len(recorder.errors) == 1
        assert isinstance(recorder.errors[0], NoResults)
