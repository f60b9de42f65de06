"""The in-memory snippet store."""
from __future__ import annotations
# pylint: disable=no-self-use

import pytest

from support import FOLDER, OTHER_FOLDER, make_snippet, open_store

from snipdesk.snippets import find_snippet
from snipdesk.store import (
    DEMO_FOLDER, MemoryStore, SnippetNotFound, StoreError, demo_store)


class TestFolders:
    """Activating and loading folders."""

    def test_nothing_loaded_initially(self, store):
        """A new store has an empty snapshot."""
        assert store.folder is None
        assert store.snippets == ()

    @pytest.mark.asyncio
    async def test_load_folder(self, store):
        """Loading a folder makes its snippets the snapshot."""
        await open_store(store)
        assert store.loaded_folder == FOLDER
        assert sorted(s.uid for s in store.snippets) == ['x', 'y', 'z']

    @pytest.mark.asyncio
    async def test_switch_folder(self, store):
        """Loading another folder replaces the snapshot."""
        await open_store(store)
        await open_store(store, OTHER_FOLDER)
        assert [s.uid for s in store.snippets] == ['o']

    @pytest.mark.asyncio
    async def test_unknown_folder_is_empty(self, store):
        """An unknown folder loads as an empty one."""
        await open_store(store, '/nowhere')
        assert store.snippets == ()

    @pytest.mark.asyncio
    async def test_clearing_folder_clears_snapshot(self, store):
        """With no active folder the snapshot is empty."""
        await open_store(store)
        seen = []
        store.subscribe(seen.append)
        store.set_folder(None)
        assert store.folder is None
        assert store.loaded_folder is None
        assert store.snippets == ()
        assert seen == [store]

    @pytest.mark.asyncio
    async def test_operations_need_a_folder(self, store):
        """Snippet operations fail when no folder is active."""
        with pytest.raises(StoreError):
            await store.read_snippet_content('x')

    def test_demo_store(self):
        """The demonstration store holds some snippets."""
        store = demo_store()
        assert DEMO_FOLDER in store.folders
        assert store.folders[DEMO_FOLDER].snippets


class TestNotification:
    """Change listeners."""

    @pytest.mark.asyncio
    async def test_listeners_are_told_of_changes(self, store):
        """Each change notifies every listener."""
        seen = []
        store.subscribe(seen.append)
        await open_store(store)
        assert seen == [store, store]

        store.set_folder(FOLDER)
        assert len(seen) == 2

    @pytest.mark.asyncio
    async def test_unsubscribe(self, store):
        """An unsubscribed listener is no longer told of changes."""
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        await open_store(store)
        assert seen == []


class TestSnippets:
    """Snippet operations."""

    @pytest.mark.asyncio
    async def test_create_and_read(self, store):
        """A created snippet can be read back."""
        await open_store(store)
        uid = store.get_random_id()
        await store.create_snippet(make_snippet(uid, 30), 'Body')
        assert await store.read_snippet_content(uid) == 'Body'
        assert find_snippet(store.snippets, uid) is not None

    @pytest.mark.asyncio
    async def test_duplicate_create_fails(self, store):
        """Creating a snippet with an existing ID fails."""
        await open_store(store)
        with pytest.raises(StoreError):
            await store.create_snippet(make_snippet('x', 30), '')

    def test_random_ids_differ(self, store):
        """Generated IDs are unique."""
        assert len({store.get_random_id() for _ in range(20)}) == 20

    @pytest.mark.asyncio
    async def test_update_content(self, store):
        """Updating content changes the body and the update time."""
        await open_store(store)
        before = find_snippet(store.snippets, 'x')
        await store.update_snippet_content('x', 'New body')
        assert await store.read_snippet_content('x') == 'New body'
        assert find_snippet(store.snippets, 'x').updated_at > before.updated_at

    @pytest.mark.asyncio
    async def test_update_field(self, store):
        """Snippet attributes can be updated."""
        await open_store(store)
        await store.update_snippet('x', 'name', 'Renamed')
        await store.update_snippet('x', 'export_prefix', 'rn')
        snippet = find_snippet(store.snippets, 'x')
        assert (snippet.name, snippet.export_prefix) == ('Renamed', 'rn')

    @pytest.mark.asyncio
    async def test_update_bad_field(self, store):
        """Only some attributes can be updated."""
        await open_store(store)
        with pytest.raises(ValueError):
            await store.update_snippet('x', 'deleted_at', '')

    @pytest.mark.asyncio
    async def test_unknown_snippet(self, store):
        """Operations on a missing snippet raise SnippetNotFound."""
        await open_store(store)
        with pytest.raises(SnippetNotFound) as excinfo:
            await store.read_snippet_content('nope')
        assert str(excinfo.value) == 'No such snippet: nope'

    @pytest.mark.asyncio
    async def test_bulk_move_is_all_or_nothing(self, store):
        """A bulk move with a missing ID changes nothing."""
        await open_store(store)
        with pytest.raises(KeyError):
            await store.move_snippets_to_trash(['x', 'nope'])
        assert not find_snippet(store.snippets, 'x').trashed

    @pytest.mark.asyncio
    async def test_trash_and_restore(self, store):
        """Snippets can be trashed and restored."""
        await open_store(store)
        await store.move_snippets_to_trash(['x'])
        assert find_snippet(store.snippets, 'x').trashed
        await store.move_snippets_to_trash(['x'], restoring=True)
        assert find_snippet(store.snippets, 'x').deleted_at is None

    @pytest.mark.asyncio
    async def test_delete_forever(self, store):
        """A deleted snippet and its content are gone."""
        await open_store(store)
        await store.delete_snippet_forever('z')
        assert find_snippet(store.snippets, 'z') is None
        assert 'z' not in store.folders[FOLDER].contents

    @pytest.mark.asyncio
    async def test_latency(self):
        """A store can simulate slow operations."""
        store = MemoryStore(latency=0.01)
        await open_store(store, '/slow')
        assert store.snippets == ()
