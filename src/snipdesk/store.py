"""An in-memory implementation of the snippet store.

The store holds any number of folders, each being a collection of snippets
plus their content. One folder is active, and operations act on it. The
index of the most recently loaded folder is presented as the `snippets`
snapshot.
"""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Sequence

from textual import log

from .abc import Listener, SnippetActions
from .snippets import DEFAULT_LANGUAGE, Snippet, now_iso

UPDATABLE_FIELDS = frozenset({'name', 'language', 'export_prefix'})
DEMO_FOLDER = '~/snippets'
DEMO_CONTENTS = {
    'Hello world': ('python', 'print("Hello, world!")\n'),
    'Shebang': ('shellscript', '#!/usr/bin/env bash\nset -euo pipefail\n'),
    'Scratch': (DEFAULT_LANGUAGE, 'Notes go here.\n'),
}


class StoreError(Exception):
    """A failure to perform a store operation."""


class SnippetNotFound(StoreError, KeyError):
    """A snippet ID does not exist in the active folder."""

    def __str__(self):
        return f'No such snippet: {self.args[0]}'


@dataclass
class FolderData:
    """The snippets and content of a single folder."""

    snippets: dict[str, Snippet] = field(default_factory=dict)
    contents: dict[str, str] = field(default_factory=dict)


class MemoryStore(SnippetActions):
    """A `SnippetActions` implementation that keeps everything in memory.

    :folders:
        Initial folder contents, keyed by folder path.
    :latency:
        An optional delay, in seconds, applied to each asynchronous operation.
    """

    def __init__(
            self, folders: dict[str, FolderData] | None = None, *,
            latency: float = 0.0):
        self.folders: dict[str, FolderData] = folders or {}
        self.latency = latency
        self.version = 0
        self._folder: str | None = None
        self._loaded: str | None = None
        self._listeners: list[Listener] = []

    ## Snapshot access.
    @property
    def snippets(self) -> tuple[Snippet, ...]:
        """The snippets of the loaded folder."""
        data = self.folders.get(self._loaded) if self._loaded else None
        return tuple(data.snippets.values()) if data else ()

    @property
    def folder(self) -> str | None:
        """The active folder."""
        return self._folder

    @property
    def loaded_folder(self) -> str | None:
        """The folder whose snippets are in the snapshot."""
        return self._loaded

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener, returning a function to unregister."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        self.version += 1
        for listener in list(self._listeners):
            listener(self)

    def _data(self) -> FolderData:
        if self._folder is None:
            raise StoreError('No folder is active')
        return self.folders.setdefault(self._folder, FolderData())

    def _lookup(self, uid: str) -> Snippet:
        try:
            return self._data().snippets[uid]
        except KeyError:
            raise SnippetNotFound(uid) from None

    async def _pause(self) -> None:
        await asyncio.sleep(self.latency)

    ## Folder handling.
    def set_folder(self, path: str | None) -> None:
        """Set the active folder.

        Snippet operations apply to the active folder. The `snippets` snapshot
        only changes once the folder is loaded, except that clearing the
        folder also clears the snapshot.
        """
        if path != self._folder:
            self._folder = path
            if path is None:
                self._loaded = None
            self._changed()

    async def load_folder(self, path: str) -> None:
        """Load the snippet index for a folder.

        An unknown folder is treated as a new, empty one.
        """
        await self._pause()
        self.folders.setdefault(path, FolderData())
        self._loaded = path
        log.info(f'Loaded folder {path}')
        self._changed()

    ## Snippet operations.
    def get_random_id(self) -> str:
        """Generate a new, unique snippet ID."""
        return uuid.uuid4().hex

    async def create_snippet(self, snippet: Snippet, content: str) -> None:
        """Add a new snippet to the active folder."""
        await self._pause()
        data = self._data()
        if snippet.uid in data.snippets:
            raise StoreError(f'Snippet {snippet.uid} already exists')
        data.snippets[snippet.uid] = snippet
        data.contents[snippet.uid] = content
        self._changed()

    async def update_snippet_content(self, uid: str, content: str) -> None:
        """Replace the content of a snippet."""
        await self._pause()
        snippet = self._lookup(uid)
        data = self._data()
        data.contents[uid] = content
        data.snippets[uid] = replace(snippet, updated_at=now_iso())
        self._changed()

    async def update_snippet(self, uid: str, field: str, value: str) -> None:
        """Change a single attribute of a snippet."""
        if field not in UPDATABLE_FIELDS:
            raise ValueError(f'Snippet field {field!r} cannot be updated')
        await self._pause()
        snippet = self._lookup(uid)
        changes = {field: value, 'updated_at': now_iso()}
        self._data().snippets[uid] = replace(snippet, **changes)
        self._changed()

    async def move_snippets_to_trash(
            self, ids: Sequence[str], restoring: bool = False) -> None:
        """Move snippets to the trash or restore them from the trash.

        Snippets that are already in the trash keep their original trash time.
        """
        await self._pause()
        data = self._data()
        stamp = now_iso()
        for snippet in [self._lookup(uid) for uid in ids]:
            uid = snippet.uid
            if restoring:
                data.snippets[uid] = replace(snippet, deleted_at=None)
            elif not snippet.trashed:
                data.snippets[uid] = replace(snippet, deleted_at=stamp)
        self._changed()

    async def delete_snippet_forever(self, uid: str) -> None:
        """Permanently remove a snippet."""
        await self._pause()
        self._lookup(uid)
        data = self._data()
        del data.snippets[uid]
        data.contents.pop(uid, None)
        self._changed()

    async def empty_trash(self) -> None:
        """Permanently remove every trashed snippet."""
        await self._pause()
        data = self._data()
        for snippet in [s for s in data.snippets.values() if s.trashed]:
            del data.snippets[snippet.uid]
            data.contents.pop(snippet.uid, None)
        self._changed()

    async def read_snippet_content(self, uid: str) -> str:
        """Read the content of a snippet."""
        await self._pause()
        self._lookup(uid)
        return self._data().contents.get(uid, '')


def make_folder(entries: Iterable[tuple[Snippet, str]]) -> FolderData:
    """Create folder data from (snippet, content) pairs."""
    data = FolderData()
    for snippet, content in entries:
        data.snippets[snippet.uid] = snippet
        data.contents[snippet.uid] = content
    return data


def demo_store() -> MemoryStore:
    """Create a store populated with a small demonstration folder."""
    stamp = now_iso()
    entries = []
    for i, (name, (language, content)) in enumerate(DEMO_CONTENTS.items()):
        snippet = Snippet(
            uid=f'demo{i}', name=name, language=language,
            created_at=stamp, updated_at=stamp)
        entries.append((snippet, content))
    return MemoryStore({DEMO_FOLDER: make_folder(entries)})
