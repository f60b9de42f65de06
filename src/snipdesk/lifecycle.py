"""Trash, restore and permanent deletion of snippets.

Every state change is gated by a yes/no confirmation. Declining is a normal
outcome; nothing changes and nothing is reported.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Iterable, Sequence

from textual import log

from .abc import SnippetActions
from .snippets import Snippet, find_snippet

Confirm = Callable[[str], Awaitable[bool]]

TRASH_PROMPT = 'Are you sure you want to move it to Trash?'
RESTORE_PROMPT = 'Are you sure you want to restore this snippet from Trash?'
BULK_TRASH_PROMPT = 'Are you sure you want to move selected snippets to Trash?'
BULK_RESTORE_PROMPT = (
    'Are you sure you want to restore selected snippets from Trash?')
PURGE_PROMPT = 'Are you sure you want to delete this snippet forever?'
EMPTY_TRASH_PROMPT = (
    'Are you sure you want to permanently erase the items in the Trash?')

# Key used to guard the trash as a whole while emptying it.
TRASH_KEY = '<trash>'


class LifecycleController:
    """Perform confirmed lifecycle transitions of snippets.

    A snippet is active, trashed or (once purged) gone. While a confirmation
    is outstanding for a snippet, further requests for that snippet are
    ignored. Requests for other snippets are not affected.

    :actions: The store used to read the live collection and make changes.
    :confirm: An async function that asks a yes/no question.
    """

    def __init__(self, actions: SnippetActions, confirm: Confirm):
        self.actions = actions
        self.confirm = confirm
        self.awaiting: set[str] = set()

    def find(self, uid: str | None) -> Snippet | None:
        """Find a snippet in the live collection, logging if it is missing."""
        snippet = find_snippet(self.actions.snippets, uid)
        if snippet is None:
            log.warning(f'Snippet {uid} not found')
        return snippet

    @asynccontextmanager
    async def confirmation(
            self, keys: Iterable[str], message: str) -> AsyncIterator[bool]:
        """Ask for confirmation, blocking other requests for the same keys.

        The keys stay blocked until the body of the ``async with`` completes.
        """
        keys = set(keys)
        busy = keys & self.awaiting
        if busy:
            log.debug(f'Confirmation already pending for {sorted(busy)}')
            yield False
            return

        self.awaiting |= keys
        try:
            yield await self.confirm(message)
        finally:
            self.awaiting -= keys

    async def toggle_trash(self, uid: str) -> bool:
        """Move a snippet to the trash, or restore it if already there.

        :return: True if the change was made.
        """
        snippet = self.find(uid)
        if snippet is None:
            return False

        restoring = snippet.trashed
        prompt = RESTORE_PROMPT if restoring else TRASH_PROMPT
        async with self.confirmation([uid], prompt) as ok:
            if ok:
                verb = 'restoring' if restoring else 'trashing'
                log.info(f'{verb} {uid}:{snippet.name}')
                await self.actions.move_snippets_to_trash(
                    [uid], restoring=restoring)
            return ok

    async def bulk_toggle_trash(
            self, ids: Sequence[str], *, restoring: bool) -> bool:
        """Move several snippets to, or restore them from, the trash.

        :ids:       The snippets to change.
        :restoring: True to restore from the trash.
        :return:    True if the change was made.
        """
        if not ids:
            return False

        prompt = BULK_RESTORE_PROMPT if restoring else BULK_TRASH_PROMPT
        async with self.confirmation(ids, prompt) as ok:
            if ok:
                await self.actions.move_snippets_to_trash(
                    list(ids), restoring=restoring)
            return ok

    async def purge(self, uid: str) -> bool:
        """Permanently delete a trashed snippet.

        :return: True if the snippet was deleted.
        """
        snippet = self.find(uid)
        if snippet is None:
            return False
        if not snippet.trashed:
            log.warning(f'Snippet {uid} is not in the trash')
            return False

        async with self.confirmation([uid], PURGE_PROMPT) as ok:
            if ok:
                log.info(f'deleting {uid}:{snippet.name} forever')
                await self.actions.delete_snippet_forever(uid)
            return ok

    async def empty_trash(self) -> bool:
        """Permanently delete every trashed snippet.

        Nothing is asked when the trash is already empty.

        :return: True if the trash was emptied.
        """
        if not any(s.trashed for s in self.actions.snippets):
            return False

        async with self.confirmation([TRASH_KEY], EMPTY_TRASH_PROMPT) as ok:
            if ok:
                await self.actions.empty_trash()
            return ok
