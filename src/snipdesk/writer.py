"""Debounced write-back of snippet edits."""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Any, Awaitable, Callable, Protocol

from textual import log

WRITE_DELAY = 0.25


class TimerLike(Protocol):
    """The part of a ``textual.timer.Timer`` that the writer uses."""

    def stop(self) -> None:
        ...


Commit = Callable[[str, str], Awaitable[Any]]
SetTimer = Callable[[float, Callable[[], Any]], TimerLike]


@dataclass(eq=False)
class PendingWrite:
    """A value waiting for its debounce window to elapse."""

    value: str
    timer: TimerLike | None = field(default=None, repr=False)


class DebouncedWriter:
    """Coalesce rapid edits into a single delayed write per snippet.

    Each call to `schedule` restarts the window for that snippet and replaces
    the pending value, so only the most recent value is ever written. The
    snippet ID is captured when the write is scheduled; navigating to another
    snippet does not redirect a pending write.

    :commit:
        An async function ``commit(uid, value)`` that persists a value.
    :set_timer:
        A function ``set_timer(delay, callback)`` that invokes callback once
        after delay seconds and returns a timer with a ``stop`` method.
        ``MessagePump.set_timer`` is the normal choice.
    :delay:
        The debounce window in seconds.
    :name:
        A name used in log messages.
    """

    def __init__(
            self, commit: Commit, set_timer: SetTimer, *,
            delay: float = WRITE_DELAY, name: str = 'write'):
        self.commit = commit
        self.set_timer = set_timer
        self.delay = delay
        self.name = name
        self.pending: dict[str, PendingWrite] = {}
        self.confirmed: dict[str, str] = {}

    def schedule(self, uid: str, value: str) -> None:
        """Schedule a write of value to the snippet uid."""
        prev = self.pending.get(uid)
        if prev is not None and prev.timer is not None:
            prev.timer.stop()
        pending = PendingWrite(value)
        self.pending[uid] = pending
        pending.timer = self.set_timer(
            self.delay, partial(self.fire, uid, pending))

    def confirm(self, uid: str, value: str) -> None:
        """Record a value that is known to match the stored value."""
        self.confirmed[uid] = value

    def is_pending(self, uid: str) -> bool:
        """Test whether a write is waiting for uid."""
        return uid in self.pending

    def pending_value(self, uid: str) -> str | None:
        """Get the value waiting to be written for uid, if any."""
        pending = self.pending.get(uid)
        return None if pending is None else pending.value

    def cancel(self, uid: str) -> None:
        """Drop any pending write for uid, without writing it."""
        pending = self.pending.pop(uid, None)
        if pending is not None and pending.timer is not None:
            pending.timer.stop()

    async def fire(self, uid: str, pending: PendingWrite) -> bool:
        """Perform a pending write, when its window has elapsed.

        A stopped timer's callback may already be queued when a newer value
        is scheduled, so the pending slot is used as a guard.

        :return: True if the commit function was invoked.
        """
        if self.pending.get(uid) is not pending:
            log.debug(f'{self.name}: superseded write to {uid} dropped')
            return False

        del self.pending[uid]
        if self.confirmed.get(uid) == pending.value:
            return False

        log.info(f'{self.name}: saving {uid}')
        await self.commit(uid, pending.value)
        self.confirmed[uid] = pending.value
        return True

    async def flush(self) -> None:
        """Immediately perform all pending writes.

        Every pending write is attempted. If any fail, the first failure is
        raised once all have been tried.
        """
        failures: list[Exception] = []
        for uid, pending in list(self.pending.items()):
            if pending.timer is not None:
                pending.timer.stop()
            try:
                await self.fire(uid, pending)
            except Exception as exc:         # pylint: disable=broad-except
                log.error(f'{self.name}: saving {uid} failed: {exc!r}')
                failures.append(exc)
        if failures:
            raise failures[0]
