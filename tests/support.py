"""Common test support code."""
from __future__ import annotations

import asyncio
import inspect
from operator import attrgetter

from snipdesk.snippets import Snippet
from snipdesk.store import MemoryStore, make_folder

FOLDER = '/work/snippets'
OTHER_FOLDER = '/work/other'


def stamp(minute: int) -> str:
    """Provide a predictable ISO timestamp."""
    return f'2024-01-01T10:{minute:02d}:00.000Z'


def make_snippet(
        uid: str, created: int, *, name: str = '',
        deleted: int | None = None, **kwargs) -> Snippet:
    """Create a snippet with timestamps given as minutes past 10:00."""
    return Snippet(
        uid=uid, name=name or f'Snippet {uid}', created_at=stamp(created),
        updated_at=stamp(created),
        deleted_at=None if deleted is None else stamp(deleted), **kwargs)


def std_snippets() -> list[Snippet]:
    """The standard test collection.

    X is older than Y, both are active. Z was trashed after being created
    before either of them.
    """
    return [
        make_snippet('x', 1, name='Alpha code'),
        make_snippet('y', 2, name='Beta CODE'),
        make_snippet('z', 0, name='Gamma', deleted=5),
    ]


def std_folders() -> dict:
    """Folder data for a store holding the standard collection."""
    entries = [(s, f'Content of {s.uid}') for s in std_snippets()]
    return {
        FOLDER: make_folder(entries),
        OTHER_FOLDER: make_folder(
            [(make_snippet('o', 3, name='Other'), 'Other content')]),
    }


async def open_store(store: MemoryStore, folder: str = FOLDER) -> MemoryStore:
    """Make a folder active and loaded."""
    store.set_folder(folder)
    await store.load_folder(folder)
    return store


class RecordingStore(MemoryStore):
    """A MemoryStore that records write requests."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.content_writes: list[tuple[str, str]] = []
        self.updates: list[tuple[str, str, str]] = []
        self.reads: list[str] = []
        self.loads: list[str] = []

    async def load_folder(self, path: str) -> None:
        self.loads.append(path)
        await super().load_folder(path)

    async def update_snippet_content(self, uid: str, content: str) -> None:
        self.content_writes.append((uid, content))
        await super().update_snippet_content(uid, content)

    async def update_snippet(self, uid: str, field: str, value: str) -> None:
        self.updates.append((uid, field, value))
        await super().update_snippet(uid, field, value)

    async def read_snippet_content(self, uid: str) -> str:
        self.reads.append(uid)
        return await super().read_snippet_content(uid)


class GatedStore(RecordingStore):
    """A store that can hold content reads until released."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.gates: dict[str, asyncio.Event] = {}

    def gate(self, uid: str) -> asyncio.Event:
        """Hold reads of a snippet until the returned event is set."""
        self.gates[uid] = asyncio.Event()
        return self.gates[uid]

    async def read_snippet_content(self, uid: str) -> str:
        gate = self.gates.get(uid)
        if gate is not None:
            await gate.wait()
        return await super().read_snippet_content(uid)


class FailingStore(RecordingStore):
    """A store whose content writes always fail."""

    async def update_snippet_content(self, uid: str, content: str) -> None:
        raise OSError(f'Disk full while saving {uid}')


class FakeTimer:
    """A timer controlled by a `FakeClock`."""

    def __init__(self, due: float, callback):
        self.due = due
        self.callback = callback
        self.active = True

    def stop(self) -> None:
        """Stop the timer."""
        self.active = False


class FakeClock:
    """A manually advanced clock, providing a ``set_timer`` function."""

    def __init__(self):
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def set_timer(self, delay: float, callback) -> FakeTimer:
        """Start a one-shot timer."""
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def active_timers(self) -> list[FakeTimer]:
        """The timers that have not yet fired or been stopped."""
        return [t for t in self.timers if t.active]

    async def advance(self, seconds: float) -> None:
        """Move time forward, firing any timers that become due."""
        self.now += seconds
        due = sorted(
            (t for t in self.active_timers if t.due <= self.now),
            key=attrgetter('due'))
        for timer in due:
            timer.active = False
            result = timer.callback()
            if inspect.isawaitable(result):
                await result


class Recorder:
    """An async commit function that records its calls."""

    def __init__(self):
        self.calls: list[tuple[str, str]] = []

    async def __call__(self, uid: str, value: str) -> None:
        self.calls.append((uid, value))


class Answers:
    """An async confirmation function with canned answers."""

    def __init__(self, *answers: bool):
        self.answers = list(answers)
        self.questions: list[str] = []

    async def __call__(self, message: str) -> bool:
        self.questions.append(message)
        return self.answers.pop(0)


class HeldAnswer:
    """An async confirmation function that waits to be answered."""

    def __init__(self):
        self.questions: list[str] = []
        self.event = asyncio.Event()
        self.answer = False

    async def __call__(self, message: str) -> bool:
        self.questions.append(message)
        await self.event.wait()
        return self.answer

    def give(self, answer: bool) -> None:
        """Provide the answer."""
        self.answer = answer
        self.event.set()


async def always_yes(message: str) -> bool:                  # noqa: ARG001
    """Confirm everything."""
    return True


async def always_no(message: str) -> bool:                   # noqa: ARG001
    """Decline everything."""
    return False


async def settle(pilot) -> None:
    """Wait for the app to process messages and let its workers run."""
    for _ in range(3):
        await pilot.pause(0.02)
