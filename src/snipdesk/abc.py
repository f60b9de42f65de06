"""Abstract base classes to help clean type checking."""
# ruff: noqa: D102
# pylint: disable=missing-function-docstring
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .snippets import Snippet

Listener = Callable[['SnippetActions'], None]


class SnippetActions(ABC):
    """The store and action layer that owns the snippet collection.

    The session never changes the collection itself. It reads the `snippets`
    snapshot and asks for changes using the coroutine methods. Changes are
    announced to subscribers once they have been made.
    """

    @property
    @abstractmethod
    def snippets(self) -> Sequence[Snippet]:
        ...

    @property
    @abstractmethod
    def folder(self) -> str | None:
        ...

    @abstractmethod
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener, returning a function to unregister."""

    @abstractmethod
    async def create_snippet(self, snippet: Snippet, content: str) -> None:
        ...

    @abstractmethod
    async def update_snippet_content(self, uid: str, content: str) -> None:
        ...

    @abstractmethod
    async def update_snippet(self, uid: str, field: str, value: str) -> None:
        ...

    @abstractmethod
    async def move_snippets_to_trash(
            self, ids: Sequence[str], restoring: bool = False) -> None:
        ...

    @abstractmethod
    async def delete_snippet_forever(self, uid: str) -> None:
        ...

    @abstractmethod
    async def empty_trash(self) -> None:
        ...

    @abstractmethod
    async def read_snippet_content(self, uid: str) -> str:
        ...

    @abstractmethod
    def set_folder(self, path: str | None) -> None:
        ...

    @abstractmethod
    async def load_folder(self, path: str) -> None:
        ...

    @abstractmethod
    def get_random_id(self) -> str:
        ...
