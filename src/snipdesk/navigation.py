"""Navigation parameters, carried as a query string.

The query string has the form ``folder=<path>&id=<snippet-id>``. The
`Navigator` owns the current query string and tells subscribers when the
location it describes changes.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable
from urllib.parse import parse_qsl, urlencode

Listener = Callable[['Location'], None]
QUERY_KEYS = {'folder': 'folder', 'id': 'uid'}


@dataclass(frozen=True)
class Location:
    """A navigation location.

    @folder: The folder path, or ``None``.
    @uid:    The ID of the open snippet, or ``None``.
    """

    folder: str | None = None
    uid: str | None = None


def parse_query(query: str) -> Location:
    """Parse a query string into a `Location`.

    Empty values are treated as absent.
    """
    params = dict(parse_qsl(query.lstrip('?')))
    return Location(
        folder=params.get('folder') or None, uid=params.get('id') or None)


def build_query(location: Location) -> str:
    """Build the query string for a `Location`."""
    params = {
        key: getattr(location, attr) for key, attr in QUERY_KEYS.items()
        if getattr(location, attr)}
    return urlencode(params)


class Navigator:
    """The external navigation channel."""

    def __init__(self, query: str = ''):
        self.location = parse_query(query)
        self._listeners: list[Listener] = []

    @property
    def query(self) -> str:
        """The current query string."""
        return build_query(self.location)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a location listener, returning a function to unregister."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def goto(self, query: str) -> None:
        """Navigate to the location described by a query string."""
        self._set(parse_query(query))

    def update(self, **params: str | None) -> None:
        """Navigate by changing some of the current query parameters.

        :params: Any of ``folder`` and ``id``.
        """
        unknown = set(params) - set(QUERY_KEYS)
        if unknown:
            raise TypeError(f'Unknown navigation parameters: {sorted(unknown)}')
        changes = {QUERY_KEYS[key]: value or None for key, value in params.items()}
        self._set(replace(self.location, **changes))

    def _set(self, location: Location) -> None:
        if location != self.location:
            self.location = location
            for listener in list(self._listeners):
                listener(location)
