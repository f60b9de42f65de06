"""The snippet entity and the filter/sort engine for the sidebar."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Literal, Sequence

SearchMode = Literal['inactive', 'searching', 'trash']
INACTIVE: SearchMode = 'inactive'
SEARCHING: SearchMode = 'searching'
VIEWING_TRASH: SearchMode = 'trash'
SEARCH_MODES = INACTIVE, SEARCHING, VIEWING_TRASH

DEFAULT_LANGUAGE = 'plaintext'
DEFAULT_NAME = 'Untitled'


def now_iso() -> str:
    """Format the current UTC time like a JavaScript ``toISOString``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


@dataclass(frozen=True)
class Snippet:
    """A named, language tagged piece of text.

    The body of a snippet is not held here. It is read from the store when
    the snippet is opened.

    @uid:           The unique ID of the snippet.
    @name:          The name shown in the sidebar.
    @language:      The language ID, used for syntax highlighting.
    @created_at:    ISO-8601 creation time.
    @updated_at:    ISO-8601 time of the last change.
    @deleted_at:    ISO-8601 time the snippet was moved to the trash, or
                    ``None`` for an active snippet.
    @export_prefix: Trigger prefix used when exporting to an editor's snippet
                    collection.
    """

    uid: str
    name: str
    created_at: str
    updated_at: str
    language: str = DEFAULT_LANGUAGE
    deleted_at: str | None = None
    export_prefix: str | None = None

    @property
    def trashed(self) -> bool:
        """True if this snippet is in the trash."""
        return bool(self.deleted_at)

    def __repr__(self):
        state = 'trashed' if self.trashed else 'active'
        return f'Snippet({self.uid}:{self.name!r}, {state})'


class Matcher:                         # pylint: disable=too-few-public-methods
    """Simple case insensitive, plain-text name matcher."""

    def __init__(self, pat: str):
        self.pat = pat.casefold()

    def search(self, text: str) -> bool:
        """Search for plain text."""
        return not self.pat or self.pat in text.casefold()


def passes_filter(snippet: Snippet, mode: SearchMode, matcher: Matcher) -> bool:
    """Test whether a snippet should be visible for a search mode."""
    if snippet.trashed != (mode == VIEWING_TRASH):
        return False
    return matcher.search(snippet.name)


def sort_key(snippet: Snippet) -> str:
    """Provide the key that orders the sidebar, newest first.

    Trashed snippets are ordered by when they were trashed, others by when
    they were created. The filter never mixes the two kinds.
    """
    return snippet.deleted_at or snippet.created_at


def visible_snippets(
        snippets: Iterable[Snippet],
        mode: SearchMode,
        keyword: str = '') -> tuple[Snippet, ...]:
    """Filter and order snippets for display.

    :snippets: The full snippet collection.
    :mode:     The current search mode. Only trashed snippets are shown for
               'trash', only active snippets otherwise.
    :keyword:  If not empty, only snippets whose name contains this string
               (ignoring case) are shown.
    :return:
        The visible snippets, most recent first. Equal timestamps keep the
        collection order.
    """
    matcher = Matcher(keyword)
    found = [s for s in snippets if passes_filter(s, mode, matcher)]
    return tuple(sorted(found, key=sort_key, reverse=True))


def find_snippet(
        snippets: Sequence[Snippet], uid: str | None) -> Snippet | None:
    """Find a snippet by ID."""
    if uid:
        for snippet in snippets:
            if snippet.uid == uid:
                return snippet
    return None


def contains(snippets: Sequence[Snippet], uid: str | None) -> bool:
    """Test whether a snippet with the given ID is present."""
    return find_snippet(snippets, uid) is not None
