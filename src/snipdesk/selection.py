"""Multi-selection of sidebar snippets.

The explicit selection is an ordered tuple of snippet IDs, toggled by
modified (shift) clicks. The snippet that is currently open is never stored
in the tuple, but it takes part in highlighting and, when it is visible, in
bulk actions.
"""
from __future__ import annotations

from typing import Sequence

from .snippets import Snippet, contains


def toggle(ids: Sequence[str], uid: str) -> tuple[str, ...]:
    """Add or remove a snippet ID from an explicit selection."""
    if uid in ids:
        return tuple(i for i in ids if i != uid)
    else:
        return (*ids, uid)


def is_highlighted(uid: str, open_id: str | None, ids: Sequence[str]) -> bool:
    """Test whether a sidebar entry should be shown as selected."""
    return uid == open_id or uid in ids


def effective_selection(
        ids: Sequence[str],
        open_id: str | None,
        visible: Sequence[Snippet]) -> tuple[str, ...]:
    """Calculate the snippet IDs that a bulk action applies to.

    :ids:     The explicitly selected IDs.
    :open_id: The ID of the open snippet, if any.
    :visible: The currently visible snippets.
    :return:
        The explicit IDs plus the open snippet's ID, provided the open snippet
        is visible and not already explicitly selected.
    """
    if open_id and open_id not in ids and contains(visible, open_id):
        return (*ids, open_id)
    return tuple(ids)
