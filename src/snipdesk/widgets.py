"""Application specific widgets."""
from __future__ import annotations

from typing import Callable, ClassVar, Sequence

from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Grid, VerticalScroll
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static

from .snippets import Snippet


class SnippetItem(Static):
    """A sidebar entry for a single snippet."""

    DEFAULT_CSS = '''
    SnippetItem {
        height: 2;
        padding: 0 1;
    }
    SnippetItem.highlighted {
        background: $accent;
        color: $text;
    }
    '''

    class Activated(Message):
        """A sidebar entry was clicked.

        @uid:      The ID of the snippet.
        @modified: True if the shift key was held.
        """

        def __init__(self, uid: str, *, modified: bool):
            super().__init__()
            self.uid = uid
            self.modified = modified

    def __init__(self, snippet: Snippet, *, highlighted: bool = False):
        super().__init__(render_entry(snippet), classes='snippet_item')
        self.uid = snippet.uid
        self.set_class(highlighted, 'highlighted')

    def on_click(self, event: events.Click) -> None:
        """Process a mouse click."""
        event.stop()
        self.post_message(self.Activated(self.uid, modified=event.shift))


def render_entry(snippet: Snippet) -> Text:
    """Create the two line text for a sidebar entry."""
    text = Text(no_wrap=True, overflow='ellipsis')
    text.append(snippet.name or ' ')
    text.append('\n')
    text.append(snippet.created_at[:10], style='dim')
    if snippet.export_prefix:
        text.append(f'  {snippet.export_prefix}', style='italic dim')
    return text


class SnippetList(VerticalScroll):
    """The sidebar list of snippets."""

    def show(
            self, snippets: Sequence[Snippet],
            is_highlighted: Callable[[str], bool]) -> None:
        """Replace the entries with a new set of snippets."""
        self.remove_children()
        items = [
            SnippetItem(s, highlighted=is_highlighted(s.uid))
            for s in snippets]
        if items:
            self.mount(*items)

    def update_highlights(self, is_highlighted: Callable[[str], bool]) -> None:
        """Set or clear the highlighting of each entry."""
        for item in self.query(SnippetItem):
            item.set_class(is_highlighted(item.uid), 'highlighted')


class ConfirmDialog(ModalScreen[bool]):
    """A modal yes/no question.

    The screen is dismissed with True for yes and False for no.
    """

    AUTO_FOCUS = '#yes'
    BINDINGS: ClassVar[list[Binding]] = [
        Binding('y', 'answer(True)', 'Yes', show=False),
        Binding('n,escape', 'answer(False)', 'No', show=False),
    ]
    DEFAULT_CSS = '''
    ConfirmDialog {
        align: center middle;
        background: $background 60%;
    }
    #dialog {
        grid-size: 2;
        grid-rows: 1 3;
        grid-gutter: 1 2;
        width: 64;
        height: auto;
        padding: 0 1;
        border: solid $primary-lighten-3;
        background: $surface;
    }
    #question {
        column-span: 2;
        width: 1fr;
        content-align: center middle;
    }
    '''

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def compose(self) -> ComposeResult:
        """Build the widget hierarchy."""
        yield Grid(
            Label(self.message, id='question'),
            Button('Yes', variant='primary', id='yes'),
            Button('No', id='no'),
            id='dialog')

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Answer the question with a mouse click."""
        self.dismiss(event.button.id == 'yes')

    def action_answer(self, answer: bool) -> None:
        """Answer the question from the keyboard."""
        self.dismiss(answer)
