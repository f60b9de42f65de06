"""Program to browse and edit a folder of text snippets."""
from __future__ import annotations

import argparse
import os
import sys
from functools import partial
from typing import Any, Callable, ClassVar, TYPE_CHECKING

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.reactive import var
from textual.screen import Screen
from textual.widgets import (
    Button, Footer, Header, Input, Label, Static, TextArea)
from textual.worker import Worker, WorkerState

from . import selection
from .lifecycle import LifecycleController
from .navigation import Location, Navigator, build_query
from .snippets import (
    DEFAULT_NAME, INACTIVE, SEARCHING, VIEWING_TRASH, SearchMode, Snippet,
    find_snippet, now_iso, visible_snippets)
from .store import DEMO_FOLDER, demo_store
from .widgets import ConfirmDialog, SnippetItem, SnippetList
from .writer import WRITE_DELAY, DebouncedWriter

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from textual.timer import Timer

    from .abc import SnippetActions
    from .lifecycle import Confirm

PLACEHOLDER_TEXT = 'Select or create a snippet from sidebar'


class StartupError(Exception):
    """Error raised when snipdesk cannot start."""


class SnippetsScreen(Screen):
    """The main screen; a sidebar of snippets and an editor.

    The screen keeps its state in reactive variables and ties them together
    using independent watchers, registered in `on_mount`:

    - a search mode change resets the keyword and the explicit selection and,
      when searching, focuses the search input.
    - a folder change is passed to the store and, for a real folder, the
      folder is loaded.
    - an open snippet change loads the snippet's content and clears the
      explicit selection.

    Textual only invokes a watcher when the value actually changes.
    """

    BINDINGS: ClassVar[list[Binding]] = [
        Binding('f2', 'toggle_search', 'Search'),
        Binding('f3', 'toggle_trash_view', 'Trash'),
        Binding('f4', 'new_snippet', 'New'),
        Binding('f5', 'toggle_trash', 'Trash/restore'),
        Binding('f6', 'bulk_trash', 'Selected'),
        Binding('f7', 'purge', 'Delete forever', show=False),
        Binding('f8', 'empty_trash', 'Empty trash', show=False),
        Binding('escape', 'leave_search', show=False),
    ]
    DEFAULT_CSS = '''
    #sidebar {
        width: 32;
        border-right: solid $primary-lighten-2;
    }
    #search-box {
        height: auto;
        padding: 0 1;
    }
    #search-title {
        height: 1;
    }
    #search-label {
        width: 1fr;
    }
    #empty-trash {
        min-width: 8;
        height: 1;
        border: none;
    }
    #snippet-header {
        height: 3;
    }
    #snippet-name {
        width: 1fr;
    }
    #language {
        padding: 1 1;
        color: $text-muted;
    }
    #placeholder {
        width: 1fr;
        height: 1fr;
        content-align: center middle;
        color: $text-muted;
    }
    #bulk-trash {
        dock: bottom;
        width: 100%;
    }
    '''

    folder: var[str | None] = var(None, init=False)
    open_id: var[str | None] = var(None, init=False)
    search_mode: var[SearchMode] = var(INACTIVE, init=False)
    keyword: var[str] = var('', init=False)
    snippets: var[tuple[Snippet, ...]] = var((), init=False)
    selected_ids: var[tuple[str, ...]] = var((), init=False)
    buffer: var[str] = var('', init=False, always_update=True)

    def __init__(
            self,
            store: SnippetActions,
            navigator: Navigator,
            *,
            confirm: Confirm | None = None,
            write_delay: float = WRITE_DELAY):
        super().__init__(name='snippets', id='snippets')
        self.store = store
        self.navigator = navigator
        self.lifecycle = LifecycleController(store, confirm or self.confirm)
        self.content_writer = DebouncedWriter(
            store.update_snippet_content, self.set_write_timer,
            delay=write_delay, name='content')
        self.name_writer = DebouncedWriter(
            self.write_name, self.set_write_timer,
            delay=write_delay, name='name')
        self._shown_uid: str | None = None
        self._unsubscribers: list[Callable[[], None]] = []

    def compose(self) -> ComposeResult:
        """Build the widget hierarchy."""
        yield Header(id='header')
        with Horizontal(id='main'):
            with Vertical(id='sidebar'):
                with Vertical(id='search-box'):
                    with Horizontal(id='search-title'):
                        yield Label('Search', id='search-label')
                        yield Button('Empty', id='empty-trash')
                    yield Input(placeholder='Filter by name', id='search')
                yield SnippetList(id='snippet-list')
            with Vertical(id='editor-pane'):
                with Horizontal(id='snippet-header'):
                    yield Input(id='snippet-name')
                    yield Label(id='language')
                yield TextArea(id='editor')
            yield Static(PLACEHOLDER_TEXT, id='placeholder')
        yield Button('', id='bulk-trash')
        yield Footer()

    def on_mount(self) -> None:
        """Connect to the store and navigator and set up the effects."""
        self._unsubscribers = [
            self.store.subscribe(self.on_store_changed),
            self.navigator.subscribe(self.apply_location),
        ]
        self.snippets = tuple(self.store.snippets)
        self.apply_location(self.navigator.location)
        self.refresh_search_box()
        self.refresh_list()
        self.refresh_editor()
        self.refresh_bulk_bar()

        watch = partial(self.watch, self)
        watch('search_mode', self.focus_search, init=False)
        watch('search_mode', self.reset_keyword, init=False)
        watch('search_mode', self.clear_selection, init=False)
        watch('folder', self.sync_folder)
        watch('folder', self.load_folder)
        watch('open_id', self.load_content)
        watch('open_id', self.clear_selection, init=False)

    def on_unmount(self) -> None:
        """Disconnect from the store and navigator."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    ## Derived state.
    @property
    def filtered(self) -> tuple[Snippet, ...]:
        """The snippets shown in the sidebar, in display order."""
        return visible_snippets(self.snippets, self.search_mode, self.keyword)

    @property
    def effective_selection(self) -> tuple[str, ...]:
        """The IDs of the snippets that bulk actions apply to."""
        return selection.effective_selection(
            self.selected_ids, self.open_id, self.filtered)

    @property
    def open_snippet(self) -> Snippet | None:
        """The open snippet, if it is present in the collection."""
        return find_snippet(self.snippets, self.open_id)

    def is_highlighted(self, uid: str) -> bool:
        """Test whether a sidebar entry should be highlighted."""
        return selection.is_highlighted(uid, self.open_id, self.selected_ids)

    ## External inputs.
    def on_store_changed(self, store: SnippetActions) -> None:
        """Take a new snapshot of the store's snippets."""
        self.snippets = tuple(store.snippets)

    def apply_location(self, location: Location) -> None:
        """Adopt new navigation parameters."""
        self.folder = location.folder
        self.open_id = location.uid

    def goto(self, **params: str | None) -> None:
        """Ask the navigator to change some navigation parameters."""
        self.navigator.update(**params)

    ## Effects.
    def focus_search(self, mode: SearchMode) -> None:
        """Focus the search input when a search mode is entered."""
        if mode != INACTIVE:
            self.query_one('#search', Input).focus()

    def reset_keyword(self) -> None:
        """Forget the search keyword."""
        self.keyword = ''

    def clear_selection(self) -> None:
        """Forget the explicit selection."""
        self.selected_ids = ()

    def sync_folder(self, folder: str | None) -> None:
        """Tell the store which folder is active."""
        self.store.set_folder(folder or None)

    def load_folder(self, folder: str | None) -> None:
        """Load the snippet index for a folder."""
        if folder:
            self.run_worker(
                self.store.load_folder(folder), name=f'load {folder}',
                group='folder', exclusive=True, exit_on_error=False)

    def load_content(self, uid: str | None) -> None:
        """Start loading the content for the open snippet."""
        if uid:
            self.fetch_content(uid)

    @work(exclusive=True, group='content', exit_on_error=False)
    async def fetch_content(self, uid: str) -> None:
        """Read a snippet's content into the editor buffer.

        The result is dropped if a different snippet has been opened while
        reading. An edit still waiting to be written takes the place of the
        stored content.
        """
        text = await self.store.read_snippet_content(uid)
        if uid != self.open_id:
            self.log.debug(f'Dropped stale content for {uid}')
            return
        self.content_writer.confirm(uid, text)
        pending = self.content_writer.pending_value(uid)
        self.buffer = text if pending is None else pending

    ## Display updates.
    def watch_snippets(self) -> None:
        """React to a new store snapshot."""
        self.refresh_list()
        self.refresh_editor()

    def watch_keyword(self, keyword: str) -> None:
        """React to a keyword change."""
        w = self.query_one('#search', Input)
        if w.value != keyword:
            with w.prevent(Input.Changed):
                w.value = keyword
        self.refresh_list()

    def watch_search_mode(self) -> None:
        """React to a search mode change."""
        self.refresh_search_box()
        self.refresh_list()
        self.refresh_bulk_bar()

    def watch_selected_ids(self) -> None:
        """React to an explicit selection change."""
        self.refresh_highlights()
        self.refresh_bulk_bar()

    def watch_open_id(self) -> None:
        """React to a different snippet being opened."""
        self.refresh_highlights()
        self.refresh_editor()
        self.refresh_bulk_bar()

    def watch_buffer(self, text: str) -> None:
        """Show newly loaded content in the editor."""
        editor = self.query_one('#editor', TextArea)
        with editor.prevent(TextArea.Changed):
            editor.load_text(text)

    def refresh_search_box(self) -> None:
        """Show or hide the search controls."""
        mode = self.search_mode
        self.query_one('#search-box').display = mode != INACTIVE
        self.query_one('#empty-trash').display = mode == VIEWING_TRASH
        self.query_one('#search-label', Label).update(
            'Trash' if mode == VIEWING_TRASH else 'Search')

    def refresh_list(self) -> None:
        """Rebuild the sidebar entries."""
        snippets = self.filtered
        self.query_one(SnippetList).show(snippets, self.is_highlighted)
        self.query_one('#empty-trash', Button).disabled = not snippets

    def refresh_highlights(self) -> None:
        """Update the highlighting of sidebar entries."""
        self.query_one(SnippetList).update_highlights(self.is_highlighted)

    def refresh_editor(self) -> None:
        """Show the open snippet's details, or the placeholder."""
        snippet = self.open_snippet
        self.query_one('#editor-pane').display = snippet is not None
        self.query_one('#placeholder').display = snippet is None
        if snippet is None:
            self._shown_uid = None
            return

        self.query_one('#language', Label).update(snippet.language)
        if snippet.uid != self._shown_uid:
            self._shown_uid = snippet.uid
            self.name_writer.confirm(snippet.uid, snippet.name)
            w = self.query_one('#snippet-name', Input)
            with w.prevent(Input.Changed):
                w.value = snippet.name

    def refresh_bulk_bar(self) -> None:
        """Show the bulk action button while snippets are selected."""
        w = self.query_one('#bulk-trash', Button)
        w.display = bool(self.selected_ids)
        n = len(self.effective_selection)
        if self.search_mode == VIEWING_TRASH:
            w.label = f'Restore {n} snippets from Trash'
        else:
            w.label = f'Move {n} snippets to Trash'

    ## User input.
    def on_snippet_item_activated(self, message: SnippetItem.Activated):
        """Handle a click on a sidebar entry."""
        self.activate(message.uid, modified=message.modified)

    def activate(self, uid: str, *, modified: bool = False) -> None:
        """Open a snippet or, for a modified click, toggle its selection."""
        if modified:
            self.selected_ids = selection.toggle(self.selected_ids, uid)
        else:
            self.goto(id=uid)

    def on_input_changed(self, event: Input.Changed) -> None:
        """Handle a change to the search or name input."""
        if event.input.id == 'search':
            self.keyword = event.value
        elif event.input.id == 'snippet-name':
            self.edit_name(event.value)

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        """Handle an edit of the snippet's content."""
        self.edit_content(event.text_area.text)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle the screen's buttons."""
        if event.button.id == 'empty-trash':
            self.action_empty_trash()
        elif event.button.id == 'bulk-trash':
            self.action_bulk_trash()

    def edit_content(self, text: str) -> None:
        """Schedule a write of the open snippet's content."""
        if self.open_id:
            self.content_writer.schedule(self.open_id, text)

    def edit_name(self, name: str) -> None:
        """Schedule a write of the open snippet's name."""
        if self.open_id:
            self.name_writer.schedule(self.open_id, name)

    async def write_name(self, uid: str, name: str) -> None:
        """Store a snippet's new name."""
        await self.store.update_snippet(uid, 'name', name)

    def set_write_timer(
            self, delay: float, callback: Callable[[], Coroutine]) -> Timer:
        """Start a debounce timer that performs its write in a worker."""
        def start():
            self.run_worker(callback(), group='writes', exit_on_error=False)

        return self.set_timer(delay, start)

    async def flush_writes(self) -> None:
        """Perform any pending writes now.

        Both channels are flushed even if one fails. The first failure is
        then raised.
        """
        failures: list[Exception] = []
        for writer in (self.content_writer, self.name_writer):
            try:
                await writer.flush()
            except Exception as exc:         # pylint: disable=broad-except
                failures.append(exc)
        if failures:
            raise failures[0]

    def set_language(self, language: str) -> Worker | None:
        """Change the language of the open snippet."""
        return self._update_open_snippet('language', language)

    def set_export_prefix(self, uid: str, prefix: str) -> Worker:
        """Change the export prefix of a snippet."""
        return self.run_worker(
            self.store.update_snippet(uid, 'export_prefix', prefix),
            name='set export prefix', group='writes', exit_on_error=False)

    def _update_open_snippet(self, field: str, value: str) -> Worker | None:
        if not self.open_id:
            return None
        return self.run_worker(
            self.store.update_snippet(self.open_id, field, value),
            name=f'set {field}', group='writes', exit_on_error=False)

    ## Search mode actions.
    def action_toggle_search(self) -> None:
        """Show or hide the search input."""
        if self.search_mode == SEARCHING:
            self.search_mode = INACTIVE
        else:
            self.search_mode = SEARCHING

    def action_toggle_trash_view(self) -> None:
        """Show or hide the trashed snippets."""
        if self.search_mode == VIEWING_TRASH:
            self.search_mode = INACTIVE
        else:
            self.search_mode = VIEWING_TRASH

    def action_leave_search(self) -> None:
        """Leave search or trash mode."""
        self.search_mode = INACTIVE

    ## Lifecycle actions.
    async def confirm(self, message: str) -> bool:
        """Ask the user a yes/no question.

        This must be invoked from within a worker.
        """
        return bool(await self.app.push_screen_wait(ConfirmDialog(message)))

    def run_lifecycle(self, work: Coroutine[Any, Any, Any], name: str) -> Worker:
        """Run a lifecycle operation in a worker."""
        return self.run_worker(
            work, name=name, group='lifecycle', exit_on_error=False)

    def action_new_snippet(self) -> Worker:
        """Create a new, empty snippet and open it."""
        return self.run_lifecycle(self.new_snippet(), 'new snippet')

    async def new_snippet(self) -> str:
        """Create a new, empty snippet and open it.

        :return: The new snippet's ID.
        """
        stamp = now_iso()
        uid = self.store.get_random_id()
        snippet = Snippet(
            uid=uid, name=DEFAULT_NAME, created_at=stamp, updated_at=stamp)
        await self.store.create_snippet(snippet, '')
        self.search_mode = INACTIVE
        self.goto(id=uid)
        return uid

    def action_toggle_trash(self, uid: str = '') -> Worker | None:
        """Move a snippet (by default the open one) to or from the trash."""
        uid = uid or self.open_id or ''
        if not uid:
            return None
        return self.run_lifecycle(
            self.lifecycle.toggle_trash(uid), 'toggle trash')

    def action_bulk_trash(self) -> Worker | None:
        """Move the selected snippets to or from the trash."""
        ids = self.effective_selection
        if not ids:
            return None
        restoring = self.search_mode == VIEWING_TRASH
        return self.run_lifecycle(
            self.bulk_trash(ids, restoring=restoring), 'bulk trash')

    async def bulk_trash(
            self, ids: tuple[str, ...], *, restoring: bool) -> bool:
        """Move snippets to or from the trash, then clear the selection."""
        done = await self.lifecycle.bulk_toggle_trash(ids, restoring=restoring)
        if done:
            self.selected_ids = ()
        return done

    def action_purge(self, uid: str = '') -> Worker | None:
        """Permanently delete a trashed snippet (by default the open one)."""
        uid = uid or self.open_id or ''
        if not uid:
            return None
        return self.run_lifecycle(self.lifecycle.purge(uid), 'delete forever')

    def action_empty_trash(self) -> Worker:
        """Permanently delete all trashed snippets."""
        return self.run_lifecycle(self.lifecycle.empty_trash(), 'empty trash')

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        """Report failed operations."""
        if event.state == WorkerState.ERROR:
            worker = event.worker
            self.log.error(f'{worker.name} failed: {worker.error!r}')
            self.notify(
                f'{worker.name or "Operation"} failed: {worker.error}',
                title='Error', severity='error')


class SnipDesk(App):
    """The textual application object."""

    TITLE = 'Snippet desk'
    BINDINGS: ClassVar[list[Binding]] = [
        Binding('ctrl+q', 'quit', 'Quit', priority=True),
    ]

    def __init__(
            self,
            args: argparse.Namespace,
            *,
            store: SnippetActions | None = None,
            confirm: Confirm | None = None):
        super().__init__()
        self.args = args
        self.store = demo_store() if store is None else store
        location = Location(folder=args.folder, uid=args.open)
        self.navigator = Navigator(build_query(location))
        self.main_screen = SnippetsScreen(
            self.store, self.navigator, confirm=confirm,
            write_delay=args.write_delay)

    def on_mount(self) -> None:
        """Perform app start-up actions."""
        self.push_screen(self.main_screen)

    async def action_quit(self) -> None:
        """Save pending edits and quit.

        If saving fails, the failure is reported and the application keeps
        running. The failed edits are no longer pending, so a second quit
        exits.
        """
        try:
            await self.main_screen.flush_writes()
        except Exception as exc:             # pylint: disable=broad-except
            self.log.error(f'Saving on quit failed: {exc!r}')
            self.notify(
                f'Saving failed: {exc}', title='Error', severity='error')
            return
        self.exit()


def default_write_delay() -> float:
    """Get the debounce window from the environment."""
    text = os.environ.get('SNIPDESK_WRITE_DELAY', '')
    if not text:
        return WRITE_DELAY
    try:
        return float(text)
    except ValueError:
        raise StartupError(
            f'Invalid SNIPDESK_WRITE_DELAY value: {text!r}') from None


def parse_args(sys_args: list[str] | None = None) -> argparse.Namespace:
    """Parse the command line arguments."""
    parser = argparse.ArgumentParser(
        description='Browse and edit a folder of snippets.')
    parser.add_argument(
        '--folder', default=os.environ.get('SNIPDESK_FOLDER', DEMO_FOLDER),
        help='The snippet folder to open.')
    parser.add_argument(
        '--open', metavar='ID',
        help='The ID of a snippet to open.')

    # This is mainly used by testing, to shorten the debounce window.
    add_hidden_arg = partial(parser.add_argument, help=argparse.SUPPRESS)
    add_hidden_arg('--write-delay', type=float, default=default_write_delay())
    return parser.parse_args(sys.argv[1:] if sys_args is None else sys_args)


def main():                                                  # pragma: no cover
    """Run the application."""
    try:
        args = parse_args()
    except StartupError as exc:
        sys.exit(str(exc))
    SnipDesk(args).run()
