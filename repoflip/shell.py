"""Interactive main loop.

The shell owns one :class:`InventoryCache` for the whole session and renders
menus through a :class:`Prompter`. Fetch and validation errors end the current
action with a message and return to the main menu; only end of input or an
explicit exit leaves the loop.
"""

from __future__ import annotations

import enum
import typing as typ

from rich.markup import escape

from repoflip.classify import classify_error
from repoflip.errors import FetchError, RemoteError, ValidationError
from repoflip.logging import get_logger, log_info, log_warning
from repoflip.observability import EventLogger
from repoflip.orchestrator import MutationOrchestrator
from repoflip.selection import (
    capture_keys,
    keys_for_indices,
    select_by_keyword,
    select_by_names,
)
from repoflip.snapshot import default_save_name
from repoflip.views import (
    account_header,
    describe_outcome,
    details_panel,
    inventory_table,
    report_table,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from rich.console import Console

    from repoflip.inventory import InventoryCache
    from repoflip.models import AccountSummary, RepositoryRecord
    from repoflip.orchestrator import SessionReport
    from repoflip.prompts import Prompter
    from repoflip.remote.protocol import RemoteRepositoryClient
    from repoflip.snapshot import SnapshotStore

logger = get_logger(__name__)


class MenuAction(enum.IntEnum):
    """Main menu entries, numbered as displayed."""

    LIST = 1
    TOGGLE_VISIBILITY = 2
    TOGGLE_ARCHIVE = 3
    SAVE = 4
    APPLY = 5
    SEARCH = 6
    DETAILS = 7
    REFRESH = 8
    EXIT = 9


MENU_LABELS: dict[MenuAction, str] = {
    MenuAction.LIST: "List all repositories",
    MenuAction.TOGGLE_VISIBILITY: "Toggle repository visibility",
    MenuAction.TOGGLE_ARCHIVE: "Toggle repository archive status",
    MenuAction.SAVE: "Save repository status to file",
    MenuAction.APPLY: "Load and apply repository status",
    MenuAction.SEARCH: "Search repositories",
    MenuAction.DETAILS: "Show detailed repository information",
    MenuAction.REFRESH: "Refresh repository cache",
    MenuAction.EXIT: "Exit",
}


class Shell:
    """Menu-driven session over one inventory cache."""

    def __init__(  # noqa: PLR0913
        self,
        client: RemoteRepositoryClient,
        cache: InventoryCache,
        store: SnapshotStore,
        prompter: Prompter,
        console: Console,
        *,
        events: EventLogger | None = None,
    ) -> None:
        """Wire the shell to its collaborators."""
        self._client = client
        self._cache = cache
        self._store = store
        self._prompter = prompter
        self._console = console
        self._account: AccountSummary | None = None
        self._account_loaded = False
        self.orchestrator = MutationOrchestrator(
            client,
            cache,
            prompter.confirm,
            on_outcome=lambda outcome: console.print(describe_outcome(outcome)),
            events=events or EventLogger(),
        )
        self._handlers: dict[MenuAction, cabc.Callable[[], None]] = {
            MenuAction.LIST: self.list_repositories,
            MenuAction.TOGGLE_VISIBILITY: self.toggle_visibility,
            MenuAction.TOGGLE_ARCHIVE: self.toggle_archive,
            MenuAction.SAVE: self.save_snapshot,
            MenuAction.APPLY: self.apply_snapshot,
            MenuAction.SEARCH: self.search,
            MenuAction.DETAILS: self.show_details,
            MenuAction.REFRESH: self.refresh,
        }

    def run(self) -> int:
        """Run the menu loop until exit; return the process exit code."""
        log_info(logger, "Session started")
        try:
            while True:
                self._render_header()
                choice = self._prompter.choose_one(
                    "Main menu", list(MENU_LABELS.values())
                )
                if choice is None:
                    continue
                action = MenuAction(choice)
                if action is MenuAction.EXIT:
                    break
                self.dispatch(action)
        except (EOFError, KeyboardInterrupt):
            self._console.print()
        log_info(logger, "Session ended")
        return 0

    def dispatch(self, action: MenuAction) -> None:
        """Run one menu action, reporting recoverable errors."""
        handler = self._handlers[action]
        try:
            handler()
        except FetchError as exc:
            self._error(str(exc))
        except ValidationError as exc:
            log_warning(logger, "Rejected input: %s", exc)
            self._error(str(exc))

    # -- helpers --------------------------------------------------------------

    def _error(self, message: str) -> None:
        self._prompter.notify(f"[red]{escape(message)}[/]")

    def _account_summary(self) -> AccountSummary | None:
        if not self._account_loaded:
            self._account_loaded = True
            try:
                self._account = self._client.current_user()
            except RemoteError as exc:
                log_warning(logger, "Could not fetch account summary: %s", exc.message)
                self._account = None
        return self._account

    def _render_header(self) -> None:
        try:
            total = len(self._cache.load())
        except FetchError as exc:
            self._error(str(exc))
            total = 0
        self._console.print(account_header(self._account_summary(), total))

    def _select(self, title: str) -> list[RepositoryRecord]:
        """Prompt for repositories from the current inventory."""
        return self._select_from(self._cache.load(), title)

    def _select_from(
        self, shown: cabc.Sequence[RepositoryRecord], title: str
    ) -> list[RepositoryRecord]:
        keys = capture_keys(shown)
        indices = self._prompter.choose_many(title, [r.label() for r in shown])
        names = keys_for_indices(keys, indices)
        return select_by_names(self._cache.load(), names)

    def _report(self, report: SessionReport) -> None:
        if report.outcomes:
            self._console.print(report_table(report))

    # -- actions --------------------------------------------------------------

    def list_repositories(self) -> None:
        """Print the full inventory."""
        self._console.print(inventory_table(self._cache.load()))

    def toggle_visibility(self) -> None:
        """Toggle visibility for a chosen set of repositories."""
        records = self._select("Select repositories to toggle visibility")
        if records:
            self._report(self.orchestrator.toggle_visibility(records))

    def toggle_archive(self) -> None:
        """Toggle archive status for a chosen set of repositories."""
        records = self._select("Select repositories to toggle archive status")
        if records:
            self._report(self.orchestrator.toggle_archive(records))

    def save_snapshot(self) -> None:
        """Write the inventory to a snapshot file."""
        inventory = self._cache.load()
        filename = self._prompter.ask_text(
            "Filename to save repository status", default_save_name()
        )
        if not filename:
            self._prompter.notify("Operation cancelled.")
            return
        path = self._store.save(inventory, filename)
        self._prompter.notify(f"Repository status saved to {escape(str(path))}")

    def apply_snapshot(self) -> None:
        """Load a snapshot file and reconcile live state with it."""
        latest = self._store.latest_snapshot()
        filename = self._prompter.ask_text(
            "Filename to load repository status", latest.name if latest else ""
        )
        if not filename:
            self._prompter.notify("Operation cancelled.")
            return
        records = self._store.load(filename)
        report = self._store.apply(records, self.orchestrator)
        self._report(report)
        self._prompter.notify(
            f"Finished applying repository status from {escape(filename)}"
        )

    def search(self) -> None:
        """Filter the inventory by keyword and optionally toggle the matches."""
        keyword = self._prompter.ask_text("Search keyword")
        if not keyword:
            return
        matches = select_by_keyword(self._cache.load(), keyword)
        if not matches:
            self._prompter.notify(
                f"No repositories found matching the keyword: {escape(keyword)}"
            )
            return
        self._console.print(inventory_table(matches, title=f"Matches for {keyword!r}"))
        records = self._select_from(matches, "Select repositories to toggle visibility")
        if records:
            self._report(self.orchestrator.toggle_visibility(records))

    def show_details(self) -> None:
        """Show the detail view for one repository."""
        inventory = self._cache.load()
        keys = capture_keys(inventory)
        choice = self._prompter.choose_one(
            "Select a repository", [r.label() for r in inventory]
        )
        if choice is None:
            return
        full_name = keys_for_indices(keys, [choice])[0]
        self.show_details_for(full_name)

    def show_details_for(self, full_name: str) -> None:
        """Fetch and print details for ``full_name``."""
        try:
            details = self._client.details(full_name)
        except RemoteError as exc:
            kind = classify_error(exc)
            log_warning(
                logger, "Details lookup failed for %s: %s", full_name, exc.message
            )
            self._error(f"Could not load {full_name}: {kind.describe()}")
            return
        self._console.print(details_panel(details))

    def refresh(self) -> None:
        """Drop cached state and refetch the inventory."""
        self._cache.invalidate("manual refresh")
        self._account_loaded = False
        records = self._cache.load(force=True)
        self._prompter.notify(f"Repository cache refreshed ({len(records)} found).")


__all__ = ["MENU_LABELS", "MenuAction", "Shell"]
