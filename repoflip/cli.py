"""Command-line entry point.

Usage:
    repoflip                                  # interactive menu
    repoflip list                             # print the inventory
    repoflip search KEYWORD                   # filter by substring
    repoflip show OWNER/NAME                  # detail view
    repoflip toggle-visibility OWNER/NAME...  # flip public/private
    repoflip toggle-archive OWNER/NAME...     # flip archived/unarchived
    repoflip save [FILENAME]                  # write a snapshot
    repoflip apply [FILENAME]                 # reconcile from a snapshot
    repoflip make-private                     # every public repo to private

Mutating commands confirm each repository unless ``--yes`` is given and exit
non-zero when any repository failed. Missing external tools or a missing
terminal for the interactive menu exit with status 1.
"""

from __future__ import annotations

import dataclasses
import itertools
import sys
import typing as typ
from pathlib import Path

from cyclopts import App, Parameter
from rich.console import Console
from rich.markup import escape

from repoflip import __version__
from repoflip.common.slug import is_valid_repo_slug
from repoflip.config import (
    Backend,
    ManagerConfig,
    build_client,
    check_dependencies,
)
from repoflip.errors import (
    BadRepoNameError,
    FetchError,
    InteractiveTerminalError,
    RemoteError,
    RepoflipError,
    ValidationError,
)
from repoflip.inventory import InventoryCache
from repoflip.logging import configure_logging, get_logger, log_error, log_info
from repoflip.models import Visibility
from repoflip.observability import EventLogger
from repoflip.orchestrator import MutationOrchestrator, Outcome, SessionReport
from repoflip.prompts import AutoConfirmPrompter, RichPrompter
from repoflip.selection import select_by_keyword, select_by_names
from repoflip.shell import Shell
from repoflip.snapshot import SnapshotStore, default_save_name
from repoflip.views import (
    describe_outcome,
    details_panel,
    inventory_table,
    report_table,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from repoflip.models import RepositoryRecord
    from repoflip.remote.protocol import RemoteRepositoryClient

logger = get_logger(__name__)

console = Console()

app = App(
    name="repoflip",
    help="Bulk-toggle repository visibility and archive status",
    version=__version__,
)


@Parameter(name="*")
@dataclasses.dataclass(frozen=True, slots=True)
class SessionOptions:
    """Options shared by every command; unset values fall back to env vars."""

    backend: typ.Annotated[
        str | None, Parameter(help="Remote backend: gh or rest.")
    ] = None
    owner: typ.Annotated[
        str | None, Parameter(help="List this account instead of your own.")
    ] = None
    log_file: typ.Annotated[
        Path | None, Parameter(help="Append-only event log path.")
    ] = None
    log_level: typ.Annotated[str | None, Parameter(help="Log level.")] = None
    snapshot_dir: typ.Annotated[
        Path | None, Parameter(help="Directory for snapshot files.")
    ] = None

    def apply_to(self, config: ManagerConfig) -> ManagerConfig:
        """Return ``config`` with every option that was given overriding it."""
        overrides: dict[str, typ.Any] = {}
        if self.backend is not None:
            overrides["backend"] = Backend.parse(self.backend)
        if self.owner is not None:
            overrides["owner"] = self.owner or None
        if self.log_file is not None:
            overrides["log_file"] = self.log_file
        if self.log_level is not None:
            overrides["log_level"] = self.log_level
        if self.snapshot_dir is not None:
            overrides["snapshot_dir"] = self.snapshot_dir
        return dataclasses.replace(config, **overrides)


@dataclasses.dataclass(slots=True)
class Session:
    """Collaborators for one command invocation."""

    config: ManagerConfig
    client: RemoteRepositoryClient
    cache: InventoryCache
    store: SnapshotStore
    prompter: RichPrompter
    events: EventLogger

    def orchestrator(
        self, on_outcome: cabc.Callable[[Outcome], None] | None = None
    ) -> MutationOrchestrator:
        """Return an orchestrator that prints each outcome as it lands."""
        return MutationOrchestrator(
            self.client,
            self.cache,
            self.prompter.confirm,
            on_outcome=on_outcome or _print_outcome,
            events=self.events,
        )


def _print_outcome(outcome: Outcome) -> None:
    console.print(describe_outcome(outcome))


def _print_error(message: str) -> None:
    console.print(f"[red]{escape(message)}[/]")


def _require_terminal() -> None:
    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        msg = "The interactive menu needs a terminal; use a subcommand instead."
        raise InteractiveTerminalError(msg)


def _open_session(
    options: SessionOptions | None, *, yes: bool, interactive: bool
) -> Session:
    config = (options or SessionOptions()).apply_to(ManagerConfig.from_env())
    configure_logging(config.log_level, log_file=config.log_file)
    check_dependencies(config)
    if interactive:
        _require_terminal()
    client = build_client(config)
    events = EventLogger()
    prompter = AutoConfirmPrompter(console) if yes else RichPrompter(console)
    return Session(
        config=config,
        client=client,
        cache=InventoryCache(client, events=events),
        store=SnapshotStore(config.snapshot_dir, events=events),
        prompter=prompter,
        events=events,
    )


def _run(
    action: cabc.Callable[[Session], int],
    options: SessionOptions | None,
    *,
    yes: bool = False,
    interactive: bool = False,
) -> int:
    """Open a session, run ``action`` and map engine errors to exit codes."""
    try:
        session = _open_session(options, yes=yes, interactive=interactive)
    except (RepoflipError, ValueError) as exc:
        log_error(logger, "Startup failed: %s", exc)
        _print_error(str(exc))
        return 1
    try:
        return action(session)
    except (FetchError, ValidationError) as exc:
        log_error(logger, "Command failed: %s", exc)
        _print_error(str(exc))
        return 1
    finally:
        session.client.close()


def _finish(report: SessionReport) -> int:
    if report.outcomes:
        console.print(report_table(report))
    if report.failed:
        names = ", ".join(report.failed_names)
        _print_error(f"Failed: {names}")
        return 1
    return 0


def _resolve(
    session: Session, full_names: cabc.Sequence[str]
) -> list[RepositoryRecord]:
    """Resolve command-line names against the inventory, warning on misses."""
    inventory = session.cache.load()
    records = select_by_names(inventory, full_names)
    found = {record.full_name for record in records}
    for name in full_names:
        if name not in found:
            console.print(f"[yellow]Not in inventory, skipping:[/] {escape(name)}")
    return records


@app.default
def interactive(*, options: SessionOptions | None = None) -> int:
    """Open the interactive menu."""

    def action(session: Session) -> int:
        shell = Shell(
            session.client,
            session.cache,
            session.store,
            session.prompter,
            console,
            events=session.events,
        )
        return shell.run()

    return _run(action, options, interactive=True)


@app.command(name="list")
def list_repositories(*, options: SessionOptions | None = None) -> int:
    """Print every repository with its visibility and archive status."""

    def action(session: Session) -> int:
        console.print(inventory_table(session.cache.load()))
        return 0

    return _run(action, options)


@app.command
def search(keyword: str, /, *, options: SessionOptions | None = None) -> int:
    """Print repositories whose full name contains KEYWORD (case-sensitive)."""

    def action(session: Session) -> int:
        matches = select_by_keyword(session.cache.load(), keyword)
        if not matches:
            console.print(
                f"No repositories found matching the keyword: {escape(keyword)}"
            )
            return 0
        console.print(inventory_table(matches, title=f"Matches for {keyword!r}"))
        return 0

    return _run(action, options)


@app.command
def show(full_name: str, /, *, options: SessionOptions | None = None) -> int:
    """Show detailed information for OWNER/NAME."""

    def action(session: Session) -> int:
        if not is_valid_repo_slug(full_name):
            raise BadRepoNameError(full_name)
        try:
            details = session.client.details(full_name)
        except RemoteError as exc:
            log_error(logger, "Details lookup failed for %s: %s", full_name, exc)
            _print_error(exc.message)
            return 1
        console.print(details_panel(details))
        return 0

    return _run(action, options)


@app.command(name="toggle-visibility")
def toggle_visibility(
    *full_names: str,
    yes: bool = False,
    options: SessionOptions | None = None,
) -> int:
    """Flip each named repository between public and private."""

    def action(session: Session) -> int:
        records = _resolve(session, full_names)
        return _finish(session.orchestrator().toggle_visibility(records))

    return _run(action, options, yes=yes)


@app.command(name="toggle-archive")
def toggle_archive(
    *full_names: str,
    yes: bool = False,
    options: SessionOptions | None = None,
) -> int:
    """Archive each named unarchived repository and unarchive archived ones."""

    def action(session: Session) -> int:
        records = _resolve(session, full_names)
        return _finish(session.orchestrator().toggle_archive(records))

    return _run(action, options, yes=yes)


@app.command
def save(
    filename: str | None = None, /, *, options: SessionOptions | None = None
) -> int:
    """Write the inventory to FILENAME (default: a timestamped name)."""

    def action(session: Session) -> int:
        name = filename or default_save_name()
        path = session.store.save(session.cache.load(), name)
        console.print(f"Repository status saved to {escape(str(path))}")
        return 0

    return _run(action, options)


@app.command
def apply(
    filename: str | None = None,
    /,
    *,
    yes: bool = False,
    options: SessionOptions | None = None,
) -> int:
    """Reconcile live state with FILENAME (default: the newest snapshot)."""

    def action(session: Session) -> int:
        source: str | Path | None = filename or session.store.latest_snapshot()
        if source is None:
            _print_error(
                f"No repo_status_*.csv found in {session.store.snapshot_dir}"
            )
            return 1
        records = session.store.load(source)
        report = session.store.apply(records, session.orchestrator())
        log_info(logger, "Finished applying repository status from %s", source)
        return _finish(report)

    return _run(action, options, yes=yes)


@app.command(name="make-private")
def make_private(
    *, yes: bool = False, options: SessionOptions | None = None
) -> int:
    """Set every public, unarchived repository to private."""

    def action(session: Session) -> int:
        targets = [
            record
            for record in session.cache.load()
            if record.visibility is Visibility.PUBLIC and not record.archived
        ]
        if not targets:
            console.print("No public repositories to change.")
            return 0
        counter = itertools.count(1)
        total = len(targets)

        def progress(outcome: Outcome) -> None:
            console.print(f"\\[{next(counter)}/{total}] {describe_outcome(outcome)}")

        orchestrator = session.orchestrator(on_outcome=progress)
        return _finish(orchestrator.ensure_visibility(targets, Visibility.PRIVATE))

    return _run(action, options, yes=yes)


def main() -> int:
    """Entry point for the CLI."""
    return app()


__all__ = ["SessionOptions", "app", "main"]
