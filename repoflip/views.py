"""Rich renderables for inventory listings, detail views and session reports."""

from __future__ import annotations

import typing as typ

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from repoflip.orchestrator import Failed, Skipped, Success

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from repoflip.models import AccountSummary, RepositoryDetails, RepositoryRecord
    from repoflip.orchestrator import Outcome, SessionReport

NOT_AVAILABLE = "N/A"


def _text(value: object | None) -> str:
    if value is None or value == "":
        return NOT_AVAILABLE
    return escape(str(value))


def _date(value: str | None) -> str:
    """Trim an ISO 8601 timestamp to ``YYYY-MM-DD``."""
    return value[:10] if value else NOT_AVAILABLE


def _yes_no(flag: bool) -> str:  # noqa: FBT001
    return "yes" if flag else "no"


def inventory_table(
    records: cabc.Sequence[RepositoryRecord], *, title: str = "Repositories"
) -> Table:
    """Return a numbered table of ``records`` in display order."""
    table = Table(title=title, border_style="cyan")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Repository")
    table.add_column("Visibility")
    table.add_column("Archived")
    for number, record in enumerate(records, start=1):
        colour = "green" if record.visibility == "public" else "yellow"
        table.add_row(
            str(number),
            escape(record.full_name),
            f"[{colour}]{record.visibility}[/]",
            _yes_no(record.archived),
        )
    return table


def account_header(summary: AccountSummary | None, total: int) -> Panel:
    """Return the main menu header.

    Without an account summary only the listed total is shown.
    """
    if summary is None:
        body = f"Repositories: {total}"
    else:
        display = escape(summary.name) if summary.name else NOT_AVAILABLE
        body = (
            f"User: [bold]{escape(summary.login)}[/] ({display})\n"
            f"Public repositories: {summary.public_repos}\n"
            f"Private repositories: {summary.private_repos(total)}"
        )
    return Panel(body, title="Repository Manager", border_style="blue")


def details_panel(details: RepositoryDetails) -> Panel:
    """Return every detail field, ``N/A`` where the platform had no value."""
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="bold")
    grid.add_column()
    rows: list[tuple[str, str]] = [
        ("Name", escape(details.full_name)),
        ("Description", _text(details.description)),
        ("URL", _text(details.url)),
        ("Homepage", _text(details.homepage)),
        ("Visibility", str(details.visibility)),
        ("Archived", _yes_no(details.archived)),
        ("Default branch", _text(details.default_branch)),
        ("Created", _date(details.created_at)),
        ("Last updated", _date(details.updated_at)),
        ("Last pushed", _date(details.pushed_at)),
        (
            "Size",
            NOT_AVAILABLE
            if details.disk_usage_kb is None
            else f"{details.disk_usage_kb} KB",
        ),
        ("Primary language", _text(details.primary_language)),
        ("License", _text(details.license_name)),
        ("Stars", _text(details.stars)),
        ("Forks", _text(details.forks)),
        ("Open issues", _text(details.open_issues)),
        ("Open pull requests", _text(details.open_pull_requests)),
        ("Commits", _text(details.commit_count)),
        ("Contributors", _text(details.contributor_count)),
    ]
    for label, value in rows:
        grid.add_row(label, value)
    return Panel(grid, title="Repository details", border_style="cyan")


def describe_outcome(outcome: Outcome) -> str:
    """Return a one-line, markup-styled description of ``outcome``."""
    name = escape(outcome.full_name)
    match outcome:
        case Success(operation=operation, new_state=state):
            state_text = _state_text(outcome, state)
            return f"[green]OK[/] {name}: {operation} is now {state_text}"
        case Skipped(operation=operation, reason=reason):
            return f"[yellow]SKIP[/] {name}: {operation} ({escape(reason)})"
        case Failed(operation=operation, kind=kind, raw_message=message):
            return (
                f"[red]FAIL[/] {name}: {operation} - {kind.describe()} "
                f"[dim]({escape(message)})[/]"
            )
    msg = f"Unsupported outcome: {outcome!r}"
    raise TypeError(msg)


def report_table(report: SessionReport, *, title: str = "Summary") -> Table:
    """Return the per-repository outcome table with a totals caption."""
    table = Table(title=title, border_style="magenta")
    table.add_column("Repository")
    table.add_column("Operation")
    table.add_column("Result")
    for outcome in report.outcomes:
        match outcome:
            case Success(new_state=state):
                result = f"[green]success[/] ({_state_text(outcome, state)})"
            case Skipped(reason=reason):
                result = f"[yellow]skipped[/] ({escape(reason)})"
            case Failed(kind=kind):
                result = f"[red]failed[/] ({kind.describe()})"
        table.add_row(escape(outcome.full_name), str(outcome.operation), result)
    table.caption = (
        f"{report.succeeded} succeeded, {report.skipped} skipped, "
        f"{report.failed} failed"
    )
    return table


def _state_text(outcome: Success, state: object) -> str:
    if outcome.operation == "archive":
        return "archived" if state else "unarchived"
    return str(state)


__all__ = [
    "NOT_AVAILABLE",
    "account_header",
    "describe_outcome",
    "details_panel",
    "inventory_table",
    "report_table",
]
