"""Terminal prompts used by the interactive shell and batch commands.

The shell and the mutation orchestrator talk to a :class:`Prompter` rather
than to the terminal directly, so tests can script answers and the batch
commands can auto-confirm with ``--yes``.
"""

from __future__ import annotations

import typing as typ

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from repoflip.selection import parse_index_list

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class Prompter(typ.Protocol):
    """User interaction surface."""

    def confirm(self, question: str) -> bool:
        """Ask a yes/no question; ``False`` means declined."""
        ...

    def ask_text(self, question: str, default: str = "") -> str:
        """Ask for free text; an empty answer means cancelled."""
        ...

    def choose_one(self, title: str, labels: cabc.Sequence[str]) -> int | None:
        """Return one 1-based choice, or ``None`` to go back."""
        ...

    def choose_many(self, title: str, labels: cabc.Sequence[str]) -> list[int]:
        """Return 1-based choices; an empty list means go back."""
        ...

    def notify(self, message: str) -> None:
        """Show a message and continue."""
        ...


class RichPrompter:
    """Prompter backed by ``rich`` console prompts."""

    def __init__(self, console: Console | None = None) -> None:
        """Use ``console`` for all output, defaulting to stdout."""
        self.console = console or Console()

    def confirm(self, question: str) -> bool:
        """Ask a yes/no question defaulting to no."""
        return Confirm.ask(question, console=self.console, default=False)

    def ask_text(self, question: str, default: str = "") -> str:
        """Ask for free text, offering ``default`` when given."""
        answer = Prompt.ask(
            question,
            console=self.console,
            default=default,
            show_default=bool(default),
        )
        return (answer or "").strip()

    def _print_options(self, title: str, labels: cabc.Sequence[str]) -> None:
        self.console.print(f"\n[bold]{title}[/]")
        width = len(str(len(labels)))
        for number, label in enumerate(labels, start=1):
            self.console.print(f"  [cyan]{number:>{width}}[/]  {escape(label)}")

    def choose_one(self, title: str, labels: cabc.Sequence[str]) -> int | None:
        """Show numbered ``labels`` and read one number; blank goes back."""
        self._print_options(title, labels)
        raw = self.ask_text("Number (blank to go back)")
        choices = [i for i in parse_index_list(raw, len(labels)) if i >= 1]
        return choices[0] if choices else None

    def choose_many(self, title: str, labels: cabc.Sequence[str]) -> list[int]:
        """Show numbered ``labels`` and read numbers or ranges like ``1 3 5-7``."""
        self._print_options(title, labels)
        raw = self.ask_text("Numbers, e.g. '1 3 5-7' (blank to go back)")
        chosen: list[int] = []
        for index in parse_index_list(raw, len(labels)):
            if index >= 1 and index not in chosen:
                chosen.append(index)
        return chosen

    def notify(self, message: str) -> None:
        """Print ``message``."""
        self.console.print(message)


class AutoConfirmPrompter(RichPrompter):
    """Prompter that answers yes to every confirmation, for ``--yes``."""

    def confirm(self, question: str) -> bool:
        """Echo the question and approve it."""
        self.console.print(f"{escape(question)} [dim](auto-confirmed)[/]")
        return True


__all__ = ["AutoConfirmPrompter", "Prompter", "RichPrompter"]
