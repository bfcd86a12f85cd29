"""Confirmation-gated bulk mutation of repository visibility and archive state.

Each repository moves through an explicit state machine::

    PENDING -> CONFIRM_PROMPTED -> SKIPPED (declined)
                                -> EXECUTING -> SUCCESS | FAILED
                                             -> SKIPPED (already at target)
    PENDING -> SKIPPED (archived record selected for a visibility change)

Repositories are processed strictly one after another. Remote failures are
classified and recorded as :class:`Failed` outcomes and never abort the batch.
When a batch produces at least one :class:`Success` the inventory cache is
invalidated so the next menu render reflects live state.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from repoflip.classify import ErrorKind, classify_error
from repoflip.errors import RemoteError
from repoflip.models import RepositoryDetails, Visibility
from repoflip.observability import EventLogger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from repoflip.inventory import InventoryCache
    from repoflip.models import RepositoryRecord, SnapshotRecord
    from repoflip.remote.protocol import RemoteRepositoryClient

SKIP_ARCHIVED = "archived"
SKIP_DECLINED = "declined"
SKIP_UNCHANGED = "unchanged"
SKIP_INVALID_NAME = "invalid repository name"

_ARCHIVED_MESSAGE = "repository is archived and cannot be edited"


class Operation(enum.StrEnum):
    """Repository property being mutated."""

    VISIBILITY = "visibility"
    ARCHIVE = "archive"


class ItemState(enum.StrEnum):
    """Per-repository mutation states."""

    PENDING = "pending"
    CONFIRM_PROMPTED = "confirm_prompted"
    EXECUTING = "executing"
    SKIPPED = "skipped"
    SUCCESS = "success"
    FAILED = "failed"


_TRANSITIONS: dict[ItemState, frozenset[ItemState]] = {
    ItemState.PENDING: frozenset({ItemState.CONFIRM_PROMPTED, ItemState.SKIPPED}),
    ItemState.CONFIRM_PROMPTED: frozenset({ItemState.EXECUTING, ItemState.SKIPPED}),
    ItemState.EXECUTING: frozenset(
        {ItemState.SUCCESS, ItemState.FAILED, ItemState.SKIPPED}
    ),
}


class InvalidTransitionError(RuntimeError):
    """Raised when an item run is driven into a state it cannot reach."""

    def __init__(self, current: ItemState, target: ItemState) -> None:
        """Initialise with the rejected transition."""
        super().__init__(f"Cannot move from {current} to {target}")


@dataclasses.dataclass(frozen=True, slots=True)
class Success:
    """The remote write completed; ``new_state`` is the value now in force."""

    full_name: str
    operation: Operation
    new_state: Visibility | bool


@dataclasses.dataclass(frozen=True, slots=True)
class Skipped:
    """No remote write was issued."""

    full_name: str
    operation: Operation
    reason: str


@dataclasses.dataclass(frozen=True, slots=True)
class Failed:
    """The remote client reported a failure, classified as ``kind``."""

    full_name: str
    operation: Operation
    kind: ErrorKind
    raw_message: str


Outcome = Success | Skipped | Failed
_O = typ.TypeVar("_O", Success, Skipped, Failed)


@dataclasses.dataclass(slots=True)
class SessionReport:
    """Ordered terminal outcomes of a bulk operation."""

    outcomes: list[Outcome] = dataclasses.field(default_factory=list)

    def add(self, outcome: Outcome) -> None:
        """Append one terminal outcome."""
        self.outcomes.append(outcome)

    @property
    def succeeded(self) -> int:
        """Return the number of successful writes."""
        return sum(isinstance(o, Success) for o in self.outcomes)

    @property
    def failed(self) -> int:
        """Return the number of failed writes."""
        return sum(isinstance(o, Failed) for o in self.outcomes)

    @property
    def skipped(self) -> int:
        """Return the number of items that ended without a write."""
        return sum(isinstance(o, Skipped) for o in self.outcomes)

    @property
    def failed_names(self) -> list[str]:
        """Return repositories with at least one failure, in first-seen order."""
        names: list[str] = []
        for outcome in self.outcomes:
            if isinstance(outcome, Failed) and outcome.full_name not in names:
                names.append(outcome.full_name)
        return names

    @property
    def has_success(self) -> bool:
        """Return True when any write succeeded."""
        return self.succeeded > 0


class ItemRun:
    """Track one repository's progress through the mutation state machine."""

    def __init__(self, full_name: str, operation: Operation) -> None:
        """Start the run in ``PENDING``."""
        self.full_name = full_name
        self.operation = operation
        self.history: list[ItemState] = [ItemState.PENDING]

    @property
    def state(self) -> ItemState:
        """Return the current state."""
        return self.history[-1]

    def advance(self, target: ItemState) -> None:
        """Move to ``target``, rejecting transitions the machine does not allow."""
        if target not in _TRANSITIONS.get(self.state, frozenset()):
            raise InvalidTransitionError(self.state, target)
        self.history.append(target)


class _LiveLookup:
    """Fetch live repository state once and replay the result or the error."""

    def __init__(self, client: RemoteRepositoryClient, full_name: str) -> None:
        self._client = client
        self._full_name = full_name
        self._details: RepositoryDetails | None = None
        self._error: RemoteError | None = None

    def get(self) -> RepositoryDetails:
        if self._error is not None:
            raise self._error
        if self._details is None:
            try:
                self._details = self._client.describe(self._full_name)
            except RemoteError as exc:
                self._error = exc
                raise
        return self._details


def _state_label(operation: Operation, value: Visibility | bool) -> str:
    if operation is Operation.ARCHIVE:
        return "archived" if value else "unarchived"
    return str(value)


class MutationOrchestrator:
    """Drive toggle and explicit-set mutations over selected repositories.

    Parameters
    ----------
    client : RemoteRepositoryClient
        Backend used for live reads and writes.
    cache : InventoryCache
        Inventory invalidated after a batch with at least one success.
    confirm : Callable[[str], bool]
        Yes/no prompt gating every mutation.
    on_outcome : Callable[[Outcome], None], optional
        Called with each terminal outcome as soon as it is known.
    events : EventLogger, optional
        Structured event sink.

    Attributes
    ----------
    runs : list[ItemRun]
        State machines of the current batch; cleared when the next
        batch begins.

    """

    def __init__(
        self,
        client: RemoteRepositoryClient,
        cache: InventoryCache,
        confirm: cabc.Callable[[str], bool],
        *,
        on_outcome: cabc.Callable[[Outcome], None] | None = None,
        events: EventLogger | None = None,
    ) -> None:
        """Bind the orchestrator to its collaborators."""
        self._client = client
        self._cache = cache
        self._confirm = confirm
        self._on_outcome = on_outcome
        self._events = events or EventLogger()
        self.runs: list[ItemRun] = []

    # -- state machine plumbing ----------------------------------------------

    def _start(self, full_name: str, operation: Operation) -> ItemRun:
        run = ItemRun(full_name, operation)
        self.runs.append(run)
        return run

    def _skip(self, run: ItemRun, reason: str) -> Skipped:
        run.advance(ItemState.SKIPPED)
        self._events.mutation_skipped(run.full_name, run.operation, reason)
        return self._emit(Skipped(run.full_name, run.operation, reason))

    def _fail(self, run: ItemRun, error: RemoteError) -> Failed:
        return self._fail_with(run, classify_error(error), error.message)

    def _fail_with(self, run: ItemRun, kind: ErrorKind, raw_message: str) -> Failed:
        run.advance(ItemState.FAILED)
        self._events.mutation_failed(run.full_name, run.operation, kind, raw_message)
        return self._emit(Failed(run.full_name, run.operation, kind, raw_message))

    def _emit(self, outcome: _O) -> _O:
        if self._on_outcome is not None:
            self._on_outcome(outcome)
        return outcome

    def _gate(self, run: ItemRun, question: str, answer: bool | None) -> bool:
        """Prompt (or reuse ``answer``) and advance; return True to proceed."""
        run.advance(ItemState.CONFIRM_PROMPTED)
        approved = self._confirm(question) if answer is None else answer
        if approved:
            run.advance(ItemState.EXECUTING)
        return approved

    def _write(
        self,
        run: ItemRun,
        target: Visibility | bool,
        action: cabc.Callable[[], None],
    ) -> Success | Failed:
        label = _state_label(run.operation, target)
        self._events.mutation_attempted(run.full_name, run.operation, label)
        try:
            action()
        except RemoteError as exc:
            return self._fail(run, exc)
        run.advance(ItemState.SUCCESS)
        self._events.mutation_succeeded(run.full_name, run.operation, label)
        return self._emit(Success(run.full_name, run.operation, target))

    def _run_batch(
        self,
        records: cabc.Iterable[RepositoryRecord],
        step: cabc.Callable[[RepositoryRecord], Outcome],
    ) -> SessionReport:
        self.begin_batch()
        report = SessionReport()
        for record in records:
            report.add(step(record))
        if report.has_success:
            self.invalidate_cache("mutation succeeded")
        return report

    def begin_batch(self) -> None:
        """Discard the item runs recorded for the previous batch."""
        self.runs = []

    def invalidate_cache(self, reason: str) -> None:
        """Invalidate the inventory cache owned by the session."""
        self._cache.invalidate(reason)

    def confirm(self, question: str) -> bool:
        """Ask the bound confirmation prompt."""
        return self._confirm(question)

    # -- toggle flow ----------------------------------------------------------

    def toggle_visibility_one(self, record: RepositoryRecord) -> Outcome:
        """Flip one repository between public and private."""
        run = self._start(record.full_name, Operation.VISIBILITY)
        if record.archived:
            return self._skip(run, SKIP_ARCHIVED)
        question = (
            f"Toggle visibility of {record.full_name} "
            f"(currently {record.visibility})?"
        )
        if not self._gate(run, question, None):
            return self._skip(run, SKIP_DECLINED)
        try:
            live = self._client.describe(record.full_name)
        except RemoteError as exc:
            return self._fail(run, exc)
        if live.archived:
            return self._fail_with(run, ErrorKind.ARCHIVED_CONFLICT, _ARCHIVED_MESSAGE)
        target = live.visibility.opposite()
        return self._write(
            run, target, lambda: self._client.set_visibility(record.full_name, target)
        )

    def toggle_archive_one(self, record: RepositoryRecord) -> Outcome:
        """Archive an unarchived repository or unarchive an archived one."""
        run = self._start(record.full_name, Operation.ARCHIVE)
        action = "unarchive" if record.archived else "archive"
        question = f"Change archive status of {record.full_name} ({action})?"
        if not self._gate(run, question, None):
            return self._skip(run, SKIP_DECLINED)
        try:
            live = self._client.describe(record.full_name)
        except RemoteError as exc:
            return self._fail(run, exc)
        target = not live.archived
        return self._write(
            run,
            target,
            lambda: self._client.set_archived(record.full_name, archived=target),
        )

    def toggle_visibility(
        self, records: cabc.Iterable[RepositoryRecord]
    ) -> SessionReport:
        """Toggle visibility for each selected repository, in order."""
        return self._run_batch(records, self.toggle_visibility_one)

    def toggle_archive(self, records: cabc.Iterable[RepositoryRecord]) -> SessionReport:
        """Toggle archive status for each selected repository, in order."""
        return self._run_batch(records, self.toggle_archive_one)

    # -- explicit-set flow ----------------------------------------------------

    def set_visibility(
        self,
        full_name: str,
        target: Visibility,
        *,
        answer: bool | None = None,
        lookup: _LiveLookup | None = None,
    ) -> Outcome:
        """Drive one repository to ``target`` visibility, skipping no-ops.

        ``answer`` reuses a confirmation already collected by the caller;
        ``None`` prompts for this step alone.
        """
        run = self._start(full_name, Operation.VISIBILITY)
        if not self._gate(run, f"Set {full_name} to {target}?", answer):
            return self._skip(run, SKIP_DECLINED)
        live_lookup = lookup or _LiveLookup(self._client, full_name)
        try:
            live = live_lookup.get()
        except RemoteError as exc:
            return self._fail(run, exc)
        if live.visibility is target:
            return self._skip(run, SKIP_UNCHANGED)
        if live.archived:
            return self._fail_with(run, ErrorKind.ARCHIVED_CONFLICT, _ARCHIVED_MESSAGE)
        return self._write(
            run, target, lambda: self._client.set_visibility(full_name, target)
        )

    def set_archived(
        self,
        full_name: str,
        *,
        archived: bool,
        answer: bool | None = None,
        lookup: _LiveLookup | None = None,
    ) -> Outcome:
        """Drive one repository to the ``archived`` flag, skipping no-ops."""
        run = self._start(full_name, Operation.ARCHIVE)
        action = "archive" if archived else "unarchive"
        if not self._gate(run, f"{action.capitalize()} {full_name}?", answer):
            return self._skip(run, SKIP_DECLINED)
        live_lookup = lookup or _LiveLookup(self._client, full_name)
        try:
            live = live_lookup.get()
        except RemoteError as exc:
            return self._fail(run, exc)
        if live.archived is archived:
            return self._skip(run, SKIP_UNCHANGED)
        return self._write(
            run,
            archived,
            lambda: self._client.set_archived(full_name, archived=archived),
        )

    def ensure_visibility(
        self, records: cabc.Iterable[RepositoryRecord], target: Visibility
    ) -> SessionReport:
        """Drive every record to ``target``, confirming each; archived are skipped."""

        def step(record: RepositoryRecord) -> Outcome:
            if record.archived:
                run = self._start(record.full_name, Operation.VISIBILITY)
                return self._skip(run, SKIP_ARCHIVED)
            return self.set_visibility(record.full_name, target)

        return self._run_batch(records, step)

    def reconcile(self, record: SnapshotRecord) -> tuple[Outcome, Outcome]:
        """Confirm once, then reconcile visibility followed by archive state.

        Both steps share a single live read. Each step reports its own
        outcome, so a visibility success next to an archive failure is a
        valid mixed result.
        """
        archived_label = "true" if record.archived else "false"
        question = (
            f"Change {record.full_name} to {record.visibility} "
            f"and archive status to {archived_label}?"
        )
        approved = self._confirm(question)
        lookup = _LiveLookup(self._client, record.full_name)
        visibility = self.set_visibility(
            record.full_name, record.visibility, answer=approved, lookup=lookup
        )
        archive = self.set_archived(
            record.full_name, archived=record.archived, answer=approved, lookup=lookup
        )
        return visibility, archive

    def skip_invalid(self, full_name: str) -> Skipped:
        """Record a snapshot line rejected for its repository name."""
        run = self._start(full_name, Operation.VISIBILITY)
        return self._skip(run, SKIP_INVALID_NAME)


__all__ = [
    "SKIP_ARCHIVED",
    "SKIP_DECLINED",
    "SKIP_INVALID_NAME",
    "SKIP_UNCHANGED",
    "Failed",
    "InvalidTransitionError",
    "ItemRun",
    "ItemState",
    "MutationOrchestrator",
    "Operation",
    "Outcome",
    "SessionReport",
    "Skipped",
    "Success",
]
