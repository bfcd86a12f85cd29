"""Unit tests for the mutation orchestrator state machine."""

from __future__ import annotations

import pytest

from repoflip.classify import ErrorKind
from repoflip.errors import RemoteError
from repoflip.inventory import CacheState, InventoryCache
from repoflip.models import SnapshotRecord, Visibility
from repoflip.orchestrator import (
    SKIP_ARCHIVED,
    SKIP_DECLINED,
    SKIP_UNCHANGED,
    Failed,
    InvalidTransitionError,
    ItemRun,
    ItemState,
    MutationOrchestrator,
    Operation,
    Outcome,
    SessionReport,
    Skipped,
    Success,
)
from tests.helpers.fakes import FakeRemoteClient, ScriptedPrompter, record

P = ItemState.PENDING
C = ItemState.CONFIRM_PROMPTED
E = ItemState.EXECUTING


def _orchestrator(
    client: FakeRemoteClient, prompter: ScriptedPrompter
) -> tuple[MutationOrchestrator, InventoryCache]:
    cache = InventoryCache(client)
    return MutationOrchestrator(client, cache, prompter.confirm), cache


class TestToggleVisibility:
    """Visibility toggling over a selection."""

    def test_archived_record_is_skipped_and_cache_invalidated(
        self,
        client: FakeRemoteClient,
        cache: InventoryCache,
        prompter: ScriptedPrompter,
        orchestrator: MutationOrchestrator,
    ) -> None:
        """Public repo flips to private; archived repo is skipped untouched."""
        inventory = cache.load()

        report = orchestrator.toggle_visibility(inventory)

        assert report.outcomes == [
            Success("a/b", Operation.VISIBILITY, Visibility.PRIVATE),
            Skipped("a/c", Operation.VISIBILITY, SKIP_ARCHIVED),
        ]
        assert cache.state is CacheState.INVALIDATED
        assert client.mutations == [("set_visibility", "a/b", Visibility.PRIVATE)]
        assert ("describe", "a/c") not in client.calls
        assert len(prompter.questions) == 1

    def test_archived_skip_never_prompts(self, client: FakeRemoteClient) -> None:
        """The archived check happens before confirmation."""
        prompter = ScriptedPrompter()
        orchestrator, _ = _orchestrator(client, prompter)

        outcome = orchestrator.toggle_visibility_one(
            record("a/c", "private", archived=True)
        )

        assert outcome == Skipped("a/c", Operation.VISIBILITY, SKIP_ARCHIVED)
        assert prompter.questions == []
        assert orchestrator.runs[0].history == [P, ItemState.SKIPPED]

    def test_declined_confirmation_makes_no_remote_call(
        self, client: FakeRemoteClient
    ) -> None:
        """Declining skips the repository without reading or writing it."""
        orchestrator, cache = _orchestrator(
            client, ScriptedPrompter(default_confirm=False)
        )
        cache.load()
        calls_before = list(client.calls)

        report = orchestrator.toggle_visibility([record("a/b")])

        assert report.outcomes == [Skipped("a/b", Operation.VISIBILITY, SKIP_DECLINED)]
        assert client.calls == calls_before
        assert cache.state is CacheState.POPULATED
        assert orchestrator.runs[0].history == [P, C, ItemState.SKIPPED]

    def test_live_archived_state_fails_before_writing(self) -> None:
        """A repository archived since the listing reports a conflict."""
        client = FakeRemoteClient([record("a/b", archived=True)])
        orchestrator, _ = _orchestrator(client, ScriptedPrompter())

        outcome = orchestrator.toggle_visibility_one(record("a/b"))

        assert isinstance(outcome, Failed)
        assert outcome.kind is ErrorKind.ARCHIVED_CONFLICT
        assert client.mutations == []

    def test_failure_does_not_abort_the_batch(self) -> None:
        """Each repository gets its own terminal outcome."""
        client = FakeRemoteClient([record("a/b"), record("a/d", "private")])
        client.fail_on(
            "set_visibility", "a/b", RemoteError("API rate limit exceeded")
        )
        orchestrator, cache = _orchestrator(client, ScriptedPrompter())

        report = orchestrator.toggle_visibility(cache.load())

        assert report.outcomes == [
            Failed(
                "a/b",
                Operation.VISIBILITY,
                ErrorKind.RATE_LIMITED,
                "API rate limit exceeded",
            ),
            Success("a/d", Operation.VISIBILITY, Visibility.PUBLIC),
        ]
        assert (report.succeeded, report.failed, report.skipped) == (1, 1, 0)
        assert report.failed_names == ["a/b"]
        assert cache.state is CacheState.INVALIDATED
        assert orchestrator.runs[0].history == [P, C, E, ItemState.FAILED]
        assert orchestrator.runs[1].history == [P, C, E, ItemState.SUCCESS]

    def test_describe_failure_is_classified(self) -> None:
        """A missing repository is reported as NotFound."""
        client = FakeRemoteClient([])
        orchestrator, _ = _orchestrator(client, ScriptedPrompter())

        outcome = orchestrator.toggle_visibility_one(record("a/gone"))

        assert isinstance(outcome, Failed)
        assert outcome.kind is ErrorKind.NOT_FOUND

    def test_toggling_twice_restores_visibility(self) -> None:
        """Two successful toggles return a repository to where it started."""
        client = FakeRemoteClient([record("a/b")])
        orchestrator, cache = _orchestrator(client, ScriptedPrompter())

        orchestrator.toggle_visibility(cache.load())
        orchestrator.toggle_visibility(cache.load())

        assert client.repos["a/b"].visibility is Visibility.PUBLIC
        assert cache.fetch_count == 2

    def test_no_success_leaves_cache_populated(self) -> None:
        """Only a successful write invalidates the inventory."""
        client = FakeRemoteClient([record("a/c", "private", archived=True)])
        orchestrator, cache = _orchestrator(client, ScriptedPrompter())

        orchestrator.toggle_visibility(cache.load())

        assert cache.state is CacheState.POPULATED

    def test_runs_cover_only_the_latest_batch(self) -> None:
        """A new batch replaces the item runs of the previous one."""
        client = FakeRemoteClient([record("a/b"), record("a/d", "private")])
        orchestrator, cache = _orchestrator(client, ScriptedPrompter())

        orchestrator.toggle_visibility(cache.load())
        orchestrator.toggle_archive([record("a/d", "public")])

        assert [(run.full_name, run.operation) for run in orchestrator.runs] == [
            ("a/d", Operation.ARCHIVE)
        ]
        assert orchestrator.runs[0].history == [P, C, E, ItemState.SUCCESS]


class TestToggleArchive:
    """Archive toggling over a selection."""

    def test_archive_flips_live_state(self) -> None:
        """Unarchived repositories are archived and archived ones restored."""
        client = FakeRemoteClient(
            [record("a/b"), record("a/c", "private", archived=True)]
        )
        orchestrator, cache = _orchestrator(client, ScriptedPrompter())

        report = orchestrator.toggle_archive(cache.load())

        assert report.outcomes == [
            Success("a/b", Operation.ARCHIVE, True),
            Success("a/c", Operation.ARCHIVE, False),
        ]
        assert client.repos["a/b"].archived is True
        assert client.repos["a/c"].archived is False
        assert cache.state is CacheState.INVALIDATED

    def test_archive_uses_live_state_not_cache(self) -> None:
        """The target is the complement of the live archived flag."""
        client = FakeRemoteClient([record("a/b", archived=True)])
        orchestrator, _ = _orchestrator(client, ScriptedPrompter())

        outcome = orchestrator.toggle_archive_one(record("a/b", archived=False))

        assert outcome == Success("a/b", Operation.ARCHIVE, False)


class TestExplicitSet:
    """Drive properties to named values, skipping no-ops."""

    def test_unchanged_visibility_is_skipped(self) -> None:
        """No write is issued when the live value already matches."""
        client = FakeRemoteClient([record("a/b", "private")])
        orchestrator, _ = _orchestrator(client, ScriptedPrompter())

        outcome = orchestrator.set_visibility("a/b", Visibility.PRIVATE)

        assert outcome == Skipped("a/b", Operation.VISIBILITY, SKIP_UNCHANGED)
        assert client.mutations == []
        assert orchestrator.runs[0].history == [P, C, E, ItemState.SKIPPED]

    def test_archived_repository_cannot_change_visibility(self) -> None:
        """A differing visibility on an archived repository is a conflict."""
        client = FakeRemoteClient([record("a/b", "public", archived=True)])
        orchestrator, _ = _orchestrator(client, ScriptedPrompter())

        outcome = orchestrator.set_visibility("a/b", Visibility.PRIVATE)

        assert isinstance(outcome, Failed)
        assert outcome.kind is ErrorKind.ARCHIVED_CONFLICT

    def test_reconcile_confirms_once_and_reads_once(self) -> None:
        """Visibility then archive state are reconciled from one live read."""
        client = FakeRemoteClient([record("a/b")])
        prompter = ScriptedPrompter()
        orchestrator, _ = _orchestrator(client, prompter)

        outcomes = orchestrator.reconcile(
            SnapshotRecord("a/b", Visibility.PRIVATE, archived=True)
        )

        assert outcomes == (
            Success("a/b", Operation.VISIBILITY, Visibility.PRIVATE),
            Success("a/b", Operation.ARCHIVE, True),
        )
        assert prompter.questions == [
            "Change a/b to private and archive status to true?"
        ]
        assert client.calls.count(("describe", "a/b")) == 1
        assert client.mutations == [
            ("set_visibility", "a/b", Visibility.PRIVATE),
            ("set_archived", "a/b", True),
        ]

    def test_reconcile_allows_mixed_outcomes(self) -> None:
        """A visibility success can sit next to an archive failure."""
        client = FakeRemoteClient([record("a/b")])
        client.fail_on(
            "set_archived", "a/b", RemoteError("HTTP 403: Forbidden", status_code=403)
        )
        orchestrator, _ = _orchestrator(client, ScriptedPrompter())

        visibility, archive = orchestrator.reconcile(
            SnapshotRecord("a/b", Visibility.PRIVATE, archived=True)
        )

        assert isinstance(visibility, Success)
        assert isinstance(archive, Failed)
        assert archive.kind is ErrorKind.PERMISSION_DENIED

    def test_reconcile_declined_skips_both_steps(self) -> None:
        """Declining the record skips both properties without remote calls."""
        client = FakeRemoteClient([record("a/b")])
        orchestrator, _ = _orchestrator(client, ScriptedPrompter(confirms=[False]))

        outcomes = orchestrator.reconcile(
            SnapshotRecord("a/b", Visibility.PRIVATE, archived=False)
        )

        assert [o.reason for o in outcomes if isinstance(o, Skipped)] == [
            SKIP_DECLINED,
            SKIP_DECLINED,
        ]
        assert client.calls == []

    def test_reconcile_describe_failure_fails_both_steps(self) -> None:
        """A failed live read is reported for each property."""
        orchestrator, _ = _orchestrator(FakeRemoteClient([]), ScriptedPrompter())

        outcomes = orchestrator.reconcile(
            SnapshotRecord("a/gone", Visibility.PUBLIC, archived=False)
        )

        assert all(
            isinstance(o, Failed) and o.kind is ErrorKind.NOT_FOUND for o in outcomes
        )

    def test_ensure_visibility_skips_archived_and_unchanged(self) -> None:
        """make-private style runs only write the repositories that differ."""
        client = FakeRemoteClient(
            [
                record("a/b"),
                record("a/c", archived=True),
                record("a/d", "private"),
            ]
        )
        orchestrator, cache = _orchestrator(client, ScriptedPrompter())

        report = orchestrator.ensure_visibility(cache.load(), Visibility.PRIVATE)

        assert [type(o) for o in report.outcomes] == [Success, Skipped, Skipped]
        assert client.mutations == [("set_visibility", "a/b", Visibility.PRIVATE)]


class TestStateMachine:
    """Transitions of a single item run."""

    def test_rejects_skipping_straight_to_success(self) -> None:
        """Success is reachable only from EXECUTING."""
        run = ItemRun("a/b", Operation.VISIBILITY)
        with pytest.raises(InvalidTransitionError, match="pending to success"):
            run.advance(ItemState.SUCCESS)

    def test_terminal_states_are_final(self) -> None:
        """Nothing follows a terminal state."""
        run = ItemRun("a/b", Operation.VISIBILITY)
        run.advance(ItemState.SKIPPED)
        with pytest.raises(InvalidTransitionError):
            run.advance(ItemState.CONFIRM_PROMPTED)

    def test_outcomes_are_reported_as_they_happen(
        self,
        cache: InventoryCache,
        orchestrator: MutationOrchestrator,
        outcomes: list[Outcome],
    ) -> None:
        """The outcome callback sees each item in selection order."""
        report = orchestrator.toggle_visibility(cache.load())
        assert outcomes == report.outcomes


def test_session_report_failed_names_are_unique() -> None:
    """A repository failing twice is listed once."""
    report = SessionReport()
    failure = Failed("a/b", Operation.VISIBILITY, ErrorKind.UNKNOWN, "boom")
    report.add(failure)
    report.add(Failed("a/b", Operation.ARCHIVE, ErrorKind.UNKNOWN, "boom"))
    assert report.failed_names == ["a/b"]
    assert not report.has_success
