"""Shared fixtures and steps for BDD feature tests."""

from __future__ import annotations

import typing as typ

import pytest
from pytest_bdd import given, parsers, then

from repoflip.errors import RemoteError
from repoflip.inventory import CacheState, InventoryCache
from repoflip.models import Visibility
from repoflip.orchestrator import Failed, MutationOrchestrator, Skipped
from repoflip.snapshot import SnapshotStore
from tests.features.steps._repoflip_context import (
    RepoflipContext,
    outcomes_for,
    split_names,
)
from tests.helpers.fakes import FakeRemoteClient, ScriptedPrompter, record

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def repoflip_context(tmp_path: Path) -> RepoflipContext:
    """Wire an orchestrator and snapshot store to an in-memory client."""
    client = FakeRemoteClient()
    cache = InventoryCache(client)
    prompter = ScriptedPrompter()
    return {
        "client": client,
        "cache": cache,
        "prompter": prompter,
        "orchestrator": MutationOrchestrator(client, cache, prompter.confirm),
        "store": SnapshotStore(tmp_path),
    }


@given(parsers.parse('the public repositories "{names}"'))
def public_repositories(repoflip_context: RepoflipContext, names: str) -> None:
    """Add unarchived public repositories to live state."""
    for name in split_names(names):
        repoflip_context["client"].repos[name] = record(name, "public")


@given(parsers.parse('the archived private repository "{name}"'))
def archived_private_repository(repoflip_context: RepoflipContext, name: str) -> None:
    """Add an archived private repository to live state."""
    repoflip_context["client"].repos[name] = record(name, "private", archived=True)


@given(parsers.parse('updating "{name}" fails with "{message}"'))
def updating_fails(repoflip_context: RepoflipContext, name: str, message: str) -> None:
    """Make every write to ``name`` fail with ``message``."""
    error = RemoteError(message)
    repoflip_context["client"].fail_on("set_visibility", name, error)
    repoflip_context["client"].fail_on("set_archived", name, error)


@then(parsers.parse('"{name}" is now {visibility}'))
def repository_visibility(
    repoflip_context: RepoflipContext, name: str, visibility: str
) -> None:
    """Live visibility matches the expectation."""
    live = repoflip_context["client"].repos[name]
    assert live.visibility is Visibility(visibility)


@then(parsers.parse('"{name}" is archived'))
def repository_archived(repoflip_context: RepoflipContext, name: str) -> None:
    """The repository is archived in live state."""
    assert repoflip_context["client"].repos[name].archived


@then(parsers.parse('"{name}" is not archived'))
def repository_not_archived(repoflip_context: RepoflipContext, name: str) -> None:
    """The repository is unarchived in live state."""
    assert not repoflip_context["client"].repos[name].archived


@then(parsers.parse('"{name}" was skipped because "{reason}"'))
def repository_skipped(
    repoflip_context: RepoflipContext, name: str, reason: str
) -> None:
    """At least one outcome for ``name`` is a skip with ``reason``."""
    outcomes = outcomes_for(repoflip_context, name)
    assert any(isinstance(o, Skipped) and o.reason == reason for o in outcomes)


@then(parsers.parse('"{name}" failed as {kind}'))
def repository_failed(repoflip_context: RepoflipContext, name: str, kind: str) -> None:
    """The repository's outcome is a failure of the given kind."""
    outcomes = outcomes_for(repoflip_context, name)
    assert any(isinstance(o, Failed) and o.kind == kind for o in outcomes)


@then(parsers.parse('"{name}" was not written'))
def repository_not_written(repoflip_context: RepoflipContext, name: str) -> None:
    """No write call targeted ``name``."""
    mutations = repoflip_context["client"].mutations
    assert all(call[1] != name for call in mutations)


@then("no remote write was issued")
def no_remote_write(repoflip_context: RepoflipContext) -> None:
    """The client saw no write calls."""
    assert repoflip_context["client"].mutations == []


@then("the inventory cache is invalidated")
def cache_invalidated(repoflip_context: RepoflipContext) -> None:
    """The next read refetches the inventory."""
    assert repoflip_context["cache"].state is CacheState.INVALIDATED
