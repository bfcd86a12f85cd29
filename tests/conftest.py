"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import io
import typing as typ

import pytest
from rich.console import Console

from repoflip.inventory import InventoryCache
from repoflip.models import AccountSummary
from repoflip.orchestrator import MutationOrchestrator
from repoflip.snapshot import SnapshotStore
from tests.helpers.fakes import FakeRemoteClient, ScriptedPrompter, record

if typ.TYPE_CHECKING:
    from pathlib import Path

    from repoflip.orchestrator import Outcome


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep REPOFLIP_* and token variables from the host out of tests."""
    for name in (
        "REPOFLIP_BACKEND",
        "REPOFLIP_OWNER",
        "REPOFLIP_LIST_LIMIT",
        "REPOFLIP_COMMAND_TIMEOUT",
        "REPOFLIP_SNAPSHOT_DIR",
        "REPOFLIP_LOG_LEVEL",
        "GITHUB_TOKEN",
        "GH_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("REPOFLIP_LOG_FILE", str(tmp_path / "repoflip.log"))


@pytest.fixture
def client() -> FakeRemoteClient:
    """Return a client with one public and one archived private repository."""
    return FakeRemoteClient(
        [
            record("a/b", "public"),
            record("a/c", "private", archived=True),
        ],
        account=AccountSummary(login="a", name="Alice", public_repos=1),
    )


@pytest.fixture
def cache(client: FakeRemoteClient) -> InventoryCache:
    """Return an empty inventory cache over ``client``."""
    return InventoryCache(client)


@pytest.fixture
def prompter() -> ScriptedPrompter:
    """Return a prompter that approves every confirmation."""
    return ScriptedPrompter()


@pytest.fixture
def outcomes() -> list[Outcome]:
    """Collect outcomes reported by the orchestrator."""
    return []


@pytest.fixture
def orchestrator(
    client: FakeRemoteClient,
    cache: InventoryCache,
    prompter: ScriptedPrompter,
    outcomes: list[Outcome],
) -> MutationOrchestrator:
    """Return an orchestrator wired to the fake client and prompter."""
    return MutationOrchestrator(
        client, cache, prompter.confirm, on_outcome=outcomes.append
    )


@pytest.fixture
def store(tmp_path: Path) -> SnapshotStore:
    """Return a snapshot store rooted in a temporary directory."""
    return SnapshotStore(tmp_path)


@pytest.fixture
def console() -> Console:
    """Return a wide console that renders into memory."""
    return Console(file=io.StringIO(), width=200, force_terminal=False)
