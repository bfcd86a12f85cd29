"""Fixtures for unit tests that drive the ``gh`` backend."""

from __future__ import annotations

import dataclasses
import subprocess

import pytest


@dataclasses.dataclass(slots=True)
class GhReply:
    """Canned result for one ``gh`` invocation."""

    stdout: str = ""
    stderr: str = ""
    returncode: int = 0


@dataclasses.dataclass(slots=True)
class GhScript:
    """Replies keyed by argv prefix plus the invocations that were seen."""

    replies: list[tuple[tuple[str, ...], GhReply]] = dataclasses.field(
        default_factory=list
    )
    calls: list[tuple[str, ...]] = dataclasses.field(default_factory=list)
    envs: list[dict[str, str]] = dataclasses.field(default_factory=list)
    timeouts: list[object] = dataclasses.field(default_factory=list)

    def reply(
        self, *prefix: str, stdout: str = "", stderr: str = "", returncode: int = 0
    ) -> None:
        """Answer invocations starting with ``gh *prefix``."""
        reply = GhReply(stdout=stdout, stderr=stderr, returncode=returncode)
        self.replies.append((("gh", *prefix), reply))


@pytest.fixture
def gh_script(monkeypatch: pytest.MonkeyPatch) -> GhScript:
    """Mock subprocess.run and answer ``gh`` invocations from a script.

    The longest matching prefix wins; unmatched invocations fail like an
    unknown ``gh`` command.
    """
    script = GhScript()

    def _mock_run(
        args: list[str], **kwargs: object
    ) -> subprocess.CompletedProcess[str]:
        argv = tuple(args)
        script.calls.append(argv)
        script.envs.append(dict(kwargs.get("env") or {}))  # type: ignore[arg-type]
        script.timeouts.append(kwargs.get("timeout"))
        matches = [
            (prefix, reply)
            for prefix, reply in script.replies
            if argv[: len(prefix)] == prefix
        ]
        if not matches:
            return subprocess.CompletedProcess(
                args=args, returncode=1, stdout="", stderr="unknown command"
            )
        _, reply = max(matches, key=lambda item: len(item[0]))
        return subprocess.CompletedProcess(
            args=args,
            returncode=reply.returncode,
            stdout=reply.stdout,
            stderr=reply.stderr,
        )

    monkeypatch.setattr("subprocess.run", _mock_run)
    return script
