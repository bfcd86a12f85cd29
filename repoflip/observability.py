"""Structured event records for the process-local event log.

Every inventory fetch, mutation attempt and outcome, and snapshot action is
emitted as ``[event.type] key=value ...`` through femtologging so the event
log can be grepped by event type and repository.
"""

from __future__ import annotations

import enum
import typing as typ

from repoflip.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    from pathlib import Path

    from repoflip.classify import ErrorKind

logger = get_logger(__name__)


class EventType(enum.StrEnum):
    """Structured log event types."""

    INVENTORY_FETCH_STARTED = "inventory.fetch.started"
    INVENTORY_FETCH_COMPLETED = "inventory.fetch.completed"
    INVENTORY_FETCH_FAILED = "inventory.fetch.failed"
    INVENTORY_INVALIDATED = "inventory.invalidated"
    MUTATION_ATTEMPTED = "mutation.attempted"
    MUTATION_SUCCEEDED = "mutation.succeeded"
    MUTATION_SKIPPED = "mutation.skipped"
    MUTATION_FAILED = "mutation.failed"
    SNAPSHOT_SAVED = "snapshot.saved"
    SNAPSHOT_LOADED = "snapshot.loaded"
    SNAPSHOT_REJECTED = "snapshot.rejected"
    SNAPSHOT_APPLIED = "snapshot.applied"


class EventLogger:
    """Emit structured engine events.

    Success events are INFO, skips and rejections WARNING, failures ERROR.
    """

    def inventory_fetch_started(self, *, forced: bool) -> None:
        """Log the start of a bulk listing call."""
        log_info(logger, "[%s] forced=%s", EventType.INVENTORY_FETCH_STARTED, forced)

    def inventory_fetch_completed(self, count: int) -> None:
        """Log a successful bulk listing."""
        log_info(
            logger, "[%s] repositories=%d", EventType.INVENTORY_FETCH_COMPLETED, count
        )

    def inventory_fetch_failed(self, reason: str) -> None:
        """Log a bulk listing failure."""
        log_error(logger, "[%s] reason=%s", EventType.INVENTORY_FETCH_FAILED, reason)

    def inventory_invalidated(self, reason: str) -> None:
        """Log a cache invalidation."""
        log_info(logger, "[%s] reason=%s", EventType.INVENTORY_INVALIDATED, reason)

    def mutation_attempted(self, full_name: str, operation: str, target: str) -> None:
        """Log a remote write about to be issued."""
        log_info(
            logger,
            "[%s] repo=%s operation=%s target=%s",
            EventType.MUTATION_ATTEMPTED,
            full_name,
            operation,
            target,
        )

    def mutation_succeeded(self, full_name: str, operation: str, state: str) -> None:
        """Log a successful remote write."""
        log_info(
            logger,
            "[%s] repo=%s operation=%s state=%s",
            EventType.MUTATION_SUCCEEDED,
            full_name,
            operation,
            state,
        )

    def mutation_skipped(self, full_name: str, operation: str, reason: str) -> None:
        """Log a mutation that ended without a remote write."""
        log_warning(
            logger,
            "[%s] repo=%s operation=%s reason=%s",
            EventType.MUTATION_SKIPPED,
            full_name,
            operation,
            reason,
        )

    def mutation_failed(
        self, full_name: str, operation: str, kind: ErrorKind, raw_message: str
    ) -> None:
        """Log a classified mutation failure with the raw client message."""
        log_error(
            logger,
            "[%s] repo=%s operation=%s error_kind=%s error_message=%s",
            EventType.MUTATION_FAILED,
            full_name,
            operation,
            kind,
            raw_message,
        )

    def snapshot_saved(self, path: Path, count: int) -> None:
        """Log a written snapshot file."""
        log_info(
            logger, "[%s] path=%s records=%d", EventType.SNAPSHOT_SAVED, path, count
        )

    def snapshot_loaded(self, path: Path, count: int, ignored: int) -> None:
        """Log a parsed snapshot file."""
        log_info(
            logger,
            "[%s] path=%s records=%d ignored_lines=%d",
            EventType.SNAPSHOT_LOADED,
            path,
            count,
            ignored,
        )

    def snapshot_rejected(self, target: str, reason: str) -> None:
        """Log a snapshot filename or file rejected before any remote call."""
        log_warning(
            logger,
            "[%s] target=%s reason=%s",
            EventType.SNAPSHOT_REJECTED,
            target,
            reason,
        )

    def snapshot_applied(self, records: int, succeeded: int, failed: int) -> None:
        """Log completion of a snapshot apply run."""
        log_info(
            logger,
            "[%s] records=%d succeeded=%d failed=%d",
            EventType.SNAPSHOT_APPLIED,
            records,
            succeeded,
            failed,
        )


__all__ = ["EventLogger", "EventType"]
