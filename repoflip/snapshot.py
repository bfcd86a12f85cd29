"""Save inventory state to CSV snapshots and replay them against the platform.

A snapshot is a plain text file with one ``fullName,visibility,archived`` line
per repository, no header, ``visibility`` in ``{public, private}`` and
``archived`` in ``{true, false}``. Apply is a reconciliation: each line is
compared against live state and only the differing properties are written.
"""

from __future__ import annotations

import datetime as dt
import re
import typing as typ
from pathlib import Path

from repoflip.common.slug import is_valid_repo_slug
from repoflip.errors import (
    BadFileFormatError,
    BadFilenameError,
    BadRepoNameError,
    SnapshotFileError,
)
from repoflip.logging import get_logger, log_warning
from repoflip.models import SnapshotRecord, Visibility
from repoflip.observability import EventLogger
from repoflip.orchestrator import SessionReport

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from repoflip.models import RepositoryRecord
    from repoflip.orchestrator import MutationOrchestrator

logger = get_logger(__name__)

SNAPSHOT_PREFIX = "repo_status_"
SNAPSHOT_GLOB = f"{SNAPSHOT_PREFIX}*.csv"
_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

_FILENAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+\.csv$")
_LINE_PATTERN = re.compile(r"^([^,]+),(public|private),(true|false)$")


def validate_filename(filename: str) -> str:
    """Return ``filename`` if it is an acceptable snapshot name.

    Raises
    ------
    BadFilenameError
        If the name contains anything but letters, digits, ``_``, ``.`` and
        ``-`` or does not end in ``.csv``.

    """
    if not _FILENAME_PATTERN.fullmatch(filename):
        raise BadFilenameError(filename)
    return filename


def default_save_name(now: dt.datetime | None = None) -> str:
    """Return a timestamped name such as ``repo_status_20240101_120000.csv``."""
    moment = now or dt.datetime.now().astimezone()
    return f"{SNAPSHOT_PREFIX}{moment.strftime(_TIMESTAMP_FORMAT)}.csv"


def parse_snapshot(text: str) -> tuple[list[SnapshotRecord], int]:
    """Parse snapshot text into records plus the count of ignored lines.

    Blank and non-matching lines are ignored; a line must match exactly, so
    trailing whitespace or extra columns disqualify it.
    """
    records: list[SnapshotRecord] = []
    ignored = 0
    for line in text.splitlines():
        match = _LINE_PATTERN.fullmatch(line)
        if match is None:
            if line.strip():
                ignored += 1
            continue
        full_name, visibility, archived = match.groups()
        records.append(
            SnapshotRecord(
                full_name=full_name,
                visibility=Visibility(visibility),
                archived=archived == "true",
            )
        )
    return records, ignored


class SnapshotStore:
    """Read and write snapshot files inside ``snapshot_dir``."""

    def __init__(
        self, snapshot_dir: Path, *, events: EventLogger | None = None
    ) -> None:
        """Bind the store to the directory holding snapshot files."""
        self.snapshot_dir = snapshot_dir
        self._events = events or EventLogger()

    def resolve(self, filename: str | Path) -> Path:
        """Return ``filename`` anchored at ``snapshot_dir`` unless absolute."""
        path = Path(filename).expanduser()
        return path if path.is_absolute() else self.snapshot_dir / path

    def latest_snapshot(self) -> Path | None:
        """Return the most recently modified ``repo_status_*.csv``, if any."""
        if not self.snapshot_dir.is_dir():
            return None
        candidates = [p for p in self.snapshot_dir.glob(SNAPSHOT_GLOB) if p.is_file()]
        if not candidates:
            return None
        return max(candidates, key=lambda p: p.stat().st_mtime)

    def save(
        self, inventory: cabc.Sequence[RepositoryRecord], filename: str
    ) -> Path:
        """Write ``inventory`` to ``filename`` and return the written path.

        The filename is validated before anything touches the filesystem;
        write failures surface as :class:`SnapshotFileError`.
        """
        try:
            validate_filename(filename)
        except BadFilenameError as exc:
            self._events.snapshot_rejected(filename, str(exc))
            raise
        path = self.snapshot_dir / filename
        lines = [SnapshotRecord.from_record(record).to_line() for record in inventory]
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        except OSError as exc:
            error = SnapshotFileError.unwritable(path, exc)
            self._events.snapshot_rejected(str(path), str(error))
            raise error from exc
        self._events.snapshot_saved(path, len(lines))
        return path

    def load(self, filename: str | Path) -> list[SnapshotRecord]:
        """Read snapshot records from ``filename``.

        Raises
        ------
        SnapshotFileError
            If the file is missing or unreadable.
        BadFileFormatError
            If not a single line is a well-formed snapshot entry.

        """
        path = self.resolve(str(filename))
        if not path.is_file():
            error = SnapshotFileError.missing(path)
            self._events.snapshot_rejected(str(path), str(error))
            raise error
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            error = SnapshotFileError.unreadable(path, exc)
            self._events.snapshot_rejected(str(path), str(error))
            raise error from exc
        except UnicodeDecodeError as exc:
            error = BadFileFormatError(path, "file is not UTF-8 text")
            self._events.snapshot_rejected(str(path), str(error))
            raise error from exc

        records, ignored = parse_snapshot(text)
        if not records:
            error = BadFileFormatError(path)
            self._events.snapshot_rejected(str(path), str(error))
            raise error
        self._events.snapshot_loaded(path, len(records), ignored)
        return records

    def apply(
        self,
        records: cabc.Sequence[SnapshotRecord],
        orchestrator: MutationOrchestrator,
    ) -> SessionReport:
        """Reconcile each record against live state, in file order.

        Records with malformed names are skipped without a prompt. Every
        other record is confirmed once and then reconciled visibility first,
        archive state second. The inventory cache is invalidated afterwards
        whatever the outcomes.
        """
        report = SessionReport()
        orchestrator.begin_batch()
        for record in records:
            if not is_valid_repo_slug(record.full_name):
                error = BadRepoNameError(record.full_name)
                log_warning(logger, "%s. Skipping.", error)
                report.add(orchestrator.skip_invalid(record.full_name))
                continue
            for outcome in orchestrator.reconcile(record):
                report.add(outcome)
        orchestrator.invalidate_cache("snapshot applied")
        self._events.snapshot_applied(len(records), report.succeeded, report.failed)
        return report


__all__ = [
    "SNAPSHOT_GLOB",
    "SNAPSHOT_PREFIX",
    "SnapshotStore",
    "default_save_name",
    "parse_snapshot",
    "validate_filename",
]
