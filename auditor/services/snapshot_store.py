"""
Snapshot storage for per-file review records.

A store keeps one ``FileRecord`` per tracked file: the review state of the
file under every commit it was reviewed at, the commit reviewed last, its
comments and its metadata. ``SnapshotStore`` defines the capability the
review service needs; ``JsonFileSnapshotStore`` keeps each record in its own
JSON file inside a directory.
"""

import asyncio
import hashlib
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Tuple

from auditor.engine.ranges import is_canonical
from auditor.models.record import FileRecord
from auditor.models.review import CommitReviewState, FileReviewState
from auditor.utils.logging import get_logger

logger = get_logger(__name__)


class SnapshotStoreError(Exception):
    """Base exception for snapshot store errors."""
    pass


class UnknownFileError(SnapshotStoreError):
    """Raised when no record exists for a file."""
    pass


class UnknownCommitError(SnapshotStoreError):
    """Raised when a record points at a commit it holds no state for."""
    pass


class InvalidFilePathError(SnapshotStoreError):
    """Raised when a file path cannot be mapped to a storage location."""
    pass


class CorruptRecordError(SnapshotStoreError):
    """Raised when a stored review state holds unsorted, overlapping or touching ranges."""
    pass


class SnapshotStore(ABC):
    """
    Read/write capability over per-file review records.

    Subclasses implement record persistence; snapshot bookkeeping on top of
    the records is shared.
    """

    async def initialize(self) -> None:
        """Prepare the backend. Called once at application startup."""

    async def close(self) -> None:
        """Release backend resources. Called once at application shutdown."""

    @abstractmethod
    async def load_record(self, file_name: str) -> Optional[FileRecord]:
        """Return the record of a file, or None if it was never stored."""

    @abstractmethod
    async def save_record(self, record: FileRecord) -> None:
        """Persist a record, replacing any previous version."""

    @abstractmethod
    async def list_records(self) -> List[FileRecord]:
        """Return the records of all tracked files."""

    async def require_record(self, file_name: str) -> FileRecord:
        """
        Return the record of a file.

        Raises:
            UnknownFileError: If the file has no record
        """
        record = await self.load_record(file_name)
        if record is None:
            raise UnknownFileError(f"No review record for file: {file_name}")
        return record

    async def latest_state(self, file_name: str) -> Tuple[Optional[str], Optional[FileReviewState]]:
        """
        Return the most recently stored review state of a file.

        Args:
            file_name: Repository-relative file path

        Returns:
            Tuple of (commit, state); both None if the file was never reviewed

        Raises:
            UnknownCommitError: If the record's latest commit has no stored state
            CorruptRecordError: If a stored range list is not in canonical form
        """
        record = await self.load_record(file_name)
        if record is None or not record.latest_reviewed_commit:
            return None, None

        state = record.latest_state()
        if state is None:
            raise UnknownCommitError(
                f"Commit {record.latest_reviewed_commit} has no stored state for {file_name}"
            )
        for ranges in (state.reviewed, state.modified, state.ignored):
            if not is_canonical(ranges):
                raise CorruptRecordError(
                    f"Stored review state of {file_name} at {record.latest_reviewed_commit} "
                    "has ranges out of order or overlapping"
                )
        return record.latest_reviewed_commit, state

    async def store_snapshot(self, commit: str, snapshot: CommitReviewState) -> None:
        """
        Store every file of a snapshot under a commit.

        Each stored file is associated with ``commit`` from now on.

        Args:
            commit: Commit hash the snapshot belongs to
            snapshot: Per-file review states to store
        """
        for file_name, state in snapshot.files.items():
            record = await self.load_record(file_name) or FileRecord(file_name=file_name)
            record.latest_reviewed_commit = commit
            record.total_lines = state.total_lines
            record.commit_reviews[commit] = state
            await self.save_record(record)

        logger.debug(
            f"Stored snapshot of {len(snapshot.files)} file(s)",
            extra={"commit": commit},
        )


def stored_file_name(file_name: str) -> str:
    """
    Map a file path to the name of its JSON record.

    The base name keeps records recognisable; a digest of the full path keeps
    files with equal base names apart.

    Raises:
        InvalidFilePathError: If the path has no base name
    """
    base_name = file_name.rstrip("/").split("/")[-1]
    if not base_name:
        raise InvalidFilePathError(f"Path has no file name: {file_name!r}")
    digest = hashlib.sha1(file_name.encode("utf-8")).hexdigest()[:16]
    return f"db_{base_name}-{digest}.json"


class JsonFileSnapshotStore(SnapshotStore):
    """Stores each file record as a JSON document in a directory."""

    RECORD_GLOB = "db_*.json"

    def __init__(self, db_dir: str):
        """
        Initialize the store.

        Args:
            db_dir: Directory holding the record files
        """
        self._db_dir = Path(db_dir)

    async def initialize(self) -> None:
        self._db_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"JSON snapshot store ready at {self._db_dir}")

    def _record_path(self, file_name: str) -> Path:
        return self._db_dir / stored_file_name(file_name)

    def _read(self, path: Path) -> Optional[FileRecord]:
        if not path.exists():
            return None
        return FileRecord.model_validate_json(path.read_text(encoding="utf-8"))

    def _write(self, record: FileRecord) -> None:
        path = self._record_path(record.file_name)
        self._db_dir.mkdir(parents=True, exist_ok=True)
        # Write next to the target, then swap it in
        fd, tmp_name = tempfile.mkstemp(dir=self._db_dir, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(record.model_dump_json())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _read_all(self) -> List[FileRecord]:
        if not self._db_dir.is_dir():
            return []
        records = []
        for path in sorted(self._db_dir.glob(self.RECORD_GLOB)):
            record = self._read(path)
            if record is not None:
                records.append(record)
        return records

    async def load_record(self, file_name: str) -> Optional[FileRecord]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read, self._record_path(file_name))

    async def save_record(self, record: FileRecord) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write, record)

    async def list_records(self) -> List[FileRecord]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read_all)
