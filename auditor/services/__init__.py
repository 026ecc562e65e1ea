"""Storage, version control and review orchestration services."""

from auditor.services.git_diff import (
    DiffProvider,
    GitDiffProvider,
    GitError,
    parse_unified_diff,
)
from auditor.services.redis_store import RedisSnapshotStore, StorageConnectionError
from auditor.services.review_service import (
    ReviewService,
    UnknownCommentError,
    UnknownLineError,
)
from auditor.services.snapshot_store import (
    CorruptRecordError,
    InvalidFilePathError,
    JsonFileSnapshotStore,
    SnapshotStore,
    SnapshotStoreError,
    UnknownCommitError,
    UnknownFileError,
)

__all__ = [
    'DiffProvider',
    'GitDiffProvider',
    'GitError',
    'parse_unified_diff',
    'RedisSnapshotStore',
    'StorageConnectionError',
    'ReviewService',
    'UnknownCommentError',
    'UnknownLineError',
    'CorruptRecordError',
    'SnapshotStore',
    'SnapshotStoreError',
    'JsonFileSnapshotStore',
    'InvalidFilePathError',
    'UnknownCommitError',
    'UnknownFileError',
]
