"""
Review service: the read-modify-write layer around the review engine.

Loads the latest stored snapshot of a file, runs an engine transition on it
and stores the result under the current commit. Every operation that writes
a file's record runs under that file's lock, so two requests for the same
file never derive from the same base snapshot.
"""

import asyncio
import uuid
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Sequence

from auditor.engine.ranges import covered_lines
from auditor.engine.transitions import transform_reviews, update_reviews
from auditor.models.api_response import FileInfo
from auditor.models.comment import Comment
from auditor.models.metadata import FileMetadata
from auditor.models.record import FileRecord
from auditor.models.review import (
    CommitReviewState,
    FileReviewState,
    ReviewStateResponse,
    UpdateReviewRequest,
)
from auditor.services.git_diff import DiffProvider, is_excluded
from auditor.services.snapshot_store import SnapshotStore
from auditor.utils.logging import get_logger, log_transition

logger = get_logger(__name__)


class UnknownLineError(Exception):
    """Raised when a line of a file has no comments."""
    pass


class UnknownCommentError(Exception):
    """Raised when a comment id is not found on a line."""
    pass


class ReviewService:
    """
    Applies review updates, diff transforms, comments and metadata changes.

    The store and the diff provider are injected; the service holds no
    review state of its own besides the per-file locks.
    """

    def __init__(
        self,
        store: SnapshotStore,
        diff_provider: DiffProvider,
        repository_path: str = "",
        excluded_prefixes: Sequence[str] = (),
        allowed_file_extensions: Sequence[str] = (),
    ):
        """
        Initialize the review service.

        Args:
            store: Snapshot store holding the file records
            diff_provider: Source of commits and diffs
            repository_path: Working tree path stripped from incoming file names
            excluded_prefixes: Path prefixes never diffed or tracked
            allowed_file_extensions: Extensions listed by ``latest_info``; empty lists all
        """
        self._store = store
        self._diff_provider = diff_provider
        self._repository_path = repository_path.rstrip("/")
        self._excluded_prefixes = list(excluded_prefixes)
        self._allowed_file_extensions = list(allowed_file_extensions)
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    def normalize_file_name(self, file_name: str) -> str:
        """Turn an absolute editor path into a repository-relative one."""
        root = self._repository_path
        if root and (file_name == root or file_name.startswith(root + "/")):
            file_name = file_name[len(root):]
        return file_name.lstrip("/")

    def is_excluded(self, file_name: str) -> bool:
        return is_excluded(file_name, self._excluded_prefixes)

    @asynccontextmanager
    async def _file_lock(self, file_name: str):
        """Hold the lock of one file; the lock is dropped once nobody uses it."""
        lock = self._locks.setdefault(file_name, asyncio.Lock())
        self._lock_users[file_name] = self._lock_users.get(file_name, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[file_name] -= 1
            if not self._lock_users[file_name]:
                del self._lock_users[file_name]
                del self._locks[file_name]

    async def _run_in_executor(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def _load_snapshot(self, file_name: str) -> tuple[Optional[str], CommitReviewState]:
        commit, state = await self._store.latest_state(file_name)
        files = {file_name: state} if state is not None else {}
        return commit, CommitReviewState(files=files, exclusions=list(self._excluded_prefixes))

    async def get_review_state(self, file_name: str) -> FileReviewState:
        """
        Return the latest review state of a file.

        Files that were never reviewed have an empty state.
        """
        _, state = await self._store.latest_state(file_name)
        return state or FileReviewState()

    async def update_review_state(self, request: UpdateReviewRequest) -> FileReviewState:
        """
        Mark a line range of a file and store the result under the current commit.

        Args:
            request: Update request with a repository-relative file name

        Returns:
            New review state of the file

        Raises:
            GitError: If the current commit cannot be determined
        """
        file_name = request.file_name
        async with self._file_lock(file_name):
            _, snapshot = await self._load_snapshot(file_name)
            new_snapshot = update_reviews(
                snapshot,
                file_name,
                request.range(),
                request.review_state,
                request.total_lines,
            )
            commit = await self._run_in_executor(self._diff_provider.current_commit)
            await self._store.store_snapshot(commit, new_snapshot)

        state = new_snapshot.files[file_name]
        log_transition(
            logger,
            file_name,
            "update",
            commit,
            reviewed=covered_lines(state.reviewed),
            modified=covered_lines(state.modified),
            ignored=covered_lines(state.ignored),
        )
        return state

    async def transform_review_state(self, file_name: str) -> FileReviewState:
        """
        Carry a file's review state over to the current commit.

        Lines changed since the commit the state was stored under become
        modified. Nothing is stored when there is no diff to apply.

        Args:
            file_name: Repository-relative file name

        Returns:
            Review state of the file at the current commit

        Raises:
            GitError: If git cannot produce the diff
        """
        async with self._file_lock(file_name):
            prior_commit, snapshot = await self._load_snapshot(file_name)
            diff = await self._run_in_executor(
                self._diff_provider.diff_against,
                prior_commit,
                snapshot.exclusions,
                [file_name],
            )
            if diff is None:
                return snapshot.files.get(file_name) or FileReviewState()

            # Other files in the diff have their own base commits
            diff = diff.model_copy(
                update={"files": {name: lines for name, lines in diff.files.items() if name == file_name}}
            )
            new_snapshot = transform_reviews(snapshot, diff)
            commit = await self._run_in_executor(self._diff_provider.current_commit)
            await self._store.store_snapshot(commit, new_snapshot)

        state = new_snapshot.files.get(file_name) or FileReviewState()
        log_transition(
            logger,
            file_name,
            "transform",
            commit,
            reviewed=covered_lines(state.reviewed),
            modified=covered_lines(state.modified),
            ignored=covered_lines(state.ignored),
        )
        return state

    async def add_comment(self, file_name: str, line_number: int, body: str, author: str) -> str:
        """
        Attach a comment to a line, creating the file record if needed.

        Returns:
            Id of the new comment
        """
        comment = Comment(id=str(uuid.uuid4()), body=body, author=author)
        async with self._file_lock(file_name):
            record = await self._store.load_record(file_name) or FileRecord(file_name=file_name)
            record.comments.setdefault(line_number, []).append(comment)
            await self._store.save_record(record)

        logger.info(
            f"Comment {comment.id} added on line {line_number}",
            extra={"file_name": file_name},
        )
        return comment.id

    async def get_comments(self, file_name: str) -> Dict[int, List[Comment]]:
        """
        Return the comments of a file keyed by line number.

        Raises:
            UnknownFileError: If the file has no record
        """
        record = await self._store.require_record(file_name)
        return record.comments

    def _find_comments(self, record: FileRecord, line_number: int) -> List[Comment]:
        comments = record.comments.get(line_number)
        if comments is None:
            raise UnknownLineError(f"No comments on line {line_number} of {record.file_name}")
        return comments

    async def update_comment(
        self,
        file_name: str,
        line_number: int,
        comment_id: str,
        body: str,
        author: str,
    ) -> None:
        """
        Rewrite the body and author of a comment.

        Raises:
            UnknownFileError: If the file has no record
            UnknownLineError: If the line has no comments
            UnknownCommentError: If no comment on the line has that id
        """
        async with self._file_lock(file_name):
            record = await self._store.require_record(file_name)
            for comment in self._find_comments(record, line_number):
                if comment.id == comment_id:
                    comment.body = body
                    comment.author = author
                    break
            else:
                raise UnknownCommentError(f"Comment id not found: {comment_id}")
            await self._store.save_record(record)

    async def delete_comment(self, file_name: str, line_number: int, comment_id: str) -> None:
        """
        Remove a comment; a line without comments left is dropped.

        Raises:
            UnknownFileError: If the file has no record
            UnknownLineError: If the line has no comments
            UnknownCommentError: If no comment on the line has that id
        """
        async with self._file_lock(file_name):
            record = await self._store.require_record(file_name)
            comments = self._find_comments(record, line_number)
            remaining = [comment for comment in comments if comment.id != comment_id]
            if len(remaining) == len(comments):
                raise UnknownCommentError(f"Comment id not found: {comment_id}")

            if remaining:
                record.comments[line_number] = remaining
            else:
                del record.comments[line_number]
            await self._store.save_record(record)

        logger.info(f"Comment {comment_id} deleted", extra={"file_name": file_name})

    async def set_metadata(self, file_name: str, metadata: FileMetadata) -> None:
        """
        Set the metadata of a tracked file.

        Raises:
            UnknownFileError: If the file has no record
        """
        async with self._file_lock(file_name):
            record = await self._store.require_record(file_name)
            record.metadata = metadata
            await self._store.save_record(record)

    def _is_listed(self, file_name: str) -> bool:
        if self.is_excluded(file_name):
            return False
        if not self._allowed_file_extensions:
            return True
        return any(file_name.endswith(f".{ext}") for ext in self._allowed_file_extensions)

    async def latest_info(self) -> List[FileInfo]:
        """Latest review state, comments and priority of every listed file."""
        infos = []
        for record in await self._store.list_records():
            if not self._is_listed(record.file_name):
                continue
            state = record.latest_state() or FileReviewState()
            infos.append(
                FileInfo(
                    file_name=record.file_name,
                    line_reviews=ReviewStateResponse.from_state(state),
                    comments=record.comments,
                    priority=record.metadata.priority if record.metadata else None,
                )
            )
        return infos
