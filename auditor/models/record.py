"""Stored per-file record models."""

from typing import Dict, List, Optional

from pydantic import BaseModel

from .comment import Comment
from .metadata import FileMetadata
from .review import FileReviewState


class FileRecord(BaseModel):
    """Everything stored about one tracked file."""

    file_name: str
    total_lines: int = 0
    latest_reviewed_commit: str = ""
    # Maps commit hash to the file's review state at that commit
    commit_reviews: Dict[str, FileReviewState] = {}
    comments: Dict[int, List[Comment]] = {}
    metadata: Optional[FileMetadata] = None

    def latest_state(self) -> Optional[FileReviewState]:
        """Review state stored under the latest reviewed commit, if any."""
        return self.commit_reviews.get(self.latest_reviewed_commit)
