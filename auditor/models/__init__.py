"""Data models for the line review auditor."""

from .api_response import CommentCreated, FileInfo, StatusResponse
from .comment import (
    Comment,
    CreateCommentRequest,
    DeleteCommentRequest,
    UpdateCommentRequest,
)
from .diff import Diff, LineDiff
from .metadata import FileMetadata, Priority, UpdateMetadataRequest
from .record import FileRecord
from .review import (
    CommitReviewState,
    FileReviewState,
    LineRange,
    ReviewState,
    ReviewStateResponse,
    TransformRequest,
    UpdateReviewRequest,
)

__all__ = [
    # Review models
    "ReviewState",
    "LineRange",
    "FileReviewState",
    "CommitReviewState",
    "UpdateReviewRequest",
    "TransformRequest",
    "ReviewStateResponse",
    # Diff models
    "LineDiff",
    "Diff",
    # Comment models
    "Comment",
    "CreateCommentRequest",
    "UpdateCommentRequest",
    "DeleteCommentRequest",
    # Metadata models
    "Priority",
    "FileMetadata",
    "UpdateMetadataRequest",
    # Storage models
    "FileRecord",
    # API response models
    "FileInfo",
    "CommentCreated",
    "StatusResponse",
]
