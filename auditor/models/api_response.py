"""API response data models."""

from typing import Dict, List, Optional

from pydantic import BaseModel

from .comment import Comment
from .metadata import Priority
from .review import ReviewStateResponse


class FileInfo(BaseModel):
    """Latest review state, comments and priority of one file."""

    file_name: str
    line_reviews: ReviewStateResponse
    comments: Dict[int, List[Comment]] = {}
    priority: Optional[Priority] = None


class CommentCreated(BaseModel):
    """Identifier of a newly created comment."""

    comment_id: str


class StatusResponse(BaseModel):
    """Generic status reply."""

    status: str
    message: str
