"""Comment data models."""

from pydantic import BaseModel, Field


class Comment(BaseModel):
    """Free-text note attached to a line of a file."""

    id: str
    body: str
    author: str


class CreateCommentRequest(BaseModel):
    """Request to add a comment to a line."""

    file_name: str
    line_number: int = Field(ge=0)
    body: str
    author: str


class UpdateCommentRequest(BaseModel):
    """Request to rewrite an existing comment."""

    file_name: str
    line_number: int = Field(ge=0)
    comment_id: str
    body: str
    author: str


class DeleteCommentRequest(BaseModel):
    """Request to remove a comment from a line."""

    file_name: str
    line_number: int = Field(ge=0)
    comment_id: str
