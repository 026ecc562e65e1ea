"""Per-file metadata models."""

from enum import Enum

from pydantic import BaseModel


class Priority(str, Enum):
    """Review priority of a file."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    IGNORE = "Ignore"


class FileMetadata(BaseModel):
    """Reviewer-assigned metadata of a file."""

    priority: Priority


class UpdateMetadataRequest(BaseModel):
    """Request to set the metadata of a file."""

    file_name: str
    metadata: FileMetadata
