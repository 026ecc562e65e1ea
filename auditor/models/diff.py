"""Line diff data models."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class LineDiff(BaseModel):
    """One changed line location, with one-based line numbers."""

    old: Optional[int] = Field(default=None, ge=1)
    new: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _check_sides(self) -> "LineDiff":
        if self.old is None and self.new is None:
            raise ValueError("a line diff needs an old or a new line number")
        return self

    @property
    def is_deletion(self) -> bool:
        return self.old is not None and self.new is None


class Diff(BaseModel):
    """Changed lines per file between two commits."""

    files: Dict[str, List[LineDiff]] = {}
