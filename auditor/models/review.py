"""Review state data models."""

from enum import Enum
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ReviewState(str, Enum):
    """Review category requested for a line range."""

    REVIEWED = "Reviewed"
    MODIFIED = "Modified"
    IGNORED = "Ignored"
    CLEARED = "Cleared"


class LineRange(BaseModel):
    """Inclusive range of zero-based line numbers."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> "LineRange":
        if self.start > self.end:
            raise ValueError(f"range start {self.start} is after end {self.end}")
        return self

    @classmethod
    def of(cls, start: int, end: int) -> "LineRange":
        return cls(start=start, end=end)

    @classmethod
    def line(cls, number: int) -> "LineRange":
        return cls(start=number, end=number)

    def as_tuple(self) -> Tuple[int, int]:
        return (self.start, self.end)


class FileReviewState(BaseModel):
    """Reviewed, modified and ignored line ranges of one file."""

    reviewed: List[LineRange] = []
    modified: List[LineRange] = []
    ignored: List[LineRange] = []
    total_lines: int = 0


class CommitReviewState(BaseModel):
    """Snapshot of per-file review state for one commit."""

    files: Dict[str, FileReviewState] = {}
    exclusions: List[str] = []


class UpdateReviewRequest(BaseModel):
    """Request to mark a line range of a file with a review state."""

    file_name: str
    start_line: int = Field(ge=0)
    end_line: int = Field(ge=0)
    review_state: ReviewState
    total_lines: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_lines(self) -> "UpdateReviewRequest":
        if self.start_line > self.end_line:
            raise ValueError(
                f"start_line {self.start_line} is after end_line {self.end_line}"
            )
        if self.end_line >= self.total_lines:
            raise ValueError(
                f"end_line {self.end_line} is outside a file of {self.total_lines} lines"
            )
        return self

    def range(self) -> LineRange:
        return LineRange.of(self.start_line, self.end_line)


class TransformRequest(BaseModel):
    """Request to carry a file's review state over to the current commit."""

    file_name: str


class ReviewStateResponse(BaseModel):
    """Review state of a file as `[start, end]` pairs."""

    reviewed: List[Tuple[int, int]] = []
    modified: List[Tuple[int, int]] = []
    ignored: List[Tuple[int, int]] = []

    @classmethod
    def from_state(cls, state: FileReviewState) -> "ReviewStateResponse":
        return cls(
            reviewed=[r.as_tuple() for r in state.reviewed],
            modified=[r.as_tuple() for r in state.modified],
            ignored=[r.as_tuple() for r in state.ignored],
        )
