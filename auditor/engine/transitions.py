"""
Review state transitions.

Every transition takes a snapshot and returns a new one; the input snapshot
is left untouched so it can keep living in storage under its own commit.
"""

from typing import Dict, List, Optional

from auditor.engine.ranges import insert_merge, remove_overlap
from auditor.models.diff import Diff
from auditor.models.review import (
    CommitReviewState,
    FileReviewState,
    LineRange,
    ReviewState,
)

# Review state -> FileReviewState field holding its ranges
CATEGORY_FIELDS: Dict[ReviewState, str] = {
    ReviewState.REVIEWED: "reviewed",
    ReviewState.MODIFIED: "modified",
    ReviewState.IGNORED: "ignored",
}


def mark_lines(
    file_state: FileReviewState,
    state: ReviewState,
    line_range: LineRange,
) -> FileReviewState:
    """
    Put a line range into one review category and out of all others.

    ``ReviewState.CLEARED`` adds nothing and removes the range from all
    three categories.

    Args:
        file_state: Current review state of the file
        state: Requested review state
        line_range: Lines to mark

    Returns:
        New file review state
    """
    updates: Dict[str, List[LineRange]] = {}
    target = CATEGORY_FIELDS.get(state)

    for field in CATEGORY_FIELDS.values():
        ranges = getattr(file_state, field)
        if field == target:
            updates[field] = insert_merge(line_range, ranges)
        else:
            updates[field] = remove_overlap(line_range, ranges)

    return file_state.model_copy(update=updates)


def update_reviews(
    current_state: CommitReviewState,
    file_name: str,
    line_range: LineRange,
    state: ReviewState,
    total_lines: int,
) -> CommitReviewState:
    """
    Apply a manual review update to one file of a snapshot.

    Args:
        current_state: Snapshot to derive from
        file_name: File being updated
        line_range: Lines to mark
        state: Requested review state
        total_lines: Line count of the file as known by the caller

    Returns:
        New snapshot with only ``file_name`` replaced
    """
    file_state = current_state.files.get(file_name) or FileReviewState()
    marked = mark_lines(file_state, state, line_range)
    marked = marked.model_copy(update={"total_lines": total_lines})

    files = dict(current_state.files)
    files[file_name] = marked
    return current_state.model_copy(update={"files": files})


def transform_reviews(
    current_state: CommitReviewState,
    diff: Optional[Diff],
) -> CommitReviewState:
    """
    Demote lines touched by a diff to modified.

    Added or changed lines (those with a new line number) become modified.
    Pure deletions carry no new line number and leave the state untouched, so
    a reviewed range next to a deleted line stays reviewed.

    Args:
        current_state: Snapshot stored for the prior commit
        diff: Line diff from the prior commit to the current one, or None

    Returns:
        New snapshot, or ``current_state`` itself when there is no diff
    """
    if diff is None:
        return current_state

    files = dict(current_state.files)
    for file_name, line_diffs in diff.files.items():
        file_state = files.get(file_name) or FileReviewState()
        for line_diff in line_diffs:
            if line_diff.is_deletion:
                continue
            file_state = mark_lines(
                file_state,
                ReviewState.MODIFIED,
                LineRange.line(line_diff.new - 1),
            )
        files[file_name] = file_state

    return current_state.model_copy(update={"files": files})
