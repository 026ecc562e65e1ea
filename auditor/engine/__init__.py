"""Review state interval engine."""

from auditor.engine.ranges import covered_lines, insert_merge, is_canonical, remove_overlap
from auditor.engine.transitions import mark_lines, transform_reviews, update_reviews

__all__ = [
    "insert_merge",
    "remove_overlap",
    "is_canonical",
    "covered_lines",
    "mark_lines",
    "update_reviews",
    "transform_reviews",
]
