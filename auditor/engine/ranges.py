"""
Interval algebra over canonical line range lists.

A range list is canonical when it is sorted by start, and no two ranges
overlap or touch (consecutive ranges ``a``, ``b`` satisfy
``b.start > a.end + 1``). Both operations take a canonical list and return a
new canonical list; inputs are never mutated.
"""

from typing import List, Sequence

from auditor.models.review import LineRange


def insert_merge(new_range: LineRange, ranges: Sequence[LineRange]) -> List[LineRange]:
    """
    Add a range to a canonical list, merging overlapping and touching ranges.

    Args:
        new_range: Range to add
        ranges: Canonical range list

    Returns:
        Canonical list covering the union of ``ranges`` and ``new_range``
    """
    start, end = new_range.start, new_range.end
    merged: List[LineRange] = []

    for index, current in enumerate(ranges):
        if end + 1 < current.start:
            merged.append(LineRange.of(start, end))
            merged.extend(ranges[index:])
            return merged
        if start > current.end + 1:
            merged.append(current)
        else:
            start = min(start, current.start)
            end = max(end, current.end)

    merged.append(LineRange.of(start, end))
    return merged


def remove_overlap(cut_range: LineRange, ranges: Sequence[LineRange]) -> List[LineRange]:
    """
    Remove every line of ``cut_range`` from a canonical list.

    Ranges partially covered by ``cut_range`` are split into the part before
    and the part after it; empty remainders are dropped.

    Args:
        cut_range: Range to excise
        ranges: Canonical range list

    Returns:
        Canonical list without any line of ``cut_range``
    """
    remaining: List[LineRange] = []

    for index, current in enumerate(ranges):
        if cut_range.end < current.start:
            remaining.extend(ranges[index:])
            break
        if cut_range.start > current.end:
            remaining.append(current)
            continue
        if current.start < cut_range.start:
            remaining.append(LineRange.of(current.start, cut_range.start - 1))
        if cut_range.end < current.end:
            remaining.append(LineRange.of(cut_range.end + 1, current.end))

    return remaining


def is_canonical(ranges: Sequence[LineRange]) -> bool:
    """Check that a range list is sorted, non-overlapping and non-adjacent."""
    return all(later.start > earlier.end + 1 for earlier, later in zip(ranges, ranges[1:]))


def covered_lines(ranges: Sequence[LineRange]) -> int:
    """Number of lines covered by a canonical range list."""
    return sum(r.end - r.start + 1 for r in ranges)
