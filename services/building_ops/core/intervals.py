"""
Time-interval arithmetic on minute-of-day values.
"""

from typing import Optional

# Overlap must cover more than this share of either event's own duration
CONFLICT_OVERLAP_THRESHOLD = 0.8


def overlap_minutes(start1: int, end1: int, start2: int, end2: int) -> int:
    return max(0, min(end1, end2) - max(start1, start2))


def overlap_ratio(overlap: int, start: int, end: int) -> float:
    """Share of ``[start, end]`` covered by ``overlap``; zero length gives 0."""
    duration = end - start
    if duration <= 0:
        return 0.0
    return overlap / duration


def intervals_conflict(
    start1: int,
    end1: int,
    start2: int,
    end2: int,
    threshold: float = CONFLICT_OVERLAP_THRESHOLD,
) -> bool:
    """
    Whether two intervals overlap substantially.

    A conflict needs the overlap to exceed ``threshold`` of either
    interval's duration, so back-to-back bookings with a few minutes of
    slop are not flagged.

    >>> intervals_conflict(540, 570, 555, 615)  # 9:00-9:30 vs 9:15-10:15
    False
    >>> intervals_conflict(540, 600, 545, 575)  # 9:00-10:00 vs 9:05-9:35
    True
    """
    overlap = overlap_minutes(start1, end1, start2, end2)
    if overlap == 0:
        return False
    return (
        overlap_ratio(overlap, start1, end1) > threshold
        or overlap_ratio(overlap, start2, end2) > threshold
    )


def gap_minutes(earlier_end: int, later_start: int) -> Optional[int]:
    """Minutes from one interval ending to the other starting.

    None if they touch or overlap.
    """
    gap = later_start - earlier_end
    return gap if gap > 0 else None
