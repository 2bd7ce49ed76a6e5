"""
Unit tests for interval overlap arithmetic.
"""

from services.building_ops.core.intervals import (
    gap_minutes,
    intervals_conflict,
    overlap_minutes,
    overlap_ratio,
)


def test_overlap_minutes():
    assert overlap_minutes(540, 570, 555, 615) == 15
    assert overlap_minutes(540, 600, 600, 660) == 0
    assert overlap_minutes(540, 600, 700, 760) == 0


def test_overlap_ratio_zero_duration():
    assert overlap_ratio(0, 540, 540) == 0.0
    assert overlap_ratio(10, 600, 540) == 0.0


def test_partial_overlap_is_not_a_conflict():
    # [9:00, 9:30] vs [9:15, 10:15]: 15 min overlap is 50% and 25%
    assert not intervals_conflict(540, 570, 555, 615)


def test_contained_interval_is_a_conflict():
    # [9:00, 10:00] vs [9:05, 9:35]: 30 min overlap is 100% of the second
    assert intervals_conflict(540, 600, 545, 575)


def test_threshold_is_strict():
    # 48 of 60 minutes is exactly 80% of both
    assert not intervals_conflict(540, 600, 552, 612)
    assert intervals_conflict(540, 600, 551, 611)


def test_back_to_back():
    assert not intervals_conflict(540, 600, 600, 660)


def test_identical_intervals():
    assert intervals_conflict(540, 600, 540, 600)


def test_gap_minutes():
    assert gap_minutes(600, 610) == 10
    assert gap_minutes(600, 600) is None
    assert gap_minutes(600, 590) is None
