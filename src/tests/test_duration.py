"""
Tests for duration estimation.
"""

import pytest

from narrator.duration import coerce_duration, estimate_duration


def test_authoritative_duration_passes_through():
    assert estimate_duration(authoritative=42.5, file_size_bytes=10) == 42.5


def test_estimate_from_file_size():
    """1 MB is about a minute; the estimate is clamped to [10, 300] s."""
    assert estimate_duration(file_size_bytes=1024 * 1024) == pytest.approx(60.0)
    assert estimate_duration(file_size_bytes=100) == 10.0
    assert estimate_duration(file_size_bytes=100 * 1024 * 1024) == 300.0


def test_default_when_nothing_is_known():
    assert estimate_duration() == 60.0
    assert estimate_duration(authoritative=-3) == 60.0


def test_empty_file_is_shortest_clip():
    assert estimate_duration(file_size_bytes=0) == 10.0


def test_coerce_degenerate_durations():
    assert coerce_duration(-5) == 1.0
    assert coerce_duration(float("nan")) == 1.0
    assert coerce_duration("abc") == 1.0
    assert coerce_duration(12) == 12.0
