"""
Tests for timeline building with gap filling.
"""

import pytest

from narrator.models import MediaAsset
from narrator.timeline import build_timeline


def _asset(url, start, end, duration=None, kind="image"):
    return MediaAsset(
        type=kind,
        url=url,
        duration=duration if duration is not None else end - start,
        start_time=start,
        end_time=end,
    )


def _spans(timeline):
    return [(e.start_time, e.end_time, e.filler) for e in timeline]


def _assert_tiles(timeline, total):
    assert timeline[0].start_time == 0.0
    assert timeline[-1].end_time == pytest.approx(total)
    for a, b in zip(timeline, timeline[1:]):
        assert a.end_time == pytest.approx(b.start_time)


def test_single_asset_gets_fillers_on_both_sides():
    """An asset at [2,7) over 10 s is framed by fillers [0,2) and [7,10)."""
    timeline = build_timeline([_asset("a", 2.0, 7.0, duration=5.0)], 10.0)

    assert _spans(timeline) == [(0.0, 2.0, True), (2.0, 7.0, False), (7.0, 10.0, True)]
    assert timeline[1].asset.url == "a"
    _assert_tiles(timeline, 10.0)


def test_empty_assets_give_one_filler():
    timeline = build_timeline([], 10.0)
    assert _spans(timeline) == [(0.0, 10.0, True)]
    assert timeline[0].transition_type == "fade"


def test_overlapping_asset_is_delayed_by_default():
    timeline = build_timeline([_asset("b", 3.0, 8.0), _asset("a", 0.0, 5.0)], 12.0)
    assert _spans(timeline) == [(0.0, 5.0, False), (5.0, 10.0, False), (10.0, 12.0, True)]
    assert [e.asset.url for e in timeline[:2]] == ["a", "b"]


def test_overlapping_asset_is_clipped_when_asked():
    timeline = build_timeline([_asset("a", 0.0, 5.0), _asset("b", 3.0, 8.0)], 12.0, clip_overlaps=True)
    assert _spans(timeline) == [(0.0, 5.0, False), (5.0, 8.0, False), (8.0, 12.0, True)]


def test_subsumed_asset_is_dropped_when_clipping():
    timeline = build_timeline([_asset("a", 0.0, 10.0), _asset("b", 2.0, 5.0)], 10.0, clip_overlaps=True)
    assert _spans(timeline) == [(0.0, 10.0, False)]


def test_entries_stop_at_total():
    timeline = build_timeline([_asset("a", 0.0, 15.0), _asset("b", 15.0, 20.0)], 10.0)
    assert _spans(timeline) == [(0.0, 10.0, False)]


def test_transitions_cycle():
    assets = [_asset(str(i), i * 2.0, i * 2.0 + 2.0) for i in range(4)]
    timeline = build_timeline(assets, 8.0)
    assert [e.transition_type for e in timeline] == ["fade", "slide", "zoom", "fade"]


def test_many_assets_tile_exactly():
    assets = [_asset(str(i), i * 3.3, i * 3.3 + 2.5) for i in range(7)]
    timeline = build_timeline(assets, 25.0)
    _assert_tiles(timeline, 25.0)
