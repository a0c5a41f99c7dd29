"""
Tests for caption merging.
"""

from narrator.merger import merge_segments
from narrator.models import TranscriptSegment


def _seg(text, start, end):
    return TranscriptSegment(text=text, start_time=start, end_time=end)


def test_short_caption_is_merged_forward():
    """A caption under the minimum duration absorbs the next one."""
    out = merge_segments([_seg("a", 0.0, 0.5), _seg("b", 0.5, 3.0), _seg("c", 3.5, 6.0)])
    assert out == [_seg("a b", 0.0, 3.0), _seg("c", 3.5, 6.0)]


def test_close_captions_merge_within_cap():
    out = merge_segments([_seg("a", 0.0, 2.0), _seg("b", 2.1, 4.0)])
    assert out == [_seg("a b", 0.0, 4.0)]


def test_contiguous_long_captions_are_kept():
    """Back-to-back 10 s captions would exceed the cap, so they stay separate."""
    segs = [_seg("one", 0.0, 10.0), _seg("two", 10.0, 20.0), _seg("three", 20.0, 30.0)]
    assert merge_segments(segs) == segs


def test_no_cap_merges_every_close_pair():
    segs = [_seg("one", 0.0, 10.0), _seg("two", 10.0, 20.0)]
    assert merge_segments(segs, max_duration=None) == [_seg("one two", 0.0, 20.0)]


def test_last_caption_is_always_emitted():
    assert merge_segments([_seg("a", 0.0, 0.2)]) == [_seg("a", 0.0, 0.2)]
    assert merge_segments([]) == []


def test_cjk_separator():
    out = merge_segments([_seg("こんにちは。", 0.0, 0.4), _seg("元気？", 0.4, 3.0)], separator="")
    assert out == [_seg("こんにちは。元気？", 0.0, 3.0)]


def test_merge_preserves_text_and_ordering():
    """All words survive, starts increase and non-final captions are long enough."""
    segs = [_seg(f"w{i}", i * 0.4, i * 0.4 + 0.35) for i in range(25)]
    out = merge_segments(segs, min_duration=1.0, min_gap=0.3)

    assert " ".join(s.text for s in out).split() == [s.text for s in segs]
    for a, b in zip(out, out[1:]):
        assert b.start_time > a.start_time
    for s in out[:-1]:
        assert s.duration >= 1.0


def test_overlapping_captions_merge():
    out = merge_segments([_seg("a", 0.0, 3.0), _seg("b", 2.0, 6.0)], max_duration=5.0)
    assert out == [_seg("a b", 0.0, 6.0)]


def test_word_level_segments_respect_the_cap():
    """Sub-second words are grouped into captions no longer than the cap."""
    words = [_seg(f"w{i}", i * 0.4, i * 0.4 + 0.35) for i in range(150)]
    out = merge_segments(words, min_duration=1.0, min_gap=0.3, max_duration=5.0)

    assert len(out) > 1
    assert all(s.duration <= 5.0 + 1e-9 for s in out)
    assert all(s.duration >= 1.0 for s in out[:-1])
    assert " ".join(s.text for s in out).split() == [w.text for w in words]


def test_single_long_input_is_kept_whole():
    out = merge_segments([_seg("a", 0.0, 0.5), _seg("long", 0.6, 8.0), _seg("b", 8.1, 8.4)])
    assert out == [_seg("a long", 0.0, 8.0), _seg("b", 8.1, 8.4)]
