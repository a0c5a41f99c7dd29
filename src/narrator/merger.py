"""
Caption merging so no caption flashes by too fast to read.
"""

import logging

from .models import TranscriptSegment

logger = logging.getLogger("narrator")


def merge_segments(
    segments: list[TranscriptSegment],
    min_duration: float = 1.0,
    min_gap: float = 0.3,
    max_duration: float | None = 5.0,
    separator: str = " ",
) -> list[TranscriptSegment]:
    """
    Coalesce adjacent caption segments.

    A candidate is folded into the current caption when:
    - the current caption is still shorter than ``min_duration``,
    - OR it overlaps the current caption,
    - OR it is shorter than ``min_duration`` or follows within ``min_gap``,
      and the merged caption stays within ``max_duration`` (no cap when ``None``).
    The last caption is always emitted, so every input text survives.
    """
    if not segments:
        return []

    ordered = sorted(segments, key=lambda s: s.start_time)
    out: list[TranscriptSegment] = []
    cur = ordered[0]

    for cand in ordered[1:]:
        gap = cand.start_time - cur.end_time
        merged_end = max(cur.end_time, cand.end_time)
        too_short = (cand.end_time - cand.start_time) < min_duration
        cur_short = (cur.end_time - cur.start_time) < min_duration
        within_cap = max_duration is None or (merged_end - cur.start_time) <= max_duration
        overlapping = gap < 0
        if cur_short or overlapping or (within_cap and (too_short or gap < min_gap)):
            text = separator.join(t for t in (cur.text.strip(), cand.text.strip()) if t)
            cur = TranscriptSegment(text=text, start_time=cur.start_time, end_time=merged_end)
        else:
            out.append(cur)
            cur = cand

    out.append(cur)
    if len(out) != len(ordered):
        logger.debug("Merged %d segments into %d captions", len(ordered), len(out))
    return out
