"""
Time allocation: turn caption units into timed segments.
"""

import logging

from .config import SegmentationConfig
from .duration import coerce_duration
from .models import TranscriptSegment

logger = logging.getLogger("narrator")


def _bounded_shares(weights: list[float], total: float, lo: float, hi: float) -> list[float]:
    """Split ``total`` proportionally to ``weights`` with every share in [lo, hi].

    Shares that fall outside the bounds are pinned to the bound and the rest of
    the time is redistributed among the free units. When the bounds cannot be
    met for this many units the split is equal.
    """
    n = len(weights)
    if n * lo >= total or n * hi <= total:
        return [total / n] * n

    shares: list[float | None] = [None] * n
    for _ in range(n + 1):
        free = [i for i in range(n) if shares[i] is None]
        if not free:
            break
        remaining = total - sum(s for s in shares if s is not None)
        wsum = sum(weights[i] for i in free)
        prop = {i: remaining * weights[i] / wsum for i in free}

        low = [i for i in free if prop[i] < lo]
        if low:
            for i in low:
                shares[i] = lo
            continue
        high = [i for i in free if prop[i] > hi]
        if high:
            for i in high:
                shares[i] = hi
            continue
        for i in free:
            shares[i] = prop[i]
        break

    out = [s if s is not None else 0.0 for s in shares]
    acc = sum(out)
    if acc > 0 and abs(acc - total) > 1e-9:
        out = [s * total / acc for s in out]
    return out


def allocate_proportional(
    units: list[str], total: float, config: SegmentationConfig | None = None
) -> list[TranscriptSegment]:
    """Lay units end to end over ``[0, total]``, weighted by length or equally."""
    cfg = config or SegmentationConfig()
    total = coerce_duration(total, cfg)
    if not units:
        return [TranscriptSegment(cfg.placeholder_text, 0.0, total)]

    if cfg.weighting == "equal":
        shares = [total / len(units)] * len(units)
    else:
        weights = [float(max(1, len(u))) for u in units]
        shares = _bounded_shares(weights, total, cfg.min_unit_secs, cfg.max_unit_secs)

    out: list[TranscriptSegment] = []
    start = 0.0
    for idx, (unit, share) in enumerate(zip(units, shares, strict=True)):
        end = total if idx == len(units) - 1 else start + share
        out.append(TranscriptSegment(text=unit, start_time=start, end_time=end))
        start = end
    return out


def rescale_timestamps(
    timestamps: list[TranscriptSegment],
    total: float,
    config: SegmentationConfig | None = None,
) -> list[TranscriptSegment]:
    """
    Stretch externally supplied timings so they end exactly at ``total``.

    The speech service's clock can disagree with the real audio length (codec
    differences, trimmed silence), so every start/end is multiplied by
    ``total / max_end``. Overlaps are clipped; segments left with no duration
    fold their text into a neighbour so nothing is lost.
    """
    cfg = config or SegmentationConfig()
    total = coerce_duration(total, cfg)
    usable = [t for t in timestamps if (t.text or "").strip()]
    if not usable:
        return allocate_proportional([], total, cfg)

    max_end = max(float(t.end_time) for t in usable)
    if max_end <= 0:
        logger.warning("External timestamps carry no timing; falling back to proportional split")
        return allocate_proportional([t.text.strip() for t in usable], total, cfg)

    scale = total / max_end
    scaled = sorted(
        (
            (max(0.0, t.start_time * scale), max(0.0, t.end_time * scale), t.text.strip())
            for t in usable
        ),
        key=lambda x: x[0],
    )

    out: list[TranscriptSegment] = []
    carry = ""
    last_end = 0.0
    for start, end, text in scaled:
        start = max(start, last_end)
        end = min(end, total)
        if carry:
            text = f"{carry} {text}"
            carry = ""
        if end <= start:
            if out:
                prev = out[-1]
                out[-1] = TranscriptSegment(f"{prev.text} {text}", prev.start_time, prev.end_time)
            else:
                carry = text
            continue
        out.append(TranscriptSegment(text, start, end))
        last_end = end

    if not out:
        return [TranscriptSegment(carry or cfg.placeholder_text, 0.0, total)]

    last = out[-1]
    out[-1] = TranscriptSegment(last.text, last.start_time, total)
    return out


def allocate(
    units: list[str],
    total: float,
    external_timestamps: list[TranscriptSegment] | None = None,
    config: SegmentationConfig | None = None,
) -> list[TranscriptSegment]:
    """Assign ``[start, end)`` windows to caption units.

    With external timestamps the rescale mode is used and ``units`` is ignored.
    """
    if external_timestamps:
        return rescale_timestamps(external_timestamps, total, config)
    return allocate_proportional(units, total, config)
