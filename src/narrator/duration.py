"""
Best-effort audio duration estimation.
"""

import logging
import math

from .config import SegmentationConfig

logger = logging.getLogger("narrator")


def _positive(value) -> float | None:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(v) or v <= 0:
        return None
    return v


def coerce_duration(total, config: SegmentationConfig | None = None) -> float:
    """Return ``total`` when it is a usable duration, else the positive floor."""
    cfg = config or SegmentationConfig()
    v = _positive(total)
    return v if v is not None else cfg.min_duration_floor


def estimate_duration(
    authoritative: float | None = None,
    file_size_bytes: int | None = None,
    config: SegmentationConfig | None = None,
) -> float:
    """
    Pick a total duration for an audio source.

    An authoritative value (transcription service, ffprobe) passes through.
    Otherwise the file size is converted at a fixed bitrate (1 MB ~ 60 s) and
    clamped, and failing that the configured default is used. The result is
    approximate and always positive.
    """
    cfg = config or SegmentationConfig()

    known = _positive(authoritative)
    if known is not None:
        return known

    size = _positive(file_size_bytes)
    if size is not None:
        secs = size / cfg.bytes_per_minute * 60.0
        clamped = min(max(secs, cfg.min_estimate_secs), cfg.max_estimate_secs)
        logger.debug("Estimated %.1fs from %d bytes", clamped, int(size))
        return clamped

    if file_size_bytes is not None:
        # empty or corrupt file: treat as the shortest plausible clip
        return cfg.min_estimate_secs

    return coerce_duration(cfg.default_duration, cfg)
