"""
Background media timeline building with gap filling.
"""

import logging

from .config import SegmentationConfig
from .duration import coerce_duration
from .models import MediaAsset, TimelineEntry

logger = logging.getLogger("narrator")

TRANSITIONS = ("fade", "slide", "zoom")
FILLER_TRANSITION = "fade"


def pick_transition(index: int) -> str:
    """Deterministic transition cycle: fade, slide, zoom, fade, ..."""
    return TRANSITIONS[index % len(TRANSITIONS)]


def filler_entry(start: float, end: float, config: SegmentationConfig | None = None) -> TimelineEntry:
    """A placeholder visual covering ``[start, end)``."""
    cfg = config or SegmentationConfig()
    asset = MediaAsset(
        type="image",
        url=cfg.filler_asset_url,
        duration=end - start,
        start_time=start,
        end_time=end,
        description="filler",
    )
    return TimelineEntry(
        asset=asset, start_time=start, end_time=end, transition_type=FILLER_TRANSITION, filler=True
    )


def resolve_overlaps(assets: list[MediaAsset]) -> list[tuple[MediaAsset, float, float]]:
    """
    Clip overlapping windows of pre-sorted assets.

    A window starting before the previous end has its start raised to that end;
    when nothing is left of it the asset is dropped as fully subsumed.
    """
    out: list[tuple[MediaAsset, float, float]] = []
    last_end = 0.0
    for a in assets:
        start = max(a.start_time, last_end)
        end = a.start_time + min(a.duration, a.end_time - a.start_time)
        if not end > start:
            logger.debug("Dropping subsumed asset %s", a.url)
            continue
        out.append((a, start, end))
        last_end = end
    return out


def _shifted_windows(assets: list[MediaAsset]) -> list[tuple[MediaAsset, float, float]]:
    """Delay each asset until the previous one has finished, keeping its length."""
    out: list[tuple[MediaAsset, float, float]] = []
    current = 0.0
    for a in assets:
        dur = min(a.duration, a.end_time - a.start_time)
        if not dur > 0:
            continue
        start = max(current, a.start_time)
        out.append((a, start, start + dur))
        current = start + dur
    return out


def fill_gaps(
    entries: list[TimelineEntry], total: float, config: SegmentationConfig | None = None
) -> list[TimelineEntry]:
    """Insert fillers before, between and after sorted, non-overlapping entries."""
    if not entries:
        return [filler_entry(0.0, total, config)]

    out: list[TimelineEntry] = []
    cursor = 0.0
    for e in entries:
        if e.start_time > cursor:
            out.append(filler_entry(cursor, e.start_time, config))
        out.append(e)
        cursor = e.end_time
    if cursor < total:
        out.append(filler_entry(cursor, total, config))
    return out


def build_timeline(
    assets: list[MediaAsset],
    total: float,
    config: SegmentationConfig | None = None,
    *,
    clip_overlaps: bool = False,
) -> list[TimelineEntry]:
    """
    Place assets on a timeline that tiles ``[0, total)`` exactly.

    Assets are sorted by proposed start. By default an asset that would overlap
    its predecessor is delayed (keeping its length); with ``clip_overlaps`` its
    start is clipped instead and fully covered assets are dropped. Entries stop
    at ``total`` and any uncovered interval gets a filler.
    """
    cfg = config or SegmentationConfig()
    total = coerce_duration(total, cfg)
    ordered = sorted(assets, key=lambda a: a.start_time)
    windows = resolve_overlaps(ordered) if clip_overlaps else _shifted_windows(ordered)

    placed: list[TimelineEntry] = []
    for asset, start, end in windows:
        if start >= total:
            break
        end = min(end, total)
        placed.append(
            TimelineEntry(
                asset=asset,
                start_time=start,
                end_time=end,
                transition_type=pick_transition(len(placed)),
            )
        )
        if end >= total:
            break

    timeline = fill_gaps(placed, total, cfg)
    logger.debug(
        "Timeline: %d assets placed, %d fillers, %.2fs total",
        len(placed),
        len(timeline) - len(placed),
        total,
    )
    return timeline
