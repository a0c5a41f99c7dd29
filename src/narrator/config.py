"""
Tunable constants and service credentials.
"""

import os
from dataclasses import dataclass

PLACEHOLDER_TEXT = "..."
FILLER_ASSET_URL = "https://via.placeholder.com/1280x720/1e3a8a/ffffff?text=+"


@dataclass(frozen=True)
class SegmentationConfig:
    """Named defaults for caption segmentation and timeline assembly."""

    # Splitter
    cjk_chunk_chars: int = 10
    latin_chunk_words: int = 4
    cjk_min_ratio: float = 0.3

    # Allocator
    weighting: str = "length"  # "length" | "equal"
    min_unit_secs: float = 2.0
    max_unit_secs: float = 10.0

    # Merger
    min_duration: float = 1.0
    min_gap: float = 0.3
    max_caption_secs: float | None = 5.0

    # Duration estimator
    default_duration: float = 60.0
    bytes_per_minute: int = 1024 * 1024
    min_estimate_secs: float = 10.0
    max_estimate_secs: float = 300.0
    min_duration_floor: float = 1.0

    # Timeline
    asset_slot_secs: float = 5.0
    filler_asset_url: str = FILLER_ASSET_URL
    placeholder_text: str = PLACEHOLDER_TEXT

    # Keywords
    keyword_top_n: int = 8


@dataclass(frozen=True)
class ServiceKeys:
    """API credentials for the external collaborators."""

    openai: str | None = None
    assemblyai: str | None = None
    shotstack: str | None = None
    shotstack_env: str = "stage"
    pexels: str | None = None
    unsplash: str | None = None

    @classmethod
    def from_env(cls) -> "ServiceKeys":
        return cls(
            openai=os.getenv("OPENAI_API_KEY") or None,
            assemblyai=os.getenv("ASSEMBLY_AI_API_KEY") or os.getenv("ASSEMBLYAI_API_KEY") or None,
            shotstack=os.getenv("SHOTSTACK_API_KEY") or None,
            shotstack_env=os.getenv("SHOTSTACK_ENV", "stage"),
            pexels=os.getenv("PEXELS_API_KEY") or None,
            unsplash=os.getenv("UNSPLASH_ACCESS_KEY") or None,
        )
