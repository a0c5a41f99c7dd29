"""
Data models for the narration pipeline.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TranscriptSegment:
    """A caption segment with timing and text."""

    text: str
    start_time: float  # seconds
    end_time: float  # seconds

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass(frozen=True)
class MediaAsset:
    """A candidate background visual with a proposed placement window."""

    type: str  # "image" | "video"
    url: str
    duration: float
    start_time: float
    end_time: float
    description: str = ""


@dataclass(frozen=True)
class TimelineEntry:
    """One placed asset on the render timeline."""

    asset: MediaAsset
    start_time: float
    end_time: float
    transition_type: str  # "fade" | "slide" | "zoom"
    filler: bool = False

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass
class RenderRequest:
    """Everything the caption/timeline core needs for one job."""

    raw_transcript_text: str
    external_timestamps: list[TranscriptSegment] | None = None
    authoritative_duration: float | None = None
    file_size_bytes: int | None = None
    candidate_assets: list[MediaAsset] = field(default_factory=list)


@dataclass
class RenderPlan:
    """Caption segments and media timeline that drive the renderer."""

    caption_segments: list[TranscriptSegment]
    timeline: list[TimelineEntry]
    total_duration: float
    language: str  # "cjk" | "latin"


@dataclass
class Transcript:
    """Output of a speech-to-text collaborator."""

    text: str
    segments: list[TranscriptSegment]
    duration: float | None = None


@dataclass
class CaptionStyle:
    """On-screen caption appearance."""

    position: str = "bottom"  # "top" | "center" | "bottom"
    background_color: str = "rgba(0,0,0,0.7)"
    color: str = "#ffffff"
    font_size: int = 24
    font_family: str = "Arial, sans-serif"
    font_weight: str = "normal"
    outline: bool = False
    highlight_keywords: list[str] = field(default_factory=list)
    highlight_color: str = "#ffff00"


@dataclass
class VideoSettings:
    """Render settings for one video job."""

    format: str = "youtube"  # "youtube" | "tiktok"
    duration: float | None = None
    fps: int = 30
    width: int = 1280
    height: int = 720
    background_color: str = "#1e3a8a"
    caption_style: CaptionStyle = field(default_factory=CaptionStyle)

    @classmethod
    def for_format(cls, fmt: str, **overrides) -> "VideoSettings":
        if fmt == "tiktok":
            base = cls(format="tiktok", width=1080, height=1920, background_color="#000000")
            base.caption_style.font_size = 29
            base.caption_style.background_color = "rgba(0,0,0,0.8)"
        else:
            base = cls(format="youtube")
        for key, value in overrides.items():
            if value is not None:
                setattr(base, key, value)
        return base

    @property
    def orientation(self) -> str:
        return "portrait" if self.height > self.width else "landscape"


@dataclass
class AssetSearchResult:
    """A single stock-media search hit."""

    id: str
    url: str
    thumbnail_url: str
    type: str  # "image" | "video"
    source: str  # "pexels" | "unsplash" | "dalle" | "custom"
    description: str
    tags: list[str]
    duration: float | None = None


@dataclass
class Scene:
    """A scene proposed by the LLM scene analysis."""

    description: str
    keywords: list[str]
    start_time: float
    end_time: float
    suggested_assets: list[str]


@dataclass
class GenerationSettings:
    """Article generation settings."""

    processing_mode: str = "article"  # "natural" | "article"
    tone: str = "standard"
    purpose: str = "education"
    keywords: str | None = None
    target_audience: str = "general readers"


@dataclass
class GeneratedContent:
    """A generated article."""

    seo_title: str
    lead_text: str
    content: str
    cta: str
    meta_description: str
    tags: list[str]
    cover_image_url: str
    markdown: str


@dataclass
class VideoGenerationResult:
    """Outcome of one video job."""

    job_id: str
    video_url: str
    thumbnail_url: str
    duration: float
    format: str
    size: int = 0
    caption_path: str | None = None
    manifest_path: str | None = None
    demo: bool = False
