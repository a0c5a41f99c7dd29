"""
Video rendering with Shotstack.

The edit has two tracks: captions on top, background media below, plus the
narration as the soundtrack.
"""

import html
import logging
import re
import time

import httpx

from .errors import TIMEOUT, VIDEO_GENERATION_FAILED, PipelineError
from .models import CaptionStyle, RenderPlan, TimelineEntry, TranscriptSegment, VideoGenerationResult, VideoSettings
from .polling import JobState, PollPolicy, poll_job
from .srt_utils import wrap_lines

logger = logging.getLogger("narrator")

SHOTSTACK_BASE_URL = "https://api.shotstack.io"
DEMO_VIDEO_URL = "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/BigBuckBunny.mp4"
PLACEHOLDER_THUMBNAIL = "https://via.placeholder.com/1280x720/1e3a8a/ffffff?text={label}"

SHOTSTACK_TRANSITIONS = {
    "fade": {"in": "fade", "out": "fade"},
    "slide": {"in": "slideLeft", "out": "fade"},
    "zoom": {"in": "zoom", "out": "fade"},
}
_CAPTION_POSITIONS = {"top": "top", "center": "center", "bottom": "bottom"}


def caption_html(text: str, style: CaptionStyle, max_chars: int = 42) -> str:
    """Escaped caption markup with highlighted keywords and wrapped lines."""
    raw = wrap_lines(text, max_chars=max_chars)
    keywords = sorted({k for k in style.highlight_keywords if k.strip()}, key=len, reverse=True)
    if keywords:
        pattern = re.compile("|".join(re.escape(k) for k in keywords), re.IGNORECASE)
        parts = []
        pos = 0
        for m in pattern.finditer(raw):
            parts.append(html.escape(raw[pos : m.start()]))
            parts.append(f'<span class="hl">{html.escape(m.group(0))}</span>')
            pos = m.end()
        parts.append(html.escape(raw[pos:]))
        body = "".join(parts)
    else:
        body = html.escape(raw)
    return "<p>" + body.replace("\n", "<br>") + "</p>"


def caption_css(style: CaptionStyle) -> str:
    outline = "text-shadow: 0 0 3px #000, 0 0 3px #000;" if style.outline else ""
    return (
        f"p {{ font-family: {style.font_family}; font-size: {style.font_size}px; "
        f"font-weight: {style.font_weight}; color: {style.color}; "
        f"background-color: {style.background_color}; padding: 8px 16px; text-align: center; {outline}}} "
        f".hl {{ color: {style.highlight_color}; }}"
    )


def caption_clip(seg: TranscriptSegment, settings: VideoSettings, max_chars: int = 42) -> dict:
    style = settings.caption_style
    return {
        "asset": {
            "type": "html",
            "html": caption_html(seg.text, style, max_chars=max_chars),
            "css": caption_css(style),
            "width": int(settings.width * 0.9),
            "height": int(settings.height * 0.25),
        },
        "start": round(seg.start_time, 3),
        "length": round(seg.duration, 3),
        "position": _CAPTION_POSITIONS.get(style.position, "bottom"),
        "transition": {"in": "fade", "out": "fade"},
    }


def media_clip(entry: TimelineEntry, settings: VideoSettings) -> dict:
    if entry.filler:
        asset = {
            "type": "html",
            "html": "<div></div>",
            "css": f"div {{ width: 100%; height: 100%; background: {settings.background_color}; }}",
            "width": settings.width,
            "height": settings.height,
        }
    elif entry.asset.type == "video":
        asset = {"type": "video", "src": entry.asset.url, "volume": 0}
    else:
        asset = {"type": "image", "src": entry.asset.url}
    clip = {
        "asset": asset,
        "start": round(entry.start_time, 3),
        "length": round(entry.duration, 3),
        "fit": "cover",
        "transition": dict(SHOTSTACK_TRANSITIONS.get(entry.transition_type, SHOTSTACK_TRANSITIONS["fade"])),
    }
    if entry.transition_type == "zoom" and entry.asset.type == "image":
        clip["effect"] = "zoomIn"
    return clip


def build_edit(
    plan: RenderPlan, settings: VideoSettings, audio_url: str | None = None, caption_chars: int | None = None
) -> dict:
    """Build the Shotstack edit JSON for a render plan."""
    if caption_chars is None:
        caption_chars = 16 if plan.language == "cjk" else 42
    timeline: dict = {
        "background": settings.background_color,
        "tracks": [
            {"clips": [caption_clip(s, settings, caption_chars) for s in plan.caption_segments]},
            {"clips": [media_clip(e, settings) for e in plan.timeline]},
        ],
    }
    if audio_url:
        if audio_url.startswith(("http://", "https://")):
            timeline["soundtrack"] = {"src": audio_url, "effect": "fadeIn"}
        else:
            logger.warning("Soundtrack must be a public URL, rendering without audio: %s", audio_url)

    return {
        "timeline": timeline,
        "output": {
            "format": "mp4",
            "size": {"width": settings.width, "height": settings.height},
            "fps": settings.fps,
            "quality": "medium",
        },
    }


def _render_state(payload: dict) -> JobState:
    status = (payload.get("response") or {}).get("status")
    if status == "done":
        return JobState.DONE
    if status == "failed":
        return JobState.FAILED
    return JobState.POLLING


def render_video(
    api_key: str,
    edit: dict,
    *,
    env: str = "stage",
    policy: PollPolicy | None = None,
    http: httpx.Client | None = None,
    sleep=time.sleep,
) -> str:
    """Submit an edit, wait for the render and return the video URL."""
    if not api_key:
        raise PipelineError(VIDEO_GENERATION_FAILED, "SHOTSTACK_API_KEY is not set.")

    base = f"{SHOTSTACK_BASE_URL}/{env}"
    headers = {"x-api-key": api_key, "content-type": "application/json"}
    owned = http is None
    client = http or httpx.Client(timeout=60.0)
    try:
        r = client.post(f"{base}/render", json=edit, headers=headers)
        if r.status_code not in (200, 201):
            raise PipelineError(VIDEO_GENERATION_FAILED, f"Render submit failed: {r.status_code}", {"body": r.text[:500]})
        render_id = r.json()["response"]["id"]
        logger.info("Shotstack render submitted: %s", render_id)

        def fetch() -> dict:
            resp = client.get(f"{base}/render/{render_id}", headers=headers)
            if resp.status_code != 200:
                raise PipelineError(VIDEO_GENERATION_FAILED, f"Render status request failed: {resp.status_code}")
            return resp.json()

        outcome = poll_job(fetch, _render_state, policy, label="Shotstack render", sleep=sleep)
    except httpx.HTTPError as e:
        raise PipelineError(VIDEO_GENERATION_FAILED, f"Shotstack request failed: {e}") from e
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise PipelineError(VIDEO_GENERATION_FAILED, f"Unexpected Shotstack response: {e!r}") from e
    finally:
        if owned:
            client.close()

    if outcome.state is JobState.TIMED_OUT:
        raise PipelineError(TIMEOUT, f"Render did not finish after {outcome.attempts} polls")
    response = (outcome.payload or {}).get("response") or {}
    if outcome.state is not JobState.DONE or not response.get("url"):
        raise PipelineError(VIDEO_GENERATION_FAILED, f"Render failed: {response.get('error') or response.get('status')}")
    return response["url"]


def demo_result(job_id: str, duration: float, fmt: str) -> VideoGenerationResult:
    """Stand-in result used when rendering keys are not configured."""
    return VideoGenerationResult(
        job_id=f"demo-{job_id}",
        video_url=DEMO_VIDEO_URL,
        thumbnail_url=PLACEHOLDER_THUMBNAIL.format(label="Demo+Video"),
        duration=duration,
        format=fmt,
        demo=True,
    )
