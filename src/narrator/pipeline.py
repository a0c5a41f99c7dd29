"""
Job orchestration: transcript + duration + assets -> render plan -> video.
"""

import json
import logging
import time
from dataclasses import replace
from pathlib import Path

import httpx
from openai import OpenAI

from .allocator import allocate
from .audio_input import ResolvedAudio
from .config import ServiceKeys
from .context import RenderJobContext
from .duration import estimate_duration
from .errors import TRANSCRIPTION_FAILED, PipelineError
from .images import generate_image
from .io_ffmpeg import ensure_dir
from .keywords import extract_keywords
from .llm import analyze_scenes, generate_search_keywords, generate_timestamped_segments, generate_video_metadata
from .merger import merge_segments
from .models import (
    MediaAsset,
    RenderPlan,
    RenderRequest,
    Transcript,
    TranscriptSegment,
    VideoGenerationResult,
    VideoSettings,
)
from .polling import PollPolicy
from .render import PLACEHOLDER_THUMBNAIL, build_edit, demo_result, render_video
from .splitter import is_cjk, split_text
from .srt_utils import write_srt
from .stock import assets_from_results, custom_assets, search_assets
from .stt import transcribe_assemblyai, transcribe_whisper_api
from .timeline import build_timeline

logger = logging.getLogger("narrator")

KEYWORD_SOURCES = ("frequency", "llm", "scenes")


def plan_render(ctx: RenderJobContext, request: RenderRequest, *, clip_overlaps: bool = False) -> RenderPlan:
    """
    Turn one transcript into caption segments and a media timeline.

    Deterministic for a given request and config: split, allocate time,
    merge short captions, then lay the candidate assets over ``[0, total)``.
    """
    cfg = ctx.config
    total = estimate_duration(request.authoritative_duration, request.file_size_bytes, cfg)

    text = request.raw_transcript_text or ""
    if not text.strip() and request.external_timestamps:
        text = " ".join(s.text for s in request.external_timestamps)
    cjk = is_cjk(text, cfg)

    units = split_text(text, cfg)
    allocated = allocate(units, total, request.external_timestamps, cfg)
    captions = merge_segments(
        allocated,
        min_duration=cfg.min_duration,
        min_gap=cfg.min_gap,
        max_duration=cfg.max_caption_secs,
        separator="" if cjk else " ",
    )
    timeline = build_timeline(request.candidate_assets, total, cfg, clip_overlaps=clip_overlaps)

    logger.info(
        "Plan %s: %.1fs, %d units -> %d captions, %d timeline entries",
        ctx.job_id,
        total,
        len(units) if not request.external_timestamps else len(request.external_timestamps),
        len(captions),
        len(timeline),
    )
    return RenderPlan(
        caption_segments=captions,
        timeline=timeline,
        total_duration=total,
        language="cjk" if cjk else "latin",
    )


def plan_to_dict(plan: RenderPlan) -> dict:
    return {
        "total_duration": plan.total_duration,
        "language": plan.language,
        "captions": [
            {"id": i, "text": s.text, "start": s.start_time, "end": s.end_time}
            for i, s in enumerate(plan.caption_segments)
        ],
        "timeline": [
            {
                "id": i,
                "type": e.asset.type,
                "url": e.asset.url,
                "start": e.start_time,
                "end": e.end_time,
                "transition": e.transition_type,
                "filler": e.filler,
            }
            for i, e in enumerate(plan.timeline)
        ],
    }


def write_manifest(plan: RenderPlan, path: str) -> None:
    """Write the render plan to JSON."""
    ensure_dir(str(Path(path).parent))
    Path(path).write_text(json.dumps(plan_to_dict(plan), ensure_ascii=False, indent=2), encoding="utf-8")


def transcribe(
    audio: ResolvedAudio,
    keys: ServiceKeys,
    *,
    backend: str = "openai",
    language: str | None = None,
    client: OpenAI | None = None,
    http: httpx.Client | None = None,
    policy: PollPolicy | None = None,
    sleep=time.sleep,
) -> Transcript:
    """Transcribe a resolved audio file with the chosen backend."""
    if backend == "assemblyai":
        result = transcribe_assemblyai(
            keys.assemblyai, str(audio.path), language or "ja", policy=policy, http=http, sleep=sleep
        )
    elif backend == "openai":
        result = transcribe_whisper_api(client, str(audio.path), language=language)
    else:
        raise PipelineError(TRANSCRIPTION_FAILED, f"Unknown STT backend: {backend}")

    if result.duration is None and audio.duration:
        result.duration = audio.duration
    logger.info("Transcribed %d chars, %d timed segments", len(result.text), len(result.segments))
    return result


def select_keywords(
    text: str,
    *,
    source: str = "frequency",
    client: OpenAI | None = None,
    top_n: int = 8,
) -> list[str]:
    """Search keywords for a transcript. LLM sources fall back to word frequency."""
    if source in ("llm", "scenes") and client is not None:
        try:
            if source == "llm":
                keywords = generate_search_keywords(client, text, count=top_n)
            else:
                keywords = []
                for scene in analyze_scenes(client, text):
                    keywords += [k for k in scene.keywords if k not in keywords]
                keywords = keywords[:top_n]
            if keywords:
                return keywords
            logger.warning("Model returned no keywords, using word frequency")
        except PipelineError as e:
            logger.warning("Keyword generation failed, using word frequency: %s", e)
    elif source in ("llm", "scenes"):
        logger.warning("No OpenAI client, using word frequency keywords")
    return extract_keywords(text, top_n=top_n)


def gather_assets(
    keywords: list[str],
    total_duration: float,
    keys: ServiceKeys,
    *,
    orientation: str = "landscape",
    custom_urls: list[str] | None = None,
    slot_secs: float = 5.0,
    http: httpx.Client | None = None,
) -> list[MediaAsset]:
    """Candidate background assets: custom URLs when given, else stock search hits."""
    if custom_urls:
        return custom_assets(custom_urls, total_duration, slot_secs)
    results = search_assets(
        keywords,
        pexels_key=keys.pexels,
        unsplash_key=keys.unsplash,
        orientation=orientation,
        http=http,
    )
    return assets_from_results(results, total_duration, slot_secs)


def _thumbnail(client: OpenAI | None, text: str, settings: VideoSettings) -> str:
    placeholder = PLACEHOLDER_THUMBNAIL.format(label="Generated+Video")
    if client is None:
        return placeholder
    try:
        meta = generate_video_metadata(client, text)
        if not meta["thumbnail_prompt"]:
            return placeholder
        size = "1024x1792" if settings.orientation == "portrait" else "1792x1024"
        return generate_image(client, meta["thumbnail_prompt"], size=size)
    except PipelineError as e:
        logger.warning("Thumbnail generation failed, using placeholder: %s", e)
        return placeholder


def generate_video(
    ctx: RenderJobContext,
    transcript: Transcript,
    settings: VideoSettings,
    keys: ServiceKeys,
    *,
    out_dir: str,
    audio: ResolvedAudio | None = None,
    audio_url: str | None = None,
    client: OpenAI | None = None,
    keywords_source: str = "frequency",
    custom_urls: list[str] | None = None,
    llm_segments: bool = False,
    clip_overlaps: bool = False,
    render: bool = True,
    http: httpx.Client | None = None,
    policy: PollPolicy | None = None,
    sleep=time.sleep,
) -> tuple[RenderPlan, VideoGenerationResult | None]:
    """
    Plan and render one narrated video.

    Captions (SRT) and the render manifest are written to ``out_dir``. With
    ``render=False`` the job stops there and no result is returned; without a
    Shotstack key a demo result is returned after planning.
    """
    cfg = ctx.config
    total = estimate_duration(
        transcript.duration or (audio.duration if audio else None) or settings.duration,
        audio.size_bytes if audio else None,
        cfg,
    )

    timestamps = transcript.segments or None
    if not timestamps and llm_segments and client is not None:
        try:
            timestamps = generate_timestamped_segments(client, transcript.text, total) or None
        except PipelineError as e:
            logger.warning("Timed segment generation failed, allocating by text length: %s", e)

    keywords = select_keywords(transcript.text, source=keywords_source, client=client, top_n=cfg.keyword_top_n)
    logger.info("Keywords: %s", ", ".join(keywords) or "(none)")
    assets = gather_assets(
        keywords,
        total,
        keys,
        orientation=settings.orientation,
        custom_urls=custom_urls,
        slot_secs=cfg.asset_slot_secs,
        http=http,
    )

    request = RenderRequest(
        raw_transcript_text=transcript.text,
        external_timestamps=timestamps,
        authoritative_duration=total,
        candidate_assets=assets,
    )
    plan = plan_render(ctx, request, clip_overlaps=clip_overlaps)

    ensure_dir(out_dir)
    caption_path = str(Path(out_dir) / f"{ctx.job_id}.srt")
    manifest_path = str(Path(out_dir) / f"{ctx.job_id}.json")
    write_srt(plan.caption_segments, caption_path)
    write_manifest(plan, manifest_path)
    logger.info("Saved captions -> %s, manifest -> %s", caption_path, manifest_path)

    if not render:
        return plan, None

    if not keys.shotstack:
        logger.warning("SHOTSTACK_API_KEY not set, returning a demo result")
        result = demo_result(ctx.job_id, plan.total_duration, settings.format)
        return plan, replace(result, caption_path=caption_path, manifest_path=manifest_path)

    if not settings.caption_style.highlight_keywords:
        settings.caption_style.highlight_keywords = keywords[:5]
    edit = build_edit(plan, settings, audio_url=audio_url)
    video_url = render_video(keys.shotstack, edit, env=keys.shotstack_env, policy=policy, http=http, sleep=sleep)
    logger.info("Video rendered: %s", video_url)

    result = VideoGenerationResult(
        job_id=ctx.job_id,
        video_url=video_url,
        thumbnail_url=_thumbnail(client, transcript.text, settings),
        duration=plan.total_duration,
        format=settings.format,
        caption_path=caption_path,
        manifest_path=manifest_path,
    )
    return plan, result


def transcript_to_dict(t: Transcript) -> dict:
    return {
        "text": t.text,
        "duration": t.duration,
        "segments": [{"text": s.text, "start": s.start_time, "end": s.end_time} for s in t.segments],
    }


def transcript_from_dict(data: dict) -> Transcript:
    """Read a transcript saved by ``transcript_to_dict`` (or a bare segment list)."""
    if isinstance(data, list):
        data = {"segments": data}
    segments = [
        TranscriptSegment(
            text=str(s.get("text", "")).strip(),
            start_time=float(s.get("start", s.get("startTime", 0.0))),
            end_time=float(s.get("end", s.get("endTime", 0.0))),
        )
        for s in data.get("segments") or []
        if str(s.get("text", "")).strip()
    ]
    text = data.get("text") or data.get("transcript") or " ".join(s.text for s in segments)
    duration = data.get("duration")
    return Transcript(text=str(text), segments=segments, duration=float(duration) if duration else None)
