"""
Command-line interface for the narration pipeline.
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict, replace
from pathlib import Path

from dotenv import load_dotenv
from openai import OpenAI

from .article import generate_article
from .audio_input import ResolvedAudio, is_standfm, parse_audio_input, resolve_audio
from .config import SegmentationConfig, ServiceKeys
from .context import RenderJobContext
from .errors import GENERATION_FAILED, NO_AUDIO_INPUT, TRANSCRIPTION_FAILED, PipelineError
from .io_ffmpeg import ensure_dir
from .models import GenerationSettings, Transcript, VideoSettings
from .pipeline import KEYWORD_SOURCES, generate_video, transcribe, transcript_from_dict, transcript_to_dict
from .srt_utils import parse_srt, write_srt

logger = logging.getLogger("narrator")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    ap = argparse.ArgumentParser(description="Spoken audio to article or captioned short video")

    ap.add_argument(
        "--stage",
        choices=["transcribe", "article", "plan", "video"],
        default="video",
        help="transcribe: STT only; article: write an article; plan: captions+timeline; video: plan+render",
    )

    # Input (exactly one)
    src = ap.add_mutually_exclusive_group()
    src.add_argument("--audio-file", default=None, help="Local audio file (max 15MB)")
    src.add_argument("--audio-url", default=None, help="Remote audio URL or stand.fm episode page")
    src.add_argument("--transcript-json", default=None, help="Transcript saved by the transcribe stage (skip STT)")
    src.add_argument("--segments-srt", default=None, help="Timed segments from SRT (skip STT)")

    # IO
    ap.add_argument("--workdir", default=None, help="Job work dir (default: a temp dir removed afterwards)")
    ap.add_argument("--outdir", default="output")

    # STT
    ap.add_argument("--stt", choices=["openai", "assemblyai"], default="openai", help="Speech-to-text backend")
    ap.add_argument("--language", default=None, help="Spoken language code (e.g. 'ja', 'en')")

    # Video
    ap.add_argument("--format", choices=["youtube", "tiktok"], default="youtube")
    ap.add_argument("--fps", type=int, default=30)
    ap.add_argument("--duration", type=float, default=None, help="Audio duration in seconds, if known")
    ap.add_argument("--keywords-source", choices=list(KEYWORD_SOURCES), default="frequency")
    ap.add_argument(
        "--custom-assets",
        default=None,
        help="Comma-separated image/video URLs to use instead of stock search",
    )
    ap.add_argument("--soundtrack-url", default=None, help="Public URL of the narration for the renderer")
    ap.add_argument(
        "--llm-segments",
        action="store_true",
        help="Ask the model for timed segments when the transcript has none",
    )
    ap.add_argument(
        "--clip-overlaps",
        action="store_true",
        help="Clip overlapping assets instead of delaying them",
    )

    # Segmentation tuning
    ap.add_argument("--min-duration", type=float, default=None, help="Minimum caption duration (sec)")
    ap.add_argument("--min-gap", type=float, default=None, help="Merge captions closer than this (sec)")
    ap.add_argument("--max-caption-secs", type=float, default=None, help="Cap for gap-based merging (sec)")
    ap.add_argument("--cjk-chunk-chars", type=int, default=None)
    ap.add_argument("--latin-chunk-words", type=int, default=None)
    ap.add_argument("--weighting", choices=["length", "equal"], default=None)

    # Article
    ap.add_argument("--mode", choices=["natural", "article"], default="article")
    ap.add_argument("--tone", default="standard")
    ap.add_argument("--purpose", default="education")
    ap.add_argument("--target-audience", default="general readers")
    ap.add_argument("--article-keywords", default=None, help="Keywords the article should include")
    ap.add_argument("--cover-image", action="store_true", help="Generate a cover image for the article")

    ap.add_argument("--verbose", "-v", action="store_true")
    return ap.parse_args(argv)


def build_config(args: argparse.Namespace) -> SegmentationConfig:
    overrides = {
        "min_duration": args.min_duration,
        "min_gap": args.min_gap,
        "max_caption_secs": args.max_caption_secs,
        "cjk_chunk_chars": args.cjk_chunk_chars,
        "latin_chunk_words": args.latin_chunk_words,
        "weighting": args.weighting,
    }
    return replace(SegmentationConfig(), **{k: v for k, v in overrides.items() if v is not None})


def _openai_client(keys: ServiceKeys) -> OpenAI | None:
    if not keys.openai:
        return None
    return OpenAI(api_key=keys.openai)


def load_transcript(
    args: argparse.Namespace, ctx: RenderJobContext, keys: ServiceKeys, client: OpenAI | None
) -> tuple[Transcript, ResolvedAudio | None]:
    """Transcript from a saved file, or by transcribing the given audio."""
    if args.transcript_json:
        data = json.loads(Path(args.transcript_json).read_text(encoding="utf-8"))
        return transcript_from_dict(data), None

    if args.segments_srt:
        segments = parse_srt(args.segments_srt)
        text = " ".join(s.text for s in segments)
        duration = segments[-1].end_time if segments else None
        return Transcript(text=text, segments=segments, duration=duration), None

    payload = {"file": args.audio_file, "url": args.audio_url}
    audio = resolve_audio(ctx, parse_audio_input(payload))
    if args.stt == "openai" and client is None:
        raise PipelineError(TRANSCRIPTION_FAILED, "OPENAI_API_KEY is not set. Put it in .env or environment.")
    return transcribe(audio, keys, backend=args.stt, language=args.language, client=client), audio


def run_job(args: argparse.Namespace, keys: ServiceKeys) -> dict:
    """Run one stage and return a JSON-friendly summary."""
    if not any((args.audio_file, args.audio_url, args.transcript_json, args.segments_srt)):
        raise PipelineError(NO_AUDIO_INPUT, "An audio file, audio URL, transcript or SRT is required")

    client = _openai_client(keys)
    ensure_dir(args.outdir)
    out = Path(args.outdir)

    with RenderJobContext.create(args.workdir, build_config(args)) as ctx:
        transcript, audio = load_transcript(args, ctx, keys, client)
        if args.duration and not transcript.duration:
            transcript.duration = args.duration

        if args.stage == "transcribe":
            json_path = out / f"{ctx.job_id}_transcript.json"
            json_path.write_text(
                json.dumps(transcript_to_dict(transcript), ensure_ascii=False, indent=2), encoding="utf-8"
            )
            srt_path = None
            if transcript.segments:
                srt_path = str(out / f"{ctx.job_id}_transcript.srt")
                write_srt(transcript.segments, srt_path)
            logger.info("Saved transcript -> %s", json_path)
            return {"transcript_path": str(json_path), "srt_path": srt_path, "duration": transcript.duration}

        if args.stage == "article":
            if client is None:
                raise PipelineError(GENERATION_FAILED, "OPENAI_API_KEY is not set. Put it in .env or environment.")
            settings = GenerationSettings(
                processing_mode=args.mode,
                tone=args.tone,
                purpose=args.purpose,
                keywords=args.article_keywords,
                target_audience=args.target_audience,
            )
            content = generate_article(client, transcript.text, settings, cover_image=args.cover_image)
            md_path = out / f"{ctx.job_id}_article.md"
            md_path.write_text(content.markdown, encoding="utf-8")
            json_path = out / f"{ctx.job_id}_article.json"
            json_path.write_text(json.dumps(asdict(content), ensure_ascii=False, indent=2), encoding="utf-8")
            logger.info("Saved article -> %s", md_path)
            return {"markdown_path": str(md_path), "article_path": str(json_path), "title": content.seo_title}

        settings = VideoSettings.for_format(args.format, fps=args.fps, duration=args.duration)
        soundtrack = args.soundtrack_url
        if not soundtrack and args.audio_url and not is_standfm(args.audio_url):
            soundtrack = args.audio_url
        custom = [u.strip() for u in args.custom_assets.split(",")] if args.custom_assets else None

        plan, result = generate_video(
            ctx,
            transcript,
            settings,
            keys,
            out_dir=args.outdir,
            audio=audio,
            audio_url=soundtrack,
            client=client,
            keywords_source=args.keywords_source,
            custom_urls=custom,
            llm_segments=args.llm_segments,
            clip_overlaps=args.clip_overlaps,
            render=args.stage == "video",
        )
        summary = {
            "job_id": ctx.job_id,
            "total_duration": plan.total_duration,
            "captions": len(plan.caption_segments),
            "timeline_entries": len(plan.timeline),
        }
        if result is not None:
            summary["result"] = asdict(result)
        return summary


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    load_dotenv()
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        summary = run_job(args, ServiceKeys.from_env())
    except PipelineError as e:
        logger.error("%s: %s", e.code, e.message)
        print(json.dumps(e.to_dict(), ensure_ascii=False))
        sys.exit(1)

    print(json.dumps(summary, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
