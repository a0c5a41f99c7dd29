"""
GPT helpers: scene analysis, search keywords, timed segments, video metadata.
"""

import json
import logging

from openai import OpenAI

from .errors import GENERATION_FAILED, PipelineError
from .models import Scene, TranscriptSegment

logger = logging.getLogger("narrator")

DEFAULT_MODEL = "gpt-4o-mini"


def _loads(content: str, opener: str, closer: str):
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        start = content.find(opener)
        end = content.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(content[start : end + 1])
            except json.JSONDecodeError:
                pass
    raise PipelineError(GENERATION_FAILED, "Model did not return valid JSON")


def parse_json_reply(content: str | None, opener: str = "{", closer: str = "}") -> dict:
    """Parse a model reply as a JSON object, salvaging the outermost object if it is wrapped in prose."""
    if not content:
        raise PipelineError(GENERATION_FAILED, "Empty response from the model")
    data = _loads(content, opener, closer)
    if not isinstance(data, dict):
        raise PipelineError(GENERATION_FAILED, "Model reply is not a JSON object", {"type": type(data).__name__})
    return data


def _chat(client: OpenAI, system: str, user: str, *, model: str, temperature: float, max_tokens: int) -> str:
    if client is None:
        raise PipelineError(GENERATION_FAILED, "OpenAI client is not initialized (missing OPENAI_API_KEY)")
    try:
        chat = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except Exception as e:
        raise PipelineError(GENERATION_FAILED, f"Chat completion failed: {e}") from e
    return chat.choices[0].message.content or ""


def analyze_scenes(client: OpenAI, transcript: str, model: str = DEFAULT_MODEL) -> list[Scene]:
    """Split a transcript into visual scenes with search keywords."""
    logger.info("Analyzing transcript for scenes …")
    system = (
        "You are a video production expert. You analyze spoken content and propose "
        "visually engaging scenes with background images or footage."
    )
    user = (
        "Split the transcript below into scenes suitable for a narrated video and suggest "
        "background material for each.\n\n"
        f"Transcript:\n{transcript}\n\n"
        "Return ONLY JSON of the form:\n"
        '{"scenes": [{"description": "...", "keywords": ["..."], "startTime": 0, '
        '"endTime": 30, "suggestedAssets": ["..."]}]}'
    )
    data = parse_json_reply(_chat(client, system, user, model=model, temperature=0.3, max_tokens=2000))
    scenes: list[Scene] = []
    for s in data.get("scenes", []) or []:
        try:
            scenes.append(
                Scene(
                    description=str(s.get("description", "")),
                    keywords=[str(k) for k in s.get("keywords", []) or []],
                    start_time=float(s.get("startTime", 0)),
                    end_time=float(s.get("endTime", 0)),
                    suggested_assets=[str(a) for a in s.get("suggestedAssets", []) or []],
                )
            )
        except (TypeError, ValueError, AttributeError):
            logger.warning("Skipping malformed scene: %r", s)
    return scenes


def generate_search_keywords(
    client: OpenAI, description: str, count: int = 5, model: str = DEFAULT_MODEL
) -> list[str]:
    """English stock-search keywords for a scene description or transcript."""
    system = "You are a stock media search expert. You produce the best search keywords for a scene."
    user = (
        f"Generate {count} effective English keywords for searching stock images and videos "
        "for the scene below. Keep them concrete and easy to search.\n\n"
        f"Scene: {description}\n\n"
        'Return ONLY JSON: {"keywords": ["keyword1", "keyword2"]}'
    )
    data = parse_json_reply(_chat(client, system, user, model=model, temperature=0.2, max_tokens=500))
    keywords = [str(k).strip() for k in data.get("keywords", []) or [] if str(k).strip()]
    return keywords[:count]


def generate_timestamped_segments(
    client: OpenAI, transcript: str, audio_duration: float, model: str = DEFAULT_MODEL
) -> list[TranscriptSegment]:
    """Ask the model to cut a plain transcript into 5-15 s timed segments."""
    system = "You are an audio editor. You split transcripts into naturally timed segments."
    user = (
        f"Split the transcript below into timestamped segments for {audio_duration:.0f} seconds "
        "of audio. Each segment should be 5-15 seconds long and break at natural pauses.\n\n"
        f"Transcript:\n{transcript}\n\n"
        'Return ONLY JSON: {"segments": [{"text": "...", "startTime": 0, "endTime": 10}]}'
    )
    data = parse_json_reply(_chat(client, system, user, model=model, temperature=0.1, max_tokens=2000))
    out: list[TranscriptSegment] = []
    for s in data.get("segments", []) or []:
        try:
            start = float(s.get("startTime", 0))
            end = float(s.get("endTime", 0))
        except (TypeError, ValueError, AttributeError):
            continue
        text = str(s.get("text", "")).strip()
        if text:
            out.append(TranscriptSegment(text=text, start_time=start, end_time=end))
    return out


def generate_video_metadata(client: OpenAI, transcript: str, model: str = DEFAULT_MODEL) -> dict:
    """Title, description and a thumbnail image prompt for a video."""
    system = "You are a video marketing expert who writes titles and descriptions that draw viewers in."
    user = (
        "From the transcript below, write an engaging video title (max 50 characters), a "
        "description (max 200 characters) and an English prompt for generating a thumbnail image.\n\n"
        f"Transcript:\n{transcript}\n\n"
        'Return ONLY JSON: {"title": "...", "description": "...", "thumbnailPrompt": "..."}'
    )
    data = parse_json_reply(_chat(client, system, user, model=model, temperature=0.7, max_tokens=1000))
    return {
        "title": str(data.get("title", "")),
        "description": str(data.get("description", "")),
        "thumbnail_prompt": str(data.get("thumbnailPrompt", "")),
    }
