"""
Audio sources: validation at the boundary and resolution into a job's work dir.

An audio source is exactly one of a local file, a remote URL, or a temp file
left by an earlier step. stand.fm episode pages are resolved to the audio file
they embed.
"""

import html as htmllib
import json
import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path

import httpx

from .context import RenderJobContext
from .errors import (
    AUDIO_TOO_LARGE,
    AUDIO_URL_NOT_FOUND,
    INVALID_FORMAT,
    NO_AUDIO_INPUT,
    TIMEOUT,
    PipelineError,
)
from .io_ffmpeg import convert_to_mp3, probe_duration

logger = logging.getLogger("narrator")

MAX_FILE_SIZE = 15 * 1024 * 1024
AUDIO_EXTENSIONS = (".mp3", ".m4a", ".wav", ".ogg", ".flac", ".aac", ".webm", ".mp4", ".mpeg", ".mpga")
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_AUDIO_FILE_RE = re.compile(r"\.(mp3|m4a|wav|ogg|flac)(\?.*)?$", re.IGNORECASE)
_HTML_PATTERNS = (
    ("og:audio", re.compile(r'<meta\s+property="og:audio"\s+content="([^"]+)"')),
    ("og:audio:secure_url", re.compile(r'<meta\s+property="og:audio:secure_url"\s+content="([^"]+)"')),
    ("<audio>", re.compile(r'<audio[^>]+src="([^"]+)"')),
    ("audioUrl", re.compile(r'"audioUrl"\s*:\s*"([^"]+)"')),
)
_NEXT_DATA_RE = re.compile(r'<script id="__NEXT_DATA__" type="application/json">([^<]+)</script>')


@dataclass(frozen=True)
class FileAudio:
    path: str


@dataclass(frozen=True)
class UrlAudio:
    url: str


@dataclass(frozen=True)
class TempFileAudio:
    path: str


AudioInput = FileAudio | UrlAudio | TempFileAudio


@dataclass
class ResolvedAudio:
    """An audio file inside the job's work dir, ready for transcription."""

    path: Path
    size_bytes: int
    duration: float | None
    source: str


def _check_extension(path: str) -> None:
    if Path(path).suffix.lower() not in AUDIO_EXTENSIONS:
        raise PipelineError(
            INVALID_FORMAT,
            f"Unsupported audio format: {Path(path).suffix or '(none)'}",
            {"supported": list(AUDIO_EXTENSIONS)},
        )


def parse_audio_input(payload: dict) -> AudioInput:
    """
    Turn a loose request payload into exactly one audio source.

    Accepted keys: ``file`` / ``audio`` (local file), ``url`` / ``audioUrl``
    (remote), ``tempFile`` / ``temp_file`` (file produced by an earlier step).
    """
    file_path = payload.get("file") or payload.get("audio")
    url = payload.get("url") or payload.get("audioUrl") or payload.get("audio_url")
    temp_path = payload.get("tempFile") or payload.get("temp_file")

    given = [v for v in (file_path, url, temp_path) if v]
    if not given:
        raise PipelineError(NO_AUDIO_INPUT, "An audio file or URL is required")
    if len(given) > 1:
        raise PipelineError(INVALID_FORMAT, "Give exactly one of an audio file, a URL or a temp file")

    if url:
        url = str(url).strip()
        if not url.startswith(("http://", "https://")):
            raise PipelineError(INVALID_FORMAT, f"Not an http(s) URL: {url}")
        return UrlAudio(url=url)
    if temp_path:
        _check_extension(str(temp_path))
        return TempFileAudio(path=str(temp_path))
    _check_extension(str(file_path))
    return FileAudio(path=str(file_path))


def is_standfm(url: str) -> bool:
    return "stand.fm" in url


def find_audio_url(obj) -> str | None:
    """Depth-first search of decoded JSON for something that looks like an audio URL.

    Keys mentioning audio or media are searched before the rest.
    """
    if isinstance(obj, str):
        if obj.startswith(("http://", "https://")) and (_AUDIO_FILE_RE.search(obj) or "audio" in obj.lower()):
            return obj
        return None
    if isinstance(obj, dict):
        preferred = [k for k in obj if "audio" in k.lower() or "media" in k.lower()]
        for key in preferred + [k for k in obj if k not in preferred]:
            found = find_audio_url(obj[key])
            if found:
                return found
    elif isinstance(obj, list):
        for item in obj:
            found = find_audio_url(item)
            if found:
                return found
    return None


def extract_audio_url_from_html(page: str) -> str | None:
    """Find the audio URL embedded in an episode page, or None."""
    for label, pattern in _HTML_PATTERNS:
        m = pattern.search(page)
        if m and m.group(1):
            logger.debug("Audio URL found via %s", label)
            return htmllib.unescape(m.group(1))

    m = _NEXT_DATA_RE.search(page)
    if m:
        try:
            data = json.loads(m.group(1))
        except json.JSONDecodeError:
            logger.debug("Could not parse __NEXT_DATA__")
        else:
            found = find_audio_url(data)
            if found:
                logger.debug("Audio URL found in __NEXT_DATA__")
                return found
    return None


def _extension_for(content_type: str, url: str) -> str:
    if "audio/wav" in content_type or "audio/x-wav" in content_type:
        return ".wav"
    if "audio/ogg" in content_type:
        return ".ogg"
    if "audio/mp4" in content_type or "audio/x-m4a" in content_type:
        return ".m4a"
    suffix = Path(url.split("?")[0]).suffix.lower()
    return suffix if suffix in AUDIO_EXTENSIONS else ".mp3"


def download_audio(
    url: str, dest_dir: Path, *, http: httpx.Client, max_bytes: int = MAX_FILE_SIZE
) -> Path:
    """Stream ``url`` into ``dest_dir``, stopping as soon as ``max_bytes`` is exceeded."""
    logger.info("Downloading audio: %s", url)
    with http.stream("GET", url, headers={"User-Agent": USER_AGENT}, follow_redirects=True) as r:
        if r.status_code != 200:
            raise PipelineError(AUDIO_URL_NOT_FOUND, f"Audio download failed: {r.status_code}", {"url": url})
        declared = r.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > max_bytes:
            raise PipelineError(AUDIO_TOO_LARGE, f"File is too large (max {max_bytes // (1024 * 1024)}MB)")

        out = dest_dir / f"audio_download{_extension_for(r.headers.get('content-type', ''), url)}"
        written = 0
        with open(out, "wb") as f:
            for chunk in r.iter_bytes():
                written += len(chunk)
                if written > max_bytes:
                    raise PipelineError(AUDIO_TOO_LARGE, f"File is too large (max {max_bytes // (1024 * 1024)}MB)")
                f.write(chunk)
    if written == 0:
        raise PipelineError(INVALID_FORMAT, "Downloaded audio is empty", {"url": url})
    return out


def resolve_standfm(url: str, *, http: httpx.Client) -> str:
    """Fetch a stand.fm episode page and return the audio URL it embeds."""
    logger.info("stand.fm page detected, extracting audio URL …")
    r = http.get(url, headers={"User-Agent": USER_AGENT}, follow_redirects=True)
    if r.status_code != 200:
        raise PipelineError(AUDIO_URL_NOT_FOUND, f"Could not load page: {r.status_code}", {"url": url})
    audio_url = extract_audio_url_from_html(r.text)
    if not audio_url:
        raise PipelineError(AUDIO_URL_NOT_FOUND, "Audio URL not found in page", {"url": url})
    logger.info("Extracted audio URL: %s", audio_url)
    return audio_url


def _local_copy(src: str, ctx: RenderJobContext, *, move: bool, max_bytes: int) -> Path:
    p = Path(src)
    if not p.is_file():
        raise PipelineError(NO_AUDIO_INPUT, f"Audio file not found: {src}")
    size = p.stat().st_size
    if size == 0:
        raise PipelineError(INVALID_FORMAT, f"Audio file is empty: {src}")
    if size > max_bytes:
        raise PipelineError(AUDIO_TOO_LARGE, f"File is too large (max {max_bytes // (1024 * 1024)}MB)")
    dest = ctx.path(f"audio_input{p.suffix.lower()}")
    if move:
        shutil.move(str(p), dest)
    else:
        shutil.copyfile(p, dest)
    return dest


def resolve_audio(
    ctx: RenderJobContext,
    audio: AudioInput,
    *,
    http: httpx.Client | None = None,
    max_bytes: int = MAX_FILE_SIZE,
    convert: bool = True,
    max_secs: float | None = None,
) -> ResolvedAudio:
    """
    Bring an audio source into ``ctx.work_dir``, probe its duration and
    re-encode it as mp3. If conversion fails the original file is used.
    """
    if isinstance(audio, UrlAudio):
        owned = http is None
        client = http or httpx.Client(timeout=30.0)
        try:
            target = resolve_standfm(audio.url, http=client) if is_standfm(audio.url) else audio.url
            path = download_audio(target, ctx.work_dir, http=client, max_bytes=max_bytes)
        except httpx.TimeoutException as e:
            raise PipelineError(TIMEOUT, f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise PipelineError(AUDIO_URL_NOT_FOUND, f"Audio download failed: {e}", {"url": audio.url}) from e
        finally:
            if owned:
                client.close()
        source = audio.url
    elif isinstance(audio, TempFileAudio):
        path = _local_copy(audio.path, ctx, move=True, max_bytes=max_bytes)
        source = audio.path
    elif isinstance(audio, FileAudio):
        path = _local_copy(audio.path, ctx, move=False, max_bytes=max_bytes)
        source = audio.path
    else:
        raise PipelineError(INVALID_FORMAT, f"Unknown audio input: {audio!r}")

    size = path.stat().st_size
    duration = probe_duration(str(path))
    if duration:
        logger.info("Audio duration: %.1fs", duration)

    if convert:
        converted = ctx.path("audio_converted.mp3")
        try:
            convert_to_mp3(str(path), str(converted), max_secs=max_secs)
        except RuntimeError as e:
            logger.warning("mp3 conversion failed, using the original file: %s", e)
        else:
            path = converted
            if max_secs and duration and duration > max_secs:
                duration = max_secs

    return ResolvedAudio(path=path, size_bytes=size, duration=duration, source=source)
