"""
Speech-to-text transcription modules.
"""

import contextlib
import logging
import time
from pathlib import Path

import httpx
from openai import OpenAI

from .errors import TIMEOUT, TRANSCRIPTION_FAILED, PipelineError
from .models import Transcript, TranscriptSegment
from .polling import JobState, PollPolicy, poll_job

logger = logging.getLogger("narrator")

ASSEMBLYAI_BASE_URL = "https://api.assemblyai.com/v2"


def _field(obj, name: str, default=None):
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def transcribe_whisper_api(
    client: OpenAI, audio_path: str, model: str = "whisper-1", language: str | None = None
) -> Transcript:
    """Transcribe audio using OpenAI Whisper API, keeping segment timestamps."""
    if client is None:
        raise PipelineError(TRANSCRIPTION_FAILED, "OpenAI client is not initialized (missing OPENAI_API_KEY)")

    try:
        with open(audio_path, "rb") as f:
            logger.info(f"Transcribing with {model} (language: {language or 'auto'}) …")
            kwargs = {
                "model": model,
                "file": f,
                "response_format": "verbose_json",
            }
            if language:
                kwargs["language"] = language
            resp = client.audio.transcriptions.create(**kwargs)
    except Exception as e:
        raise PipelineError(TRANSCRIPTION_FAILED, f"Whisper transcription failed: {e}") from e

    segments: list[TranscriptSegment] = []
    for seg in _field(resp, "segments") or []:
        text = str(_field(seg, "text", "")).strip()
        if not text:
            continue
        start = float(_field(seg, "start", 0.0))
        end = float(_field(seg, "end", 0.0))
        segments.append(TranscriptSegment(text=text, start_time=start, end_time=end))

    text = str(_field(resp, "text", "") or "").strip()
    duration = _field(resp, "duration")
    return Transcript(
        text=text or " ".join(s.text for s in segments),
        segments=segments,
        duration=float(duration) if duration else None,
    )


def _assemblyai_state(payload: dict) -> JobState:
    status = payload.get("status")
    if status == "completed":
        return JobState.DONE
    if status == "error":
        return JobState.FAILED
    return JobState.POLLING


def transcribe_assemblyai(
    api_key: str,
    audio_path: str,
    language_code: str = "ja",
    *,
    policy: PollPolicy | None = None,
    http: httpx.Client | None = None,
    sleep=time.sleep,
) -> Transcript:
    """
    Transcribe audio with AssemblyAI: upload, submit, then poll until done.

    Word timestamps come back in milliseconds and are converted to seconds.
    """
    if not api_key:
        raise PipelineError(TRANSCRIPTION_FAILED, "ASSEMBLY_AI_API_KEY is not set.")

    headers = {"authorization": api_key}
    owned = http is None
    client = http or httpx.Client(timeout=120.0)
    try:
        with contextlib.ExitStack() as stack:
            if owned:
                stack.enter_context(client)

            logger.info("Uploading audio to AssemblyAI …")
            data = Path(audio_path).read_bytes()
            r = client.post(
                f"{ASSEMBLYAI_BASE_URL}/upload",
                content=data,
                headers={**headers, "content-type": "application/octet-stream"},
            )
            if r.status_code != 200:
                raise PipelineError(TRANSCRIPTION_FAILED, f"Audio upload failed: {r.status_code}")
            upload_url = r.json()["upload_url"]

            r = client.post(
                f"{ASSEMBLYAI_BASE_URL}/transcript",
                json={
                    "audio_url": upload_url,
                    "language_code": language_code,
                    "punctuate": True,
                    "format_text": True,
                },
                headers=headers,
            )
            if r.status_code != 200:
                raise PipelineError(TRANSCRIPTION_FAILED, f"Transcription submit failed: {r.status_code}")
            transcript_id = r.json()["id"]
            logger.info("AssemblyAI transcript submitted: %s", transcript_id)

            def fetch() -> dict:
                resp = client.get(f"{ASSEMBLYAI_BASE_URL}/transcript/{transcript_id}", headers=headers)
                if resp.status_code != 200:
                    raise PipelineError(TRANSCRIPTION_FAILED, f"Status request failed: {resp.status_code}")
                return resp.json()

            outcome = poll_job(fetch, _assemblyai_state, policy, label="AssemblyAI transcript", sleep=sleep)
    except httpx.HTTPError as e:
        raise PipelineError(TRANSCRIPTION_FAILED, f"AssemblyAI request failed: {e}") from e
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise PipelineError(TRANSCRIPTION_FAILED, f"Unexpected AssemblyAI response: {e!r}") from e

    if outcome.state is JobState.TIMED_OUT:
        raise PipelineError(TIMEOUT, f"Transcription did not finish after {outcome.attempts} polls")
    if outcome.state is not JobState.DONE:
        err = (outcome.payload or {}).get("error", "unknown error")
        raise PipelineError(TRANSCRIPTION_FAILED, f"Transcription failed: {err}")

    result = outcome.payload
    segments = [
        TranscriptSegment(
            text=str(w.get("text", "")),
            start_time=float(w.get("start", 0)) / 1000.0,
            end_time=float(w.get("end", 0)) / 1000.0,
        )
        for w in result.get("words") or []
        if str(w.get("text", "")).strip()
    ]
    duration = result.get("audio_duration")
    return Transcript(
        text=str(result.get("text") or ""),
        segments=segments,
        duration=float(duration) if duration else None,
    )
