"""
Audio probing and conversion using ffmpeg/ffprobe.
"""

import logging
import subprocess
from pathlib import Path

from pydub import AudioSegment

logger = logging.getLogger("narrator")


def run(cmd: list[str], *, check: bool = True) -> str:
    """Run a shell command and return stdout."""
    logger.debug("Running: %s", " ".join(map(str, cmd)))
    try:
        proc = subprocess.run(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True, check=False
        )
    except FileNotFoundError as e:
        if check:
            raise RuntimeError(f"Command not found: {cmd[0]}") from e
        return ""
    if proc.returncode != 0 and check:
        logger.error("Command failed with code %d: %s", proc.returncode, proc.stdout)
        msg = f"Command failed with code {proc.returncode}"
        raise RuntimeError(msg)
    return proc.stdout


def ensure_dir(path: str) -> None:
    """Ensure directory exists."""
    if path:
        Path(path).mkdir(parents=True, exist_ok=True)


def probe_duration(path: str) -> float | None:
    """Return the media duration in seconds, or None when it cannot be read.

    ffprobe is asked first; pydub decoding is the fallback.
    """
    out = run(
        [
            "ffprobe",
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            path,
        ],
        check=False,
    )
    try:
        seconds = float(out.strip())
        if seconds > 0:
            return seconds
    except ValueError:
        pass

    try:
        return len(AudioSegment.from_file(path)) / 1000.0
    except Exception as e:
        logger.warning("Could not read audio duration for %s: %s", path, e)
        return None


def convert_to_mp3(in_path: str, out_path: str, bitrate: str = "128k", max_secs: float | None = None) -> None:
    """Re-encode audio as mp3 (a format every transcription backend accepts)."""
    ensure_dir(str(Path(out_path).parent))
    cmd = ["ffmpeg", "-y", "-i", in_path]
    if max_secs:
        cmd += ["-t", str(max_secs)]
    cmd += ["-vn", "-acodec", "libmp3lame", "-ab", bitrate, out_path]
    run(cmd)
