"""
SRT writing, parsing, and caption line wrapping.
"""

import logging
import re
from pathlib import Path

from .models import TranscriptSegment

logger = logging.getLogger("narrator")

_TS_LINE_RE = re.compile(r"(\d\d:\d\d:\d\d[,.]\d\d\d)\s+-->\s+(\d\d:\d\d:\d\d[,.]\d\d\d)")


def format_timestamp(t: float) -> str:
    """Format seconds as HH:MM:SS,mmm (rounded to the millisecond)."""
    total_ms = max(0, int(round(t * 1000)))
    h, rem = divmod(total_ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    return f"{h:02}:{m:02}:{s:02},{ms:03}"


def parse_timestamp(ts: str) -> float:
    h, m, rest = ts.replace(".", ",").split(":")
    s, ms = rest.split(",")
    return int(h) * 3600 + int(m) * 60 + int(s) + int(ms) / 1000.0


def format_srt(segments: list[TranscriptSegment]) -> str:
    """Render segments as SRT cues: index, time range, text, blank line."""
    return "".join(
        f"{i}\n{format_timestamp(s.start_time)} --> {format_timestamp(s.end_time)}\n{s.text}\n\n"
        for i, s in enumerate(segments, 1)
    )


def write_srt(segments: list[TranscriptSegment], path: str) -> None:
    """Write segments to SRT file."""
    Path(path).write_text(format_srt(segments), encoding="utf-8")


def parse_srt_text(raw: str) -> list[TranscriptSegment]:
    blocks = re.split(r"\n\s*\n", raw.replace("\r\n", "\n").strip(), flags=re.M)
    out: list[TranscriptSegment] = []
    for b in blocks:
        lines = [ln for ln in b.splitlines() if ln.strip()]
        if not lines:
            continue
        if re.match(r"^\d+$", lines[0].strip()):
            lines = lines[1:]
        if not lines:
            continue
        m = _TS_LINE_RE.match(lines[0].strip())
        if not m:
            continue
        start = parse_timestamp(m.group(1))
        end = parse_timestamp(m.group(2))
        text = " ".join(ln.strip() for ln in lines[1:])
        out.append(TranscriptSegment(text=text, start_time=start, end_time=end))
    return out


def parse_srt(path: str) -> list[TranscriptSegment]:
    """Parse SRT file into segments."""
    with open(path, encoding="utf-8") as f:
        return parse_srt_text(f.read())


def wrap_lines(text: str, max_chars: int = 42, max_lines: int = 3) -> str:
    """Wrap text to specified character and line limits.

    Text without spaces (CJK) is wrapped by character count.
    """
    if not text.strip():
        return ""
    if len(text.split()) == 1 and len(text) > max_chars:
        word = text.strip()
        lines = [word[i : i + max_chars] for i in range(0, len(word), max_chars)]
        return "\n".join(lines[:max_lines])

    words = text.split()
    lines: list[str] = []
    cur: list[str] = []
    for w in words:
        if sum(len(x) for x in cur) + len(cur) + len(w) > max_chars and cur:
            lines.append(" ".join(cur))
            cur = []
            if len(lines) >= max_lines:
                break
        cur.append(w)
    if cur and len(lines) < max_lines:
        lines.append(" ".join(cur))
    return "\n".join(lines)
