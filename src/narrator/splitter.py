"""
Transcript splitting into caption units, CJK-aware.
"""

import logging
import re

from .config import SegmentationConfig

logger = logging.getLogger("narrator")

# Hiragana, Katakana (incl. half-width), CJK unified ideographs and extension A
_CJK_RE = re.compile(r"[\u3040-\u30ff\uff66-\uff9f\u3400-\u4dbf\u4e00-\u9fff]")

_SENT_END = "。！？.!?"

# A sentence body followed by any run of sentence-final marks
_CJK_SENT_RE = re.compile(r"[^。！？.!?]+[。！？.!?]*|[。！？.!?]+")


def cjk_ratio(text: str) -> float:
    """Share of CJK code points among non-whitespace characters."""
    chars = [c for c in text if not c.isspace()]
    if not chars:
        return 0.0
    return sum(1 for c in chars if _CJK_RE.match(c)) / len(chars)


def is_cjk(text: str, config: SegmentationConfig | None = None) -> bool:
    cfg = config or SegmentationConfig()
    ratio = cjk_ratio(text)
    return ratio > 0 and ratio >= cfg.cjk_min_ratio


def chunk_chars(text: str, size: int) -> list[str]:
    """Fixed-length character chunks, whitespace removed."""
    compact = "".join(text.split())
    size = max(1, size)
    return [compact[i : i + size] for i in range(0, len(compact), size)]


def chunk_words(text: str, size: int) -> list[str]:
    words = text.split()
    size = max(1, size)
    return [" ".join(words[i : i + size]) for i in range(0, len(words), size)]


def split_cjk_sentences(text: str) -> list[str]:
    """Split after 。！？ and their ASCII equivalents, keeping the punctuation."""
    out: list[str] = []
    lead = ""
    for m in _CJK_SENT_RE.finditer(text):
        p = m.group(0).strip()
        if not p:
            continue
        if all(c in _SENT_END for c in p):
            # stray leading marks ride along with the next sentence
            lead += p
            continue
        out.append(lead + p)
        lead = ""
    if lead:
        if out:
            out[-1] += lead
        else:
            out.append(lead)
    return out


def split_text(text: str, config: SegmentationConfig | None = None) -> list[str]:
    """
    Split raw transcript text into ordered, non-empty caption units.

    CJK text is split on sentence-final punctuation; when that yields at most one
    unit for input longer than one chunk, fixed-size character chunks are used.
    Space-delimited text is grouped into fixed-size word chunks. Empty input gives
    an empty list.
    """
    cfg = config or SegmentationConfig()
    if not text or not text.strip():
        return []

    if is_cjk(text, cfg):
        units = split_cjk_sentences(text)
        compact_len = len("".join(text.split()))
        if len(units) <= 1 and compact_len > cfg.cjk_chunk_chars:
            logger.debug("No sentence punctuation; chunking by %d chars", cfg.cjk_chunk_chars)
            units = chunk_chars(text, cfg.cjk_chunk_chars)
        return [u for u in units if u]

    return chunk_words(text, cfg.latin_chunk_words)
