"""
Frequency-based keyword extraction for stock media search queries.
"""

import re
from collections import Counter

# Split on anything that is not a word character or apostrophe
_TOKEN_SPLIT_RE = re.compile(r"[^\w']+")

# Script runs inside a CJK token; hiragana runs are particles/inflections
_RUN_RE = re.compile(
    r"(?P<kata>[\u30a0-\u30ff\uff66-\uff9f]+)"
    r"|(?P<kanji>[\u3400-\u4dbf\u4e00-\u9fff]+)"
    r"|(?P<hira>[\u3040-\u309f]+)"
    r"|(?P<latin>[^\u3040-\u30ff\uff66-\uff9f\u3400-\u4dbf\u4e00-\u9fff]+)"
)

STOP_WORDS = {
    # English
    "a", "about", "after", "again", "all", "also", "am", "an", "and", "any", "are", "as",
    "at", "be", "because", "been", "before", "being", "but", "by", "can", "could", "did",
    "do", "does", "doing", "don't", "down", "even", "for", "from", "get", "got", "had",
    "has", "have", "having", "he", "her", "here", "him", "his", "how", "i", "i'm", "if",
    "in", "into", "is", "it", "it's", "its", "just", "know", "let's", "like", "me", "more",
    "most", "my", "no", "not", "now", "of", "off", "ok", "okay", "on", "one", "only", "or",
    "other", "our", "out", "over", "really", "right", "said", "say", "see", "she", "so",
    "some", "something", "than", "that", "that's", "the", "their", "them", "then", "there",
    "these", "they", "thing", "things", "think", "this", "those", "through", "to", "too",
    "um", "uh", "up", "us", "very", "want", "was", "way", "we", "we're", "well", "were",
    "what", "when", "where", "which", "who", "why", "will", "with", "would", "yeah", "yes",
    "you", "you're", "your",
    # Japanese
    "こと", "もの", "ため", "これ", "それ", "あれ", "どれ", "ここ", "そこ", "あそこ",
    "私", "僕", "自分", "今日", "今回", "本当", "感じ", "時", "方", "人", "的",
    "ちょっと", "やっぱり", "なんか", "えー", "あのー", "あの", "その", "この",
}


def _is_numeric(token: str) -> bool:
    return token.replace(".", "").replace(",", "").isdigit()


def tokenize(text: str) -> list[str]:
    """Split text into candidate keyword tokens, in order of appearance."""
    tokens: list[str] = []
    for raw in _TOKEN_SPLIT_RE.split(text or ""):
        raw = raw.strip("'_")
        if not raw:
            continue
        for m in _RUN_RE.finditer(raw):
            kind = m.lastgroup
            tok = m.group(0).strip("'_")
            if not tok or kind == "hira":
                continue
            if kind == "latin":
                tok = tok.lower()
            if len(tok) < 2:
                # single letters, kana or ideographs are too ambiguous to search for
                continue
            tokens.append(tok)
    return tokens


def extract_keywords(text: str, top_n: int = 8) -> list[str]:
    """
    Return the ``top_n`` most frequent non-stop-word tokens.

    Ties keep first-occurrence order, so identical input always yields the
    identical list.
    """
    tokens = [t for t in tokenize(text) if t not in STOP_WORDS and not _is_numeric(t)]
    counts = Counter(tokens)
    first_seen: dict[str, int] = {}
    for i, t in enumerate(tokens):
        first_seen.setdefault(t, i)
    ranked = sorted(first_seen, key=lambda t: (-counts[t], first_seen[t]))
    return ranked[: max(0, top_n)]
