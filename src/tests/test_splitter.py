"""
Tests for transcript splitting.
"""

from dataclasses import replace

from narrator.config import SegmentationConfig
from narrator.splitter import chunk_words, cjk_ratio, is_cjk, split_cjk_sentences, split_text


def test_split_japanese_on_sentence_marks():
    """Japanese text splits after each 。 and keeps the punctuation."""
    units = split_text("こんにちは。今日は天気がいいです。さようなら。")
    assert units == ["こんにちは。", "今日は天気がいいです。", "さようなら。"]


def test_split_japanese_without_punctuation_chunks_by_chars():
    """Unpunctuated CJK text falls back to fixed-size character chunks."""
    units = split_text("あいうえおかきくけこさしすせそ")
    assert units == ["あいうえおかきくけこ", "さしすせそ"]


def test_split_japanese_chunk_size_is_configurable():
    cfg = replace(SegmentationConfig(), cjk_chunk_chars=5)
    units = split_text("あいうえおかきくけこさしすせそ", cfg)
    assert units == ["あいうえお", "かきくけこ", "さしすせそ"]


def test_split_latin_into_word_chunks():
    """Space-delimited text is grouped four words at a time."""
    units = split_text("one two three four five six")
    assert units == ["one two three four", "five six"]


def test_split_empty_text():
    assert split_text("") == []
    assert split_text("   \n ") == []


def test_mixed_text_detection_uses_ratio():
    """A few ideographs in an English sentence do not make it CJK."""
    assert is_cjk("Hello world こんにちは")
    assert not is_cjk("I visited 東京 yesterday")
    assert not is_cjk("plain english")
    assert cjk_ratio("") == 0.0


def test_stray_leading_punctuation_joins_next_sentence():
    assert split_cjk_sentences("。こんにちは。") == ["。こんにちは。"]
    assert split_cjk_sentences("本当？！はい。") == ["本当？！", "はい。"]


def test_chunk_words_never_empty():
    assert chunk_words("a b c", 0) == ["a", "b", "c"]
