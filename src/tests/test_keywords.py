"""
Tests for keyword extraction.
"""

from narrator.keywords import extract_keywords, tokenize


def test_frequency_then_first_occurrence():
    """The most frequent word leads; ties keep their order of appearance."""
    text = "The cat sat. The cat ran. A dog barked."
    assert extract_keywords(text) == ["cat", "sat", "ran", "dog", "barked"]


def test_same_input_same_output():
    text = "Ocean waves, ocean breeze, sunset over the ocean and the beach at sunset."
    assert extract_keywords(text) == extract_keywords(text)
    assert extract_keywords(text)[:2] == ["ocean", "sunset"]


def test_top_n_limit():
    text = "alpha beta gamma delta epsilon"
    assert extract_keywords(text, top_n=2) == ["alpha", "beta"]
    assert extract_keywords(text, top_n=0) == []


def test_japanese_keywords_drop_particles():
    """Kanji and katakana runs are kept; hiragana and single characters are not."""
    text = "東京タワーに行きました。東京は楽しい。"
    assert tokenize(text) == ["東京", "タワー", "東京"]
    assert extract_keywords(text) == ["東京", "タワー"]


def test_numbers_and_stop_words_are_ignored():
    assert extract_keywords("2024 2024 the plan for 2024") == ["plan"]
    assert extract_keywords("") == []
