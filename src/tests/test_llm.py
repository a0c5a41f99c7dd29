"""
Tests for the GPT helpers, using a stub client.
"""

import json
from types import SimpleNamespace

import pytest

from narrator.errors import GENERATION_FAILED, PipelineError
from narrator.llm import (
    analyze_scenes,
    generate_search_keywords,
    generate_timestamped_segments,
    generate_video_metadata,
    parse_json_reply,
)


class StubChat:
    """Returns canned replies and records the requests."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.requests.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def test_parse_json_reply_salvages_wrapped_object():
    assert parse_json_reply('{"a": 1}') == {"a": 1}
    assert parse_json_reply('Sure! Here it is:\n```json\n{"a": [1, 2]}\n```') == {"a": [1, 2]}


def test_parse_json_reply_rejects_garbage():
    for bad in ("", None, "no json here", "{broken"):
        with pytest.raises(PipelineError) as exc:
            parse_json_reply(bad)
        assert exc.value.code == GENERATION_FAILED


def test_parse_json_reply_requires_an_object():
    for reply in ('["ocean", "beach"]', "42", "null"):
        with pytest.raises(PipelineError) as exc:
            parse_json_reply(reply)
        assert exc.value.code == GENERATION_FAILED

    with pytest.raises(PipelineError):
        generate_search_keywords(StubChat('["ocean", "beach"]'), "a day at the sea")


def test_analyze_scenes():
    reply = {
        "scenes": [
            {
                "description": "sunrise over a city",
                "keywords": ["sunrise", "city"],
                "startTime": 0,
                "endTime": 12.5,
                "suggestedAssets": ["skyline timelapse"],
            },
            "not a scene",
        ]
    }
    client = StubChat(json.dumps(reply))
    scenes = analyze_scenes(client, "transcript")

    assert len(scenes) == 1
    assert scenes[0].keywords == ["sunrise", "city"]
    assert scenes[0].end_time == 12.5


def test_search_keywords_are_trimmed_and_limited():
    client = StubChat('{"keywords": [" ocean ", "", "beach", "waves"]}')
    assert generate_search_keywords(client, "a day at the sea", count=2) == ["ocean", "beach"]
    assert "a day at the sea" in client.requests[0]["messages"][1]["content"]


def test_timestamped_segments_skip_bad_entries():
    reply = {
        "segments": [
            {"text": "first", "startTime": 0, "endTime": 8},
            {"text": "", "startTime": 8, "endTime": 9},
            {"text": "second", "startTime": "x", "endTime": 10},
            {"text": "third", "startTime": 9, "endTime": 15},
        ]
    }
    segments = generate_timestamped_segments(StubChat(json.dumps(reply)), "first third", 15.0)
    assert [(s.text, s.start_time, s.end_time) for s in segments] == [("first", 0.0, 8.0), ("third", 9.0, 15.0)]


def test_video_metadata():
    client = StubChat('{"title": "T", "description": "D", "thumbnailPrompt": "a cat"}')
    assert generate_video_metadata(client, "x") == {"title": "T", "description": "D", "thumbnail_prompt": "a cat"}


def test_client_errors_are_wrapped():
    with pytest.raises(PipelineError) as exc:
        generate_search_keywords(StubChat(RuntimeError("rate limited")), "x")
    assert exc.value.code == GENERATION_FAILED

    with pytest.raises(PipelineError):
        generate_search_keywords(None, "x")
