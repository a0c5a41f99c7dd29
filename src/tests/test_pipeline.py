"""
Tests for job orchestration.
"""

import json
from types import SimpleNamespace

import httpx
import pytest

from narrator.config import PLACEHOLDER_TEXT, ServiceKeys
from narrator.context import RenderJobContext
from narrator.models import MediaAsset, RenderRequest, Transcript, TranscriptSegment, VideoSettings
from narrator.pipeline import generate_video, plan_render, select_keywords, transcript_from_dict, transcript_to_dict


@pytest.fixture
def ctx(tmp_path):
    with RenderJobContext.create(str(tmp_path / "work")) as c:
        yield c


def test_plan_japanese_scenario(ctx):
    """Three sentences over 30 s: three 10 s captions and one full filler."""
    plan = plan_render(ctx, RenderRequest("こんにちは。今日は天気がいいです。さようなら。", authoritative_duration=30.0))

    assert plan.language == "cjk"
    assert plan.total_duration == 30.0
    assert [s.text for s in plan.caption_segments] == ["こんにちは。", "今日は天気がいいです。", "さようなら。"]
    assert plan.caption_segments[-1].end_time == 30.0
    assert [(e.start_time, e.end_time, e.filler) for e in plan.timeline] == [(0.0, 30.0, True)]


def test_plan_empty_transcript(ctx):
    """Nothing known at all: one 60 s placeholder caption."""
    plan = plan_render(ctx, RenderRequest(""))
    assert [(s.text, s.start_time, s.end_time) for s in plan.caption_segments] == [(PLACEHOLDER_TEXT, 0.0, 60.0)]
    assert len(plan.timeline) == 1


def test_plan_with_assets_and_timestamps(ctx):
    stamps = [TranscriptSegment("hello", 0.0, 2.0), TranscriptSegment("world", 2.0, 4.0)]
    asset = MediaAsset(type="image", url="a", duration=5.0, start_time=2.0, end_time=7.0)
    plan = plan_render(
        ctx,
        RenderRequest("hello world", external_timestamps=stamps, authoritative_duration=10.0, candidate_assets=[asset]),
    )

    assert [(s.text, s.start_time, s.end_time) for s in plan.caption_segments] == [
        ("hello", 0.0, 5.0),
        ("world", 5.0, 10.0),
    ]
    assert [(e.start_time, e.end_time) for e in plan.timeline] == [(0.0, 2.0), (2.0, 7.0), (7.0, 10.0)]


def test_plan_is_deterministic(ctx):
    request = RenderRequest("one two three four five six seven eight nine", file_size_bytes=300_000)
    assert plan_render(ctx, request) == plan_render(ctx, request)


def test_keywords_fall_back_to_frequency():
    def create(**kwargs):
        raise RuntimeError("down")

    failing = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    text = "garden garden flowers"
    assert select_keywords(text, source="llm", client=failing) == ["garden", "flowers"]
    assert select_keywords(text, source="scenes", client=None) == ["garden", "flowers"]


def test_keywords_fall_back_when_reply_is_a_list():
    def create(**kwargs):
        message = SimpleNamespace(content='["ocean", "beach"]')
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    text = "garden garden flowers"
    assert select_keywords(text, source="llm", client=client) == ["garden", "flowers"]
    assert select_keywords(text, source="scenes", client=client) == ["garden", "flowers"]


def test_plan_word_timestamps_become_several_captions(ctx):
    """Word-level timestamps are grouped into short captions, not one for the whole audio."""
    words = [TranscriptSegment(f"w{i}", i * 0.4, i * 0.4 + 0.35) for i in range(150)]
    text = " ".join(w.text for w in words)
    plan = plan_render(ctx, RenderRequest(text, external_timestamps=words, authoritative_duration=60.0))

    captions = plan.caption_segments
    assert len(captions) > 1
    assert all(s.duration <= ctx.config.max_caption_secs + 1e-6 for s in captions)
    assert " ".join(s.text for s in captions).split() == [w.text for w in words]
    assert captions[-1].end_time == 60.0


def test_keywords_from_llm():
    def create(**kwargs):
        message = SimpleNamespace(content='{"keywords": ["spring garden"]}')
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    assert select_keywords("garden", source="llm", client=client) == ["spring garden"]


def test_generate_video_demo_without_render_key(ctx, tmp_path):
    transcript = Transcript(text="Walking in the park on a sunny day.", segments=[], duration=12.0)
    out = tmp_path / "out"
    plan, result = generate_video(
        ctx,
        transcript,
        VideoSettings(),
        ServiceKeys(),
        out_dir=str(out),
        custom_urls=["https://img/park.jpg"],
    )

    assert result.demo
    assert result.duration == 12.0
    manifest = json.loads((out / f"{ctx.job_id}.json").read_text(encoding="utf-8"))
    assert manifest["total_duration"] == 12.0
    assert [e["url"] for e in manifest["timeline"]] == ["https://img/park.jpg"] * 3
    assert (out / f"{ctx.job_id}.srt").read_text(encoding="utf-8").startswith("1\n00:00:00,000 --> ")
    assert result.caption_path.endswith(".srt")


def test_generate_video_plan_only(ctx, tmp_path):
    transcript = Transcript(text="hello world", segments=[], duration=5.0)
    plan, result = generate_video(ctx, transcript, VideoSettings(), ServiceKeys(), out_dir=str(tmp_path), render=False)
    assert result is None
    assert plan.total_duration == 5.0


def test_generate_video_renders(ctx, tmp_path):
    def handler(request):
        if request.method == "POST":
            return httpx.Response(201, json={"response": {"id": "r9"}})
        return httpx.Response(200, json={"response": {"status": "done", "url": "https://out/final.mp4"}})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    transcript = Transcript(text="hello world again", segments=[], duration=6.0)
    plan, result = generate_video(
        ctx,
        transcript,
        VideoSettings(),
        ServiceKeys(shotstack="sk"),
        out_dir=str(tmp_path),
        custom_urls=["https://img/x.jpg"],
        http=client,
        sleep=lambda s: None,
    )
    assert result.video_url == "https://out/final.mp4"
    assert not result.demo
    assert "Generated+Video" in result.thumbnail_url


def test_transcript_dict_roundtrip_and_bare_lists():
    t = Transcript(text="a b", segments=[TranscriptSegment("a", 0.0, 1.0)], duration=1.0)
    assert transcript_from_dict(transcript_to_dict(t)) == t

    bare = transcript_from_dict([{"text": "x", "startTime": 0, "endTime": 2}])
    assert bare.text == "x"
    assert bare.segments == [TranscriptSegment("x", 0.0, 2.0)]
    assert bare.duration is None
