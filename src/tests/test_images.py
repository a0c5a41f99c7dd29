"""
Tests for image generation with a stub OpenAI client.
"""

from types import SimpleNamespace

import pytest

from narrator.errors import GENERATION_FAILED, PipelineError
from narrator.images import generate_image


def _client(url=None, error=None):
    requests = []

    def generate(**kwargs):
        requests.append(kwargs)
        if error:
            raise error
        return SimpleNamespace(data=[SimpleNamespace(url=url)] if url else [])

    return SimpleNamespace(images=SimpleNamespace(generate=generate)), requests


def test_generate_image_returns_url():
    client, requests = _client(url="https://img.example/1.png")
    assert generate_image(client, "a quiet harbour", size="1024x1792") == "https://img.example/1.png"
    assert requests[0]["size"] == "1024x1792"
    assert requests[0]["model"] == "dall-e-3"


@pytest.mark.parametrize(
    "client,size",
    [
        (None, "1792x1024"),
        (_client(url="https://img.example/1.png")[0], "640x480"),
        (_client()[0], "1792x1024"),
        (_client(error=RuntimeError("content policy"))[0], "1792x1024"),
    ],
)
def test_generate_image_failures(client, size):
    with pytest.raises(PipelineError) as exc:
        generate_image(client, "x", size=size)
    assert exc.value.code == GENERATION_FAILED
