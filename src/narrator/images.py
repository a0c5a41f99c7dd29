"""
Image generation with OpenAI.
"""

import logging

from openai import OpenAI

from .errors import GENERATION_FAILED, PipelineError

logger = logging.getLogger("narrator")

SIZES = ("1024x1024", "1792x1024", "1024x1792")


def generate_image(client: OpenAI, prompt: str, size: str = "1792x1024", model: str = "dall-e-3") -> str:
    """Generate one image and return its URL."""
    if client is None:
        raise PipelineError(GENERATION_FAILED, "OpenAI client is not initialized (missing OPENAI_API_KEY)")
    if size not in SIZES:
        raise PipelineError(GENERATION_FAILED, f"Unsupported image size: {size}")

    logger.info("Generating image (%s) …", size)
    try:
        resp = client.images.generate(
            model=model,
            prompt=prompt,
            n=1,
            size=size,
            quality="standard",
            style="natural",
        )
    except Exception as e:
        raise PipelineError(GENERATION_FAILED, f"Image generation failed: {e}") from e

    data = getattr(resp, "data", None) or []
    url = getattr(data[0], "url", None) if data else None
    if not url:
        raise PipelineError(GENERATION_FAILED, "Image generation returned no URL")
    return url
