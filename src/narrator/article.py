"""
Article generation from a transcript.

Two modes:
- natural: clean the spoken text into readable prose, no structure
- article: title, introduction, body, summary and a combined Markdown version
"""

import logging

from openai import OpenAI

from .errors import GENERATION_FAILED, PipelineError
from .images import generate_image
from .models import GeneratedContent, GenerationSettings

logger = logging.getLogger("narrator")

DEFAULT_MODEL = "gpt-4o"

# heading -> field; the Japanese headings are what earlier prompts asked for
SECTION_ALIASES = {
    "title": "title",
    "タイトル": "title",
    "introduction": "introduction",
    "導入文": "introduction",
    "body": "body",
    "本文": "body",
    "summary": "summary",
    "まとめ": "summary",
    "markdown": "markdown",
}


def build_natural_prompt(transcript: str, settings: GenerationSettings) -> str:
    return f"""Rewrite the speech transcript below as natural, easy-to-read text.

[Transcript]
{transcript}

[Guidelines]
- Tone: {settings.tone}
- Turn spoken language into written language
- Remove filler words and unnatural repetition
- Tidy the flow of the text
- Keep the original content as it is

[Output]
Output only the corrected text. No headings or structure."""


def build_article_prompt(transcript: str, settings: GenerationSettings) -> str:
    extra = ""
    if settings.keywords:
        extra += f"\n- Keywords to include: {settings.keywords}"
    return f"""Below is the transcript of an audio broadcast.
Turn it into a blog article that reads naturally.

# Requirements
- Give it a title
- Open with an introduction (greeting and the theme)
- Organize the flow with ## headings
- Remove redundant parts and spoken fillers
- Keep the content while making it readable
- End with a summary and a short note to the reader

[Settings]
- Tone: {settings.tone}
- Purpose: {settings.purpose}
- Target audience: {settings.target_audience}{extra}

# Input
{transcript}

Always answer in exactly this format:

# Title
[title]

# Introduction
[introduction]

# Body
[body organized with ## headings]

# Summary
[summary and a note to the reader]

# Markdown
[everything above as one Markdown document]"""


def build_prompt(transcript: str, settings: GenerationSettings) -> str:
    if settings.processing_mode == "natural":
        return build_natural_prompt(transcript, settings)
    return build_article_prompt(transcript, settings)


def split_sections(text: str) -> dict[str, str]:
    """Split a reply on top-level ``# `` headings.

    Everything after the Markdown heading belongs to it, including its own
    ``# `` title line.
    """
    sections: dict[str, str] = {}
    current = None
    for line in text.splitlines():
        if current != "markdown" and line.startswith("# "):
            name = line[2:].strip()
            current = SECTION_ALIASES.get(name.lower(), name)
            sections[current] = ""
        elif current is not None:
            sections[current] += line + "\n"
    return {k: v.strip() for k, v in sections.items()}


def parse_generated_content(text: str, settings: GenerationSettings) -> GeneratedContent:
    """Structure a model reply according to the processing mode."""
    if settings.processing_mode == "natural":
        body = text.strip()
        return GeneratedContent(
            seo_title="Transcript (edited)",
            lead_text="",
            content=body,
            cta="",
            meta_description="",
            tags=[],
            cover_image_url="",
            markdown=body,
        )

    sections = split_sections(text)
    title = sections.get("title", "")
    intro = sections.get("introduction", "")
    body = sections.get("body", "")
    summary = sections.get("summary", "")
    markdown = sections.get("markdown") or f"# {title}\n\n{intro}\n\n{body}\n\n{summary}".strip()

    return GeneratedContent(
        seo_title=title or "Generated title",
        lead_text=intro,
        content=body,
        cta=summary,
        meta_description=intro[:160],
        tags=[],
        cover_image_url="",
        markdown=markdown,
    )


def generate_article(
    client: OpenAI,
    transcript: str,
    settings: GenerationSettings | None = None,
    *,
    model: str = DEFAULT_MODEL,
    cover_image: bool = False,
) -> GeneratedContent:
    """Generate an article; optionally add a generated cover image."""
    settings = settings or GenerationSettings()
    if not transcript or not transcript.strip():
        raise PipelineError(GENERATION_FAILED, "Transcript is empty")
    if client is None:
        raise PipelineError(GENERATION_FAILED, "OpenAI client is not initialized (missing OPENAI_API_KEY)")

    logger.info("Generating %s text with %s …", settings.processing_mode, model)
    try:
        completion = client.chat.completions.create(
            model=model,
            messages=[
                {
                    "role": "system",
                    "content": "You are a skilled content writer who turns audio transcripts into engaging articles.",
                },
                {"role": "user", "content": build_prompt(transcript, settings)},
            ],
            temperature=0.7,
            max_tokens=4000,
        )
    except Exception as e:
        raise PipelineError(GENERATION_FAILED, f"Article generation failed: {e}") from e

    content = parse_generated_content(completion.choices[0].message.content or "", settings)

    if cover_image and settings.processing_mode != "natural":
        prompt = f"A cover image for a blog article titled: {content.seo_title}. No text in the image."
        try:
            content.cover_image_url = generate_image(client, prompt)
        except PipelineError as e:
            logger.warning("Cover image generation failed, continuing without: %s", e)

    return content
