"""
Narrator - spoken audio to written articles and captioned short videos.

A pipeline for:
- Resolving audio from local files or remote URLs
- Transcribing speech (OpenAI Whisper or AssemblyAI)
- Splitting transcripts into timed caption segments
- Building gap-free background media timelines from stock search results
- Rendering narrated videos (Shotstack) or generating articles with GPT
"""

__version__ = "0.1.0"
