"""Segment source: ask an LLM to break a transcript into topic segments."""

import logging
from typing import Optional

import openai

from podnav.config import settings
from podnav.models import Episode

logger = logging.getLogger(__name__)


class SegmentSourceError(Exception):
    """The segment source could not produce any output."""


SEGMENTATION_PROMPT = '''You are an assistant that breaks down podcast transcripts into topic-based segments.

Return only a JSON array of objects. Do not include markdown, backticks, or explanations.

Each object must include:
- title: a short descriptive title of the topic
- start: the start time in seconds
- end: the end time in seconds

Transcript:
"""
{transcript}
"""'''


class OpenAISegmentSource:
    """
    Produces raw topic-segment text from a transcript via OpenAI chat completions.

    The returned text is whatever the model said; it may be fenced, truncated
    or not JSON at all. Validation belongs to the segment parser.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        client: Optional[openai.AsyncOpenAI] = None,
    ):
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.segmentation_model
        self.temperature = (
            settings.segmentation_temperature if temperature is None else temperature
        )
        self._client = client

    @property
    def client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise SegmentSourceError("OPENAI_API_KEY not set")
            self._client = openai.AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def segment_transcript(self, transcript: str) -> str:
        """Return the model's raw segmentation output for ``transcript``."""
        if not transcript or not transcript.strip():
            raise SegmentSourceError("Missing transcript")

        text = transcript[:settings.max_transcript_chars]
        logger.info("Segmenting transcript (%d chars) with %s", len(text), self.model)

        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "system",
                    "content": (
                        "Respond with only a valid JSON array. "
                        "Do not include markdown, backticks, or anything else."
                    ),
                },
                {"role": "user", "content": SEGMENTATION_PROMPT.format(transcript=text)},
            ],
            temperature=self.temperature,
        )

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise SegmentSourceError("Empty segmentation response")
        return content

    async def generate(self, episode: Episode) -> str:
        """Raw segmentation output for an episode's transcript."""
        if not episode.transcript:
            raise SegmentSourceError(f"Episode {episode.id} has no transcript")
        return await self.segment_transcript(episode.transcript)
