"""Unit tests for the OpenAI-backed segment source (client faked)."""

import asyncio
from types import SimpleNamespace

import pytest
from podnav.models import Episode
from podnav.services.segment_source import OpenAISegmentSource, SegmentSourceError


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_source(content='[{"title":"A","start":0,"end":10}]'):
    completions = FakeCompletions(content)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OpenAISegmentSource(api_key="sk-test", model="gpt-4o", client=client), completions


class TestOpenAISegmentSource:

    def test_returns_raw_content(self):
        source, completions = make_source("```json\n[]\n```")

        raw = asyncio.run(source.segment_transcript("Welcome to the show"))

        assert raw == "```json\n[]\n```"
        request = completions.requests[0]
        assert request["model"] == "gpt-4o"
        assert "Welcome to the show" in request["messages"][1]["content"]
        assert request["messages"][0]["role"] == "system"

    def test_transcript_is_truncated(self, monkeypatch):
        from podnav.config import settings
        monkeypatch.setattr(settings, "max_transcript_chars", 10)
        source, completions = make_source()

        asyncio.run(source.segment_transcript("x" * 50))

        prompt = completions.requests[0]["messages"][1]["content"]
        assert "x" * 10 in prompt
        assert "x" * 11 not in prompt

    def test_empty_transcript(self):
        source, completions = make_source()
        with pytest.raises(SegmentSourceError):
            asyncio.run(source.segment_transcript("   "))
        assert completions.requests == []

    def test_empty_completion(self):
        source, _ = make_source(content=None)
        with pytest.raises(SegmentSourceError):
            asyncio.run(source.segment_transcript("hello"))

    def test_episode_without_transcript(self):
        source, _ = make_source()
        episode = Episode(id="ep-1", title="No transcript")
        with pytest.raises(SegmentSourceError):
            asyncio.run(source.generate(episode))

    def test_missing_api_key(self, monkeypatch):
        from podnav.config import settings
        monkeypatch.setattr(settings, "openai_api_key", None)
        source = OpenAISegmentSource()
        with pytest.raises(SegmentSourceError, match="OPENAI_API_KEY"):
            asyncio.run(source.segment_transcript("hello"))
