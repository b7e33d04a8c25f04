"""
API tests for the segment, podcast and session routers.

Services are replaced through ``app.dependency_overrides`` so no request
leaves the process.
"""

import json

import pytest
from fastapi.testclient import TestClient

from podnav.dependencies import (
    get_listen_notes_client,
    get_segment_source,
    get_segmentation_gate,
)
from podnav.main import app
from podnav.models import Episode, Podcast
from podnav.routers import sessions as sessions_router
from podnav.services.listen_notes import ListenNotesError
from podnav.services.segment_source import SegmentSourceError
from podnav.services.segmentation_gate import SegmentationGate

PAYLOAD = "```json\n" + json.dumps([
    {"title": "Intro", "start": 0, "end": 120},
    {"title": "Markets", "start": 120, "end": 900},
    {"title": "Startups", "start": 900, "end": 1500},
    {"title": "Wrap-up", "start": 1500, "end": 1800},
]) + "\n```"


class FakeSource:
    def __init__(self, payload=PAYLOAD, error=None):
        self.payload = payload
        self.error = error

    async def segment_transcript(self, transcript):
        if self.error is not None:
            raise self.error
        return self.payload

    async def generate(self, episode):
        return await self.segment_transcript(episode.transcript or "")


class FakeListenNotes:
    def __init__(self, error=None):
        self.error = error

    async def search_podcasts(self, query, limit=20):
        if self.error:
            raise self.error
        return [Podcast(id="pod-1", title=f"{query} weekly")]

    async def get_podcast_episodes(self, podcast_id, limit=10):
        if self.error:
            raise self.error
        if podcast_id != "pod-1":
            return []
        return [Episode(id="ep-1", title="E1", audio_url="https://a/1.mp3", duration="45:00")]


def episode_json(**overrides):
    data = {
        "id": "ep-1",
        "title": "Weekly Roundup",
        "description": "News",
        "audio_url": "https://cdn.example.com/ep-1.mp3",
        "duration": "30:00",
        "publish_date": "2025-01-15",
        "transcript": "Welcome back...",
    }
    data.update(overrides)
    return data


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def client(source):
    app.dependency_overrides[get_segment_source] = lambda: source
    app.dependency_overrides[get_segmentation_gate] = lambda: SegmentationGate(source, timeout_sec=5)
    app.dependency_overrides[get_listen_notes_client] = lambda: FakeListenNotes()
    sessions_router._sessions.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    sessions_router._sessions.clear()


def open_session(client, **overrides):
    response = client.post("/sessions", json={"episode": episode_json(**overrides)})
    assert response.status_code == 200
    return response.json()


# ============================================================================
# /segment
# ============================================================================


class TestSegmentEndpoint:

    def test_segments_transcript(self, client):
        response = client.post("/segment", json={"transcript": "hello"})

        assert response.status_code == 200
        segments = response.json()["segments"]
        assert [s["title"] for s in segments] == ["Intro", "Markets", "Startups", "Wrap-up"]
        assert segments[0]["start_time"] == 0
        assert segments[0]["end_time"] == 120

    def test_missing_transcript(self, client):
        response = client.post("/segment", json={})
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing transcript"

    def test_source_failure(self, client, source):
        source.error = SegmentSourceError("upstream down")
        response = client.post("/segment", json={"transcript": "hello"})
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to segment topics"

    def test_invalid_output(self, client, source):
        source.payload = '[{"title":"A","start":5,"end":3}]'
        response = client.post("/segment", json={"transcript": "hello"})
        assert response.status_code == 500


# ============================================================================
# /podcasts
# ============================================================================


class TestPodcastEndpoints:

    def test_search(self, client):
        response = client.get("/podcasts/search", params={"q": "tech"})
        assert response.status_code == 200
        assert response.json()[0]["title"] == "tech weekly"

    def test_episodes(self, client):
        response = client.get("/podcasts/pod-1/episodes")
        assert response.status_code == 200
        assert response.json()[0]["duration"] == "45:00"

    def test_no_episodes(self, client):
        assert client.get("/podcasts/unknown/episodes").status_code == 404

    def test_upstream_error(self, client):
        app.dependency_overrides[get_listen_notes_client] = (
            lambda: FakeListenNotes(error=ListenNotesError("Listen Notes API error: 500"))
        )
        assert client.get("/podcasts/search", params={"q": "tech"}).status_code == 502


# ============================================================================
# /sessions
# ============================================================================


class TestSessionEndpoints:

    def test_open_session_with_extracted_topics(self, client):
        view = open_session(client)

        assert view["origin"] == "extracted"
        assert len(view["episode"]["topics"]) == 4
        assert view["selected_topic_ids"] == ["segment-1"]
        assert view["state"] == "idle"

    def test_open_session_for_long_episode_uses_fallback(self, client):
        view = open_session(client, duration="1:15:00")

        assert view["origin"] == "fallback"
        assert len(view["episode"]["topics"]) == 5
        assert view["selected_topic_ids"] == ["fallback-topic-1"]

    def test_toggle_and_ordered_selection(self, client):
        view = open_session(client)
        sid = view["session_id"]

        client.post(f"/sessions/{sid}/topics/segment-4/toggle")
        view = client.post(f"/sessions/{sid}/topics/segment-2/toggle").json()

        assert view["selected_count"] == 3
        assert [t["id"] for t in view["ordered_selection"]] == ["segment-1", "segment-2", "segment-4"]

    def test_play_with_nothing_selected_is_rejected(self, client):
        sid = open_session(client)["session_id"]
        client.post(f"/sessions/{sid}/clear")

        response = client.post(f"/sessions/{sid}/play")

        assert response.status_code == 400
        assert response.json()["detail"] == "Please select at least one topic to play."
        assert client.get(f"/sessions/{sid}").json()["state"] == "idle"

    def test_play_next_until_end_of_queue(self, client):
        sid = open_session(client)["session_id"]
        client.post(f"/sessions/{sid}/topics/segment-1/toggle")
        client.post(f"/sessions/{sid}/topics/segment-4/toggle")
        client.post(f"/sessions/{sid}/topics/segment-2/toggle")

        view = client.post(f"/sessions/{sid}/play").json()
        assert view["state"] == "playing"
        assert view["current"]["topic"]["id"] == "segment-2"

        step = client.post(f"/sessions/{sid}/next").json()
        assert step["end_of_queue"] is False
        assert step["entry"]["topic"]["id"] == "segment-4"
        assert step["entry"]["index"] == 1

        step = client.post(f"/sessions/{sid}/boundary").json()
        assert step["end_of_queue"] is True
        assert step["state"] == "idle"

        # Playback ended, the session is gone
        assert client.get(f"/sessions/{sid}").status_code == 404

    def test_next_before_play(self, client):
        sid = open_session(client)["session_id"]
        assert client.post(f"/sessions/{sid}/next").status_code == 409

    def test_load_other_episode_resets_selection(self, client):
        sid = open_session(client)["session_id"]
        client.post(f"/sessions/{sid}/topics/segment-3/toggle")

        response = client.put(
            f"/sessions/{sid}/episode",
            json=episode_json(id="ep-2", audio_url=""),
        )

        view = response.json()
        assert response.status_code == 200
        assert view["episode"]["id"] == "ep-2"
        assert view["origin"] == "fallback"
        assert view["selected_topic_ids"] == ["fallback-topic-1"]

    def test_stop_and_dismiss_destroy_session(self, client):
        first = open_session(client)["session_id"]
        second = open_session(client)["session_id"]

        client.post(f"/sessions/{first}/play")
        assert client.post(f"/sessions/{first}/stop").json()["status"] == "stopped"
        assert client.delete(f"/sessions/{second}").json()["status"] == "dismissed"

        assert client.get(f"/sessions/{first}").status_code == 404
        assert client.get(f"/sessions/{second}").status_code == 404

    def test_unknown_session(self, client):
        assert client.post("/sessions/nope/topics/t1/toggle").status_code == 404
