"""Topic picker and playback session endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from typing import Dict
import logging
import uuid

from podnav.dependencies import get_segmentation_gate
from podnav.models import (
    AdvanceResponse, Episode, OpenSessionRequest, QueueEntryResponse, SessionView,
)
from podnav.services.playback import EndOfQueue, PlaybackState, SelectionRejected
from podnav.services.segmentation_gate import SegmentationGate
from podnav.services.topic_session import TopicSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])

# Open topic picker sessions, keyed by session id
_sessions: Dict[str, TopicSession] = {}


def get_session(session_id: str) -> TopicSession:
    session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def get_playing_session(session_id: str) -> TopicSession:
    session = get_session(session_id)
    if session.playback.state is not PlaybackState.PLAYING:
        raise HTTPException(status_code=409, detail="Playback not started")
    return session


def _advance_response(session: TopicSession, result) -> AdvanceResponse:
    if isinstance(result, EndOfQueue):
        # Playback of the episode is over, so is the session
        _sessions.pop(session.session_id, None)
        return AdvanceResponse(end_of_queue=True, state=session.playback.state.value)
    return AdvanceResponse(
        end_of_queue=False,
        entry=QueueEntryResponse(topic=result.topic, index=result.index),
        state=session.playback.state.value,
    )


@router.post("", response_model=SessionView)
async def open_session(
    request: OpenSessionRequest,
    gate: SegmentationGate = Depends(get_segmentation_gate),
):
    """
    Open the topic picker for an episode.

    Topics are extracted when the episode supports it, otherwise (or on any
    extraction failure) a fallback set is used; see ``origin``.
    """
    resolution = await gate.resolve(request.episode)
    episode = request.episode.with_topics(resolution.topics)

    session = TopicSession(str(uuid.uuid4()), episode, resolution.origin)
    _sessions[session.session_id] = session
    logger.info(
        f"Opened session {session.session_id} for episode {episode.id} "
        f"({len(resolution.topics)} {resolution.origin.value} topics)"
    )
    return session.view()


@router.get("/{session_id}", response_model=SessionView)
async def get_session_view(session_id: str):
    return get_session(session_id).view()


@router.put("/{session_id}/episode", response_model=SessionView)
async def load_episode(
    session_id: str,
    episode: Episode,
    gate: SegmentationGate = Depends(get_segmentation_gate),
):
    """Load a different episode into the session. The selection starts over."""
    session = get_session(session_id)
    resolution = await gate.resolve(episode)
    session.load_episode(episode.with_topics(resolution.topics), resolution.origin)
    return session.view()


@router.post("/{session_id}/topics/{topic_id}/toggle", response_model=SessionView)
async def toggle_topic(session_id: str, topic_id: str):
    session = get_session(session_id)
    session.selection.toggle(topic_id)
    return session.view()


@router.post("/{session_id}/clear", response_model=SessionView)
async def clear_selection(session_id: str):
    session = get_session(session_id)
    session.selection.clear()
    return session.view()


@router.post("/{session_id}/play", response_model=SessionView)
async def play(session_id: str):
    """Start playing the selected topics in chronological order."""
    session = get_session(session_id)
    result = session.playback.start()
    if isinstance(result, SelectionRejected):
        raise HTTPException(status_code=400, detail=result.message)
    return session.view()


@router.post("/{session_id}/next", response_model=AdvanceResponse)
async def next_topic(session_id: str):
    """Jump to the next selected topic."""
    session = get_playing_session(session_id)
    return _advance_response(session, session.playback.next())


@router.post("/{session_id}/boundary", response_model=AdvanceResponse)
async def segment_finished(session_id: str):
    """The player reached the end of the current topic."""
    session = get_playing_session(session_id)
    return _advance_response(session, session.playback.segment_finished())


@router.post("/{session_id}/stop")
async def stop(session_id: str):
    """Stop playback and discard the session."""
    session = get_session(session_id)
    session.playback.stop()
    del _sessions[session_id]
    return {"session_id": session_id, "status": "stopped"}


@router.delete("/{session_id}")
async def dismiss(session_id: str):
    """Dismiss the topic picker."""
    session = get_session(session_id)
    session.playback.stop()
    del _sessions[session_id]
    return {"session_id": session_id, "status": "dismissed"}
