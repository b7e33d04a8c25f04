"""A listener's topic picker session for one episode at a time."""

import logging

from podnav.models import Episode, QueueEntryResponse, SessionView, TopicOrigin
from podnav.services.playback import PlaybackSession, ordered_selection
from podnav.services.selection import SelectionStore

logger = logging.getLogger(__name__)


class TopicSession:
    """
    Owns the selection and playback state for the currently open episode.

    Loading a different episode resets the selection; the session itself is
    discarded when the picker is dismissed or playback stops.
    """

    def __init__(self, session_id: str, episode: Episode, origin: TopicOrigin):
        self.session_id = session_id
        self.episode = episode
        self.origin = origin
        self.selection = SelectionStore.for_topics(episode.topics or [])
        self.playback = PlaybackSession(episode, self.selection)

    def load_episode(self, episode: Episode, origin: TopicOrigin) -> None:
        self.playback.stop()
        self.episode = episode
        self.origin = origin
        self.selection.reset(episode.topics or [])
        self.playback = PlaybackSession(episode, self.selection)
        logger.info("Session %s switched to episode %s", self.session_id, episode.id)

    def view(self) -> SessionView:
        with self.selection.lock:
            ordered = ordered_selection(self.episode, self.selection)
            selected_ids = sorted(self.selection.selected_topic_ids)
        current = self.playback.current
        return SessionView(
            session_id=self.session_id,
            episode=self.episode,
            origin=self.origin,
            selected_topic_ids=selected_ids,
            selected_count=len(selected_ids),
            ordered_selection=ordered,
            state=self.playback.state.value,
            current=QueueEntryResponse(topic=current.topic, index=current.index) if current else None,
        )
