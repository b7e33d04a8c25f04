"""
Playback sequencing over the listener's selected topics.

Selected topics are always walked in chronological order, whatever order
they were picked in. The sequencer does not track audio time: the playback
collaborator seeks to ``topic.start_time``, stops at ``topic.end_time`` and
calls ``next`` / ``segment_finished`` when it wants the following topic.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from podnav.models import Episode, Topic
from podnav.services.selection import SelectionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueEntry:
    topic: Topic
    index: int


class EndOfQueue:
    """No selected topic follows the current one. A terminal state, not an error."""

    def __repr__(self) -> str:
        return "END_OF_QUEUE"


END_OF_QUEUE = EndOfQueue()


@dataclass(frozen=True)
class SelectionRejected:
    """A play request refused because of the listener's selection."""
    title: str
    message: str


NO_TOPICS_SELECTED = SelectionRejected(
    title="No Topics Selected",
    message="Please select at least one topic to play.",
)


def ordered_selection(episode: Episode, selection: SelectionStore) -> List[Topic]:
    """The episode's selected topics in start-time order."""
    selected = selection.selected_topic_ids
    return [t for t in episode.topics or [] if t.id in selected]


def advance(episode: Episode, selection: SelectionStore) -> Union[QueueEntry, EndOfQueue]:
    """
    Move to the selected topic after ``selection.current_index``.

    Returns the new entry and updates ``current_index``, or END_OF_QUEUE when
    the current topic is the last selected one.
    """
    with selection.lock:
        ordered = ordered_selection(episode, selection)
        next_index = selection.current_index + 1
        if next_index >= len(ordered):
            return END_OF_QUEUE
        selection.current_index = next_index
        return QueueEntry(topic=ordered[next_index], index=next_index)


class PlaybackState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"


class PlaybackSession:
    """
    Idle -> Playing(ordered[0]) -> Playing(ordered[i+1])* -> Idle.

    ``start`` needs at least one selected topic; ``next`` and
    ``segment_finished`` advance, stopping at the end of the queue;
    ``stop`` returns to idle.
    """

    def __init__(self, episode: Episode, selection: SelectionStore):
        self.episode = episode
        self.selection = selection
        self.state = PlaybackState.IDLE
        self.current: Optional[QueueEntry] = None

    def start(self) -> Union[QueueEntry, SelectionRejected]:
        with self.selection.lock:
            ordered = ordered_selection(self.episode, self.selection)
            if not ordered:
                logger.info("Play rejected for episode %s: no topics selected", self.episode.id)
                return NO_TOPICS_SELECTED
            self.selection.current_index = 0
            self.current = QueueEntry(topic=ordered[0], index=0)
        self.state = PlaybackState.PLAYING
        logger.info(
            "Playing %d selected topics of episode %s, starting with %r",
            len(ordered), self.episode.id, self.current.topic.title,
        )
        return self.current

    def next(self) -> Union[QueueEntry, EndOfQueue]:
        """Explicit "next topic" request."""
        if self.state is not PlaybackState.PLAYING:
            return END_OF_QUEUE
        result = advance(self.episode, self.selection)
        if isinstance(result, EndOfQueue):
            self.stop()
            return result
        self.current = result
        logger.info("Jumping to: %s", result.topic.title)
        return result

    def segment_finished(self) -> Union[QueueEntry, EndOfQueue]:
        """The playback collaborator reached the end of the current topic."""
        return self.next()

    def stop(self) -> None:
        if self.state is PlaybackState.PLAYING:
            logger.info("Playback of episode %s stopped", self.episode.id)
        self.state = PlaybackState.IDLE
        self.current = None
