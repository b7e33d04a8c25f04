"""Data models for Podnav: podcasts, episodes and topic segments."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TopicOrigin(str, Enum):
    EXTRACTED = "extracted"
    FALLBACK = "fallback"


class Topic(BaseModel):
    """A titled time range within an episode's audio."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    start_time: int = Field(ge=0)  # seconds
    end_time: int = Field(ge=0)    # seconds
    selected: bool = False  # initial hint only, see SelectionStore
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    keywords: Optional[List[str]] = None

    @model_validator(mode="after")
    def _check_range(self):
        if self.start_time >= self.end_time:
            raise ValueError(
                f"topic {self.id!r} starts at {self.start_time}s but ends at {self.end_time}s"
            )
        return self

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time


class Episode(BaseModel):
    """
    A podcast episode.

    ``topics`` is None until the episode has been segmented. When present the
    list is chronological and non-overlapping; attach topics with
    ``with_topics`` rather than mutating an existing episode.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    audio_url: str = ""
    duration: str = ""  # display string, e.g. "45:00" or "1:15:00"
    publish_date: str = ""
    transcript: Optional[str] = None
    topics: Optional[List[Topic]] = None

    @model_validator(mode="after")
    def _check_topics(self):
        if self.topics is None:
            return self
        seen = set()
        previous = None
        for topic in self.topics:
            if topic.id in seen:
                raise ValueError(f"duplicate topic id {topic.id!r}")
            seen.add(topic.id)
            if previous is not None and topic.start_time < previous.end_time:
                raise ValueError(
                    f"topic {topic.id!r} overlaps or precedes {previous.id!r}"
                )
            previous = topic
        return self

    def with_topics(self, topics: List[Topic]) -> "Episode":
        """Return a copy of this episode with ``topics`` attached."""
        data = self.model_dump(exclude={"topics"})
        return Episode(**data, topics=list(topics))

    def topic_ids(self) -> List[str]:
        return [t.id for t in self.topics or []]


class Podcast(BaseModel):
    """A podcast returned by the episode provider."""
    id: str
    title: str
    description: str = "No description available"
    author: Optional[str] = None
    image: Optional[str] = None
    feed_url: Optional[str] = None
    category: Optional[str] = None
    episode_count: Optional[int] = None
    episodes: List[Episode] = []


class TopicResolution(BaseModel):
    """Topics resolved for an episode and where they came from."""
    model_config = ConfigDict(frozen=True)

    topics: List[Topic]
    origin: TopicOrigin


# API Request/Response Models
class SegmentRequest(BaseModel):
    """Request to segment a raw transcript."""
    transcript: Optional[str] = None


class SegmentResponse(BaseModel):
    segments: List[Topic]


class OpenSessionRequest(BaseModel):
    """Open the topic picker for an episode."""
    episode: Episode


class QueueEntryResponse(BaseModel):
    topic: Topic
    index: int


class SessionView(BaseModel):
    """Snapshot of a topic picker / playback session."""
    session_id: str
    episode: Episode
    origin: TopicOrigin
    selected_topic_ids: List[str]
    selected_count: int
    ordered_selection: List[Topic]
    state: str
    current: Optional[QueueEntryResponse] = None


class AdvanceResponse(BaseModel):
    """Result of a "next topic" request."""
    end_of_queue: bool
    entry: Optional[QueueEntryResponse] = None
    state: str
