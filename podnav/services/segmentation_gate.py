"""
Segmentation gate: decide whether an episode gets real topic extraction.

Topic navigation must always be available. The gate either returns topics
extracted by the segment source (origin "extracted") or a deterministic
synthetic set (origin "fallback"); it never raises to its caller.

Policy:
  1. Ineligible episodes (no audio, unknown duration, an hour component in
     the duration, or too long) get the five-segment overview set.
  2. Eligible episodes go through the source + parser under a timeout.
  3. Any failure, timeout or empty result gets the three-segment outline set.
"""

import asyncio
import logging
import re
import weakref
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Protocol, Tuple

from podnav.config import settings
from podnav.models import Episode, Topic, TopicOrigin, TopicResolution
from podnav.services import segment_parser

logger = logging.getLogger(__name__)


class SegmentSource(Protocol):
    async def generate(self, episode: Episode) -> str:
        ...


# ---------------------------------------------------------------------------
# Duration display strings
# ---------------------------------------------------------------------------

class DurationShape(NamedTuple):
    seconds: int
    has_hours: bool


_UNIT_PATTERN = re.compile(
    r'(\d+(?:\.\d+)?)\s*(hours?|hrs?|h|minutes?|mins?|m|seconds?|secs?|s)(?![a-z])'
)
_UNIT_SECONDS = {"h": 3600, "m": 60, "s": 1}


def parse_duration(display: Optional[str]) -> Optional[DurationShape]:
    """
    Parse a free-form duration display string.

    Handles "H:MM:SS", "MM:SS", unit strings ("1h 15m", "45 min", "90s") and
    bare numbers, which are read as minutes. Returns None when the shape is
    not recognised (e.g. "Unknown").
    """
    if not display:
        return None
    text = display.strip().lower()
    if not text:
        return None

    if ":" in text:
        parts = [p.strip() for p in text.split(":")]
        if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
            return None
        nums = [int(p) for p in parts]
        if len(nums) == 3:
            hours, minutes, seconds = nums
            return DurationShape(hours * 3600 + minutes * 60 + seconds, True)
        minutes, seconds = nums
        return DurationShape(minutes * 60 + seconds, False)

    if re.fullmatch(r'\d+(?:\.\d+)?', text):
        return DurationShape(int(float(text) * 60), False)

    matches = _UNIT_PATTERN.findall(text)
    if not matches:
        return None
    total = 0.0
    has_hours = False
    for value, unit in matches:
        key = unit[0]
        if key == "h":
            has_hours = True
        total += float(value) * _UNIT_SECONDS[key]
    return DurationShape(int(total), has_hours)


def is_extraction_supported(episode: Episode, max_minutes: Optional[int] = None) -> bool:
    """
    Whether real topic extraction should be attempted for ``episode``.

    Requires an audio URL and a duration shown without an hour component and
    shorter than ``max_minutes``.
    """
    if max_minutes is None:
        max_minutes = settings.max_extraction_minutes
    if not episode.audio_url or not episode.audio_url.strip():
        return False
    shape = parse_duration(episode.duration)
    if shape is None or shape.has_hours:
        return False
    return 0 < shape.seconds < max_minutes * 60


# ---------------------------------------------------------------------------
# Fallback topics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FallbackTemplate:
    """Synthetic topics laid out over ``nominal_seconds``."""
    id_prefix: str
    nominal_seconds: int
    # (title, description, start, end, keywords) in nominal seconds
    segments: Tuple[Tuple[str, str, int, int, Tuple[str, ...]], ...]


OVERVIEW_TEMPLATE = FallbackTemplate(
    id_prefix="fallback-topic",
    nominal_seconds=2700,
    segments=(
        ("Introduction & Welcome", "Host introduces the show and today's guests", 0, 120, ()),
        ("AI and Technology Trends", "Discussion about artificial intelligence and emerging tech", 120, 600, ()),
        ("Business Strategy", "How companies are adapting to new technologies", 600, 1200, ()),
        ("Personal Stories", "Guest shares personal experiences and insights", 1200, 1800, ()),
        ("Q&A and Wrap-up", "Audience questions and final thoughts", 1800, 2700, ()),
    ),
)

OUTLINE_TEMPLATE = FallbackTemplate(
    id_prefix="fallback-outline",
    nominal_seconds=1800,
    segments=(
        ("Opening Discussion", "Introduction and overview of the episode", 0, 300,
         ("introduction", "welcome", "overview")),
        ("Main Content", "Key discussion points of the episode", 300, 1200,
         ("analysis", "discussion", "insights")),
        ("Conclusion", "Wrap-up and final thoughts", 1200, 1800,
         ("summary", "conclusion", "takeaways")),
    ),
)

# Parsed durations shorter than this are too small to lay a template over
MIN_FALLBACK_SECONDS = 300


def build_fallback_topics(template: FallbackTemplate, episode: Episode) -> List[Topic]:
    """Lay ``template`` over the episode's duration. The first topic is selected."""
    shape = parse_duration(episode.duration)
    total = template.nominal_seconds
    if shape is not None and shape.seconds >= MIN_FALLBACK_SECONDS:
        total = shape.seconds

    def scale(t: int) -> int:
        return round(t * total / template.nominal_seconds)

    topics = []
    for n, (title, description, start, end, keywords) in enumerate(template.segments):
        topics.append(Topic(
            id=f"{template.id_prefix}-{n + 1}",
            title=title,
            description=description,
            start_time=scale(start),
            end_time=scale(end),
            selected=(n == 0),
            keywords=list(keywords) or None,
        ))
    return topics


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------

class SegmentationGate:
    """
    Resolves the topic list for an episode.

    Only one extraction per episode id is in flight; a newer request for the
    same episode cancels the pending one and every waiting caller receives
    the newest result.
    """

    def __init__(
        self,
        source: SegmentSource,
        timeout_sec: Optional[float] = None,
        max_extraction_minutes: Optional[int] = None,
    ):
        self.source = source
        self.timeout_sec = settings.segmentation_timeout_sec if timeout_sec is None else timeout_sec
        self.max_extraction_minutes = max_extraction_minutes
        self._inflight: Dict[str, asyncio.Task] = {}
        # superseded task -> the task that replaced it
        self._superseded_by: "weakref.WeakKeyDictionary[asyncio.Task, asyncio.Task]" = (
            weakref.WeakKeyDictionary()
        )

    def fallback(self, episode: Episode, template: FallbackTemplate) -> TopicResolution:
        return TopicResolution(
            topics=build_fallback_topics(template, episode),
            origin=TopicOrigin.FALLBACK,
        )

    async def resolve(self, episode: Episode) -> TopicResolution:
        if not is_extraction_supported(episode, self.max_extraction_minutes):
            logger.info(
                "Episode %s not suitable for extraction (duration=%r), using fallback topics",
                episode.id, episode.duration,
            )
            return self.fallback(episode, OVERVIEW_TEMPLATE)

        previous = self._inflight.get(episode.id)
        task = asyncio.ensure_future(self._extract(episode))
        self._inflight[episode.id] = task
        if previous is not None and not previous.done():
            logger.info("Superseding pending segmentation for episode %s", episode.id)
            self._superseded_by[previous] = task
            previous.cancel()

        try:
            return await self._settle(episode, task)
        finally:
            if self._inflight.get(episode.id) is task:
                del self._inflight[episode.id]

    async def _extract(self, episode: Episode) -> List[Topic]:
        raw = await asyncio.wait_for(self.source.generate(episode), timeout=self.timeout_sec)
        return segment_parser.parse(raw)

    async def _settle(self, episode: Episode, task: asyncio.Task) -> TopicResolution:
        while True:
            try:
                topics = await asyncio.shield(task)
            except asyncio.CancelledError:
                # Several callers may be waiting on the same superseded task,
                # so the link is read, not consumed
                successor = self._superseded_by.get(task)
                if successor is None or not task.cancelled():
                    raise
                # Superseded: answer with the newer request's result
                task = successor
                continue
            except asyncio.TimeoutError:
                logger.warning(
                    "Segmentation timed out after %.1fs for episode %s, using fallback topics",
                    self.timeout_sec, episode.id,
                )
                return self.fallback(episode, OUTLINE_TEMPLATE)
            except Exception as e:
                logger.warning(
                    "Segmentation failed for episode %s (%s: %s), using fallback topics",
                    episode.id, type(e).__name__, e,
                )
                return self.fallback(episode, OUTLINE_TEMPLATE)

            if not topics:
                logger.warning("Segmentation returned no topics for episode %s, using fallback", episode.id)
                return self.fallback(episode, OUTLINE_TEMPLATE)

            logger.info("Extracted %d topics for episode %s", len(topics), episode.id)
            return TopicResolution(topics=topics, origin=TopicOrigin.EXTRACTED)
