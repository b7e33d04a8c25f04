"""
Segment parser: turn raw LLM segmentation output into validated topics.

The text generator gives no structural guarantee, so every payload is treated
as untrusted:
  1. Strip a wrapping markdown code fence
  2. Decode JSON (bare list, or {"segments": [...]})
  3. Validate each record
  4. Sort by start time
  5. Reject overlaps and duplicate ids
  6. Mark only the first topic as selected
"""

import json
import logging
import math
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from podnav.models import Topic

logger = logging.getLogger(__name__)

FENCE = "```"


class SegmentationError(Exception):
    """Base class for segmentation output that cannot be used."""


class MalformedSegmentationError(SegmentationError):
    """The payload is not structured data."""


class InvalidSegmentError(SegmentationError):
    """The payload decodes but a record violates the topic invariants."""


def parse_clock(value: str) -> float:
    """Convert "SS", "MM:SS" or "HH:MM:SS" to seconds."""
    parts = value.strip().split(":")
    if len(parts) > 3 or any(p.strip() == "" for p in parts):
        raise ValueError(f"not a timestamp: {value!r}")
    seconds = 0.0
    for part in parts:
        seconds = seconds * 60 + float(part)
    if not math.isfinite(seconds):
        raise ValueError(f"not a timestamp: {value!r}")
    return seconds


def format_time(seconds: int) -> str:
    """Format seconds as M:SS."""
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"


class RawSegment(BaseModel):
    """One record as emitted by the segmentation model."""
    title: str
    start: float = Field(allow_inf_nan=False)
    end: float = Field(allow_inf_nan=False)
    id: Optional[str] = None
    description: Optional[str] = None
    confidence: Optional[float] = None
    keywords: Optional[List[str]] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _coerce_seconds(cls, value: Any) -> Union[int, float]:
        if isinstance(value, bool):
            raise ValueError("expected seconds, got a boolean")
        if isinstance(value, str):
            return parse_clock(value)
        return value

    @field_validator("title")
    @classmethod
    def _non_empty_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title is empty")
        return value


def strip_code_fence(raw: str) -> str:
    """Drop a leading fence line and its matching closing fence line."""
    text = raw.strip()
    if not text.startswith(FENCE):
        return text
    lines = text.split("\n")
    lines.pop(0)
    if lines and lines[-1].strip().startswith(FENCE):
        lines.pop()
    return "\n".join(lines).strip()


def _decode(raw: str) -> list:
    text = strip_code_fence(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug("Raw segmentation output: %r", text[:500])
        raise MalformedSegmentationError(f"segmentation output is not JSON: {e}") from e

    # Accept either {"segments": [...]} or a bare list
    if isinstance(data, dict) and isinstance(data.get("segments"), list):
        data = data["segments"]
    if not isinstance(data, list):
        raise MalformedSegmentationError(
            f"expected a list of segments, got {type(data).__name__}"
        )
    return data


def _validate(index: int, record: Any) -> RawSegment:
    if not isinstance(record, dict):
        raise InvalidSegmentError(f"segment {index} is not an object")
    try:
        seg = RawSegment.model_validate(record)
    except (ValidationError, ValueError) as e:
        raise InvalidSegmentError(f"segment {index} is invalid: {e}") from e

    start, end = round(seg.start), round(seg.end)
    if start < 0 or end < 0:
        raise InvalidSegmentError(f"segment {index} has a negative time")
    if start >= end:
        raise InvalidSegmentError(
            f"segment {index} ends at {end}s, not after its start at {start}s"
        )
    if seg.confidence is not None and not 0.0 <= seg.confidence <= 1.0:
        raise InvalidSegmentError(f"segment {index} confidence {seg.confidence} out of range")
    return seg.model_copy(update={"start": start, "end": end})


def parse(raw: str) -> List[Topic]:
    """
    Parse raw segmentation text into chronological, non-overlapping topics.

    Raises:
        MalformedSegmentationError: raw text is not a JSON list of records
        InvalidSegmentError: a record is missing fields, has a bad time range,
            overlaps its neighbour or reuses an id
    """
    records = _decode(raw)
    segments = [_validate(i, record) for i, record in enumerate(records)]
    segments.sort(key=lambda s: s.start)

    taken_ids = set()
    for seg in segments:
        if seg.id:
            if seg.id in taken_ids:
                raise InvalidSegmentError(f"duplicate segment id {seg.id!r}")
            taken_ids.add(seg.id)

    topics: List[Topic] = []
    previous: Optional[RawSegment] = None

    for n, seg in enumerate(segments):
        if previous is not None and seg.start < previous.end:
            raise InvalidSegmentError(
                f"segment {seg.title!r} starts at {int(seg.start)}s before "
                f"{previous.title!r} ends at {int(previous.end)}s"
            )
        topic_id = seg.id
        if not topic_id:
            # Generated ids skip any the model already used
            k = n + 1
            while f"segment-{k}" in taken_ids:
                k += 1
            topic_id = f"segment-{k}"
            taken_ids.add(topic_id)

        start, end = int(seg.start), int(seg.end)
        description = (seg.description or "").strip() or (
            f"{seg.title} ({format_time(start)} - {format_time(end)})"
        )
        topics.append(Topic(
            id=topic_id,
            title=seg.title,
            description=description,
            start_time=start,
            end_time=end,
            selected=(n == 0),
            confidence=seg.confidence,
            keywords=[k for k in seg.keywords if k.strip()] if seg.keywords else None,
        ))
        previous = seg

    logger.debug("Parsed %d topic segments", len(topics))
    return topics
