"""Transcript segmentation endpoint."""

from fastapi import APIRouter, Depends, HTTPException
import logging

from podnav.dependencies import get_segment_source
from podnav.models import SegmentRequest, SegmentResponse
from podnav.services import segment_parser
from podnav.services.segment_source import OpenAISegmentSource

logger = logging.getLogger(__name__)

router = APIRouter(tags=["segments"])


@router.post("/segment", response_model=SegmentResponse)
async def segment(
    request: SegmentRequest,
    source: OpenAISegmentSource = Depends(get_segment_source),
):
    """
    Break a transcript into topic segments.

    - **transcript**: Full transcript text
    """
    if not request.transcript or not request.transcript.strip():
        raise HTTPException(status_code=400, detail="Missing transcript")

    try:
        raw = await source.segment_transcript(request.transcript)
        topics = segment_parser.parse(raw)
    except Exception as e:
        logger.error(f"Segmentation failed: {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail="Failed to segment topics")

    return SegmentResponse(segments=topics)
