"""Shared service instances for the routers (overridable in tests)."""

from functools import lru_cache

from podnav.services.listen_notes import ListenNotesClient
from podnav.services.segment_source import OpenAISegmentSource
from podnav.services.segmentation_gate import SegmentationGate


@lru_cache()
def get_segment_source() -> OpenAISegmentSource:
    return OpenAISegmentSource()


@lru_cache()
def get_segmentation_gate() -> SegmentationGate:
    return SegmentationGate(get_segment_source())


@lru_cache()
def get_listen_notes_client() -> ListenNotesClient:
    return ListenNotesClient()
