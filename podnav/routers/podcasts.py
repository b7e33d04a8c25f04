"""Podcast search and episode listing endpoints (Listen Notes)."""

from fastapi import APIRouter, Depends, HTTPException
from typing import List
import logging

from podnav.dependencies import get_listen_notes_client
from podnav.models import Episode, Podcast
from podnav.services.listen_notes import ListenNotesClient, ListenNotesError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/podcasts", tags=["podcasts"])


@router.get("/search", response_model=List[Podcast])
async def search_podcasts(
    q: str,
    limit: int = 20,
    client: ListenNotesClient = Depends(get_listen_notes_client),
):
    """
    Search podcasts by keyword.

    - **q**: Search query
    - **limit**: Max podcasts (default 20)
    """
    if not q.strip():
        return []
    try:
        return await client.search_podcasts(q, limit=limit)
    except ListenNotesError as e:
        raise HTTPException(status_code=502, detail=f"Failed to search podcasts: {e}")


@router.get("/{podcast_id}/episodes", response_model=List[Episode])
async def get_episodes(
    podcast_id: str,
    limit: int = 10,
    client: ListenNotesClient = Depends(get_listen_notes_client),
):
    """Most recent episodes of a podcast."""
    try:
        episodes = await client.get_podcast_episodes(podcast_id, limit=limit)
    except ListenNotesError as e:
        raise HTTPException(status_code=502, detail=f"Failed to fetch episodes: {e}")

    if not episodes:
        raise HTTPException(status_code=404, detail=f"No episodes found for podcast: {podcast_id}")
    return episodes
