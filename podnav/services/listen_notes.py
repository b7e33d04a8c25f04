"""Listen Notes client: podcast search and episode listings."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from podnav.config import settings
from podnav.models import Episode, Podcast

logger = logging.getLogger(__name__)


class ListenNotesError(Exception):
    """The Listen Notes API could not be reached or returned an error."""


def format_duration(seconds: Optional[int]) -> str:
    """Format an episode length as "H:MM:00" or "M:00"."""
    if not seconds:
        return "Unknown"
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:00"
    return f"{minutes}:00"


def _format_pub_date(pub_date_ms: Optional[int]) -> str:
    if not pub_date_ms:
        return ""
    return datetime.fromtimestamp(pub_date_ms / 1000, tz=timezone.utc).isoformat()


class ListenNotesClient:
    """Thin async wrapper over the Listen Notes v2 API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or settings.listen_notes_api_key or ""
        self.base_url = (base_url or settings.listen_notes_base_url).rstrip("/")
        self.timeout = settings.listen_notes_timeout_sec if timeout is None else timeout
        self._transport = transport

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "X-ListenAPI-Key": self.api_key,
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(f"{self.base_url}{path}", params=params, headers=headers)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Listen Notes API error {e.response.status_code} for {path}")
            raise ListenNotesError(f"Listen Notes API error: {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Listen Notes request failed for {path}: {type(e).__name__}: {e}")
            raise ListenNotesError(f"Listen Notes request failed: {e}") from e

    async def search_podcasts(self, query: str, limit: int = 20) -> List[Podcast]:
        data = await self._get("/search", {"q": query, "type": "podcast", "page_size": limit})

        podcasts = []
        for item in data.get("results") or []:
            if not item.get("id"):
                continue
            genre_ids = item.get("genre_ids") or []
            podcasts.append(Podcast(
                id=item["id"],
                title=item.get("title_original") or item.get("title_highlighted") or "Untitled Podcast",
                description=item.get("description_original") or "No description available",
                author=item.get("publisher_original"),
                image=item.get("image"),
                feed_url=item.get("rss"),
                category=f"Genre {genre_ids[0]}" if genre_ids else "Unknown",
                episode_count=item.get("total_episodes"),
            ))
        return podcasts

    async def get_podcast_episodes(self, podcast_id: str, limit: int = 10) -> List[Episode]:
        """Most recent episodes of a podcast, newest first."""
        if not podcast_id:
            return []
        data = await self._get(f"/podcasts/{podcast_id}", {"sort": "recent_first"})

        episodes = []
        for item in (data.get("episodes") or [])[:limit]:
            if not item.get("id"):
                continue
            episodes.append(Episode(
                id=item["id"],
                title=item.get("title") or "Untitled Episode",
                description=item.get("description") or "No description available",
                audio_url=item.get("audio") or "",
                duration=format_duration(item.get("audio_length_sec")),
                publish_date=_format_pub_date(item.get("pub_date_ms")),
            ))
        return episodes
