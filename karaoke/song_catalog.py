"""
Song Catalog — read-only song list and search over the REST API.
"""

from __future__ import annotations

from typing import Optional

import httpx

from .config import API_BASE_URL, API_TIMEOUT
from .errors import ServiceError, error_from_response
from .log import get_logger
from .models import Song

logger = get_logger(__name__)


class SongCatalog:
    def __init__(self, client: Optional[httpx.AsyncClient] = None, base_url: str = API_BASE_URL) -> None:
        self.client = client or httpx.AsyncClient(timeout=API_TIMEOUT)
        self.base_url = base_url.rstrip("/")

    async def _fetch(self, path: str, params: dict, fallback: str) -> list[Song]:
        try:
            response = await self.client.get(f"{self.base_url}{path}", params=params)
        except httpx.HTTPError as e:
            raise ServiceError(f"Could not reach the server: {e}") from e
        if not response.is_success:
            raise error_from_response(response, fallback)

        body = response.json()
        songs = [Song.from_json(s) for s in body.get("songs", [])]
        logger.info("Fetched %d songs from %s %s", len(songs), path, params)
        return songs

    async def list_songs(self, theme: Optional[str] = None) -> list[Song]:
        params = {"theme": theme} if theme else {}
        return await self._fetch("/songs", params, "Failed to load songs")

    async def search(self, query: str) -> list[Song]:
        return await self._fetch("/songs/search", {"q": query}, "Failed to search songs")

    async def aclose(self) -> None:
        await self.client.aclose()
