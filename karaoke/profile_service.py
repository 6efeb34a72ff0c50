"""
Profile Service — player profile CRUD against the REST API.

The full profile is cached in memory; only its id survives restarts, in a
small JSON file standing in for browser local storage.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import httpx

from .config import API_BASE_URL, API_TIMEOUT, PROFILE_STORAGE_KEY, STORAGE_PATH
from .errors import ServiceError, error_from_response
from .log import get_logger
from .models import Profile

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Local storage
# ---------------------------------------------------------------------------
class LocalStorage:
    """
    Key/value strings persisted as one JSON object.

    Read and write failures are logged and otherwise ignored; a broken file
    reads as empty.
    """

    def __init__(self, path: str | Path = STORAGE_PATH) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Failed to read %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to write %s: %s", self.path, e)

    def get_item(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return str(value) if value is not None else None

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------
class ProfileService:
    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        storage: Optional[LocalStorage] = None,
        base_url: str = API_BASE_URL,
    ) -> None:
        self.client = client or httpx.AsyncClient(timeout=API_TIMEOUT)
        self.storage = storage or LocalStorage()
        self.base_url = base_url.rstrip("/")
        self.cached_profile: Optional[Profile] = None

    # ── Cached id ────────────────────────────────────────────────────

    def get_cached_profile_id(self) -> Optional[str]:
        return self.storage.get_item(PROFILE_STORAGE_KEY)

    def _save_profile_id(self, profile_id: str) -> None:
        self.storage.set_item(PROFILE_STORAGE_KEY, profile_id)

    def clear_cache(self) -> None:
        self.cached_profile = None
        self.storage.remove_item(PROFILE_STORAGE_KEY)

    def has_profile(self) -> bool:
        return self.cached_profile is not None or self.get_cached_profile_id() is not None

    # ── HTTP ─────────────────────────────────────────────────────────

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self.client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as e:
            raise ServiceError(f"Could not reach the server: {e}") from e

    async def create_profile(self, display_name: str) -> Profile:
        logger.info("Creating profile: %s", display_name)
        response = await self._request("POST", "/profiles", json={"displayName": display_name})
        if not response.is_success:
            raise error_from_response(response, "Failed to create profile")

        profile = Profile.from_json(response.json())
        self.cached_profile = profile
        self._save_profile_id(profile.id)
        logger.info("Profile created: %s", profile.id)
        return profile

    async def get_profile(self, profile_id: str) -> Optional[Profile]:
        """Fetch a profile; ``None`` when the server does not know the id."""
        response = await self._request("GET", f"/profiles/{profile_id}")
        if response.status_code == 404:
            logger.info("Profile not found: %s", profile_id)
            return None
        if not response.is_success:
            raise error_from_response(response, "Failed to fetch profile")

        profile = Profile.from_json(response.json())
        self.cached_profile = profile
        logger.info("Profile fetched: %s", profile.display_name)
        return profile

    async def update_profile(self, profile_id: str, display_name: str) -> Profile:
        response = await self._request(
            "PUT", f"/profiles/{profile_id}", json={"displayName": display_name}
        )
        if not response.is_success:
            raise error_from_response(response, "Failed to update profile")

        profile = Profile.from_json(response.json())
        self.cached_profile = profile
        logger.info("Profile updated: %s", profile.display_name)
        return profile

    async def load_cached_profile(self) -> Optional[Profile]:
        """
        Resolve the stored id into a profile.

        A missing id, an unknown id or any failure yields ``None``; the last
        two also clear the stored id so the next start asks for a name.
        """
        profile_id = self.get_cached_profile_id()
        if not profile_id:
            logger.info("No cached profile id")
            return None

        try:
            profile = await self.get_profile(profile_id)
        except ServiceError as e:
            logger.warning("Failed to load cached profile: %s", e)
            self.clear_cache()
            return None

        if profile is None:
            self.clear_cache()
        return profile

    async def aclose(self) -> None:
        await self.client.aclose()
