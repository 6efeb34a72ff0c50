"""
Shared fixtures: a fake REST API for the client services and wired-up
client contexts with headless renderer / video player.
"""

import json
import os
import sys
import uuid
from datetime import datetime, timezone

import httpx
import pytest

# Ensure project root is on path
ROOT = os.path.dirname(os.path.dirname(__file__))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from karaoke.models import Pose, Quat, Vec3  # noqa: E402
from karaoke.profile_service import LocalStorage  # noqa: E402

BASE_URL = "http://test/api"


def song_json(song_id, youtube_id, title, artist, theme):
    return {"id": song_id, "youtubeId": youtube_id, "title": title, "artist": artist, "theme": theme}


SONGS = [
    song_json("s1", "gdZLi9oWNZg", "Dynamite", "BTS", "kpop"),
    song_json("s2", "9bZkp7q19f0", "Gangnam Style", "PSY", "kpop"),
    song_json("s3", "fJ9rUzIMcZQ", "Bohemian Rhapsody", "Queen", "hollywood"),
]


class FakeApi:
    """In-process stand-in for the REST API, served through httpx.MockTransport."""

    def __init__(self):
        self.profiles = {}
        self.songs = list(SONGS)
        self.requests = []
        self.fail = {}  # (method, path prefix) -> (status, body)

    def _profile_json(self, profile_id):
        return self.profiles[profile_id]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        path = request.url.path.removeprefix("/api")

        for (method, prefix), (status, body) in self.fail.items():
            if request.method == method and path.startswith(prefix):
                return httpx.Response(status, json=body)

        if request.method == "POST" and path == "/profiles":
            name = json.loads(request.content)["displayName"]
            now = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
            profile_id = str(uuid.uuid4())
            self.profiles[profile_id] = {
                "id": profile_id,
                "displayName": name,
                "createdAt": now,
                "lastActive": now,
            }
            return httpx.Response(201, json=self.profiles[profile_id])

        if path.startswith("/profiles/"):
            profile_id = path.split("/")[-1]
            if profile_id not in self.profiles:
                return httpx.Response(404, json={"error": "Profile not found"})
            if request.method == "PUT":
                self.profiles[profile_id]["displayName"] = json.loads(request.content)["displayName"]
            return httpx.Response(200, json=self.profiles[profile_id])

        if path == "/songs":
            theme = request.url.params.get("theme")
            songs = [s for s in self.songs if not theme or s["theme"] == theme]
            return httpx.Response(200, json={"songs": songs, "total": len(songs)})

        if path == "/songs/search":
            q = request.url.params.get("q", "").lower()
            songs = [s for s in self.songs if q in s["title"].lower() or q in s["artist"].lower()]
            return httpx.Response(200, json={"songs": songs, "total": len(songs)})

        return httpx.Response(404, json={"error": "Not found"})

    def count(self, method, prefix):
        return sum(1 for m, p in self.requests if m == method and p.startswith("/api" + prefix))


@pytest.fixture()
def fake_api():
    return FakeApi()


@pytest.fixture()
def storage(tmp_path):
    return LocalStorage(tmp_path / "storage.json")


@pytest.fixture()
def make_http(fake_api):
    def _make():
        return httpx.AsyncClient(transport=httpx.MockTransport(fake_api.handler))
    return _make


def yaw_pose(position, yaw=0.0):
    """Pose at *position* rotated *yaw* radians around +Y (0 looks down -Z)."""
    import math

    return Pose(
        position=position,
        orientation=Quat(0.0, math.sin(yaw / 2), 0.0, math.cos(yaw / 2)),
    )


@pytest.fixture()
def origin_pose():
    return yaw_pose(Vec3(0.0, 1.6, 0.0))
