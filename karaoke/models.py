"""
Data classes for the KaraokeVerse client.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional


# ---------------------------------------------------------------------------
# 3D vector
# ---------------------------------------------------------------------------
@dataclass
class Vec3:
    """Simple 3D vector for pose and ray math."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, o: Vec3) -> Vec3:
        return Vec3(self.x + o.x, self.y + o.y, self.z + o.z)

    def __sub__(self, o: Vec3) -> Vec3:
        return Vec3(self.x - o.x, self.y - o.y, self.z - o.z)

    def __mul__(self, s: float) -> Vec3:
        return Vec3(self.x * s, self.y * s, self.z * s)

    def __neg__(self) -> Vec3:
        return Vec3(-self.x, -self.y, -self.z)

    def dot(self, o: Vec3) -> float:
        return self.x * o.x + self.y * o.y + self.z * o.z

    def cross(self, o: Vec3) -> Vec3:
        return Vec3(
            self.y * o.z - self.z * o.y,
            self.z * o.x - self.x * o.z,
            self.x * o.y - self.y * o.x,
        )

    def length(self) -> float:
        return (self.x ** 2 + self.y ** 2 + self.z ** 2) ** 0.5

    def normalized(self) -> Vec3:
        n = self.length()
        if n < 1e-8:
            return Vec3()
        return Vec3(self.x / n, self.y / n, self.z / n)

    def distance_to(self, o: Vec3) -> float:
        return (self - o).length()

    def to_list(self) -> list[float]:
        return [round(self.x, 4), round(self.y, 4), round(self.z, 4)]

    @classmethod
    def from_list(cls, values) -> Vec3:
        x, y, z = values
        return cls(float(x), float(y), float(z))


# ---------------------------------------------------------------------------
# Orientation
# ---------------------------------------------------------------------------
@dataclass
class Quat:
    """Unit quaternion (x, y, z, w), identity by default."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    def rotate(self, v: Vec3) -> Vec3:
        """Apply this rotation to *v* (q * v * q^-1, expanded)."""
        qv = Vec3(self.x, self.y, self.z)
        t = qv.cross(v) * 2.0
        return v + t * self.w + qv.cross(t)

    @classmethod
    def from_list(cls, values) -> Quat:
        x, y, z, w = values
        return cls(float(x), float(y), float(z), float(w))


@dataclass
class Pose:
    """Tracked position + orientation (head, controller ray, grip)."""

    position: Vec3 = field(default_factory=Vec3)
    orientation: Quat = field(default_factory=Quat)

    def forward(self) -> Vec3:
        return self.orientation.rotate(Vec3(0.0, 0.0, -1.0))

    def right(self) -> Vec3:
        return self.orientation.rotate(Vec3(1.0, 0.0, 0.0))

    def up(self) -> Vec3:
        return self.orientation.rotate(Vec3(0.0, 1.0, 0.0))


# ---------------------------------------------------------------------------
# Application state
# ---------------------------------------------------------------------------
class AppState(Enum):
    INITIALIZING = "initializing"
    PROFILE_INPUT = "profile-input"
    ROOM_SELECTION = "room-selection"
    LOADING_ROOM = "loading-room"
    IN_ROOM = "in-room"
    SONG_SEARCH = "song-search"
    PLAYING_SONG = "playing-song"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Panels and buttons
# ---------------------------------------------------------------------------
class ButtonState(Enum):
    IDLE = "idle"
    HOVERED = "hovered"
    PRESSED = "pressed"


@dataclass
class Button:
    """
    A rectangular hit region on a panel.

    ``x`` / ``y`` are the centre in panel-local coordinates (metres);
    the button faces the same way as its panel.
    """

    id: str
    label: str
    x: float
    y: float
    width: float
    height: float
    on_activate: Callable[[], None]
    state: ButtonState = ButtonState.IDLE
    enabled: bool = True


@dataclass
class AnchorPose:
    """Panel placement: centre position and facing normal (towards the viewer)."""

    position: Vec3 = field(default_factory=Vec3)
    normal: Vec3 = field(default_factory=lambda: Vec3(0.0, 0.0, 1.0))


@dataclass
class Panel:
    id: str
    anchor: AnchorPose
    width: float
    height: float
    buttons: list[Button] = field(default_factory=list)
    visible: bool = False
    overlay: bool = False  # loading / error: untouched by hide_all()


# ---------------------------------------------------------------------------
# Domain records
# ---------------------------------------------------------------------------
def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass
class Profile:
    id: str
    display_name: str
    created_at: datetime
    last_active: datetime

    @classmethod
    def from_json(cls, data: dict) -> Profile:
        return cls(
            id=data["id"],
            display_name=data["displayName"],
            created_at=_parse_timestamp(data["createdAt"]),
            last_active=_parse_timestamp(data["lastActive"]),
        )


@dataclass(frozen=True)
class Song:
    id: str
    youtube_id: str
    title: str
    artist: str
    theme: str

    @classmethod
    def from_json(cls, data: dict) -> Song:
        return cls(
            id=data["id"],
            youtube_id=data["youtubeId"],
            title=data["title"],
            artist=data["artist"],
            theme=data["theme"],
        )

    @property
    def label(self) -> str:
        return f"{self.title} - {self.artist}"


# ---------------------------------------------------------------------------
# Room themes
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class RoomThemeConfig:
    theme: str
    display_name: str
    primary_color: str
    accent_color: str
    ambient_light: float


ROOM_THEMES: dict[str, RoomThemeConfig] = {
    "anime": RoomThemeConfig("anime", "Anime Tokyo Lounge", "#ff6b9d", "#c44569", 0.6),
    "kpop": RoomThemeConfig("kpop", "K-pop Seoul Studio", "#a55eea", "#8854d0", 0.7),
    "bollywood": RoomThemeConfig("bollywood", "Bollywood Mumbai Rooftop", "#f7b731", "#fa8231", 0.8),
    "hollywood": RoomThemeConfig("hollywood", "Hollywood LA Concert Hall", "#3867d6", "#2d98da", 0.5),
    "taylor-swift": RoomThemeConfig("taylor-swift", "Taylor Swift Broadway Stage", "#e056fd", "#be2edd", 0.65),
}


@dataclass
class RoomAnchors:
    """Where the loaded room wants the player, microphone and screen."""

    spawn: Vec3
    microphone: Vec3
    screen: Vec3


def default_anchors() -> RoomAnchors:
    return RoomAnchors(
        spawn=Vec3(0.0, 0.0, 2.0),
        microphone=Vec3(0.5, 1.0, 1.5),
        screen=Vec3(0.0, 2.0, -3.0),
    )
