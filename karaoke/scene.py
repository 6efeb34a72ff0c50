"""
Scene — themed rooms, the camera rig and the grabbable microphone.

Building and decorating the room is the renderer's job; this module keeps
track of which room is loaded, where its anchors are, and where the
microphone is.
"""

from __future__ import annotations

from typing import Optional, Protocol

from .config import EYE_HEIGHT, MIC_GRAB_DISTANCE
from .input_router import TriggerEdges, XRInputSource
from .log import get_logger
from .models import ROOM_THEMES, Pose, RoomAnchors, RoomThemeConfig, Vec3, default_anchors

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Renderer port
# ---------------------------------------------------------------------------
class RoomRenderer(Protocol):
    async def load_room(self, config: RoomThemeConfig, anchors: RoomAnchors) -> None: ...

    async def unload_room(self) -> None: ...


class HeadlessRenderer:
    """Renderer with nothing to draw; remembers the loaded theme."""

    def __init__(self) -> None:
        self.loaded: Optional[str] = None
        self.history: list[str] = []

    async def load_room(self, config: RoomThemeConfig, anchors: RoomAnchors) -> None:
        self.loaded = config.theme
        self.history.append(config.theme)

    async def unload_room(self) -> None:
        self.loaded = None


# ---------------------------------------------------------------------------
# Microphone
# ---------------------------------------------------------------------------
class Microphone:
    def __init__(self, spawn: Vec3) -> None:
        self.spawn = Vec3(spawn.x, spawn.y, spawn.z)
        self.position = Vec3(spawn.x, spawn.y, spawn.z)
        self.grabbed_by: Optional[str] = None

    @property
    def is_grabbed(self) -> bool:
        return self.grabbed_by is not None

    def within_grab_range(self, point: Vec3) -> bool:
        return self.position.distance_to(point) <= MIC_GRAB_DISTANCE

    def is_grabbed_by(self, source_id: str) -> bool:
        return self.grabbed_by == source_id

    def grab(self, source_id: str) -> None:
        if self.is_grabbed:
            return
        self.grabbed_by = source_id
        logger.info("Microphone grabbed by %s", source_id)

    def release(self) -> None:
        if not self.is_grabbed:
            return
        self.grabbed_by = None
        self.position = Vec3(self.spawn.x, self.spawn.y, self.spawn.z)
        logger.info("Microphone released, back at spawn")

    def follow(self, point: Vec3) -> None:
        if self.is_grabbed:
            self.position = Vec3(point.x, point.y, point.z)

    def update(self, sources: list[XRInputSource], edges: TriggerEdges) -> None:
        """Apply one frame of controller input: grab, follow, release."""
        present = set()
        for source in sources:
            present.add(source.source_id)
            if source.source_id in edges.released and self.is_grabbed_by(source.source_id):
                self.release()
            if source.grip_pose is None:
                continue
            grip = source.grip_pose.position
            if (
                source.source_id in edges.pressed
                and not self.is_grabbed
                and self.within_grab_range(grip)
            ):
                self.grab(source.source_id)
            if self.is_grabbed_by(source.source_id):
                self.follow(grip)

        # Controller vanished mid-grab
        if self.grabbed_by is not None and self.grabbed_by not in present:
            self.release()


# ---------------------------------------------------------------------------
# Scene manager
# ---------------------------------------------------------------------------
class SceneManager:
    def __init__(self, renderer: RoomRenderer) -> None:
        self.renderer = renderer
        self.camera = Pose(position=Vec3(0.0, EYE_HEIGHT, 0.0))
        self.current_room: Optional[RoomThemeConfig] = None
        self.anchors: Optional[RoomAnchors] = None
        self.microphone: Optional[Microphone] = None

    @property
    def current_theme(self) -> Optional[str]:
        return self.current_room.theme if self.current_room else None

    async def load_room(self, theme: str) -> None:
        config = ROOM_THEMES.get(theme)
        if config is None:
            raise ValueError(f"Unknown room theme: {theme}")

        logger.info("Loading room: %s", theme)
        if self.current_room is not None:
            await self.unload_room()

        anchors = default_anchors()
        await self.renderer.load_room(config, anchors)

        self.current_room = config
        self.anchors = anchors
        spawn = Vec3(anchors.spawn.x, EYE_HEIGHT, anchors.spawn.z)
        self.camera = Pose(position=spawn, orientation=self.camera.orientation)
        self.microphone = Microphone(anchors.microphone)
        logger.info("Room loaded: %s", config.display_name)

    async def unload_room(self) -> None:
        if self.current_room is None:
            logger.info("No room to unload")
            return
        logger.info("Unloading room: %s", self.current_room.theme)
        self.microphone = None
        self.anchors = None
        self.current_room = None
        await self.renderer.unload_room()

    def update_camera(self, head: Optional[Pose]) -> None:
        if head is not None:
            self.camera = head
