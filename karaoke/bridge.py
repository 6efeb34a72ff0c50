"""
Browser Bridge — WebSocket link to the page that renders the scene.

The page streams one JSON message per animation frame and gets UI
snapshots back. It also executes renderer commands on our behalf:

  IN  {"type": "frame", "xr": bool, "head": pose, "sources": [...],
       "mouse": [...], "keys": [...]}
  IN  {"type": "ack", "id": "...", "ok": bool, "error": "..."}
  IN  {"type": "video", "event": "playing" | ..., "detail": "..."}
  IN  {"type": "xr-unavailable", "reason": "..."}
  OUT {"type": "status", "message": "..."}
  OUT {"type": "ui", "state": "...", "panels": [...], "ray": {...}, ...}
  OUT {"type": "command", "id": "...", "command": "room.load", "payload": {...}}

Poses are ``{"position": [x, y, z], "orientation": [x, y, z, w]}``.

The bridge is both the RoomRenderer and the VideoPlayer for the flow
controller: each command waits for its ack, and a missing or failed ack
becomes a ServiceError.
"""

from __future__ import annotations

import asyncio
import itertools
import json
from typing import Any, Callable, Optional

import websockets

from .config import BRIDGE_ACK_TIMEOUT
from .errors import ServiceError, UnrecoverableError
from .geometry import pixels_to_ndc
from .input_router import FrameInput, MouseEvent, XRInputSource
from .log import get_logger
from .models import Pose, Quat, RoomAnchors, RoomThemeConfig, Vec3
from .video import VideoListener, parse_video_event

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Inbound parsing
# ---------------------------------------------------------------------------
# Malformed pieces of a frame read as missing rather than failing the frame.

def _list_field(data: dict, key: str) -> list:
    value = data.get(key)
    return value if isinstance(value, list) else []


def parse_pose(data: Any) -> Optional[Pose]:
    if not isinstance(data, dict) or not data:
        return None
    try:
        position = Vec3.from_list(data.get("position", [0.0, 0.0, 0.0]))
        orientation = Quat.from_list(data.get("orientation", [0.0, 0.0, 0.0, 1.0]))
    except (TypeError, ValueError) as e:
        logger.debug("Bad pose %r: %s", data, e)
        return None
    return Pose(position=position, orientation=orientation)


def parse_mouse(data: Any) -> Optional[MouseEvent]:
    if not isinstance(data, dict):
        return None
    kind = str(data.get("kind", "move"))
    try:
        if "px" in data:
            x, y = pixels_to_ndc(
                float(data["px"]), float(data["py"]),
                float(data["width"]), float(data["height"]),
            )
        else:
            x, y = float(data["x"]), float(data["y"])
    except (KeyError, TypeError, ValueError, ZeroDivisionError):
        return None
    return MouseEvent(kind=kind, x=x, y=y)


def parse_source(data: Any, index: int) -> Optional[XRInputSource]:
    if not isinstance(data, dict):
        return None
    return XRInputSource(
        source_id=str(data.get("id", index)),
        target_ray_mode=str(data.get("mode", "tracked-pointer")),
        ray_pose=parse_pose(data.get("ray")),
        grip_pose=parse_pose(data.get("grip")),
        trigger=bool(data.get("trigger", False)),
    )


def parse_frame(data: dict) -> FrameInput:
    sources = [
        s for s in (parse_source(e, i) for i, e in enumerate(_list_field(data, "sources")))
        if s is not None
    ]
    mouse = [m for m in (parse_mouse(e) for e in _list_field(data, "mouse")) if m is not None]
    keys = [k for k in _list_field(data, "keys") if isinstance(k, str)]
    return FrameInput(
        xr_active=bool(data.get("xr", False)),
        head=parse_pose(data.get("head")),
        sources=sources,
        mouse=mouse,
        keys=keys,
    )


# ---------------------------------------------------------------------------
# Outbound snapshot
# ---------------------------------------------------------------------------
def build_snapshot(flow) -> dict:
    """Everything the page needs to draw the UI for this frame."""
    views = flow.views
    panels = []
    for panel in flow.registry.visible_panels():
        view = views.get(panel.id)
        panels.append({
            "id": panel.id,
            "overlay": panel.overlay,
            "position": panel.anchor.position.to_list(),
            "normal": panel.anchor.normal.to_list(),
            "width": panel.width,
            "height": panel.height,
            "buttons": [
                {
                    "id": b.id,
                    "label": b.label,
                    "x": round(b.x, 4),
                    "y": round(b.y, 4),
                    "width": b.width,
                    "height": b.height,
                    "state": b.state.value,
                    "enabled": b.enabled,
                }
                for b in panel.buttons
            ],
            "content": view.describe() if view is not None else {},
        })

    ray = flow.router.ray
    mic = flow.scene.microphone
    return {
        "type": "ui",
        "state": flow.state.value,
        "playing": flow.is_playing,
        "room": flow.scene.current_theme,
        "panels": panels,
        "ray": {
            "visible": ray.visible,
            "origin": ray.origin.to_list(),
            "direction": ray.direction.to_list(),
            "hovering": ray.hovering,
        },
        "microphone": (
            {"position": mic.position.to_list(), "grabbed": mic.is_grabbed}
            if mic is not None else None
        ),
    }


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------
class BrowserBridge:
    def __init__(self, ack_timeout: float = BRIDGE_ACK_TIMEOUT) -> None:
        self.ack_timeout = ack_timeout
        self.on_xr_unavailable: Optional[Callable[[UnrecoverableError], None]] = None
        self._websocket = None
        self._pending: dict[str, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._listener: Optional[VideoListener] = None
        self._frame = FrameInput()
        self._mouse: list[MouseEvent] = []
        self._keys: list[str] = []
        self._last_snapshot: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self._websocket is not None

    # ── Connection ───────────────────────────────────────────────────

    async def handler(self, websocket) -> None:
        """Serve one page connection. A new page replaces the old one."""
        logger.info("Page connected: %s", websocket.remote_address)
        self._websocket = websocket
        self._last_snapshot = None
        await websocket.send(json.dumps({"type": "status", "message": "Connected to KaraokeVerse"}))

        try:
            async for message in websocket:
                try:
                    data = json.loads(message)
                except (json.JSONDecodeError, TypeError):
                    logger.debug("Ignoring non-JSON message")
                    continue
                if not isinstance(data, dict):
                    continue
                try:
                    self.handle_message(data)
                except Exception:
                    logger.exception("Dropped bad %r message", data.get("type"))
        except websockets.exceptions.ConnectionClosed:
            pass
        finally:
            logger.info("Page disconnected: %s", websocket.remote_address)
            if self._websocket is websocket:
                self._websocket = None
                self._frame = FrameInput()
                self._fail_pending("Renderer disconnected")

    def _fail_pending(self, message: str) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(ServiceError(message))
        self._pending.clear()

    # ── Inbound ──────────────────────────────────────────────────────

    def handle_message(self, data: dict) -> None:
        kind = data.get("type")
        if kind == "frame":
            frame = parse_frame(data)
            self._mouse.extend(frame.mouse)
            self._keys.extend(frame.keys)
            self._frame = frame
        elif kind == "ack":
            self._resolve_ack(data)
        elif kind == "video":
            event = parse_video_event(str(data.get("event", "")))
            if event is not None and self._listener is not None:
                self._listener(event, data.get("detail"))
        elif kind == "xr-unavailable":
            reason = str(data.get("reason") or "WebXR is not available on this device")
            logger.warning("XR unavailable: %s", reason)
            if self.on_xr_unavailable is not None:
                self.on_xr_unavailable(UnrecoverableError(reason))
        else:
            logger.debug("Unknown message type: %r", kind)

    def _resolve_ack(self, data: dict) -> None:
        future = self._pending.pop(str(data.get("id")), None)
        if future is None or future.done():
            return
        if data.get("ok", True):
            future.set_result(data.get("result"))
        else:
            future.set_exception(ServiceError(str(data.get("error") or "Renderer command failed")))

    def take_frame(self) -> FrameInput:
        """
        Latest poses plus every mouse event and key press since the last
        call, so discrete input between two ticks is not lost.
        """
        latest = self._frame
        frame = FrameInput(
            xr_active=latest.xr_active,
            head=latest.head,
            sources=latest.sources,
            mouse=self._mouse,
            keys=self._keys,
        )
        self._mouse = []
        self._keys = []
        return frame

    # ── Outbound ─────────────────────────────────────────────────────

    async def _send(self, payload: dict) -> None:
        if self._websocket is None:
            raise ServiceError("Renderer not connected")
        try:
            await self._websocket.send(json.dumps(payload))
        except websockets.exceptions.ConnectionClosed as e:
            raise ServiceError("Renderer disconnected") from e

    async def send_snapshot(self, snapshot: dict) -> None:
        """Send *snapshot* if a page is connected and something changed."""
        if self._websocket is None:
            return
        encoded = json.dumps(snapshot)
        if encoded == self._last_snapshot:
            return
        self._last_snapshot = encoded
        try:
            await self._websocket.send(encoded)
        except websockets.exceptions.ConnectionClosed:
            pass

    async def command(self, name: str, **payload: Any) -> Any:
        command_id = str(next(self._ids))
        future = asyncio.get_running_loop().create_future()
        self._pending[command_id] = future
        try:
            await self._send({"type": "command", "id": command_id, "command": name, "payload": payload})
            return await asyncio.wait_for(future, self.ack_timeout)
        except asyncio.TimeoutError as e:
            raise ServiceError(f"Renderer did not answer {name}") from e
        finally:
            self._pending.pop(command_id, None)

    # ── RoomRenderer ─────────────────────────────────────────────────

    async def load_room(self, config: RoomThemeConfig, anchors: RoomAnchors) -> None:
        await self.command(
            "room.load",
            theme=config.theme,
            displayName=config.display_name,
            primaryColor=config.primary_color,
            accentColor=config.accent_color,
            ambientLight=config.ambient_light,
            spawn=anchors.spawn.to_list(),
            microphone=anchors.microphone.to_list(),
            screen=anchors.screen.to_list(),
        )

    async def unload_room(self) -> None:
        await self.command("room.unload")

    # ── VideoPlayer ──────────────────────────────────────────────────

    def set_listener(self, listener: Optional[VideoListener]) -> None:
        self._listener = listener

    async def load(self, video_id: str) -> None:
        await self.command("video.load", videoId=video_id)

    async def play(self) -> None:
        await self.command("video.play")

    async def pause(self) -> None:
        await self.command("video.pause")

    async def stop(self) -> None:
        await self.command("video.stop")
