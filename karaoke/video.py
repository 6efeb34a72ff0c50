"""
Video player port.

The embedded player lives in the rendering page; Python only drives it
(load / play / pause / stop) and listens for its state changes.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Protocol

from .log import get_logger

logger = get_logger(__name__)


class VideoEvent(Enum):
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"
    BUFFERING = "buffering"
    ERROR = "error"


# (event, detail) where detail is the player's error text, if any
VideoListener = Callable[[VideoEvent, Optional[str]], None]


def parse_video_event(name: str) -> Optional[VideoEvent]:
    try:
        return VideoEvent(name)
    except ValueError:
        logger.warning("Unknown video event: %r", name)
        return None


def playing_after(event: VideoEvent, was_playing: bool) -> bool:
    """Playback flag after *event*; ready and buffering leave it unchanged."""
    if event == VideoEvent.PLAYING:
        return True
    if event in (VideoEvent.PAUSED, VideoEvent.ENDED, VideoEvent.ERROR):
        return False
    return was_playing


class VideoPlayer(Protocol):
    def set_listener(self, listener: Optional[VideoListener]) -> None: ...

    async def load(self, video_id: str) -> None: ...

    async def play(self) -> None: ...

    async def pause(self) -> None: ...

    async def stop(self) -> None: ...


class HeadlessVideoPlayer:
    """
    Player with no screen attached. Records what it was asked to do and
    reports the state changes a real player would.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, Optional[str]]] = []
        self.current_video: Optional[str] = None
        self._listener: Optional[VideoListener] = None

    def set_listener(self, listener: Optional[VideoListener]) -> None:
        self._listener = listener

    def emit(self, event: VideoEvent, detail: Optional[str] = None) -> None:
        if self._listener is not None:
            self._listener(event, detail)

    async def load(self, video_id: str) -> None:
        self.calls.append(("load", video_id))
        self.current_video = video_id
        self.emit(VideoEvent.READY)
        self.emit(VideoEvent.PLAYING)

    async def play(self) -> None:
        self.calls.append(("play", None))
        if self.current_video:
            self.emit(VideoEvent.PLAYING)

    async def pause(self) -> None:
        self.calls.append(("pause", None))
        if self.current_video:
            self.emit(VideoEvent.PAUSED)

    async def stop(self) -> None:
        self.calls.append(("stop", None))
        if self.current_video:
            self.current_video = None
            self.emit(VideoEvent.ENDED)
