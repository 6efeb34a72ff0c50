"""
Application context and frame loop.

``build_context`` wires every component once; ``KaraokeApp`` serves the
browser bridge and ticks the flow controller at a fixed rate.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx
from websockets.asyncio.server import serve as ws_serve

from .bridge import BrowserBridge, build_snapshot
from .config import API_BASE_URL, API_TIMEOUT, BRIDGE_HOST, BRIDGE_PORT, ROOM_SETTLE_DELAY, TARGET_FPS
from .flow import AppFlowController
from .input_router import InputRouter
from .log import get_logger
from .panels import PanelRegistry
from .profile_service import LocalStorage, ProfileService
from .scene import HeadlessRenderer, RoomRenderer, SceneManager
from .song_catalog import SongCatalog
from .video import HeadlessVideoPlayer, VideoPlayer

logger = get_logger(__name__)


@dataclass
class AppContext:
    registry: PanelRegistry
    router: InputRouter
    scene: SceneManager
    video: VideoPlayer
    profiles: ProfileService
    catalog: SongCatalog
    flow: AppFlowController
    http: httpx.AsyncClient
    bridge: Optional[BrowserBridge] = None

    async def aclose(self) -> None:
        await self.flow.idle()
        await self.http.aclose()


def build_context(
    bridge: Optional[BrowserBridge] = None,
    http: Optional[httpx.AsyncClient] = None,
    storage: Optional[LocalStorage] = None,
    base_url: str = API_BASE_URL,
    settle_delay: float = ROOM_SETTLE_DELAY,
) -> AppContext:
    """
    Wire the client. Without a bridge the renderer and video player are
    headless stand-ins, which is what the tests use.
    """
    http = http or httpx.AsyncClient(timeout=API_TIMEOUT)
    registry = PanelRegistry()
    router = InputRouter(registry)
    renderer: RoomRenderer = bridge if bridge is not None else HeadlessRenderer()
    video: VideoPlayer = bridge if bridge is not None else HeadlessVideoPlayer()
    scene = SceneManager(renderer)
    profiles = ProfileService(client=http, storage=storage, base_url=base_url)
    catalog = SongCatalog(client=http, base_url=base_url)
    flow = AppFlowController(registry, router, scene, video, profiles, catalog, settle_delay=settle_delay)

    if bridge is not None:
        bridge.on_xr_unavailable = flow.show_unrecoverable

    return AppContext(
        registry=registry,
        router=router,
        scene=scene,
        video=video,
        profiles=profiles,
        catalog=catalog,
        flow=flow,
        http=http,
        bridge=bridge,
    )


class KaraokeApp:
    def __init__(
        self,
        context: AppContext,
        host: str = BRIDGE_HOST,
        port: int = BRIDGE_PORT,
        fps: int = TARGET_FPS,
    ) -> None:
        if context.bridge is None:
            raise ValueError("KaraokeApp needs a context built with a BrowserBridge")
        self.context = context
        self.bridge = context.bridge
        self.host = host
        self.port = port
        self.frame_time = 1.0 / fps
        self.running = False

    async def tick(self, delta: float) -> None:
        flow = self.context.flow
        flow.update(delta, self.bridge.take_frame())
        await self.bridge.send_snapshot(build_snapshot(flow))

    async def run(self) -> None:
        async with ws_serve(self.bridge.handler, self.host, self.port):
            print(f"[Bridge] Listening on ws://{self.host}:{self.port}")
            loop = asyncio.get_running_loop()
            startup = asyncio.create_task(self.context.flow.start())
            self.running = True
            last = loop.time()
            try:
                while self.running:
                    now = loop.time()
                    await self.tick(now - last)
                    last = now
                    await asyncio.sleep(max(0.0, self.frame_time - (loop.time() - now)))
            finally:
                await startup
                await self.context.aclose()

    def stop(self) -> None:
        self.running = False
