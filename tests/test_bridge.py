"""
Browser bridge: message parsing, command acks over a fake socket, and the
snapshot the page draws from.
"""

import asyncio
import json

import pytest

from conftest import BASE_URL
from karaoke.app import KaraokeApp, build_context
from karaoke.bridge import BrowserBridge, build_snapshot, parse_frame, parse_mouse, parse_pose
from karaoke.errors import ServiceError
from karaoke.models import AppState
from karaoke.video import VideoEvent


class QueueSocket:
    """Looks enough like a websockets connection for BrowserBridge.handler."""

    remote_address = ("127.0.0.1", 50000)

    def __init__(self):
        self.inbox = asyncio.Queue()
        self.sent = []

    async def send(self, message):
        self.sent.append(json.loads(message))

    def feed(self, payload):
        self.inbox.put_nowait(payload if isinstance(payload, str) else json.dumps(payload))

    def close(self):
        self.inbox.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self):
        message = await self.inbox.get()
        if message is None:
            raise StopAsyncIteration
        return message

    def commands(self):
        return [m for m in self.sent if m["type"] == "command"]


async def connected(bridge):
    """Start the handler and wait until it has sent its status message."""
    socket = QueueSocket()
    task = asyncio.create_task(bridge.handler(socket))
    while not socket.sent:
        await asyncio.sleep(0)
    return socket, task


async def ack_next(socket, ok=True, error=None):
    while not socket.commands():
        await asyncio.sleep(0)
    command = socket.commands()[-1]
    socket.feed({"type": "ack", "id": command["id"], "ok": ok, "error": error})
    return command


# ===========================================================================
# Parsing
# ===========================================================================

class TestParsing:
    def test_pose(self):
        pose = parse_pose({"position": [1, 2, 3], "orientation": [0, 0, 0, 1]})
        assert pose.position.to_list() == [1.0, 2.0, 3.0]
        assert parse_pose(None) is None
        assert parse_pose({"position": "nope"}) is None

    def test_mouse_from_pixels(self):
        event = parse_mouse({"kind": "click", "px": 400, "py": 300, "width": 800, "height": 600})
        assert event.kind == "click"
        assert (event.x, event.y) == pytest.approx((0.0, 0.0))

    def test_mouse_from_ndc(self):
        event = parse_mouse({"x": -1, "y": 1})
        assert event.kind == "move"
        assert (event.x, event.y) == (-1.0, 1.0)

    def test_bad_mouse_is_dropped(self):
        assert parse_mouse({"kind": "click"}) is None
        assert parse_mouse({"px": 1, "py": 1, "width": 0, "height": 0}) is None

    def test_frame(self):
        frame = parse_frame({
            "type": "frame",
            "xr": True,
            "head": {"position": [0, 1.6, 0]},
            "sources": [{"id": "right", "trigger": True, "ray": {"position": [0, 1, 0]}}],
            "mouse": [{"x": 0, "y": 0}, {"kind": "click"}],
            "keys": ["a", "Enter"],
        })
        assert frame.xr_active
        assert frame.head.position.y == pytest.approx(1.6)
        assert frame.sources[0].source_id == "right"
        assert frame.sources[0].trigger
        assert frame.sources[0].grip_pose is None
        assert len(frame.mouse) == 1
        assert frame.keys == ["a", "Enter"]


# ===========================================================================
# Commands
# ===========================================================================

class TestCommands:
    def test_not_connected(self):
        bridge = BrowserBridge()
        with pytest.raises(ServiceError, match="not connected"):
            asyncio.run(bridge.command("video.play"))

    def test_ack_resolves_command(self):
        async def scenario():
            bridge = BrowserBridge(ack_timeout=1.0)
            socket, task = await connected(bridge)
            pending = asyncio.create_task(bridge.load("abc123"))
            command = await ack_next(socket)
            await pending
            socket.close()
            await task
            return socket, command

        socket, command = asyncio.run(scenario())
        assert socket.sent[0]["type"] == "status"
        assert command["command"] == "video.load"
        assert command["payload"] == {"videoId": "abc123"}

    def test_failed_ack_raises(self):
        async def scenario():
            bridge = BrowserBridge(ack_timeout=1.0)
            socket, task = await connected(bridge)
            pending = asyncio.create_task(bridge.unload_room())
            await ack_next(socket, ok=False, error="No room to unload")
            try:
                await pending
            finally:
                socket.close()
                await task

        with pytest.raises(ServiceError, match="No room to unload"):
            asyncio.run(scenario())

    def test_missing_ack_times_out(self):
        async def scenario():
            bridge = BrowserBridge(ack_timeout=0.01)
            socket, task = await connected(bridge)
            try:
                await bridge.play()
            finally:
                socket.close()
                await task

        with pytest.raises(ServiceError, match="did not answer video.play"):
            asyncio.run(scenario())

    def test_disconnect_fails_pending_commands(self):
        async def scenario():
            bridge = BrowserBridge(ack_timeout=5.0)
            socket, task = await connected(bridge)
            pending = asyncio.create_task(bridge.stop())
            while not socket.commands():
                await asyncio.sleep(0)
            socket.close()
            await task
            assert not bridge.connected
            await pending

        with pytest.raises(ServiceError, match="Renderer disconnected"):
            asyncio.run(scenario())

    def test_room_load_payload(self):
        async def scenario():
            ctx = build_context(bridge=BrowserBridge(ack_timeout=1.0), base_url=BASE_URL)
            socket, task = await connected(ctx.bridge)
            pending = asyncio.create_task(ctx.scene.load_room("anime"))
            command = await ack_next(socket)
            await pending
            socket.close()
            await task
            await ctx.aclose()
            return command

        command = asyncio.run(scenario())
        assert command["command"] == "room.load"
        assert command["payload"]["theme"] == "anime"
        assert set(command["payload"]) >= {"primaryColor", "spawn", "microphone", "screen"}


# ===========================================================================
# Inbound events
# ===========================================================================

class TestInbound:
    def test_non_json_is_ignored(self):
        async def scenario():
            bridge = BrowserBridge()
            socket, task = await connected(bridge)
            socket.feed("not json")
            socket.feed({"type": "frame", "keys": ["a"]})
            socket.close()
            await task
            return bridge

        bridge = asyncio.run(scenario())
        assert not bridge.connected
        assert bridge.take_frame().keys == ["a"]

    @pytest.mark.parametrize("payload", [
        {"type": "frame", "sources": None},
        {"type": "frame", "head": [0, 1.6, 0]},
        {"type": "frame", "mouse": ["click"]},
        {"type": "frame", "sources": ["left", {"id": "right", "ray": "up"}], "keys": [1, "a"]},
    ])
    def test_malformed_frame_fields_read_as_missing(self, payload):
        bridge = BrowserBridge()
        bridge.handle_message(payload)
        frame = bridge.take_frame()
        assert frame.head is None
        assert frame.mouse == []
        assert all(s.ray_pose is None for s in frame.sources)
        assert all(isinstance(k, str) for k in frame.keys)

    def test_bad_frame_does_not_drop_connection(self, monkeypatch):
        async def scenario():
            bridge = BrowserBridge(ack_timeout=1.0)
            socket, task = await connected(bridge)
            monkeypatch.setattr("karaoke.bridge.parse_frame", boom)
            socket.feed({"type": "frame"})
            pending = asyncio.create_task(bridge.play())
            await ack_next(socket)
            await pending
            connected_after = bridge.connected
            socket.close()
            await task
            return connected_after

        def boom(data):
            raise RuntimeError("bad frame")

        assert asyncio.run(scenario())

    def test_video_events_reach_listener(self):
        bridge = BrowserBridge()
        seen = []
        bridge.set_listener(lambda event, detail: seen.append((event, detail)))
        bridge.handle_message({"type": "video", "event": "playing"})
        bridge.handle_message({"type": "video", "event": "error", "detail": "150"})
        bridge.handle_message({"type": "video", "event": "bogus"})
        assert seen == [(VideoEvent.PLAYING, None), (VideoEvent.ERROR, "150")]

    def test_xr_unavailable_shows_blocking_error(self):
        ctx = build_context(bridge=BrowserBridge(), base_url=BASE_URL)
        ctx.bridge.handle_message({"type": "xr-unavailable", "reason": "WebXR not supported"})
        flow = ctx.flow
        assert flow.state == AppState.ERROR
        assert flow.error_display.message == "WebXR not supported"
        assert not flow.error_display.retry_button.enabled
        assert not flow.error_display.dismiss_button.enabled
        asyncio.run(ctx.http.aclose())

    def test_take_frame_accumulates_between_ticks(self):
        bridge = BrowserBridge()
        bridge.handle_message({"type": "frame", "mouse": [{"kind": "click", "x": 0, "y": 0}], "keys": ["a"]})
        bridge.handle_message({"type": "frame", "xr": True, "keys": ["b"]})

        frame = bridge.take_frame()
        assert frame.xr_active
        assert [m.kind for m in frame.mouse] == ["click"]
        assert frame.keys == ["a", "b"]

        again = bridge.take_frame()
        assert again.xr_active
        assert again.mouse == []
        assert again.keys == []


# ===========================================================================
# Snapshots
# ===========================================================================

class TestSnapshot:
    def test_room_selection_snapshot(self, make_http, storage):
        ctx = build_context(http=make_http(), storage=storage, base_url=BASE_URL)
        ctx.flow.show_room_selection()
        snapshot = build_snapshot(ctx.flow)

        assert snapshot["type"] == "ui"
        assert snapshot["state"] == "room-selection"
        assert [p["id"] for p in snapshot["panels"]] == ["room-selection"]
        buttons = snapshot["panels"][0]["buttons"]
        assert buttons[0]["id"] == "room-anime"
        assert buttons[0]["state"] == "idle"
        assert snapshot["microphone"] is None
        json.dumps(snapshot)
        asyncio.run(ctx.http.aclose())

    def test_tick_sends_snapshot_once_per_change(self, make_http, storage):
        async def scenario():
            ctx = build_context(
                bridge=BrowserBridge(), http=make_http(), storage=storage, base_url=BASE_URL
            )
            app = KaraokeApp(ctx)
            socket, task = await connected(ctx.bridge)
            ctx.flow.show_room_selection()
            await app.tick(0.016)
            await app.tick(0.016)
            socket.close()
            await task
            await ctx.aclose()
            return socket

        socket = asyncio.run(scenario())
        snapshots = [m for m in socket.sent if m["type"] == "ui"]
        assert len(snapshots) == 1
        assert snapshots[0]["state"] == "room-selection"

    def test_app_requires_bridge(self, make_http, storage):
        ctx = build_context(http=make_http(), storage=storage, base_url=BASE_URL)
        with pytest.raises(ValueError):
            KaraokeApp(ctx)
        asyncio.run(ctx.http.aclose())
