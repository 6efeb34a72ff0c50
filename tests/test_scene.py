import asyncio

import pytest

from karaoke.input_router import TriggerEdges, XRInputSource
from karaoke.models import Pose, Vec3
from karaoke.scene import HeadlessRenderer, Microphone, SceneManager
from karaoke.video import HeadlessVideoPlayer, VideoEvent, parse_video_event, playing_after

MIC_SPAWN = Vec3(0.5, 1.0, 1.5)


def hand(source_id, position):
    return XRInputSource(source_id=source_id, grip_pose=Pose(position=position))


class TestSceneManager:
    def test_load_room_moves_camera_to_spawn_at_eye_height(self):
        renderer = HeadlessRenderer()
        scene = SceneManager(renderer)
        asyncio.run(scene.load_room("kpop"))

        assert scene.current_theme == "kpop"
        assert renderer.loaded == "kpop"
        assert scene.camera.position.to_list() == [0.0, 1.6, 2.0]
        assert scene.microphone.position.to_list() == [0.5, 1.0, 1.5]

    def test_unknown_theme(self):
        scene = SceneManager(HeadlessRenderer())
        with pytest.raises(ValueError):
            asyncio.run(scene.load_room("polka"))
        assert scene.current_room is None

    def test_loading_a_second_room_replaces_the_first(self):
        renderer = HeadlessRenderer()
        scene = SceneManager(renderer)

        async def scenario():
            await scene.load_room("anime")
            await scene.load_room("hollywood")

        asyncio.run(scenario())
        assert renderer.history == ["anime", "hollywood"]
        assert scene.current_theme == "hollywood"

    def test_unload(self):
        renderer = HeadlessRenderer()
        scene = SceneManager(renderer)

        async def scenario():
            await scene.load_room("anime")
            await scene.unload_room()
            await scene.unload_room()

        asyncio.run(scenario())
        assert scene.current_room is None
        assert scene.microphone is None
        assert renderer.loaded is None


class TestMicrophone:
    def test_grab_requires_range(self):
        mic = Microphone(MIC_SPAWN)
        far = Vec3(0.5, 1.0, 2.0)  # 0.5 m away
        mic.update([hand("left", far)], TriggerEdges(pressed={"left"}))
        assert not mic.is_grabbed

        near = Vec3(0.5, 1.2, 1.5)
        mic.update([hand("left", near)], TriggerEdges(pressed={"left"}))
        assert mic.is_grabbed_by("left")
        assert mic.position.to_list() == [0.5, 1.2, 1.5]

    def test_follows_then_returns_to_spawn(self):
        mic = Microphone(MIC_SPAWN)
        mic.update([hand("right", MIC_SPAWN)], TriggerEdges(pressed={"right"}))

        moved = Vec3(0.0, 1.5, 0.5)
        mic.update([hand("right", moved)], TriggerEdges())
        assert mic.position.to_list() == moved.to_list()

        # the other hand letting go does nothing
        mic.update([hand("right", moved), hand("left", moved)], TriggerEdges(released={"left"}))
        assert mic.is_grabbed

        mic.update([hand("right", moved)], TriggerEdges(released={"right"}))
        assert not mic.is_grabbed
        assert mic.position.to_list() == MIC_SPAWN.to_list()

    def test_second_hand_cannot_steal(self):
        mic = Microphone(MIC_SPAWN)
        mic.update(
            [hand("right", MIC_SPAWN), hand("left", MIC_SPAWN)],
            TriggerEdges(pressed={"right", "left"}),
        )
        grabber = mic.grabbed_by
        mic.update([hand("right", MIC_SPAWN), hand("left", MIC_SPAWN)], TriggerEdges())
        assert mic.grabbed_by == grabber

    def test_vanished_controller_releases(self):
        mic = Microphone(MIC_SPAWN)
        mic.update([hand("right", MIC_SPAWN)], TriggerEdges(pressed={"right"}))
        mic.update([], TriggerEdges())
        assert not mic.is_grabbed


class TestVideo:
    def test_playing_flag(self):
        assert playing_after(VideoEvent.PLAYING, False) is True
        assert playing_after(VideoEvent.BUFFERING, True) is True
        assert playing_after(VideoEvent.READY, False) is False
        assert playing_after(VideoEvent.PAUSED, True) is False
        assert playing_after(VideoEvent.ENDED, True) is False
        assert playing_after(VideoEvent.ERROR, True) is False

    def test_parse_video_event(self):
        assert parse_video_event("buffering") == VideoEvent.BUFFERING
        assert parse_video_event("exploded") is None

    def test_headless_player_reports_state(self):
        player = HeadlessVideoPlayer()
        seen = []
        player.set_listener(lambda event, detail: seen.append(event))

        async def scenario():
            await player.load("abc")
            await player.pause()
            await player.stop()
            await player.stop()

        asyncio.run(scenario())
        assert seen == [VideoEvent.READY, VideoEvent.PLAYING, VideoEvent.PAUSED, VideoEvent.ENDED]
        assert player.calls[0] == ("load", "abc")
