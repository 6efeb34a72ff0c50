import pytest

from karaoke.input_router import FrameInput, InputRouter, MouseEvent, XRInputSource
from karaoke.models import AnchorPose, Button, ButtonState, Pose, Vec3
from karaoke.panels import PanelRegistry

EYE = Vec3(0.0, 1.5, 0.0)


@pytest.fixture()
def setup():
    registry = PanelRegistry()
    panel = registry.create_panel(
        "menu", AnchorPose(position=Vec3(0.0, 1.5, -2.0), normal=Vec3(0.0, 0.0, 1.0))
    )
    pressed = []
    button = Button("ok", "OK", 0.0, 0.0, 0.4, 0.2, lambda: pressed.append("ok"))
    registry.add_button(panel, button)
    registry.show("menu")
    return registry, InputRouter(registry), button, pressed


def controller(trigger, source_id="right", mode="tracked-pointer"):
    return XRInputSource(
        source_id=source_id,
        target_ray_mode=mode,
        ray_pose=Pose(position=EYE),
        grip_pose=Pose(position=EYE),
        trigger=trigger,
    )


def xr_frame(*sources):
    return FrameInput(xr_active=True, sources=list(sources))


CAMERA = Pose(position=EYE)


class TestXR:
    def test_press_edge_activates_once(self, setup):
        registry, router, button, pressed = setup

        router.route(xr_frame(controller(False)), CAMERA)
        assert button.state == ButtonState.HOVERED
        assert router.ray.visible and router.ray.hovering
        assert pressed == []

        edges = router.route(xr_frame(controller(True)), CAMERA)
        assert edges.pressed == {"right"}
        assert pressed == ["ok"]
        assert button.state == ButtonState.PRESSED

        router.route(xr_frame(controller(True)), CAMERA)
        assert pressed == ["ok"]

        edges = router.route(xr_frame(controller(False)), CAMERA)
        assert edges.released == {"right"}
        assert button.state == ButtonState.HOVERED

    def test_only_tracked_pointers_cast_rays(self, setup):
        registry, router, button, pressed = setup
        router.route(xr_frame(controller(True, mode="gaze")), CAMERA)
        assert pressed == []
        assert registry.hovered is None
        assert not router.ray.visible

    def test_vanished_controller_drops_out_of_snapshot(self, setup):
        registry, router, button, pressed = setup
        router.route(xr_frame(controller(True)), CAMERA)
        router.route(xr_frame(), CAMERA)
        router.route(xr_frame(controller(True)), CAMERA)
        assert pressed == ["ok", "ok"]

    def test_no_visible_panel_hides_ray_but_tracks_edges(self, setup):
        registry, router, button, pressed = setup
        registry.hide("menu")
        edges = router.route(xr_frame(controller(True)), CAMERA)
        assert edges.pressed == {"right"}
        assert not router.ray.visible
        assert pressed == []

    def test_trigger_held_through_observe_does_not_fire(self, setup):
        registry, router, button, pressed = setup
        router.observe(xr_frame(controller(True)))
        assert registry.hovered is None
        router.route(xr_frame(controller(True)), CAMERA)
        assert pressed == []


class TestDesktop:
    def test_click_activates_and_releases(self, setup):
        registry, router, button, pressed = setup
        router.route(FrameInput(mouse=[MouseEvent("click", 0.0, 0.0)]), CAMERA)
        assert pressed == ["ok"]
        assert button.state == ButtonState.HOVERED

    def test_move_only_hovers(self, setup):
        registry, router, button, pressed = setup
        router.route(FrameInput(mouse=[MouseEvent("move", 0.0, 0.0)]), CAMERA)
        assert pressed == []
        assert button.state == ButtonState.HOVERED

    def test_click_on_empty_space_does_nothing(self, setup):
        registry, router, button, pressed = setup
        router.route(FrameInput(mouse=[MouseEvent("click", 0.9, 0.9)]), CAMERA)
        assert pressed == []

    def test_desktop_frames_never_report_trigger_edges(self, setup):
        registry, router, button, pressed = setup
        edges = router.route(FrameInput(), CAMERA)
        assert edges.pressed == set() and edges.released == set()
