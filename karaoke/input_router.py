"""
Input Router — turns VR controllers or the desktop mouse into one
"pointer ray + activate edge" contract for the panel registry.

VR: the ray comes from the first tracked-pointer controller's target-ray
pose. Trigger edges are found by diffing this frame's snapshot
``{source_id: pressed}`` against the previous frame's. Controllers can
appear and disappear between frames; a source missing from the snapshot
simply drops out.

Desktop: the ray is approximated from the camera through the mouse
position. Clicks are discrete, so a click is a press and a release in one.

Only one modality is routed per frame, picked by whether an XR session is
active.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .config import TRACKED_POINTER
from .geometry import desktop_ray
from .log import get_logger
from .models import Pose, Vec3
from .panels import PanelRegistry

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Frame input
# ---------------------------------------------------------------------------
@dataclass
class XRInputSource:
    """One tracked controller as seen this frame."""

    source_id: str
    target_ray_mode: str = TRACKED_POINTER
    ray_pose: Optional[Pose] = None
    grip_pose: Optional[Pose] = None
    trigger: bool = False


@dataclass
class MouseEvent:
    kind: str  # "move" | "click"
    x: float   # normalized device coords, -1..1
    y: float


@dataclass
class FrameInput:
    """Everything the rendering page reported for one frame."""

    xr_active: bool = False
    head: Optional[Pose] = None
    sources: list[XRInputSource] = field(default_factory=list)
    mouse: list[MouseEvent] = field(default_factory=list)
    keys: list[str] = field(default_factory=list)


@dataclass
class TriggerEdges:
    pressed: set[str] = field(default_factory=set)
    released: set[str] = field(default_factory=set)


@dataclass
class RayVisual:
    """What the page should draw for the pointer ray."""

    visible: bool = False
    origin: Vec3 = field(default_factory=Vec3)
    direction: Vec3 = field(default_factory=lambda: Vec3(0.0, 0.0, -1.0))
    hovering: bool = False


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------
class InputRouter:
    def __init__(self, registry: PanelRegistry) -> None:
        self.registry = registry
        self.ray = RayVisual()
        self._previous: dict[str, bool] = {}

    # ── Snapshot diff ────────────────────────────────────────────────

    def _diff(self, sources: list[XRInputSource]) -> TriggerEdges:
        current = {s.source_id: s.trigger for s in sources}
        edges = TriggerEdges()
        for source_id, pressed in current.items():
            was = self._previous.get(source_id, False)
            if pressed and not was:
                edges.pressed.add(source_id)
            elif was and not pressed:
                edges.released.add(source_id)
        self._previous = current
        return edges

    def observe(self, frame: FrameInput) -> TriggerEdges:
        """
        Track trigger state without routing anything to the panels.

        Used while input is suppressed (loading overlay) so a trigger held
        through the suppression does not fire when it ends.
        """
        self.registry.clear_hover()
        self.ray.visible = False
        if not frame.xr_active:
            self._previous = {}
            return TriggerEdges()
        return self._diff(frame.sources)

    # ── Routing ──────────────────────────────────────────────────────

    def route(self, frame: FrameInput, camera: Pose) -> TriggerEdges:
        if frame.xr_active:
            return self.route_xr(frame.sources)
        self._previous = {}
        self.route_mouse(frame.mouse, camera)
        return TriggerEdges()

    def route_xr(self, sources: list[XRInputSource]) -> TriggerEdges:
        edges = self._diff(sources)

        if not self.registry.has_visible_panel():
            self.ray.visible = False
            return edges

        for source in sources:
            if source.target_ray_mode != TRACKED_POINTER:
                continue
            if source.ray_pose is None:
                logger.warning("Controller %s has no target-ray pose", source.source_id)
                continue

            origin = source.ray_pose.position
            direction = source.ray_pose.forward()
            hovered = self.registry.hit_test(origin, direction)
            self._update_ray(origin, direction, hovered is not None)

            if source.source_id in edges.pressed:
                self.registry.activate_hovered()
            if source.source_id in edges.released:
                self.registry.release()
            break
        else:
            if sources:
                logger.debug("Controllers present but none are %s", TRACKED_POINTER)

        return edges

    def route_mouse(self, events: list[MouseEvent], camera: Pose) -> None:
        self.ray.visible = False
        if not self.registry.has_visible_panel():
            return
        for event in events:
            origin, direction = desktop_ray(camera, event.x, event.y)
            hovered = self.registry.hit_test(origin, direction)
            if event.kind == "click" and hovered is not None:
                logger.info("Desktop click on button: %s (%s)", hovered.id, hovered.label)
                self.registry.activate_hovered()
                self.registry.release()

    def _update_ray(self, origin: Vec3, direction: Vec3, hovering: bool) -> None:
        self.ray.visible = True
        self.ray.origin = origin
        self.ray.direction = direction
        self.ray.hovering = hovering
