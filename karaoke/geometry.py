"""
Geometry helpers: panel axes, ray / button intersection, and placing
panels in front of the player's head.
"""

from __future__ import annotations

import math
from typing import Optional

from .config import BUTTON_Z_OFFSET, DESKTOP_FOV
from .models import AnchorPose, Button, Panel, Pose, Vec3

WORLD_UP = Vec3(0.0, 1.0, 0.0)


# ---------------------------------------------------------------------------
# Panel frames
# ---------------------------------------------------------------------------
def panel_axes(normal: Vec3) -> tuple[Vec3, Vec3]:
    """
    Right / up axes of a panel facing along *normal*.

    Same convention as an object ``lookAt``: local +Z is the normal,
    +X is ``world_up × normal`` and +Y completes the frame.
    """
    z = normal.normalized()
    x = WORLD_UP.cross(z)
    if x.length() < 1e-6:
        # Looking straight up or down; any horizontal axis will do
        x = Vec3(1.0, 0.0, 0.0)
    x = x.normalized()
    y = z.cross(x)
    return x, y


def button_center(panel: Panel, button: Button) -> Vec3:
    """World-space centre of *button* on *panel*."""
    right, up = panel_axes(panel.anchor.normal)
    normal = panel.anchor.normal.normalized()
    return (
        panel.anchor.position
        + right * button.x
        + up * button.y
        + normal * BUTTON_Z_OFFSET
    )


# ---------------------------------------------------------------------------
# Ray casting
# ---------------------------------------------------------------------------
def intersect_rect(
    origin: Vec3,
    direction: Vec3,
    center: Vec3,
    normal: Vec3,
    right: Vec3,
    up: Vec3,
    width: float,
    height: float,
) -> Optional[float]:
    """
    Distance along the ray to a rectangle, or ``None`` on a miss.

    Hits behind the origin (t <= 0) and rays parallel to the plane miss.
    Both faces of the rectangle count.
    """
    d = direction.normalized()
    denom = d.dot(normal)
    if abs(denom) < 1e-8:
        return None

    t = (center - origin).dot(normal) / denom
    if t <= 0.0:
        return None

    local = origin + d * t - center
    if abs(local.dot(right)) > width / 2 or abs(local.dot(up)) > height / 2:
        return None
    return t


def intersect_button(origin: Vec3, direction: Vec3, panel: Panel, button: Button) -> Optional[float]:
    right, up = panel_axes(panel.anchor.normal)
    return intersect_rect(
        origin,
        direction,
        button_center(panel, button),
        panel.anchor.normal.normalized(),
        right,
        up,
        button.width,
        button.height,
    )


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------
def horizontal_forward(pose: Pose) -> Vec3:
    """Head forward direction flattened onto the floor plane."""
    f = pose.forward()
    flat = Vec3(f.x, 0.0, f.z)
    if flat.length() < 1e-6:
        return Vec3(0.0, 0.0, -1.0)
    return flat.normalized()


def place_in_front(head: Vec3, forward: Vec3, distance: float, height_offset: float) -> AnchorPose:
    """Anchor *distance* metres ahead of *head*, lifted by *height_offset*, facing the head."""
    position = head + forward.normalized() * distance
    position.y += height_offset
    normal = (head - position).normalized()
    if normal.length() < 1e-6:
        normal = -forward.normalized()
    return AnchorPose(position=position, normal=normal)


# ---------------------------------------------------------------------------
# Desktop mouse rays
# ---------------------------------------------------------------------------
def pixels_to_ndc(px: float, py: float, width: float, height: float) -> tuple[float, float]:
    """Viewport pixels → normalized device coordinates (-1..1, +y up)."""
    x = (px / width) * 2.0 - 1.0
    y = -(py / height) * 2.0 + 1.0
    return x, y


def desktop_ray(camera: Pose, ndc_x: float, ndc_y: float, fov: float = DESKTOP_FOV) -> tuple[Vec3, Vec3]:
    """
    Approximate a pick ray from the camera through a mouse position.

    The camera forward is offset by the mouse position scaled by
    ``tan(fov / 2)`` along the camera's right and up axes.
    """
    spread = math.tan(fov / 2)
    direction = (
        camera.forward()
        + camera.right() * (ndc_x * spread)
        + camera.up() * (ndc_y * spread)
    ).normalized()
    return Vec3(camera.position.x, camera.position.y, camera.position.z), direction
