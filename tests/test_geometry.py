import math

import pytest

from karaoke.geometry import (
    desktop_ray,
    horizontal_forward,
    intersect_rect,
    panel_axes,
    pixels_to_ndc,
    place_in_front,
)
from karaoke.models import Pose, Vec3

from conftest import yaw_pose

FACING_VIEWER = Vec3(0.0, 0.0, 1.0)
RIGHT = Vec3(1.0, 0.0, 0.0)
UP = Vec3(0.0, 1.0, 0.0)


def test_panel_axes_for_panel_facing_plus_z():
    right, up = panel_axes(FACING_VIEWER)
    assert right.to_list() == [1.0, 0.0, 0.0]
    assert up.to_list() == [0.0, 1.0, 0.0]


def test_panel_axes_straight_down_still_orthogonal():
    right, up = panel_axes(Vec3(0.0, -1.0, 0.0))
    assert right.length() == pytest.approx(1.0)
    assert right.dot(up) == pytest.approx(0.0)


def test_ray_hits_rectangle_in_front():
    t = intersect_rect(Vec3(0, 0, 2), Vec3(0, 0, -1), Vec3(), FACING_VIEWER, RIGHT, UP, 1.0, 1.0)
    assert t == pytest.approx(2.0)


def test_ray_hits_back_face_too():
    t = intersect_rect(Vec3(0, 0, -2), Vec3(0, 0, 1), Vec3(), FACING_VIEWER, RIGHT, UP, 1.0, 1.0)
    assert t == pytest.approx(2.0)


def test_rectangle_behind_origin_is_a_miss():
    assert intersect_rect(Vec3(0, 0, -2), Vec3(0, 0, -1), Vec3(), FACING_VIEWER, RIGHT, UP, 1.0, 1.0) is None


def test_parallel_ray_is_a_miss():
    assert intersect_rect(Vec3(0, 0, 1), Vec3(1, 0, 0), Vec3(), FACING_VIEWER, RIGHT, UP, 1.0, 1.0) is None


def test_ray_outside_bounds_is_a_miss():
    # x = 0.6 is past the half-width of a 1.0 wide rectangle
    assert intersect_rect(Vec3(0.6, 0, 2), Vec3(0, 0, -1), Vec3(), FACING_VIEWER, RIGHT, UP, 1.0, 1.0) is None


def test_horizontal_forward_ignores_pitch_and_follows_yaw():
    assert horizontal_forward(Pose()).to_list() == [0.0, 0.0, -1.0]
    turned = horizontal_forward(yaw_pose(Vec3(), math.pi / 2))
    assert turned.x == pytest.approx(-1.0)
    assert turned.z == pytest.approx(0.0, abs=1e-9)


def test_place_in_front_faces_the_head():
    head = Vec3(0.0, 1.6, 0.0)
    anchor = place_in_front(head, Vec3(0.0, 0.0, -1.0), 1.8, -0.1)
    assert anchor.position.x == pytest.approx(0.0)
    assert anchor.position.y == pytest.approx(1.5)
    assert anchor.position.z == pytest.approx(-1.8)
    assert anchor.normal.z > 0.99
    assert anchor.normal.length() == pytest.approx(1.0)


def test_pixels_to_ndc():
    assert pixels_to_ndc(0, 0, 800, 600) == (-1.0, 1.0)
    assert pixels_to_ndc(400, 300, 800, 600) == (0.0, 0.0)
    assert pixels_to_ndc(800, 600, 800, 600) == (1.0, -1.0)


def test_desktop_ray_through_centre_is_camera_forward():
    camera = Pose(position=Vec3(0.0, 1.6, 0.0))
    origin, direction = desktop_ray(camera, 0.0, 0.0)
    assert origin.to_list() == [0.0, 1.6, 0.0]
    assert direction.to_list() == [0.0, 0.0, -1.0]
    # origin is a copy, not the camera's own vector
    origin.x = 5.0
    assert camera.position.x == 0.0


def test_desktop_ray_offsets_by_half_fov():
    camera = Pose(position=Vec3())
    _, direction = desktop_ray(camera, 1.0, 0.0)
    expected = math.tan(math.pi / 8)
    assert direction.x / -direction.z == pytest.approx(expected)
    assert direction.y == pytest.approx(0.0)
