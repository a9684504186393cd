import math

import numpy as np
import pytest

from minirt.camera import PITCH_LIMIT, Camera, InputState
from minirt.vector import Vec3


def approx_vec(v, tol=1e-6):
    return pytest.approx(list(v), abs=tol)


def test_input_state_moving():
    assert InputState().moving() is False
    assert InputState(backward=True).moving() is True
    assert InputState(active=True).moving() is False


def test_project_sets_fov_and_aspect():
    camera = Camera(fov=90.0, width=200, height=100)
    assert math.isclose(camera.rad_fov, 1.0, rel_tol=1e-9)
    assert camera.aspect_ratio == 200 / 100


def test_perspective_matrix_entries():
    camera = Camera(fov=90.0, width=200, height=100, near=0.5, far=50.0)
    proj = camera.perspective_matrix()
    assert proj[3, 2] == -1.0
    assert math.isclose(proj[1, 1], -1.0 / camera.rad_fov)
    assert math.isclose(proj[0, 0], -1.0 / (camera.rad_fov * camera.aspect_ratio))
    assert math.isclose(proj[2, 2], (0.5 + 50.0) / (0.5 - 50.0))
    assert proj[3, 3] == 0.0


def test_view_matrix_rotation_is_orthonormal():
    camera = Camera(position=Vec3(1.0, 2.0, 3.0), rotation=Vec3(1.0, 0.2, -1.0).normalized())
    view = camera.view_matrix()
    rot = view[:3, :3]
    assert np.allclose(rot @ rot.T, np.identity(3), atol=1e-9)
    assert np.allclose(view[2, :3], [-c for c in camera.rotation])
    assert view[3, 3] == 1.0


@pytest.mark.parametrize(
    "direction",
    [Vec3(0.0, 0.0, -1.0), Vec3(1.0, 0.0, -1.0).normalized(), Vec3(0.3, -0.4, 0.8).normalized()],
)
def test_center_ray_follows_camera_direction(direction):
    camera = Camera(position=Vec3(4.0, -1.0, 2.0), rotation=direction, width=200, height=100)
    ray = camera.primary_ray(100, 50)
    assert ray.origin == Vec3(4.0, -1.0, 2.0)
    assert list(ray.direction) == approx_vec(direction)


def test_primary_rays_are_unit_length():
    camera = Camera(width=64, height=48)
    for x, y in [(0, 0), (63, 0), (0, 47), (10, 30)]:
        ray = camera.primary_ray(x, y)
        assert math.isclose(ray.direction.length(), 1.0, rel_tol=1e-9)


def test_opposite_pixels_are_symmetric():
    camera = Camera(width=100, height=100)
    top = camera.primary_ray(50, 0).direction
    bottom = camera.primary_ray(50, 100).direction
    assert math.isclose(top.y, -bottom.y, abs_tol=1e-9)
    assert math.isclose(top.z, bottom.z, abs_tol=1e-9)


def test_rotate_zero_is_identity():
    start = Vec3(0.6, 0.0, -0.8)
    camera = Camera(rotation=start)
    camera.rotate(0, 0)
    assert list(camera.rotation) == approx_vec(start)


def test_yaw_keeps_height_and_length():
    start = Vec3(0.0, 0.3, -1.0).normalized()
    camera = Camera(rotation=start, sensitivity=0.1)
    camera.rotate(5, 0)
    assert math.isclose(camera.rotation.y, start.y, abs_tol=1e-9)
    assert math.isclose(camera.rotation.length(), 1.0, rel_tol=1e-9)
    assert list(camera.rotation) != approx_vec(start)


def test_pitch_beyond_limit_is_refused():
    start = Vec3(0.0, 0.0, -1.0)
    camera = Camera(rotation=start, sensitivity=math.pi / 2)
    camera.rotate(0, 1)
    assert list(camera.rotation) == approx_vec(start)


def test_small_pitch_is_accepted():
    camera = Camera(rotation=Vec3(0.0, 0.0, -1.0), sensitivity=0.1)
    camera.rotate(0, 2)
    assert 0.0 < abs(camera.rotation.y) < PITCH_LIMIT
    assert math.isclose(camera.rotation.length(), 1.0, rel_tol=1e-9)


def test_move_forward_and_backward():
    camera = Camera(rotation=Vec3(0.0, 0.0, -1.0), speed=0.5)
    assert camera.move(InputState(forward=True)) is True
    assert list(camera.position) == approx_vec(Vec3(0.0, 0.0, -0.5))
    camera.move(InputState(backward=True))
    assert list(camera.position) == approx_vec(Vec3(0.0, 0.0, 0.0))


def test_move_sideways_and_vertical():
    camera = Camera(rotation=Vec3(0.0, 0.0, -1.0), speed=0.5)
    assert camera.move(InputState(left=True, up=True)) is True
    assert list(camera.position) == approx_vec(Vec3(0.5, 0.5, 0.0))
    assert camera.move(InputState(right=True, down=True)) is True
    assert list(camera.position) == approx_vec(Vec3(0.0, 0.0, 0.0))


def test_left_takes_precedence_over_right():
    camera = Camera(rotation=Vec3(0.0, 0.0, -1.0), speed=0.5)
    assert camera.move(InputState(left=True, right=True)) is True
    assert list(camera.position) == approx_vec(Vec3(0.5, 0.0, 0.0))


def test_no_input_does_not_move():
    camera = Camera(position=Vec3(1.0, 1.0, 1.0))
    assert camera.move(InputState()) is False
    assert camera.position == Vec3(1.0, 1.0, 1.0)