import math

import pytest

from minirt.vector import (
    Ray,
    Vec3,
    disturb_world_normal,
    reflected_ray,
    refracted_ray,
    rotate,
)


def approx_vec(v, tol=1e-9):
    return pytest.approx(list(v), abs=tol)


def test_cross_is_orthogonal():
    a = Vec3(1.0, 2.0, 3.0)
    b = Vec3(-2.0, 0.5, 4.0)
    c = a.cross(b)
    assert c.dot(a) == pytest.approx(0.0, abs=1e-9)
    assert c.dot(b) == pytest.approx(0.0, abs=1e-9)
    assert list(b.cross(a)) == approx_vec(-c)


def test_normalized_has_unit_length():
    v = Vec3(3.0, -4.0, 12.0).normalized()
    assert math.isclose(v.length_squared(), 1.0)
    assert Vec3().normalized() == Vec3()


def test_distance_squared_symmetric():
    a = Vec3(1.0, 1.0, 1.0)
    b = Vec3(2.0, 3.0, -1.0)
    assert a.distance_squared(b) == b.distance_squared(a)
    assert a.distance_squared(b) == (a - b).length_squared()


def test_scale_componentwise():
    assert Vec3(1.0, 2.0, 3.0).scale(Vec3(2.0, 0.5, -1.0)) == Vec3(2.0, 1.0, -3.0)


def test_reflect_twice_is_identity():
    d = Vec3(0.3, -0.8, 0.1).normalized()
    n = Vec3(0.0, 1.0, 0.0)
    r = d.reflect(n)
    assert math.isclose(r.length_squared(), d.length_squared())
    assert list(r.reflect(n)) == approx_vec(d)
    assert math.isclose(r.dot(n), -d.dot(n))


def test_refract_with_equal_indices_keeps_direction():
    d = Vec3(0.4, -0.9, 0.2).normalized()
    result = d.refract(Vec3(0.0, 1.0, 0.0), 1.0)
    assert list(result) == approx_vec(d)


def test_total_internal_reflection_gives_zero():
    d = Vec3(1.0, -0.1, 0.0).normalized()
    assert d.refract(Vec3(0.0, 1.0, 0.0), 2.0) == Vec3()


def test_color_round_trip():
    assert Vec3.from_color(0xFF0000) == Vec3(1.0, 0.0, 0.0)
    for color in (0x123456, 0xABCDEF, 0x7F7F7F):
        assert Vec3.from_color(color).to_color() == color


def test_to_color_clamps():
    assert Vec3(2.0, -1.0, 1.0).to_color() == Vec3(1.0, 0.0, 1.0).to_color()


def test_rotate_preserves_length_and_axis():
    v = Vec3(1.0, 2.0, 0.5)
    axis = Vec3(0.0, 1.0, 0.0)
    rotated = rotate(v, 0.7, axis)
    assert math.isclose(rotated.length_squared(), v.length_squared())
    assert math.isclose(rotated.y, v.y)
    assert list(rotate(axis, 1.3, axis)) == approx_vec(axis)
    assert list(rotate(v, 2 * math.pi, axis)) == approx_vec(v)
    assert list(rotate(rotate(v, 0.4, axis), -0.4, axis)) == approx_vec(v)


def test_neutral_bump_keeps_normal():
    normal = Vec3(1.0, 0.0, 0.0)
    result = disturb_world_normal(normal, Vec3(0.5, 0.5, 1.0))
    assert list(result) == approx_vec(normal)


def test_disturbed_normal_is_unit():
    normal = Vec3(0.0, 0.0, 1.0)
    result = disturb_world_normal(normal, Vec3(0.9, 0.2, 0.6))
    assert math.isclose(result.length_squared(), 1.0)


def test_reflected_ray_offsets_outward():
    ray = Ray(Vec3(0.0, 5.0, 0.0), Vec3(0.0, -1.0, 0.0))
    position = Vec3(0.0, 0.0, 0.0)
    normal = Vec3(0.0, 1.0, 0.0)
    bounced = reflected_ray(ray, position, normal)
    assert bounced.origin == position + normal * 0.0001
    assert list(bounced.direction) == approx_vec(normal)


def test_refracted_ray_offsets_inward():
    ray = Ray(Vec3(0.0, 5.0, 0.0), Vec3(0.0, -1.0, 0.0))
    position = Vec3(1.0, 0.0, 0.0)
    normal = Vec3(0.0, 1.0, 0.0)
    through = refracted_ray(ray, position, normal, 1.5)
    assert through.origin == position - normal * 0.0001
    assert list(through.direction) == approx_vec(ray.direction)


@pytest.mark.parametrize("factor", [0.5, 2.0, -3.0])
def test_scalar_multiplication_commutes(factor):
    v = Vec3(1.0, -2.0, 4.0)
    assert v * factor == factor * v
    assert list((v * factor) / factor) == approx_vec(v)