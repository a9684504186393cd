"""Three-component vectors, rays and normal perturbation."""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass

SURFACE_OFFSET = 0.0001


@dataclass(frozen=True)
class Vec3:
    """An immutable 3D vector, also used for RGB colours in the 0..1 range."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __add__(self, other: Vec3) -> Vec3:
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, factor: float) -> Vec3:
        return Vec3(self.x * factor, self.y * factor, self.z * factor)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> Vec3:
        return Vec3(self.x / divisor, self.y / divisor, self.z / divisor)

    def __neg__(self) -> Vec3:
        return Vec3(-self.x, -self.y, -self.z)

    def dot(self, other: Vec3) -> float:
        """Scalar product."""
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vec3) -> Vec3:
        """Vector product."""
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length_squared(self) -> float:
        return self.dot(self)

    def length(self) -> float:
        return math.sqrt(self.length_squared())

    def normalized(self) -> Vec3:
        """Unit vector in the same direction; the zero vector stays zero."""
        length = self.length()
        if length == 0.0:
            return Vec3()
        return self / length

    def distance_squared(self, other: Vec3) -> float:
        return (self - other).length_squared()

    def scale(self, other: Vec3) -> Vec3:
        """Component-wise product."""
        return Vec3(self.x * other.x, self.y * other.y, self.z * other.z)

    def reflect(self, normal: Vec3) -> Vec3:
        """Mirror this direction about a unit normal."""
        return self - normal * (2.0 * self.dot(normal))

    def refract(self, normal: Vec3, ratio: float) -> Vec3:
        """Bend this unit direction through a surface with the given index ratio.

        Gives the zero vector on total internal reflection.
        """
        cos_i = normal.dot(self)
        k = 1.0 - ratio * ratio * (1.0 - cos_i * cos_i)
        if k < 0.0:
            return Vec3()
        return self * ratio - normal * (ratio * cos_i + math.sqrt(k))

    def to_color(self) -> int:
        """Pack the components, clamped to 0..1, as a 0xRRGGBB integer."""
        red, green, blue = (int(min(max(c, 0.0), 1.0) * 255.0 + 0.5) for c in self)
        return (red << 16) | (green << 8) | blue

    @staticmethod
    def from_color(color: int) -> Vec3:
        """Unpack a 0xRRGGBB integer into components in 0..1."""
        return Vec3(
            ((color >> 16) & 0xFF) / 255.0,
            ((color >> 8) & 0xFF) / 255.0,
            (color & 0xFF) / 255.0,
        )


@dataclass(frozen=True)
class Ray:
    origin: Vec3
    direction: Vec3


UP = Vec3(0.0, 1.0, 0.0)


def rotate(vector: Vec3, angle: float, axis: Vec3) -> Vec3:
    """Rotate ``vector`` by ``angle`` radians around ``axis``."""
    unit = axis.normalized()
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    return (
        vector * cos_a
        + unit.cross(vector) * sin_a
        + unit * (unit.dot(vector) * (1.0 - cos_a))
    )


def disturb_world_normal(world_normal: Vec3, bump_normal: Vec3) -> Vec3:
    """Tilt a surface normal by a bump-map sample whose components lie in 0..1."""
    bump = bump_normal * 2.0 - Vec3(1.0, 1.0, 1.0)
    tangent = world_normal.cross(UP).normalized()
    bitangent = world_normal.cross(tangent).normalized()
    return (tangent * bump.x + bitangent * bump.y + world_normal * bump.z).normalized()


def reflected_ray(ray: Ray, position: Vec3, normal: Vec3) -> Ray:
    """The ray bouncing off a surface, started just outside it."""
    return Ray(position + normal * SURFACE_OFFSET, ray.direction.reflect(normal))


def refracted_ray(ray: Ray, position: Vec3, normal: Vec3, ratio: float) -> Ray:
    """The ray passing through a surface, started just inside it."""
    return Ray(position - normal * SURFACE_OFFSET, ray.direction.refract(normal, ratio))