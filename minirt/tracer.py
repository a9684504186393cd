"""Ray casting against scene objects, with lighting, shadows and bounces."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from minirt.vector import (
    Ray,
    Vec3,
    disturb_world_normal,
    reflected_ray,
    refracted_ray,
)

SHADOW_OFFSET = 0.00001
SPECULAR_EXPONENT = 100

UV = tuple[float, float]
TextureSampler = Callable[[UV], Vec3]


class LightMode(enum.Enum):
    """How much lighting work a frame does."""

    ALL = "all"
    NO_SHADOW = "no_shadow"
    AMBIENT_ONLY = "ambient_only"


@dataclass
class Material:
    """Surface properties of an object.

    ``texture`` and ``bumpmap`` sample colours (components in 0..1) at a
    texture coordinate; without a texture the flat ``color`` is used.
    """

    color: Vec3 = field(default_factory=lambda: Vec3(1.0, 1.0, 1.0))
    opacity: float = 1.0
    reflection: float = 0.0
    refraction: float = 1.0
    texture: TextureSampler | None = None
    bumpmap: TextureSampler | None = None


@dataclass
class HitPayload:
    """Where and how a ray met an object.

    ``local_position`` is the hit point relative to the object's position,
    ``world_position`` the same point in world space.
    """

    ray: Ray
    distance: float
    obj: _Shape
    world_position: Vec3 = field(default_factory=Vec3)
    local_position: Vec3 = field(default_factory=Vec3)
    world_normal: Vec3 = field(default_factory=Vec3)
    uv: UV = (0.0, 0.0)


class _Shape(Protocol):
    position: Vec3
    material: Material

    def hit_distance(self, ray: Ray) -> float:
        """Distance along the ray to the surface; not positive on a miss."""

    def normal(self, ray: Ray, payload: HitPayload) -> Vec3:
        """Unit surface normal at the payload's hit point."""

    def uv(self, payload: HitPayload) -> UV:
        """Texture coordinate of the payload's hit point."""


@dataclass
class Light:
    """A point light."""

    position: Vec3
    color: Vec3 = field(default_factory=lambda: Vec3(1.0, 1.0, 1.0))
    brightness: float = 1.0


@dataclass
class Scene:
    """Objects, lights and ambient lighting of a scene."""

    objects: list[_Shape] = field(default_factory=list)
    lights: list[Light] = field(default_factory=list)
    ambient_color: Vec3 = field(default_factory=lambda: Vec3(1.0, 1.0, 1.0))
    ambient_lighting: float = 0.0


def _albedo(material: Material, uv: UV) -> Vec3:
    if material.texture is not None:
        return material.texture(uv)
    return material.color


def _complete_hit(payload: HitPayload, light_mode: LightMode) -> HitPayload:
    obj = payload.obj
    ray = payload.ray
    payload.local_position = ray.origin - obj.position + ray.direction * payload.distance
    payload.world_position = payload.local_position + obj.position
    payload.world_normal = obj.normal(ray, payload)
    material = obj.material
    if material.texture is not None or material.bumpmap is not None:
        payload.uv = obj.uv(payload)
    if light_mode is LightMode.ALL and material.bumpmap is not None:
        payload.world_normal = disturb_world_normal(
            payload.world_normal, material.bumpmap(payload.uv)
        )
    return payload


def trace_ray(
    scene: Scene, ray: Ray, light_mode: LightMode = LightMode.ALL
) -> HitPayload | None:
    """Return the nearest hit of the ray in the scene, or ``None`` on a miss."""
    nearest: _Shape | None = None
    nearest_distance = float("inf")
    for obj in scene.objects:
        distance = obj.hit_distance(ray)
        if 0.0 < distance < nearest_distance:
            nearest = obj
            nearest_distance = distance
    if nearest is None:
        return None
    return _complete_hit(HitPayload(ray, nearest_distance, nearest), light_mode)


def compute_normal_lighting(
    light: Light, payload: HitPayload, light_dir: Vec3, ray: Ray
) -> Vec3:
    """Diffuse light, plus a specular highlight on reflective surfaces."""
    intensity = max(
        payload.world_normal.dot(light_dir * (-1.0 * light.brightness)), 0.0
    )
    reflection = payload.obj.material.reflection
    if reflection == 0:
        return light.color * intensity
    specular = max(light_dir.reflect(payload.world_normal).dot(-ray.direction), 0.0)
    intensity += specular**SPECULAR_EXPONENT * reflection
    return light.color * intensity


def _shadow_contribution(
    shadow: tuple[Vec3, float], light: Light, ray: Ray, obj: _Shape
) -> tuple[Vec3, float]:
    toward_surface = Ray(light.position, -ray.direction)
    distance = obj.hit_distance(toward_surface)
    hit = HitPayload(
        toward_surface,
        distance,
        obj,
        world_position=toward_surface.origin + toward_surface.direction * distance,
    )
    material = obj.material
    if material.texture is not None:
        hit.uv = obj.uv(hit)
    projected = _albedo(material, hit.uv) * material.opacity
    tint, strength = shadow
    return tint + projected, strength * (1.0 - material.opacity)


def trace_shadow_color(
    scene: Scene,
    light_dir: Vec3,
    light: Light,
    payload: HitPayload,
    light_mode: LightMode = LightMode.ALL,
) -> tuple[Vec3, float]:
    """Tint and strength of the light reaching the hit point.

    Objects between the point and the light add their colour to the tint and
    scale the strength down by their opacity. Shadows are only traced in
    ``LightMode.ALL``.
    """
    ray = Ray(
        payload.world_position + payload.ray.direction * -SHADOW_OFFSET,
        -light_dir,
    )
    light_distance = light.position.distance_squared(payload.world_position)
    shadow = (Vec3(1.0, 1.0, 1.0), 1.0)
    if light_mode is not LightMode.ALL:
        return shadow
    for obj in scene.objects:
        distance = obj.hit_distance(ray)
        if distance >= 0 and distance * distance <= light_distance:
            shadow = _shadow_contribution(shadow, light, ray, obj)
    return shadow


def compute_light_color(
    scene: Scene,
    light: Light,
    payload: HitPayload,
    ray: Ray,
    light_mode: LightMode = LightMode.ALL,
) -> Vec3:
    """Light that one source brings to the hit point, after shadowing."""
    light_dir = (payload.world_position - light.position).normalized()
    color = compute_normal_lighting(light, payload, light_dir, ray)
    tint, strength = trace_shadow_color(scene, light_dir, light, payload, light_mode)
    return (color * strength).scale(tint)


def compute_lights_colors(
    scene: Scene,
    payload: HitPayload,
    ray: Ray,
    light_mode: LightMode = LightMode.ALL,
) -> Vec3:
    """Ambient plus every light, multiplied by the surface colour."""
    total = scene.ambient_color * scene.ambient_lighting
    if light_mode is not LightMode.AMBIENT_ONLY:
        for light in scene.lights:
            total = total + compute_light_color(scene, light, payload, ray, light_mode)
    return total.scale(_albedo(payload.obj.material, payload.uv))


def pixel_color(
    scene: Scene,
    ray: Ray,
    bounces: int,
    light_mode: LightMode = LightMode.ALL,
) -> Vec3:
    """Colour seen along a ray, following refraction and reflection bounces."""
    payload = trace_ray(scene, ray, light_mode)
    if payload is None:
        return Vec3()
    material = payload.obj.material
    color = compute_lights_colors(scene, payload, ray, light_mode)
    if material.opacity != 1.0 and bounces > 0:
        bounces -= 1
        through = refracted_ray(
            ray, payload.world_position, payload.world_normal, material.refraction
        )
        color = (
            pixel_color(scene, through, bounces, light_mode) * (1.0 - material.opacity)
            + color * material.opacity
        )
    if material.reflection > 0.0 and bounces > 0:
        bounces -= 1
        bounced = reflected_ray(ray, payload.world_position, payload.world_normal)
        color = color + pixel_color(scene, bounced, bounces, light_mode) * material.reflection
    return color