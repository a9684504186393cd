"""Perspective camera: projection, view matrix, primary rays and movement."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from minirt.vector import UP, Ray, Vec3
from minirt.vector import rotate as rotate_vector

DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720
Z_NEAR = 0.1
Z_FAR = 1000.0
MOVEMENT_SPEED = 0.1
SENSITIVITY = 0.002
PITCH_LIMIT = 0.95


@dataclass
class InputState:
    """Keys currently held down and the last known mouse position."""

    left: bool = False
    right: bool = False
    forward: bool = False
    backward: bool = False
    up: bool = False
    down: bool = False
    active: bool = False
    mouse_x: int = 0
    mouse_y: int = 0

    def moving(self) -> bool:
        """True when any movement key is held."""
        return any(
            (self.left, self.right, self.forward, self.backward, self.up, self.down)
        )


def _identity() -> np.ndarray:
    return np.identity(4, dtype=float)


@dataclass
class Camera:
    """A camera at ``position`` looking along the unit vector ``rotation``."""

    position: Vec3 = field(default_factory=Vec3)
    rotation: Vec3 = field(default_factory=lambda: Vec3(0.0, 0.0, -1.0))
    fov: float = 70.0
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    near: float = Z_NEAR
    far: float = Z_FAR
    speed: float = MOVEMENT_SPEED
    sensitivity: float = SENSITIVITY
    up: Vec3 = UP
    rad_fov: float = field(init=False, default=0.0)
    aspect_ratio: float = field(init=False, default=1.0)
    view: np.ndarray = field(init=False, repr=False, default_factory=_identity)
    projection: np.ndarray = field(init=False, repr=False, default_factory=_identity)
    _inverse_view: np.ndarray = field(init=False, repr=False, default_factory=_identity)
    _inverse_projection: np.ndarray = field(
        init=False, repr=False, default_factory=_identity
    )

    def __post_init__(self) -> None:
        self.project()

    def project(self) -> None:
        """Recompute the view and projection matrices from the current state."""
        self.rad_fov = math.tan(math.radians(self.fov) / 2.0)
        self.up = UP
        self.aspect_ratio = self.width / self.height
        self.view = self.view_matrix()
        self.projection = self.perspective_matrix()
        self._inverse_view = np.linalg.inv(self.view)
        self._inverse_projection = np.linalg.inv(self.projection)

    def view_matrix(self) -> np.ndarray:
        """The world-to-camera matrix built from position, direction and up."""
        look_at = self.rotation
        norm = look_at.cross(self.up).normalized()
        new_axe = norm.cross(look_at).normalized()
        view = _identity()
        view[0, :3] = tuple(norm)
        view[1, :3] = tuple(new_axe)
        view[2, :3] = tuple(-look_at)
        view[3, 0] = -norm.dot(self.position)
        view[3, 1] = -new_axe.dot(self.position)
        view[3, 2] = look_at.dot(self.position)
        view[3, 3] = 1.0
        return view

    def perspective_matrix(self) -> np.ndarray:
        """The projection matrix for the field of view and clipping planes."""
        projection = np.zeros((4, 4), dtype=float)
        projection[0, 0] = -1.0 / (self.rad_fov * self.aspect_ratio)
        projection[1, 1] = -1.0 / self.rad_fov
        projection[2, 2] = (self.near + self.far) / (self.near - self.far)
        projection[2, 3] = -(2.0 * self.near * self.far) / (self.far - self.near)
        projection[3, 2] = -1.0
        return projection

    def move(self, inputs: InputState) -> bool:
        """Move along the held directions; return whether the camera moved."""
        if inputs.left or inputs.right:
            step = self.speed if inputs.left else -self.speed
            side = self.rotation.cross(UP).normalized()
            self.position = self.position + side * step
        if inputs.forward or inputs.backward:
            step = self.speed if inputs.forward else -self.speed
            self.position = self.position + self.rotation * step
        if inputs.up or inputs.down:
            step = self.speed if inputs.up else -self.speed
            self.position = self.position + self.up * step
        return inputs.moving()

    def rotate(self, deltax: int, deltay: int) -> None:
        """Turn by mouse deltas: yaw around the vertical, then a bounded pitch."""
        self.rotation = rotate_vector(
            self.rotation, self.sensitivity * deltax, UP
        ).normalized()
        axis = self.rotation.cross(UP).normalized()
        pitched = rotate_vector(
            self.rotation, self.sensitivity * deltay, axis
        ).normalized()
        if -PITCH_LIMIT < pitched.y < PITCH_LIMIT:
            self.rotation = pitched

    def primary_ray(self, x: float, y: float) -> Ray:
        """The ray from the camera through the pixel coordinates ``(x, y)``."""
        ndc_x = (x / self.width) * 2.0 - 1.0
        ndc_y = (y / self.height) * 2.0 - 1.0
        target = self._inverse_projection @ np.array([ndc_x, ndc_y, 1.0, 1.0])
        local = Vec3(*(float(c) for c in target[:3] / target[3])).normalized()
        world = self._inverse_view @ np.array([local.x, local.y, local.z, 0.0])
        direction = Vec3(*(float(c) for c in world[:3])).normalized()
        return Ray(self.position, direction)