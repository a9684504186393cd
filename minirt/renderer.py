"""Frame rendering across worker threads, and the interactive controls."""

from __future__ import annotations

import enum
import os
import sys
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TextIO

import numpy as np

from minirt.camera import Camera, InputState
from minirt.frames import FrameTimer
from minirt.tracer import LightMode, Scene, pixel_color

BOUNCES = 5
KEY_SENSITIVITY = 10
INITIAL_PIXEL_SIZE = 100
PREVIEW_PIXEL_SIZE = 10


@dataclass
class FrameSettings:
    """Quality settings for the next frame."""

    pixel_size: int = INITIAL_PIXEL_SIZE
    lights: LightMode = LightMode.ALL
    bounces: int = 1
    should_render: bool = True


class Image:
    """A frame buffer of 0xRRGGBB pixels, stored row by row."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"invalid image size {width}x{height}")
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width), dtype=np.uint32)

    def _check(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"access x: {x} y: {y} out of image")

    def put_pixel(self, x: int, y: int, color: int) -> None:
        """Set one pixel."""
        self._check(x, y)
        self.pixels[y, x] = color & 0xFFFFFFFF

    def get_pixel(self, x: int, y: int) -> int:
        """Return one pixel."""
        self._check(x, y)
        return int(self.pixels[y, x])

    def _fill(self, x0: int, y0: int, x1: int, y1: int, color: int) -> None:
        self.pixels[y0:y1, x0:x1] = color & 0xFFFFFFFF


class Renderer:
    """Renders a scene seen by a camera into an image, one band per worker."""

    def __init__(
        self,
        scene: Scene,
        camera: Camera,
        settings: FrameSettings | None = None,
        thread_count: int | None = None,
        stream: TextIO | None = None,
    ) -> None:
        count = (os.cpu_count() or 1) if thread_count is None else thread_count
        if count < 1:
            raise ValueError("at least one render thread is needed")
        self.scene = scene
        self.camera = camera
        self.settings = FrameSettings() if settings is None else settings
        self.image = Image(camera.width, camera.height)
        self.stream = stream
        self.timer = FrameTimer(stream=stream)
        step = camera.height // count
        self.bands: tuple[tuple[int, int], ...] = tuple(
            (i * step, (i + 1) * step) for i in range(count)
        )
        self._pool = ThreadPoolExecutor(max_workers=count, thread_name_prefix="render")
        self._closed = False
        for number, (start, end) in enumerate(self.bands):
            self._write(f"Created thread #{number} from line {start:f} to {end:f}\n")

    def _write(self, text: str) -> None:
        out = sys.stdout if self.stream is None else self.stream
        out.write(text)

    def __enter__(self) -> Renderer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def render_band(self, starty: int, endy: int) -> None:
        """Render the rows from ``starty`` up to, not including, ``endy``."""
        if not 0 <= starty <= endy <= self.image.height:
            raise ValueError(f"invalid band {starty}..{endy}")
        size = self.settings.pixel_size
        bounces = self.settings.bounces
        lights = self.settings.lights
        width = self.image.width
        for y in range(starty, endy, size):
            for x in range(0, width, size):
                ray = self.camera.primary_ray(x + size * 0.5, y + size * 0.5)
                color = pixel_color(self.scene, ray, bounces, lights).to_color()
                self.image._fill(x, y, min(x + size, width), min(y + size, endy), color)

    def _update_inside_flags(self) -> None:
        position = self.camera.position
        for obj in self.scene.objects:
            contains = getattr(obj, "contains", None)
            obj.is_inside = bool(contains(position)) if callable(contains) else False

    def request_frame(self) -> Image:
        """Render a whole frame and adapt the preview resolution to its duration."""
        if self._closed:
            raise RuntimeError("renderer is closed")
        start = time.perf_counter()
        self.camera.project()
        self._update_inside_flags()
        futures = [self._pool.submit(self.render_band, s, e) for s, e in self.bands]
        for future in futures:
            future.result()
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        if self.settings.pixel_size != 1:
            self.timer.add(elapsed_ms)
            self.settings.pixel_size = self.timer.adjust(self.settings.pixel_size)
        return self.image

    def prepare_hd(self) -> None:
        """Switch to full resolution with shadows and all bounces."""
        self._write("Preparing high quality rendering...\n")
        self.settings.pixel_size = 1
        self.settings.lights = LightMode.ALL
        self.settings.should_render = True
        self.settings.bounces = BOUNCES

    def close(self) -> None:
        """Stop the worker threads."""
        if not self._closed:
            self._closed = True
            self._pool.shutdown(wait=True)


class Key(enum.IntEnum):
    """Key symbols the controls respond to."""

    ESCAPE = 0xFF1B
    RETURN = 0xFF0D
    SHIFT_L = 0xFFE1
    LEFT = 0xFF51
    UP = 0xFF52
    RIGHT = 0xFF53
    DOWN = 0xFF54
    SPACE = 0x20
    UPPER_A = 0x41
    UPPER_D = 0x44
    UPPER_S = 0x53
    UPPER_W = 0x57
    A = 0x61
    D = 0x64
    Q = 0x71
    S = 0x73
    W = 0x77


_MOVEMENT_KEYS = {
    Key.A: "left",
    Key.UPPER_A: "left",
    Key.D: "right",
    Key.UPPER_D: "right",
    Key.W: "forward",
    Key.UPPER_W: "forward",
    Key.S: "backward",
    Key.UPPER_S: "backward",
    Key.SPACE: "up",
    Key.SHIFT_L: "down",
}

_ARROW_ROTATIONS = {
    Key.LEFT: (-KEY_SENSITIVITY, 0),
    Key.RIGHT: (KEY_SENSITIVITY, 0),
    Key.UP: (0, KEY_SENSITIVITY),
    Key.DOWN: (0, -KEY_SENSITIVITY),
}


class InputController:
    """Turns keyboard and mouse events into camera motion and frame requests."""

    def __init__(
        self,
        renderer: Renderer,
        on_warp: Callable[[int, int], None] | None = None,
    ) -> None:
        self.renderer = renderer
        self.inputs = InputState()
        self.running = True
        self.cursor_hidden = False
        self.on_warp = on_warp

    @property
    def _settings(self) -> FrameSettings:
        return self.renderer.settings

    def _rotate(self, deltax: int, deltay: int) -> None:
        self.renderer.camera.rotate(deltax, deltay)
        self._settings.should_render = True

    def key_press(self, key: int) -> None:
        """Handle a key going down."""
        if key in (Key.ESCAPE, Key.Q):
            self.running = False
        if not self.inputs.active:
            return
        if key in _MOVEMENT_KEYS:
            setattr(self.inputs, _MOVEMENT_KEYS[Key(key)], True)
        elif key == Key.RETURN:
            self.renderer.prepare_hd()
            self.inputs.active = False
            self.cursor_hidden = False

    def key_release(self, key: int) -> None:
        """Handle a key coming up."""
        if key in _MOVEMENT_KEYS:
            setattr(self.inputs, _MOVEMENT_KEYS[Key(key)], False)
        elif key in _ARROW_ROTATIONS:
            self._rotate(*_ARROW_ROTATIONS[Key(key)])

    def button_press(self, button: int, x: int, y: int) -> None:
        """A left click enters the interactive preview mode."""
        if button == 1 and not self.inputs.active:
            self.cursor_hidden = True
            self._settings.lights = LightMode.NO_SHADOW
            self._settings.pixel_size = PREVIEW_PIXEL_SIZE
            self.inputs.active = True
            self._settings.bounces = 1

    def motion(self, x: int, y: int) -> None:
        """Turn the camera by the mouse movement and re-centre the pointer."""
        deltax = x - self.inputs.mouse_x
        deltay = self.inputs.mouse_y - y
        self.inputs.mouse_x = x
        self.inputs.mouse_y = y
        centre_x = self.renderer.image.width // 2
        centre_y = self.renderer.image.height // 2
        if not self.inputs.active or (x == centre_x and y == centre_y):
            return
        self._rotate(deltax, deltay)
        if self.on_warp is not None:
            self.on_warp(centre_x, centre_y)

    def tick(self) -> bool:
        """Apply held movement and render if needed; return whether a frame was made."""
        if self.inputs.active and self.renderer.camera.move(self.inputs):
            self._settings.should_render = True
        if not self._settings.should_render:
            return False
        self._settings.should_render = False
        self.renderer.request_frame()
        return True