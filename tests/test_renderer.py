import io
import math
from dataclasses import dataclass, field

import pytest

from minirt.camera import Camera
from minirt.renderer import (
    BOUNCES,
    PREVIEW_PIXEL_SIZE,
    FrameSettings,
    Image,
    InputController,
    Key,
    Renderer,
)
from minirt.tracer import LightMode, Material, Scene
from minirt.vector import Vec3


@dataclass
class Sphere:
    position: Vec3
    radius: float
    material: Material = field(default_factory=Material)
    is_inside: bool = False

    def hit_distance(self, ray):
        oc = ray.origin - self.position
        b = oc.dot(ray.direction)
        c = oc.dot(oc) - self.radius * self.radius
        disc = b * b - c
        if disc < 0:
            return -1.0
        root = math.sqrt(disc)
        near = -b - root
        return near if near > 0 else -b + root

    def normal(self, ray, payload):
        return payload.local_position.normalized()

    def uv(self, payload):
        return (0.0, 0.0)

    def contains(self, point):
        return point.distance_squared(self.position) < self.radius * self.radius


def _scene(*objects):
    return Scene(
        objects=list(objects),
        ambient_color=Vec3(1.0, 1.0, 1.0),
        ambient_lighting=1.0,
    )


def _red_sphere(center=Vec3(0.0, 0.0, -5.0), radius=1.0):
    return Sphere(center, radius, Material(color=Vec3(1.0, 0.0, 0.0)))


@pytest.fixture
def make_renderer():
    created = []

    def build(scene=None, pixel_size=1):
        camera = Camera(width=9, height=9)
        renderer = Renderer(
            scene if scene is not None else _scene(_red_sphere()),
            camera,
            FrameSettings(pixel_size=pixel_size),
            thread_count=3,
            stream=io.StringIO(),
        )
        created.append(renderer)
        return renderer

    yield build
    for renderer in created:
        renderer.close()


def test_image_round_trip():
    image = Image(4, 3)
    image.put_pixel(3, 2, 0x123456)
    assert image.get_pixel(3, 2) == 0x123456
    assert image.get_pixel(0, 0) == 0


def test_image_masks_to_32_bits():
    image = Image(2, 2)
    image.put_pixel(1, 1, -1)
    assert image.get_pixel(1, 1) == 0xFFFFFFFF


@pytest.mark.parametrize("x, y", [(4, 0), (0, 3), (-1, 0)])
def test_image_out_of_range(x, y):
    image = Image(4, 3)
    with pytest.raises(IndexError):
        image.put_pixel(x, y, 0)


def test_image_invalid_size():
    with pytest.raises(ValueError):
        Image(0, 5)


def test_frame_hits_sphere_in_centre(make_renderer):
    renderer = make_renderer()
    image = renderer.request_frame()
    assert image.get_pixel(4, 4) == 0xFF0000
    assert image.get_pixel(0, 0) == 0
    assert image.get_pixel(8, 8) == 0


def test_bands_cover_image(make_renderer):
    renderer = make_renderer()
    assert renderer.bands[0][0] == 0
    assert renderer.bands[-1][1] == renderer.image.height
    for (_, end), (start, _) in zip(renderer.bands, renderer.bands[1:]):
        assert end == start


def test_full_resolution_frame_keeps_pixel_size(make_renderer):
    renderer = make_renderer(pixel_size=1)
    renderer.request_frame()
    assert renderer.settings.pixel_size == 1
    assert renderer.timer.times == ()


def test_preview_frame_records_time_and_shrinks_pixels(make_renderer):
    renderer = make_renderer(pixel_size=100)
    renderer.request_frame()
    assert len(renderer.timer.times) == 1
    assert renderer.settings.pixel_size == 99
    assert "Frame rendered in" in renderer.stream.getvalue()


def test_blocks_share_one_colour(make_renderer):
    scene = _scene(Sphere(Vec3(0.0, 0.0, -5.0), 50.0, Material(color=Vec3(0.0, 1.0, 0.0))))
    renderer = make_renderer(scene, pixel_size=3)
    renderer.settings.pixel_size = 3
    renderer.render_band(0, 9)
    block = renderer.image.pixels[0:3, 0:3]
    assert (block == block[0, 0]).all()


def test_render_band_rejects_bad_range(make_renderer):
    renderer = make_renderer()
    with pytest.raises(ValueError):
        renderer.render_band(5, 2)


def test_inside_flags_follow_camera(make_renderer):
    around = Sphere(Vec3(0.0, 0.0, 0.0), 1.0)
    far = _red_sphere()
    renderer = make_renderer(_scene(around, far))
    renderer.request_frame()
    assert around.is_inside is True
    assert far.is_inside is False


def test_prepare_hd(make_renderer):
    renderer = make_renderer(pixel_size=10)
    renderer.settings.should_render = False
    renderer.settings.lights = LightMode.NO_SHADOW
    renderer.prepare_hd()
    assert renderer.settings.pixel_size == 1
    assert renderer.settings.lights is LightMode.ALL
    assert renderer.settings.bounces == BOUNCES
    assert renderer.settings.should_render is True
    assert "Preparing high quality rendering..." in renderer.stream.getvalue()


def test_closed_renderer_refuses_frames(make_renderer):
    renderer = make_renderer()
    renderer.close()
    with pytest.raises(RuntimeError):
        renderer.request_frame()


def test_thread_count_must_be_positive():
    with pytest.raises(ValueError):
        Renderer(_scene(), Camera(width=9, height=9), thread_count=0, stream=io.StringIO())


def test_keys_ignored_until_clicked(make_renderer):
    controller = InputController(make_renderer())
    controller.key_press(Key.W)
    assert controller.inputs.forward is False
    controller.button_press(1, 0, 0)
    controller.key_press(Key.W)
    assert controller.inputs.forward is True
    controller.key_release(Key.W)
    assert controller.inputs.forward is False


def test_click_enters_preview(make_renderer):
    renderer = make_renderer(pixel_size=1)
    controller = InputController(renderer)
    controller.button_press(1, 3, 3)
    assert controller.inputs.active is True
    assert controller.cursor_hidden is True
    assert renderer.settings.pixel_size == PREVIEW_PIXEL_SIZE
    assert renderer.settings.lights is LightMode.NO_SHADOW


def test_other_button_does_nothing(make_renderer):
    controller = InputController(make_renderer())
    controller.button_press(3, 0, 0)
    assert controller.inputs.active is False


@pytest.mark.parametrize("key", [Key.ESCAPE, Key.Q])
def test_quit_keys(make_renderer, key):
    controller = InputController(make_renderer())
    controller.key_press(key)
    assert controller.running is False


def test_return_switches_to_hd(make_renderer):
    renderer = make_renderer()
    controller = InputController(renderer)
    controller.button_press(1, 0, 0)
    controller.key_press(Key.RETURN)
    assert controller.inputs.active is False
    assert controller.cursor_hidden is False
    assert renderer.settings.pixel_size == 1


def test_motion_at_centre_does_not_rotate(make_renderer):
    renderer = make_renderer()
    controller = InputController(renderer)
    controller.button_press(1, 0, 0)
    before = renderer.camera.rotation
    controller.motion(4, 4)
    assert renderer.camera.rotation == before
    assert (controller.inputs.mouse_x, controller.inputs.mouse_y) == (4, 4)


def test_motion_rotates_and_warps(make_renderer):
    renderer = make_renderer()
    warps = []
    controller = InputController(renderer, on_warp=lambda x, y: warps.append((x, y)))
    controller.button_press(1, 0, 0)
    controller.motion(4, 4)
    renderer.settings.should_render = False
    before = renderer.camera.rotation
    controller.motion(8, 4)
    assert renderer.camera.rotation != before
    assert renderer.settings.should_render is True
    assert warps == [(4, 4)]


def test_arrow_release_rotates(make_renderer):
    renderer = make_renderer()
    controller = InputController(renderer)
    before = renderer.camera.rotation
    controller.key_release(Key.LEFT)
    assert renderer.camera.rotation != before
    assert abs(renderer.camera.rotation.length() - 1.0) < 1e-9


def test_tick_renders_once(make_renderer):
    renderer = make_renderer()
    controller = InputController(renderer)
    assert controller.tick() is True
    assert renderer.image.get_pixel(4, 4) == 0xFF0000
    assert controller.tick() is False


def test_tick_moves_camera_forward(make_renderer):
    renderer = make_renderer()
    controller = InputController(renderer)
    controller.tick()
    controller.button_press(1, 0, 0)
    controller.key_press(Key.W)
    assert controller.tick() is True
    assert renderer.camera.position.z < 0.0
    assert renderer.camera.position.x == 0.0