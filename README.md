# minirt

A small CPU ray tracer. It casts rays from a perspective camera through a
scene of objects and point lights, with ambient lighting, diffuse and
specular shading, coloured shadows cast through translucent objects,
reflection, refraction and bump mapping. Frames are rendered into an
in-memory image by a pool of worker threads.

## Installing

```
pip install .
```

Run the tests with:

```
pip install ".[test]"
pytest
```

## Modules

- `minirt.vector`: `Vec3` (an immutable vector, also used for RGB colours in
  0..1) with `dot`, `cross`, `normalized`, `length_squared`,
  `distance_squared`, `scale` (component-wise product), `reflect`,
  `refract`, `to_color` and `Vec3.from_color`; `Ray`; the helpers
  `rotate(vector, angle, axis)`, `disturb_world_normal`, `reflected_ray`
  and `refracted_ray`.
- `minirt.camera`: `Camera` holds position, viewing direction (`rotation`),
  field of view and image size. `project()` rebuilds the view and
  perspective matrices, `primary_ray(x, y)` gives the ray through a pixel,
  `move(inputs)` steps along the directions held in an `InputState`, and
  `rotate(deltax, deltay)` turns by mouse deltas with the pitch kept away
  from straight up and down.
- `minirt.tracer`: `Scene`, `Light`, `Material`, `HitPayload` and
  `LightMode` (`ALL`, `NO_SHADOW`, `AMBIENT_ONLY`), with `trace_ray`,
  `compute_normal_lighting`, `compute_light_color`, `compute_lights_colors`,
  `trace_shadow_color` and `pixel_color`, which follows refracted and
  reflected rays for a given number of bounces.
- `minirt.renderer`: `Renderer` splits the image into one horizontal band
  per worker thread (by default one per CPU) and renders it with
  `request_frame()`; `render_band(starty, endy)` renders a single band.
  `FrameSettings` holds pixel size, light mode, bounce count and whether a
  frame is wanted; `prepare_hd()` switches to full resolution with shadows
  and 5 bounces. `Image` is the 0xRRGGBB frame buffer (`put_pixel`,
  `get_pixel`, and the numpy array `pixels`). `InputController` turns key
  presses and releases (`Key` symbols), mouse clicks and motion into camera
  movement, and `tick()` renders a frame when one is needed. `Renderer` is
  a context manager; `close()` stops the threads.
- `minirt.frames`: `FrameTimer` keeps the last nine frame durations and
  `adjust(pixel_size)` makes preview pixels larger when frames take over
  60 ms on average and smaller when they take under 30 ms.
- `minirt.xpm`: reads XPM images with `load_xpm(path)`,
  `parse_xpm_text(text)` or `parse_xpm(lines)` into an `XpmImage`, whose
  pixels are read with `pixel(x, y)`; bad data raises `XpmError`.
- `minirt.colornames`: `lookup_color(name)` resolves X11 colour names,
  ignoring case.
- `minirt.errors`: `MiniRTError`, `format_error` and `report_error`, which
  prints an error as `Error` followed by `context: message`.

## Scene objects

The package has no built-in shapes. Any object put in `Scene.objects`
needs a `position` (`Vec3`), a `material` (`Material`) and three methods:
`hit_distance(ray)` (distance along the ray, not positive on a miss),
`normal(ray, payload)` and `uv(payload)`. If it has a `contains(point)`
method, the renderer sets its `is_inside` attribute before each frame.

```python
import math
from dataclasses import dataclass, field

from minirt.camera import Camera
from minirt.renderer import FrameSettings, Renderer
from minirt.tracer import Light, Material, Scene
from minirt.vector import Vec3


@dataclass
class Sphere:
    position: Vec3
    radius: float
    material: Material = field(default_factory=Material)

    def hit_distance(self, ray):
        oc = ray.origin - self.position
        b = oc.dot(ray.direction)
        disc = b * b - (oc.dot(oc) - self.radius ** 2)
        if disc < 0:
            return -1.0
        root = math.sqrt(disc)
        return -b - root if -b - root > 0 else -b + root

    def normal(self, ray, payload):
        return payload.local_position.normalized()

    def uv(self, payload):
        return (0.0, 0.0)


scene = Scene(
    objects=[Sphere(Vec3(0, 0, -5), 1.0, Material(color=Vec3(1, 0, 0)))],
    lights=[Light(Vec3(5, 5, 0))],
    ambient_lighting=0.1,
)
camera = Camera(width=160, height=90)
with Renderer(scene, camera, FrameSettings(pixel_size=1), thread_count=2) as renderer:
    image = renderer.request_frame()
    print(hex(image.get_pixel(80, 45)))
```

## Reading an XPM image

```python
from minirt.colornames import lookup_color
from minirt.xpm import parse_xpm_text

print(hex(lookup_color("cornflower blue")))

image = parse_xpm_text('''
/* XPM */
static char *tiny[] = {
"2 1 2 1",
"a c red",
"b c #00FF00",
"ab"
};
''')
print(image.width, image.height, hex(image.pixel(0, 0)))
```

## What the package does not do

- It has no command and no window: rendered frames stay in `Image.pixels`,
  and `InputController` only reacts to the events its caller passes in
  (an `on_warp` callback is told where to re-centre the pointer).
- It does not read scene files and provides no shapes; scenes are built in
  Python from objects as described above.
- It does not write images to disk.