"""A small CPU ray tracer with a movable camera, shading, shadows and XPM image loading."""

__version__ = "0.1.0"

__all__ = [
    "camera",
    "colornames",
    "errors",
    "frames",
    "renderer",
    "tracer",
    "vector",
    "xpm",
]