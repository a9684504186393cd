"""Frame-time history used to adapt the preview resolution."""

from __future__ import annotations

import sys
from collections import deque
from dataclasses import dataclass, field
from typing import TextIO

FRAME_TIME_COUNT = 10
FRAME_TIME_GOAL_MIN = 30
FRAME_TIME_GOAL_MAX = 60
MIN_PIXEL_SIZE = 2
MAX_PIXEL_SIZE = 254


@dataclass
class FrameTimer:
    """Keeps the most recent frame durations, newest first.

    At most ``capacity - 1`` durations are kept.
    """

    capacity: int = FRAME_TIME_COUNT
    goal_min: int = FRAME_TIME_GOAL_MIN
    goal_max: int = FRAME_TIME_GOAL_MAX
    stream: TextIO | None = None
    _times: deque[int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.capacity < 2:
            raise ValueError("capacity must be at least 2")
        self._times = deque(maxlen=self.capacity - 1)

    @property
    def times(self) -> tuple[int, ...]:
        """Recorded durations in milliseconds, newest first."""
        return tuple(self._times)

    def add(self, time_ms: int) -> None:
        """Record and report the duration of a rendered frame."""
        out = sys.stdout if self.stream is None else self.stream
        out.write(f"Frame rendered in {time_ms}ms\n")
        self._times.appendleft(time_ms)

    def average(self) -> int:
        """Integer mean of the recorded durations."""
        if not self._times:
            raise ValueError("no frame times recorded")
        return sum(self._times) // len(self._times)

    def adjust(self, pixel_size: int) -> int:
        """Return the pixel size to use next so frame times approach the goal."""
        avg = self.average()
        if avg < self.goal_min and pixel_size > MIN_PIXEL_SIZE:
            return pixel_size - 1
        if avg > self.goal_max and pixel_size < MAX_PIXEL_SIZE:
            return pixel_size + 1
        return pixel_size