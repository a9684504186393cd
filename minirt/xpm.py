"""Reading of XPM images into 32-bit pixel arrays."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from minirt.colornames import lookup_color

_TRANSPARENT = 0xFF000000
_WORD_SEPARATORS = re.compile(r"[ \t]+")
_INTEGER_PREFIX = re.compile(r"\s*([+-]?\d+)")
_HEX_PREFIX = re.compile(r"\s*([+-]?)(?:0[xX])?([0-9a-fA-F]+)")


class XpmError(ValueError):
    """Raised when XPM data cannot be decoded."""


@dataclass(frozen=True)
class XpmImage:
    """A decoded image; pixels are stored row by row as 0xAARRGGBB values."""

    width: int
    height: int
    pixels: tuple[int, ...]

    def pixel(self, x: int, y: int) -> int:
        """Return the pixel value at column ``x`` and row ``y``."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} image")
        return self.pixels[y * self.width + x]


def split_words(text: str) -> list[str]:
    """Split on spaces and tabs, dropping empty words."""
    return [word for word in _WORD_SEPARATORS.split(text) if word]


def _find_outside_quotes(text: str, token: str) -> int:
    quoted = False
    for position, char in enumerate(text):
        if char == '"':
            quoted = not quoted
        if not quoted and text.startswith(token, position):
            return position
    return -1


def _blank(text: str, start: int, end: int) -> str:
    return text[:start] + " " * (end - start) + text[end:]


def strip_comments(text: str) -> str:
    """Replace C comments outside quoted strings with spaces, keeping the length."""
    while (begin := _find_outside_quotes(text, "/*")) != -1:
        close = text.find("*/", begin + 2)
        end = len(text) if close == -1 else close + 2
        text = _blank(text, begin, end)
    while (begin := _find_outside_quotes(text, "//")) != -1:
        newline = text.find("\n", begin + 2)
        end = len(text) if newline == -1 else newline + 1
        text = _blank(text, begin, end)
    return text


def quoted_strings(text: str) -> Iterator[str]:
    """Yield the contents of successive double-quoted strings."""
    position = 0
    while True:
        opening = text.find('"', position)
        if opening == -1:
            return
        closing = text.find('"', opening + 1)
        if closing == -1:
            return
        yield text[opening + 1:closing]
        position = closing + 1


def _atoi(word: str) -> int:
    match = _INTEGER_PREFIX.match(word)
    return int(match.group(1)) if match else 0


def _parse_hex(digits: str) -> int:
    match = _HEX_PREFIX.match(digits)
    if not match:
        return 0
    value = int(match.group(2), 16)
    return -value if match.group(1) == "-" else value


def color_value(name: str, suffix: str | None = None) -> int:
    """Return the RGB value of an XPM colour specification.

    ``#RRGGBB`` is read as hexadecimal; otherwise the name, joined to
    ``suffix`` by a space when one is given, is looked up among the named
    colours. Unknown names give 0 and ``None`` gives -1.
    """
    if name.startswith("#"):
        return _parse_hex(name[1:])
    if suffix:
        name = f"{name} {suffix}"
    value = lookup_color(name)
    return 0 if value is None else value


def _next_line(lines: Iterator[str], what: str) -> str:
    try:
        return next(lines)
    except StopIteration:
        raise XpmError(f"missing {what}") from None


def _read_palette(lines: Iterator[str], count: int, cpp: int) -> dict[str, int]:
    palette: dict[str, int] = {}
    for _ in range(count):
        line = _next_line(lines, "colour definition")
        key = line[:cpp]
        tokens = split_words(line[cpp:])
        try:
            index = tokens.index("c")
        except ValueError:
            raise XpmError(f"colour definition without 'c' key: {line!r}") from None
        if index + 1 >= len(tokens):
            raise XpmError(f"colour definition without a value: {line!r}")
        suffix = tokens[index + 2] if index + 2 < len(tokens) else None
        value = color_value(tokens[index + 1], suffix)
        if cpp <= 2:
            palette[key] = value
        else:
            palette.setdefault(key, value)
    return palette


def parse_xpm(lines: Iterable[str]) -> XpmImage:
    """Decode an image from its XPM strings: header, colours, then pixel rows."""
    source = iter(lines)
    words = split_words(_next_line(source, "header"))
    if len(words) < 4:
        raise XpmError("header needs width, height, colour count and characters per pixel")
    width, height, ncolors, cpp = (_atoi(word) for word in words[:4])
    if min(width, height, ncolors, cpp) <= 0:
        raise XpmError(f"invalid header: {' '.join(words[:4])}")
    palette = _read_palette(source, ncolors, cpp)
    pixels: list[int] = []
    for _ in range(height):
        row = _next_line(source, "pixel row")
        if len(row) < width * cpp:
            raise XpmError(f"pixel row too short: {row!r}")
        for offset in range(0, width * cpp, cpp):
            value = palette.get(row[offset:offset + cpp], 0)
            if value == -1:
                value = _TRANSPARENT
            pixels.append(value & 0xFFFFFFFF)
    return XpmImage(width, height, tuple(pixels))


def parse_xpm_text(text: str) -> XpmImage:
    """Decode an image from the text of an XPM file."""
    return parse_xpm(quoted_strings(strip_comments(text)))


def load_xpm(path: str | os.PathLike[str]) -> XpmImage:
    """Read and decode an XPM file."""
    try:
        with open(path, encoding="latin-1") as handle:
            text = handle.read()
    except OSError as exc:
        raise XpmError(f"cannot read {os.fspath(path)}: {exc.strerror}") from exc
    return parse_xpm_text(text)