"""Error reporting in the renderer's console format."""

from __future__ import annotations

import sys


class MiniRTError(Exception):
    """An error with a short context (what failed) and a message (why)."""

    def __init__(self, context: str, message: str) -> None:
        super().__init__(f"{context}: {message}")
        self.context = context
        self.message = message


def _describe(message: str | BaseException) -> str:
    if isinstance(message, OSError) and message.strerror:
        return message.strerror
    return str(message)


def format_error(context: str, message: str | BaseException) -> str:
    """Return the text printed for an error: a header line, then context and message."""
    return f"Error\n{context}: {_describe(message)}\n"


def report_error(context: str, message: str | BaseException) -> MiniRTError:
    """Print the error to standard output and return it for the caller to raise.

    An ``OSError`` given as the message is described by its system error text.
    """
    sys.stdout.write(format_error(context, message))
    sys.stdout.flush()
    return MiniRTError(context, _describe(message))