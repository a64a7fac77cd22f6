"""A line logger that stays silent until it is given an output stream."""

from __future__ import annotations

from typing import TextIO

MAX_FORMATTED_LENGTH = 255


class Logger:
    """Writes one line per message to a text stream, if one is set."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def set_output(self, stream: TextIO | None) -> None:
        """Send further messages to the stream; None silences the logger."""
        self._stream = stream

    def enabled(self) -> bool:
        return self._stream is not None

    def log(self, msg: str) -> None:
        if self._stream is None:
            return
        self._stream.write(f"{msg}\n")

    def logf(self, fmt: str, *args: object) -> None:
        """Log a printf-style message, cut to 255 characters."""
        if self._stream is None:
            return
        self.log((fmt % args)[:MAX_FORMATTED_LENGTH])


logger = Logger()