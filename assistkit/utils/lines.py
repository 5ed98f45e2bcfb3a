"""Line iteration without any limit on line length."""

from __future__ import annotations

from collections.abc import Iterator
from typing import IO, AnyStr


def iter_lines(stream: IO[AnyStr]) -> Iterator[AnyStr]:
    """Yield each line of *stream* with trailing carriage returns and newlines removed.

    Works with text and binary streams; a final line without a newline is kept.
    """
    while True:
        line = stream.readline()
        if not line:
            return
        if isinstance(line, bytes):
            yield line.rstrip(b"\r\n")
        else:
            yield line.rstrip("\r\n")