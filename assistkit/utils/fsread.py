"""Reading whole files, line ranges and byte chunks, and writing files."""

from __future__ import annotations

import enum
import io
import os
from dataclasses import dataclass
from typing import BinaryIO

from assistkit.utils.errors import InvalidRangeError, NotFoundError, PermissionDeniedError

_MAX_LINE_BYTES = 1024 * 1024


@dataclass
class ReadResult:
    """Text read from a file together with a little metadata."""

    path: str
    content: str
    lines: int = 0
    encoding: str = ""

    def to_bytes(self) -> bytes:
        """Return the content as the bytes it was read from."""
        return self.content.encode("utf-8", "surrogateescape")

    def reader(self) -> io.BytesIO:
        """Return a binary stream over the content."""
        return io.BytesIO(self.to_bytes())


class WriteMode(str, enum.Enum):
    """How ``write`` treats an existing file."""

    OVERWRITE = "overwrite"
    APPEND = "append"
    CREATE = "create"


def detect_encoding(content: bytes) -> str:
    """Name the encoding of *content* from its byte-order mark."""
    if not content:
        return "empty"
    if content.startswith(b"\xef\xbb\xbf"):
        return "utf-8-bom"
    if content.startswith(b"\xff\xfe"):
        return "utf-16-le"
    if content.startswith(b"\xfe\xff"):
        return "utf-16-be"
    return "utf-8"


def _decode(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def _open_binary(path: str) -> BinaryIO:
    try:
        return open(path, "rb")
    except FileNotFoundError as exc:
        raise NotFoundError(path) from exc
    except PermissionError as exc:
        raise PermissionDeniedError(path) from exc


def read(path: str) -> ReadResult:
    """Read a whole file."""
    with _open_binary(path) as handle:
        data = handle.read()
    content = _decode(data)
    return ReadResult(
        path=path,
        content=content,
        lines=content.count("\n") + 1,
        encoding=detect_encoding(data),
    )


def read_lines(path: str, start: int, end: int) -> ReadResult:
    """Read lines *start* to *end* (1-based, inclusive), each prefixed with its number.

    ``lines`` in the result is the number of lines scanned.
    """
    if start < 1 or end < start:
        raise InvalidRangeError(f"start={start}, end={end}")
    numbered: list[str] = []
    line_num = 0
    with _open_binary(path) as handle:
        for raw in handle:
            if len(raw) > _MAX_LINE_BYTES:
                raise ValueError("scan file failed: token too long")
            line_num += 1
            if line_num >= start:
                text = _decode(raw.removesuffix(b"\n").removesuffix(b"\r"))
                numbered.append(f"{line_num:6d} | {text}")
            if line_num >= end:
                break
    return ReadResult(path=path, content="\n".join(numbered), lines=line_num, encoding="utf-8")


def read_chunk(path: str, offset: int, size: int) -> ReadResult:
    """Read up to *size* bytes starting at byte *offset*."""
    if offset < 0 or size <= 0:
        raise ValueError("invalid offset or size")
    with _open_binary(path) as handle:
        handle.seek(offset)
        data = handle.read(size)
    return ReadResult(path=path, content=_decode(data), encoding="binary")


def write(path: str, content: str, mode: WriteMode | str) -> None:
    """Write *content* to *path*, overwriting, appending or creating it."""
    try:
        mode = WriteMode(mode)
    except ValueError:
        raise ValueError(f"unknown write mode: {mode}") from None
    if mode is WriteMode.CREATE and os.path.exists(path):
        raise FileExistsError(f"file already exists: {path}")
    flags = os.O_WRONLY | os.O_CREAT
    flags |= os.O_APPEND if mode is WriteMode.APPEND else os.O_TRUNC
    fd = os.open(path, flags, 0o644)
    with os.fdopen(fd, "wb") as handle:
        handle.write(content.encode("utf-8", "surrogateescape"))