"""Parsing and applying patches that add, update, move and delete files.

A patch looks like::

    *** Begin Patch
    *** Add File: path/new.txt
    +first line
    *** Update File: path/old.txt
    *** Move to: path/renamed.txt
    @@ anchor line
     context
    -removed
    +added
    *** Delete File: path/gone.txt
    *** End Patch
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field

from assistkit.utils.errors import InvalidPatchError
from assistkit.utils.jsonutil import write_file_atomic
from assistkit.utils.paths import clean_rel_path

_BEGIN = "*** Begin Patch"
_END = "*** End Patch"
_ADD = "*** Add File: "
_DELETE = "*** Delete File: "
_UPDATE = "*** Update File: "
_MOVE = "*** Move to: "
_HEADER = "*** "
_MAX_LINE = 4 * 1024 * 1024


class PatchKind(enum.Enum):
    """What a patch operation does to its file."""

    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class HunkLine:
    """One line of a hunk: ``op`` is ``" "`` (context), ``"+"`` or ``"-"``."""

    op: str
    text: str


@dataclass
class Hunk:
    """A block of changes, optionally located after an anchor line."""

    anchor: str = ""
    lines: list[HunkLine] = field(default_factory=list)


def _hunk_sequences(hunk: Hunk) -> tuple[list[str], list[str]]:
    old: list[str] = []
    new: list[str] = []
    for line in hunk.lines:
        if line.op == " ":
            old.append(line.text)
            new.append(line.text)
        elif line.op == "-":
            old.append(line.text)
        elif line.op == "+":
            new.append(line.text)
        else:
            raise InvalidPatchError(f"invalid hunk op: {line.op!r}")
    return old, new


def _index_of_sequence(lines: list[str], seq: list[str], start: int) -> int:
    start = max(start, 0)
    width = len(seq)
    for pos in range(start, len(lines) - width + 1):
        if lines[pos : pos + width] == seq:
            return pos
    return -1


def apply_hunks(content: str, hunks: list[Hunk]) -> str:
    """Apply *hunks* in order to *content* and return the new text."""
    if not hunks:
        return content
    lines = content.split("\n")
    for hunk in hunks:
        has_anchor = bool(hunk.anchor.strip())
        start = 0
        if has_anchor:
            try:
                start = lines.index(hunk.anchor)
            except ValueError:
                raise InvalidPatchError(f"anchor not found: {hunk.anchor!r}") from None
        old, new = _hunk_sequences(hunk)
        if not old:
            at = start + 1 if has_anchor else start
            lines[at:at] = new
            continue
        pos = _index_of_sequence(lines, old, start)
        if pos < 0:
            raise InvalidPatchError(f"hunk target not found near anchor {hunk.anchor!r}")
        lines[pos : pos + len(old)] = new
    return "\n".join(lines)


@dataclass
class PatchOperation:
    """One file operation of a patch."""

    kind: PatchKind
    path: str
    move: str = ""
    add_lines: list[str] = field(default_factory=list)
    hunks: list[Hunk] = field(default_factory=list)

    def apply(self, base_dir: str = ".") -> None:
        """Carry out this operation on the files under *base_dir*."""
        path = clean_rel_path(self.path, InvalidPatchError)
        full = os.path.join(base_dir, path)

        if self.kind is PatchKind.ADD:
            if os.path.exists(full):
                raise InvalidPatchError(f"add file already exists: {path}")
            os.makedirs(os.path.dirname(full) or ".", 0o755, exist_ok=True)
            write_file_atomic(full, "\n".join(self.add_lines), 0o644)
            return

        if self.kind is PatchKind.DELETE:
            if not os.path.exists(full):
                raise InvalidPatchError(f"delete file not found: {path}")
            os.remove(full)
            return

        with open(full, "rb") as handle:
            original = handle.read().decode("utf-8", "surrogateescape")
        try:
            updated = apply_hunks(_normalize_newlines(original), self.hunks)
        except InvalidPatchError as exc:
            raise InvalidPatchError(f"update {path}: {exc.detail}") from exc

        target = full
        if self.move.strip():
            move_path = clean_rel_path(self.move, InvalidPatchError)
            target = os.path.join(base_dir, move_path)
            if move_path != path:
                if os.path.exists(target):
                    raise InvalidPatchError(f"move target exists: {move_path}")
                os.makedirs(os.path.dirname(target) or ".", 0o755, exist_ok=True)

        write_file_atomic(target, updated, 0o644)
        if target != full:
            os.remove(full)


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _split_lines(text: str) -> list[str]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    if any(len(line) > _MAX_LINE for line in lines):
        raise InvalidPatchError("scan patch failed: token too long")
    return lines


def _parse_update_body(lines: list[str], i: int, op: PatchOperation) -> int:
    """Read move and hunk lines of an update; return the index after them."""
    n = len(lines)
    while i < n:
        line = lines[i]
        if not line.strip():
            i += 1
            continue
        if line.startswith(_MOVE):
            op.move = line[len(_MOVE) :].strip()
            i += 1
            continue
        if line.startswith(_HEADER) or line.strip() == _END:
            break
        if not line.startswith("@@"):
            raise InvalidPatchError(f"expected hunk header '@@', got: {line!r}")

        hunk = Hunk(anchor=line[2:].strip())
        i += 1
        while i < n:
            body = lines[i]
            if body.startswith("@@") or body.startswith(_HEADER) or body.strip() == _END:
                break
            if body == "":
                hunk.lines.append(HunkLine(" ", ""))
                i += 1
                continue
            if body[0] not in " +-":
                raise InvalidPatchError(f"invalid hunk line prefix: {body!r}")
            hunk.lines.append(HunkLine(body[0], body[1:]))
            i += 1
        op.hunks.append(hunk)
    return i


def parse_patch(text: str) -> list[PatchOperation]:
    """Parse a patch into its file operations."""
    lines = _split_lines(_normalize_newlines(text))
    if not lines:
        raise InvalidPatchError("empty patch")
    if lines[0].strip() != _BEGIN:
        raise InvalidPatchError(f"missing {_BEGIN!r}")

    ops: list[PatchOperation] = []
    i = 1
    n = len(lines)
    while i < n:
        line = lines[i]
        stripped = line.strip()
        if not stripped:
            i += 1
            continue
        if stripped == _END:
            return ops

        if line.startswith(_ADD):
            op = PatchOperation(PatchKind.ADD, line[len(_ADD) :].strip())
            i += 1
            while i < n and not lines[i].startswith(_HEADER):
                body = lines[i]
                if not body.startswith("+"):
                    raise InvalidPatchError(f"add file line must start with '+': {body!r}")
                op.add_lines.append(body[1:])
                i += 1
            ops.append(op)
        elif line.startswith(_DELETE):
            ops.append(PatchOperation(PatchKind.DELETE, line[len(_DELETE) :].strip()))
            i += 1
        elif line.startswith(_UPDATE):
            op = PatchOperation(PatchKind.UPDATE, line[len(_UPDATE) :].strip())
            i = _parse_update_body(lines, i + 1, op)
            ops.append(op)
        else:
            raise InvalidPatchError(f"unknown patch header: {line!r}")

    raise InvalidPatchError(f"missing {_END!r}")


def apply_patch(text: str, base_dir: str = ".") -> None:
    """Parse *text* and apply each operation to the files under *base_dir*."""
    for op in parse_patch(text):
        op.apply(base_dir)