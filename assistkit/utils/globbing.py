"""Glob matching with ``**`` and a walk that returns matching paths."""

from __future__ import annotations

import os
import re
import stat
from dataclasses import dataclass
from functools import lru_cache

from assistkit.utils.errors import InvalidPathError
from assistkit.utils.find import _walk

_BAD_PATTERN = "syntax error in pattern"


@dataclass
class GlobResult:
    """A path matched by ``glob_paths``."""

    path: str
    is_dir: bool


def _read_class_char(seg: str, i: int) -> tuple[str, int]:
    if i >= len(seg) or seg[i] in "-]":
        raise ValueError(_BAD_PATTERN)
    if seg[i] == "\\":
        i += 1
        if i >= len(seg):
            raise ValueError(_BAD_PATTERN)
    return seg[i], i + 1


@lru_cache(maxsize=256)
def _segment_regex(seg: str) -> re.Pattern[str]:
    """Translate one shell-style path segment into a regular expression."""
    out: list[str] = []
    i = 0
    n = len(seg)
    while i < n:
        ch = seg[i]
        if ch == "*":
            out.append("[^/]*")
            i += 1
        elif ch == "?":
            out.append("[^/]")
            i += 1
        elif ch == "\\":
            if i + 1 >= n:
                raise ValueError(_BAD_PATTERN)
            out.append(re.escape(seg[i + 1]))
            i += 2
        elif ch == "[":
            i += 1
            negate = i < n and seg[i] == "^"
            if negate:
                i += 1
            ranges: list[str] = []
            count = 0
            while True:
                if i < n and seg[i] == "]" and count > 0:
                    i += 1
                    break
                lo, i = _read_class_char(seg, i)
                hi = lo
                if i < n and seg[i] == "-":
                    hi, i = _read_class_char(seg, i + 1)
                count += 1
                if lo <= hi:
                    ranges.append(f"{re.escape(lo)}-{re.escape(hi)}")
            body = "".join(ranges)
            if negate:
                out.append(f"[^{body}]" if body else "[\\s\\S]")
            else:
                out.append(f"[{body}]" if body else "(?!)")
        else:
            out.append(re.escape(ch))
            i += 1
    return re.compile("".join(out), re.DOTALL)


def match_glob(pattern: str, path: str) -> bool:
    """Match a slash-separated *path* against *pattern*.

    ``*``, ``?`` and ``[...]`` match within one segment; a ``**`` segment
    matches zero or more whole segments. Malformed patterns raise ``ValueError``.
    """
    pattern_parts = pattern.split("/")
    path_parts = path.split("/")

    def rec(pi: int, ri: int) -> bool:
        if pi == len(pattern_parts):
            return ri == len(path_parts)
        seg = pattern_parts[pi]
        if seg == "**":
            return any(rec(pi + 1, k) for k in range(ri, len(path_parts) + 1))
        if ri >= len(path_parts):
            return False
        if _segment_regex(seg).fullmatch(path_parts[ri]) is None:
            return False
        return rec(pi + 1, ri + 1)

    return rec(0, 0)


def glob_paths(
    pattern: str,
    base_dir: str = ".",
    files: bool = True,
    dirs: bool = True,
    max_results: int = 0,
) -> list[GlobResult]:
    """Return the paths under *base_dir* whose relative path matches *pattern*, sorted."""
    pat = pattern.strip()
    if not pat:
        raise InvalidPathError("empty pattern")
    if os.path.isabs(pat):
        raise InvalidPathError(f"absolute pattern not allowed: {pat}")
    clean = os.path.normpath(pat)
    if clean == ".." or clean.startswith(".." + os.sep):
        raise InvalidPathError(f"pattern escapes base dir: {pat}")

    base = base_dir if base_dir.strip() else "."
    pattern_slash = pat.removeprefix("./").replace(os.sep, "/")

    found: list[GlobResult] = []
    for full, info in _walk(base):
        rel = os.path.relpath(full, base).removeprefix("./").replace(os.sep, "/")
        if rel == ".":
            continue
        if not match_glob(pattern_slash, rel):
            continue
        is_directory = stat.S_ISDIR(info.st_mode)
        if (is_directory and not dirs) or (not is_directory and not files):
            continue
        found.append(GlobResult(path=full, is_dir=is_directory))
        if max_results > 0 and len(found) >= max_results:
            break

    found.sort(key=lambda item: item.path)
    return found