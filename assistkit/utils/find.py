"""Recursive file search filtered by name, type and size."""

from __future__ import annotations

import os
import re
import stat
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from assistkit.utils.fsinfo import _format_time, _mode_string

_Prune = Callable[[str, os.stat_result], bool]


@dataclass
class FindResult:
    """One path found by ``find``."""

    path: str
    name: str
    size: int
    is_dir: bool
    mode: str
    mod_time: str
    content: str = ""


def _entry_name(path: str) -> str:
    name = os.path.basename(os.path.normpath(path))
    return name or path


def _walk(root: str, prune: _Prune | None = None) -> Iterator[tuple[str, os.stat_result]]:
    """Yield *root* and everything below it in lexical pre-order, without following symlinks.

    Directories for which *prune* returns true are neither yielded nor entered.
    """
    yield from _walk_from(root, os.lstat(root), prune)


def _walk_from(
    path: str, info: os.stat_result, prune: _Prune | None
) -> Iterator[tuple[str, os.stat_result]]:
    is_directory = stat.S_ISDIR(info.st_mode)
    if is_directory and prune is not None and prune(path, info):
        return
    yield path, info
    if not is_directory:
        return
    for name in sorted(os.listdir(path)):
        child = os.path.normpath(os.path.join(path, name))
        yield from _walk_from(child, os.lstat(child), prune)


def find(
    root: str,
    name_pattern: str | None = None,
    type_filter: str = "",
    min_size: int = 0,
    max_size: int = 0,
    search_hidden: bool = True,
    with_content: bool = False,
) -> list[FindResult]:
    """Walk *root* and return every path that passes the filters.

    *name_pattern* is a regular expression searched in the base name;
    *type_filter* is ``"f"`` for files, ``"d"`` for directories or empty for both.
    Sizes of zero disable the size limits.
    """
    regex = None
    if name_pattern is not None:
        try:
            regex = re.compile(name_pattern)
        except re.error as exc:
            raise ValueError(f"invalid name pattern: {exc}") from exc
    if type_filter not in ("", "f", "d"):
        raise ValueError(f"invalid type filter: {type_filter!r}")

    root = os.fspath(root)

    def prune(path: str, _info: os.stat_result) -> bool:
        return not search_hidden and path != root and _entry_name(path).startswith(".")

    results: list[FindResult] = []
    for path, info in _walk(root, prune):
        name = _entry_name(path)
        is_directory = stat.S_ISDIR(info.st_mode)
        if regex is not None and regex.search(name) is None:
            continue
        if type_filter == "f" and is_directory:
            continue
        if type_filter == "d" and not is_directory:
            continue
        if min_size > 0 and info.st_size < min_size:
            continue
        if max_size > 0 and info.st_size > max_size:
            continue
        item = FindResult(
            path=path,
            name=name,
            size=info.st_size,
            is_dir=is_directory,
            mode=_mode_string(info.st_mode),
            mod_time=_format_time(info.st_mtime),
        )
        if with_content and not is_directory:
            with open(path, "rb") as handle:
                item.content = handle.read().decode("utf-8", "surrogateescape")
        results.append(item)
    return results