"""Directory listings, file status and removal under a base directory."""

from __future__ import annotations

import os
import shutil
import stat
from dataclasses import dataclass
from datetime import datetime

from assistkit.utils.errors import InvalidPathError, NotFoundError, PermissionDeniedError
from assistkit.utils.paths import clean_rel_path

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class FileInfo:
    """One entry of a directory listing."""

    path: str
    name: str
    size: int
    is_dir: bool
    mode: str
    mod_time: str


@dataclass
class StatResult:
    """Status of a path; symlinks are described, not followed."""

    path: str
    name: str
    size: int
    is_dir: bool
    mode: str
    mod_time: str
    is_symlink: bool = False
    link_target: str = ""


@dataclass
class RemoveResult:
    """Outcome of removing one path."""

    path: str
    removed: bool


def _mode_string(st_mode: int) -> str:
    """Render a mode as type letters followed by nine permission characters."""
    kinds = []
    if stat.S_ISDIR(st_mode):
        kinds.append("d")
    if stat.S_ISLNK(st_mode):
        kinds.append("L")
    if stat.S_ISBLK(st_mode) or stat.S_ISCHR(st_mode):
        kinds.append("D")
    if stat.S_ISFIFO(st_mode):
        kinds.append("p")
    if stat.S_ISSOCK(st_mode):
        kinds.append("S")
    if st_mode & stat.S_ISUID:
        kinds.append("u")
    if st_mode & stat.S_ISGID:
        kinds.append("g")
    if stat.S_ISCHR(st_mode):
        kinds.append("c")
    if st_mode & stat.S_ISVTX:
        kinds.append("t")
    prefix = "".join(kinds) or "-"
    perms = "".join(
        letter if st_mode & (1 << (8 - index)) else "-"
        for index, letter in enumerate("rwxrwxrwx")
    )
    return prefix + perms


def _format_time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).strftime(_TIME_FORMAT)


def list_dir(path: str = "") -> list[FileInfo]:
    """List the entries of a directory, sorted by name."""
    if not path.strip():
        path = "."
    with os.scandir(path) as scanner:
        entries = sorted(scanner, key=lambda entry: entry.name)
    results = []
    for entry in entries:
        info = entry.stat(follow_symlinks=False)
        results.append(
            FileInfo(
                path=os.path.normpath(os.path.join(path, entry.name)),
                name=entry.name,
                size=info.st_size,
                is_dir=entry.is_dir(follow_symlinks=False),
                mode=_mode_string(info.st_mode),
                mod_time=_format_time(info.st_mtime),
            )
        )
    return results


def _lstat(full: str, clean: str) -> os.stat_result:
    try:
        return os.lstat(full)
    except FileNotFoundError as exc:
        raise NotFoundError(clean) from exc
    except PermissionError as exc:
        raise PermissionDeniedError(clean) from exc


def stat_path(rel_path: str, base_dir: str = ".") -> StatResult:
    """Describe *rel_path* under *base_dir* without following a final symlink."""
    clean = clean_rel_path(rel_path)
    full = os.path.normpath(os.path.join(base_dir, clean))
    info = _lstat(full, clean)
    result = StatResult(
        path=full,
        name=os.path.basename(full),
        size=info.st_size,
        is_dir=stat.S_ISDIR(info.st_mode),
        mode=_mode_string(info.st_mode),
        mod_time=_format_time(info.st_mtime),
    )
    if stat.S_ISLNK(info.st_mode):
        result.is_symlink = True
        try:
            result.link_target = os.readlink(full)
        except OSError:
            pass
    return result


def remove(
    *args: str, base_dir: str = ".", recursive: bool = False, force: bool = False
) -> list[RemoveResult]:
    """Remove each relative path under *base_dir*.

    Directories need *recursive*; with *force*, missing paths are reported
    as not removed instead of raising.
    """
    if not args:
        raise InvalidPathError("no paths")
    base = base_dir if base_dir.strip() else "."
    results = []
    for rel in args:
        clean = clean_rel_path(rel)
        full = os.path.normpath(os.path.join(base, clean))
        try:
            info = _lstat(full, clean)
        except NotFoundError:
            if force:
                results.append(RemoveResult(path=full, removed=False))
                continue
            raise
        if stat.S_ISDIR(info.st_mode):
            if not recursive:
                raise IsADirectoryError(
                    f"refusing to remove directory without recursive: {clean}"
                )
            shutil.rmtree(full)
        else:
            os.remove(full)
        results.append(RemoveResult(path=full, removed=True))
    return results