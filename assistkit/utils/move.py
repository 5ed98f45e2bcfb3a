"""Moving files and directories under a base directory, across file systems if needed."""

from __future__ import annotations

import contextlib
import errno
import os
import shutil
import stat
import tempfile
from dataclasses import dataclass

from assistkit.utils.errors import NotFoundError
from assistkit.utils.paths import clean_rel_path


@dataclass
class MoveResult:
    """Full source and destination paths of a completed move."""

    src: str
    dst: str


def _remove_all(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    else:
        os.remove(path)


def move(src: str, dst: str, base_dir: str = ".", overwrite: bool = False) -> MoveResult:
    """Move *src* to *dst*, both relative to *base_dir*.

    An existing destination is replaced only with *overwrite*.
    """
    base = base_dir if base_dir.strip() else "."
    src_rel = clean_rel_path(src)
    dst_rel = clean_rel_path(dst)
    src_full = os.path.normpath(os.path.join(base, src_rel))
    dst_full = os.path.normpath(os.path.join(base, dst_rel))

    if not os.path.exists(src_full):
        raise NotFoundError(src_rel)
    dst_exists = os.path.exists(dst_full)
    if dst_exists and not overwrite:
        raise FileExistsError(f"destination exists: {dst_rel}")
    os.makedirs(os.path.dirname(dst_full) or ".", 0o755, exist_ok=True)
    if dst_exists:
        _remove_all(dst_full)

    try:
        os.rename(src_full, dst_full)
    except OSError as exc:
        if exc.errno != errno.EXDEV:
            raise
        _move_by_copy(src_full, dst_full)
    return MoveResult(src=src_full, dst=dst_full)


def _move_by_copy(src: str, dst: str) -> None:
    """Copy *src* to *dst* and then remove *src*, keeping symlinks as symlinks."""
    info = os.lstat(src)
    if stat.S_ISLNK(info.st_mode):
        os.symlink(os.readlink(src), dst)
        os.remove(src)
        return
    if stat.S_ISDIR(info.st_mode):
        _copy_dir(src, dst)
        shutil.rmtree(src)
        return
    _copy_file(src, dst, info.st_mode)
    _copy_times(dst, info.st_mtime)
    os.remove(src)


def _copy_times(path: str, mtime: float) -> None:
    with contextlib.suppress(OSError):
        os.utime(path, (mtime, mtime))


def _copy_file(src: str, dst: str, mode: int) -> None:
    directory = os.path.dirname(dst) or "."
    os.makedirs(directory, 0o755, exist_ok=True)
    with open(src, "rb") as source:
        fd, tmp_path = tempfile.mkstemp(
            prefix=os.path.basename(dst) + ".", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "wb") as target:
                os.chmod(tmp_path, mode & 0o777)
                shutil.copyfileobj(source, target)
                target.flush()
                os.fsync(target.fileno())
            os.replace(tmp_path, dst)
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.remove(tmp_path)


def _copy_dir(src: str, dst: str) -> None:
    info = os.lstat(src)
    os.makedirs(dst, info.st_mode & 0o777, exist_ok=True)
    for name in sorted(os.listdir(src)):
        src_path = os.path.join(src, name)
        dst_path = os.path.join(dst, name)
        entry = os.lstat(src_path)
        if stat.S_ISLNK(entry.st_mode):
            os.symlink(os.readlink(src_path), dst_path)
        elif stat.S_ISDIR(entry.st_mode):
            _copy_dir(src_path, dst_path)
        else:
            _copy_file(src_path, dst_path, entry.st_mode)
            _copy_times(dst_path, entry.st_mtime)