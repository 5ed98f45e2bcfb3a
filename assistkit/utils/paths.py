"""Path validation and basic file-system helpers."""

from __future__ import annotations

import os
import shutil
import tempfile

from assistkit.utils.errors import InvalidPathError


def clean_rel_path(path: str, error_type: type[Exception] = InvalidPathError) -> str:
    """Normalise a relative path that must stay inside its base directory.

    Empty, absolute and escaping paths, and ``.``, raise *error_type*.
    """
    path = path.strip()
    if not path:
        raise error_type("empty path")
    if os.path.isabs(path):
        raise error_type(f"absolute path not allowed: {path}")
    clean = os.path.normpath(path)
    if clean == ".":
        raise error_type(f"invalid path: {path}")
    if clean == ".." or clean.startswith(".." + os.sep):
        raise error_type(f"path escapes base dir: {path}")
    return clean


def exists(path: str | os.PathLike[str]) -> bool:
    """True if *path* exists (symlinks are followed)."""
    return os.path.exists(path)


def is_dir(path: str | os.PathLike[str]) -> bool:
    """True if *path* is an existing directory."""
    return os.path.isdir(path)


def is_file(path: str | os.PathLike[str]) -> bool:
    """True if *path* exists and is not a directory."""
    return os.path.exists(path) and not os.path.isdir(path)


def abs_path(path: str | os.PathLike[str]) -> str:
    """Return *path* made absolute against the working directory."""
    return os.path.abspath(path)


def mkdir(path: str, parents: bool = False) -> None:
    """Create a directory, with its missing parents when *parents* is true."""
    if not path.strip():
        raise ValueError("mkdir failed: empty path")
    if parents:
        os.makedirs(path, 0o755, exist_ok=True)
    else:
        os.mkdir(path, 0o755)


def copy_file(src: str, dst: str) -> None:
    """Copy a regular file, creating the destination directory if needed."""
    if not src.strip() or not dst.strip():
        raise ValueError("copy failed: empty src or dst")
    if src == dst:
        return
    with open(src, "rb") as source:
        info = os.fstat(source.fileno())
        if os.path.isdir(src):
            raise IsADirectoryError(f"copy failed: source is a directory: {src}")
        directory = os.path.dirname(dst)
        if directory and directory != ".":
            os.makedirs(directory, 0o755, exist_ok=True)
        fd = os.open(dst, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, info.st_mode & 0o7777)
        with os.fdopen(fd, "wb") as target:
            shutil.copyfileobj(source, target)


def cwd() -> str:
    """Return the current working directory."""
    return os.getcwd()


def home_dir() -> str:
    """Return the home directory of the current user."""
    return os.path.expanduser("~")


def temp_dir() -> str:
    """Return the directory used for temporary files."""
    return tempfile.gettempdir()