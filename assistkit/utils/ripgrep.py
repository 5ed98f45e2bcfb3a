"""Running ripgrep and reading its plain or JSON output."""

from __future__ import annotations

import contextlib
import json
import shutil
import subprocess
import tempfile
from collections.abc import Iterator
from dataclasses import dataclass, field

_EXT_SPECIAL = set(".*+?[]{}()\\")


class RipgrepError(RuntimeError):
    """ripgrep could not be run or reported a failure."""

    def __init__(self, message: str, stderr: str = "", exit_code: int | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr
        self.exit_code = exit_code


@dataclass(frozen=True)
class RgSubmatch:
    """One matched span inside a line; offsets are in bytes."""

    text: str
    start: int
    end: int


@dataclass
class RgMatch:
    """A matching line reported by ``rg --json``."""

    path: str
    lines: str
    line_number: int
    submatches: list[RgSubmatch] = field(default_factory=list)


def look_path(cmd: str) -> str | None:
    """Return the full path of executable *cmd* on ``PATH``, or ``None``."""
    return shutil.which(cmd)


def _run(args: list[str]) -> Iterator[str]:
    rg = look_path("rg")
    if rg is None:
        raise RipgrepError("rg not found")
    with tempfile.TemporaryFile() as err_file:
        try:
            proc = subprocess.Popen([rg, *args], stdout=subprocess.PIPE, stderr=err_file)
        except OSError as exc:
            raise RipgrepError(f"rg start: {exc}") from exc
        stdout = proc.stdout
        if stdout is None:
            raise RipgrepError("rg stdout pipe: not available")
        try:
            for raw in stdout:
                yield raw.rstrip(b"\r\n").decode("utf-8", "surrogateescape")
        except BaseException:
            proc.kill()
            raise
        finally:
            stdout.close()
            code = proc.wait()
        err_file.seek(0)
        stderr = err_file.read().decode("utf-8", "replace")
    if code not in (0, 1):
        raise RipgrepError(f"rg failed (exit {code}): {stderr.strip()}", stderr, code)


def iter_ripgrep_lines(args: list[str]) -> Iterator[str]:
    """Run ``rg`` with *args* and yield each line of its output.

    Exit status 1 (no matches) counts as success.
    """
    yield from _run(list(args))


def _parse_match(data: object) -> RgMatch:
    if not isinstance(data, dict):
        raise RipgrepError("rg match decode: data is not an object")
    try:
        submatches = [
            RgSubmatch(
                text=(item.get("match") or {}).get("text", ""),
                start=int(item.get("start") or 0),
                end=int(item.get("end") or 0),
            )
            for item in data.get("submatches") or []
        ]
        return RgMatch(
            path=(data.get("path") or {}).get("text", ""),
            lines=(data.get("lines") or {}).get("text", ""),
            line_number=int(data.get("line_number") or 0),
            submatches=submatches,
        )
    except (AttributeError, TypeError, ValueError) as exc:
        raise RipgrepError(f"rg match decode: {exc}") from exc


def iter_ripgrep_matches(args: list[str]) -> Iterator[RgMatch]:
    """Run ``rg`` with *args* (which should include ``--json``) and yield its matches."""
    with contextlib.closing(_run(list(args))) as lines:
        for line in lines:
            if not line.strip():
                continue
            try:
                event = json.loads(line)
            except ValueError as exc:
                raise RipgrepError(f"rg json decode: {exc}") from exc
            if not isinstance(event, dict) or event.get("type") != "match":
                continue
            yield _parse_match(event.get("data"))


def regex_name_to_rg_glob(pattern: str) -> str | None:
    """Turn a simple file-extension regex into an rg glob, or return ``None``.

    ``\\.go$`` becomes ``*.go`` and ``.*\\.(go|ts)$`` becomes ``*.{go,ts}``.
    """
    p = pattern.strip().removeprefix("^").removesuffix("$")
    if "/" in p:
        return None
    for prefix in (".*", ".+", "(.*)", "(.+)"):
        if p.startswith(prefix):
            p = p[len(prefix) :]
            break
    if not p.startswith("\\."):
        return None
    p = p[2:]
    if not p:
        return None

    if p.startswith("(") and p.endswith(")"):
        parts = p[1:-1].split("|")
        if any(not part or _EXT_SPECIAL.intersection(part) for part in parts):
            return None
        return "*.{" + ",".join(parts) + "}"

    if _EXT_SPECIAL.intersection(p) or "|" in p:
        return None
    return "*." + p