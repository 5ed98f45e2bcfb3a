"""Searching file contents by regular expression, through ripgrep when it is available."""

from __future__ import annotations

import os
import re
import stat
from dataclasses import dataclass

from assistkit.utils.find import _entry_name, _walk
from assistkit.utils.lines import iter_lines
from assistkit.utils.ripgrep import (
    RipgrepError,
    iter_ripgrep_matches,
    look_path,
    regex_name_to_rg_glob,
)


@dataclass
class GrepResult:
    """One matching line, or the total when only a count was asked for."""

    path: str
    line: int
    content: str = ""
    match_info: str = ""


def _count_result(count: int) -> list[GrepResult]:
    return [GrepResult(path="(count)", line=count)]


def _char_offset(encoded: bytes, offset: int) -> int:
    return len(encoded[:offset].decode("utf-8", "surrogateescape"))


def _grep_rg(
    pattern: str,
    paths: list[str],
    context: int,
    recursive: bool,
    file_pattern: str | None,
    count_only: bool,
) -> list[GrepResult] | None:
    args = ["--json", "--no-messages", "--hidden", "--no-ignore", "--no-ignore-vcs"]
    if not recursive:
        args += ["--max-depth", "1"]
    if file_pattern is not None:
        glob = regex_name_to_rg_glob(file_pattern)
        if glob is None:
            return None
        args += ["--glob", glob]
    args.append(pattern)
    args += paths or ["."]

    results: list[GrepResult] = []
    count = 0
    try:
        for md in iter_ripgrep_matches(args):
            count += 1
            if count_only:
                continue
            line = md.lines.rstrip("\r\n")
            start = end = 0
            match_text = ""
            if md.submatches:
                encoded = line.encode("utf-8", "surrogateescape")
                first = md.submatches[0]
                start = _char_offset(encoded, first.start)
                end = _char_offset(encoded, first.end)
                if 0 <= start <= end <= len(line):
                    match_text = line[start:end]
            content = line
            if context > 0 and md.submatches:
                cs = max(0, start - context)
                ce = min(len(line), end + context)
                if cs <= ce:
                    content = line[cs:ce]
            info = f"'{match_text}' at pos {start}" if match_text else f"pos {start}"
            results.append(
                GrepResult(path=md.path, line=md.line_number, content=content, match_info=info)
            )
    except (RipgrepError, OSError):
        return None
    return _count_result(count) if count_only else results


def _grep_walk(
    regex: re.Pattern[str],
    paths: list[str],
    invert_match: bool,
    context: int,
    recursive: bool,
    file_regex: re.Pattern[str] | None,
) -> list[GrepResult]:
    results: list[GrepResult] = []
    for root in paths:

        def prune(path: str, _info: os.stat_result, root: str = root) -> bool:
            return not recursive and path != root

        for path, info in _walk(root, prune):
            if stat.S_ISDIR(info.st_mode):
                continue
            if file_regex is not None and file_regex.search(_entry_name(path)) is None:
                continue
            with open(path, "rb") as handle:
                for number, raw in enumerate(iter_lines(handle), start=1):
                    line = raw.decode("utf-8", "surrogateescape")
                    found = regex.search(line)
                    if invert_match:
                        if found is None:
                            results.append(
                                GrepResult(path, number, line, match_info=regex.pattern)
                            )
                        continue
                    if found is None:
                        continue
                    start, end = found.span()
                    content = line
                    if context > 0:
                        content = line[max(0, start - context) : min(len(line), end + context)]
                    results.append(
                        GrepResult(
                            path=path,
                            line=number,
                            content=content,
                            match_info=f"'{found.group(0)}' at pos {start}",
                        )
                    )
    return results


def grep(
    pattern: str,
    *args: str,
    invert_match: bool = False,
    context: int = 0,
    recursive: bool = True,
    file_pattern: str | None = None,
    count_only: bool = False,
) -> list[GrepResult]:
    """Search the files under each path in *args* for lines matching *pattern*.

    *context* trims each reported line to that many characters around the match;
    *file_pattern* is a regex applied to file base names. With *count_only* the
    result is a single entry whose ``line`` is the number of matches.
    """
    file_regex = None
    if file_pattern is not None:
        try:
            file_regex = re.compile(file_pattern)
        except re.error as exc:
            raise ValueError(f"invalid file pattern: {exc}") from exc
    try:
        regex = re.compile(pattern)
    except re.error as exc:
        raise ValueError(f"invalid pattern: {exc}") from exc

    paths = [os.fspath(p) for p in args]

    if not invert_match and look_path("rg") is not None:
        found = _grep_rg(pattern, paths, context, recursive, file_pattern, count_only)
        if found is not None:
            return found

    results = _grep_walk(regex, paths, invert_match, context, recursive, file_regex)
    return _count_result(len(results)) if count_only else results