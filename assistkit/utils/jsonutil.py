"""JSON encoding helpers and extraction of JSON from free-form model output."""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from typing import Any


def to_json(value: Any) -> str:
    """Encode *value* as JSON indented by two spaces."""
    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"marshal failed: {exc}") from exc


def to_json_compact(value: Any) -> str:
    """Encode *value* as JSON without any whitespace."""
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"marshal failed: {exc}") from exc


def from_json(text: str) -> Any:
    """Decode a JSON document."""
    try:
        return json.loads(text)
    except ValueError as exc:
        raise ValueError(f"unmarshal failed: {exc}") from exc


def validate_json(text: str) -> None:
    """Raise ``ValueError`` unless *text* is a valid JSON document."""
    try:
        json.loads(text)
    except ValueError as exc:
        raise ValueError(f"invalid json: {exc}") from exc


def pretty_json(text: str, indent: str = "  ") -> str:
    """Re-indent a JSON document, keeping its tokens exactly as written."""
    if not indent:
        indent = "  "
    try:
        json.loads(text)
    except ValueError as exc:
        raise ValueError(f"indent failed: {exc}") from exc

    out: list[str] = []
    depth = 0
    in_string = False
    escaped = False
    just_opened = False
    for ch in text:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch in " \t\r\n":
            continue
        if ch in "}]":
            depth -= 1
            if just_opened:
                just_opened = False
                out.append(ch)
            else:
                out.append("\n" + indent * depth + ch)
            continue
        if just_opened:
            out.append("\n" + indent * depth)
            just_opened = False
        if ch in "{[":
            out.append(ch)
            depth += 1
            just_opened = True
        elif ch == ",":
            out.append(",\n" + indent * depth)
        elif ch == ":":
            out.append(": ")
        else:
            if ch == '"':
                in_string = True
            out.append(ch)
    return "".join(out)


def _extract_balanced(text: str, opener: str, closer: str) -> str | None:
    start = -1
    depth = 0
    in_string = False
    escaped = False
    for index, ch in enumerate(text):
        if escaped:
            escaped = False
            continue
        if ch == "\\" and in_string:
            escaped = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == opener:
            if depth == 0:
                start = index
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0 and start != -1:
                return text[start : index + 1]
    return None


def extract_json_object(text: str) -> str:
    """Return the first balanced ``{...}`` substring, ignoring braces in strings."""
    found = _extract_balanced(text, "{", "}")
    if found is None:
        raise ValueError("no valid json object found")
    return found


def extract_json_array(text: str) -> str:
    """Return the first balanced ``[...]`` substring, ignoring brackets in strings."""
    found = _extract_balanced(text, "[", "]")
    if found is None:
        raise ValueError("no valid json array found")
    return found


def extract_and_validate_json_object(text: str) -> str:
    """Extract the first JSON object from *text* and check that it parses."""
    obj = extract_json_object(text)
    try:
        json.loads(obj)
    except ValueError as exc:
        raise ValueError(f"invalid json: {exc}") from exc
    return obj


def clean_json_response(content: str) -> str:
    """Strip surrounding Markdown code fences from a model response."""
    content = content.strip()
    markdown_start = content.find("```json")
    code_start = content.find("```")

    if markdown_start != -1 and (code_start == -1 or markdown_start < code_start):
        end = content.rfind("```")
        if end > markdown_start:
            content = content[markdown_start + 7 : end].strip()
    elif code_start != -1:
        end = content.rfind("```")
        if end > code_start:
            lines = content[code_start + 3 : end].split("\n")
            if len(lines) > 1:
                content = "\n".join(lines[1:]).strip()
    return content


def write_file_atomic(path: str | os.PathLike[str], data: bytes | str, mode: int = 0o644) -> None:
    """Write *data* to a temporary file beside *path* and rename it into place."""
    target = os.fspath(path)
    directory = os.path.dirname(target) or "."
    if isinstance(data, str):
        data = data.encode("utf-8", "surrogateescape")
    fd, tmp_path = tempfile.mkstemp(prefix=os.path.basename(target) + ".tmp.", dir=directory)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, target)
        os.chmod(target, mode)
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.remove(tmp_path)