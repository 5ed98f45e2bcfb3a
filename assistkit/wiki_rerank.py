"""Reranking wiki search hits by asking a chat model to score them."""

from __future__ import annotations

import json
from typing import Any, Protocol

from assistkit.wiki_index import GrepHit, RerankResult, _results_from_hits

_RULE = "=" * 60
_TEMPERATURE = 0.1
_MAX_TOKENS = 1000


class _ChatClient(Protocol):
    def chat(
        self, *, model: str, messages: list[dict[str, str]], temperature: float, max_tokens: int
    ) -> Any: ...


def escape_for_prompt(text: str) -> str:
    """Quote *text* as a JSON string, escaping HTML-sensitive characters."""
    encoded = json.dumps(text, ensure_ascii=False)
    return (
        encoded.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def build_rerank_prompt(query: str, hits: list[GrepHit]) -> str:
    """The prompt asking the model to score every hit against *query*."""
    parts = [
        "请根据以下候选文档片断，判断每个文档与查询的相关程度，并给出相关性评分(0-10分)和简要理由。\n",
        "评分标准：0分=完全不相关，5分=部分相关，10分=高度相关。\n",
        "如果文档与查询无关或矛盾，请给0分并说明原因。\n",
        "查询: " + escape_for_prompt(query) + "\n\n",
    ]
    for number, hit in enumerate(hits, start=1):
        parts.append(_RULE + "\n")
        parts.append(f"候选文档{number}:\n")
        parts.append("标题: " + hit.entry.title + "\n")
        parts.append("路径: " + hit.entry.path + "\n")
        parts.append("内容片段: " + hit.snippet + "\n\n")
    parts.append(
        _RULE
        + "\n请以JSON数组格式输出评分结果，格式如下：\n"
        + '[{"index":0,"score":8.5,"reason":"文档讨论了相关概念"},...]\n'
        + "直接输出JSON，不要其他内容。只输出与查询真正相关的文档，不相关的请给0分。"
    )
    return "".join(parts)


def parse_json_int(line: str, key: str) -> int:
    """Read the unsigned integer after ``"key":`` in *line*; -1 if absent."""
    prefix = f'"{key}":'
    idx = line.find(prefix)
    if idx == -1:
        return -1
    rest = line[idx + len(prefix) :].strip()
    digits = ""
    for ch in rest:
        if not "0" <= ch <= "9":
            break
        digits += ch
    return int(digits) if digits else -1


def parse_json_float(line: str, key: str) -> float:
    """Read the unsigned decimal after ``"key":`` in *line*; 0 if absent."""
    prefix = f'"{key}":'
    idx = line.find(prefix)
    if idx == -1:
        return 0.0
    rest = line[idx + len(prefix) :].strip()
    number = ""
    for ch in rest:
        if "0" <= ch <= "9" or ch == ".":
            number += ch
        else:
            break
    if not number:
        return 0.0
    whole, _, fraction = number.partition(".")
    value = float(int(whole)) if whole else 0.0
    fraction_digits = "".join(ch for ch in fraction if ch.isdigit())
    if fraction_digits:
        value += int(fraction_digits) / 10 ** len(fraction_digits)
    return value


def parse_json_string(line: str, key: str) -> str:
    """Read the string after ``"key":"`` up to a closing quote before ``,`` or ``}``."""
    prefix = f'"{key}":"'
    idx = line.find(prefix)
    if idx == -1:
        return ""
    start = idx + len(prefix)
    end = start
    while end < len(line):
        if line[end] == '"' and (end + 1 >= len(line) or line[end + 1] in ",}"):
            break
        end += 1
    return line[start:end].strip()


def parse_rerank_results(text: str, hits: list[GrepHit]) -> list[RerankResult]:
    """Turn the model's reply into results; unusable replies keep the hits as they are."""
    text = text.strip()
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end == -1 or start >= end:
        return _results_from_hits(hits)

    reranked: list[RerankResult] = []
    for piece in text[start + 1 : end].split(","):
        piece = piece.strip()
        if not piece.startswith("{"):
            continue
        idx = parse_json_int(piece, "index")
        score = parse_json_float(piece, "score")
        reason = parse_json_string(piece, "reason")
        if 0 <= idx < len(hits):
            hit = hits[idx]
            reranked.append(RerankResult(hit.entry, hit.snippet, score, reason))

    return reranked or _results_from_hits(hits)


class LLMReranker:
    """Scores hits with a chat model.

    *client* must offer ``chat(model=, messages=, temperature=, max_tokens=)``
    returning the reply text (or an object with a ``content`` attribute).
    """

    def __init__(self, client: _ChatClient | None, model: str = "") -> None:
        self.client = client
        self.model = model

    def rerank(self, query: str, hits: list[GrepHit]) -> list[RerankResult]:
        """Ask the model to score *hits*; without a client the hits pass through."""
        if self.client is None or not hits:
            return _results_from_hits(hits)
        reply = self.client.chat(
            model=self.model,
            messages=[{"role": "user", "content": build_rerank_prompt(query, hits)}],
            temperature=_TEMPERATURE,
            max_tokens=_MAX_TOKENS,
        )
        content = reply if isinstance(reply, str) else getattr(reply, "content", "")
        return parse_rerank_results(content, hits)