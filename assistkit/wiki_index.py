"""An index of markdown notes in a wiki directory with substring search."""

from __future__ import annotations

import os
import re
import threading
import time
from dataclasses import dataclass
from typing import Protocol

_CACHE_TTL = 30.0
_SKIP_DIRS = (".git", "raw")
_SKIP_FILES = ("index.md", "log.md")
_TITLE_COMMENT = re.compile(r"^<!--\s*title:\s*(.+?)\s*-->", re.IGNORECASE)
_SENTENCE_END = ".!?"
_START_MARGIN = 300
_END_MARGIN = 400


@dataclass
class WikiConfig:
    """Whether the wiki is used and where it lives."""

    enabled: bool = False
    directory: str = ""


@dataclass
class IndexedEntry:
    """A markdown note in the index."""

    path: str
    title: str = ""


@dataclass
class GrepHit:
    """A note that contains the query, with a snippet around the first match."""

    entry: IndexedEntry
    snippet: str
    score: int


@dataclass
class RerankResult:
    """A search result after optional reranking."""

    entry: IndexedEntry
    snippet: str
    score: float
    reason: str = ""


class Reranker(Protocol):
    """Anything that can reorder and rescore search hits."""

    def rerank(self, query: str, hits: list[GrepHit]) -> list[RerankResult]:
        """Return *hits* rescored for *query*."""
        ...


def _results_from_hits(hits: list[GrepHit]) -> list[RerankResult]:
    return [RerankResult(h.entry, h.snippet, float(h.score), "") for h in hits]


@dataclass
class _CachedFile:
    content: str
    mod_time: int
    expiry: float


def extract_title(content: str, filename: str) -> str:
    """Title from the first ``# `` heading, a ``<!-- title: ... -->`` comment, or the file name."""
    lines = content.split("\n")
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("# "):
            return stripped[2:].strip()
    for line in lines[:10]:
        match = _TITLE_COMMENT.match(line)
        if match:
            return match.group(1).strip()
    dot = filename.rfind(".")
    return filename[:dot] if dot >= 0 else filename


def expand_dir(path: str) -> str:
    """Expand a leading ``~/`` and make the path absolute."""
    if path.startswith("~/"):
        home = os.path.expanduser("~")
        if home != "~":
            path = os.path.normpath(os.path.join(home, path[2:]))
    if not os.path.isabs(path):
        return os.path.abspath(path)
    return path


def _sorted_entries(directory: str) -> list[os.DirEntry[str]]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda e: e.name)


def _is_dir(entry: os.DirEntry[str]) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def _read_text(path: str) -> str:
    with open(path, "rb") as handle:
        return handle.read().decode("utf-8", "replace")


def _snippet(content: str, idx: int, length: int) -> str:
    start, end = idx, idx + length
    start_margin, end_margin = _START_MARGIN, _END_MARGIN
    while start_margin > 0 and start > 0 and content[start - 1] != "\n":
        start -= 1
        start_margin -= 1
    while start_margin > 0 and start > 0 and content[start - 1] not in _SENTENCE_END:
        start -= 1
        start_margin -= 1
    while end_margin > 0 and end < len(content) and content[end] != "\n":
        end += 1
        end_margin -= 1
    while end_margin > 0 and end < len(content) and content[end] not in _SENTENCE_END:
        end += 1
        end_margin -= 1
    end = min(end, len(content))

    snippet = content[start:end].strip()
    trimmed = snippet.lstrip(" \t")
    if len(snippet) != len(trimmed) or start > 0:
        snippet = "..." + trimmed
    if end < len(content):
        snippet += "..."
    return snippet


class IndexManager:
    """Keeps an index of the notes under a wiki directory and searches them."""

    def __init__(self, config: WikiConfig, reranker: Reranker | None = None) -> None:
        self.config = config
        self.reranker = reranker
        self._index: dict[str, IndexedEntry] = {}
        self._index_lock = threading.RLock()
        self._cache: dict[str, _CachedFile] = {}
        self._cache_lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._refresher: threading.Thread | None = None
        if config.enabled and config.directory:
            self.build_index()

    def build_index(self) -> None:
        """Rescan the wiki directory; an unreadable directory keeps the old index."""
        with self._index_lock:
            with self._cache_lock:
                self._cache = {}
            root = expand_dir(self.config.directory)
            try:
                entries = _sorted_entries(root)
            except OSError:
                return
            index: dict[str, IndexedEntry] = {}
            for entry in entries:
                if _is_dir(entry) and entry.name not in _SKIP_DIRS:
                    self._scan_dir(entry.path, index)
            self._index = index

    def _scan_dir(self, directory: str, index: dict[str, IndexedEntry]) -> None:
        try:
            entries = _sorted_entries(directory)
        except OSError:
            return
        for entry in entries:
            if _is_dir(entry) and entry.name not in _SKIP_DIRS:
                self._scan_dir(entry.path, index)
                continue
            if not entry.name.endswith(".md") or entry.name in _SKIP_FILES:
                continue
            index[entry.path] = self._parse_file(entry.path)

    @staticmethod
    def _parse_file(path: str) -> IndexedEntry:
        try:
            content = _read_text(path)
        except OSError:
            return IndexedEntry(path=path)
        return IndexedEntry(path=path, title=extract_title(content, os.path.basename(path)))

    def _file_content(self, path: str) -> str:
        now = time.monotonic()
        with self._cache_lock:
            cached = self._cache.get(path)
            if cached is not None and now < cached.expiry:
                return cached.content
        try:
            mod_time = os.stat(path).st_mtime_ns
            content = _read_text(path)
        except OSError:
            return ""
        with self._cache_lock:
            self._cache[path] = _CachedFile(content, mod_time, now + _CACHE_TTL)
        return content

    def grep_content(self, query: str, limit: int = 0) -> list[GrepHit]:
        """Case-insensitive search of note contents; title matches score higher.

        A *limit* above zero caps the number of hits.
        """
        with self._index_lock:
            entries = [self._index[path] for path in sorted(self._index)]
            query_lower = query.lower()
            hits: list[GrepHit] = []
            for entry in entries:
                content = self._file_content(entry.path)
                if not content:
                    continue
                idx = content.lower().find(query_lower)
                if idx == -1:
                    continue
                score = 10
                if query_lower in entry.title.lower():
                    score += 5
                hits.append(GrepHit(entry, _snippet(content, idx, len(query)), score))
        hits.sort(key=lambda h: h.score, reverse=True)
        if limit > 0:
            hits = hits[:limit]
        return hits

    def search(self, query: str, limit: int = 0) -> list[RerankResult]:
        """Search and, when a reranker is set, rerank the hits."""
        hits = self.grep_content(query, limit)
        if not hits:
            return []
        if self.reranker is None:
            return _results_from_hits(hits)
        return self.reranker.rerank(query, hits)

    def count(self) -> int:
        """Number of indexed notes."""
        with self._index_lock:
            return len(self._index)

    def start_background_refresh(self, interval: float) -> None:
        """Rebuild the index every *interval* seconds until ``stop`` is called."""
        if self._stop_event is not None:
            return
        stop_event = threading.Event()
        self._stop_event = stop_event

        def loop() -> None:
            while not stop_event.wait(interval):
                self.build_index()

        self._refresher = threading.Thread(target=loop, name="wiki-refresh", daemon=True)
        self._refresher.start()

    def stop(self) -> None:
        """Stop the background refresh, if running, and wait for it to end."""
        if self._stop_event is None:
            return
        self._stop_event.set()
        if self._refresher is not None:
            self._refresher.join()
        self._stop_event = None
        self._refresher = None

    def refresh_index(self) -> None:
        """Rebuild the index now."""
        self.build_index()