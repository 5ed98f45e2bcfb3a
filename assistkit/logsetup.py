"""Creating a configured logger that writes to the console and/or a rotating file."""

from __future__ import annotations

import gzip
import json
import logging
import os
import re
import shutil
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone

TRACE = 5

_LEVELS = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}

_BARE = re.compile(r"[A-Za-z0-9\-._/@^+]+")
_DEFAULT_MAX_SIZE_MB = 100


@dataclass
class LogConfig:
    """Logger settings; sizes are in megabytes and ages in days."""

    level: str = ""
    filename: str = ""
    max_size_mb: int = 0
    max_backups: int = 0
    max_age_days: int = 0
    compress: bool = False
    format: str = ""
    console: bool = False


def _level_name(levelno: int) -> str:
    if levelno >= logging.CRITICAL:
        return "fatal"
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warning"
    if levelno >= logging.INFO:
        return "info"
    if levelno >= logging.DEBUG:
        return "debug"
    return "trace"


def _quote(text: str) -> str:
    if not text or _BARE.fullmatch(text):
        return text
    return json.dumps(text, ensure_ascii=False)


class _TextFormatter(logging.Formatter):
    """``time="..." level=info msg=...`` lines."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        line = (
            f"time={_quote(stamp)} level={_level_name(record.levelno)} "
            f"msg={_quote(record.getMessage())}"
        )
        if record.exc_info:
            line += f" error={_quote(self.formatException(record.exc_info))}"
        return line


class _JSONFormatter(logging.Formatter):
    """One JSON object per line with ``level``, ``msg`` and an RFC 3339 ``time``."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="seconds")
        if stamp.endswith("+00:00"):
            stamp = stamp[: -len("+00:00")] + "Z"
        payload = {"level": _level_name(record.levelno), "msg": record.getMessage(), "time": stamp}
        if record.exc_info:
            payload["error"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, sort_keys=True)


class _RotatingFileHandler(logging.FileHandler):
    """Appends to a file and moves it aside to a timestamped backup when it grows too large."""

    def __init__(
        self, filename: str, max_bytes: int, max_backups: int, max_age_days: int, compress: bool
    ) -> None:
        directory = os.path.dirname(os.path.abspath(filename))
        os.makedirs(directory, 0o755, exist_ok=True)
        super().__init__(filename, mode="a", encoding="utf-8")
        self._max_bytes = max_bytes
        self._max_backups = max_backups
        self._max_age = max_age_days * 86400
        self._compress = compress

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record) + self.terminator
            incoming = len(message.encode("utf-8"))
            if self.stream is None:
                self.stream = self._open()
            self.stream.flush()
            current = os.fstat(self.stream.fileno()).st_size
            if current > 0 and current + incoming > self._max_bytes:
                self._rotate()
            self.stream.write(message)
            self.flush()
        except Exception:
            self.handleError(record)

    def _rotate(self) -> None:
        if self.stream is not None:
            self.stream.close()
            self.stream = None
        directory, base = os.path.split(self.baseFilename)
        stem, ext = os.path.splitext(base)
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S.%f")[:-3]
        backup = os.path.join(directory, f"{stem}-{stamp}{ext}")
        os.replace(self.baseFilename, backup)
        if self._compress:
            with open(backup, "rb") as source, gzip.open(backup + ".gz", "wb") as target:
                shutil.copyfileobj(source, target)
            os.remove(backup)
        self._prune(directory, stem, ext)
        self.stream = self._open()

    def _prune(self, directory: str, stem: str, ext: str) -> None:
        prefix = stem + "-"
        backups = sorted(
            (
                name
                for name in os.listdir(directory)
                if name.startswith(prefix) and (name.endswith(ext) or name.endswith(ext + ".gz"))
            ),
            reverse=True,
        )
        doomed: set[str] = set()
        if self._max_backups > 0:
            doomed.update(backups[self._max_backups :])
        if self._max_age > 0:
            cutoff = time.time() - self._max_age
            for name in backups:
                if os.path.getmtime(os.path.join(directory, name)) < cutoff:
                    doomed.add(name)
        for name in doomed:
            os.remove(os.path.join(directory, name))


def new_logger(config: LogConfig) -> logging.Logger:
    """Build a logger from *config*.

    Unknown levels fall back to info. Without console or file output the logger
    writes to standard output.
    """
    logger = logging.Logger("assistkit")
    logger.setLevel(_LEVELS.get(config.level.lower(), logging.INFO))

    formatter: logging.Formatter = _JSONFormatter() if config.format == "json" else _TextFormatter()

    handlers: list[logging.Handler] = []
    if config.console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if config.filename:
        size_mb = config.max_size_mb if config.max_size_mb > 0 else _DEFAULT_MAX_SIZE_MB
        handlers.append(
            _RotatingFileHandler(
                config.filename,
                size_mb * 1024 * 1024,
                config.max_backups,
                config.max_age_days,
                config.compress,
            )
        )
    if not handlers:
        handlers.append(logging.StreamHandler(sys.stdout))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger