import gzip
import json
import logging
from datetime import datetime

from assistkit.logsetup import LogConfig, new_logger


def _close(logger):
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_level_parsing():
    cases = [("debug", logging.DEBUG), ("WARN", logging.WARNING), ("error", logging.ERROR), ("nonsense", logging.INFO), ("", logging.INFO)]
    for name, expected in cases:
        logger = new_logger(LogConfig(level=name))
        try:
            assert logger.level == expected
        finally:
            _close(logger)


def test_defaults_to_stdout_text(capsys):
    logger = new_logger(LogConfig())
    try:
        logger.info("hello")
        logger.info("hello world")
        logger.debug("hidden")
    finally:
        _close(logger)
    out = capsys.readouterr().out
    lines = out.splitlines()
    assert len(lines) == 2
    assert "level=info msg=hello" in lines[0]
    assert 'msg="hello world"' in lines[1]
    assert lines[0].startswith('time="')


def test_json_format(capsys):
    logger = new_logger(LogConfig(format="json", console=True, level="warning"))
    try:
        logger.warning("disk almost full")
        logger.info("not shown")
    finally:
        _close(logger)
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 1
    payload = json.loads(lines[0])
    assert set(payload) == {"level", "msg", "time"}
    assert payload["msg"] == "disk almost full"
    assert payload["level"] == "warning"
    parsed = datetime.fromisoformat(payload["time"].replace("Z", "+00:00"))
    assert parsed.tzinfo is not None


def test_file_output_creates_directory(tmp_path, capsys):
    path = tmp_path / "logs" / "app.log"
    logger = new_logger(LogConfig(filename=str(path)))
    try:
        logger.error("written to file")
    finally:
        _close(logger)
    assert "written to file" in path.read_text(encoding="utf-8")
    assert capsys.readouterr().out == ""


def test_file_and_console(tmp_path, capsys):
    path = tmp_path / "app.log"
    logger = new_logger(LogConfig(filename=str(path), console=True))
    try:
        logger.info("both")
    finally:
        _close(logger)
    assert "msg=both" in path.read_text(encoding="utf-8")
    assert "msg=both" in capsys.readouterr().out


def test_rotation_keeps_compressed_backups(tmp_path):
    path = tmp_path / "app.log"
    logger = new_logger(
        LogConfig(filename=str(path), max_size_mb=1, max_backups=1, compress=True)
    )
    chunk = "x" * 1000
    try:
        for _ in range(2600):
            logger.info(chunk)
    finally:
        _close(logger)
    backups = sorted(p for p in tmp_path.iterdir() if p.name != "app.log")
    assert len(backups) == 1
    assert backups[0].name.endswith(".log.gz")
    assert backups[0].name.startswith("app-")
    with gzip.open(backups[0], "rt", encoding="utf-8") as handle:
        assert chunk in handle.read()
    assert path.stat().st_size <= 1024 * 1024