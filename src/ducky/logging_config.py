from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Protocol, TextIO

from loguru import logger

from ducky.errors import ConfigurationError

LOG_FILE_NAME = "ducky.log"
CONSOLE_LEVEL = "WARNING"

_CONSOLE_FORMAT = "<level>{level:<8}</level> | <level>{message}</level>"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{line} - {message}"


class LogConsumer(Protocol):
    def attach(self, level: str) -> str:
        """Add a loguru sink at ``level`` and return a short description of it."""
        ...


class ConsoleLogConsumer:
    def __init__(self, stream: TextIO | None = None):
        self._stream = stream or sys.stderr

    def attach(self, level: str) -> str:
        logger.add(self._stream, level=level, format=_CONSOLE_FORMAT)
        return f"console (stderr, {level})"


class FileLogConsumer:
    """Rotating log file; relative paths are taken from the config directory."""

    def __init__(self, path: Path, *, rotation: str = "1 MB", retention: int = 5):
        self._path = path
        self._rotation = rotation
        self._retention = retention

    def attach(self, level: str) -> str:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self._path),
            level=level,
            format=_FILE_FORMAT,
            rotation=self._rotation,
            retention=self._retention,
        )
        return f"file ({self._path}, {level})"


def default_consumers() -> list[dict[str, Any]]:
    """Console at WARNING, log file in the config directory at the configured level."""
    return [
        {"type": "console", "level": CONSOLE_LEVEL},
        {"type": "file"},
    ]


def _build_consumer(config: dict[str, Any], log_dir: Path) -> LogConsumer | None:
    kind = config.get("type")
    if kind == "console":
        return ConsoleLogConsumer()
    if kind == "file":
        path = Path(config.get("path", LOG_FILE_NAME)).expanduser()
        if not path.is_absolute():
            path = log_dir / path
        options = {k: config[k] for k in ("rotation", "retention") if k in config}
        return FileLogConsumer(path, **options)
    return None


def setup_logging(
    level: str = CONSOLE_LEVEL,
    consumers: list[dict[str, Any]] | None = None,
    *,
    log_dir: Path = Path("."),
) -> list[str]:
    """Replace every loguru sink with ``consumers``. Returns one description per sink.

    Each consumer entry is ``{"type": "console" | "file", "level": ...}``; file
    entries also accept ``path``, ``rotation`` and ``retention``. Entries
    without a level use ``level``.
    """
    logger.remove()
    if consumers is None:
        consumers = [{"type": "console"}]

    descriptions: list[str] = []
    skipped: list[object] = []
    for config in consumers:
        consumer = _build_consumer(config, log_dir)
        if consumer is None:
            skipped.append(config.get("type"))
            continue
        sink_level = str(config.get("level", level)).upper()
        try:
            descriptions.append(consumer.attach(sink_level))
        except ValueError as ex:
            # loguru rejects unknown level names; keep errors visible on stderr.
            logger.remove()
            logger.add(sys.stderr, level=CONSOLE_LEVEL, format=_CONSOLE_FORMAT)
            raise ConfigurationError(f"Invalid log level {sink_level!r}: {ex}") from ex

    for kind in skipped:
        logger.warning(f"Unknown log consumer type: {kind!r}")
    return descriptions
