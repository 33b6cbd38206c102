"""JSON-lines logging for the iquiz CLI and front ends."""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
]

LOG_MAX_BYTES = 2 * 1024 * 1024
LOG_BACKUPS = 3

_FILE_MARKER = "_iquiz_file"
_CONSOLE_MARKER = "_iquiz_console"


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record; ``extra=`` fields go under ``"extra"``."""

    _RESERVED = set(
        logging.LogRecord(
            "", logging.INFO, "", 0, "", None, None
        ).__dict__.keys()
    ) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: _jsonable(value)
            for key, value in record.__dict__.items()
            if key not in self._RESERVED
        }
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def configure_logger(
    name: str = "iquiz",
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
) -> tuple[logging.Logger, Path]:
    """Send ``name`` and its child loggers to ``<log_dir>/<leaf>.log``.

    ``verbose`` lowers the file level to DEBUG and mirrors records on
    stderr. Calling again with the same arguments leaves a single file
    handler in place.
    """

    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    path = _log_file(log_dir, f"{name.rsplit('.', 1)[-1]}.log")
    handler = _file_handler(logger, path)
    handler.setLevel(logging.DEBUG if verbose else _coerce_level(level))
    _sync_console_handler(logger, verbose)
    return logger, path


def _coerce_level(level: str) -> int:
    numeric = logging.getLevelName(str(level).upper())
    return numeric if isinstance(numeric, int) else logging.INFO


def _file_handler(logger: logging.Logger, path: Path) -> logging.Handler:
    for handler in list(logger.handlers):
        if not getattr(handler, _FILE_MARKER, False):
            continue
        if Path(handler.baseFilename) == path:  # type: ignore[attr-defined]
            return handler
        logger.removeHandler(handler)
        handler.close()

    handler = RotatingFileHandler(
        path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    handler.setFormatter(JsonLogFormatter())
    setattr(handler, _FILE_MARKER, True)
    logger.addHandler(handler)
    return handler


def _sync_console_handler(logger: logging.Logger, enabled: bool) -> None:
    existing = [
        h for h in logger.handlers if getattr(h, _CONSOLE_MARKER, False)
    ]
    if enabled and not existing:
        console = logging.StreamHandler(stream=sys.stderr)
        console.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        setattr(console, _CONSOLE_MARKER, True)
        logger.addHandler(console)
    elif not enabled:
        for handler in existing:
            logger.removeHandler(handler)
            handler.close()


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(key): _jsonable(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(item) for item in value]
    return repr(value)


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "iquiz-logs"


def _log_file(log_dir: Path, filename: str) -> Path:
    """Create ``log_dir/filename``, falling back to a temp dir when denied."""

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        path = log_dir / filename
        path.touch(exist_ok=True)
    except PermissionError:
        fallback = _fallback_log_dir()
        fallback.mkdir(parents=True, exist_ok=True)
        path = fallback / filename
        path.touch(exist_ok=True)
    return path
