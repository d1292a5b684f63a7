"""Logging abstraction layer for the Midea LAN client.

Provides dual-format logging (JSON + human-readable) with correlation tracking
and structured context. Handlers are attached once, to the package logger
(``midea_ac_lan``); module loggers propagate to it.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import cast, override

__all__ = [
    "HumanReadableFormatter",
    "JSONFormatter",
    "MideaLogger",
    "configure_logging",
    "get_logger",
]

_configured: dict[str, bool] = {"done": False}


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        from midea_ac_lan.correlation import get_correlation_id

        log_data: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, Mapping) and extra_data:
            log_data["context"] = dict(cast("Mapping[str, object]", extra_data))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Formatter that outputs human-readable logs with correlation IDs."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(correlation_id)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        from midea_ac_lan.const import MIDEA_LOG_CORRELATION_ENABLED
        from midea_ac_lan.correlation import get_correlation_id

        correlation_id = get_correlation_id() if MIDEA_LOG_CORRELATION_ENABLED else None
        # UUIDv7 ids share their leading timestamp bits, the tail is what tells them apart
        record.correlation_id = f"[{correlation_id[-8:]}]" if correlation_id else "[--------]"

        formatted = super().format(record)

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, Mapping) and extra_data:
            context_map = cast("Mapping[str, object]", extra_data)
            context_str = " | ".join(f"{k}={v}" for k, v in context_map.items())
            formatted = f"{formatted} | {context_str}"

        return formatted


def _human_handler(human_output: str) -> logging.Handler:
    if human_output == "stdout":
        return logging.StreamHandler(sys.stdout)
    if human_output == "stderr":
        return logging.StreamHandler(sys.stderr)
    try:
        human_path = Path(human_output)
        human_path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(human_path, mode="a")
    except OSError as e:
        print(f"Warning: Failed to create human log file {human_output}: {e}", file=sys.stderr)
        return logging.StreamHandler(sys.stderr)


def configure_logging(
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
    level: int | None = None,
    force: bool = False,
) -> logging.Logger:
    """Attach handlers to the package logger (once, unless ``force``)."""
    from midea_ac_lan.const import (
        MIDEA_DEBUG,
        MIDEA_LOG_FORMAT,
        MIDEA_LOG_HUMAN_OUTPUT,
        MIDEA_LOG_JSON_FILE,
        MIDEA_LOG_NAME,
    )

    root = logging.getLogger(MIDEA_LOG_NAME)
    if _configured["done"] and not force:
        return root

    for handler in list(root.handlers):
        root.removeHandler(handler)

    log_format = log_format or MIDEA_LOG_FORMAT
    json_file = json_file or MIDEA_LOG_JSON_FILE
    human_output = human_output or MIDEA_LOG_HUMAN_OUTPUT
    if level is None:
        level = logging.DEBUG if MIDEA_DEBUG else logging.INFO
    root.setLevel(level)

    if log_format in ("json", "both") and json_file:
        try:
            json_path = Path(json_file)
            json_path.parent.mkdir(parents=True, exist_ok=True)
            json_handler = logging.FileHandler(json_path, mode="a")
            json_handler.setFormatter(JSONFormatter())
            root.addHandler(json_handler)
        except OSError as e:
            print(f"Warning: Failed to create JSON log file {json_file}: {e}", file=sys.stderr)

    if log_format in ("human", "both"):
        human_handler = _human_handler(human_output)
        human_handler.setFormatter(HumanReadableFormatter())
        root.addHandler(human_handler)

    _configured["done"] = True
    return root


class MideaLogger:
    """Logger wrapper taking structured context through ``extra=``.

    The context mapping is stored on the record as ``extra_data`` and rendered
    by both formatters.
    """

    def __init__(self, name: str) -> None:
        self.name: str = name
        self.logger: logging.Logger = logging.getLogger(name)

    def _log(
        self,
        level: int,
        msg: str,
        *args: object,
        extra: Mapping[str, object] | None = None,
        exc_info: bool = False,
    ) -> None:
        extra_payload = {"extra_data": dict(extra)} if extra else None
        self.logger.log(level, msg, *args, extra=extra_payload, exc_info=exc_info, stacklevel=3)

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log debug message with optional structured context."""
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log info message with optional structured context."""
        self._log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log warning message with optional structured context."""
        self._log(logging.WARNING, msg, *args, extra=extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log error message with optional structured context."""
        self._log(logging.ERROR, msg, *args, extra=extra)

    def exception(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log error with traceback and optional structured context."""
        self._log(logging.ERROR, msg, *args, extra=extra, exc_info=True)

    def set_level(self, level: int) -> None:
        """Set logging level."""
        self.logger.setLevel(level)


def get_logger(name: str) -> MideaLogger:
    """Get a MideaLogger for ``name``, configuring package handlers on first use."""
    _ = configure_logging()
    return MideaLogger(name)
