from __future__ import annotations

import json
import logging
import sys
from logging import LogRecord
from typing import Any, Callable, Dict

from loguru import logger
from opentelemetry import trace


# Attributes every stdlib LogRecord carries; anything else was passed via ``extra=``.
_STANDARD_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class InterceptHandler(logging.Handler):
    """Forward stdlib logging (uvicorn, sqlalchemy) into Loguru."""

    def emit(self, record: LogRecord) -> None:  # pragma: no cover - bridging glue
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        extra = {key: value for key, value in record.__dict__.items() if key not in _STANDARD_RECORD_ATTRS}
        message = record.getMessage().replace("{", "{{").replace("}", "}}")

        bound = logger.bind(logger_name=record.name, **extra)
        bound.opt(depth=6, exception=record.exc_info).log(level, message)


def _json_sink(metadata: Dict[str, str]) -> Callable[[Any], None]:
    def sink(message: Any) -> None:
        record = message.record
        payload: Dict[str, Any] = {
            "timestamp": record["time"].isoformat(),
            "level": record["level"].name.lower(),
            "message": record["message"],
            "logger": record["extra"].pop("logger_name", record["name"]),
            **metadata,
        }

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            payload["trace_id"] = f"{span_context.trace_id:032x}"
            payload["span_id"] = f"{span_context.span_id:016x}"

        payload.update(record["extra"])
        if record["exception"] is not None:
            payload["exception"] = repr(record["exception"].value)

        sys.stdout.write(json.dumps(payload, default=str) + "\n")

    return sink


def configure_logging(*, service_name: str, environment: str, version: str) -> None:
    """Send Loguru and stdlib logging to stdout as one JSON object per line."""

    metadata = {"service": service_name, "environment": environment, "version": version}
    logger.remove()
    logger.add(_json_sink(metadata), backtrace=False, diagnose=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
