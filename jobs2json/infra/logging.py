"""Log4j-flavoured logging for jobs2json.

- Hierarchical loggers (``jobs2json.<program>.<task>``, e.g. ``jobs2json.pipeline.batch``)
- Console appender on stderr with a pattern or JSON layout
- ``TRACE`` level (custom) and ``FATAL`` alias of CRITICAL
- MDC (Mapped Diagnostic Context) through ``contextvars``; worker threads see the
  MDC of the batch that started them because they run inside a copied context

Environment (prefix ``J2J_``):
- ``J2J_LOG_LEVEL``: TRACE, DEBUG, INFO, WARN, ERROR, FATAL (default: INFO)
- ``J2J_LOG_JSON``: 1 to enable the JSON layout (default: 0)
"""

from __future__ import annotations

import contextvars
import json
import logging
import logging.config
import os
import sys
from typing import Any, Dict, Optional

TRACE_LEVEL = 5
if logging.getLevelName(TRACE_LEVEL) != "TRACE":
    logging.addLevelName(TRACE_LEVEL, "TRACE")


def _trace(self: logging.Logger, msg: str, *args: Any, **kwargs: Any) -> None:
    if self.isEnabledFor(TRACE_LEVEL):
        self._log(TRACE_LEVEL, msg, args, **kwargs)


if not hasattr(logging.Logger, "trace"):
    logging.Logger.trace = _trace  # type: ignore[attr-defined]


# ---------------- MDC ----------------

_MDC: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar("J2J_MDC", default={})


def mdc_put(key: str, value: Any) -> None:
    d = dict(_MDC.get())
    d[key] = value
    _MDC.set(d)


def mdc_get(key: str, default: Any = None) -> Any:
    return _MDC.get().get(key, default)


def mdc_remove(key: str) -> None:
    d = dict(_MDC.get())
    d.pop(key, None)
    _MDC.set(d)


def mdc_clear() -> None:
    _MDC.set({})


class MDCFilter(logging.Filter):
    """Attach the MDC to each record as a dict and as a ``k=v`` suffix."""

    def filter(self, record: logging.LogRecord) -> bool:
        d = _MDC.get()
        record.mdc = d
        if d:
            mdc_str = " ".join(f"{k}={v}" for k, v in d.items())
            record.mdc_str = mdc_str
            record.mdc_suffix = f" | MDC: {mdc_str}"
        else:
            record.mdc_str = ""
            record.mdc_suffix = ""
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        mdc = getattr(record, "mdc", None)
        if isinstance(mdc, dict) and mdc:
            payload["mdc"] = mdc
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


# ---------------- Configuration ----------------

_CONFIGURED = False
_CACHE: Dict[str, logging.Logger] = {}


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "on"}


def _level_from_env(name: str, default: str = "INFO") -> int:
    s = str(os.getenv(name, default)).strip().upper()
    aliases = {"WARN": "WARNING", "FATAL": "CRITICAL"}
    s = aliases.get(s, s)
    if s == "TRACE":
        return TRACE_LEVEL
    level = logging.getLevelName(s)
    return level if isinstance(level, int) else logging.INFO


def build_logging_config() -> Dict[str, Any]:
    """Build a dictConfig with a single stderr appender."""
    json_layout = _env_bool("J2J_LOG_JSON", False)
    level = _level_from_env("J2J_LOG_LEVEL", "INFO")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"mdc": {"()": MDCFilter}},
        "formatters": {
            "pattern": {
                "format": "[%(asctime)s][%(levelname)s][%(threadName)s][%(name)s] %(message)s%(mdc_suffix)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {"()": JSONFormatter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json" if json_layout else "pattern",
                "filters": ["mdc"],
                "stream": "ext://sys.stderr",
            }
        },
        "loggers": {
            "jobs2json": {"level": level, "handlers": ["console"], "propagate": False},
        },
    }


def init_logging(force: bool = False) -> None:
    """Configure the ``jobs2json`` logger tree. No-op when already done unless ``force``."""
    global _CONFIGURED
    if _CONFIGURED and not force:
        return
    logging.config.dictConfig(build_logging_config())
    _CONFIGURED = True


def _ensure_logging() -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return
    try:
        init_logging()
    except (ValueError, TypeError, AttributeError, ImportError):
        logging.basicConfig(
            level=logging.INFO, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s"
        )
        _CONFIGURED = True


def get_unified_logger(program: str, task_type: str) -> logging.Logger:
    """Return ``jobs2json.<program>.<task_type>``, initializing logging on first use."""
    _ensure_logging()
    name = f"jobs2json.{program}.{task_type}".strip(".")
    logger = _CACHE.get(name)
    if logger is None:
        logger = _CACHE[name] = logging.getLogger(name)
    return logger


# ---------------- Structured helpers ----------------


def log_task_start(program: str, task_type: str, details: Optional[Dict[str, Any]] = None) -> None:
    logger = get_unified_logger(program, task_type)
    logger.info("[TASK START] %s", json.dumps(details or {}, ensure_ascii=False))


def log_task_end(
    program: str, task_type: str, success: bool, details: Optional[Dict[str, Any]] = None
) -> None:
    logger = get_unified_logger(program, task_type)
    payload: Dict[str, Any] = {"success": success}
    if details:
        payload.update(details)
    logger.info("[TASK END] %s", json.dumps(payload, ensure_ascii=False))


def log_error(program: str, task_type: str, error: BaseException, context: str = "") -> None:
    logger = get_unified_logger(program, task_type)
    exc_info = (type(error), error, error.__traceback__)
    if context:
        logger.error("%s | %s", context, error, exc_info=exc_info)
    else:
        logger.error("%s", error, exc_info=exc_info)


def log_batch_processing(
    program: str,
    task_type: str,
    operation: str,
    total_items: int,
    success_count: int,
    failure_count: int,
    duration: float,
    status: str,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    logger = get_unified_logger(program, task_type)
    payload: Dict[str, Any] = {
        "operation": operation,
        "total": total_items,
        "success": success_count,
        "failed": failure_count,
        "duration": round(duration, 3),
        "status": status,
    }
    if extra:
        payload.update(extra)
    logger.info("[BATCH] %s", json.dumps(payload, ensure_ascii=False))


__all__ = [
    "TRACE_LEVEL",
    "init_logging",
    "build_logging_config",
    "mdc_put",
    "mdc_get",
    "mdc_remove",
    "mdc_clear",
    "get_unified_logger",
    "log_task_start",
    "log_task_end",
    "log_error",
    "log_batch_processing",
]
