"""
Logging for metric runs: run correlation IDs, per-scope log fields and timing.

Usage:
    from ctmetrics.observability import setup_logging, get_logger, correlation_context, log_fields

    # At job startup:
    setup_logging(level="INFO", json_format=False)

    # In modules:
    logger = get_logger(__name__)

    # Around one run; every line inside carries the run ID and the fields:
    with correlation_context() as run_id, log_fields(mode="CART_TOTAL"):
        logger.info("Full range total: 42")
"""
import json
import logging
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Run correlation ID; also sent upstream as X-Correlation-ID
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Fields attached to every record logged inside a log_fields() block
_log_fields: ContextVar[Dict[str, Any]] = ContextVar("log_fields", default={})

# LogRecord attributes that are not user-supplied extras
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def get_correlation_id() -> Optional[str]:
    """Get the current run's correlation ID, if any."""
    return _correlation_id.get()


def generate_correlation_id() -> str:
    """Short random run ID."""
    return uuid.uuid4().hex[:8]


class correlation_context:
    """Bind a correlation ID (generated if omitted) for the duration of a block."""

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or generate_correlation_id()
        self.token = None

    def __enter__(self) -> str:
        self.token = _correlation_id.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, *args):
        _correlation_id.reset(self.token)


class log_fields:
    """
    Add fields to every log record emitted inside the block.

    Nested blocks extend the outer fields; leaving a block restores them.
    Tasks started inside (e.g. via asyncio.gather) inherit the fields.
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self.token = None

    def __enter__(self) -> Dict[str, Any]:
        merged = {**_log_fields.get(), **self.fields}
        self.token = _log_fields.set(merged)
        return merged

    def __exit__(self, *args):
        _log_fields.reset(self.token)


def _fields_for(record: logging.LogRecord) -> Dict[str, Any]:
    """Scope fields overlaid with the record's own extra= values."""
    fields = dict(_log_fields.get())
    fields.update(
        (key, value) for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    )
    return fields


def _utc(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line.

    Keys: timestamp, level, logger, message, correlation_id (when bound),
    scope fields, record extras and exception (when present).
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": _utc(record).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            entry["correlation_id"] = correlation_id

        entry.update(_fields_for(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Console formatter.

    Format: TIMESTAMP - LEVEL - LOGGER [CORRELATION_ID] - MESSAGE | {fields}
    """

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = get_correlation_id()
        run = f" [{correlation_id}]" if correlation_id else ""
        stamp = _utc(record).strftime("%Y-%m-%d %H:%M:%S")

        line = f"{stamp} - {record.levelname:8} - {record.name}{run} - {record.getMessage()}"

        fields = _fields_for(record)
        if fields:
            line += f" | {fields}"

        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"

        return line


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    include_libs: bool = False
) -> None:
    """
    Install a single stderr handler on the root logger.

    Args:
        level: Log level name; unknown names fall back to INFO
        json_format: JSON lines instead of console text
        include_libs: Keep httpx/httpcore request logging at the root level
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter() if json_format else HumanReadableFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not include_libs:
        for name in ("httpx", "httpcore"):
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)


# ═══════════════════════════════════════════════════════════════════════════════
# TIMING
# ═══════════════════════════════════════════════════════════════════════════════

class Timer:
    """
    Measure a block and log "<name> completed" with duration_ms.

    Logs at WARNING when the block took over a second, DEBUG otherwise.

    Usage:
        with Timer("graphql_query", logger) as t:
            response = await http.post(url, json=payload)
        t.elapsed_ms
    """

    SLOW_MS = 1000

    def __init__(self, name: str, logger: Optional[logging.Logger] = None):
        self.name = name
        self.logger = logger
        self.elapsed_ms: float = 0
        self._started: float = 0

    def __enter__(self) -> "Timer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed_ms = (time.perf_counter() - self._started) * 1000
        if self.logger:
            level = logging.WARNING if self.elapsed_ms > self.SLOW_MS else logging.DEBUG
            self.logger.log(level, f"{self.name} completed", extra={"duration_ms": round(self.elapsed_ms, 2)})
