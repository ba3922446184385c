import contextvars
import json
import logging
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

# One id per sub-agent answer; every executor and audit line of that answer carries it.
_trace_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("trace_id", default=None)

TEXT_FORMAT = "%(asctime)s - [%(trace_id)s] - %(name)s - %(levelname)s - %(message)s"

# Client libraries under the sub-agent that log every request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "asyncpg", "sqlalchemy.engine")


class TraceContextFilter(logging.Filter):
    """Stamps each record with the trace id of the answer being produced."""
    def filter(self, record):
        record.trace_id = _trace_id_ctx.get()
        return True


@contextmanager
def trace_context(trace_id: Optional[str] = None) -> Iterator[str]:
    """Binds a trace id for the enclosed block, generating one if none is given."""
    trace_id = trace_id or str(uuid.uuid4())
    token = _trace_id_ctx.set(trace_id)
    try:
        yield trace_id
    finally:
        _trace_id_ctx.reset(token)


def current_trace_id() -> Optional[str]:
    return _trace_id_ctx.get()


class JsonFormatter(logging.Formatter):
    """One JSON object per record: time, level, logger, message, trace id, traceback."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        trace_id = getattr(record, "trace_id", None)
        if trace_id:
            log_record["trace_id"] = trace_id

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)


def configure_logging(level: str = "INFO", json_format: bool = False):
    """Configures the root logger for the CLI.

    Args:
        level (str): Logging level name, any case (default: INFO).
        json_format (bool): Emit JSON lines instead of text (default: False).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.addFilter(TraceContextFilter())
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Returns ``insight_agent.<name>``."""
    return logging.getLogger(f"insight_agent.{name}")
