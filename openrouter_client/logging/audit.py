"""Structured JSON process logging for outbound OpenRouter calls.

Log lines go to stdout as JSON (optionally mirrored to AUDIT_LOG_FILE).
This is separate from the per-call request/response files written by
``ApiLogStore``: these lines are short summaries, never full bodies.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

from openrouter_client.config.settings import Settings, get_settings

AUDIT_LOGGER_NAME = "openrouter.audit"

# Call-scoped context for correlating log lines and persisted entries
trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")
# Who triggered the call (set by the HTTP surface; defaults apply for CLI use)
client_ip_var: ContextVar[str] = ContextVar("client_ip", default="cli")
user_agent_var: ContextVar[str] = ContextVar("user_agent", default="")


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "trace_id": trace_id_var.get(""),
        }
        # Merge any extra fields passed via `extra={}` kwarg
        if hasattr(record, "audit_data"):
            log_entry.update(record.audit_data)
        return json.dumps(log_entry, default=str)


def setup_logging(settings: Settings | None = None) -> None:
    """Configure the audit logger with JSON output."""
    settings = settings or get_settings()

    logger = logging.getLogger(AUDIT_LOGGER_NAME)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    logger.handlers.clear()

    formatter = JSONFormatter()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    logger.addHandler(stdout_handler)

    if settings.audit_log_file:
        file_handler = logging.FileHandler(settings.audit_log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Prevent propagation to root logger (avoids duplicate output)
    logger.propagate = False


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(AUDIT_LOGGER_NAME)


def generate_trace_id() -> str:
    return f"req_{uuid.uuid4().hex[:24]}"


def generate_generation_id() -> str:
    return f"gen_{uuid.uuid4().hex}"


class RequestTimer:
    """Context manager measuring wall-clock time around one network call.

    ``elapsed_ms`` is rounded to the nearest millisecond; ``started_at`` and
    ``finished_at`` are UTC epoch seconds.
    """

    def __init__(self):
        self.start_time: float = 0
        self.elapsed_ms: int = 0
        self.started_at: float = 0
        self.finished_at: float = 0

    def __enter__(self):
        self.started_at = time.time()
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed_ms = round((time.perf_counter() - self.start_time) * 1000)
        self.finished_at = time.time()
