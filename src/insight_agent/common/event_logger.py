import logging
import json
import os
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from datetime import datetime, timezone

from insight_agent.common.logger import current_trace_id


class EventLogger:
    """Persistent audit logger for SQL gate decisions.

    Writes structured JSON events (rejected SQL, failed executions, exhausted
    agent loops) to a dedicated log file, separate from application debug logs.
    The file handler is attached on first use so importing the package never
    touches the filesystem.
    """

    SENSITIVE_KEYS = {"api_key", "password", "secret", "authorization", "database_url"}

    def __init__(self, log_path: Optional[str] = None, logger_name: str = "insight_agent.audit"):
        self.log_path = log_path
        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False  # Keep audit events off the application stream
        self._file_handler: Optional[RotatingFileHandler] = None

    def _ensure_handler(self) -> None:
        if self._file_handler is not None:
            return

        log_path = self.log_path
        if log_path is None:
            from insight_agent.common.settings import settings
            log_path = settings.audit_log_path

        # Other handlers (capture, host app) may sit on this logger; only our file counts.
        target = os.path.abspath(log_path)
        for existing in self.logger.handlers:
            if isinstance(existing, RotatingFileHandler) and existing.baseFilename == target:
                self._file_handler = existing
                return

        directory = os.path.dirname(log_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        # 10MB per file, max 5 backup files
        handler = RotatingFileHandler(
            log_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        self.logger.addHandler(handler)
        self._file_handler = handler

    def log_event(
        self,
        event_type: str,
        payload: Dict[str, Any],
        trace_id: Optional[str] = None,
    ):
        """Logs a structured event to the audit log.

        Args:
            event_type: Category of event (e.g., 'sql_rejected', 'sql_execution_failed').
            payload: The event data dictionary.
            trace_id: Correlation ID. Defaults to the active trace context.
        """
        self._ensure_handler()

        event = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            "trace_id": trace_id or current_trace_id(),
            "data": self._redact(payload, self.SENSITIVE_KEYS),
        }

        self.logger.info(json.dumps(event, default=str))

    def _redact(self, data: Any, keys_to_redact: set) -> Any:
        """Recursively redact sensitive keys from dictionary.

        Args:
            data: Input data (dict, list, or primitive).
            keys_to_redact: Set of lowercase keys to match and redact.

        Returns:
            The sanitized data structure with sensitive values replaced by '***REDACTED***'.
        """
        if isinstance(data, dict):
            return {
                k: ("***REDACTED***" if k.lower() in keys_to_redact else self._redact(v, keys_to_redact))
                for k, v in data.items()
            }
        elif isinstance(data, list):
            return [self._redact(item, keys_to_redact) for item in data]
        else:
            return data


# Global instance
event_logger = EventLogger()
