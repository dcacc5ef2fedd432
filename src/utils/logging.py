"""Structured JSON logging configuration."""

import json
import logging
from datetime import datetime, timezone
from typing import Any


# Extra fields whose values must never reach the log stream
SENSITIVE_FIELDS = frozenset({'password', 'password_hash', 'token', 'tokens', 'authorization'})
REDACTED = '[redacted]'


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    # LogRecord attributes that are not `extra={...}` fields
    _STANDARD_ATTRS = frozenset(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {'message', 'asctime'}

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace('+00:00', 'Z'),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Tracebacks go into one field so each record stays a single line
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # logger.info("msg", extra={"userId": ...}) sets userId directly on the record,
        # so anything that is not a standard attribute came from `extra`
        for key, value in record.__dict__.items():
            if key in self._STANDARD_ATTRS or callable(value):
                continue
            log_data[key] = REDACTED if key.lower() in SENSITIVE_FIELDS else value

        # default=str covers datetimes, ObjectIds and other non-JSON extras
        return json.dumps(log_data, default=str)


def setup_structured_logging(level: int = logging.INFO):
    """Route the root logger and uvicorn's loggers through JSONFormatter."""
    # stderr, one JSON object per line
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # uvicorn installs its own handlers; replace them and stop propagation so
    # server logs are neither plain text nor emitted twice
    for name in ("uvicorn", "uvicorn.error"):
        logging.getLogger(name).handlers = [handler]
        logging.getLogger(name).propagate = False

    # Only warnings and errors from the access log
    uvicorn_access = logging.getLogger("uvicorn.access")
    uvicorn_access.handlers = [handler]
    uvicorn_access.setLevel(logging.WARNING)
