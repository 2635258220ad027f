import json, logging, os, sys
from datetime import datetime, timezone

# Structured fields copied from ``extra=`` into the JSON line.
# Request context comes from the HTTP middleware; the rest from validation.
CONTEXT_FIELDS = ("request_id", "route", "remote_addr")
VALIDATION_FIELDS = ("link_type", "code", "authority", "block")


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with AuthChain error codes as fields."""

    def format(self, record):
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for field in CONTEXT_FIELDS + VALIDATION_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _level() -> int:
    name = os.getenv("AUTHCHAIN_LOG_LEVEL", "INFO").upper()
    return getattr(logging, name, logging.INFO)


def configure_logging():
    """Route the root logger to stdout (and AUTHCHAIN_LOG_FILE if set) as JSON."""
    formatter = JsonFormatter()
    handlers = [logging.StreamHandler(sys.stdout)]

    log_file = os.getenv("AUTHCHAIN_LOG_FILE")
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a"))

    for handler in handlers:
        handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(_level())
    root.handlers = handlers
