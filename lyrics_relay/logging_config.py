import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

from . import __version__

# Exposed so the request id middleware can set it per request
req_id_var: ContextVar[str] = ContextVar("req_id", default="-")

_TRUTHY = {"1", "true", "yes", "on"}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "req_id": getattr(record, "req_id", req_id_var.get()),
            "level": record.levelname,
            "component": record.name,
            "msg": record.getMessage(),
            "version": __version__,
        }
        if hasattr(record, "meta"):
            payload["meta"] = record.meta
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        try:
            return json.dumps(payload, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            # Fallback to plain message if payload has unserialisable keys
            return payload["msg"]


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.req_id = req_id_var.get()
        return True


def configure_logging() -> None:
    """
    Call once at startup.
    LOG_LEVEL env var controls verbosity (default INFO).
    LOG_TO_STDOUT switches from JSON on stderr to plain text on stdout.
    """
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    to_stdout = os.getenv("LOG_TO_STDOUT", "").strip().lower() in _TRUTHY

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level, logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if to_stdout:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - [%(req_id)s] %(message)s"
            )
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JsonFormatter())
    # Filter on the handler so records from child loggers get a req_id too
    handler.addFilter(RequestIdFilter())
    root_logger.addHandler(handler)

    # Reduce third-party verbosity unless LOG_LEVEL is DEBUG
    if level != "DEBUG":
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "logging.configured", extra={"meta": {"level": level, "stdout": to_stdout}}
    )
