"""Logging setup shared by the engine, the CLI and the scan workers.

Every record carries the id of the incremental query it belongs to. The id
lives in a context variable, so scan workers started from a copied context
log under the same id as the coordinator that dispatched them.
"""
import contextvars
import json
import logging
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

_query_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("query_id", default=None)

# Attributes present on every LogRecord; anything else was passed via ``extra``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "query_id"}

_NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool")

TEXT_FORMAT = "%(asctime)s - [%(query_id)s] - %(name)s - %(levelname)s - %(message)s"


@contextmanager
def query_context(query_id: Optional[str] = None) -> Iterator[str]:
    """Binds a query id to the current context; generates one when omitted."""
    query_id = query_id or uuid.uuid4().hex
    token = _query_id.set(query_id)
    try:
        yield query_id
    finally:
        _query_id.reset(token)


def current_query_id() -> Optional[str]:
    return _query_id.get()


class QueryContextFilter(logging.Filter):
    """Stamps records with the active query id ("-" outside any query)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.query_id = _query_id.get() or "-"
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record, including any ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        query_id = getattr(record, "query_id", None)
        if query_id and query_id != "-":
            payload["query_id"] = query_id
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        payload.update(
            {key: value for key, value in record.__dict__.items()
             if key not in _RECORD_ATTRS and not key.startswith("_")}
        )
        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Replaces the root handlers with a single query-aware stream handler.

    Args:
        level (str): The logging level (default: INFO).
        json_format (bool): Emit JSON lines instead of text (default: False).
    """
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.addFilter(QueryContextFilter())
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
