from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Any, Optional


request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class _ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        # Ensure this always exists so our formatter never crashes.
        record.request_id = request_id_var.get("-")
        return True


def set_log_context(*, request_id: Optional[str] = None) -> None:
    if request_id is not None:
        request_id_var.set(request_id)


def setup_logging(level: str = "INFO") -> None:
    lvl = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(lvl)

    # Replace handlers to avoid duplicated logs under reload.
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_ContextFilter())

    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s | request_id=%(request_id)s"
    handler.setFormatter(logging.Formatter(fmt))

    root.handlers = [handler]

    logging.getLogger("uvicorn.access").setLevel(max(lvl, logging.INFO))


def get_logger(name: str = "problem_details") -> logging.Logger:
    return logging.getLogger(name)


def log_error_listener(error: BaseException, request: Any, response: Any) -> None:
    """Error listener for ProblemDetailsMiddleware that logs with traceback."""
    get_logger("problem_details.errors").error(
        "unhandled error on %s %s: %s",
        getattr(request, "method", "-"),
        getattr(request, "uri", "-"),
        error,
        exc_info=(type(error), error, error.__traceback__),
    )
