"""Assembly of RFC 7807 problem payloads.

A payload always starts with the four canonical members, in this order:
``type``, ``title``, ``status``, ``detail``. Extensions follow and can never
replace a canonical member.

Errors are split in two groups:

  - errors exposing the structured capability (see
    ``ProblemDetailsErrorProtocol``) are trusted: their status, title, type,
    detail and ``additional`` data go to the client as-is;
  - every other error is an internal failure: the status is always 500 and the
    message is replaced by ``DebugConfig.default_detail_message`` unless fragile
    messages are exposed or throwable details are included.

With ``include_throwable_details`` the payload also gets an ``exception``
member describing the error and its chain of previous errors.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Callable, Dict, List, Mapping, Optional

from problem_details.core.config import DEFAULT_DETAIL_MESSAGE
from problem_details.core.errors import CANONICAL_KEYS, is_problem_details_error
from problem_details.core.logging import get_logger
from problem_details.render.sanitize import DROP, clean_text, sanitize, sanitize_mapping

DEFAULT_TYPE_TEMPLATE = "https://httpstatus.es/{status}"
UNKNOWN_TITLE = "Unknown Error"
FALLBACK_STATUS = 500

ExceptionDetailFilter = Callable[[BaseException], Any]

log = get_logger("problem_details.payload")


@dataclass(frozen=True)
class DebugConfig:
    include_throwable_details: bool = False
    exception_detail_filter: Optional[ExceptionDetailFilter] = None
    expose_fragile_message: bool = False
    default_detail_message: str = DEFAULT_DETAIL_MESSAGE


def reason_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return UNKNOWN_TITLE


def _valid_status(status: Any) -> bool:
    return isinstance(status, int) and not isinstance(status, bool) and 100 <= status <= 599


class ProblemPayloadBuilder:
    def __init__(
        self,
        debug: Optional[DebugConfig] = None,
        types_map: Optional[Mapping[int, str]] = None,
    ) -> None:
        self.debug = debug or DebugConfig()
        self.types_map: Dict[int, str] = dict(types_map or {})

    def default_type(self, status: int) -> str:
        return self.types_map.get(status) or DEFAULT_TYPE_TEMPLATE.format(status=status)

    def build(
        self,
        status: int,
        detail: str,
        title: str = "",
        type: str = "",
        additional: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            if not _valid_status(status):
                raise ValueError(f"invalid HTTP status {status!r}")
            return self._assemble(status, detail, title, type, additional)
        except Exception as e:
            log.warning("problem payload fallback: %s", e)
            return self._fallback()

    def build_from_throwable(self, error: BaseException) -> Dict[str, Any]:
        try:
            return self._from_throwable(error)
        except Exception as e:
            log.warning("problem payload fallback for %s: %s", type(error).__name__, e)
            return self._fallback()

    def _from_throwable(self, error: BaseException) -> Dict[str, Any]:
        additional: Dict[str, Any] = {}
        if is_problem_details_error(error):
            status = getattr(error, "status")
            if not _valid_status(status):
                status = FALLBACK_STATUS
            title = getattr(error, "title", "") or ""
            problem_type = getattr(error, "type", "") or ""
            detail = getattr(error, "detail", None) or str(error)
            extra = getattr(error, "additional", None)
            if isinstance(extra, Mapping):
                additional.update(extra)
        else:
            # Generic errors never pick their own HTTP status.
            status = FALLBACK_STATUS
            title = ""
            problem_type = ""
            detail = self._masked_detail(error)

        if self.debug.include_throwable_details:
            details = self._exception_details(error)
            if details is not None:
                additional["exception"] = details

        return self._assemble(status, detail, title, problem_type, additional)

    def _masked_detail(self, error: BaseException) -> str:
        exposed = self.debug.expose_fragile_message or self.debug.include_throwable_details
        message = str(error)
        if exposed and message:
            return message
        return self.debug.default_detail_message

    def _assemble(
        self,
        status: int,
        detail: Any,
        title: Any,
        problem_type: Any,
        additional: Optional[Mapping[str, Any]],
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": clean_text(str(problem_type or self.default_type(status))),
            "title": clean_text(str(title or reason_phrase(status))),
            "status": status,
            "detail": clean_text("" if detail is None else str(detail)),
        }
        if isinstance(additional, Mapping):
            for key, value in sanitize_mapping(additional).items():
                if key not in CANONICAL_KEYS:
                    payload[key] = value
        return payload

    def _fallback(self) -> Dict[str, Any]:
        return {
            "type": self.default_type(FALLBACK_STATUS),
            "title": reason_phrase(FALLBACK_STATUS),
            "status": FALLBACK_STATUS,
            "detail": self.debug.default_detail_message,
        }

    def _exception_details(self, error: BaseException) -> Optional[Dict[str, Any]]:
        flt = self.debug.exception_detail_filter
        if flt is not None:
            filtered = flt(error)
            if isinstance(filtered, BaseException):
                error = filtered
            elif not filtered:
                return None

        details = describe_exception(error)
        details["stack"] = [describe_exception(prev) for prev in reversed(previous_errors(error))]
        clean = sanitize(details)
        return None if clean is DROP else clean


def previous_errors(error: BaseException) -> List[BaseException]:
    """Causally previous errors of ``error``, nearest first."""
    chain: List[BaseException] = []
    seen = {id(error)}
    current = _previous(error)
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        chain.append(current)
        current = _previous(current)
    return chain


def _previous(error: BaseException) -> Optional[BaseException]:
    if error.__cause__ is not None:
        return error.__cause__
    if error.__suppress_context__:
        return None
    return error.__context__


def _error_class(error: BaseException) -> str:
    cls = type(error)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def _error_code(error: BaseException) -> Any:
    code = getattr(error, "code", None)
    if isinstance(code, (int, str)) and not isinstance(code, bool):
        return code
    errno = getattr(error, "errno", None)
    if isinstance(errno, int):
        return errno
    return 0


def describe_exception(error: BaseException) -> Dict[str, Any]:
    frames = traceback.extract_tb(error.__traceback__) if error.__traceback__ else []
    origin = frames[-1] if frames else None
    return {
        "class": _error_class(error),
        "code": _error_code(error),
        "message": str(error),
        "file": origin.filename if origin else "",
        "line": origin.lineno if origin else 0,
        "trace": [
            {"file": frame.filename, "line": frame.lineno, "function": frame.name}
            for frame in frames
        ],
    }
