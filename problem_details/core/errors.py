from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable


CANONICAL_KEYS = ("type", "title", "status", "detail")


@runtime_checkable
class ProblemDetailsErrorProtocol(Protocol):
    """Capability of an error that knows how to describe itself as a problem.

    Errors exposing these attributes are trusted: their status, title and type
    are copied into the payload, and their ``detail`` (or message) is shown to
    clients even when fragile messages are masked. ``detail`` and
    ``additional`` are optional.
    """

    status: int
    title: str
    type: str


def is_problem_details_error(obj: Any) -> bool:
    return isinstance(obj, BaseException) and isinstance(obj, ProblemDetailsErrorProtocol)


@dataclass(eq=False)
class ProblemDetailsError(Exception):
    """An error surfaced to clients as an RFC 7807 problem document."""

    status: int
    detail: str
    title: str = ""
    type: str = ""
    additional: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        status: int,
        detail: str,
        title: str = "",
        type: str = "",
        additional: Optional[Mapping[str, Any]] = None,
    ) -> "ProblemDetailsError":
        return cls(
            status=status,
            detail=detail,
            title=title,
            type=type,
            additional=dict(additional or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        problem: Dict[str, Any] = {"status": self.status, "detail": self.detail}
        if self.title:
            problem["title"] = self.title
        if self.type:
            problem["type"] = self.type
        for key, value in self.additional.items():
            if key not in CANONICAL_KEYS:
                problem[key] = value
        return problem

    def __str__(self) -> str:  # pragma: no cover
        return self.detail
