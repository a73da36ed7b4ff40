from __future__ import annotations

from typing import Any, Callable, List

from problem_details.core.logging import get_logger
from problem_details.messages import RequestHandler, ServerRequest
from problem_details.negotiation import negotiate_or_decline
from problem_details.responses import ProblemDetailsResponseFactory

ErrorListener = Callable[[BaseException, ServerRequest, Any], None]

log = get_logger("problem_details.handlers")


class ProblemDetailsNotFoundHandler:
    """Answers unmatched routes with a 404 problem, when the client can read one."""

    def __init__(self, response_factory: ProblemDetailsResponseFactory) -> None:
        self.response_factory = response_factory

    def process(self, request: ServerRequest, call_next: RequestHandler) -> Any:
        if negotiate_or_decline(request.get_header_line("Accept")) is None:
            return call_next(request)

        return self.response_factory.create_response(
            request,
            404,
            f"Cannot {request.method} {request.uri}!",
        )


class ProblemDetailsMiddleware:
    """Turns errors raised by the next handler into problem responses."""

    def __init__(self, response_factory: ProblemDetailsResponseFactory) -> None:
        self.response_factory = response_factory
        self._listeners: List[ErrorListener] = []

    def attach_listener(self, listener: ErrorListener) -> None:
        if listener in self._listeners:
            return
        self._listeners.append(listener)

    def process(self, request: ServerRequest, call_next: RequestHandler) -> Any:
        try:
            return call_next(request)
        except Exception as e:
            return self.handle_error(request, e)

    def handle_error(self, request: ServerRequest, error: BaseException) -> Any:
        response = self.response_factory.create_response_from_throwable(request, error)
        log.debug("converted %s into a problem response", type(error).__name__)
        for listener in self._listeners:
            listener(error, request, response)
        return response
