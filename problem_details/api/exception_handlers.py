from __future__ import annotations

from http import HTTPStatus
from typing import Any, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response as StarletteResponse

from problem_details.api.adapters import BufferedResponse, StarletteRequest
from problem_details.core.config import Settings, get_settings
from problem_details.core.errors import ProblemDetailsError
from problem_details.core.logging import get_logger, set_log_context, setup_logging
from problem_details.handlers import (
    ErrorListener,
    ProblemDetailsMiddleware,
    ProblemDetailsNotFoundHandler,
)
from problem_details.responses import ProblemDetailsResponseFactory

log = get_logger("problem_details.api")


def _to_starlette(response: Any) -> StarletteResponse:
    if isinstance(response, BufferedResponse):
        return response.to_starlette()
    return response


def _adapt(request: Request) -> StarletteRequest:
    set_log_context(request_id=request.headers.get("X-Request-ID") or "-")
    return StarletteRequest(request)


def _is_route_miss(exc: StarletteHTTPException) -> bool:
    return exc.status_code == 404 and exc.detail == HTTPStatus.NOT_FOUND.phrase


def install_problem_details(
    app: FastAPI,
    factory: Optional[ProblemDetailsResponseFactory] = None,
    settings: Optional[Settings] = None,
    listeners: Iterable[ErrorListener] = (),
    configure_logging: bool = False,
) -> ProblemDetailsMiddleware:
    """Register problem details exception handlers on ``app``.

    Returns the error middleware so more listeners can be attached later.
    With ``configure_logging`` the root logger is set up at settings.LOG_LEVEL.
    Errors not handled by a more specific handler reach Starlette's
    ServerErrorMiddleware, which re-raises them after the response is sent.
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.LOG_LEVEL)
    if factory is None:
        factory = ProblemDetailsResponseFactory.from_settings(BufferedResponse, settings)
    middleware = ProblemDetailsMiddleware(factory)
    for listener in listeners:
        middleware.attach_listener(listener)
    not_found = ProblemDetailsNotFoundHandler(factory)

    async def problem_error_handler(request: Request, exc: ProblemDetailsError):
        return _to_starlette(middleware.handle_error(_adapt(request), exc))

    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        req = _adapt(request)
        if _is_route_miss(exc):
            def fallback(_req: StarletteRequest) -> JSONResponse:
                return JSONResponse(status_code=404, content={"detail": exc.detail}, headers=exc.headers)

            log.debug("no route for %s %s", req.method, req.uri)
            return _to_starlette(not_found.process(req, fallback))

        detail = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        response = _to_starlette(factory.create_response(req, exc.status_code, detail))
        for name, value in (exc.headers or {}).items():
            response.headers[name] = value
        return response

    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _to_starlette(
            factory.create_response(_adapt(request), 422, "Invalid request", additional={"errors": exc.errors()})
        )

    async def unhandled_error_handler(request: Request, exc: Exception):
        return _to_starlette(middleware.handle_error(_adapt(request), exc))

    app.add_exception_handler(ProblemDetailsError, problem_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    return middleware
