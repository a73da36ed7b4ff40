from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Union

from problem_details.core.config import DEFAULT_DETAIL_MESSAGE, Settings, get_settings
from problem_details.messages import Response, ResponseFactory, ServerRequest, as_response_factory
from problem_details.negotiation import NegotiatedFormat, negotiate
from problem_details.payload import DebugConfig, ExceptionDetailFilter, ProblemPayloadBuilder
from problem_details.render.to_json import serialize_json
from problem_details.render.to_xml import serialize_xml

_SERIALIZERS: Dict[NegotiatedFormat, Callable[[Mapping[str, Any]], bytes]] = {
    NegotiatedFormat.JSON: serialize_json,
    NegotiatedFormat.XML: serialize_xml,
}


class ProblemDetailsResponseFactory:
    """Builds problem+json / problem+xml responses for a request.

    ``response_factory`` is either a ResponseFactory or a zero-argument
    callable returning a fresh base response. Errors raised while obtaining
    that response propagate to the caller.
    """

    def __init__(
        self,
        response_factory: Union[ResponseFactory, Callable[[], Response]],
        include_throwable_details: bool = False,
        exception_detail_filter: Optional[ExceptionDetailFilter] = None,
        expose_fragile_message: bool = False,
        default_detail_message: str = DEFAULT_DETAIL_MESSAGE,
        default_types_map: Optional[Mapping[int, str]] = None,
    ) -> None:
        self.response_factory = as_response_factory(response_factory)
        self.debug = DebugConfig(
            include_throwable_details=include_throwable_details,
            exception_detail_filter=exception_detail_filter,
            expose_fragile_message=expose_fragile_message,
            default_detail_message=default_detail_message,
        )
        self.payloads = ProblemPayloadBuilder(self.debug, default_types_map)

    @classmethod
    def from_settings(
        cls,
        response_factory: Union[ResponseFactory, Callable[[], Response]],
        settings: Optional[Settings] = None,
        exception_detail_filter: Optional[ExceptionDetailFilter] = None,
    ) -> "ProblemDetailsResponseFactory":
        settings = settings or get_settings()
        return cls(
            response_factory,
            include_throwable_details=settings.INCLUDE_THROWABLE_DETAILS,
            exception_detail_filter=exception_detail_filter,
            expose_fragile_message=settings.EXPOSE_FRAGILE_MESSAGE,
            default_detail_message=settings.DEFAULT_DETAIL_MESSAGE,
            default_types_map=settings.DEFAULT_TYPES_MAP,
        )

    def create_response(
        self,
        request: ServerRequest,
        status: int,
        detail: str,
        title: str = "",
        type: str = "",
        additional: Optional[Mapping[str, Any]] = None,
    ) -> Response:
        payload = self.payloads.build(status, detail, title, type, additional)
        return self._respond(request, payload)

    def create_response_from_throwable(self, request: ServerRequest, error: BaseException) -> Response:
        payload = self.payloads.build_from_throwable(error)
        return self._respond(request, payload)

    def _respond(self, request: ServerRequest, payload: Dict[str, Any]) -> Response:
        fmt = negotiate(request.get_header_line("Accept"))
        body = _SERIALIZERS[fmt](payload)

        response = self.response_factory.create_response(payload["status"])
        response.get_body().write(body)
        return response.with_header("Content-Type", fmt.content_type)
