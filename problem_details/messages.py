from __future__ import annotations

from typing import Callable, Protocol, Union


class BodyStream(Protocol):
    def write(self, data: bytes) -> object: ...


class ServerRequest(Protocol):
    method: str
    uri: str

    def get_header_line(self, name: str) -> str: ...


class Response(Protocol):
    def with_status(self, code: int, reason: str = "") -> "Response": ...
    def with_header(self, name: str, value: str) -> "Response": ...
    def get_body(self) -> BodyStream: ...


class ResponseFactory(Protocol):
    def create_response(self, code: int = 200, reason: str = "") -> Response: ...


RequestHandler = Callable[[ServerRequest], object]


class CallableResponseFactoryDecorator:
    """Adapts a zero-argument callable returning a base response to ResponseFactory."""

    def __init__(self, factory: Callable[[], Response]) -> None:
        self.factory = factory

    def create_response(self, code: int = 200, reason: str = "") -> Response:
        return self.factory().with_status(code, reason)


def as_response_factory(
    factory: Union[ResponseFactory, Callable[[], Response]],
) -> ResponseFactory:
    if hasattr(factory, "create_response"):
        return factory  # type: ignore[return-value]
    if callable(factory):
        return CallableResponseFactoryDecorator(factory)
    raise TypeError(
        f"response factory must provide create_response() or be callable, got {type(factory).__name__}"
    )
