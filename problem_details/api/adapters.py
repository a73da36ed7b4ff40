from __future__ import annotations

import io
from typing import Dict

from starlette.requests import Request
from starlette.responses import Response as StarletteResponse


class StarletteRequest:
    """ServerRequest view of a Starlette request."""

    def __init__(self, request: Request) -> None:
        self.request = request
        self.method = request.method
        self.uri = str(request.url)

    def get_header_line(self, name: str) -> str:
        return ", ".join(self.request.headers.getlist(name))


class BufferedResponse:
    """Response collected in memory, then handed to Starlette as a whole."""

    def __init__(self, status_code: int = 200, reason: str = "") -> None:
        self.status_code = status_code
        self.reason = reason
        self.headers: Dict[str, str] = {}
        self.body = io.BytesIO()

    def with_status(self, code: int, reason: str = "") -> "BufferedResponse":
        self.status_code = code
        self.reason = reason
        return self

    def with_header(self, name: str, value: str) -> "BufferedResponse":
        self.headers[name] = value
        return self

    def get_body(self) -> io.BytesIO:
        return self.body

    def to_starlette(self) -> StarletteResponse:
        # Starlette has no reason phrase; the server picks the standard one.
        return StarletteResponse(
            content=self.body.getvalue(),
            status_code=self.status_code,
            headers=self.headers,
        )
