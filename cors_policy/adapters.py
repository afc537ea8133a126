"""Bind the engine's request/response facades to Starlette objects."""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import Response


class StarletteRequestView:
    """``RequestView`` over a Starlette request."""

    def __init__(self, request: Request) -> None:
        self._request = request

    @property
    def origin(self) -> str | None:
        return self._request.headers.get("origin")

    @property
    def method(self) -> str:
        return self._request.method.upper()

    @property
    def scheme(self) -> str:
        # first hop wins when several proxies appended their scheme
        forwarded_proto = self._request.headers.get("x-forwarded-proto", "")
        forwarded_proto = forwarded_proto.split(",")[0].strip().lower()
        return forwarded_proto or self._request.url.scheme

    @property
    def host(self) -> str:
        # first hop, paired with X-Forwarded-Proto in ``scheme``
        forwarded_host = self._request.headers.get("x-forwarded-host", "")
        forwarded_host = forwarded_host.split(",")[0].strip()
        return forwarded_host or self._request.headers.get("host") or self._request.url.netloc

    def header(self, name: str) -> str | None:
        return self._request.headers.get(name)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.method} {self._request.url.path})"


class StarletteResponseSink:
    """``ResponseSink`` writing straight into a response's mutable headers."""

    def __init__(self, response: Response) -> None:
        self._headers = response.headers

    def set_header(self, name: str, value: str) -> None:
        self._headers[name] = value

    def get_header(self, name: str) -> str | None:
        return self._headers.get(name)

    def has_header(self, name: str) -> bool:
        return name in self._headers


__all__ = ["StarletteRequestView", "StarletteResponseSink"]
