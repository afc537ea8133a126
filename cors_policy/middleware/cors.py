"""Middleware that applies a ``PolicyEngine`` to every request."""

from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp

from ..adapters import StarletteRequestView, StarletteResponseSink
from ..engine import REQUEST_METHOD, PolicyEngine, add_vary_token
from ..policy import PolicyConfig


class CORSPolicyMiddleware(BaseHTTPMiddleware):
    """Answer preflights and decorate actual responses with CORS headers.

    Preflight requests are answered here and never reach the application.
    Everything else is forwarded and the resulting response is decorated on
    the way out, so error responses carry CORS headers as well.
    """

    def __init__(self, app: ASGIApp, config: PolicyConfig) -> None:
        super().__init__(app)
        self.engine = PolicyEngine(config)
        self.logger = logging.getLogger("cors_policy.cors")

    async def dispatch(  # type: ignore[override]
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        view = StarletteRequestView(request)

        if self.engine.is_preflight_request(view):
            return self._preflight_response(request, view)

        response = await call_next(request)
        sink = StarletteResponseSink(response)

        if view.method == "OPTIONS":
            add_vary_token(sink, REQUEST_METHOD)

        self.engine.decorate_response(sink, view)
        return response

    def _preflight_response(self, request: Request, view: StarletteRequestView) -> Response:
        result = self.engine.handle_preflight(view)
        # every preflight answer varies by the requested method
        add_vary_token(result.headers, REQUEST_METHOD)
        if result.allowed:
            return Response(status_code=result.status_code, headers=result.headers.as_dict())

        self.logger.warning(
            "CORS preflight rejected",
            extra={
                "event_dataset": "cors-policy.cors",
                "event_action": "preflight_rejected",
                "http_status_code": result.status_code,
                "http_request_method": request.method,
                "url_path": request.url.path,
                "cors_origin": self.engine.origin_of(view),
                "cors_reason": result.reason,
            },
        )
        return PlainTextResponse(
            result.reason, status_code=result.status_code, headers=result.headers.as_dict()
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(config={self.engine.config!r})"


__all__ = ["CORSPolicyMiddleware"]
