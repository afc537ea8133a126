"""Evaluate requests against a ``PolicyConfig`` and write CORS headers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Final

from .interfaces import HeaderBag, RequestView, ResponseSink
from .policy import PolicyConfig

logger = logging.getLogger("cors_policy.engine")

ORIGIN: Final[str] = "Origin"
VARY: Final[str] = "Vary"
REQUEST_METHOD: Final[str] = "Access-Control-Request-Method"
REQUEST_HEADERS: Final[str] = "Access-Control-Request-Headers"
ALLOW_ORIGIN: Final[str] = "Access-Control-Allow-Origin"
ALLOW_METHODS: Final[str] = "Access-Control-Allow-Methods"
ALLOW_HEADERS: Final[str] = "Access-Control-Allow-Headers"
ALLOW_CREDENTIALS: Final[str] = "Access-Control-Allow-Credentials"
EXPOSE_HEADERS: Final[str] = "Access-Control-Expose-Headers"
MAX_AGE: Final[str] = "Access-Control-Max-Age"

PREFLIGHT_OK: Final[int] = 204
FORBIDDEN: Final[int] = 403
METHOD_NOT_ALLOWED: Final[int] = 405


@dataclass
class PreflightResult:
    """Outcome of a preflight evaluation.

    ``headers`` is empty for rejections; ``reason`` is a short human readable
    explanation suitable for the response body and logs.
    """

    status_code: int
    headers: HeaderBag = field(default_factory=HeaderBag)
    reason: str = ""

    @property
    def allowed(self) -> bool:
        return self.status_code == PREFLIGHT_OK


def add_vary_token(response: ResponseSink, token: str) -> None:
    """Append ``token`` to the ``Vary`` header unless it is already listed."""

    current = response.get_header(VARY)
    if not current:
        response.set_header(VARY, token)
    elif token not in current.split(", "):
        response.set_header(VARY, f"{current}, {token}")


class PolicyEngine:
    """Stateless CORS evaluator bound to a single policy.

    The engine never raises for request input: every branch either denies the
    request or leaves the response untouched. Instances can be shared freely
    between concurrent requests.
    """

    def __init__(self, config: PolicyConfig) -> None:
        self.config = config

    # classification

    def has_origin(self, request: RequestView) -> bool:
        return bool(request.origin)

    def origin_of(self, request: RequestView) -> str:
        origin = request.origin
        if not origin:
            return ""
        return origin.rstrip("/")

    def is_same_host(self, request: RequestView) -> bool:
        return self.origin_of(request) == f"{request.scheme}://{request.host}"

    def is_cors_request(self, request: RequestView) -> bool:
        if not self.has_origin(request):
            return False
        if self.config.exclude_same_host and self.is_same_host(request):
            return False
        return True

    def is_preflight_request(self, request: RequestView) -> bool:
        return (
            self.is_cors_request(request)
            and request.method.upper() == "OPTIONS"
            and bool(request.header(REQUEST_METHOD))
        )

    # matching

    def is_origin_allowed(self, request: RequestView) -> bool:
        if self.config.allows_any_origin:
            return True

        origin = self.origin_of(request)
        if not origin:
            return False

        if origin in self.config.allowed_origins:
            return True

        return any(
            pattern.fullmatch(origin) for pattern in self.config.allowed_origin_patterns
        )

    def is_method_allowed(self, request: RequestView) -> bool:
        if self.config.allows_any_method:
            return True
        method = (request.header(REQUEST_METHOD) or "").strip().upper()
        return method in self.config.allowed_methods

    def are_headers_allowed(self, request: RequestView) -> bool:
        if self.config.allows_any_header:
            return True
        requested = request.header(REQUEST_HEADERS) or ""
        for token in requested.split(","):
            token = token.strip().lower()
            if token and token not in self.config.allowed_headers:
                return False
        return True

    # response construction

    def handle_preflight(self, request: RequestView) -> PreflightResult:
        """Validate a preflight request and build the headers to answer it with."""

        origin = self.origin_of(request)
        if not self.is_origin_allowed(request):
            logger.debug("Preflight origin rejected", extra={"cors_origin": origin})
            return PreflightResult(FORBIDDEN, reason="Origin not allowed")

        if not self.is_method_allowed(request):
            logger.debug(
                "Preflight method rejected",
                extra={
                    "cors_origin": origin,
                    "cors_request_method": request.header(REQUEST_METHOD),
                },
            )
            return PreflightResult(METHOD_NOT_ALLOWED, reason="Method not allowed")

        if not self.are_headers_allowed(request):
            logger.debug(
                "Preflight headers rejected",
                extra={
                    "cors_origin": origin,
                    "cors_request_headers": request.header(REQUEST_HEADERS),
                },
            )
            return PreflightResult(FORBIDDEN, reason="Header not allowed")

        headers = HeaderBag()
        self.add_preflight_headers(headers, request)
        return PreflightResult(PREFLIGHT_OK, headers=headers)

    def add_preflight_headers(self, response: ResponseSink, request: RequestView) -> None:
        if not self.configure_allowed_origin(response, request):
            return
        self.configure_allow_credentials(response)
        self.configure_allowed_methods(response, request)
        self.configure_allowed_headers(response, request)
        self.configure_max_age(response)

    def decorate_response(self, response: ResponseSink, request: RequestView) -> None:
        """Add CORS headers for an actual (non-preflight) request.

        A disallowed origin leaves the response without any CORS headers; the
        browser then blocks the page from reading it.
        """

        if not self.configure_allowed_origin(response, request):
            return
        self.configure_allow_credentials(response)
        self.configure_exposed_headers(response)

    def configure_allowed_origin(self, response: ResponseSink, request: RequestView) -> bool:
        """Set ``Access-Control-Allow-Origin`` and report whether it was set."""

        config = self.config
        if config.allows_any_origin and not config.supports_credentials:
            response.set_header(ALLOW_ORIGIN, "*")
            return True
        if config.is_single_origin_allowed():
            response.set_header(ALLOW_ORIGIN, config.first_allowed_origin())
            return True

        allowed = self.is_cors_request(request) and self.is_origin_allowed(request)
        if allowed:
            response.set_header(ALLOW_ORIGIN, self.origin_of(request))
        # dynamic responses vary by origin, matched or not
        add_vary_token(response, ORIGIN)
        return allowed

    def configure_allow_credentials(self, response: ResponseSink) -> None:
        if self.config.supports_credentials:
            response.set_header(ALLOW_CREDENTIALS, "true")

    def configure_allowed_methods(self, response: ResponseSink, request: RequestView) -> None:
        if self.config.allows_any_method:
            allow_methods = (request.header(REQUEST_METHOD) or "").strip().upper()
            add_vary_token(response, REQUEST_METHOD)
        else:
            allow_methods = self.config.allowed_methods_line
        if allow_methods:
            response.set_header(ALLOW_METHODS, allow_methods)

    def configure_allowed_headers(self, response: ResponseSink, request: RequestView) -> None:
        if self.config.allows_any_header:
            allow_headers = (request.header(REQUEST_HEADERS) or "").strip()
            add_vary_token(response, REQUEST_HEADERS)
        else:
            allow_headers = self.config.allowed_headers_line
        if allow_headers:
            response.set_header(ALLOW_HEADERS, allow_headers)

    def configure_exposed_headers(self, response: ResponseSink) -> None:
        exposed = [name for name in self.config.exposed_headers if response.has_header(name)]
        if exposed:
            response.set_header(EXPOSE_HEADERS, ", ".join(exposed))

    def configure_max_age(self, response: ResponseSink) -> None:
        if self.config.max_age is not None:
            response.set_header(MAX_AGE, str(self.config.max_age))


__all__ = [
    "ALLOW_CREDENTIALS",
    "ALLOW_HEADERS",
    "ALLOW_METHODS",
    "ALLOW_ORIGIN",
    "EXPOSE_HEADERS",
    "FORBIDDEN",
    "MAX_AGE",
    "METHOD_NOT_ALLOWED",
    "ORIGIN",
    "PREFLIGHT_OK",
    "PolicyEngine",
    "PreflightResult",
    "REQUEST_HEADERS",
    "REQUEST_METHOD",
    "VARY",
    "add_vary_token",
]
