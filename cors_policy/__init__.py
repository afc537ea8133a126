"""CORS policy evaluation and header synthesis."""

from .engine import PolicyEngine, PreflightResult, add_vary_token
from .exceptions import PolicyConfigError
from .interfaces import HeaderBag, RequestView, ResponseSink
from .policy import ANY, PolicyConfig, Wildcard, normalize_origins

__all__ = [
    "ANY",
    "HeaderBag",
    "PolicyConfig",
    "PolicyConfigError",
    "PolicyEngine",
    "PreflightResult",
    "RequestView",
    "ResponseSink",
    "Wildcard",
    "add_vary_token",
    "normalize_origins",
]
