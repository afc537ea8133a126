import logging
import os
from dataclasses import dataclass, field

import pytest

from cors_policy import PolicyConfig, PolicyEngine

# Tests build their policies explicitly. Drop any CORS_* overrides from the
# developer's shell so environment-driven tests start from the defaults.
for _name in list(os.environ):
    if _name.startswith("CORS_"):
        os.environ.pop(_name)



@dataclass
class FakeRequest:
    """Minimal ``RequestView`` used by the engine tests."""

    origin: str | None = None
    method: str = "GET"
    scheme: str = "https"
    host: str = "api.example.com"
    headers: dict[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        if name.lower() == "origin":
            return self.origin
        for key, value in self.headers.items():
            if key.lower() == name.lower():
                return value
        return None


@pytest.fixture
def make_request():
    """Return a factory building ``FakeRequest`` objects."""

    def _make(origin=None, method="GET", headers=None, **kwargs):
        return FakeRequest(origin=origin, method=method, headers=dict(headers or {}), **kwargs)

    return _make


@pytest.fixture
def preflight_request(make_request):
    """Return a factory for preflight requests from ``origin``."""

    def _make(origin="https://app.example.com", method="GET", request_headers=None, **kwargs):
        headers = {"Access-Control-Request-Method": method}
        if request_headers is not None:
            headers["Access-Control-Request-Headers"] = request_headers
        return make_request(origin=origin, method="OPTIONS", headers=headers, **kwargs)

    return _make


@pytest.fixture
def make_engine():
    """Return a factory building an engine from policy keyword arguments."""

    def _make(**kwargs):
        return PolicyEngine(PolicyConfig(**kwargs))

    return _make


@pytest.fixture
def restore_logging():
    """Put the root and ``cors_policy`` loggers back after ``configure_logging()``."""

    root = logging.getLogger()
    package_logger = logging.getLogger("cors_policy")
    saved = (list(root.handlers), root.level, package_logger.level)
    yield
    for handler in root.handlers:
        if handler not in saved[0]:
            handler.close()
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    package_logger.setLevel(saved[2])
