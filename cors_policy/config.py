"""Environment-driven configuration for the CORS policy."""

from __future__ import annotations

import os
from typing import Any

from .exceptions import PolicyConfigError
from .policy import PolicyConfig

_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}


def _get_env(name: str, *, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip()


def _get_bool(name: str, default: bool) -> bool:
    value = _get_env(name)
    if not value:
        return default
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise PolicyConfigError(name, f"expected a boolean, got {value!r}")


def _get_list(name: str, default: str = "") -> list[str]:
    raw = _get_env(name, default=default) or ""
    return [item.strip() for item in raw.split(",") if item.strip()]


def _get_max_age(name: str) -> int | None:
    value = _get_env(name)
    if not value:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise PolicyConfigError(name, f"expected an integer, got {value!r}") from exc


def load_policy_settings() -> dict[str, Any]:
    """Read the ``CORS_*`` environment variables into a policy mapping.

    List values are comma separated, except for origin patterns which are
    separated by whitespace because regular expressions may contain commas.
    """

    return {
        "allowed_origins": _get_list("CORS_ALLOWED_ORIGINS"),
        "allowed_origins_patterns": (_get_env("CORS_ALLOWED_ORIGINS_PATTERNS") or "").split(),
        "allowed_methods": _get_list("CORS_ALLOWED_METHODS", default="*"),
        "allowed_headers": _get_list("CORS_ALLOWED_HEADERS", default="*"),
        "exposed_headers": _get_list("CORS_EXPOSED_HEADERS"),
        "supports_credentials": _get_bool("CORS_SUPPORTS_CREDENTIALS", default=False),
        "max_age": _get_max_age("CORS_MAX_AGE"),
        "exclude_same_host": _get_bool("CORS_EXCLUDE_SAME_HOST", default=True),
    }


def load_policy_config() -> PolicyConfig:
    """Build a ``PolicyConfig`` from the environment, failing fast on bad input."""

    return PolicyConfig.from_mapping(load_policy_settings())


__all__ = ["load_policy_config", "load_policy_settings"]
