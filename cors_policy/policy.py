"""Immutable, pre-normalised representation of a CORS access policy."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final

from .exceptions import PolicyConfigError


class Wildcard(Enum):
    """Sentinel stored in place of an allow-list configured with ``*``."""

    ANY = "*"

    def __repr__(self) -> str:
        return "ANY"


ANY: Final = Wildcard.ANY
WILDCARD_TOKEN: Final[str] = "*"

_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")

CONFIG_KEYS: Final[frozenset[str]] = frozenset(
    {
        "allowed_origins",
        "allowed_origins_patterns",
        "allowed_methods",
        "allowed_headers",
        "exposed_headers",
        "supports_credentials",
        "max_age",
        "exclude_same_host",
    }
)


def _string_items(name: str, values: Any) -> list[str]:
    if values is None:
        return []
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise PolicyConfigError(name, "expected a list of strings")
    items = []
    for value in values:
        if not isinstance(value, str):
            raise PolicyConfigError(name, f"expected a string, got {type(value).__name__}")
        value = value.strip()
        if value:
            items.append(value)
    return items


def normalize_origins(values: Iterable[str]) -> tuple[str, ...] | Wildcard:
    """Expand and trim configured origins.

    ``example.com`` becomes ``http://example.com`` and ``https://example.com``;
    ``//example.com`` is expanded the same way. Order is preserved and
    duplicates are kept.
    """

    items = _string_items("allowed_origins", values)
    if WILDCARD_TOKEN in items:
        return ANY

    origins: list[str] = []
    for item in items:
        origin = item.rstrip("/")
        if not origin:
            continue
        if origin.startswith("//"):
            origins.append(f"http:{origin}")
            origins.append(f"https:{origin}")
        elif not _SCHEME_PATTERN.match(origin):
            origins.append(f"http://{origin}")
            origins.append(f"https://{origin}")
        else:
            origins.append(origin)
    return tuple(origins)


def _normalize_tokens(name: str, values: Any, transform) -> tuple[str, ...] | Wildcard:
    if values is ANY:
        return ANY
    items = _string_items(name, values)
    if WILDCARD_TOKEN in items:
        return ANY
    # dict keeps first-seen order while dropping duplicates
    return tuple(dict.fromkeys(transform(item) for item in items))


def _compile_patterns(values: Any) -> tuple[re.Pattern[str], ...]:
    if values is None:
        return ()
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise PolicyConfigError("allowed_origins_patterns", "expected a list of patterns")
    compiled = []
    for value in values:
        if isinstance(value, re.Pattern):
            compiled.append(value)
            continue
        if not isinstance(value, str):
            raise PolicyConfigError(
                "allowed_origins_patterns",
                f"expected a string, got {type(value).__name__}",
            )
        try:
            compiled.append(re.compile(value))
        except re.error as exc:
            raise PolicyConfigError(
                "allowed_origins_patterns", f"invalid pattern {value!r}: {exc}"
            ) from exc
    return tuple(compiled)


@dataclass(frozen=True)
class PolicyConfig:
    """A validated CORS policy.

    Raw values passed to the constructor are normalised once in
    ``__post_init__``; afterwards every allow-list is either ``ANY`` or an
    immutable tuple of canonical tokens, so request evaluation never has to
    re-normalise anything.
    """

    allowed_origins: tuple[str, ...] | Wildcard = ()
    allowed_origin_patterns: tuple[re.Pattern[str], ...] = ()
    allowed_methods: tuple[str, ...] | Wildcard = ()
    allowed_headers: tuple[str, ...] | Wildcard = ()
    exposed_headers: tuple[str, ...] = ()
    supports_credentials: bool = False
    max_age: int | None = None
    exclude_same_host: bool = True

    _methods_line: str = field(init=False, repr=False, compare=False, default="")
    _headers_line: str = field(init=False, repr=False, compare=False, default="")
    _exposed_line: str = field(init=False, repr=False, compare=False, default="")

    def __post_init__(self) -> None:
        set_ = object.__setattr__

        if self.allowed_origins is not ANY:
            set_(self, "allowed_origins", normalize_origins(self.allowed_origins))
        set_(self, "allowed_origin_patterns", _compile_patterns(self.allowed_origin_patterns))
        set_(
            self,
            "allowed_methods",
            _normalize_tokens("allowed_methods", self.allowed_methods, str.upper),
        )
        set_(
            self,
            "allowed_headers",
            _normalize_tokens("allowed_headers", self.allowed_headers, str.lower),
        )
        set_(
            self,
            "exposed_headers",
            tuple(_string_items("exposed_headers", self.exposed_headers)),
        )

        for flag in ("supports_credentials", "exclude_same_host"):
            if not isinstance(getattr(self, flag), bool):
                raise PolicyConfigError(flag, "expected a boolean")

        max_age = self.max_age
        if max_age is not None:
            if isinstance(max_age, bool) or not isinstance(max_age, int):
                raise PolicyConfigError("max_age", "expected an integer number of seconds")
            if max_age < 0:
                raise PolicyConfigError("max_age", "must not be negative")

        if self.allowed_methods is not ANY:
            set_(self, "_methods_line", ",".join(self.allowed_methods))
        if self.allowed_headers is not ANY:
            set_(self, "_headers_line", ",".join(self.allowed_headers))
        set_(self, "_exposed_line", ", ".join(self.exposed_headers))

    @classmethod
    def from_mapping(cls, conf: Mapping[str, Any]) -> PolicyConfig:
        """Build a policy from the ``allowed_origins``/``max_age``/... mapping."""

        unknown = sorted(set(conf) - CONFIG_KEYS)
        if unknown:
            raise PolicyConfigError(", ".join(unknown), "unknown configuration key")

        return cls(
            allowed_origins=conf.get("allowed_origins") or (),
            allowed_origin_patterns=conf.get("allowed_origins_patterns") or (),
            allowed_methods=conf.get("allowed_methods") or (),
            allowed_headers=conf.get("allowed_headers") or (),
            exposed_headers=conf.get("exposed_headers") or (),
            supports_credentials=conf.get("supports_credentials", False),
            max_age=conf.get("max_age"),
            exclude_same_host=conf.get("exclude_same_host", True),
        )

    @property
    def allows_any_origin(self) -> bool:
        return self.allowed_origins is ANY

    @property
    def allows_any_method(self) -> bool:
        return self.allowed_methods is ANY

    @property
    def allows_any_header(self) -> bool:
        return self.allowed_headers is ANY

    @property
    def allowed_methods_line(self) -> str:
        """Configured methods, upper-cased and comma-joined."""
        return WILDCARD_TOKEN if self.allows_any_method else self._methods_line

    @property
    def allowed_headers_line(self) -> str:
        """Configured request headers, lower-cased and comma-joined."""
        return WILDCARD_TOKEN if self.allows_any_header else self._headers_line

    @property
    def exposed_headers_line(self) -> str:
        return self._exposed_line

    def is_single_origin_allowed(self) -> bool:
        """Return True when exactly one literal origin and no patterns are configured."""

        if self.allows_any_origin or self.allowed_origin_patterns:
            return False
        return len(self.allowed_origins) == 1

    def first_allowed_origin(self) -> str:
        if not self.is_single_origin_allowed():
            raise ValueError("first_allowed_origin() requires a single configured origin")
        return self.allowed_origins[0]


__all__ = [
    "ANY",
    "CONFIG_KEYS",
    "PolicyConfig",
    "WILDCARD_TOKEN",
    "Wildcard",
    "normalize_origins",
]
