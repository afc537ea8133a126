"""Request and response facades consumed by the policy engine."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol, runtime_checkable


@runtime_checkable
class RequestView(Protocol):
    """Read-only view of the inbound request."""

    @property
    def origin(self) -> str | None: ...

    @property
    def method(self) -> str: ...

    @property
    def scheme(self) -> str: ...

    @property
    def host(self) -> str: ...

    def header(self, name: str) -> str | None: ...


@runtime_checkable
class ResponseSink(Protocol):
    """Header target the engine writes its decisions to."""

    def set_header(self, name: str, value: str) -> None: ...

    def get_header(self, name: str) -> str | None: ...

    def has_header(self, name: str) -> bool: ...


class HeaderBag:
    """In-memory ``ResponseSink`` with case-insensitive names.

    Insertion order and the first spelling of each header name are kept so the
    headers can be copied onto a framework response unchanged.
    """

    def __init__(self, headers: dict[str, str] | None = None) -> None:
        self._items: dict[str, tuple[str, str]] = {}
        for name, value in (headers or {}).items():
            self.set_header(name, value)

    def set_header(self, name: str, value: str) -> None:
        key = name.lower()
        existing = self._items.get(key)
        self._items[key] = (existing[0] if existing else name, str(value))

    def get_header(self, name: str) -> str | None:
        item = self._items.get(name.lower())
        return item[1] if item else None

    def has_header(self, name: str) -> bool:
        return name.lower() in self._items

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(self._items.values())

    def as_dict(self) -> dict[str, str]:
        return dict(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.as_dict()!r})"


__all__ = ["HeaderBag", "RequestView", "ResponseSink"]
