"""Structured logging setup for the CORS policy service."""

from .config import configure_logging
from .formatter import ECSJsonFormatter, FIELD_MAP, SERVICE_NAME

__all__ = [
    "configure_logging",
    "ECSJsonFormatter",
    "FIELD_MAP",
    "SERVICE_NAME",
]
