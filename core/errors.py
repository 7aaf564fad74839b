# core/errors.py
from typing import Optional


class AggregationError(Exception):
    """Base error for a catalog search run that could not complete."""


class TransportError(AggregationError):
    """Network fault, non-2xx status or an error payload from the catalog API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProtocolError(AggregationError):
    """Malformed page or a pagination cursor that does not advance."""


class ConfigError(AggregationError):
    """Missing or invalid settings (credentials, page size, platform)."""
