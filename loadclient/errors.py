from __future__ import annotations


class ConfigurationError(Exception):
    """Raised when configuration cannot be loaded or is invalid."""


class TransportError(Exception):
    """Raised when the conference session rejects a receiver constraints update."""


__all__ = ["ConfigurationError", "TransportError"]
