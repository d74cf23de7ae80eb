"""xraytrace error hierarchy and exceptions."""

from __future__ import annotations


class XRayError(Exception):
    """Base exception for all xraytrace errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigError(XRayError):
    """Raised when configuration is invalid or conflicting."""
    pass


class ValidationError(XRayError):
    """Raised when validation fails."""
    pass


class IdentifierParseError(ValidationError):
    """Raised when a received trace or segment id cannot be used."""
    pass


class HeaderParseError(ValidationError):
    """Raised when a trace header segment is not a key=value pair."""
    pass


class TransportError(XRayError):
    """Raised when the daemon socket cannot be set up."""
    pass


class InitializationError(XRayError):
    """Raised when recorder initialization fails."""
    pass
