# connectors/errors.py
"""
Exception hierarchy for tcfleet.

Errors raised by the registry, the manager client and the config loader all
derive from TcFleetError so the fleet dispatcher can isolate them per server.
"""

from typing import Any, Dict, Optional


class TcFleetError(Exception):
    """Base class for all tcfleet errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class MalformedURLError(TcFleetError):
    """Raised when a server connection string cannot be parsed."""


class TransportError(TcFleetError):
    """Raised on connection refused, DNS failure, TLS failure or timeout."""


class ProtocolParseError(TcFleetError):
    """Raised when a manager response does not look like a manager response."""


class ConfigError(TcFleetError):
    """Raised when a fleet configuration file is missing or invalid."""
