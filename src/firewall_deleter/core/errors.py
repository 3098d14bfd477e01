"""Custom exception hierarchy for the firewall deleter."""

from __future__ import annotations

from .enums import ValidationFailure


class ConnectorError(Exception):
    """Base exception for all connector errors."""


# --- Configuration ---
class ConfigError(ConnectorError):
    """Invalid or missing configuration."""


# --- Inbound payload ---
class DecodeError(ConnectorError):
    """Inbound payload could not be decoded into an event."""


class InvalidEventError(ConnectorError):
    """A decoded event failed one of the validation rules."""

    def __init__(self, kind: ValidationFailure):
        self.kind = kind
        super().__init__(kind.value)


# --- Provider ---
class ProviderError(ConnectorError):
    """The cloud provider rejected or failed the deletion."""

    def __init__(self, message: str, code: str = ""):
        self.code = code
        super().__init__(message)


class ProviderAuthError(ProviderError):
    """The supplied datacenter credentials were refused."""


# --- Lifecycle ---
class SerializationError(ConnectorError):
    """An event could not be serialized for publishing."""


class LifecycleError(ConnectorError):
    """A terminal step was invoked on an event that already finished."""


class FatalConnectorError(ConnectorError):
    """The error path itself failed. The worker must stop."""
