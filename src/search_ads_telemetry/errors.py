"""Custom exceptions for the ads telemetry domain."""


class AdsTelemetryError(Exception):
    """Base exception for this project."""


class ConfigError(AdsTelemetryError):
    """Raised when runtime configuration or the provider catalog is invalid."""


class MessageContractError(AdsTelemetryError, ValueError):
    """Raised when a content message does not have the expected shape."""


class SinkError(AdsTelemetryError):
    """Raised when a telemetry sink cannot be set up."""
