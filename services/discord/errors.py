from __future__ import annotations


class DiscordServiceError(RuntimeError):
    """Base error for the Discord relay service."""


class DiscordConfigurationError(DiscordServiceError):
    """Raised when the service cannot start because of missing configuration."""

    def __init__(self, message: str, *, remediation: str | None = None) -> None:
        super().__init__(message)
        self.remediation = remediation
