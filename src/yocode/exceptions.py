"""Custom exceptions for Yocode."""

from typing import Any


class YocodeError(Exception):
    """Base exception for all Yocode errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}


class ConfigError(YocodeError):
    """Raised when the project configuration file is unreadable or invalid."""


class InvalidCommandName(YocodeError):
    """Raised when a command name is not a safe identifier."""


class ManifestMissing(YocodeError):
    """Raised when the project manifest does not exist."""


class ManifestMalformed(YocodeError):
    """Raised when the project manifest is not valid structured data."""


class EntrySourceMissing(YocodeError):
    """Raised when the extension entry source does not exist."""


class EntrySourceMalformed(YocodeError):
    """Raised when the extension entry source cannot be decoded."""


class ActivationAnchorNotFound(YocodeError):
    """Raised when the activation routine cannot be located in the entry source."""


class TemplateNotFound(YocodeError):
    """Raised when no command template is registered for a language variant."""


class TemplateRenderError(YocodeError):
    """Raised when a command template fails to render."""


class TargetExists(YocodeError):
    """Raised when the command module to generate is already on disk."""


class CommandAlreadyRegistered(YocodeError):
    """Raised when the manifest already declares the command."""


class AugmentationError(YocodeError):
    """Raised when one stage of a command augmentation fails.

    Wraps the underlying Yocode error and records which stage failed.
    """

    def __init__(self, stage: str, cause: Exception) -> None:
        super().__init__(
            f"[{stage}] {cause}",
            details={"stage": stage, **getattr(cause, "details", {})},
        )
        self.stage = stage
        self.cause = cause
