"""Custom exception hierarchy for SnapSpot."""

from __future__ import annotations


class SnapSpotError(Exception):
    """Base class for all custom errors raised by SnapSpot."""


# --- 3-layer hierarchy ---

class DomainError(SnapSpotError):
    """Base class for domain-level errors."""


class InfrastructureError(SnapSpotError):
    """Base class for infrastructure-level errors."""


class ApplicationError(SnapSpotError):
    """Base class for application-level errors."""


# --- Domain errors ---

class InvalidRotationError(DomainError):
    """Raised when a rotation other than 0, 90, 180 or 270 degrees is requested."""


class RuleValidationError(DomainError):
    """Raised when a marker colouring rule is malformed."""


# --- Infrastructure errors ---

class ImageDecodeError(InfrastructureError):
    """Raised when an image source cannot be decoded into a bitmap."""


# --- Application errors ---

class EngineDisposedError(ApplicationError):
    """Raised when a disposed engine is asked to load a new image."""


# --- Settings ---

class SettingsError(SnapSpotError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""


__all__ = [
    "ApplicationError",
    "DomainError",
    "EngineDisposedError",
    "ImageDecodeError",
    "InfrastructureError",
    "InvalidRotationError",
    "RuleValidationError",
    "SettingsError",
    "SettingsLoadError",
    "SettingsValidationError",
    "SnapSpotError",
]
