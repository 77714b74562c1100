"""Error types shared by the core and its adapters."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Required settings are missing or invalid."""


class NavigationError(RuntimeError):
    """A page could not be loaded after all retry attempts."""


class StateValidationError(ValueError):
    """Persisted notification state does not match the expected schema."""


class NotificationError(RuntimeError):
    """The messaging service did not accept a notification."""
