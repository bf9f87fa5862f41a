"""
Custom exceptions for the assistant bot, providing a structured error hierarchy.

Plugin errors carry a category-level ``user_message`` that is safe to show in
Discord. The full error text is only ever written to the server-side logs.
"""


class AssistError(Exception):
    """Base exception for all custom exceptions in this bot."""

    pass


class PluginError(AssistError):
    """Raised by a plugin that claimed a command but failed to complete it."""

    user_message = "Something went wrong. Check bot logs for details."


class APIError(PluginError):
    """Raised for errors talking to an integrated service (HTTP, timeout, parse)."""

    user_message = "A plugin API request failed. Check bot logs for details."


class ConfigurationError(PluginError):
    """Raised for errors in bot configuration, like missing keys or invalid values."""

    user_message = "Plugin configuration error. Check bot logs for details."


class ProtocolError(PluginError):
    """Raised when Discord rejects a response or sends an interaction we cannot parse."""

    user_message = "Discord API error. Check bot logs for details."


class SelectionExpired(PluginError):
    """Raised when a pending selection is gone (consumed or past its TTL)."""

    user_message = "This request has expired. Please search again."


class PlatformDeliveryError(AssistError):
    """Raised when a notification cannot be posted to its destination channel."""

    pass


class DestinationResolutionError(AssistError):
    """Raised when notification channels cannot be resolved at engine start."""

    pass
