"""
This submodule contains the exception types raised or reported by the client.
"""

from typing import Optional


class AnalyticsError(Exception):
    """Base class for all errors originating from this library."""


class ConfigurationError(AnalyticsError, ValueError):
    """
    Raised when the client is constructed without a required setting, such as the write key or
    the data plane URL.
    """


class ValidationError(AnalyticsError, ValueError):
    """
    Raised synchronously by the event methods (``track``, ``identify``, etc.) when a message is
    structurally invalid for its event type.
    """


class MessageTooLargeError(ValidationError):
    """
    The message serializes to more than the size accepted by the data plane for a single event.
    The client only logs a warning for this condition.
    """


class DeliveryError(AnalyticsError):
    """
    Describes why a batch could not be delivered. Instances are never raised by the client; they
    are passed to message callbacks and reported in :class:`rudderanalytics.FlushResponse`.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super(DeliveryError, self).__init__(message)
        self._status = status

    @property
    def status(self) -> Optional[int]:
        """The HTTP status of the last attempt, or None if no response was received."""
        return self._status


__all__ = ['AnalyticsError', 'ConfigurationError', 'ValidationError', 'MessageTooLargeError', 'DeliveryError']
