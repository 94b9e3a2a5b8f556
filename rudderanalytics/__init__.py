"""
The rudderanalytics module contains the most common top-level entry points for the library.
"""

from rudderanalytics.impl.events.types import EventKind, FlushResponse
from rudderanalytics.version import VERSION

from .client import *
from .errors import *

__version__ = VERSION


__all__ = ['Analytics', 'Config', 'HTTPConfig', 'EventKind', 'FlushResponse', 'AnalyticsError', 'ConfigurationError', 'ValidationError', 'MessageTooLargeError', 'DeliveryError', 'client', 'config', 'errors']
