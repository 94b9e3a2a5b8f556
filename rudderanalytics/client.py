"""
This submodule contains the client class that provides most of the library's functionality.
"""

from concurrent.futures import Future
from typing import Any, Callable, Dict, List, Optional

from rudderanalytics.config import Config, HTTPConfig
from rudderanalytics.errors import MessageTooLargeError
from rudderanalytics.impl.events.event_processor import DefaultEventProcessor
from rudderanalytics.impl.events.types import (EventKind, FlushResponse,
                                               MessageCallback)
from rudderanalytics.impl.events.validation import validate_message
from rudderanalytics.version import VERSION


class Analytics:
    """The client that queues analytics events and delivers them to the data plane.

    Applications should instantiate a single instance for the lifetime of the application. All
    event methods return immediately; delivery happens in batches on a worker thread. Each event
    method returns the client itself, so calls can be chained.
    """

    def __init__(self, write_key: Optional[str] = None, data_plane_url: Optional[str] = None, config: Optional[Config] = None, http=None, **options):
        """Constructs a new client instance.

        Either pass ``write_key`` and ``data_plane_url`` (plus any other :class:`Config` option as a
        keyword argument), or pass a prebuilt ``config``.

        :param write_key: the write key of the source
        :param data_plane_url: the URL batches are posted to
        :param config: the client configuration
        :param http: an optional urllib3-compatible pool manager to send requests with
        """
        if config is None:
            config = Config(write_key, data_plane_url, **options)
        self._config = config
        self._logger = config.logger
        self._logger.info("Starting analytics client " + VERSION)
        self._event_processor = DefaultEventProcessor(config, http)

    @property
    def config(self) -> Config:
        return self._config

    def identify(self, message: Dict[str, Any], callback: Optional[MessageCallback] = None) -> 'Analytics':
        """Sends an "identify" message that associates traits with a user.

        :param message: must contain ``userId`` or ``anonymousId``; ``traits`` are also copied into
          ``context.traits``
        :param callback: called with None, or the delivery error, once the message has been sent
        """
        return self._enqueue(EventKind.IDENTIFY, message, callback)

    def group(self, message: Dict[str, Any], callback: Optional[MessageCallback] = None) -> 'Analytics':
        """Sends a "group" message that identifies this user with a group.

        :param message: must contain ``groupId`` and ``userId`` or ``anonymousId``
        :param callback: called with None, or the delivery error, once the message has been sent
        """
        return self._enqueue(EventKind.GROUP, message, callback)

    def track(self, message: Dict[str, Any], callback: Optional[MessageCallback] = None) -> 'Analytics':
        """Sends a "track" event that records an action.

        :param message: must contain ``event`` and ``userId`` or ``anonymousId``
        :param callback: called with None, or the delivery error, once the message has been sent
        """
        return self._enqueue(EventKind.TRACK, message, callback)

    def page(self, message: Dict[str, Any], callback: Optional[MessageCallback] = None) -> 'Analytics':
        """Sends a "page" event that records a page view on a website."""
        return self._enqueue(EventKind.PAGE, message, callback)

    def screen(self, message: Dict[str, Any], callback: Optional[MessageCallback] = None) -> 'Analytics':
        """Sends a "screen" event that records a screen view in an app."""
        return self._enqueue(EventKind.SCREEN, message, callback)

    def alias(self, message: Dict[str, Any], callback: Optional[MessageCallback] = None) -> 'Analytics':
        """Sends an "alias" message that associates one ID with another.

        :param message: must contain ``userId`` and ``previousId``
        """
        return self._enqueue(EventKind.ALIAS, message, callback)

    def flush(self, callback: Optional[Callable[[List[FlushResponse]], Any]] = None) -> 'Future[List[FlushResponse]]':
        """Flushes all pending analytics events.

        Batches are normally delivered when ``flush_at`` messages are queued or ``flush_interval``
        seconds after the last message. Calling ``flush()`` starts delivery as soon as possible; it
        still happens on a worker thread, so this method returns immediately. Call ``result()`` on the
        returned future to wait for it.

        Callbacks run on a dedicated worker thread and must not block waiting on a flush.

        :param callback: called with the list of :class:`FlushResponse` objects once every message
          queued before this call has been attempted
        """
        return self._event_processor.flush(callback)

    def close(self):
        """Delivers what is still queued, then releases all threads and network connections used
        by the client.

        Do not attempt to use the client after calling this method.
        """
        self._logger.info("Closing analytics client..")
        self._event_processor.stop()

    # These magic methods allow a client object to be automatically cleaned up by the "with" scope operator
    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        self.close()

    def _enqueue(self, kind: EventKind, message: Dict[str, Any], callback: Optional[MessageCallback]) -> 'Analytics':
        self._validate(message, kind)
        self._event_processor.enqueue(kind, message, callback)
        return self

    def _validate(self, message: Dict[str, Any], kind: EventKind):
        try:
            validate_message(message, kind)
        except MessageTooLargeError:
            self._logger.warning('Your message must be < 32KiB. This is currently surfaced as a warning. Please update your code. %s', message)


__all__ = ['Analytics', 'Config', 'HTTPConfig']
