"""
This submodule contains the :class:`Config` class for custom configuration of the client.

Note that the same class can also be imported from the ``rudderanalytics.client`` submodule.
"""

import logging
from typing import Any, Dict, Optional

from rudderanalytics.errors import ConfigurationError
from rudderanalytics.impl.util import log

DEFAULT_MAX_FLUSH_SIZE_IN_BYTES = int(1024 * 1000 * 3.9)


class HTTPConfig:
    """Advanced HTTP configuration options for the client.

    This class groups together HTTP/HTTPS-related configuration properties that rarely need to be changed.
    If you need to set these, construct an ``HTTPConfig`` instance and pass it as the ``http`` parameter when
    you construct the main :class:`Config`.
    """

    def __init__(
        self,
        connect_timeout: float = 10,
        http_proxy: Optional[str] = None,
        ca_certs: Optional[str] = None,
        disable_ssl_verification: bool = False,
    ):
        """
        :param connect_timeout: The connect timeout for network connections in seconds.
        :param http_proxy: Use a proxy when connecting to the data plane. This is the full URI of the
          proxy; for example: http://my-proxy.com:1234. Setting this parameter will override any proxy
          specified by the ``http_proxy``/``https_proxy`` environment variables.
        :param ca_certs: If using a custom certificate authority, set this to the file path of the
          certificate bundle.
        :param disable_ssl_verification: If true, completely disables SSL verification and certificate
          verification for secure requests. This is unsafe and should not be used in a production environment.
        """
        self.__connect_timeout = connect_timeout
        self.__http_proxy = http_proxy
        self.__ca_certs = ca_certs
        self.__disable_ssl_verification = disable_ssl_verification

    @property
    def connect_timeout(self) -> float:
        return self.__connect_timeout

    @property
    def http_proxy(self) -> Optional[str]:
        return self.__http_proxy

    @property
    def ca_certs(self) -> Optional[str]:
        return self.__ca_certs

    @property
    def disable_ssl_verification(self) -> bool:
        return self.__disable_ssl_verification


class Config:
    """Configuration options for the analytics client.

    Only the write key and the data plane URL are required; everything else has a default suited
    to a long-running server process.
    """

    def __init__(
        self,
        write_key: str,
        data_plane_url: str,
        enable: bool = True,
        timeout: float = 0,
        flush_at: int = 20,
        flush_interval: float = 20,
        flush_detached: bool = False,
        max_flush_size_in_bytes: int = DEFAULT_MAX_FLUSH_SIZE_IN_BYTES,
        max_queue_length: int = 1000,
        http: HTTPConfig = HTTPConfig(),
        logger: Optional[logging.Logger] = None,
    ):
        """
        :param write_key: The write key of the source events are recorded for. This is always required.
        :param data_plane_url: The URL that batches are posted to. This is always required; trailing
          slashes are removed.
        :param enable: If false, nothing is queued or sent, but message callbacks are still invoked.
        :param timeout: The network timeout in seconds for a single delivery attempt. Zero or a
          negative value disables the timeout.
        :param flush_at: The number of queued messages that triggers a flush. Values below 1 are
          treated as 1.
        :param flush_interval: The number of seconds after the last enqueue at which pending messages
          are flushed, if no other trigger has fired first. Zero or None disables the idle timer.
        :param flush_detached: If true, flushes are handed off to a separate, short-lived process, so
          that the current process can exit without waiting for delivery. Message callbacks are never
          invoked in this mode.
        :param max_flush_size_in_bytes: The maximum serialized size of the messages sent in one request.
        :param max_queue_length: The maximum number of messages held in memory. Messages arriving while
          the queue is full are dropped.
        :param http: Optional properties for customizing the client's HTTP/HTTPS behavior. See
          :class:`HTTPConfig`.
        :param logger: The logger used by the client. Defaults to the ``rudderanalytics`` logger.
        """
        if not write_key:
            raise ConfigurationError("The project's write key must be specified")
        if not data_plane_url:
            raise ConfigurationError("The data plane URL must be specified")

        self.__write_key = write_key
        self.__data_plane_url = data_plane_url.rstrip('/')
        self.__enable = enable
        self.__timeout = timeout or 0
        self.__flush_at = max(int(flush_at), 1)
        self.__flush_interval = flush_interval or 0
        self.__flush_detached = flush_detached
        self.__max_flush_size_in_bytes = max_flush_size_in_bytes
        self.__max_queue_length = max_queue_length
        self.__http = http
        self.__logger = logger or log

    @property
    def write_key(self) -> str:
        return self.__write_key

    @property
    def data_plane_url(self) -> str:
        return self.__data_plane_url

    @property
    def enable(self) -> bool:
        return self.__enable

    @property
    def timeout(self) -> float:
        return self.__timeout

    @property
    def flush_at(self) -> int:
        return self.__flush_at

    @property
    def flush_interval(self) -> float:
        return self.__flush_interval

    @property
    def flush_detached(self) -> bool:
        return self.__flush_detached

    @property
    def max_flush_size_in_bytes(self) -> int:
        return self.__max_flush_size_in_bytes

    @property
    def max_queue_length(self) -> int:
        return self.__max_queue_length

    @property
    def http(self) -> HTTPConfig:
        return self.__http

    @property
    def logger(self) -> logging.Logger:
        return self.__logger

    def to_handoff_dict(self) -> Dict[str, Any]:
        """
        Returns the settings a detached flush process needs, keyed the way the handoff file stores them.
        """
        return {
            'writeKey': self.__write_key,
            'dataPlaneURL': self.__data_plane_url,
            'flushAt': self.__flush_at,
            'flushInterval': self.__flush_interval,
            'maxFlushSizeInBytes': self.__max_flush_size_in_bytes,
            'maxQueueLength': self.__max_queue_length,
        }

    @staticmethod
    def from_handoff_dict(data: Dict[str, Any], logger: Optional[logging.Logger] = None) -> 'Config':
        """
        Rebuilds a configuration from the ``config`` object of a handoff file. Detached flushing is
        always off in the result.
        """
        return Config(
            write_key=data.get('writeKey'),
            data_plane_url=data.get('dataPlaneURL'),
            flush_at=data.get('flushAt', 20),
            flush_interval=data.get('flushInterval', 20),
            flush_detached=False,
            max_flush_size_in_bytes=data.get('maxFlushSizeInBytes', DEFAULT_MAX_FLUSH_SIZE_IN_BYTES),
            max_queue_length=data.get('maxQueueLength', 1000),
            logger=logger,
        )


__all__ = ['Config', 'HTTPConfig']
