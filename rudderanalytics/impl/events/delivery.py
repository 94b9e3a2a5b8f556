"""
Posting a batch to the data plane, with retries.
"""

import time
from typing import Any, Callable, Dict, List, Optional

from rudderanalytics.config import Config
from rudderanalytics.errors import DeliveryError
from rudderanalytics.impl.events.types import FlushResponse
from rudderanalytics.impl.http import _http_factory
from rudderanalytics.impl.retry_delay import (DefaultBackoffStrategy,
                                              DefaultJitterStrategy,
                                              RetryDelayStrategy)
from rudderanalytics.impl.util import (check_if_error_is_recoverable_and_log,
                                       http_error_description, to_json,
                                       utc_now)

MAX_RETRIES = 3
RETRY_BASE_DELAY = 0.2
RETRY_JITTER_RATIO = 0.2


def default_retry_delay_strategy() -> RetryDelayStrategy:
    return RetryDelayStrategy(RETRY_BASE_DELAY, DefaultBackoffStrategy(), DefaultJitterStrategy(RETRY_JITTER_RATIO))


class BatchSender:
    """
    Sends one batch per call to :meth:`send`. Failures are never raised; they are reported in the
    returned :class:`FlushResponse`.
    """

    def __init__(self, config: Config, http=None,
                 retry_delay_factory: Callable[[], RetryDelayStrategy] = default_retry_delay_strategy,
                 sleep: Callable[[float], Any] = time.sleep):
        factory = _http_factory(config)
        self._config = config
        self._logger = config.logger
        self._headers = factory.base_headers
        self._timeout = factory.timeout
        self._http = factory.create_pool_manager(1, config.data_plane_url) if http is None else http
        self._close_http = http is None  # so we know whether to close it later
        self._retry_delay_factory = retry_delay_factory
        self._sleep = sleep

    def send(self, batch: List[Dict[str, Any]]) -> FlushResponse:
        data = {'batch': batch, 'sentAt': utc_now()}
        self._logger.debug('batch size is %d' % len(batch))
        # noinspection PyBroadException
        try:
            json_body = to_json(data)
            self._logger.debug('Sending events payload: ' + json_body)
            error = self._post_with_retry(json_body, len(batch))
        except Exception as e:
            self._logger.warning('Unhandled exception while sending events. Analytics events were not processed. [%s]', e)
            error = e
        return FlushResponse(error, data)

    def close(self):
        if self._close_http:
            self._http.clear()

    def _post_with_retry(self, body: str, event_count: int) -> Optional[DeliveryError]:
        context = "posting %d events" % event_count
        delays = self._retry_delay_factory()
        while True:
            can_retry = delays.retry_count < MAX_RETRIES
            next_action_message = "will retry" if can_retry else "some events were dropped"
            try:
                r = self._http.request('POST', self._config.data_plane_url, headers=self._headers, body=body, timeout=self._timeout, retries=0, redirect=False)
                if r.status < 300:
                    return None
                error = DeliveryError(getattr(r, 'reason', None) or http_error_description(r.status), r.status)
                recoverable = check_if_error_is_recoverable_and_log(self._logger, context, r.status, None, next_action_message)
                if not recoverable:
                    return error
            except Exception as e:
                error = DeliveryError(str(e))
                check_if_error_is_recoverable_and_log(self._logger, context, None, str(e), next_action_message)
            if not can_retry:
                self._logger.error('request failed to send after %d retries, dropping %d events' % (MAX_RETRIES, event_count))
                return error
            self._sleep(delays.next_retry_delay())
