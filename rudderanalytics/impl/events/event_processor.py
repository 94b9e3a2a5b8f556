"""
Implementation details of the event queue and flush coordination.
"""

import queue
from collections import namedtuple
from concurrent.futures import Future
from threading import Event, Lock, Thread
from typing import Any, Callable, Dict, List, Optional

from rudderanalytics.config import Config
from rudderanalytics.impl.callback_dispatcher import CallbackDispatcher
from rudderanalytics.impl.events.batch_splitter import BatchSplitter
from rudderanalytics.impl.events.delivery import BatchSender
from rudderanalytics.impl.events.detached import DetachedFlushBridge
from rudderanalytics.impl.events.normalizer import MessageNormalizer
from rudderanalytics.impl.events.queue_store import EventQueue
from rudderanalytics.impl.events.types import (EventKind, FlushResponse,
                                               MessageCallback, QueueEntry,
                                               null_flush_response)
from rudderanalytics.impl.one_shot_timer import OneShotTimer
from rudderanalytics.impl.util import utc_now

FlushCallback = Callable[[List[FlushResponse]], Any]

EventProcessorMessage = namedtuple('EventProcessorMessage', ['type', 'param'])


class FlushRequest:
    """
    One caller of :meth:`DefaultEventProcessor.flush`. It is complete once the batch containing
    ``frontier``, the last entry queued when the caller asked, has been attempted.
    """
    __slots__ = ['frontier', 'future', 'callback']

    def __init__(self, frontier: QueueEntry, future: Future, callback: Optional[FlushCallback]):
        self.frontier = frontier
        self.future = future
        self.callback = callback


class DefaultEventProcessor:
    """
    Queues normalized messages and delivers them in batches.

    Only one request is ever in flight. Flushes requested while one is running do not start another
    transmission: they are folded into the running round, which keeps sending batches until every
    waiting caller's frontier has been covered. Messages queued after a caller's request are left for
    a later batch, so each caller's results cover exactly the messages queued up to its request.
    """

    def __init__(self, config: Config, http=None, sender: Optional[BatchSender] = None,
                 detached_bridge: Optional[DetachedFlushBridge] = None):
        self._config = config
        self._logger = config.logger
        self._lock = Lock()
        self._queue = EventQueue(config.max_queue_length, self._logger)
        self._normalizer = MessageNormalizer()
        self._splitter = BatchSplitter(config.max_flush_size_in_bytes, config.flush_at)
        self._sender = sender or BatchSender(config, http)
        self._detached = None  # type: Optional[DetachedFlushBridge]
        if config.flush_detached:
            self._detached = detached_bridge or DetachedFlushBridge(config)
        self._callbacks = CallbackDispatcher("rudderanalytics.callbacks", self._logger)
        self._inbox = queue.Queue()  # type: queue.Queue
        self._timer = None  # type: Optional[OneShotTimer]
        self._flushed = False
        self._flushing = False
        self._in_flight = []  # type: List[QueueEntry]
        self._requests = []  # type: List[FlushRequest]
        self._round_responses = []  # type: List[FlushResponse]
        self._closed = False

        self._main_thread = Thread(target=self._run_main_loop, name="rudderanalytics.flush")
        self._main_thread.daemon = True
        self._main_thread.start()

    def enqueue(self, kind: EventKind, message: Dict[str, Any], callback: Optional[MessageCallback] = None):
        if not self._config.enable:
            self._callbacks.dispatch(callback, None)
            return

        message = self._normalizer.normalize(kind, message)
        trigger_flush = False
        with self._lock:
            if self._closed:
                self._logger.warning('Client has been closed; dropping %s event' % message['type'])
                self._callbacks.dispatch(callback, None)
                return

            # callbacks cannot follow messages into a detached process
            entry = QueueEntry(message, None if self._detached is not None else callback)
            if not self._queue.add(entry):
                self._callbacks.dispatch(callback, None)
                return

            if self._detached is not None:
                self._logger.debug('Event is queued and will be flushed in a detached process')
                return

            if not self._flushed:
                self._flushed = True
                trigger_flush = True
            elif len(self._queue) % self._config.flush_at == 0:
                self._logger.debug('flushAt reached, messageQueueLength is %d, trying flush...' % len(self._queue))
                trigger_flush = True
            elif self._config.flush_interval and self._timer is None:
                self._logger.debug('no existing flush timer, creating new one')
                self._start_timer()

        if trigger_flush:
            self.flush()

    def flush(self, callback: Optional[FlushCallback] = None) -> Future:
        """
        Requests delivery of everything queued so far. The returned future resolves to the list of
        responses for the batches sent on this caller's behalf; ``callback``, if given, receives the
        same list.
        """
        future = Future()  # type: Future
        if self._detached is not None:
            self._flush_detached()
            self._callbacks.dispatch(self._complete, future, callback, [])
            return future

        with self._lock:
            self._cancel_timer()
            frontier = self._queue.last()
            if self._flushing:
                # an empty queue means the caller only needs the batch already on the wire
                self._requests.append(FlushRequest(frontier or self._in_flight[-1], future, callback))
                self._logger.debug('skipping flush, there is an in flight flush')
                return future
            if frontier is None:
                self._logger.debug('queue is empty, nothing to flush')
                self._callbacks.dispatch(self._complete, future, callback, [null_flush_response()])
                return future
            self._requests.append(FlushRequest(frontier, future, callback))
            self._flushing = True
            error = None
            try:
                batch = self._next_batch()
            except Exception as e:
                error = e

        if error is not None:
            self._logger.error('Unhandled exception in event processor, ending flush', exc_info=error)
            self._abort_round(error)
            return future
        self._inbox.put(EventProcessorMessage('flush', batch))
        return future

    def stop(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._cancel_timer()
        self.flush()
        # everything flushed above is processed before the stop message
        self._post_message_and_wait('stop')
        self._callbacks.wait()
        self._callbacks.stop()
        dropped = self._queue.get_and_clear_dropped_count()
        if dropped:
            self._logger.warning('%d events were dropped because the queue was full' % dropped)

    @property
    def queue_length(self) -> int:
        with self._lock:
            return len(self._queue)

    def _run_main_loop(self):
        self._logger.debug("Starting event processor")
        while True:
            try:
                message = self._inbox.get(block=True)
                if message.type == 'flush':
                    self._run_flush(message.param)
                elif message.type == 'test_sync':
                    message.param.set()
                elif message.type == 'stop':
                    self._sender.close()
                    message.param.set()
                    return
            except Exception:
                self._logger.error('Unhandled exception in event processor', exc_info=True)

    def _run_flush(self, batch: List[QueueEntry]):
        # noinspection PyBroadException
        try:
            self._deliver_round(batch)
        except Exception as e:
            self._logger.error('Unhandled exception in event processor, ending flush', exc_info=True)
            self._abort_round(e)

    def _deliver_round(self, batch: List[QueueEntry]):
        while batch:
            response = self._send(batch)
            for entry in batch:
                self._callbacks.dispatch(entry.callback, response.error)

            with self._lock:
                self._round_responses.append(response)
                responses = list(self._round_responses)
                sent = set(batch)
                pending = []
                for request in self._requests:
                    if request.frontier in sent:
                        self._callbacks.dispatch(self._complete, request.future, request.callback, responses)
                    else:
                        pending.append(request)
                self._requests = pending

                if pending and len(self._queue) > 0:
                    batch = self._next_batch()
                    continue

                for request in pending:
                    self._callbacks.dispatch(self._complete, request.future, request.callback, responses)
                self._logger.debug('resetting client flush state')
                self._requests = []
                self._round_responses = []
                self._in_flight = []
                self._flushing = False
                batch = None

    def _abort_round(self, error: Exception):
        with self._lock:
            responses = self._round_responses + [FlushResponse(error, {'batch': [], 'sentAt': utc_now()})]
            requests = self._requests
            self._requests = []
            self._round_responses = []
            self._in_flight = []
            self._flushing = False
        for request in requests:
            self._callbacks.dispatch(self._complete, request.future, request.callback, responses)

    def _send(self, batch: List[QueueEntry]) -> FlushResponse:
        messages = [entry.message for entry in batch]
        # noinspection PyBroadException
        try:
            return self._sender.send(messages)
        except Exception as e:
            self._logger.warning('Unhandled exception in event processor. Analytics events were not processed.', exc_info=True)
            return FlushResponse(e, {'batch': messages, 'sentAt': utc_now()})

    def _next_batch(self) -> List[QueueEntry]:
        # must hold self._lock
        self._cancel_timer()
        self._in_flight = self._splitter.take_batch(self._queue, {r.frontier for r in self._requests})
        return self._in_flight

    def _flush_detached(self):
        with self._lock:
            entries = self._queue.drain()
        if not entries:
            self._logger.debug('no events queued, skipping flush')
            return
        try:
            self._detached.hand_off([entry.message for entry in entries])
        except Exception as e:
            self._logger.error('Unable to start detached flush, dropping %d events: %s' % (len(entries), e))

    def _start_timer(self):
        # must hold self._lock
        timer = OneShotTimer("rudderanalytics.idle-flush", self._config.flush_interval, lambda: self._on_idle_timer(timer), self._logger)
        self._timer = timer
        timer.start()

    def _cancel_timer(self):
        # must hold self._lock
        if self._timer is not None:
            self._logger.debug('cancelling existing timer...')
            self._timer.cancel()
            self._timer = None

    def _on_idle_timer(self, timer: OneShotTimer):
        with self._lock:
            if timer is not self._timer:
                return
            self._timer = None
        self.flush()

    @staticmethod
    def _complete(future: Future, callback: Optional[FlushCallback], responses: List[FlushResponse]):
        if not future.done():
            future.set_result(responses)
        if callback is not None:
            callback(responses)

    # Used only in tests
    def _wait_until_inactive(self):
        self._post_message_and_wait('test_sync')
        self._callbacks.wait()

    def _post_message_and_wait(self, type):
        reply = Event()
        self._inbox.put(EventProcessorMessage(type, reply))
        reply.wait()

    # These magic methods allow use of the "with" block in tests
    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        self.stop()
