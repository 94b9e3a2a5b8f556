import queue
from threading import Thread
from typing import Callable

from rudderanalytics.impl.util import log

_STOP = object()


class CallbackDispatcher:
    """
    Runs application callbacks on a single worker thread, in the order they were dispatched, so
    that they never execute while the client holds its internal lock and can never break delivery
    by raising.

    Once stopped, callbacks are run directly on the dispatching thread.
    """

    def __init__(self, name: str, logger=log):
        self._logger = logger
        self._jobs = queue.Queue()
        self._stopped = False
        self._thread = Thread(target=self._run_worker, name=name)
        self._thread.daemon = True
        self._thread.start()

    def dispatch(self, fn: Callable, *args):
        if fn is None:
            return
        if self._stopped:
            self._invoke(fn, args)
            return
        self._jobs.put((fn, args))

    def wait(self):
        """
        Waits until every callback dispatched so far has run.
        """
        self._jobs.join()

    def stop(self):
        """
        Tells the worker thread to terminate once the callbacks already dispatched have run.
        """
        self._stopped = True
        self._jobs.put(_STOP)

    def _invoke(self, fn: Callable, args):
        try:
            fn(*args)
        except Exception:
            self._logger.warning('Unhandled exception in callback', exc_info=True)

    def _run_worker(self):
        while True:
            item = self._jobs.get(block=True)
            try:
                if item is _STOP:
                    return
                fn, args = item
                self._invoke(fn, args)
            finally:
                self._jobs.task_done()
