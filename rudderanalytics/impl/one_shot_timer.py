from threading import Event, Thread
from typing import Callable

from rudderanalytics.impl.util import log


class OneShotTimer:
    """
    Calls a callback once, on a worker thread, after a delay, unless it is cancelled first.
    """

    def __init__(self, label: str, delay: float, callable: Callable, logger=log):
        """
        Creates the timer, but does not start the worker thread yet.

        :param delay: time in seconds to wait before invoking the callback
        :param callable: the function to execute
        """
        self.__delay = delay
        self.__action = callable
        self.__logger = logger
        self.__cancelled = Event()
        self.__thread = Thread(target=self._run, name=f"{label}.timer")
        self.__thread.daemon = True

    def start(self):
        self.__thread.start()

    def cancel(self):
        """
        Prevents the callback from running if it has not started yet. It cannot be restarted after this.
        """
        self.__cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self.__cancelled.is_set()

    def _run(self):
        if self.__cancelled.wait(self.__delay):
            return
        try:
            self.__action()
        except Exception as e:
            self.__logger.exception("Unexpected exception on timer thread: %s" % e)
