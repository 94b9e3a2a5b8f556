from random import Random
from typing import Optional


class RetryDelayStrategy:
    """Encapsulation of configurable backoff/jitter behavior, used for delivery retries.

    Each call to :meth:`next_retry_delay` counts as one more failed attempt. A strategy is meant to
    be used for the retries of a single request and then discarded; its methods are not safe
    for concurrent use.
    """
    def __init__(self, base_delay, backoff_strategy, jitter_strategy):
        self.__base_delay = base_delay
        self.__backoff = backoff_strategy
        self.__jitter = jitter_strategy
        self.__retry_count = 0

    def next_retry_delay(self):
        """Computes the delay, in seconds, to wait before the next retry."""
        delay = self.__base_delay
        if self.__backoff:
            delay = self.__backoff.apply_backoff(delay, self.__retry_count)
        self.__retry_count += 1
        if self.__jitter:
            delay = self.__jitter.apply_jitter(delay)
        return delay

    @property
    def retry_count(self):
        return self.__retry_count


class DefaultBackoffStrategy:
    """The default implementation of exponential backoff, which doubles the delay each time,
    optionally up to a specified maximum.
    """
    def __init__(self, max_delay: Optional[float] = None):
        self.__max_delay = max_delay

    def apply_backoff(self, delay, retry_count):
        d = delay * (2 ** retry_count)
        return d if self.__max_delay is None or d <= self.__max_delay else self.__max_delay


class DefaultJitterStrategy:
    """The default implementation of jitter, which adds a pseudo-random amount to each delay, so that
    many clients failing at once do not retry in lockstep.
    """
    def __init__(self, ratio, rand_seed=None):
        """Creates an instance.

        :param float ratio: a number in the range [0.0, 1.0] representing 0%-100% jitter
        :param int rand_seed: if not None, will use this random seed (for test determinacy)
        """
        self.__ratio = ratio
        self.__random = Random(rand_seed)

    def apply_jitter(self, delay):
        return delay + (self.__random.random() * self.__ratio * delay)
