from typing import List, Optional

from rudderanalytics.impl.events.types import QueueEntry
from rudderanalytics.impl.util import log


class EventQueue:
    """
    The ordered list of messages waiting to be sent. It is not thread-safe; the event processor
    guards it with its own lock.
    """

    def __init__(self, capacity: int, logger=log):
        self._capacity = capacity
        self._logger = logger
        self._entries = []  # type: List[QueueEntry]
        self._exceeded_capacity = False
        self._dropped_events = 0

    def __len__(self):
        return len(self._entries)

    def is_full(self) -> bool:
        return len(self._entries) >= self._capacity

    def add(self, entry: QueueEntry) -> bool:
        """
        Appends an entry, unless the queue is at capacity, in which case the entry is dropped and
        False is returned.
        """
        if self.is_full():
            self._dropped_events += 1
            if not self._exceeded_capacity:
                self._logger.error("Not adding events for processing as queue size %d exceeds max configuration %d" % (len(self._entries), self._capacity))
                self._exceeded_capacity = True
            else:
                self._logger.debug("Queue is still full, dropped an event")
            return False
        self._entries.append(entry)
        self._exceeded_capacity = False
        return True

    def last(self) -> Optional[QueueEntry]:
        return self._entries[-1] if self._entries else None

    def peek(self) -> List[QueueEntry]:
        """Returns a snapshot of the pending entries, oldest first."""
        return list(self._entries)

    def take(self, count: int) -> List[QueueEntry]:
        """Removes and returns the ``count`` oldest entries."""
        taken = self._entries[:count]
        del self._entries[:count]
        return taken

    def drain(self) -> List[QueueEntry]:
        taken = self._entries
        self._entries = []
        return taken

    def get_and_clear_dropped_count(self) -> int:
        dropped_count = self._dropped_events
        self._dropped_events = 0
        return dropped_count
