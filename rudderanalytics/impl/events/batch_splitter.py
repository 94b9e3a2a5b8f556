from typing import Collection, List, Optional

from rudderanalytics.impl.events.queue_store import EventQueue
from rudderanalytics.impl.events.types import QueueEntry
from rudderanalytics.impl.util import to_json, utc_now

# `,"sentAt":"<timestamp>"`, the field a message gains when it is batched
_SENT_AT_SIZE = len(to_json({'sentAt': utc_now()})) - 1


def serialized_size(entry: QueueEntry) -> int:
    """
    The number of bytes an entry adds to the posted `batch` list: the message as it will be sent,
    including its `sentAt` field, plus one byte for the separating comma or closing bracket.
    """
    size = len(to_json(entry.message).encode('utf-8')) + 1
    if isinstance(entry.message, dict) and 'sentAt' not in entry.message:
        size += _SENT_AT_SIZE
    return size


class BatchSplitter:
    """
    Decides how much of the head of the queue goes into the next request.

    A batch ends before the entry that would push its serialized size past ``max_bytes``, after
    ``max_count`` entries, or right after any entry listed in ``stop_after``, whichever comes first.
    An entry that is larger than ``max_bytes`` on its own is still sent, alone.
    """

    def __init__(self, max_bytes: int, max_count: Optional[int] = None):
        self._max_bytes = max_bytes
        self._max_count = max_count

    def batch_length(self, entries: List[QueueEntry], stop_after: Collection[QueueEntry] = ()) -> int:
        size = 1  # opening bracket of the list
        count = 0
        for entry in entries:
            entry_size = serialized_size(entry)
            if count > 0 and size + entry_size > self._max_bytes:
                break
            size += entry_size
            count += 1
            if entry in stop_after:
                break
            if self._max_count is not None and count >= self._max_count:
                break
        return count

    def take_batch(self, queue: EventQueue, stop_after: Collection[QueueEntry] = ()) -> List[QueueEntry]:
        """
        Removes the next batch from the queue and stamps each of its messages with ``sentAt``.
        """
        batch = queue.take(self.batch_length(queue.peek(), stop_after))
        sent_at = utc_now()
        for entry in batch:
            if isinstance(entry.message, dict):
                entry.message['sentAt'] = sent_at
        return batch
