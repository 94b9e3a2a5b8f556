from rudderanalytics.impl.events.queue_store import EventQueue
from rudderanalytics.impl.events.types import QueueEntry


def entry(i):
    return QueueEntry({'messageId': str(i)})


def test_add_and_take_in_order():
    queue = EventQueue(10)
    entries = [entry(i) for i in range(4)]
    for e in entries:
        assert queue.add(e) is True

    assert len(queue) == 4
    assert queue.last() is entries[-1]
    assert queue.take(3) == entries[:3]
    assert queue.peek() == entries[3:]


def test_drops_when_full(caplog):
    queue = EventQueue(3)
    for i in range(6):
        queue.add(entry(i))

    assert len(queue) == 3
    assert queue.get_and_clear_dropped_count() == 3
    assert queue.get_and_clear_dropped_count() == 0
    assert len([r for r in caplog.records if 'exceeds max configuration' in r.getMessage()]) == 1


def test_drain_empties_queue():
    queue = EventQueue(3)
    entries = [entry(i) for i in range(2)]
    for e in entries:
        queue.add(e)

    assert queue.drain() == entries
    assert len(queue) == 0
    assert queue.last() is None


def test_entry_without_callback_gets_noop():
    e = QueueEntry({'messageId': 'x'})
    assert e.callback(None) is None
