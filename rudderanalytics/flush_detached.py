"""
Entry point of the short-lived process started for a detached flush::

    python -m rudderanalytics.flush_detached <handoff-file>

It loads the handoff file written by the parent, deletes it, re-queues the messages on a fresh
client configured for immediate delivery and waits for that delivery to finish.
"""

import json
import os
import sys
from typing import List, Optional

from rudderanalytics.client import Analytics
from rudderanalytics.config import Config
from rudderanalytics.impl.events.types import EventKind
from rudderanalytics.impl.util import log


def run_handoff_file(path: str, http=None) -> int:
    try:
        with open(path, encoding='utf-8') as f:
            events = json.load(f)
    except (OSError, ValueError) as e:
        log.error('Unable to read events file %s: %s' % (path, e))
        return 1
    finally:
        try:
            os.remove(path)
        except OSError as e:
            log.debug('Unable to delete events file %s: %s' % (path, e))

    if not isinstance(events, dict):
        log.error('Events file %s does not hold an object' % path)
        return 1

    queue = events.get('queue') or []
    if not queue:
        return 0

    client = Analytics(config=Config.from_handoff_dict(events.get('config') or {}), http=http)
    try:
        for item in queue:
            message = item['message']
            # messages were validated and normalized by the parent, so the event methods are bypassed
            client._event_processor.enqueue(EventKind(message['type']), message)
        client.flush().result()
    finally:
        client.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args:
        log.error('No events file specified')
        return 1
    # the events file is always the last argument
    return run_handoff_file(args[-1])


if __name__ == '__main__':
    sys.exit(main())
