from collections import namedtuple
from enum import Enum
from typing import Any, Callable, Dict, Optional

from rudderanalytics.impl.util import utc_now


class EventKind(str, Enum):
    IDENTIFY = 'identify'
    TRACK = 'track'
    PAGE = 'page'
    SCREEN = 'screen'
    GROUP = 'group'
    ALIAS = 'alias'


MessageCallback = Callable[[Optional[Exception]], Any]


def _noop_callback(error: Optional[Exception] = None):
    pass


class QueueEntry:
    """
    One pending message and the callback to invoke once the batch carrying it has been attempted.
    """
    __slots__ = ['message', 'callback']

    def __init__(self, message: Dict[str, Any], callback: Optional[MessageCallback] = None):
        self.message = message
        self.callback = callback or _noop_callback


# The outcome of one request: ``error`` is None on success, ``data`` is the payload that was posted
# ({'batch': [...], 'sentAt': datetime}).
FlushResponse = namedtuple('FlushResponse', ['error', 'data'])


def null_flush_response() -> FlushResponse:
    return FlushResponse(None, {'batch': [], 'sentAt': utc_now()})
