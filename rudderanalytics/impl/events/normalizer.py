"""
Turns the message a caller passed to one of the event methods into the shape the data plane
expects.
"""

import platform
from hashlib import md5
from typing import Any, Dict
from uuid import uuid4

from rudderanalytics.impl.events.types import EventKind
from rudderanalytics.impl.util import stringify_attrs, to_json, utc_now
from rudderanalytics.version import VERSION

LIBRARY_NAME = 'rudder-analytics-python'

IDENTITY_ATTRS = ('userId', 'anonymousId')


def make_message_id(message: Dict[str, Any]) -> str:
    # The content hash adds entropy on top of the uuid; ids keep the "node-" prefix the data
    # plane already recognizes.
    digest = md5(to_json(message).encode('utf-8')).hexdigest()
    return 'node-%s-%s' % (digest, uuid4())


class MessageNormalizer:
    def __init__(self):
        self._library = {'name': LIBRARY_NAME, 'version': VERSION}
        self._metadata = {'pythonVersion': platform.python_version()}

    def normalize(self, kind: EventKind, message: Dict[str, Any]) -> Dict[str, Any]:
        """
        Returns a new message; the caller's dict is never modified. Library information and runtime
        metadata are merged in shallowly, with the caller's values taking precedence.
        """
        out = stringify_attrs(dict(message), IDENTITY_ATTRS)
        out['type'] = EventKind(kind).value

        context = dict(out.get('context') or {})
        if kind == EventKind.IDENTIFY and out.get('traits') is not None:
            context['traits'] = out['traits']
        out['context'] = {'library': dict(self._library), **context}
        out['_metadata'] = {**self._metadata, **(out.get('_metadata') or {})}

        if not out.get('originalTimestamp'):
            out['originalTimestamp'] = utc_now()

        if not out.get('messageId'):
            out['messageId'] = make_message_id(out)

        return out
