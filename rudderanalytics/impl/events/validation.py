"""
Loose structural checks applied to a message before it is queued. Only the fields each event
type depends on are checked; anything else the caller sends passes through untouched.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from rudderanalytics.errors import MessageTooLargeError, ValidationError
from rudderanalytics.impl.events.types import EventKind
from rudderanalytics.impl.util import to_json

MAX_MESSAGE_SIZE = 32 * 1024

_STRING_FIELDS = ('event', 'name', 'category', 'groupId', 'previousId')
_MAPPING_FIELDS = ('context', 'properties', 'traits', 'integrations')
_DATE_FIELDS = ('timestamp', 'originalTimestamp')


def validate_message(message: Any, kind: EventKind):
    if not isinstance(message, Mapping):
        raise ValidationError('You must pass a message object.')

    if kind == EventKind.ALIAS:
        if not message.get('userId'):
            raise ValidationError('You must pass a "userId".')
        if not message.get('previousId'):
            raise ValidationError('You must pass a "previousId".')
    else:
        if not (message.get('userId') or message.get('anonymousId')):
            raise ValidationError('You must pass either an "anonymousId" or a "userId".')
        if kind == EventKind.TRACK and not message.get('event'):
            raise ValidationError('You must pass an "event".')
        if kind == EventKind.GROUP and not message.get('groupId'):
            raise ValidationError('You must pass a "groupId".')

    for field in _STRING_FIELDS:
        if message.get(field) is not None and not isinstance(message[field], str):
            raise ValidationError('"%s" must be a string.' % field)
    for field in _MAPPING_FIELDS:
        if message.get(field) is not None and not isinstance(message[field], Mapping):
            raise ValidationError('"%s" must be an object.' % field)
    for field in _DATE_FIELDS:
        if message.get(field) is not None and not isinstance(message[field], datetime):
            raise ValidationError('"%s" must be a datetime.' % field)

    if len(to_json(dict(message)).encode('utf-8')) >= MAX_MESSAGE_SIZE:
        raise MessageTooLargeError('Your message must be < 32kb.')
