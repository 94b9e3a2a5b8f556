import json
import logging
import time
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Optional


def current_time_millis() -> int:
    return int(time.time() * 1000)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """
    Formats a datetime the way the data plane expects it: ISO-8601 in UTC with millisecond
    precision and a ``Z`` suffix. Naive datetimes are assumed to already be in UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec='milliseconds') + 'Z'


log = logging.getLogger('rudderanalytics')

# 429 is the only 4xx status worth retrying; every 5xx is retried as well
_RETRYABLE_STATUSES = [429]


class MessageEncoder(json.JSONEncoder):
    """
    A JSON encoder for event messages. Callers commonly put datetimes, sets and decimals in
    message properties; those are converted, and anything else unknown is sent as its string form
    rather than failing the whole batch.
    """

    def __init__(self):
        super().__init__(separators=(',', ':'))

    def default(self, obj):
        if isinstance(obj, datetime):
            return format_timestamp(obj)
        if isinstance(obj, date):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, (set, frozenset)):
            return list(obj)
        return str(obj)


_encoder = MessageEncoder()


def to_json(value: Any) -> str:
    return _encoder.encode(value)


def is_http_error_recoverable(status: int) -> bool:
    if status >= 400 and status < 500:
        return status in _RETRYABLE_STATUSES  # all other 4xx besides these are unrecoverable
    return 500 <= status <= 599


def http_error_description(status: int, reason: Optional[str] = None) -> str:
    if reason:
        return "HTTP error %d (%s)" % (status, reason)
    return "HTTP error %d%s" % (status, " (invalid write key)" if (status == 401 or status == 403) else "")


def check_if_error_is_recoverable_and_log(logger: logging.Logger, error_context: str, status_code: Optional[int], error_desc: Optional[str], recoverable_message: str) -> bool:
    if status_code and (error_desc is None):
        error_desc = http_error_description(status_code)
    if status_code and not is_http_error_recoverable(status_code):
        logger.error("Error %s (giving up permanently): %s" % (error_context, error_desc))
        return False
    logger.warning("Error %s (%s): %s" % (error_context, recoverable_message, error_desc))
    return True


def stringify_attrs(attrdict: Optional[dict], attrs: Iterable[str]) -> Optional[dict]:
    if attrdict is None:
        return None
    newdict = None
    for attr in attrs:
        val = attrdict.get(attr)
        if val is not None and not isinstance(val, str):
            if newdict is None:
                newdict = attrdict.copy()
            newdict[attr] = str(val)
    return attrdict if newdict is None else newdict
