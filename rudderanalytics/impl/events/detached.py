"""
Hands queued messages to a separate process that delivers them, so the current process does not
have to wait. The child side lives in :mod:`rudderanalytics.flush_detached`.
"""

import json
import os
import subprocess
import sys
import tempfile
from typing import Any, Dict, List

from rudderanalytics.config import Config
from rudderanalytics.impl.util import MessageEncoder, current_time_millis

HANDOFF_FILE_PREFIX = 'rudder-analytics-python-events-'
CHILD_MODULE = 'rudderanalytics.flush_detached'


def write_handoff_file(messages: List[Dict[str, Any]], config: Config) -> str:
    """
    Writes ``{queue: [{message}], config}`` to a new file in the temp directory and returns its path.
    """
    document = {
        'queue': [{'message': m} for m in messages],
        'config': config.to_handoff_dict(),
    }
    fd, path = tempfile.mkstemp(prefix='%s%d-' % (HANDOFF_FILE_PREFIX, current_time_millis()), suffix='.json')
    with os.fdopen(fd, 'w', encoding='utf-8') as f:
        json.dump(document, f, cls=MessageEncoder)
    return path


def spawn_detached_flush(path: str) -> subprocess.Popen:
    kwargs = {
        'stdin': subprocess.DEVNULL,
        'stdout': subprocess.DEVNULL,
        'stderr': subprocess.DEVNULL,
        'close_fds': True,
    }
    if os.name == 'nt':
        kwargs['creationflags'] = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs['start_new_session'] = True
    return subprocess.Popen([sys.executable, '-m', CHILD_MODULE, path], **kwargs)


class DetachedFlushBridge:
    def __init__(self, config: Config, spawn=spawn_detached_flush):
        self._config = config
        self._logger = config.logger
        self._spawn = spawn

    def hand_off(self, messages: List[Dict[str, Any]]):
        """
        Serializes the messages and starts the child process, without waiting for it.
        """
        path = write_handoff_file(messages, self._config)
        self._logger.debug('Wrote %d events to %s, starting detached flush' % (len(messages), path))
        try:
            self._spawn(path)
        except Exception:
            os.remove(path)
            raise
