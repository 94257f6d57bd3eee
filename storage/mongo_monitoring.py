"""pymongo command listener that feeds completed commands into the recorder."""

import logging
import threading
from typing import Any, Dict, Optional, Tuple

from pymongo import monitoring

logger = logging.getLogger(__name__)

# Commands whose first field names the target collection
MONITORED_COMMANDS = frozenset({
    'find', 'insert', 'update', 'delete', 'aggregate', 'count',
    'distinct', 'findAndModify', 'countDocuments',
})


def extract_query(command_name: str, command: Dict[str, Any]) -> Any:
    """Pull the filter (or pipeline) that identifies what the command asked for."""
    if command_name in ('find', 'count', 'countDocuments'):
        return command.get('filter', command.get('query', {}))
    if command_name == 'distinct':
        return {'key': command.get('key'), 'query': command.get('query', {})}
    if command_name == 'aggregate':
        return command.get('pipeline', [])
    if command_name == 'findAndModify':
        return command.get('query', {})
    if command_name == 'update':
        return [u.get('q', {}) for u in command.get('updates', [])]
    if command_name == 'delete':
        return [d.get('q', {}) for d in command.get('deletes', [])]
    if command_name == 'insert':
        return {'documents': len(command.get('documents', []))}
    return {}


class QueryStatsCommandListener(monitoring.CommandListener):
    """Records the duration of every completed monitored command, failed or not.

    Register it with ``MongoClient(event_listeners=[listener])`` or pass it
    to MongoStore.
    """

    def __init__(self, recorder):
        self.recorder = recorder
        self._pending: Dict[Tuple[Any, int], Tuple[str, str, Any]] = {}
        self._lock = threading.Lock()

    def _pending_key(self, event) -> Tuple[Any, int]:
        return (event.connection_id, event.request_id)

    def started(self, event: monitoring.CommandStartedEvent) -> None:
        if event.command_name not in MONITORED_COMMANDS:
            return
        collection = event.command.get(event.command_name)
        if not isinstance(collection, str):
            return
        query = extract_query(event.command_name, event.command)
        with self._lock:
            self._pending[self._pending_key(event)] = (collection, event.command_name, query)

    def succeeded(self, event: monitoring.CommandSucceededEvent) -> None:
        pending = self._pop(event)
        if pending is None:
            return
        collection, operation, query = pending
        self.recorder.record(collection, operation, query, event.duration_micros / 1000)

    def failed(self, event: monitoring.CommandFailedEvent) -> None:
        pending = self._pop(event)
        if pending is None:
            return
        collection, operation, query = pending
        logger.debug(f"Command {operation} on {collection} failed: {event.failure}")
        self.recorder.record(collection, operation, query, event.duration_micros / 1000)

    def _pop(self, event) -> Optional[Tuple[str, str, Any]]:
        with self._lock:
            return self._pending.pop(self._pending_key(event), None)
