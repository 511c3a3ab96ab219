"""Per-game registry of live map viewers and fan-out of live events.

A connection is anything with an ``id`` and a ``send(event, payload)``
method. Membership is one game per connection; joining another game moves
the connection. Events are echoed to the sender as well.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, List, Optional


class SocketConnection:
    """A Socket.IO client session addressed by its sid."""

    def __init__(self, socketio, sid: str, namespace: str = '/ws'):
        self.socketio = socketio
        self.id = sid
        self.namespace = namespace

    def send(self, event: str, payload: Any) -> None:
        self.socketio.emit(event, payload, to=self.id, namespace=self.namespace)

    def __repr__(self):
        return f"SocketConnection({self.id!r})"


class MapBroadcaster:
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._members: Dict[int, Dict[str, Any]] = {}
        self._game_of: Dict[str, int] = {}
        self._registry_lock = threading.Lock()
        self._game_locks: Dict[int, threading.Lock] = {}

    def _lock_for(self, game_id: int, create: bool = True) -> Optional[threading.Lock]:
        with self._registry_lock:
            lock = self._game_locks.get(game_id)
            if lock is None and create:
                lock = self._game_locks[game_id] = threading.Lock()
            return lock

    @contextmanager
    def _game_lock(self, game_id: int, create: bool = True):
        """Hold the game's lock; yields None if it has none and ``create`` is false.

        ``leave`` retires a game's lock once nobody is joined, so a waiter
        that wakes up holding a retired lock retries with the current one.
        """
        while True:
            lock = self._lock_for(game_id, create)
            if lock is None:
                yield None
                return
            lock.acquire()
            with self._registry_lock:
                current = self._game_locks.get(game_id) is lock
            if current:
                break
            lock.release()
        try:
            yield lock
        finally:
            lock.release()

    def join(self, game_id: int, connection) -> None:
        previous = self.game_of(connection)
        if previous is not None and previous != game_id:
            self.leave(connection)
        with self._game_lock(game_id):
            self._members.setdefault(game_id, {})[connection.id] = connection
            with self._registry_lock:
                self._game_of[connection.id] = game_id
        self.logger.info(f"[map-join] game={game_id} conn={connection.id}")

    def leave(self, connection) -> Optional[int]:
        """Drop the connection's membership; returns the game it had joined."""
        conn_id = getattr(connection, 'id', connection)
        with self._registry_lock:
            game_id = self._game_of.get(conn_id)
        if game_id is None:
            return None
        with self._game_lock(game_id):
            members = self._members.get(game_id, {})
            members.pop(conn_id, None)
            with self._registry_lock:
                self._game_of.pop(conn_id, None)
                if not members:
                    self._members.pop(game_id, None)
                    self._game_locks.pop(game_id, None)
        self.logger.info(f"[map-leave] game={game_id} conn={conn_id}")
        return game_id

    def game_of(self, connection) -> Optional[int]:
        conn_id = getattr(connection, 'id', connection)
        with self._registry_lock:
            return self._game_of.get(conn_id)

    def members(self, game_id: int) -> List[Any]:
        with self._game_lock(game_id, create=False) as lock:
            if lock is None:
                return []
            return list(self._members.get(game_id, {}).values())

    def broadcast(self, game_id: int, event: str, payload: Any) -> int:
        """Send to every connection joined to the game, sender included.

        Returns how many deliveries succeeded. Failures are logged and
        skipped. The per-game lock is held during fan-out so each
        connection sees one game's events in call order.
        """
        delivered = 0
        with self._game_lock(game_id, create=False) as lock:
            if lock is None:
                return 0
            targets = list(self._members.get(game_id, {}).values())
            for connection in targets:
                try:
                    connection.send(event, payload)
                    delivered += 1
                except Exception as exc:
                    self.logger.warning(f"[broadcast-drop] game={game_id} conn={connection.id} event={event}: {exc}")
        return delivered
