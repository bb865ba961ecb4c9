"""
In-process store and change channel.
Used by the demo, the CLI, and the tests. Both carry failure-injection
knobs so transport faults can be exercised without a real backend.
"""

import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Callable

from wheel_of_destiny.engine.errors import Conflict, SessionNotFound, TransportFailure
from wheel_of_destiny.engine.movelog import MoveLogEntry
from wheel_of_destiny.engine.state import GameSession
from wheel_of_destiny.sync.contracts import ChangeChannel, SnapshotHandler

logger = logging.getLogger(__name__)


class InMemoryChannel:
    """
    Fan-out of session snapshots to subscribers.
    Each delivery runs as its own task, so handlers may observe snapshots
    out of order.
    """

    def __init__(self):
        self._handlers: dict[str, list[SnapshotHandler]] = defaultdict(list)
        self._pending: set[asyncio.Task] = set()
        # Failure injection
        self.fail_publishes = 0
        self.published: list[GameSession] = []

    def subscribe(self, session_id: str, handler: SnapshotHandler) -> Callable[[], None]:
        self._handlers[session_id].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(session_id, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    async def publish(self, session: GameSession) -> None:
        if self.fail_publishes > 0:
            self.fail_publishes -= 1
            raise TransportFailure(f"Channel unavailable for session {session.id}")
        self.published.append(session.copy())
        for handler in list(self._handlers.get(session.id, [])):
            task = asyncio.create_task(_deliver(handler, session.copy()))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait until every delivery scheduled so far has run."""
        while self._pending:
            await asyncio.gather(*list(self._pending))


async def _deliver(handler: SnapshotHandler, session: GameSession) -> None:
    try:
        result = handler(session)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("Snapshot handler failed for session %s", session.id)


class InMemorySessionStore:
    """
    Dict-backed SessionStore with a versioned compare-and-set write.
    Every successful write is published to the channel, if one is attached.
    """

    def __init__(self, channel: ChangeChannel | None = None):
        self.channel = channel
        self._sessions: dict[str, GameSession] = {}
        self._moves: dict[str, list[MoveLogEntry]] = defaultdict(list)
        # Failure injection: each counter fails that many upcoming calls
        self.fail_reads = 0
        self.fail_writes = 0
        self.fail_appends = 0
        # Writes that are applied but whose acknowledgement is lost
        self.lose_write_acks = 0

    async def create_session(self, session: GameSession) -> GameSession:
        if session.id in self._sessions:
            raise ValueError(f"Session {session.id} already exists")
        stored = session.copy()
        self._sessions[stored.id] = stored
        await self._publish(stored)
        return stored.copy()

    async def read_session(self, session_id: str) -> GameSession:
        if self.fail_reads > 0:
            self.fail_reads -= 1
            raise TransportFailure(f"Store unavailable reading session {session_id}")
        stored = self._sessions.get(session_id)
        if stored is None:
            raise SessionNotFound(f"Session {session_id} not found")
        return stored.copy()

    async def write_session(self, session: GameSession) -> GameSession:
        if self.fail_writes > 0:
            self.fail_writes -= 1
            raise TransportFailure(f"Store unavailable writing session {session.id}")
        stored = self._sessions.get(session.id)
        if stored is None:
            raise SessionNotFound(f"Session {session.id} not found")
        if stored.version != session.version:
            raise Conflict(session.id, session.version, stored.version)

        new_stored = session.copy()
        new_stored.version = stored.version + 1
        self._sessions[session.id] = new_stored
        await self._publish(new_stored)

        if self.lose_write_acks > 0:
            self.lose_write_acks -= 1
            raise TransportFailure(f"Lost acknowledgement writing session {session.id}")
        return new_stored.copy()

    async def append_move(self, entry: MoveLogEntry) -> None:
        if self.fail_appends > 0:
            self.fail_appends -= 1
            raise TransportFailure(f"Store unavailable appending move for session {entry.session_id}")
        self._moves[entry.session_id].append(entry)

    async def list_moves(self, session_id: str) -> list[MoveLogEntry]:
        return list(self._moves.get(session_id, []))

    async def _publish(self, session: GameSession) -> None:
        if self.channel is None:
            return
        try:
            await self.channel.publish(session)
        except TransportFailure as e:
            # The write is durable; subscribers catch up on their next read
            logger.warning("Publish failed for session %s v%s: %s", session.id, session.version, e)
