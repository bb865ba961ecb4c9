"""
Interfaces the sync layer depends on.
Any durable key-value store with a conditional write and any pub/sub
transport can sit behind them.
"""

from typing import Awaitable, Callable, Protocol

from wheel_of_destiny.engine.movelog import MoveLogEntry
from wheel_of_destiny.engine.state import GameSession

SnapshotHandler = Callable[[GameSession], Awaitable[None] | None]


class SessionStore(Protocol):
    """
    Authoritative session storage.

    write_session is a compare-and-set on version: it succeeds only when the
    stored version equals session.version, stores the session with the
    version bumped by one, and returns that stored copy. A mismatch raises
    Conflict; an unreachable backend raises TransportFailure.
    """

    async def create_session(self, session: GameSession) -> GameSession: ...

    async def read_session(self, session_id: str) -> GameSession: ...

    async def write_session(self, session: GameSession) -> GameSession: ...

    async def append_move(self, entry: MoveLogEntry) -> None: ...

    async def list_moves(self, session_id: str) -> list[MoveLogEntry]: ...


class ChangeChannel(Protocol):
    """
    At-least-once snapshot delivery per session.
    Ordering between deliveries is not guaranteed.
    """

    async def publish(self, session: GameSession) -> None: ...

    def subscribe(self, session_id: str, handler: SnapshotHandler) -> Callable[[], None]: ...
