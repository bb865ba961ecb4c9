"""
SessionSync: one client's window onto a shared session.

Owns the read -> apply -> conditional write -> log cycle for local
actions, and keeps a local view current from change notifications.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from wheel_of_destiny.engine.actions import Action, Spin, with_spin_value
from wheel_of_destiny.engine.errors import Conflict, TransportFailure
from wheel_of_destiny.engine.events import GameEvent
from wheel_of_destiny.engine.movelog import MoveLogEntry, build_move_entry
from wheel_of_destiny.engine.queries import PlayerView, player_view
from wheel_of_destiny.engine.reducer import apply_action
from wheel_of_destiny.engine.scoring import RandomSpinner
from wheel_of_destiny.engine.state import GameSession, WheelValue
from wheel_of_destiny.sync.contracts import ChangeChannel, SessionStore

logger = logging.getLogger(__name__)

Listener = Callable[[GameSession], Any]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ActionResult:
    """Outcome of a submitted action."""
    session: GameSession
    events: list[GameEvent] = field(default_factory=list)
    move: MoveLogEntry | None = None
    # True when the action had already been applied by an earlier attempt
    duplicate: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "session": self.session.to_dict(),
            "events": [e.to_dict() for e in self.events],
            "move": self.move.to_dict() if self.move else None,
            "duplicate": self.duplicate,
        }


class SessionSync:
    """
    Keeps a local view of one session and submits actions against the store.

    Retrying an action after TransportFailure is safe: if the first attempt
    was in fact applied, the retry is recognised by its action_id and
    returns the stored session without applying anything twice.
    """

    def __init__(
        self,
        store: SessionStore,
        channel: ChangeChannel,
        session_id: str,
        spinner: Callable[[], WheelValue] | None = None,
        clock: Callable[[], datetime] | None = None,
        pending_moves: dict[str, MoveLogEntry] | None = None,
    ):
        self.store = store
        self.channel = channel
        self.session_id = session_id
        self.spinner = spinner or RandomSpinner()
        self.clock = clock or _utcnow
        self._view: GameSession | None = None
        self._listeners: list[Listener] = []
        self._unsubscribe: Callable[[], None] | None = None
        # Move entries built but not yet acknowledged by the store, by action_id.
        # Pass a shared dict when several short-lived syncs serve the same clients.
        self._unlogged: dict[str, MoveLogEntry] = {} if pending_moves is None else pending_moves
        self._lock = asyncio.Lock()

    @property
    def view(self) -> GameSession | None:
        return self._view

    @property
    def pending_moves(self) -> list[MoveLogEntry]:
        """Applied moves whose log append has not been acknowledged yet."""
        return [m for m in self._unlogged.values() if m.session_id == self.session_id]

    def player_view(self, seat: int) -> PlayerView | None:
        if self._view is None:
            return None
        return player_view(self._view, seat)

    async def start(self) -> GameSession:
        """Load the session and start following its changes."""
        session = await self.store.read_session(self.session_id)
        if self._unsubscribe is None:
            self._unsubscribe = self.channel.subscribe(self.session_id, self._on_snapshot)
        await self._adopt(session)
        return self._view

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def refresh(self) -> GameSession:
        """Re-read the session from the store."""
        session = await self.store.read_session(self.session_id)
        await self._adopt(session)
        return self._view

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Call listener with every new view. Returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def submit(self, action: Action) -> ActionResult:
        """
        Apply an action to the shared session.

        Raises:
            IllegalAction / InsufficientFunds: rejected, nothing written
            Conflict: the view was outdated or someone else wrote first;
                the view has been refreshed, decide again
            TransportFailure: not acknowledged; retry with the same action
                (its action_id is carried on the error)
        """
        async with self._lock:
            try:
                return await self._submit(action)
            except TransportFailure as e:
                e.action_id = action.action_id
                raise

    async def _submit(self, action: Action) -> ActionResult:
        current = await self.store.read_session(self.session_id)

        if action.action_id in current.recent_action_ids:
            logger.info("Action %s already applied to session %s", action.action_id, self.session_id)
            await self._adopt(current)
            move = await self._flush_move(action.action_id)
            return ActionResult(session=current, move=move, duplicate=True)

        base_version = self._view.version if self._view is not None else current.version
        if current.version != base_version:
            # The action was chosen against an outdated view
            logger.info(
                "Stale view of session %s (v%s, store has v%s)", self.session_id, base_version, current.version
            )
            await self._adopt(current)
            raise Conflict(self.session_id, base_version, current.version)

        if isinstance(action, Spin) and action.value is None:
            action = with_spin_value(action, self.spinner())

        new_session, events = apply_action(current, action)
        entry = build_move_entry(self.session_id, action, events, timestamp=self.clock())
        self._unlogged[action.action_id] = entry

        try:
            stored = await self.store.write_session(new_session)
        except Conflict as e:
            self._unlogged.pop(action.action_id, None)
            logger.info("Conflict submitting %s: %s", action.move_type, e)
            await self._refresh_after_conflict()
            raise
        except TransportFailure:
            logger.warning(
                "Write of %s for session %s not acknowledged", action.move_type, self.session_id
            )
            raise

        logger.debug(
            "Session %s v%s: %s by %s", self.session_id, stored.version, action.move_type, action.actor_id
        )
        await self._adopt(stored)
        move = await self._flush_move(action.action_id)
        return ActionResult(session=stored, events=events, move=move)

    async def _flush_move(self, action_id: str) -> MoveLogEntry | None:
        """Append the pending move for action_id, if any. Raises TransportFailure if the append fails."""
        entry = self._unlogged.get(action_id)
        if entry is None:
            return None
        try:
            await self.store.append_move(entry)
        except TransportFailure:
            logger.warning("Move log append failed for action %s; will retry with the action", action_id)
            raise
        del self._unlogged[action_id]
        return entry

    async def _refresh_after_conflict(self) -> None:
        try:
            await self.refresh()
        except TransportFailure as e:
            logger.warning("Refresh after conflict failed for session %s: %s", self.session_id, e)

    async def _on_snapshot(self, session: GameSession) -> None:
        await self._adopt(session)

    async def _adopt(self, session: GameSession) -> None:
        """Replace the view wholesale unless the snapshot is older than what we have."""
        if self._view is not None:
            if session.version < self._view.version:
                logger.debug(
                    "Ignoring stale snapshot v%s of session %s (have v%s)",
                    session.version, self.session_id, self._view.version,
                )
                return
            if session.version == self._view.version:
                # Redelivery of a snapshot we already hold
                return
        self._view = session
        for listener in list(self._listeners):
            result = listener(session)
            if inspect.isawaitable(result):
                await result
