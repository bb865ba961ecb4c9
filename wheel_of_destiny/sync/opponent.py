"""
Drives a ComputerPlayer through a SessionSync.
The computer acts through the same submit path as a human client.
"""

import asyncio
import logging

from wheel_of_destiny.engine.actions import Action
from wheel_of_destiny.engine.computer import ComputerPlayer
from wheel_of_destiny.engine.errors import Conflict, IllegalAction, InsufficientFunds, TransportFailure
from wheel_of_destiny.engine.state import GameSession
from wheel_of_destiny.sync.session_sync import ActionResult, SessionSync

logger = logging.getLogger(__name__)


def _default_thinking_scale() -> float:
    from wheel_of_destiny.config import COMPUTER_THINKING_SCALE
    return COMPUTER_THINKING_SCALE


class ComputerOpponent:
    """
    Plays the computer's seat until the turn passes or the round ends.

    Conflicts refresh and continue. A transport failure resubmits the same
    action (same action_id) with backoff, so a move that was committed but
    not logged is coalesced and its log entry flushed. When the retries run
    out while the computer still holds the turn, the opponent is marked
    stalled and the stall is logged; play_turn() may be called again later.
    A rejected action means the policy is wrong, so it is logged as an
    error and the turn stops; it is never surfaced as a player error.
    """

    def __init__(
        self,
        sync: SessionSync,
        player: ComputerPlayer,
        seat: int = 2,
        thinking_scale: float | None = None,
        max_attempts: int = 200,
        transport_retries: int = 3,
        retry_delay: float = 0.5,
    ):
        self.sync = sync
        self.player = player
        self.seat = seat
        self.thinking_scale = _default_thinking_scale() if thinking_scale is None else thinking_scale
        self.max_attempts = max_attempts
        self.transport_retries = transport_retries
        self.retry_delay = retry_delay
        # Set when a turn was abandoned with the computer still to move
        self.stalled = False
        self._playing = False
        self._task: asyncio.Task | None = None
        self._remove_listener = None

    def holds_turn(self, session: GameSession | None) -> bool:
        return session is not None and not session.is_over and session.current_player == self.seat

    async def play_turn(self) -> int:
        """Act until the turn is no longer ours. Returns the number of actions applied."""
        if self._playing:
            return 0
        self._playing = True
        self.stalled = False
        applied = 0
        try:
            for _ in range(self.max_attempts):
                if not self.holds_turn(self.sync.view):
                    break

                delay = self.player.thinking_time() * self.thinking_scale
                if delay > 0:
                    await asyncio.sleep(delay)

                view = self.sync.player_view(self.seat)
                action = self.player.decide(view)
                if action is None:
                    break
                logger.debug("%s decides %s %s", self.player.name, action.move_type, action.payload())

                try:
                    await self._submit(action)
                except Conflict:
                    logger.info("%s lost a race on session %s; retrying", self.player.name, self.sync.session_id)
                    continue
                except TransportFailure as e:
                    logger.warning("%s stopped: %s", self.player.name, e)
                    break
                except (IllegalAction, InsufficientFunds) as e:
                    logger.error("%s chose a rejected action %r: %s", self.player.name, action, e)
                    break
                applied += 1
        finally:
            self._playing = False

        if self.holds_turn(self.sync.view) or self.sync.pending_moves:
            self.stalled = True
            logger.error(
                "%s is stalled on session %s (v%s, %d unlogged moves)",
                self.player.name, self.sync.session_id,
                self.sync.view.version if self.sync.view else None, len(self.sync.pending_moves),
            )
        return applied

    async def _submit(self, action: Action) -> ActionResult:
        """Submit, resubmitting the same action after transport failures."""
        attempt = 0
        while True:
            try:
                return await self.sync.submit(action)
            except TransportFailure as e:
                if attempt >= self.transport_retries:
                    raise
                delay = self.retry_delay * (2 ** attempt)
                logger.info(
                    "%s resubmitting %s %s in %.2fs: %s",
                    self.player.name, action.move_type, action.action_id, delay, e,
                )
                if delay > 0:
                    await asyncio.sleep(delay)
                attempt += 1

    def attach(self) -> None:
        """Start playing automatically whenever a new view hands us the turn."""
        if self._remove_listener is None:
            self._remove_listener = self.sync.add_listener(self._on_change)

    def detach(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None

    async def wait_idle(self) -> None:
        """Wait for any automatically scheduled turn to finish."""
        while self._task is not None and not self._task.done():
            await self._task

    def _on_change(self, session: GameSession) -> None:
        if self._playing or not self.holds_turn(session):
            return
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self.play_turn())
