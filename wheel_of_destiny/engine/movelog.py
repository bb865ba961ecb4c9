"""
Move log: an append-only audit record of every applied action.
Entries are never mutated and the engine never reads them back to decide
anything; they exist for audit and replay.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from wheel_of_destiny.engine.events import (
    LETTER_MISSED,
    LETTER_REVEALED,
    PUZZLE_SOLVED,
    ROUND_COMPLETED,
    ROUND_SCORE_CHANGED,
    TURN_PASSED,
    GameEvent,
)

if TYPE_CHECKING:
    from wheel_of_destiny.engine.actions import Action


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MoveLogEntry:
    """One applied action."""
    session_id: str
    actor_id: str
    move_type: str  # "spin", "guess_letter", "buy_vowel", "solve_puzzle"
    move_data: dict[str, Any]
    points_earned: int
    timestamp: datetime = field(default_factory=_utcnow)
    action_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "actor_id": self.actor_id,
            "move_type": self.move_type,
            "move_data": self.move_data,
            "points_earned": self.points_earned,
            "timestamp": self.timestamp.isoformat(),
            "action_id": self.action_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MoveLogEntry":
        if not isinstance(data, dict):
            data = {}
        ts = data.get("timestamp")
        if isinstance(ts, str):
            try:
                timestamp = datetime.fromisoformat(ts)
            except ValueError:
                timestamp = _utcnow()
        elif isinstance(ts, datetime):
            timestamp = ts
        else:
            timestamp = _utcnow()
        try:
            points = int(data.get("points_earned") or 0)
        except (TypeError, ValueError):
            points = 0
        move_data = data.get("move_data")
        return cls(
            session_id=str(data.get("session_id") or ""),
            actor_id=str(data.get("actor_id") or ""),
            move_type=str(data.get("move_type") or ""),
            move_data=dict(move_data) if isinstance(move_data, dict) else {},
            points_earned=points,
            timestamp=timestamp,
            action_id=data.get("action_id"),
        )


def points_from_events(events: list[GameEvent]) -> int:
    """
    Net change to the actor's round score.
    """
    points = 0
    for event in events:
        if event.type == ROUND_SCORE_CHANGED:
            points += event.payload["change"]
    return points


def build_move_entry(
    session_id: str,
    action: "Action",
    events: list[GameEvent],
    timestamp: datetime | None = None,
) -> MoveLogEntry:
    """Describe an applied action and its outcome for the log."""
    move_data = dict(action.payload())
    for event in events:
        if event.type == LETTER_REVEALED:
            move_data["is_correct"] = True
            move_data["letter_count"] = event.payload["occurrences"]
        elif event.type == LETTER_MISSED:
            move_data["is_correct"] = False
            move_data["letter_count"] = 0
        elif event.type == PUZZLE_SOLVED:
            move_data["solved"] = True
        elif event.type == TURN_PASSED:
            move_data["turn_passed"] = event.payload["reason"]
        elif event.type == ROUND_COMPLETED:
            move_data["banked"] = event.payload["transferred"]
    points = points_from_events(events)
    if action.move_type == "solve_puzzle":
        move_data.setdefault("solved", False)
        move_data["is_correct"] = move_data["solved"]
        # A solve earns what it banks
        points = move_data.get("banked", 0)

    return MoveLogEntry(
        session_id=session_id,
        actor_id=action.actor_id,
        move_type=action.move_type,
        move_data=move_data,
        points_earned=points,
        timestamp=timestamp or _utcnow(),
        action_id=action.action_id,
    )
