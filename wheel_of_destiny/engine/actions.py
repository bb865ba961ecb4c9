"""
Action definitions for the game.
Actions are immutable, deterministic instructions. The set of action types
is closed: Action is a union of the four dataclasses below and the reducer
matches on it exhaustively.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any

from wheel_of_destiny.engine.errors import IllegalAction
from wheel_of_destiny.engine.state import BANKRUPT, LOSE_TURN, WheelValue

# Move types as recorded in the move log
SPIN = "spin"
GUESS_LETTER = "guess_letter"
BUY_VOWEL = "buy_vowel"
SOLVE_PUZZLE = "solve_puzzle"


def _new_action_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Spin:
    """Spin the wheel. value is filled in from the spin source before reducing."""
    actor_id: str
    value: WheelValue | None = None
    action_id: str = field(default_factory=_new_action_id)

    move_type = SPIN

    def payload(self) -> dict[str, Any]:
        return {"value": self.value}


@dataclass(frozen=True)
class GuessLetter:
    """Call a letter against the pending wheel value."""
    actor_id: str
    letter: str
    action_id: str = field(default_factory=_new_action_id)

    move_type = GUESS_LETTER

    def payload(self) -> dict[str, Any]:
        return {"letter": self.letter}


@dataclass(frozen=True)
class BuyVowel:
    """Buy a vowel for the fixed vowel cost."""
    actor_id: str
    vowel: str
    action_id: str = field(default_factory=_new_action_id)

    move_type = BUY_VOWEL

    def payload(self) -> dict[str, Any]:
        return {"vowel": self.vowel}


@dataclass(frozen=True)
class SolvePuzzle:
    """Attempt to solve the whole phrase."""
    actor_id: str
    solution: str
    action_id: str = field(default_factory=_new_action_id)

    move_type = SOLVE_PUZZLE

    def payload(self) -> dict[str, Any]:
        return {"solution": self.solution}


Action = Spin | GuessLetter | BuyVowel | SolvePuzzle


def spin(actor_id: str, value: WheelValue | None = None, action_id: str | None = None) -> Spin:
    """
    Spin the wheel.
    Leave value as None to have the sync layer draw it from its spinner;
    pass a value to replay a recorded spin.
    Example: spin("alice", 500)
    """
    if action_id:
        return Spin(actor_id=actor_id, value=value, action_id=action_id)
    return Spin(actor_id=actor_id, value=value)


def guess_letter(actor_id: str, letter: str, action_id: str | None = None) -> GuessLetter:
    """
    Guess a letter. Example: guess_letter("alice", "R")
    """
    letter = (letter or "").strip().upper()
    if action_id:
        return GuessLetter(actor_id=actor_id, letter=letter, action_id=action_id)
    return GuessLetter(actor_id=actor_id, letter=letter)


def buy_vowel(actor_id: str, vowel: str, action_id: str | None = None) -> BuyVowel:
    """
    Buy a vowel. Example: buy_vowel("alice", "E")
    """
    vowel = (vowel or "").strip().upper()
    if action_id:
        return BuyVowel(actor_id=actor_id, vowel=vowel, action_id=action_id)
    return BuyVowel(actor_id=actor_id, vowel=vowel)


def solve_puzzle(actor_id: str, solution: str, action_id: str | None = None) -> SolvePuzzle:
    """
    Attempt a solve. Example: solve_puzzle("alice", "GREAT ZIMBABWE")
    """
    if action_id:
        return SolvePuzzle(actor_id=actor_id, solution=solution or "", action_id=action_id)
    return SolvePuzzle(actor_id=actor_id, solution=solution or "")


def with_spin_value(action: Spin, value: WheelValue) -> Spin:
    """Return the same spin (same action_id) with its outcome filled in."""
    return Spin(actor_id=action.actor_id, value=value, action_id=action.action_id)


def action_from_move(move_type: str, actor_id: str, move_data: dict[str, Any], action_id: str | None = None) -> Action:
    """Rebuild an action from a move log record (used for replay and the API)."""
    data = move_data if isinstance(move_data, dict) else {}
    if move_type == SPIN:
        value = data.get("value")
        if value not in (BANKRUPT, LOSE_TURN, None):
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise IllegalAction(f"Invalid spin value: {value!r}")
        return spin(actor_id, value, action_id)
    if move_type == GUESS_LETTER:
        return guess_letter(actor_id, str(data.get("letter") or ""), action_id)
    if move_type == BUY_VOWEL:
        return buy_vowel(actor_id, str(data.get("vowel") or ""), action_id)
    if move_type == SOLVE_PUZZLE:
        return solve_puzzle(actor_id, str(data.get("solution") or ""), action_id)
    raise IllegalAction(f"Unknown move type: {move_type}")
