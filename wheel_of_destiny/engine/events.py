"""
Game events for UI hooks and logging.
Events describe what happened during action processing.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class GameEvent:
    """Base event class. All events have a type and payload."""
    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameEvent":
        return cls(type=data["type"], payload=data["payload"])


# ===== Event Type Constants =====

# Wheel events
WHEEL_SPUN = "wheel_spun"
WENT_BANKRUPT = "went_bankrupt"

# Letter events
LETTER_REVEALED = "letter_revealed"
LETTER_MISSED = "letter_missed"
VOWEL_BOUGHT = "vowel_bought"

# Score events
ROUND_SCORE_CHANGED = "round_score_changed"

# Turn/phase events
TURN_PASSED = "turn_passed"
PHASE_CHANGED = "phase_changed"

# Solve events
SOLVE_FAILED = "solve_failed"
PUZZLE_SOLVED = "puzzle_solved"
ROUND_COMPLETED = "round_completed"


# ===== Event Factory Functions =====

def wheel_spun(seat: int, value: int | str) -> GameEvent:
    return GameEvent(WHEEL_SPUN, {"seat": seat, "value": value})


def went_bankrupt(seat: int, lost: int) -> GameEvent:
    return GameEvent(WENT_BANKRUPT, {"seat": seat, "lost": lost})


def letter_revealed(seat: int, letter: str, occurrences: int) -> GameEvent:
    return GameEvent(LETTER_REVEALED, {
        "seat": seat,
        "letter": letter,
        "occurrences": occurrences,
    })


def letter_missed(seat: int, letter: str) -> GameEvent:
    return GameEvent(LETTER_MISSED, {"seat": seat, "letter": letter})


def vowel_bought(seat: int, vowel: str, cost: int) -> GameEvent:
    return GameEvent(VOWEL_BOUGHT, {"seat": seat, "vowel": vowel, "cost": cost})


def round_score_changed(seat: int, old_value: int, new_value: int, reason: str) -> GameEvent:
    return GameEvent(ROUND_SCORE_CHANGED, {
        "seat": seat,
        "old_value": old_value,
        "new_value": new_value,
        "change": new_value - old_value,
        "reason": reason,  # "letter", "vowel", "bankrupt"
    })


def turn_passed(from_seat: int, to_seat: int, reason: str) -> GameEvent:
    return GameEvent(TURN_PASSED, {
        "from_seat": from_seat,
        "to_seat": to_seat,
        "reason": reason,  # "bankrupt", "lose_turn", "missed_letter", "missed_vowel", "wrong_solve"
    })


def phase_changed(old_phase: str, new_phase: str, seat: int) -> GameEvent:
    return GameEvent(PHASE_CHANGED, {
        "old_phase": old_phase,
        "new_phase": new_phase,
        "seat": seat,
    })


def solve_failed(seat: int, solution: str) -> GameEvent:
    return GameEvent(SOLVE_FAILED, {"seat": seat, "solution": solution})


def puzzle_solved(seat: int, phrase: str, by_reveal: bool = False) -> GameEvent:
    """by_reveal is True when the last hidden letter was revealed by a guess."""
    return GameEvent(PUZZLE_SOLVED, {
        "seat": seat,
        "phrase": phrase,
        "by_reveal": by_reveal,
    })


def round_completed(winner_seat: int, transferred: int, match_scores: dict[int, int]) -> GameEvent:
    return GameEvent(ROUND_COMPLETED, {
        "winner_seat": winner_seat,
        "transferred": transferred,
        "match_scores": match_scores,
    })
