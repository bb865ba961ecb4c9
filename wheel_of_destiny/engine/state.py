"""
Game session representation.
The reducer never mutates a session in place; it works on copies.
Includes JSON serialization for the store and the API.
"""

import json
import re
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any

from wheel_of_destiny.engine import COMPUTER_PLAYER_ID

NON_LETTERS = re.compile(r"[^A-Z]")

# Wheel sentinels
BANKRUPT = "BANKRUPT"
LOSE_TURN = "LOSE_TURN"

WheelValue = int | str

GAME_MODES = ("single", "multiplayer")
GAME_PHASES = ("spinning", "guessing", "round_end")
SESSION_STATUSES = ("in_progress", "round_complete")
DIFFICULTIES = ("easy", "medium", "hard")


def normalize_phrase(text: str) -> str:
    """Upper-case and strip everything that is not A-Z."""
    return NON_LETTERS.sub("", (text or "").upper())


def _int(v: Any, default: int) -> int:
    try:
        return int(v) if v is not None else default
    except (TypeError, ValueError):
        return default


def _seat(v: Any) -> int:
    return 2 if _int(v, 1) == 2 else 1


def _letter_set(value: Any) -> set[str]:
    if not isinstance(value, (list, tuple, set)):
        return set()
    return {str(x).upper() for x in value if isinstance(x, str) and len(x) == 1}


def _wheel_value(value: Any) -> WheelValue:
    if value in (BANKRUPT, LOSE_TURN):
        return value
    return _int(value, 0)


@dataclass(frozen=True)
class Puzzle:
    """A phrase to reveal. Immutable once assigned to a session."""
    phrase: str
    category: str
    hint: str | None = None
    difficulty: int = 1
    id: str | None = None

    @property
    def normalized(self) -> str:
        return normalize_phrase(self.phrase)

    def letters(self) -> set[str]:
        return set(self.normalized)

    def occurrences(self, letter: str) -> int:
        return self.normalized.count(letter.upper())

    def matches(self, solution: str) -> bool:
        return bool(self.normalized) and normalize_phrase(solution) == self.normalized

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "phrase": self.phrase,
            "category": self.category,
            "hint": self.hint,
            "difficulty": self.difficulty,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Puzzle":
        if not isinstance(data, dict):
            data = {}
        return cls(
            phrase=str(data.get("phrase") or "").upper(),
            category=str(data.get("category") or ""),
            hint=data.get("hint") if isinstance(data.get("hint"), str) else None,
            difficulty=_int(data.get("difficulty"), 1),
            id=str(data["id"]) if data.get("id") is not None else None,
        )


@dataclass
class GameState:
    """Volatile per-round cursor embedded in a GameSession."""
    revealed_letters: set[str] = field(default_factory=set)
    # Every letter attempted this round (always a superset of revealed_letters)
    guessed_letters: set[str] = field(default_factory=set)
    # Last spin result; 0 when nothing is pending
    wheel_value: WheelValue = 0
    is_spinning: bool = False
    current_player_turn: int = 1
    game_phase: str = "spinning"  # "spinning", "guessing", "round_end"
    puzzle_solved: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "revealed_letters": sorted(self.revealed_letters),
            "guessed_letters": sorted(self.guessed_letters),
            "wheel_value": self.wheel_value,
            "is_spinning": self.is_spinning,
            "current_player_turn": self.current_player_turn,
            "game_phase": self.game_phase,
            "puzzle_solved": self.puzzle_solved,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameState":
        if not isinstance(data, dict):
            data = {}
        phase = data.get("game_phase")
        revealed = _letter_set(data.get("revealed_letters"))
        return cls(
            revealed_letters=revealed,
            guessed_letters=_letter_set(data.get("guessed_letters")) | revealed,
            wheel_value=_wheel_value(data.get("wheel_value")),
            is_spinning=bool(data.get("is_spinning", False)),
            current_player_turn=_seat(data.get("current_player_turn")),
            game_phase=phase if phase in GAME_PHASES else "spinning",
            puzzle_solved=bool(data.get("puzzle_solved", False)),
        )


@dataclass
class GameSession:
    """The authoritative shared record for one match."""
    id: str
    puzzle: Puzzle
    player1_id: str
    player2_id: str
    game_mode: str = "multiplayer"  # "single" or "multiplayer"
    current_player: int = 1
    # Cumulative match totals
    player1_score: int = 0
    player2_score: int = 0
    # Forfeitable points banked in the current round
    player1_round_score: int = 0
    player2_round_score: int = 0
    rounds_won_player1: int = 0
    rounds_won_player2: int = 0
    status: str = "in_progress"  # "in_progress" or "round_complete"
    computer_difficulty: str | None = None  # single-player only
    game_state: GameState = field(default_factory=GameState)
    # Optimistic concurrency counter, bumped by the store on every write
    version: int = 0
    # Ids of the most recently applied actions, newest last
    recent_action_ids: list[str] = field(default_factory=list)

    def copy(self) -> "GameSession":
        """Return a deep copy of this session."""
        return deepcopy(self)

    # ===== Seat helpers =====

    def player_id(self, seat: int) -> str:
        return self.player1_id if seat == 1 else self.player2_id

    def round_score(self, seat: int) -> int:
        return self.player1_round_score if seat == 1 else self.player2_round_score

    def set_round_score(self, seat: int, value: int) -> None:
        if seat == 1:
            self.player1_round_score = value
        else:
            self.player2_round_score = value

    def match_score(self, seat: int) -> int:
        return self.player1_score if seat == 1 else self.player2_score

    def set_match_score(self, seat: int, value: int) -> None:
        if seat == 1:
            self.player1_score = value
        else:
            self.player2_score = value

    def rounds_won(self, seat: int) -> int:
        return self.rounds_won_player1 if seat == 1 else self.rounds_won_player2

    def add_round_won(self, seat: int) -> None:
        if seat == 1:
            self.rounds_won_player1 += 1
        else:
            self.rounds_won_player2 += 1

    def is_computer_seat(self, seat: int) -> bool:
        return self.game_mode == "single" and self.player_id(seat) == COMPUTER_PLAYER_ID

    @property
    def is_over(self) -> bool:
        return self.status == "round_complete" or self.game_state.game_phase == "round_end"

    # ===== Serialization Methods =====

    def to_dict(self) -> dict[str, Any]:
        """Convert GameSession to a dictionary for JSON serialization."""
        return {
            "id": self.id,
            "game_mode": self.game_mode,
            "player1_id": self.player1_id,
            "player2_id": self.player2_id,
            "current_player": self.current_player,
            "player1_score": self.player1_score,
            "player2_score": self.player2_score,
            "player1_round_score": self.player1_round_score,
            "player2_round_score": self.player2_round_score,
            "rounds_won_player1": self.rounds_won_player1,
            "rounds_won_player2": self.rounds_won_player2,
            "status": self.status,
            "computer_difficulty": self.computer_difficulty,
            "puzzle": self.puzzle.to_dict(),
            "game_state": self.game_state.to_dict(),
            "version": self.version,
            "recent_action_ids": list(self.recent_action_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameSession":
        """Create GameSession from a dictionary (missing fields fall back to defaults)."""
        if not isinstance(data, dict):
            data = {}
        mode = data.get("game_mode")
        status = data.get("status")
        difficulty = data.get("computer_difficulty")
        game_state = GameState.from_dict(data.get("game_state") or {})
        current_player = _seat(data.get("current_player", game_state.current_player_turn))
        # Both turn fields always agree; the session column wins
        game_state.current_player_turn = current_player
        recent = data.get("recent_action_ids")
        if not isinstance(recent, list):
            recent = []
        return cls(
            id=str(data.get("id") or ""),
            puzzle=Puzzle.from_dict(data.get("puzzle") or {}),
            player1_id=str(data.get("player1_id") or ""),
            player2_id=str(data.get("player2_id") or ""),
            game_mode=mode if mode in GAME_MODES else "multiplayer",
            current_player=current_player,
            player1_score=_int(data.get("player1_score"), 0),
            player2_score=_int(data.get("player2_score"), 0),
            player1_round_score=max(0, _int(data.get("player1_round_score"), 0)),
            player2_round_score=max(0, _int(data.get("player2_round_score"), 0)),
            rounds_won_player1=_int(data.get("rounds_won_player1"), 0),
            rounds_won_player2=_int(data.get("rounds_won_player2"), 0),
            status=status if status in SESSION_STATUSES else "in_progress",
            computer_difficulty=difficulty if difficulty in DIFFICULTIES else None,
            game_state=game_state,
            version=_int(data.get("version"), 0),
            recent_action_ids=[str(x) for x in recent],
        )

    def to_json(self, indent: int | None = None) -> str:
        """Serialize GameSession to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "GameSession":
        """Deserialize GameSession from a JSON string."""
        return cls.from_dict(json.loads(json_str))
