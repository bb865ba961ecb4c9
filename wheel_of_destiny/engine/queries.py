"""
Query functions for UI integration.
These functions help clients (human UIs and the computer player) understand
what actions are available without mutating the session.
"""

from dataclasses import dataclass
from typing import Any

from wheel_of_destiny.engine import ALPHABET, CONSONANTS, VOWEL_COST, VOWELS
from wheel_of_destiny.engine.actions import Action, BUY_VOWEL, GUESS_LETTER, SOLVE_PUZZLE, SPIN
from wheel_of_destiny.engine.errors import WheelError
from wheel_of_destiny.engine.reducer import check_action
from wheel_of_destiny.engine.state import GameSession, Puzzle, WheelValue

HIDDEN = "_"


@dataclass
class ValidationResult:
    """Result of action validation."""
    valid: bool
    error: str | None = None
    error_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "error": self.error, "error_type": self.error_type}


@dataclass(frozen=True)
class PlayerView:
    """
    What one seat can see of a session.
    The phrase itself is withheld until the round is over.
    """
    session_id: str
    seat: int
    actor_id: str
    is_my_turn: bool
    current_player: int
    game_phase: str
    status: str
    category: str
    hint: str | None
    board: str
    total_letters: int
    revealed_positions: int
    revealed_letters: frozenset[str]
    guessed_letters: frozenset[str]
    wheel_value: WheelValue
    my_round_score: int
    opponent_round_score: int
    my_match_score: int
    opponent_match_score: int
    phrase: str | None = None

    @property
    def missed_letters(self) -> frozenset[str]:
        return self.guessed_letters - self.revealed_letters

    @property
    def revealed_fraction(self) -> float:
        if not self.total_letters:
            return 0.0
        return self.revealed_positions / self.total_letters

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "seat": self.seat,
            "actor_id": self.actor_id,
            "is_my_turn": self.is_my_turn,
            "current_player": self.current_player,
            "game_phase": self.game_phase,
            "status": self.status,
            "category": self.category,
            "hint": self.hint,
            "board": self.board,
            "total_letters": self.total_letters,
            "revealed_positions": self.revealed_positions,
            "revealed_fraction": round(self.revealed_fraction, 4),
            "revealed_letters": sorted(self.revealed_letters),
            "guessed_letters": sorted(self.guessed_letters),
            "wheel_value": self.wheel_value,
            "my_round_score": self.my_round_score,
            "opponent_round_score": self.opponent_round_score,
            "my_match_score": self.my_match_score,
            "opponent_match_score": self.opponent_match_score,
            "phrase": self.phrase,
        }


# ===== Action Validation =====

def validate_action(session: GameSession, action: Action) -> ValidationResult:
    """
    Validate an action without applying it.
    Returns ValidationResult with valid=True or valid=False with error message.
    """
    try:
        check_action(session, action)
    except WheelError as e:
        return ValidationResult(False, str(e), type(e).__name__)
    return ValidationResult(True)


def seat_for_actor(session: GameSession, actor_id: str) -> int | None:
    """Seat number held by actor_id, or None if they are not in this session."""
    if actor_id == session.player1_id:
        return 1
    if actor_id == session.player2_id:
        return 2
    return None


def get_available_action_types(session: GameSession, seat: int) -> list[str]:
    """Move types the given seat could legally attempt right now."""
    if session.is_over or seat != session.current_player:
        return []
    gs = session.game_state
    if gs.game_phase == "spinning":
        return [SPIN]
    if gs.game_phase != "guessing":
        return []
    available = []
    if any(c not in gs.guessed_letters for c in ALPHABET):
        available.append(GUESS_LETTER)
    if session.round_score(seat) >= VOWEL_COST and any(v not in gs.guessed_letters for v in VOWELS):
        available.append(BUY_VOWEL)
    available.append(SOLVE_PUZZLE)
    return available


def unguessed_consonants(session_or_view: GameSession | PlayerView) -> list[str]:
    guessed = _guessed(session_or_view)
    return [c for c in CONSONANTS if c not in guessed]


def unguessed_vowels(session_or_view: GameSession | PlayerView) -> list[str]:
    guessed = _guessed(session_or_view)
    return [v for v in VOWELS if v not in guessed]


def _guessed(session_or_view: GameSession | PlayerView) -> set[str] | frozenset[str]:
    if isinstance(session_or_view, PlayerView):
        return session_or_view.guessed_letters
    return session_or_view.game_state.guessed_letters


# ===== Board =====

def render_board(puzzle: Puzzle, revealed: set[str] | frozenset[str]) -> str:
    """The phrase with every unrevealed letter replaced by '_'. Spaces and punctuation show."""
    out = []
    for ch in puzzle.phrase.upper():
        if "A" <= ch <= "Z" and ch not in revealed:
            out.append(HIDDEN)
        else:
            out.append(ch)
    return "".join(out)


def player_view(session: GameSession, seat: int) -> PlayerView:
    """Build what seat can see. The phrase is only included once the round is over."""
    gs = session.game_state
    other = 2 if seat == 1 else 1
    normalized = session.puzzle.normalized
    return PlayerView(
        session_id=session.id,
        seat=seat,
        actor_id=session.player_id(seat),
        is_my_turn=(not session.is_over and session.current_player == seat),
        current_player=session.current_player,
        game_phase=gs.game_phase,
        status=session.status,
        category=session.puzzle.category,
        hint=session.puzzle.hint,
        board=render_board(session.puzzle, gs.revealed_letters),
        total_letters=len(normalized),
        revealed_positions=sum(1 for ch in normalized if ch in gs.revealed_letters),
        revealed_letters=frozenset(gs.revealed_letters),
        guessed_letters=frozenset(gs.guessed_letters),
        wheel_value=gs.wheel_value,
        my_round_score=session.round_score(seat),
        opponent_round_score=session.round_score(other),
        my_match_score=session.match_score(seat),
        opponent_match_score=session.match_score(other),
        phrase=session.puzzle.phrase if session.is_over else None,
    )


def get_session_summary(session: GameSession) -> dict[str, Any]:
    """Compact scoreboard for logs and the CLI."""
    return {
        "session_id": session.id,
        "status": session.status,
        "phase": session.game_state.game_phase,
        "current_player": session.current_player,
        "board": render_board(session.puzzle, session.game_state.revealed_letters),
        "category": session.puzzle.category,
        "players": {
            seat: {
                "id": session.player_id(seat),
                "round_score": session.round_score(seat),
                "match_score": session.match_score(seat),
                "rounds_won": session.rounds_won(seat),
            }
            for seat in (1, 2)
        },
        "version": session.version,
    }
