"""
Utility functions for the game engine.
"""

import uuid

from wheel_of_destiny.engine import COMPUTER_PLAYER_ID
from wheel_of_destiny.engine.events import (
    LETTER_MISSED,
    LETTER_REVEALED,
    PHASE_CHANGED,
    PUZZLE_SOLVED,
    ROUND_COMPLETED,
    ROUND_SCORE_CHANGED,
    SOLVE_FAILED,
    TURN_PASSED,
    VOWEL_BOUGHT,
    WENT_BANKRUPT,
    WHEEL_SPUN,
    GameEvent,
)
from wheel_of_destiny.engine.queries import render_board
from wheel_of_destiny.engine.state import DIFFICULTIES, GameSession, GameState, Puzzle


def new_session_id() -> str:
    return str(uuid.uuid4())


def create_session(
    puzzle: Puzzle,
    player1_id: str,
    player2_id: str,
    session_id: str | None = None,
) -> GameSession:
    """
    Create a fresh multiplayer session: seat 1 to spin, nothing revealed,
    all scores zero.

    Args:
        puzzle: Puzzle dealt to this session (never changes afterwards)
        player1_id: Opaque identity of seat 1
        player2_id: Opaque identity of seat 2
        session_id: Optional fixed id (a uuid4 string otherwise)
    """
    if not player1_id or not player2_id:
        raise ValueError("Both seats need a player id")
    if player1_id == player2_id:
        raise ValueError("A player cannot hold both seats")
    if not puzzle.normalized:
        raise ValueError("Puzzle phrase has no letters")
    return GameSession(
        id=session_id or new_session_id(),
        puzzle=puzzle,
        player1_id=player1_id,
        player2_id=player2_id,
        game_mode="multiplayer",
        game_state=GameState(current_player_turn=1, game_phase="spinning"),
    )


def create_single_player_session(
    puzzle: Puzzle,
    player_id: str,
    difficulty: str = "medium",
    session_id: str | None = None,
) -> GameSession:
    """Create a session against the computer, which always holds seat 2."""
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty: {difficulty}")
    session = create_session(puzzle, player_id, COMPUTER_PLAYER_ID, session_id)
    session.game_mode = "single"
    session.computer_difficulty = difficulty
    return session


def format_session(session: GameSession) -> str:
    """Multi-line scoreboard and board for terminals and logs."""
    gs = session.game_state
    lines = [
        "=" * 60,
        f"Session {session.id} | {session.game_mode} | v{session.version}",
        f"Phase: {gs.game_phase} | Turn: seat {session.current_player} "
        f"({session.player_id(session.current_player)}) | Wheel: {gs.wheel_value}",
        "=" * 60,
        f"Category: {session.puzzle.category}",
    ]
    if session.puzzle.hint:
        lines.append(f"Hint: {session.puzzle.hint}")
    lines.append("")
    lines.append("  " + " ".join(render_board(session.puzzle, gs.revealed_letters)))
    lines.append("")
    missed = sorted(gs.guessed_letters - gs.revealed_letters)
    lines.append(f"Guessed: {', '.join(sorted(gs.guessed_letters)) or '-'}")
    lines.append(f"Missed:  {', '.join(missed) or '-'}")
    lines.append(f"\n{'Scores':.<40}")
    for seat in (1, 2):
        marker = "*" if seat == session.current_player and not session.is_over else " "
        lines.append(
            f" {marker}{session.player_id(seat)}: round {session.round_score(seat)}, "
            f"match {session.match_score(seat)}, rounds won {session.rounds_won(seat)}"
        )
    if session.is_over:
        lines.append(f"\nRound complete: {session.puzzle.phrase}")
    return "\n".join(lines)


def print_session(session: GameSession) -> None:
    """Pretty-print the current session."""
    print()
    print(format_session(session))
    print()


def describe_event(event: GameEvent) -> str:
    """One line of human-readable text for an event."""
    p = event.payload
    t = event.type
    if t == WHEEL_SPUN:
        return f"Seat {p['seat']} spun {p['value']}"
    if t == WENT_BANKRUPT:
        return f"Seat {p['seat']} went BANKRUPT and lost {p['lost']}"
    if t == LETTER_REVEALED:
        return f"{p['letter']} appears {p['occurrences']} time(s)"
    if t == LETTER_MISSED:
        return f"No {p['letter']}"
    if t == VOWEL_BOUGHT:
        return f"Seat {p['seat']} bought {p['vowel']} for {p['cost']}"
    if t == ROUND_SCORE_CHANGED:
        return f"Seat {p['seat']} round score {p['old_value']} -> {p['new_value']}"
    if t == TURN_PASSED:
        return f"Turn passes to seat {p['to_seat']} ({p['reason']})"
    if t == SOLVE_FAILED:
        return f"Seat {p['seat']} guessed '{p['solution']}', which is wrong"
    if t == PUZZLE_SOLVED:
        return f"Seat {p['seat']} solved it: {p['phrase']}"
    if t == ROUND_COMPLETED:
        return f"Round won by seat {p['winner_seat']}, banking {p['transferred']}"
    if t == PHASE_CHANGED:
        return f"Phase: {p['old_phase']} -> {p['new_phase']}"
    return f"{t}: {p}"
