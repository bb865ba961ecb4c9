#!/usr/bin/env python3
"""
Print a session's move log from the database, optionally replaying it.
Usage: python scripts/show_moves.py <session_id> [--replay]
"""
import asyncio
import sys

from wheel_of_destiny.api.database import SessionLocal, init_db
from wheel_of_destiny.api.store import SqlSessionStore
from wheel_of_destiny.engine.errors import SessionNotFound
from wheel_of_destiny.engine.reducer import replay_from_moves
from wheel_of_destiny.engine.state import GameSession, GameState
from wheel_of_destiny.engine.utils import print_session


def _initial(session: GameSession) -> GameSession:
    """The session as it was created: same seats and puzzle, nothing played."""
    return GameSession(
        id=session.id,
        puzzle=session.puzzle,
        player1_id=session.player1_id,
        player2_id=session.player2_id,
        game_mode=session.game_mode,
        computer_difficulty=session.computer_difficulty,
        game_state=GameState(),
    )


async def show(session_id: str, replay: bool) -> int:
    init_db()
    store = SqlSessionStore(SessionLocal)
    try:
        session = await store.read_session(session_id)
    except SessionNotFound as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    moves = await store.list_moves(session_id)
    print(f"Session {session_id}: {len(moves)} moves, version {session.version}")
    for i, move in enumerate(moves, 1):
        print(f"{i:>3}. {move.timestamp:%H:%M:%S} {move.actor_id:>10} {move.move_type:<13} "
              f"{move.move_data} ({move.points_earned:+d})")

    if replay:
        replayed, _ = replay_from_moves(_initial(session), moves)
        print_session(replayed)
        stored = session.to_dict() | {"version": 0}
        print("Replay matches stored session" if replayed.to_dict() | {"version": 0} == stored
              else "Replay DIFFERS from stored session")
    return 0


def main() -> None:
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    if not args:
        print("Usage: python scripts/show_moves.py <session_id> [--replay]", file=sys.stderr)
        sys.exit(1)
    sys.exit(asyncio.run(show(args[0], "--replay" in sys.argv)))


if __name__ == "__main__":
    main()
