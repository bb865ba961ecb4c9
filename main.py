"""
Main entry point for the Wheel of Destiny game engine.
Demonstrates core functionality with scripted scenarios, then lets the
computer play both seats through the in-memory sync layer.
"""

import asyncio
import logging
import random

from wheel_of_destiny.engine.actions import buy_vowel, guess_letter, solve_puzzle, spin
from wheel_of_destiny.engine.computer import ComputerPlayer
from wheel_of_destiny.engine.errors import WheelError
from wheel_of_destiny.engine.puzzles import load_puzzle_bank
from wheel_of_destiny.engine.reducer import apply_action, replay_from_moves
from wheel_of_destiny.engine.scoring import FixedSpinner
from wheel_of_destiny.engine.state import BANKRUPT, Puzzle
from wheel_of_destiny.engine.utils import (
    create_session,
    describe_event,
    print_session,
)
from wheel_of_destiny.sync.memory import InMemoryChannel, InMemorySessionStore
from wheel_of_destiny.sync.opponent import ComputerOpponent
from wheel_of_destiny.sync.session_sync import SessionSync


def run(session, action):
    """Apply one action and print what happened."""
    try:
        session, events = apply_action(session, action)
    except WheelError as e:
        print(f"  REJECTED {action.move_type}: {e}")
        return session
    for event in events:
        print(f"  {describe_event(event)}")
    return session


def scripted_round():
    print("\n[SCENARIO 1: Scripted round]")
    puzzle = Puzzle("GREAT ZIMBABWE", "Landmark", hint="Stone city in southern Africa")
    session = create_session(puzzle, "alice", "bob")
    print_session(session)

    session = run(session, spin("alice", 500))
    session = run(session, guess_letter("alice", "A"))  # two A's: +1000, alice keeps the turn
    session = run(session, spin("alice", 300))
    session = run(session, buy_vowel("alice", "E"))
    session = run(session, guess_letter("alice", "Q"))  # miss, turn passes to bob
    session = run(session, spin("bob", BANKRUPT))
    session = run(session, spin("alice", 200))
    session = run(session, solve_puzzle("alice", "great zimbabwe"))
    print_session(session)
    return session


async def computer_match():
    print("\n[SCENARIO 2: Computer vs computer through the sync layer]")
    bank = load_puzzle_bank()
    rng = random.Random(7)
    puzzle = bank.choose(rng)

    channel = InMemoryChannel()
    store = InMemorySessionStore(channel)
    session = create_session(puzzle, "ai-easy", "ai-hard")
    await store.create_session(session)

    spinner = FixedSpinner(500, 300, 800, 100, 600, 900)
    seat1 = SessionSync(store, channel, session.id, spinner=spinner)
    seat2 = SessionSync(store, channel, session.id, spinner=spinner)
    await seat1.start()
    await seat2.start()

    opponents = [
        ComputerOpponent(seat1, ComputerPlayer("easy", random.Random(1), bank.phrases), seat=1, thinking_scale=0),
        ComputerOpponent(seat2, ComputerPlayer("hard", random.Random(2), bank.phrases), seat=2, thinking_scale=0),
    ]
    # Alternate until the round ends
    for _ in range(100):
        view = seat1.view
        if view.is_over:
            break
        await opponents[view.current_player - 1].play_turn()
        await seat1.refresh()
        await seat2.refresh()
        await channel.drain()

    final = await store.read_session(session.id)
    print_session(final)

    moves = await store.list_moves(session.id)
    print(f"Move log: {len(moves)} entries")
    for move in moves:
        print(f"  {move.actor_id:>8} {move.move_type:<13} {move.move_data} ({move.points_earned:+d})")

    replayed, _ = replay_from_moves(session, moves)
    print(f"Replay matches store: {replayed.to_dict() | {'version': 0} == final.to_dict() | {'version': 0}}")

    await seat1.stop()
    await seat2.stop()


def main():
    logging.basicConfig(level=logging.WARNING)
    print("Wheel of Destiny Game Engine")
    print("=" * 60)
    scripted_round()
    asyncio.run(computer_match())


if __name__ == "__main__":
    main()
