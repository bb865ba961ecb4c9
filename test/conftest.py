import pytest

from wheel_of_destiny.engine.state import Puzzle
from wheel_of_destiny.engine.utils import create_session, create_single_player_session


@pytest.fixture
def zimbabwe():
    return Puzzle("GREAT ZIMBABWE", "Landmark", hint="Stone city of the Shona", id="p001")


@pytest.fixture
def session(zimbabwe):
    """Fresh multiplayer session: alice (seat 1) to spin against bob (seat 2)."""
    return create_session(zimbabwe, "alice", "bob", session_id="s-1")


@pytest.fixture
def single_session(zimbabwe):
    return create_single_player_session(zimbabwe, "alice", "hard", session_id="s-single")


def with_scores(session, round1=0, round2=0, phase="spinning", wheel_value=0, current=1):
    """Mutate a fresh session into a mid-round position (test setup only)."""
    session.player1_round_score = round1
    session.player2_round_score = round2
    session.game_state.game_phase = phase
    session.game_state.wheel_value = wheel_value
    session.current_player = current
    session.game_state.current_player_turn = current
    return session
