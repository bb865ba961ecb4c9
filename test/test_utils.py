import pytest

from wheel_of_destiny.engine import COMPUTER_PLAYER_ID
from wheel_of_destiny.engine.actions import guess_letter, spin
from wheel_of_destiny.engine.events import letter_missed, round_completed, turn_passed
from wheel_of_destiny.engine.reducer import apply_action
from wheel_of_destiny.engine.state import Puzzle
from wheel_of_destiny.engine.utils import (
    create_session,
    create_single_player_session,
    describe_event,
    format_session,
)


def test_create_session_starts_clean(zimbabwe):
    session = create_session(zimbabwe, "alice", "bob")

    assert session.id
    assert session.version == 0
    assert session.current_player == 1
    assert session.game_state.game_phase == "spinning"
    assert session.game_state.guessed_letters == set()
    assert session.game_mode == "multiplayer"


def test_session_ids_are_unique(zimbabwe):
    assert create_session(zimbabwe, "alice", "bob").id != create_session(zimbabwe, "alice", "bob").id


@pytest.mark.parametrize("p1, p2", [("", "bob"), ("alice", ""), ("alice", "alice")])
def test_create_session_rejects_bad_seats(zimbabwe, p1, p2):
    with pytest.raises(ValueError):
        create_session(zimbabwe, p1, p2)


def test_create_session_rejects_empty_puzzle():
    with pytest.raises(ValueError):
        create_session(Puzzle("!!!", "Noise"), "alice", "bob")


def test_single_player_session(zimbabwe):
    session = create_single_player_session(zimbabwe, "alice", "easy")

    assert session.game_mode == "single"
    assert session.player2_id == COMPUTER_PLAYER_ID
    assert session.computer_difficulty == "easy"
    assert session.is_computer_seat(2)
    assert not session.is_computer_seat(1)

    with pytest.raises(ValueError):
        create_single_player_session(zimbabwe, "alice", "impossible")


def test_format_session_hides_phrase_until_over(session):
    session, _ = apply_action(session, spin("alice", 500))
    session, _ = apply_action(session, guess_letter("alice", "A"))
    text = format_session(session)

    assert "_ _ _ A _" in text
    assert "GREAT ZIMBABWE" not in text
    assert "alice: round 1000" in text


def test_describe_event():
    assert describe_event(letter_missed(1, "Q")) == "No Q"
    assert describe_event(turn_passed(1, 2, "lose_turn")) == "Turn passes to seat 2 (lose_turn)"
    assert describe_event(round_completed(2, 900, {1: 0, 2: 900})) == "Round won by seat 2, banking 900"
