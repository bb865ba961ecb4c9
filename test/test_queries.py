import pytest
from conftest import with_scores

from wheel_of_destiny.engine.actions import buy_vowel, guess_letter, spin
from wheel_of_destiny.engine.queries import (
    get_available_action_types,
    get_session_summary,
    player_view,
    render_board,
    seat_for_actor,
    unguessed_consonants,
    validate_action,
)
from wheel_of_destiny.engine.reducer import apply_action


def test_validate_action_does_not_mutate(session):
    before = session.to_dict()
    assert validate_action(session, spin("alice", 500)).valid
    result = validate_action(session, spin("bob", 500))
    assert not result.valid
    assert result.error_type == "IllegalAction"
    assert session.to_dict() == before


def test_validate_reports_insufficient_funds(session):
    with_scores(session, round1=100, phase="guessing", wheel_value=300)
    result = validate_action(session, buy_vowel("alice", "E"))
    assert result.to_dict() == {
        "valid": False,
        "error": "Insufficient round score: have 100, need 250",
        "error_type": "InsufficientFunds",
    }


def test_seat_for_actor(session):
    assert seat_for_actor(session, "alice") == 1
    assert seat_for_actor(session, "bob") == 2
    assert seat_for_actor(session, "eve") is None


def test_available_actions_by_phase(session):
    assert get_available_action_types(session, 1) == ["spin"]
    assert get_available_action_types(session, 2) == []

    with_scores(session, round1=100, phase="guessing", wheel_value=300)
    assert get_available_action_types(session, 1) == ["guess_letter", "solve_puzzle"]

    session.player1_round_score = 250
    assert get_available_action_types(session, 1) == ["guess_letter", "buy_vowel", "solve_puzzle"]


def test_render_board_keeps_spaces_and_punctuation(zimbabwe):
    assert render_board(zimbabwe, set()) == "_____ ________"
    assert render_board(zimbabwe, {"A", "B"}) == "___A_ ___BAB__"


def test_player_view_hides_phrase_until_round_over(session):
    session, _ = apply_action(session, spin("alice", 500))
    session, _ = apply_action(session, guess_letter("alice", "B"))
    view = player_view(session, 2)
    assert view.phrase is None
    assert view.board == "_____ ___B_B__"
    assert not view.is_my_turn
    assert view.opponent_round_score == 1000
    assert view.revealed_positions == 2
    assert view.total_letters == 13
    assert view.to_dict()["revealed_letters"] == ["B"]

    session.status = "round_complete"
    session.game_state.game_phase = "round_end"
    assert player_view(session, 1).phrase == "GREAT ZIMBABWE"


def test_missed_letters_and_unguessed(session):
    session, _ = apply_action(session, spin("alice", 500))
    session, _ = apply_action(session, guess_letter("alice", "Q"))
    view = player_view(session, 1)
    assert view.missed_letters == {"Q"}
    assert "Q" not in unguessed_consonants(view)
    assert "Q" not in unguessed_consonants(session)


def test_revealed_fraction(session):
    assert player_view(session, 1).revealed_fraction == 0.0
    session, _ = apply_action(session, spin("alice", 500))
    session, _ = apply_action(session, guess_letter("alice", "A"))
    assert player_view(session, 2).revealed_fraction == pytest.approx(2 / 13)
    session.game_state.revealed_letters = set(session.puzzle.letters())
    assert player_view(session, 1).revealed_fraction == 1.0


def test_summary(session):
    summary = get_session_summary(session)
    assert summary["players"][1]["id"] == "alice"
    assert summary["board"] == "_____ ________"
    assert summary["version"] == 0
