from wheel_of_destiny.engine import COMPUTER_PLAYER_ID
from wheel_of_destiny.engine.actions import guess_letter, spin
from wheel_of_destiny.engine.reducer import apply_action
from wheel_of_destiny.engine.state import BANKRUPT, GameSession, GameState, Puzzle, normalize_phrase


def test_normalize_phrase_drops_non_letters():
    assert normalize_phrase("It's a  Village!") == "ITSAVILLAGE"
    assert normalize_phrase("") == ""


def test_puzzle_letters_and_matches(zimbabwe):
    assert zimbabwe.occurrences("a") == 2
    assert zimbabwe.letters() == set("GREATZIMBABWE")
    assert zimbabwe.matches("Great Zimbabwe")
    assert zimbabwe.matches("GREAT-ZIMBABWE")
    assert not zimbabwe.matches("GREAT ZIMBABW")
    assert not Puzzle("!!", "x").matches("")


def test_session_json_round_trip_mid_round(session):
    session, _ = apply_action(session, spin("alice", 500))
    session, _ = apply_action(session, guess_letter("alice", "B"))
    session.version = 7
    restored = GameSession.from_json(session.to_json())
    assert restored == session
    assert restored.game_state.revealed_letters == {"B"}


def test_penalty_wheel_value_survives_serialization():
    gs = GameState(wheel_value=BANKRUPT)
    assert GameState.from_dict(gs.to_dict()).wheel_value == BANKRUPT


def test_from_dict_repairs_inconsistent_input():
    data = {
        "id": "x",
        "player1_id": "a",
        "player2_id": "b",
        "current_player": 2,
        "player1_round_score": -50,
        "status": "bogus",
        "game_mode": "bogus",
        "puzzle": {"phrase": "nile delta", "category": "Place"},
        "game_state": {
            "revealed_letters": ["N"],
            "guessed_letters": ["Q"],
            "current_player_turn": 1,
            "game_phase": "nowhere",
        },
    }
    session = GameSession.from_dict(data)
    assert session.current_player == 2
    assert session.game_state.current_player_turn == 2
    assert session.game_state.guessed_letters == {"N", "Q"}
    assert session.game_state.game_phase == "spinning"
    assert session.player1_round_score == 0
    assert session.status == "in_progress"
    assert session.game_mode == "multiplayer"
    assert session.puzzle.phrase == "NILE DELTA"


def test_copy_is_deep(session):
    clone = session.copy()
    clone.game_state.revealed_letters.add("Z")
    assert "Z" not in session.game_state.revealed_letters


def test_computer_seat_only_in_single_mode(single_session, session):
    assert single_session.player2_id == COMPUTER_PLAYER_ID
    assert single_session.is_computer_seat(2)
    assert not single_session.is_computer_seat(1)
    assert not session.is_computer_seat(2)
