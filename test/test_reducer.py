import pytest
from conftest import with_scores

from wheel_of_destiny.engine.actions import buy_vowel, guess_letter, solve_puzzle, spin
from wheel_of_destiny.engine.errors import IllegalAction, InsufficientFunds
from wheel_of_destiny.engine.events import (
    LETTER_REVEALED,
    PUZZLE_SOLVED,
    ROUND_COMPLETED,
    SOLVE_FAILED,
    TURN_PASSED,
    WENT_BANKRUPT,
)
from wheel_of_destiny.engine.reducer import apply_action
from wheel_of_destiny.engine.state import BANKRUPT, LOSE_TURN


def play(session, *actions):
    for action in actions:
        session, _ = apply_action(session, action)
    return session


def assert_turn_fields_agree(session):
    assert session.current_player == session.game_state.current_player_turn


# ===== Spinning =====

def test_cash_spin_moves_to_guessing(session):
    new, events = apply_action(session, spin("alice", 500))
    assert new.game_state.game_phase == "guessing"
    assert new.game_state.wheel_value == 500
    assert new.current_player == 1
    assert events[0].type == "wheel_spun"


def test_bankrupt_zeroes_round_score_and_passes(session):
    with_scores(session, round1=1200)
    new, events = apply_action(session, spin("alice", BANKRUPT))
    assert new.player1_round_score == 0
    assert new.current_player == 2
    assert new.game_state.game_phase == "spinning"
    assert new.game_state.wheel_value == 0
    assert [e.type for e in events if e.type in (WENT_BANKRUPT, TURN_PASSED)] == [WENT_BANKRUPT, TURN_PASSED]
    assert_turn_fields_agree(new)


def test_lose_turn_passes_and_keeps_score(session):
    with_scores(session, round1=700)
    new, events = apply_action(session, spin("alice", LOSE_TURN))
    assert new.current_player == 2
    assert new.game_state.current_player_turn == 2
    assert new.game_state.game_phase == "spinning"
    assert new.game_state.wheel_value == 0
    assert new.game_state.is_spinning is False
    assert new.player1_round_score == 700
    assert any(e.type == TURN_PASSED and e.payload["reason"] == "lose_turn" for e in events)


def test_spin_needs_an_outcome(session):
    with pytest.raises(IllegalAction):
        apply_action(session, spin("alice"))


def test_guess_not_allowed_while_spinning(session):
    with pytest.raises(IllegalAction):
        apply_action(session, guess_letter("alice", "R"))


# ===== Guessing =====

def test_great_zimbabwe_scenario_two_as_with_500(session):
    session = play(session, spin("alice", 500))
    new, events = apply_action(session, guess_letter("alice", "A"))
    assert new.player1_round_score == 1000
    assert new.current_player == 1
    assert new.game_state.game_phase == "spinning"


def test_correct_consonant_awards_value_times_count_and_keeps_turn(session):
    session = play(session, spin("alice", 500))
    new, events = apply_action(session, guess_letter("alice", "B"))  # B twice in ZIMBABWE
    assert new.player1_round_score == 1000
    assert new.current_player == 1
    assert new.game_state.game_phase == "spinning"
    assert new.game_state.wheel_value == 0
    assert "B" in new.game_state.revealed_letters
    assert any(e.type == LETTER_REVEALED and e.payload["occurrences"] == 2 for e in events)


def test_missed_consonant_passes_turn(session):
    session = play(session, spin("alice", 800))
    new, events = apply_action(session, guess_letter("alice", "Q"))
    assert new.current_player == 2
    assert new.player1_round_score == 0
    assert "Q" in new.game_state.guessed_letters
    assert "Q" not in new.game_state.revealed_letters
    assert_turn_fields_agree(new)


def test_called_vowel_cannot_then_be_bought(session):
    session = play(session, spin("alice", 500), guess_letter("alice", "E"), spin("alice", 300))
    session.player1_round_score = 1000
    with pytest.raises(IllegalAction):
        apply_action(session, buy_vowel("alice", "E"))


def test_repeated_letter_rejected(session):
    session = play(session, spin("alice", 500), guess_letter("alice", "R"), spin("alice", 300))
    with pytest.raises(IllegalAction):
        apply_action(session, guess_letter("alice", "R"))


@pytest.mark.parametrize("letter", ["", "RT", "1", "ß"])
def test_malformed_letter_rejected(session, letter):
    session = play(session, spin("alice", 500))
    with pytest.raises(IllegalAction):
        apply_action(session, guess_letter("alice", letter))


def test_buy_vowel_hit_stays_guessing_with_value_pending(session):
    with_scores(session, round1=1000, phase="guessing", wheel_value=600)
    new, _ = apply_action(session, buy_vowel("alice", "A"))
    assert new.player1_round_score == 750
    assert new.current_player == 1
    assert new.game_state.game_phase == "guessing"
    assert new.game_state.wheel_value == 600
    assert "A" in new.game_state.revealed_letters


def test_buy_vowel_miss_still_costs_and_passes(session):
    with_scores(session, round1=1000, phase="guessing", wheel_value=600)
    new, _ = apply_action(session, buy_vowel("alice", "O"))
    assert new.player1_round_score == 750
    assert new.current_player == 2
    assert new.game_state.game_phase == "spinning"


def test_buy_vowel_with_200_is_rejected_and_nothing_changes(session):
    with_scores(session, round1=200, phase="guessing", wheel_value=500)
    before = session.to_dict()
    with pytest.raises(InsufficientFunds):
        apply_action(session, buy_vowel("alice", "E"))
    assert session.to_dict() == before


def test_only_vowels_can_be_bought(session):
    with_scores(session, round1=1000, phase="guessing", wheel_value=500)
    with pytest.raises(IllegalAction):
        apply_action(session, buy_vowel("alice", "R"))


# ===== Solving =====

def test_correct_solve_banks_round_score(session):
    with_scores(session, round1=1500, round2=400, phase="guessing", wheel_value=300)
    session.player1_score = 100
    new, events = apply_action(session, solve_puzzle("alice", "great  zimbabwe!"))
    assert new.player1_score == 1600
    assert new.player2_score == 0
    assert new.player1_round_score == 0
    assert new.player2_round_score == 0
    assert new.rounds_won_player1 == 1
    assert new.status == "round_complete"
    assert new.game_state.game_phase == "round_end"
    assert new.game_state.puzzle_solved is True
    assert new.game_state.revealed_letters == session.puzzle.letters()
    assert [e.type for e in events if e.type in (PUZZLE_SOLVED, ROUND_COMPLETED)] == [PUZZLE_SOLVED, ROUND_COMPLETED]


def test_wrong_solve_passes_turn(session):
    with_scores(session, round1=900, phase="guessing", wheel_value=300)
    new, events = apply_action(session, solve_puzzle("alice", "WRONG"))
    assert new.current_player == 2
    assert new.game_state.game_phase == "spinning"
    assert new.player1_round_score == 900
    assert new.status == "in_progress"
    assert any(e.type == SOLVE_FAILED for e in events)


def test_empty_solution_rejected(session):
    with_scores(session, phase="guessing", wheel_value=300)
    with pytest.raises(IllegalAction):
        apply_action(session, solve_puzzle("alice", "   "))


def test_revealing_last_letter_completes_round(session):
    remaining = session.puzzle.letters() - {"W"}
    session.game_state.revealed_letters = set(remaining)
    session.game_state.guessed_letters = set(remaining)
    session = with_scores(session, round1=300, phase="guessing", wheel_value=700)
    new, events = apply_action(session, guess_letter("alice", "W"))
    assert new.player1_score == 1000
    assert new.status == "round_complete"
    assert new.game_state.game_phase == "round_end"
    solved = next(e for e in events if e.type == PUZZLE_SOLVED)
    assert solved.payload["by_reveal"] is True


def test_no_actions_after_round_end(session):
    with_scores(session, phase="guessing", wheel_value=300)
    session = play(session, solve_puzzle("alice", "GREAT ZIMBABWE"))
    for action in (spin("alice", 500), spin("bob", 500), guess_letter("bob", "R"), solve_puzzle("bob", "X")):
        with pytest.raises(IllegalAction):
            apply_action(session, action)


# ===== Turn ownership and purity =====

def test_wrong_actor_rejected(session):
    with pytest.raises(IllegalAction):
        apply_action(session, spin("bob", 500))
    with pytest.raises(IllegalAction):
        apply_action(session, spin("mallory", 500))


def test_input_session_is_never_mutated(session):
    before = session.to_dict()
    apply_action(session, spin("alice", 500))
    assert session.to_dict() == before


def test_recent_action_ids_are_recorded_and_bounded(session):
    action = spin("alice", LOSE_TURN)
    new, _ = apply_action(session, action)
    assert new.recent_action_ids == [action.action_id]

    for _ in range(20):
        new, _ = apply_action(new, spin(new.player_id(new.current_player), LOSE_TURN))
    assert len(new.recent_action_ids) == 16


def test_guessed_letters_never_shrink(session):
    sizes = [len(session.game_state.guessed_letters)]
    for action in (
        spin("alice", 500), guess_letter("alice", "R"),
        spin("alice", 300), guess_letter("alice", "Q"),
        spin("bob", LOSE_TURN),
        spin("alice", 200), guess_letter("alice", "T"),
    ):
        session, _ = apply_action(session, action)
        sizes.append(len(session.game_state.guessed_letters))
        assert session.game_state.revealed_letters <= session.game_state.guessed_letters
        assert_turn_fields_agree(session)
        assert session.player1_round_score >= 0 and session.player2_round_score >= 0
    assert sizes == sorted(sizes)
