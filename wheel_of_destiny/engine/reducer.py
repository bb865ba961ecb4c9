"""
Main game reducer: the state machine.
Applies actions to a session, enforcing rules and producing a new session.
Returns (new_session, events) where events describe what happened.
Nothing is produced when an action is rejected.
"""

from wheel_of_destiny.engine import RECENT_ACTION_IDS, VOWEL_COST, VOWELS
from wheel_of_destiny.engine.actions import (
    Action,
    BuyVowel,
    GuessLetter,
    SolvePuzzle,
    Spin,
    action_from_move,
)
from wheel_of_destiny.engine.errors import IllegalAction, InsufficientFunds
from wheel_of_destiny.engine.events import (
    GameEvent,
    letter_missed,
    letter_revealed,
    phase_changed,
    puzzle_solved,
    round_completed,
    round_score_changed,
    solve_failed,
    turn_passed,
    vowel_bought,
    went_bankrupt,
    wheel_spun,
)
from wheel_of_destiny.engine.movelog import MoveLogEntry
from wheel_of_destiny.engine.scoring import (
    bankrupt_penalty,
    is_cash,
    is_penalty,
    letter_guess_reward,
    round_transfer,
    vowel_purchase,
)
from wheel_of_destiny.engine.state import BANKRUPT, LOSE_TURN, GameSession

# Phase rules: which action classes are allowed in which phases
PHASE_ALLOWED_ACTIONS: dict[str, tuple[type, ...]] = {
    "spinning": (Spin,),
    "guessing": (GuessLetter, BuyVowel, SolvePuzzle),
    "round_end": (),
}

ACTION_TYPES = (Spin, GuessLetter, BuyVowel, SolvePuzzle)


def _is_letter(value: str) -> bool:
    return isinstance(value, str) and len(value) == 1 and "A" <= value <= "Z"


def check_action(session: GameSession, action: Action) -> None:
    """
    Raise if the action may not be applied to this session.

    Checks, in order: known action type, round still open, actor holds the
    turn, action allowed in the phase, well-formed input, and (vowels only)
    enough round score.
    """
    if not isinstance(action, ACTION_TYPES):
        raise IllegalAction(f"Unknown action: {action!r}")

    if session.is_over:
        raise IllegalAction("Round is over. No further actions until a new round starts.")

    seat = session.current_player
    if action.actor_id != session.player_id(seat):
        raise IllegalAction(
            f"Not {action.actor_id}'s turn. Current player: seat {seat} ({session.player_id(seat)})"
        )

    phase = session.game_state.game_phase
    allowed = PHASE_ALLOWED_ACTIONS.get(phase, ())
    if not isinstance(action, allowed):
        names = ", ".join(a.move_type for a in allowed) or "none"
        raise IllegalAction(
            f"Action '{action.move_type}' is not allowed in phase '{phase}'. Allowed actions: {names}"
        )

    guessed = session.game_state.guessed_letters
    if isinstance(action, Spin):
        if action.value is None:
            raise IllegalAction("Spin has no outcome")
        if not (is_cash(action.value) or is_penalty(action.value)):
            raise IllegalAction(f"Invalid wheel value: {action.value!r}")

    elif isinstance(action, GuessLetter):
        letter = action.letter
        if not _is_letter(letter):
            raise IllegalAction(f"Guess must be a single letter A-Z, got {letter!r}")
        if letter in guessed:
            raise IllegalAction(f"{letter} has already been guessed")

    elif isinstance(action, BuyVowel):
        vowel = action.vowel
        if not _is_letter(vowel) or vowel not in VOWELS:
            raise IllegalAction(f"Only vowels can be bought, got {vowel!r}")
        if vowel in guessed:
            raise IllegalAction(f"{vowel} has already been guessed")
        score = session.round_score(seat)
        if score < VOWEL_COST:
            raise InsufficientFunds(score, VOWEL_COST)

    elif isinstance(action, SolvePuzzle):
        if not action.solution or not action.solution.strip():
            raise IllegalAction("Solution must not be empty")


def apply_action(session: GameSession, action: Action) -> tuple[GameSession, list[GameEvent]]:
    """
    Apply a single action to the current session, returning a new session and events.

    Raises IllegalAction or InsufficientFunds without producing any state.
    The input session is never modified. The version is left untouched;
    the store bumps it on write.
    """
    check_action(session, action)

    new_session = session.copy()
    seat = new_session.current_player

    if isinstance(action, Spin):
        events = _handle_spin(new_session, seat, action)
    elif isinstance(action, GuessLetter):
        events = _handle_guess_letter(new_session, seat, action)
    elif isinstance(action, BuyVowel):
        events = _handle_buy_vowel(new_session, seat, action)
    elif isinstance(action, SolvePuzzle):
        events = _handle_solve_puzzle(new_session, seat, action)
    else:
        raise IllegalAction(f"Unknown action: {action!r}")

    new_session.game_state.is_spinning = False
    new_session.recent_action_ids = (new_session.recent_action_ids + [action.action_id])[-RECENT_ACTION_IDS:]
    return new_session, events


# ===== Transitions =====

def _pass_turn(session: GameSession, reason: str) -> list[GameEvent]:
    """The only way control changes hands: flip both turn fields, clear the wheel, back to spinning."""
    old_seat = session.current_player
    new_seat = 2 if old_seat == 1 else 1
    old_phase = session.game_state.game_phase

    session.current_player = new_seat
    session.game_state.current_player_turn = new_seat
    session.game_state.wheel_value = 0
    session.game_state.is_spinning = False
    session.game_state.game_phase = "spinning"

    events = [turn_passed(old_seat, new_seat, reason)]
    if old_phase != "spinning":
        events.append(phase_changed(old_phase, "spinning", new_seat))
    return events


def _set_phase(session: GameSession, new_phase: str) -> list[GameEvent]:
    old_phase = session.game_state.game_phase
    if old_phase == new_phase:
        return []
    session.game_state.game_phase = new_phase
    return [phase_changed(old_phase, new_phase, session.current_player)]


def _board_complete(session: GameSession) -> bool:
    return session.puzzle.letters() <= session.game_state.revealed_letters


def _complete_round(session: GameSession, seat: int, by_reveal: bool) -> list[GameEvent]:
    """Reveal everything and bank the solver's round score."""
    gs = session.game_state
    all_letters = session.puzzle.letters()
    gs.revealed_letters |= all_letters
    gs.guessed_letters |= all_letters
    gs.wheel_value = 0
    gs.puzzle_solved = True

    transferred = session.round_score(seat)
    session.set_match_score(seat, round_transfer(session.match_score(seat), transferred))
    session.add_round_won(seat)
    session.player1_round_score = 0
    session.player2_round_score = 0
    session.status = "round_complete"

    events = [puzzle_solved(seat, session.puzzle.phrase, by_reveal=by_reveal)]
    events.extend(_set_phase(session, "round_end"))
    events.append(round_completed(seat, transferred, {
        1: session.player1_score,
        2: session.player2_score,
    }))
    return events


def _handle_spin(session: GameSession, seat: int, action: Spin) -> list[GameEvent]:
    value = action.value
    events = [wheel_spun(seat, value)]
    session.game_state.wheel_value = value

    if value == BANKRUPT:
        old_score = session.round_score(seat)
        new_score = bankrupt_penalty(old_score)
        session.set_round_score(seat, new_score)
        events.append(went_bankrupt(seat, old_score))
        if old_score != new_score:
            events.append(round_score_changed(seat, old_score, new_score, "bankrupt"))
        events.extend(_pass_turn(session, "bankrupt"))
        return events

    if value == LOSE_TURN:
        events.extend(_pass_turn(session, "lose_turn"))
        return events

    events.extend(_set_phase(session, "guessing"))
    return events


def _handle_guess_letter(session: GameSession, seat: int, action: GuessLetter) -> list[GameEvent]:
    gs = session.game_state
    letter = action.letter
    gs.guessed_letters.add(letter)

    occurrences = session.puzzle.occurrences(letter)
    if occurrences == 0:
        events = [letter_missed(seat, letter)]
        events.extend(_pass_turn(session, "missed_letter"))
        return events

    gs.revealed_letters.add(letter)
    old_score = session.round_score(seat)
    new_score = old_score + letter_guess_reward(gs.wheel_value, occurrences)
    session.set_round_score(seat, new_score)
    gs.wheel_value = 0

    events = [
        letter_revealed(seat, letter, occurrences),
        round_score_changed(seat, old_score, new_score, "letter"),
    ]
    if _board_complete(session):
        events.extend(_complete_round(session, seat, by_reveal=True))
    else:
        # Correct guess keeps the turn
        events.extend(_set_phase(session, "spinning"))
    return events


def _handle_buy_vowel(session: GameSession, seat: int, action: BuyVowel) -> list[GameEvent]:
    gs = session.game_state
    vowel = action.vowel

    # Cost is paid whether or not the vowel is in the phrase
    old_score = session.round_score(seat)
    new_score = vowel_purchase(old_score)
    session.set_round_score(seat, new_score)
    gs.guessed_letters.add(vowel)

    events = [
        vowel_bought(seat, vowel, old_score - new_score),
        round_score_changed(seat, old_score, new_score, "vowel"),
    ]

    occurrences = session.puzzle.occurrences(vowel)
    if occurrences == 0:
        events.append(letter_missed(seat, vowel))
        events.extend(_pass_turn(session, "missed_vowel"))
        return events

    gs.revealed_letters.add(vowel)
    events.append(letter_revealed(seat, vowel, occurrences))
    if _board_complete(session):
        events.extend(_complete_round(session, seat, by_reveal=True))
    # Otherwise stay in guessing with the same wheel value pending
    return events


def _handle_solve_puzzle(session: GameSession, seat: int, action: SolvePuzzle) -> list[GameEvent]:
    if session.puzzle.matches(action.solution):
        return _complete_round(session, seat, by_reveal=False)

    events = [solve_failed(seat, action.solution)]
    events.extend(_pass_turn(session, "wrong_solve"))
    return events


def replay_from_moves(
    initial_session: GameSession,
    moves: list[MoveLogEntry],
) -> tuple[GameSession, list[GameEvent]]:
    """
    Replay a move log from an initial session.
    The move log is audit-only; this rebuilds what it describes.

    Returns:
        Tuple of (final_session, all_events) after all moves applied
    """
    current = initial_session.copy()
    all_events: list[GameEvent] = []

    for move in moves:
        action = action_from_move(move.move_type, move.actor_id, move.move_data, move.action_id)
        current, events = apply_action(current, action)
        all_events.extend(events)

    return current, all_events
