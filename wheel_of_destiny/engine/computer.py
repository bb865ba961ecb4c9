"""
Computer opponent decision policy.
A strategy object that looks at a PlayerView, exactly what a human client
sees, and returns one action built with the same factories a human client
uses. Difficulty changes thresholds, never the decision structure.
"""

import random
from dataclasses import dataclass

from wheel_of_destiny.engine import CONSONANTS, VOWEL_COST, VOWELS
from wheel_of_destiny.engine.actions import Action, buy_vowel, guess_letter, solve_puzzle, spin
from wheel_of_destiny.engine.queries import HIDDEN, PlayerView, unguessed_consonants, unguessed_vowels

# English letters, most frequent first
LETTER_FREQUENCY = "ETAOINSHRDLCUMWFGYPBVKJXQZ"
CONSONANT_ORDER = [c for c in LETTER_FREQUENCY if c in CONSONANTS]
VOWEL_ORDER = [v for v in LETTER_FREQUENCY if v in VOWELS]


@dataclass(frozen=True)
class ComputerProfile:
    """Tunable thresholds for one difficulty level."""
    # Attempt a solve once this share of letter positions is showing
    solve_threshold: float
    # Chance of buying a vowel when one is affordable
    vowel_buy_probability: float
    # Chance of a non-optimal consonant pick
    random_letter_probability: float
    # How far down the frequency order a non-optimal pick may reach (None = anywhere)
    random_pick_window: int | None
    # Seconds to "think" before acting (min, max)
    thinking_time: tuple[float, float]


DIFFICULTY_PROFILES: dict[str, ComputerProfile] = {
    "easy": ComputerProfile(
        solve_threshold=0.8,
        vowel_buy_probability=0.1,
        random_letter_probability=0.6,
        random_pick_window=None,
        thinking_time=(1.0, 2.0),
    ),
    "medium": ComputerProfile(
        solve_threshold=0.6,
        vowel_buy_probability=0.2,
        random_letter_probability=0.25,
        random_pick_window=3,
        thinking_time=(1.5, 3.0),
    ),
    "hard": ComputerProfile(
        solve_threshold=0.4,
        vowel_buy_probability=0.3,
        random_letter_probability=0.0,
        random_pick_window=1,
        thinking_time=(0.5, 1.5),
    ),
}


def computer_display_name(difficulty: str) -> str:
    return f"AI {difficulty.capitalize()}"


def fits_board(candidate: str, board: str, revealed: frozenset[str], missed: frozenset[str]) -> bool:
    """
    True if candidate could be the phrase behind board.
    Hidden cells must hold letters that are neither revealed nor known misses.
    """
    candidate = candidate.upper()
    if len(candidate) != len(board):
        return False
    for cell, ch in zip(board, candidate):
        if cell == HIDDEN:
            if not ("A" <= ch <= "Z") or ch in revealed or ch in missed:
                return False
        elif cell != ch:
            return False
    return True


class ComputerPlayer:
    """
    Decision policy for the computer seat.

    phrase_book is the player's general knowledge: phrases it can recognise
    from a partly revealed board. It never sees the session's puzzle.
    """

    def __init__(
        self,
        difficulty: str = "medium",
        rng: random.Random | None = None,
        phrase_book: list[str] | tuple[str, ...] = (),
    ):
        if difficulty not in DIFFICULTY_PROFILES:
            raise ValueError(f"Unknown difficulty: {difficulty}")
        self.difficulty = difficulty
        self.profile = DIFFICULTY_PROFILES[difficulty]
        self.rng = rng or random.Random()
        self.phrase_book = [p.upper() for p in phrase_book]

    @property
    def name(self) -> str:
        return computer_display_name(self.difficulty)

    def thinking_time(self) -> float:
        lo, hi = self.profile.thinking_time
        return self.rng.uniform(lo, hi)

    def best_guess(self, view: PlayerView) -> str | None:
        """The first phrase-book entry consistent with the board, if any."""
        for candidate in self.phrase_book:
            if fits_board(candidate, view.board, view.revealed_letters, view.missed_letters):
                return candidate
        return None

    def choose_consonant(self, view: PlayerView) -> str | None:
        remaining = set(unguessed_consonants(view))
        ordered = [c for c in CONSONANT_ORDER if c in remaining]
        if not ordered:
            return None
        if self.rng.random() < self.profile.random_letter_probability:
            window = self.profile.random_pick_window
            pool = ordered if window is None else ordered[:window]
            return self.rng.choice(pool)
        return ordered[0]

    def choose_vowel(self, view: PlayerView) -> str | None:
        remaining = set(unguessed_vowels(view))
        return next((v for v in VOWEL_ORDER if v in remaining), None)

    def decide(self, view: PlayerView) -> Action | None:
        """
        Pick one action for the current view, or None when it is not our turn.

        Guessing phase, in order: solve when enough of the board shows and a
        phrase fits; maybe buy the most frequent vowel; otherwise call the
        best consonant.
        """
        if not view.is_my_turn:
            return None

        actor = view.actor_id
        if view.game_phase == "spinning":
            return spin(actor)
        if view.game_phase != "guessing":
            return None

        best = self.best_guess(view)
        if best and view.revealed_fraction >= self.profile.solve_threshold:
            return solve_puzzle(actor, best)

        can_buy = view.my_round_score >= VOWEL_COST
        vowel = self.choose_vowel(view)
        if can_buy and vowel and self.rng.random() < self.profile.vowel_buy_probability:
            return buy_vowel(actor, vowel)

        consonant = self.choose_consonant(view)
        if consonant:
            return guess_letter(actor, consonant)

        # No consonants left
        if can_buy and vowel:
            return buy_vowel(actor, vowel)
        return solve_puzzle(actor, best or view.board)
