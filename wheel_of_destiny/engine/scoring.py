"""
Scoring rules.
Pure, deterministic functions with no hidden state. The only randomness,
the wheel draw, takes its random source as an argument.
"""

import random

from wheel_of_destiny.engine import VOWEL_COST
from wheel_of_destiny.engine.errors import InsufficientFunds
from wheel_of_destiny.engine.state import BANKRUPT, LOSE_TURN, WheelValue

# Wheel faces in the order they appear around the wheel
WHEEL_FACES: tuple[WheelValue, ...] = (
    100, 200, 300, 400, 500, BANKRUPT, 600, 700, 800, LOSE_TURN, 900, 1000,
)

CASH_VALUES: tuple[int, ...] = tuple(v for v in WHEEL_FACES if isinstance(v, int))


def is_penalty(value: WheelValue) -> bool:
    return value in (BANKRUPT, LOSE_TURN)


def is_cash(value: WheelValue) -> bool:
    """True for a positive dollar amount (bool is not a dollar amount)."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def spin_outcome(rng: random.Random | None = None) -> WheelValue:
    """Draw one face from the wheel. Pass a seeded Random for repeatable draws."""
    rng = rng or random
    return rng.choice(WHEEL_FACES)


def letter_guess_reward(value: int, occurrences: int) -> int:
    """Points for a correct consonant: wheel value per occurrence."""
    return value * occurrences


def vowel_purchase(round_score: int, cost: int = VOWEL_COST) -> int:
    """Return the round score after paying for a vowel, or raise InsufficientFunds."""
    if round_score < cost:
        raise InsufficientFunds(round_score, cost)
    return round_score - cost


def bankrupt_penalty(round_score: int) -> int:
    """BANKRUPT wipes the round score whatever it was."""
    return 0


def round_transfer(match_score: int, round_score: int) -> int:
    """A correct solve banks the round score verbatim."""
    return match_score + round_score


class FixedSpinner:
    """
    Spin source that replays a fixed sequence of faces, cycling when exhausted.
    Lets tests and demos script the wheel.
    """

    def __init__(self, *values: WheelValue):
        if not values:
            raise ValueError("FixedSpinner needs at least one value")
        self._values = list(values)
        self._index = 0

    def __call__(self) -> WheelValue:
        value = self._values[self._index % len(self._values)]
        self._index += 1
        return value


class RandomSpinner:
    """Spin source backed by a (optionally seeded) random.Random."""

    def __init__(self, seed: int | None = None):
        self._rng = random.Random(seed)

    def __call__(self) -> WheelValue:
        return spin_outcome(self._rng)
