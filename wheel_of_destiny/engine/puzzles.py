"""
Puzzle catalogue.
Puzzles live in a JSON file ({"puzzles": [...]}) so they can be edited
without touching code. Only active puzzles are dealt into new sessions.
"""

import json
import random
from pathlib import Path

from wheel_of_destiny.engine.state import Puzzle


def _default_puzzles_file() -> Path:
    """Single place for default: wheel_of_destiny.config.PUZZLES_FILE."""
    from wheel_of_destiny.config import PUZZLES_FILE
    return PUZZLES_FILE


class PuzzleBank:
    """The set of puzzles available to new sessions."""

    def __init__(self, puzzles: list[Puzzle]):
        self._puzzles = list(puzzles)

    def __len__(self) -> int:
        return len(self._puzzles)

    def __iter__(self):
        return iter(self._puzzles)

    @property
    def phrases(self) -> list[str]:
        return [p.phrase for p in self._puzzles]

    def categories(self) -> list[str]:
        return sorted({p.category for p in self._puzzles})

    def get(self, puzzle_id: str) -> Puzzle | None:
        return next((p for p in self._puzzles if p.id == puzzle_id), None)

    def choose(
        self,
        rng: random.Random | None = None,
        category: str | None = None,
        difficulty: int | None = None,
    ) -> Puzzle:
        """Pick a random puzzle, optionally filtered by category and difficulty."""
        candidates = [
            p for p in self._puzzles
            if (category is None or p.category.lower() == category.lower())
            and (difficulty is None or p.difficulty == difficulty)
        ]
        if not candidates:
            raise LookupError(
                f"No puzzles available (category={category!r}, difficulty={difficulty!r})"
            )
        return (rng or random).choice(candidates)


def load_puzzle_bank(path: Path | None = None) -> PuzzleBank:
    """Load active puzzles from the JSON catalogue."""
    path = path or _default_puzzles_file()
    with open(path, "r") as f:
        raw = json.load(f)
    entries = raw.get("puzzles", []) if isinstance(raw, dict) else raw
    puzzles = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("is_active", True):
            continue
        puzzle = Puzzle.from_dict(entry)
        if puzzle.normalized:
            puzzles.append(puzzle)
    return PuzzleBank(puzzles)
