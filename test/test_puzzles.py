import json
import random

import pytest

from wheel_of_destiny.engine.puzzles import PuzzleBank, load_puzzle_bank
from wheel_of_destiny.engine.state import Puzzle


def test_default_catalogue_skips_inactive():
    bank = load_puzzle_bank()
    assert len(bank) == 14
    assert "LALIBELA CHURCHES" not in bank.phrases
    assert bank.get("p001").phrase == "GREAT ZIMBABWE"
    assert "Landmark" in bank.categories()


def test_choose_filters_and_is_seedable():
    bank = load_puzzle_bank()
    a = bank.choose(random.Random(5), category="person")
    b = bank.choose(random.Random(5), category="person")
    assert a == b
    assert a.category == "Person"
    with pytest.raises(LookupError):
        bank.choose(category="Nope")


def test_load_custom_file(tmp_path):
    path = tmp_path / "p.json"
    path.write_text(json.dumps({"puzzles": [
        {"id": "a", "category": "Thing", "phrase": "kente cloth"},
        {"id": "b", "category": "Thing", "phrase": "!!!"},
    ]}))
    bank = load_puzzle_bank(path)
    assert bank.phrases == ["KENTE CLOTH"]


def test_bank_get_missing():
    assert PuzzleBank([Puzzle("NILE DELTA", "Place", id="x")]).get("y") is None
