"""
Pytest fixtures shared by the board engine and shell tests.
"""

import random

import pytest

from game_core import BoardEngine
from feedback import AudioCore, FeedbackDispatcher, HapticsCore
from prefs_store import PointsTracker, PrefsStore


class FixedRng:
    """Picks the first candidate and returns a fixed roll."""

    def __init__(self, roll: float = 0.5):
        self.roll = roll

    def choice(self, seq):
        return seq[0]

    def random(self) -> float:
        return self.roll


@pytest.fixture
def fixed_rng() -> FixedRng:
    return FixedRng()


@pytest.fixture
def engine() -> BoardEngine:
    """4x4 engine with a seeded generator."""
    return BoardEngine(size=4, rng=random.Random(1234))


@pytest.fixture
def make_engine():
    def _make(size: int = 4, values=None, locked=(), rng=None) -> BoardEngine:
        e = BoardEngine(size=size, rng=rng if rng is not None else random.Random(7))
        if values is not None:
            e.load(values, locked=locked)
        return e
    return _make


@pytest.fixture
def haptic_log():
    return []


@pytest.fixture
def dispatcher(haptic_log) -> FeedbackDispatcher:
    return FeedbackDispatcher(HapticsCore(sink=haptic_log.append), AudioCore(sound_dir=None))


@pytest.fixture
def tracker(tmp_path) -> PointsTracker:
    return PointsTracker(PrefsStore(str(tmp_path / "prefs.json")))
