from __future__ import annotations
from typing import Dict, List, Optional, Tuple
import random

import numpy as np

from game_core import BoardEngine, BoardState, Direction, StepReport
from feedback import FeedbackDispatcher
from prefs_store import PointsTracker


class GameSession:
    """
    Env 风格的会话接口：
    - reset() -> state
    - step(direction) -> (state, gained, done, info)
    - get_state() / as_array() / legal_directions() / is_over()
    - score / best_score 属性
    每次 step 返回前，积分记录与反馈都已按最新棋盘处理完毕。
    """

    def __init__(
        self,
        size: int = 4,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        tracker: Optional[PointsTracker] = None,
        feedback: Optional[FeedbackDispatcher] = None,
    ):
        self.engine = BoardEngine(size=size, seed=seed, rng=rng)
        self.tracker = tracker if tracker is not None else PointsTracker()
        self.feedback = feedback if feedback is not None else FeedbackDispatcher()

    @property
    def size(self) -> int:
        return self.engine.size

    @property
    def score(self) -> int:
        return self.engine.score

    @property
    def best_score(self) -> int:
        return self.tracker.best_score

    def configure(self, size: int) -> BoardState:
        self.engine.configure(size)
        return self._after_reset()

    def reset(self) -> BoardState:
        self.engine.reset()
        return self._after_reset()

    def get_state(self) -> BoardState:
        return self.engine.state()

    def as_array(self) -> np.ndarray:
        return np.array(self.engine.values(), dtype=np.int64).reshape(self.size, self.size)

    def step(self, direction: Direction) -> Tuple[BoardState, int, bool, Dict]:
        report = self.engine.step(direction)
        self.tracker.set(self.engine.score)
        done = not self.engine.can_move()
        cues = self.feedback.after_step(report, can_move=not done)
        info = {
            "score": self.engine.score,
            "moves": self.engine.moves,
            "max_value": self.engine.max_value(),
            "changed": report.changed,
            "cues": cues,
        }
        return self.get_state(), report.score_gained, done, info

    def last_report(self) -> StepReport:
        return self.engine.last

    def legal_directions(self) -> List[Direction]:
        return self.engine.legal_directions()

    def is_over(self) -> bool:
        return not self.engine.can_move()

    def _after_reset(self) -> BoardState:
        self.tracker.reset_run()
        self.feedback.after_reset()
        return self.get_state()
