from __future__ import annotations
from dataclasses import dataclass
from itertools import count
from typing import List, Optional, Tuple
import math
import time

import numpy as np


PALETTE = [
    (117, 199, 250),
    (158, 107, 250),
    (250, 140, 173),
    (107, 235, 184),
    (250, 209, 102),
    (255, 255, 255),
    (115, 184, 242),
]
MAX_SPARKS_PER_BURST = 48


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def pop_scale(t: float) -> float:
    return 1.0 + 0.10 * math.sin(_clamp01(t) * math.pi)


def ease_out(x: float) -> float:
    t = _clamp01(x)
    return 1 - (1 - t) ** 3


def ease_in_out(x: float) -> float:
    t = _clamp01(x)
    return t * t * (3 - 2 * t)


@dataclass
class Spark:
    id: int
    origin: Tuple[float, float]
    drift: Tuple[float, float]
    size: float
    life: float
    born_at: float
    angle: float
    spin: float
    tint: Tuple[int, int, int]

    def progress(self, now: float) -> float:
        return _clamp01((now - self.born_at) / max(0.001, self.life))

    def is_alive(self, now: float) -> bool:
        return self.progress(now) < 1

    def position(self, now: float) -> Tuple[float, float]:
        k = ease_out(self.progress(now))
        return self.origin[0] + self.drift[0] * k, self.origin[1] + self.drift[1] * k

    def rotation(self, now: float) -> float:
        return self.angle + self.spin * (now - self.born_at)


class SparkEmitter:
    def __init__(self, seed: Optional[int] = None):
        self.np_rng = np.random.default_rng(seed)
        self.sparks: List[Spark] = []
        self._ids = count(1)

    def burst(
        self,
        origin: Tuple[float, float],
        count: int = 16,
        spread: float = 120,
        life: float = 0.8,
        now: Optional[float] = None,
    ) -> List[Spark]:
        n = max(1, min(MAX_SPARKS_PER_BURST, count))
        now = time.monotonic() if now is None else now

        angles = np.arange(n) / n * (2 * np.pi)
        radii = self.np_rng.uniform(spread * 0.25, spread, size=n)
        sizes = self.np_rng.uniform(5, 10, size=n)
        lives = life * self.np_rng.uniform(0.85, 1.15, size=n)
        tints = self.np_rng.integers(0, len(PALETTE), size=n)
        rotations = self.np_rng.uniform(0, 360, size=n)
        spins = self.np_rng.uniform(-140, 140, size=n)

        born = []
        for i in range(n):
            spark = Spark(
                id=next(self._ids),
                origin=(float(origin[0]), float(origin[1])),
                drift=(float(np.cos(angles[i]) * radii[i]), float(np.sin(angles[i]) * radii[i])),
                size=float(sizes[i]),
                life=float(lives[i]),
                born_at=now,
                angle=float(rotations[i]),
                spin=float(spins[i]),
                tint=PALETTE[int(tints[i])],
            )
            born.append(spark)
        self.sparks.extend(born)
        return born

    def tick(self, now: Optional[float] = None) -> int:
        now = time.monotonic() if now is None else now
        self.sparks = [s for s in self.sparks if s.is_alive(now)]
        return len(self.sparks)

    def clear(self) -> None:
        self.sparks = []
