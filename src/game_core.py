from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from itertools import count
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
import random


MIN_SIZE = 2
MAX_SIZE = 8
START_TILES = 2
FOUR_PROBABILITY = 0.15


class Direction(Enum):
    LEFT = 0
    RIGHT = 1
    UP = 2
    DOWN = 3


@dataclass
class Cell:
    id: int
    value: int = 0
    locked: bool = False


@dataclass(frozen=True)
class StepReport:
    direction: Optional[Direction] = None
    changed: bool = False
    score_gained: int = 0
    spawned_ids: Tuple[int, ...] = ()
    merged_ids: Tuple[int, ...] = ()
    # 合并后新生成的格子，供渲染层定位特效
    merge_result_ids: Tuple[int, ...] = ()


@dataclass(frozen=True)
class BoardState:
    size: int
    values: Tuple[int, ...]
    locked: Tuple[bool, ...]
    ids: Tuple[int, ...]
    score: int
    moves: int
    last: StepReport = field(default_factory=StepReport)

    def rows(self) -> List[List[int]]:
        return [list(self.values[r * self.size:(r + 1) * self.size]) for r in range(self.size)]


@dataclass
class _LineResult:
    cells: List[Cell]
    gained: int
    merged_ids: List[int]
    created_ids: List[int]


class BoardEngine:
    """
    方块合并棋盘引擎：
    - configure(size) / reset()
    - step(direction) -> StepReport
    - can_move() / max_value() / legal_directions()
    - state() 返回不可变快照，调用方在每次 step 之后轮询
    """

    def __init__(self, size: int = 4, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        self.rng = rng if rng is not None else random.Random(seed)
        self._ids = count(1)
        self.size = MIN_SIZE
        self.cells: List[Cell] = []
        self.score: int = 0
        self.moves: int = 0
        self.last = StepReport()
        self.configure(size)

    # ---- 生命周期 ----

    def configure(self, size: int) -> None:
        self.size = max(MIN_SIZE, min(MAX_SIZE, int(size)))
        self.reset()

    def reset(self) -> None:
        self.score = 0
        self.moves = 0
        self.cells = [self._new_cell() for _ in range(self.size * self.size)]
        spawned = self._spawn(START_TILES)
        self.last = StepReport(spawned_ids=tuple(spawned))

    def load(self, values: Sequence[int], locked: Iterable[int] = ()) -> None:
        """按行优先顺序写入棋盘布局（测试与存档恢复用），计数器清零。"""
        n = self.size * self.size
        if len(values) != n:
            raise ValueError(f"expected {n} values for a {self.size}x{self.size} board, got {len(values)}")
        locked_idx = set(locked)
        self.cells = [self._new_cell(int(v), i in locked_idx) for i, v in enumerate(values)]
        self.score = 0
        self.moves = 0
        self.last = StepReport()

    # ---- 移动 ----

    def step(self, direction: Direction, on_settled: Optional[Callable[[StepReport], None]] = None) -> StepReport:
        before = self.values()
        cells, gained, merged, created = self._apply(direction, self.cells)
        self.cells = cells
        self.score += gained

        changed = self.values() != before
        spawned: List[int] = []
        if changed:
            self.moves += 1
            spawned = self._spawn(1)

        self.last = StepReport(
            direction=direction,
            changed=changed,
            score_gained=gained,
            spawned_ids=tuple(spawned),
            merged_ids=tuple(merged),
            merge_result_ids=tuple(created),
        )
        if on_settled is not None:
            on_settled(self.last)
        return self.last

    def legal_directions(self) -> List[Direction]:
        # 在副本上模拟，不改动棋盘也不消耗随机数
        before = self.values()
        legal = []
        for d in Direction:
            cells, _, _, _ = self._apply(d, self.cells)
            if [c.value for c in cells] != before:
                legal.append(d)
        return legal

    # ---- 查询 ----

    def can_move(self) -> bool:
        if any(c.value == 0 for c in self.cells):
            return True
        # 锁定格也参与相邻相等判断（沿用原有行为）
        for r in range(self.size):
            for c in range(self.size):
                v = self._value_at(r, c)
                if c + 1 < self.size and v == self._value_at(r, c + 1):
                    return True
                if r + 1 < self.size and v == self._value_at(r + 1, c):
                    return True
        return False

    def max_value(self) -> int:
        return max((c.value for c in self.cells), default=0)

    def values(self) -> List[int]:
        return [c.value for c in self.cells]

    def state(self) -> BoardState:
        return BoardState(
            size=self.size,
            values=tuple(c.value for c in self.cells),
            locked=tuple(c.locked for c in self.cells),
            ids=tuple(c.id for c in self.cells),
            score=self.score,
            moves=self.moves,
            last=self.last,
        )

    def index_of(self, cell_id: int) -> Optional[int]:
        for i, c in enumerate(self.cells):
            if c.id == cell_id:
                return i
        return None

    # ---- 内部 ----

    def _new_cell(self, value: int = 0, locked: bool = False) -> Cell:
        return Cell(id=next(self._ids), value=value, locked=locked)

    def _value_at(self, r: int, c: int) -> int:
        return self.cells[r * self.size + c].value

    def _spawn(self, n: int) -> List[int]:
        spawned: List[int] = []
        for _ in range(n):
            empties = [i for i, c in enumerate(self.cells) if c.value == 0 and not c.locked]
            if not empties:
                break
            idx = self.rng.choice(empties)
            value = 4 if self.rng.random() < FOUR_PROBABILITY else 2
            cell = self._new_cell(value)
            self.cells[idx] = cell
            spawned.append(cell.id)
        return spawned

    def _line_indices(self, direction: Direction, line: int) -> List[int]:
        # 索引 0 为移动方向指向的边；写回时使用同一映射
        s = self.size
        if direction is Direction.LEFT:
            return [line * s + c for c in range(s)]
        if direction is Direction.RIGHT:
            return [line * s + c for c in reversed(range(s))]
        if direction is Direction.UP:
            return [r * s + line for r in range(s)]
        return [r * s + line for r in reversed(range(s))]

    def _apply(self, direction: Direction, cells: List[Cell]) -> Tuple[List[Cell], int, List[int], List[int]]:
        work = list(cells)
        gained = 0
        merged: List[int] = []
        created: List[int] = []
        for i in range(self.size):
            idx = self._line_indices(direction, i)
            result = self._compress_merge([work[j] for j in idx])
            for j, cell in zip(idx, result.cells):
                work[j] = cell
            gained += result.gained
            merged.extend(result.merged_ids)
            created.extend(result.created_ids)
        return work, gained, merged, created

    def _compress_merge(self, line: List[Cell]) -> _LineResult:
        movable = [c for c in line if c.value != 0 and not c.locked]
        locked = [c for c in line if c.locked]

        out: List[Cell] = []
        gained = 0
        merged: List[int] = []
        created: List[int] = []
        i = 0
        while i < len(movable):
            a = movable[i]
            if i + 1 < len(movable) and movable[i + 1].value == a.value:
                cell = self._new_cell(a.value * 2)
                out.append(cell)
                gained += cell.value
                merged.extend([a.id, movable[i + 1].id])
                created.append(cell.id)
                i += 2
            else:
                # 未合并的方块保留身份，便于渲染层追踪平移
                out.append(a)
                i += 1

        while len(out) < self.size - len(locked):
            out.append(self._new_cell())
        out.extend(locked)
        out = out[:self.size]
        while len(out) < self.size:
            out.append(self._new_cell())
        return _LineResult(out, gained, merged, created)
