"""
Tests for the board engine.

Tests:
- Size clamping and reset layout
- Line compaction / merge in every direction
- Change detection, spawning and counters
- Locked cells
- Terminal detection
"""

import random

import pytest

from game_core import BoardEngine, Direction, MAX_SIZE, MIN_SIZE, StepReport

from conftest import FixedRng


def nonzero(engine: BoardEngine):
    return [v for v in engine.values() if v != 0]


class TestConfigure:

    @pytest.mark.parametrize("requested,expected", [(1, 2), (-5, 2), (2, 2), (5, 5), (8, 8), (99, 8)])
    def test_size_is_clamped(self, requested, expected):
        engine = BoardEngine(size=requested, seed=0)
        assert engine.size == expected
        assert len(engine.cells) == expected * expected

    def test_configure_resets_counters(self, make_engine):
        engine = make_engine(values=[2, 2] + [0] * 14)
        engine.step(Direction.LEFT)
        assert engine.moves == 1

        engine.configure(99)
        assert engine.size == MAX_SIZE
        assert engine.score == 0
        assert engine.moves == 0
        assert len(nonzero(engine)) == 2

    def test_bounds(self):
        assert MIN_SIZE == 2
        assert MAX_SIZE == 8


class TestReset:

    @pytest.mark.parametrize("size", range(2, 9))
    def test_two_tiles_spawned(self, size):
        engine = BoardEngine(size=size, seed=size)
        tiles = nonzero(engine)
        assert len(tiles) == 2
        assert all(v in (2, 4) for v in tiles)
        assert len(engine.last.spawned_ids) == 2

    def test_reset_clears_step_records(self, make_engine):
        engine = make_engine(values=[2, 2] + [0] * 14)
        engine.step(Direction.LEFT)
        engine.reset()

        assert engine.score == 0
        assert engine.moves == 0
        assert engine.last.direction is None
        assert engine.last.merged_ids == ()
        assert not engine.last.changed

    def test_identities_are_unique_and_fresh(self, engine):
        first = set(c.id for c in engine.cells)
        assert len(first) == 16

        engine.reset()
        second = set(c.id for c in engine.cells)
        assert len(second) == 16
        assert first.isdisjoint(second)


class TestMerge:

    def test_end_to_end_left(self, make_engine):
        engine = make_engine(values=[2, 2, 0, 0] + [0] * 12)
        report = engine.step(Direction.LEFT)

        assert engine.values()[0] == 4
        assert engine.score == 4
        assert engine.moves == 1
        assert report.changed
        assert report.score_gained == 4
        assert len(report.spawned_ids) == 1

        spawned_at = engine.index_of(report.spawned_ids[0])
        assert spawned_at not in (None, 0)
        assert engine.values()[spawned_at] in (2, 4)
        assert sum(engine.values()) in (6, 8)

    def test_single_pass_greedy(self, make_engine):
        engine = make_engine(values=[2, 2, 2, 2] + [0] * 12)
        engine.step(Direction.LEFT)

        assert engine.values()[:2] == [4, 4]
        assert 8 not in engine.values()
        assert engine.score == 8

    def test_merged_value_not_merged_again(self, make_engine):
        engine = make_engine(values=[4, 2, 2, 0] + [0] * 12)
        engine.step(Direction.LEFT)

        assert engine.values()[:2] == [4, 4]
        assert engine.score == 4

    def test_right_writes_back_reversed(self, make_engine):
        engine = make_engine(values=[2, 2, 4, 0] + [0] * 12)
        engine.step(Direction.RIGHT)

        assert engine.values()[2:4] == [4, 4]
        assert engine.score == 4

    def test_up_and_down(self, make_engine):
        column = [2, 0, 2]
        values = [column[r] if c == 1 else 0 for r in range(3) for c in range(3)]

        up = make_engine(size=3, values=values)
        up.step(Direction.UP)
        assert up.values()[1] == 4

        down = make_engine(size=3, values=values)
        down.step(Direction.DOWN)
        assert down.values()[7] == 4

    def test_merge_reports_both_identities(self, make_engine):
        engine = make_engine(values=[2, 2, 0, 0] + [0] * 12)
        a, b = engine.cells[0].id, engine.cells[1].id

        report = engine.step(Direction.LEFT)

        assert report.merged_ids == (a, b)
        assert len(report.merge_result_ids) == 1
        assert engine.cells[0].id == report.merge_result_ids[0]
        assert engine.cells[0].id not in (a, b)

    def test_sliding_tile_keeps_identity(self, make_engine):
        engine = make_engine(values=[0, 0, 0, 8] + [0] * 12)
        tile_id = engine.cells[3].id

        report = engine.step(Direction.LEFT)

        assert engine.cells[0].id == tile_id
        assert report.merged_ids == ()


class TestStepBookkeeping:

    def test_noop_step_does_not_count(self, make_engine):
        values = [2, 0, 0, 0, 4, 0, 0, 0] + [0] * 8
        engine = make_engine(values=values)

        report = engine.step(Direction.LEFT)

        assert not report.changed
        assert engine.values() == values
        assert engine.moves == 0
        assert report.spawned_ids == ()
        assert report.direction is Direction.LEFT

    def test_records_are_overwritten(self, make_engine):
        engine = make_engine(values=[2, 2, 0, 0] + [0] * 12)
        engine.step(Direction.LEFT)
        assert engine.last.merged_ids

        engine.load([2, 0, 0, 0] + [0] * 12)
        engine.step(Direction.LEFT)
        assert engine.last.merged_ids == ()
        assert engine.last.spawned_ids == ()

    def test_on_settled_receives_final_report(self, make_engine):
        engine = make_engine(values=[2, 2, 0, 0] + [0] * 12)
        seen = []

        def on_settled(report: StepReport):
            seen.append((report, engine.moves, engine.score))

        report = engine.step(Direction.LEFT, on_settled=on_settled)

        assert seen == [(report, 1, 4)]

    def test_value_conservation(self):
        engine = BoardEngine(size=4, rng=random.Random(99))
        directions = list(Direction)
        picker = random.Random(5)
        for _ in range(200):
            if not engine.can_move():
                break
            before = sum(engine.values())
            report = engine.step(picker.choice(directions))
            spawned = sum(engine.values()[engine.index_of(i)] for i in report.spawned_ids)
            assert sum(engine.values()) - spawned == before
            assert all(v == 0 or (v >= 2 and v & (v - 1) == 0) for v in engine.values())

    def test_spawn_value_roll(self, make_engine):
        engine = make_engine(values=[2, 2, 0, 0] + [0] * 12, rng=FixedRng(roll=0.10))
        engine.step(Direction.LEFT)
        # FixedRng 取第一个空位
        assert engine.values()[1] == 4

        engine = make_engine(values=[2, 2, 0, 0] + [0] * 12, rng=FixedRng(roll=0.15))
        engine.step(Direction.LEFT)
        assert engine.values()[1] == 2

    def test_load_rejects_wrong_length(self, engine):
        with pytest.raises(ValueError):
            engine.load([2, 2, 2])


class TestLockedCells:

    def test_locked_cell_stays_at_trailing_edge(self, make_engine):
        engine = make_engine(values=[2, 2, 0, 8] + [0] * 12, locked=[3])
        locked_id = engine.cells[3].id

        engine.step(Direction.LEFT)

        assert engine.values()[0] == 4
        assert engine.cells[3].id == locked_id
        assert engine.cells[3].value == 8
        assert engine.cells[3].locked

    def test_locked_cell_never_merges(self, make_engine):
        engine = make_engine(values=[8, 0, 0, 8] + [0] * 12, locked=[3])

        report = engine.step(Direction.LEFT)

        assert not report.changed
        assert engine.score == 0
        assert engine.values()[:4] == [8, 0, 0, 8]

    def test_locked_cell_bottom_row_moving_up(self, make_engine):
        values = [0, 0, 0,
                  2, 0, 0,
                  16, 0, 0]
        engine = make_engine(size=3, values=values, locked=[6])

        engine.step(Direction.UP)

        assert engine.values()[0] == 2
        assert engine.cells[6].value == 16
        assert engine.cells[6].locked

    @pytest.mark.parametrize("direction,locked_at,tile_at,locked_end,tile_end", [
        # 行 [2,0,0,8L]
        (Direction.LEFT, 3, 0, 3, 0),
        (Direction.RIGHT, 3, 0, 0, 3),
        # 第 0 列，锁定格在上或下
        (Direction.UP, 0, 12, 12, 0),
        (Direction.DOWN, 12, 0, 0, 12),
    ])
    def test_locked_cell_relocated_to_trailing_end(self, make_engine, direction, locked_at, tile_at,
                                                   locked_end, tile_end):
        # 锁定格总被排到该线的末端（逆着移动方向的一侧），不在末端时会被挪过去
        values = [0] * 16
        values[locked_at] = 8
        values[tile_at] = 2
        engine = make_engine(values=values, locked=[locked_at])
        locked_id = engine.cells[locked_at].id

        engine.step(direction)

        assert engine.index_of(locked_id) == locked_end
        assert engine.cells[locked_end].value == 8
        assert engine.cells[locked_end].locked
        assert engine.values()[tile_end] == 2

    def test_spawn_skips_locked_empty_cell(self, make_engine):
        engine = make_engine(size=2, values=[2, 2, 8, 0], locked=[3])

        report = engine.step(Direction.LEFT)

        assert report.changed
        assert engine.values()[3] == 0
        assert engine.values()[1] in (2, 4)


class TestTerminal:

    def test_adjacent_pair_allows_move(self, make_engine):
        # 两个 2 纵向相邻
        engine = make_engine(size=2, values=[2, 4, 2, 8])
        assert engine.can_move()

    def test_diagonal_pair_is_terminal(self, make_engine):
        # 对角线上的相同值不算相邻
        engine = make_engine(size=2, values=[2, 4, 4, 2])
        assert not engine.can_move()
        assert engine.legal_directions() == []

    def test_full_board_without_pairs(self, make_engine):
        engine = make_engine(size=2, values=[2, 4, 8, 16])
        assert not engine.can_move()
        assert engine.legal_directions() == []

    def test_empty_cell_allows_move(self, make_engine):
        engine = make_engine(size=2, values=[2, 4, 8, 0])
        assert engine.can_move()

    def test_locked_pair_counts_as_movable(self, make_engine):
        # 相邻判断不排除锁定格，与合并规则不一致，保留该行为
        engine = make_engine(size=2, values=[2, 4, 8, 8], locked=[2, 3])
        assert engine.can_move()

        report = engine.step(Direction.LEFT)
        assert not report.changed
        assert engine.score == 0

    def test_max_value(self, make_engine):
        assert make_engine(size=2, values=[0, 0, 0, 0]).max_value() == 0
        assert make_engine(size=2, values=[2, 64, 8, 0]).max_value() == 64


class TestLegalDirections:

    def test_does_not_mutate_or_consume_randomness(self, make_engine):
        rng = random.Random(3)
        engine = make_engine(values=[2, 2, 0, 0] + [0] * 12, rng=rng)
        values = engine.values()
        rng_state = rng.getstate()

        legal = engine.legal_directions()

        assert set(legal) == {Direction.RIGHT, Direction.DOWN, Direction.LEFT}
        assert engine.values() == values
        assert rng.getstate() == rng_state
        assert engine.moves == 0
