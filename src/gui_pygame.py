from __future__ import annotations
import math
import sys
from typing import Dict, Optional

import pygame

from api import GameSession
from feedback import AudioCore, FeedbackDispatcher, HapticsCore
from fx import SparkEmitter, pop_scale
from game_core import Direction
from prefs_store import PointsTracker, PrefsStore
from settings import HAPTICS_KEY, MUTE_KEY, ShellConfig


# 颜色配置
BG_COLOR = (8, 10, 20)
GRID_COLOR = (31, 36, 56)
EMPTY_COLOR = (45, 50, 70)
TILE_COLORS = {
    2: (115, 184, 242),
    4: (140, 217, 184),
    8: (250, 191, 102),
    16: (250, 140, 115),
    32: (235, 115, 184),
    64: (184, 138, 250),
}
BIG_TILE_COLOR = (217, 217, 242)
TEXT_DARK = (40, 40, 48)
TEXT_LIGHT = (255, 255, 255)
TEXT_MUTED = (150, 152, 165)

KEY_TO_DIRECTION = {
    pygame.K_LEFT: Direction.LEFT,
    pygame.K_RIGHT: Direction.RIGHT,
    pygame.K_UP: Direction.UP,
    pygame.K_DOWN: Direction.DOWN,
}

# 触觉提示 -> 抖动强度（像素）
SHAKE_STRENGTH = {
    "tap_soft": 2,
    "tap_firm": 4,
    "tap_heavy": 7,
    "select": 1,
    "success": 4,
    "warning": 3,
    "error": 8,
}
SHAKE_MS = 140
POP_MS = 180


def prune_expired(deadlines: Dict[int, int], now_ms: int) -> None:
    for key in [k for k, until in deadlines.items() if now_ms >= until]:
        del deadlines[key]


def run_gui(config: Optional[ShellConfig] = None):
    config = config or ShellConfig()
    pygame.init()
    pygame.display.set_caption("Numeric Mind")

    store = PrefsStore(config.prefs_path)
    muted = store.get_bool(MUTE_KEY, config.muted)
    haptics_on = store.get_bool(HAPTICS_KEY, config.haptics)

    shake = {"strength": 0, "until": 0}

    def on_haptic(cue: str) -> None:
        shake["strength"] = SHAKE_STRENGTH.get(cue, 2)
        shake["until"] = pygame.time.get_ticks() + SHAKE_MS

    haptics = HapticsCore(enabled=haptics_on, sink=on_haptic)
    audio = AudioCore(sound_dir=config.sound_dir, enabled=not muted)
    session = GameSession(
        size=config.size,
        seed=config.seed,
        tracker=PointsTracker(store),
        feedback=FeedbackDispatcher(haptics, audio),
    )
    emitter = SparkEmitter(seed=config.seed)

    cell_size = config.cell_size
    margin = config.margin
    header_h = 110
    clock = pygame.time.Clock()

    font_big = pygame.font.SysFont("arial", 44, bold=True)
    font_mid = pygame.font.SysFont("arial", 26, bold=True)
    font_small = pygame.font.SysFont("arial", 16)

    screen = None
    width = height = 0

    def open_window():
        nonlocal screen, width, height
        width = margin + session.size * (cell_size + margin)
        height = header_h + width
        screen = pygame.display.set_mode((max(width, 360), height))

    open_window()

    auto_mode = False
    last_step_time = 0
    pop_until: Dict[int, int] = {}

    def cell_rect(index: int, ox: int, oy: int) -> pygame.Rect:
        r, c = divmod(index, session.size)
        x = ox + margin + c * (cell_size + margin)
        y = oy + header_h + margin + r * (cell_size + margin)
        return pygame.Rect(x, y, cell_size, cell_size)

    def apply(direction: Direction):
        _, _, _, info = session.step(direction)
        report = session.last_report()
        now_ms = pygame.time.get_ticks()
        for cid in report.merge_result_ids + report.spawned_ids:
            pop_until[cid] = now_ms + POP_MS
        for cid in report.merge_result_ids:
            idx = session.engine.index_of(cid)
            if idx is not None:
                rect = cell_rect(idx, 0, 0)
                emitter.burst(rect.center, count=12, spread=cell_size * 0.9, life=0.6, now=now_ms / 1000.0)
        return info

    def draw():
        now_ms = pygame.time.get_ticks()
        prune_expired(pop_until, now_ms)
        ox = oy = 0
        if now_ms < shake["until"]:
            s = shake["strength"]
            ox = int(s * math.sin(now_ms * 0.09))
            oy = int(s * math.cos(now_ms * 0.11))

        screen.fill(BG_COLOR)
        state = session.get_state()

        score_text = font_mid.render(f"Score: {state.score}", True, TEXT_LIGHT)
        best_text = font_mid.render(f"Best: {session.best_score}", True, TEXT_LIGHT)
        moves_text = font_small.render(
            f"Moves: {state.moves}   Max: {session.engine.max_value()}   "
            f"{'Muted' if not audio.enabled else 'Sound on'}   {'AUTO' if auto_mode else ''}",
            True, TEXT_MUTED,
        )
        hint_text = font_small.render("Arrows: Move | R: Reset | +/-: Size | A: Auto | M: Mute | H: Haptics | Esc: Quit",
                                      True, TEXT_MUTED)
        screen.blit(score_text, (margin, 10))
        screen.blit(best_text, (margin + 200, 10))
        screen.blit(moves_text, (margin, 48))
        screen.blit(hint_text, (margin, header_h - hint_text.get_height() - 8))

        pygame.draw.rect(screen, GRID_COLOR, pygame.Rect(ox, oy + header_h, width, height - header_h))
        for i, val in enumerate(state.values):
            rect = cell_rect(i, ox, oy)
            cid = state.ids[i]
            if cid in pop_until and now_ms < pop_until[cid]:
                t = 1 - (pop_until[cid] - now_ms) / POP_MS
                k = pop_scale(t)
                rect = rect.inflate(int(cell_size * (k - 1)), int(cell_size * (k - 1)))
            color = EMPTY_COLOR if val == 0 else TILE_COLORS.get(val, BIG_TILE_COLOR)
            pygame.draw.rect(screen, color, rect, border_radius=12)
            if state.locked[i]:
                pygame.draw.rect(screen, TEXT_LIGHT, rect, width=2, border_radius=12)
            if val:
                text_color = TEXT_DARK if val <= 4 or val > 64 else TEXT_LIGHT
                # 自适应字号
                if val < 100:
                    f = font_big
                elif val < 1000:
                    f = font_mid
                else:
                    f = font_small
                text = f.render(str(val), True, text_color)
                screen.blit(text, (rect.x + (rect.w - text.get_width()) // 2,
                                   rect.y + (rect.h - text.get_height()) // 2))

        now = now_ms / 1000.0
        emitter.tick(now)
        for spark in emitter.sparks:
            x, y = spark.position(now)
            radius = max(1, int(spark.size * (1 - spark.progress(now)) / 2))
            pygame.draw.circle(screen, spark.tint, (int(x) + ox, int(y) + oy), radius)

        # 结束遮罩
        if session.is_over():
            overlay = pygame.Surface(screen.get_size(), pygame.SRCALPHA)
            overlay.fill((0, 0, 0, 160))
            screen.blit(overlay, (0, 0))
            go_text = font_big.render("No more moves", True, TEXT_LIGHT)
            screen.blit(go_text, (screen.get_width() // 2 - go_text.get_width() // 2,
                                  height // 2 - go_text.get_height() // 2))

        pygame.display.flip()

    running = True
    while running:
        clock.tick(config.fps)
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
                break
            if event.type != pygame.KEYDOWN:
                continue
            if event.key == pygame.K_ESCAPE:
                running = False
                break
            if event.key == pygame.K_r:
                session.reset()
                emitter.clear()
            elif event.key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
                session.configure(session.size + 1)
                emitter.clear()
                open_window()
            elif event.key in (pygame.K_MINUS, pygame.K_KP_MINUS):
                session.configure(session.size - 1)
                emitter.clear()
                open_window()
            elif event.key == pygame.K_a:
                auto_mode = not auto_mode
            elif event.key == pygame.K_m:
                audio.set_enabled(not audio.enabled)
                store.set(MUTE_KEY, not audio.enabled)
            elif event.key == pygame.K_h:
                haptics.set_enabled(not haptics.enabled)
                store.set(HAPTICS_KEY, haptics.enabled)
            direction = KEY_TO_DIRECTION.get(event.key)
            if direction is not None and not session.is_over():
                apply(direction)

        if auto_mode and not session.is_over():
            now = pygame.time.get_ticks()
            if now - last_step_time >= config.auto_step_ms:
                # 演示用：按 左/下/右/上 顺序选第一个合法方向
                legal = session.legal_directions()
                for d in (Direction.LEFT, Direction.DOWN, Direction.RIGHT, Direction.UP):
                    if d in legal:
                        apply(d)
                        break
                last_step_time = now

        draw()

    audio.stop()
    pygame.quit()
    sys.exit(0)


if __name__ == "__main__":
    run_gui()
