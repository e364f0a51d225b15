from __future__ import annotations
import os
from typing import Callable, List, Optional

import pygame

from game_core import StepReport


HAPTIC_CUES = ("tap_soft", "tap_firm", "tap_heavy", "select", "success", "warning", "error")
SOUND_CUES = ("tap", "tick", "success", "fail")


class HapticsCore:
    """桌面端没有震动硬件：触发的提示转发给 sink（GUI 用屏幕抖动表现）。"""

    def __init__(self, enabled: bool = True, sink: Optional[Callable[[str], None]] = None):
        self.enabled = enabled
        self.sink = sink

    def set_enabled(self, value: bool) -> None:
        self.enabled = value

    def fire(self, cue: str) -> bool:
        if cue not in HAPTIC_CUES:
            raise ValueError(f"Unknown haptic cue: {cue}")
        if not self.enabled:
            return False
        if self.sink is not None:
            self.sink(cue)
        return True

    def tap_soft(self) -> bool:
        return self.fire("tap_soft")

    def tap_firm(self) -> bool:
        return self.fire("tap_firm")

    def tap_heavy(self) -> bool:
        return self.fire("tap_heavy")

    def select(self) -> bool:
        return self.fire("select")

    def success(self) -> bool:
        return self.fire("success")

    def warning(self) -> bool:
        return self.fire("warning")

    def error(self) -> bool:
        return self.fire("error")


class AudioCore:
    def __init__(self, sound_dir: Optional[str] = None, enabled: bool = True):
        self.sound_dir = sound_dir
        self.enabled = enabled
        self._mixer_ready = False
        self._sounds = {}
        self._channel = None
        self._last_key: Optional[str] = None

    def set_enabled(self, value: bool) -> None:
        self.enabled = value
        if not value:
            self.stop()

    def prepare(self) -> bool:
        if self._mixer_ready:
            return True
        try:
            pygame.mixer.init()
        except pygame.error as e:
            print(f"[Warning] 音频设备不可用，已关闭声音: {e}")
            self.enabled = False
            return False
        self._mixer_ready = True
        return True

    def play_tap(self) -> bool:
        return self.play("tap")

    def play_tick(self) -> bool:
        return self.play("tick")

    def play_success(self) -> bool:
        return self.play("success")

    def play_fail(self) -> bool:
        return self.play("fail")

    def stop(self) -> None:
        if self._channel is not None:
            self._channel.stop()
        self._channel = None
        self._last_key = None

    def sound_path(self, name: str) -> Optional[str]:
        if not self.sound_dir:
            return None
        path = os.path.join(self.sound_dir, f"{name}.wav")
        return path if os.path.isfile(path) else None

    def play(self, name: str) -> bool:
        if name not in SOUND_CUES:
            raise ValueError(f"Unknown sound cue: {name}")
        if not self.enabled:
            return False
        path = self.sound_path(name)
        # 没有对应音频文件时静默
        if path is None or not self.prepare():
            return False
        # 同一个音效仍在播放时不重复触发
        if self._last_key == name and self._channel is not None and self._channel.get_busy():
            return False
        sound = self._sounds.get(name)
        if sound is None:
            try:
                sound = pygame.mixer.Sound(path)
            except pygame.error as e:
                print(f"[Warning] 无法加载音效 {path}: {e}")
                return False
            self._sounds[name] = sound
        self._channel = sound.play()
        self._last_key = name
        return True


class FeedbackDispatcher:
    """根据一次 step 结束后的状态决定触发哪些反馈。"""

    def __init__(self, haptics: Optional[HapticsCore] = None, audio: Optional[AudioCore] = None):
        self.haptics = haptics if haptics is not None else HapticsCore()
        self.audio = audio if audio is not None else AudioCore()
        self.last_cues: List[str] = []

    def after_reset(self) -> List[str]:
        self.last_cues = []
        self._haptic("tap_soft")
        self._sound("tap")
        return self.last_cues

    def after_step(self, report: StepReport, can_move: bool) -> List[str]:
        self.last_cues = []
        if not report.changed:
            self._haptic("select")
        elif report.merged_ids:
            self._haptic("tap_firm")
            self._sound("success")
        else:
            self._haptic("tap_soft")
            self._sound("tick")
        if not can_move:
            self._haptic("error")
            self._sound("fail")
        return self.last_cues

    def _haptic(self, cue: str) -> None:
        getattr(self.haptics, cue)()
        self.last_cues.append(f"haptic:{cue}")

    def _sound(self, cue: str) -> None:
        getattr(self.audio, f"play_{cue}")()
        self.last_cues.append(f"sound:{cue}")
