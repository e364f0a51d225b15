from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import os


DEFAULT_PREFS_PATH = os.path.join(os.path.expanduser("~"), ".numeric_mind.json")

MUTE_KEY = "mindgame.muted"
HAPTICS_KEY = "mindgame.haptics"


@dataclass
class ShellConfig:
    size: int = 4
    seed: Optional[int] = None
    prefs_path: Optional[str] = DEFAULT_PREFS_PATH
    sound_dir: Optional[str] = None
    muted: bool = False
    haptics: bool = True
    fps: int = 60
    auto_step_ms: int = 120
    cell_size: int = 100
    margin: int = 15
