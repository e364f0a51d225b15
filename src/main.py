import argparse
import os
from typing import List, Optional

from settings import DEFAULT_PREFS_PATH, ShellConfig
from prefs_store import PointsTracker, PrefsStore


def build_config(argv: Optional[List[str]] = None) -> ShellConfig:
    parser = argparse.ArgumentParser(description="Numeric Mind - tile merging puzzle")
    parser.add_argument("--size", type=int, default=4, help="棋盘边长，超出 [2, 8] 会被截断")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--prefs", type=str, default=DEFAULT_PREFS_PATH, help="偏好文件路径")
    parser.add_argument("--no-prefs", action="store_true", help="不读写偏好文件")
    parser.add_argument("--sounds", type=str, default=None, help="包含 tap/tick/success/fail.wav 的目录")
    parser.add_argument("--mute", action="store_true")
    parser.add_argument("--no-haptics", action="store_true")
    parser.add_argument("--fps", type=int, default=60)
    parser.add_argument("--auto-step-ms", type=int, default=120)
    parser.add_argument("--reset-best", action="store_true", help="清除最高分后退出")
    args = parser.parse_args(argv)

    config = ShellConfig(
        size=args.size,
        seed=args.seed,
        prefs_path=None if args.no_prefs else args.prefs,
        sound_dir=args.sounds,
        muted=args.mute,
        haptics=not args.no_haptics,
        fps=max(1, args.fps),
        auto_step_ms=max(0, args.auto_step_ms),
    )
    if args.reset_best:
        PointsTracker(PrefsStore(config.prefs_path)).reset_all()
        print(f"[Info] 最高分已清除: {config.prefs_path}")
        raise SystemExit(0)
    if config.sound_dir and not os.path.isdir(config.sound_dir):
        print(f"[Warning] 音效目录不存在: {config.sound_dir}，将静音运行。")
        config.sound_dir = None
    return config


def main():
    config = build_config()
    from gui_pygame import run_gui

    run_gui(config)


if __name__ == "__main__":
    main()
