from __future__ import annotations
import json
import os
from typing import Any, Dict, Optional


BEST_SCORE_KEY = "mindgame.bestScore"


class PrefsStore:
    """
    简单的键值偏好存储，写入即落盘（JSON）。
    path 为 None 时只保存在内存中。
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._data: Dict[str, Any] = {}
        if path and os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    self._data = loaded
                else:
                    print(f"[Warning] 偏好文件格式不正确，已忽略: {path}")
            except (OSError, ValueError) as e:
                print(f"[Warning] 无法读取偏好文件 {path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def get_int(self, key: str, default: int = 0) -> int:
        v = self._data.get(key)
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return default
        return int(v)

    def get_bool(self, key: str, default: bool = False) -> bool:
        v = self._data.get(key)
        return v if isinstance(v, bool) else default

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._save()

    def clear(self) -> None:
        self._data = {}
        self._save()

    def _save(self) -> None:
        if not self.path:
            return
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, sort_keys=True)
        os.replace(tmp, self.path)


class PointsTracker:
    def __init__(self, store: Optional[PrefsStore] = None):
        self.store = store if store is not None else PrefsStore()
        self.score = 0
        self.best_score = self.store.get_int(BEST_SCORE_KEY, 0)

    def add(self, value: int) -> None:
        if value == 0:
            return
        self.set(self.score + value)

    def set(self, value: int) -> None:
        self.score = max(0, value)
        if self.score > self.best_score:
            self.best_score = self.score
            self.store.set(BEST_SCORE_KEY, self.best_score)

    def reset_run(self) -> None:
        self.score = 0

    def reset_all(self) -> None:
        self.score = 0
        self.best_score = 0
        self.store.remove(BEST_SCORE_KEY)
