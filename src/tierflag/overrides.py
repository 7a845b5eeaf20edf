"""プロセス内の手動オーバーライド"""

from __future__ import annotations

import threading


class OverrideSet:
    """flag_key -> bool の強制値。テストや管理操作用で永続化しない。"""

    def __init__(self) -> None:
        self._values: dict[str, bool] = {}
        self._lock = threading.Lock()

    def get(self, flag_key: str) -> bool | None:
        with self._lock:
            return self._values.get(flag_key)

    def set(self, flag_key: str, value: bool) -> None:
        with self._lock:
            self._values[flag_key] = value

    def discard(self, flag_key: str) -> bool:
        """オーバーライドを削除する。削除できたら True。"""
        with self._lock:
            return self._values.pop(flag_key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._values.clear()

    def snapshot(self) -> dict[str, bool]:
        with self._lock:
            return dict(self._values)
