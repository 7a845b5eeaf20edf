"""評価結果キャッシュ"""

from __future__ import annotations

import threading


class _CacheEntry:
    __slots__ = ("value", "computed_at")

    def __init__(self, value: bool, computed_at: int) -> None:
        self.value = value
        self.computed_at = computed_at


class EvaluationCache:
    """(flag_key, evaluation_key) 単位の TTL 付きメモ化。

    期限切れエントリは読み出し時に MISS として扱い、次の put で上書きする。
    バックグラウンドでの掃除はしない。

    invalidate のたびに世代番号が進む。put に古い世代を渡した書き込みは破棄される。
    """

    def __init__(self, ttl_millis: int = 300_000) -> None:
        if ttl_millis < 0:
            raise ValueError(f"ttl_millis must be >= 0, got {ttl_millis}")
        self.ttl_millis = ttl_millis
        self._store: dict[tuple[str, str], _CacheEntry] = {}
        self._generation = 0
        self._lock = threading.Lock()

    def get(self, flag_key: str, evaluation_key: str, now_millis: int) -> bool | None:
        """有効なキャッシュ値を返す。MISS または期限切れなら None。"""
        with self._lock:
            entry = self._store.get((flag_key, evaluation_key))
        if entry is None or now_millis - entry.computed_at >= self.ttl_millis:
            return None
        return entry.value

    def generation(self) -> int:
        """現在の世代番号。評価開始前に取得して put に渡す。"""
        with self._lock:
            return self._generation

    def put(
        self,
        flag_key: str,
        evaluation_key: str,
        value: bool,
        now_millis: int,
        generation: int | None = None,
    ) -> None:
        if self.ttl_millis == 0:
            return
        with self._lock:
            if generation is not None and generation != self._generation:
                return
            self._store[(flag_key, evaluation_key)] = _CacheEntry(value, now_millis)

    def invalidate(self, flag_key: str | None = None) -> None:
        """flag_key 指定時はそのフラグのエントリのみ、未指定なら全件を削除する。"""
        with self._lock:
            self._generation += 1
            if flag_key is None:
                self._store.clear()
                return
            for key in [k for k in self._store if k[0] == flag_key]:
                del self._store[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
