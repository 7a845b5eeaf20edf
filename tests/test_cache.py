"""評価キャッシュのユニットテスト"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from tierflag import EvaluationCache


def test_get_miss() -> None:
    """未登録は None。"""
    cache = EvaluationCache(ttl_millis=1000)
    assert cache.get("flag", "u1", 0) is None


def test_put_and_get() -> None:
    """False もキャッシュ値として返ること。"""
    cache = EvaluationCache(ttl_millis=1000)
    cache.put("flag", "u1", False, 0)
    cache.put("flag", "u2", True, 0)
    assert cache.get("flag", "u1", 10) is False
    assert cache.get("flag", "u2", 10) is True


def test_entry_expires_at_ttl() -> None:
    """now - computed_at が TTL に達したら期限切れ。"""
    cache = EvaluationCache(ttl_millis=1000)
    cache.put("flag", "u1", True, 500)
    assert cache.get("flag", "u1", 1499) is True
    assert cache.get("flag", "u1", 1500) is None


def test_expired_entry_is_overwritten() -> None:
    """期限切れエントリは put で上書きされる。"""
    cache = EvaluationCache(ttl_millis=1000)
    cache.put("flag", "u1", True, 0)
    cache.put("flag", "u1", False, 2000)
    assert cache.get("flag", "u1", 2500) is False
    assert len(cache) == 1


def test_invalidate_single_flag() -> None:
    """フラグ指定の無効化は他フラグに影響しない。"""
    cache = EvaluationCache(ttl_millis=1000)
    cache.put("a", "u1", True, 0)
    cache.put("a", "u2", True, 0)
    cache.put("b", "u1", True, 0)
    cache.invalidate("a")
    assert cache.get("a", "u1", 0) is None
    assert cache.get("a", "u2", 0) is None
    assert cache.get("b", "u1", 0) is True


def test_invalidate_all() -> None:
    """引数なしで全件削除。"""
    cache = EvaluationCache(ttl_millis=1000)
    cache.put("a", "u1", True, 0)
    cache.put("b", "u1", True, 0)
    cache.invalidate()
    assert len(cache) == 0


def test_invalidate_advances_generation() -> None:
    """invalidate のたびに世代番号が進む。"""
    cache = EvaluationCache(ttl_millis=1000)
    first = cache.generation()
    cache.invalidate("a")
    second = cache.generation()
    cache.invalidate()
    assert first < second < cache.generation()


def test_put_with_stale_generation_is_discarded() -> None:
    """計算中に別スレッドで invalidate されたら、古い世代での書き込みは捨てられる。"""
    cache = EvaluationCache(ttl_millis=1000)
    computing = threading.Barrier(2)
    invalidated = threading.Event()

    def evaluate() -> None:
        generation = cache.generation()
        computing.wait(timeout=5)
        invalidated.wait(timeout=5)
        cache.put("flag", "u1", False, 0, generation)

    def change_override() -> None:
        computing.wait(timeout=5)
        cache.invalidate("flag")
        invalidated.set()

    threads = [threading.Thread(target=evaluate), threading.Thread(target=change_override)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert cache.get("flag", "u1", 0) is None
    cache.put("flag", "u1", True, 0, cache.generation())
    assert cache.get("flag", "u1", 0) is True


def test_zero_ttl_disables_caching() -> None:
    """TTL 0 では何も保持しない。"""
    cache = EvaluationCache(ttl_millis=0)
    cache.put("a", "u1", True, 0)
    assert cache.get("a", "u1", 0) is None
    assert len(cache) == 0


def test_negative_ttl_rejected() -> None:
    """負の TTL はエラー。"""
    with pytest.raises(ValueError):
        EvaluationCache(ttl_millis=-1)


def test_concurrent_put_get() -> None:
    """並行した書き込み・読み込みで不整合が起きないこと。"""
    cache = EvaluationCache(ttl_millis=60_000)

    def work(i: int) -> bool | None:
        key = f"u{i % 10}"
        cache.put("flag", key, i % 2 == 0, 0)
        if i % 7 == 0:
            cache.invalidate("other")
        return cache.get("flag", key, 1)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(work, range(1000)))
    assert all(r in (True, False) for r in results)
    assert len(cache) == 10
