"""ロールアウト用の決定的バケット計算"""

from __future__ import annotations

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193
BUCKET_COUNT = 100


def fnv1a_32(data: bytes) -> int:
    """32bit FNV-1a ハッシュ。空バイト列はオフセット基底を返す。"""
    h = FNV_OFFSET_BASIS
    for byte in data:
        h ^= byte
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return h


def bucket(evaluation_key: str) -> int:
    """評価キーを 0-99 のバケットに割り当てる。

    プロセスやレプリカをまたいで同じキーは同じバケットになる
    （組み込み hash() はプロセスごとにソルトされるため使わない）。
    """
    return fnv1a_32(evaluation_key.encode("utf-8")) % BUCKET_COUNT


def is_eligible(evaluation_key: str, rollout_percentage: int) -> bool:
    """bucket < rollout_percentage ならロールアウト対象。"""
    if rollout_percentage <= 0:
        return False
    if rollout_percentage >= BUCKET_COUNT:
        return True
    return bucket(evaluation_key) < rollout_percentage
