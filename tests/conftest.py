"""tierflag テスト共通フィクスチャ"""

from __future__ import annotations

import pytest
from tierflag import Catalog, EnvironmentSnapshot, FlagEvaluator, bucket, load_catalog


class FakeClock:
    """ミリ秒単位で手動で進めるクロック。"""

    def __init__(self, start: int = 0) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


def key_with_bucket(target: int) -> str:
    """bucket() が target になる評価キーを探す。"""
    return next(f"user-{i}" for i in range(100_000) if bucket(f"user-{i}") == target)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scenario_catalog() -> Catalog:
    """betaTesting と、それに依存する experimentalUI のカタログ。"""
    return load_catalog(
        [
            {
                "key": "betaTesting",
                "name": "Beta Testing Features",
                "environment_defaults": {"production": False, "staging": True},
                "rollout_percentage": {"staging": 100},
            },
            {
                "key": "experimentalUI",
                "name": "Experimental UI Components",
                "environment_defaults": {"production": False, "staging": True},
                "rollout_percentage": {"staging": 50},
                "dependencies": ["betaTesting"],
            },
        ]
    )


@pytest.fixture
def staging_evaluator(scenario_catalog: Catalog, clock: FakeClock) -> FlagEvaluator:
    return FlagEvaluator(
        scenario_catalog, EnvironmentSnapshot(environment="staging"), clock=clock
    )
