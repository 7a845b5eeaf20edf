"""フラグ評価エンジン"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from . import bucketing, metrics
from .cache import EvaluationCache
from .catalog import Catalog
from .dependency import all_dependencies_satisfied
from .exceptions import UnknownFlagError
from .models import (
    EnvironmentSnapshot,
    EvaluationContext,
    EvaluationReason,
    EvaluationResult,
    FlagAnalytics,
    FlagDefinition,
    FlagStatus,
)
from .overrides import OverrideSet
from .settings import PRODUCTION, EngineSettings

if TYPE_CHECKING:
    from .environment import EnvironmentResolver

logger = structlog.stdlib.get_logger(__name__)

_BETA_MARKERS = ("beta", "experimental")


def _monotonic_millis() -> int:
    return time.monotonic_ns() // 1_000_000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FlagEvaluator:
    """カタログと環境スナップショットからフラグの有効/無効を判定する。

    判定順序:
      1. 未定義フラグ -> UnknownFlagPolicy に従う
      2. 有効なキャッシュ -> その値
      3. オーバーライド（OverrideSet、次に環境変数） -> その値
      4. 環境デフォルトが False -> False
      5. 有効期間外 -> False
      6. 依存フラグが無効 -> False
      7. ユーザー/ロール指定に一致 -> True
      8. ロールアウトバケット判定
    3 以降の結果はキャッシュに書き込む。ただしロール指定に左右されるフラグを
    ロール付きコンテキストで評価した場合は、キャッシュを読み書きしない
    （評価キーにロールは含まれないため）。

    グローバルインスタンスは持たない。呼び出し側が生成して保持する。
    """

    def __init__(
        self,
        catalog: Catalog,
        snapshot: EnvironmentSnapshot,
        settings: EngineSettings | None = None,
        *,
        cache: EvaluationCache | None = None,
        overrides: OverrideSet | None = None,
        clock: Callable[[], int] | None = None,
        utcnow: Callable[[], datetime] | None = None,
    ) -> None:
        self._catalog = catalog
        self._snapshot = snapshot
        self._settings = settings or EngineSettings()
        self._cache = cache if cache is not None else EvaluationCache(self._settings.cache_ttl_ms)
        self._overrides = overrides if overrides is not None else OverrideSet()
        self._clock = clock or _monotonic_millis
        self._utcnow = utcnow or _utcnow

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def snapshot(self) -> EnvironmentSnapshot:
        return self._snapshot

    @property
    def environment(self) -> str:
        return self._snapshot.environment

    def get_flag(self, flag_key: str) -> FlagDefinition:
        return self._catalog.get(flag_key)

    def is_enabled(self, flag_key: str, context: EvaluationContext | None = None) -> bool:
        """フラグが有効か判定する。"""
        return self.evaluate(flag_key, context).enabled

    def evaluate(
        self, flag_key: str, context: EvaluationContext | None = None
    ) -> EvaluationResult:
        """フラグを評価し、判定理由付きの結果を返す。

        Raises:
            UnknownFlagError: 未定義フラグかつ strict ポリシーの場合
        """
        context = context or EvaluationContext()
        if flag_key not in self._catalog:
            return self._unknown(flag_key)

        flag = self._catalog.get(flag_key)
        if context.roles and self._catalog.is_role_dependent(flag_key):
            enabled, reason = self._compute(flag, context)
            return self._record(EvaluationResult(flag_key, enabled, reason))

        eval_key = context.evaluation_key
        cached = self._cache.get(flag_key, eval_key, self._clock())
        if cached is not None:
            metrics.cache_hits_total.add(1, {"flag_key": flag_key})
            return self._record(EvaluationResult(flag_key, cached, EvaluationReason.CACHED))

        # 計算中に invalidate されたら書き込みは破棄される
        generation = self._cache.generation()
        enabled, reason = self._compute(flag, context)
        self._cache.put(flag_key, eval_key, enabled, self._clock(), generation)
        return self._record(EvaluationResult(flag_key, enabled, reason))

    def _compute(
        self, flag: FlagDefinition, context: EvaluationContext
    ) -> tuple[bool, EvaluationReason]:
        override = self._overrides.get(flag.key)
        if override is not None:
            return override, EvaluationReason.OVERRIDE
        env_override = self._snapshot.override_for(flag.key)
        if env_override is not None:
            return env_override, EvaluationReason.ENVIRONMENT_OVERRIDE

        environment = self._snapshot.environment
        if not flag.default_for(environment):
            return False, EvaluationReason.ENVIRONMENT_DISABLED

        if not self._in_schedule(flag):
            return False, EvaluationReason.OUTSIDE_SCHEDULE

        if not all_dependencies_satisfied(flag, context, self):
            return False, EvaluationReason.DEPENDENCY_DISABLED

        if (context.user_id is not None and context.user_id in flag.enabled_for_users) or (
            flag.enabled_for_roles & context.roles
        ):
            return True, EvaluationReason.TARGETED

        if bucketing.is_eligible(context.evaluation_key, flag.rollout_for(environment)):
            return True, EvaluationReason.ROLLOUT_INCLUDED
        return False, EvaluationReason.ROLLOUT_EXCLUDED

    def _in_schedule(self, flag: FlagDefinition) -> bool:
        if flag.enabled_after is None and flag.disabled_after is None:
            return True
        now = self._utcnow()
        if flag.enabled_after is not None and now < flag.enabled_after:
            return False
        if flag.disabled_after is not None and now >= flag.disabled_after:
            return False
        return True

    def _unknown(self, flag_key: str) -> EvaluationResult:
        if self._settings.is_strict_for(self._snapshot.environment):
            raise UnknownFlagError(flag_key)
        logger.warning(
            "unknown feature flag", flag_key=flag_key, environment=self.environment
        )
        return self._record(
            EvaluationResult(flag_key, False, EvaluationReason.UNKNOWN_FLAG)
        )

    def _record(self, result: EvaluationResult) -> EvaluationResult:
        metrics.evaluations_total.add(
            1,
            {
                "flag_key": result.flag_key,
                "enabled": result.enabled,
                "reason": result.reason.value,
            },
        )
        return result

    # 管理 API

    def set_override(self, flag_key: str, value: bool) -> None:
        """オーバーライドを設定する。未定義フラグは UnknownFlagError。"""
        self._catalog.get(flag_key)
        self._overrides.set(flag_key, value)
        logger.info("flag override set", flag_key=flag_key, value=value)
        self._invalidate_with_dependents(flag_key)

    def clear_override(self, flag_key: str) -> None:
        """単一フラグのオーバーライドを解除する。"""
        self._catalog.get(flag_key)
        if self._overrides.discard(flag_key):
            logger.info("flag override cleared", flag_key=flag_key)
            self._invalidate_with_dependents(flag_key)

    def clear_overrides(self) -> None:
        """すべてのオーバーライドを解除し、キャッシュを破棄する。"""
        self._overrides.clear()
        logger.info("flag overrides cleared")
        self._cache.invalidate()

    def get_overrides(self) -> dict[str, bool]:
        return self._overrides.snapshot()

    def invalidate_cache(self, flag_key: str | None = None) -> None:
        self._cache.invalidate(flag_key)

    def refresh_environment(self, resolver: EnvironmentResolver) -> EnvironmentSnapshot:
        """環境を再解決してスナップショットを差し替え、キャッシュを破棄する。"""
        self._snapshot = resolver.refresh()
        self._cache.invalidate()
        logger.info("environment refreshed", environment=self.environment)
        return self._snapshot

    def _invalidate_with_dependents(self, flag_key: str) -> None:
        for key in {flag_key} | self._catalog.dependents_of(flag_key):
            self._cache.invalidate(key)

    def get_all_flags(self, context: EvaluationContext | None = None) -> dict[str, FlagStatus]:
        """全フラグの定義と評価結果。"""
        environment = self.environment
        return {
            flag.key: FlagStatus(
                definition=flag,
                enabled=self.is_enabled(flag.key, context),
                environment_default=flag.default_for(environment),
                rollout_percentage=flag.rollout_for(environment),
            )
            for flag in self._catalog
        }

    def get_enabled_features(self, context: EvaluationContext | None = None) -> list[str]:
        return sorted(flag.key for flag in self._catalog if self.is_enabled(flag.key, context))

    def get_analytics(self, context: EvaluationContext | None = None) -> FlagAnalytics:
        """有効/無効/ベータ/本番デフォルト有効のフラグ数を集計する。"""
        statuses = self.get_all_flags(context)
        analytics = FlagAnalytics(environment=self.environment, total_features=len(statuses))
        for key, status in statuses.items():
            if status.enabled:
                analytics.enabled_features += 1
            else:
                analytics.disabled_features += 1
            if any(marker in key.lower() for marker in _BETA_MARKERS):
                analytics.beta_features += 1
            if status.definition.default_for(PRODUCTION):
                analytics.production_features += 1
        analytics.features = statuses
        return analytics

    def get_client_config(self, context: EvaluationContext | None = None) -> dict[str, bool]:
        """フロントエンドへ渡せるフラグ評価結果。

        client_exclude_patterns のいずれかをキーに含むフラグ（大文字小文字無視）は除外する。
        """
        patterns = [p.lower() for p in self._settings.client_exclude_patterns]
        return {
            flag.key: self.is_enabled(flag.key, context)
            for flag in self._catalog
            if not any(p in flag.key.lower() for p in patterns)
        }
