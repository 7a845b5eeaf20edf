"""tierflag データモデル"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ANONYMOUS_KEY = "anonymous"


class FlagDefinition(BaseModel):
    """フィーチャーフラグ定義。

    カタログ読み込み時に一度だけ検証され、以後は変更されない。
    environment_defaults に無い環境は無効、rollout_percentage に無い環境は 0% として扱う。
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str = Field(min_length=1)
    name: str = ""
    description: str = ""
    environment_defaults: Mapping[str, bool] = Field(default_factory=dict, validate_default=True)
    rollout_percentage: Mapping[str, int] = Field(default_factory=dict, validate_default=True)
    dependencies: frozenset[str] = Field(default_factory=frozenset)
    enabled_for_users: frozenset[str] = Field(default_factory=frozenset)
    enabled_for_roles: frozenset[str] = Field(default_factory=frozenset)
    enabled_after: datetime | None = None
    disabled_after: datetime | None = None
    metadata: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)

    @field_validator("key")
    @classmethod
    def _strip_key(cls, value: str) -> str:
        if value != value.strip():
            raise ValueError("flag key must not have surrounding whitespace")
        return value

    @field_validator("rollout_percentage")
    @classmethod
    def _check_percentages(cls, value: Mapping[str, int]) -> Mapping[str, int]:
        for environment, percentage in value.items():
            if not 0 <= percentage <= 100:
                raise ValueError(
                    f"rollout percentage for {environment} must be 0-100, got {percentage}"
                )
        return value

    @field_validator("environment_defaults", "rollout_percentage", "metadata")
    @classmethod
    def _freeze(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_validator("enabled_after", "disabled_after")
    @classmethod
    def _require_timezone(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            raise ValueError("schedule datetimes must be timezone-aware")
        return value

    @model_validator(mode="after")
    def _check_schedule(self) -> FlagDefinition:
        if (
            self.enabled_after is not None
            and self.disabled_after is not None
            and self.enabled_after >= self.disabled_after
        ):
            raise ValueError("enabled_after must be earlier than disabled_after")
        return self

    def default_for(self, environment: str) -> bool:
        """環境別のデフォルト有効値。"""
        return self.environment_defaults.get(environment, False)

    def rollout_for(self, environment: str) -> int:
        """環境別のロールアウト率 (0-100)。"""
        return self.rollout_percentage.get(environment, 0)


@dataclass(frozen=True)
class EvaluationContext:
    """フラグ評価コンテキスト。評価呼び出しごとに作成する。"""

    user_id: str | None = None
    session_id: str | None = None
    roles: frozenset[str] = field(default_factory=frozenset)
    attributes: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "roles", frozenset(self.roles))
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def evaluation_key(self) -> str:
        """バケット計算とキャッシュキーに使う識別子。"""
        if self.user_id is not None:
            return self.user_id
        if self.session_id is not None:
            return self.session_id
        return ANONYMOUS_KEY


@dataclass(frozen=True)
class EnvironmentSnapshot:
    """解決済みの環境情報。refresh されるまで不変。"""

    environment: str
    raw_environment: str = ""
    overrides: Mapping[str, bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "overrides", MappingProxyType(dict(self.overrides)))

    def override_for(self, flag_key: str) -> bool | None:
        return self.overrides.get(flag_key)


class EvaluationReason(str, Enum):
    """評価結果の決定理由。"""

    CACHED = "CACHED"
    OVERRIDE = "OVERRIDE"
    ENVIRONMENT_OVERRIDE = "ENVIRONMENT_OVERRIDE"
    ENVIRONMENT_DISABLED = "ENVIRONMENT_DISABLED"
    OUTSIDE_SCHEDULE = "OUTSIDE_SCHEDULE"
    DEPENDENCY_DISABLED = "DEPENDENCY_DISABLED"
    TARGETED = "TARGETED"
    ROLLOUT_INCLUDED = "ROLLOUT_INCLUDED"
    ROLLOUT_EXCLUDED = "ROLLOUT_EXCLUDED"
    UNKNOWN_FLAG = "UNKNOWN_FLAG"


@dataclass
class EvaluationResult:
    """フラグ評価結果。"""

    flag_key: str
    enabled: bool
    reason: EvaluationReason


@dataclass
class FlagStatus:
    """管理 API 向けのフラグ状態。"""

    definition: FlagDefinition
    enabled: bool
    environment_default: bool
    rollout_percentage: int


@dataclass
class FlagAnalytics:
    """フラグ集計。"""

    environment: str
    total_features: int = 0
    enabled_features: int = 0
    disabled_features: int = 0
    beta_features: int = 0
    production_features: int = 0
    features: dict[str, FlagStatus] = field(default_factory=dict)
