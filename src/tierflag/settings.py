"""エンジン設定（pydantic BaseModel）"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

PRODUCTION = "production"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")


def env_var_name(flag_key: str, prefix: str = "FEATURE_") -> str:
    """フラグキーを環境変数名に変換する。

    例: "betaTesting" -> "FEATURE_BETA_TESTING", "api-v2" -> "FEATURE_API_V2"
    """
    snake = _CAMEL_BOUNDARY.sub("_", flag_key)
    snake = _NON_ALNUM.sub("_", snake).strip("_")
    return prefix + snake.upper()


class UnknownFlagPolicy(str, Enum):
    """未定義フラグ評価時の扱い。

    STRICT: UnknownFlagError を送出する
    LENIENT: 警告ログを出して False を返す
    AUTO: production 環境のみ LENIENT、それ以外は STRICT
    """

    STRICT = "strict"
    LENIENT = "lenient"
    AUTO = "auto"


class EngineSettings(BaseModel):
    """フラグ評価エンジンの設定。"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_environment: str = "development"
    known_environments: tuple[str, ...] = ("production", "staging", "development", "test")
    environment_variable: str = "APP_ENV"
    fallback_environment_variable: str = "NODE_ENV"
    env_var_prefix: str = "FEATURE_"
    cache_ttl_ms: int = Field(default=5 * 60 * 1000, ge=0)
    unknown_flag_policy: UnknownFlagPolicy = UnknownFlagPolicy.AUTO
    client_exclude_patterns: tuple[str, ...] = ("SECRET", "PRIVATE")

    @model_validator(mode="after")
    def _check_default_environment(self) -> EngineSettings:
        if self.default_environment not in self.known_environments:
            raise ValueError(
                f"default_environment {self.default_environment!r} "
                "must be one of known_environments"
            )
        return self

    def is_strict_for(self, environment: str) -> bool:
        """environment で未定義フラグをエラーにするか。"""
        if self.unknown_flag_policy is UnknownFlagPolicy.AUTO:
            return environment != PRODUCTION
        return self.unknown_flag_policy is UnknownFlagPolicy.STRICT
