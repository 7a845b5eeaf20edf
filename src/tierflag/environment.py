"""環境ティア解決"""

from __future__ import annotations

import os
from collections.abc import Callable

import structlog

from .catalog import Catalog
from .models import EnvironmentSnapshot
from .settings import EngineSettings, env_var_name

EnvVarReader = Callable[[str], "str | None"]

logger = structlog.stdlib.get_logger(__name__)


def parse_bool(raw: str | None) -> bool | None:
    """"true"/"false"（大文字小文字・前後空白を無視）のみ受け付ける。それ以外は None。"""
    if raw is None:
        return None
    value = raw.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def resolve(
    raw_environment: str | None,
    env_var_reader: EnvVarReader,
    catalog: Catalog,
    settings: EngineSettings | None = None,
) -> EnvironmentSnapshot:
    """環境名と環境変数から EnvironmentSnapshot を作る。副作用なし。

    未知の環境名は default_environment にフォールバックする（エラーにしない）。
    FEATURE_<KEY> が true/false として解釈できない場合は未設定として扱う。
    """
    settings = settings or EngineSettings()
    raw = raw_environment or ""
    name = raw.strip().lower()
    if name not in settings.known_environments:
        logger.debug(
            "unknown environment, falling back",
            raw_environment=raw,
            environment=settings.default_environment,
        )
        name = settings.default_environment

    overrides: dict[str, bool] = {}
    for flag in catalog:
        var = env_var_name(flag.key, settings.env_var_prefix)
        raw_value = env_var_reader(var)
        value = parse_bool(raw_value)
        if value is None:
            if raw_value is not None:
                logger.warning(
                    "ignoring unparseable flag override",
                    variable=var,
                    value=raw_value,
                )
            continue
        overrides[flag.key] = value

    return EnvironmentSnapshot(environment=name, raw_environment=raw, overrides=overrides)


class EnvironmentResolver:
    """プロセス環境から EnvironmentSnapshot を解決・保持する。

    refresh() を呼ぶまでスナップショットは再計算しない。
    """

    def __init__(
        self,
        catalog: Catalog,
        settings: EngineSettings | None = None,
        env_var_reader: EnvVarReader | None = None,
    ) -> None:
        self._catalog = catalog
        self._settings = settings or EngineSettings()
        self._reader: EnvVarReader = env_var_reader or os.environ.get
        self._snapshot: EnvironmentSnapshot | None = None

    def _raw_environment(self) -> str | None:
        raw = self._reader(self._settings.environment_variable)
        if raw is None:
            raw = self._reader(self._settings.fallback_environment_variable)
        return raw

    def current(self) -> EnvironmentSnapshot:
        """現在のスナップショット。未解決なら解決する。"""
        if self._snapshot is None:
            return self.refresh()
        return self._snapshot

    def refresh(self) -> EnvironmentSnapshot:
        """環境変数を読み直してスナップショットを再計算する。"""
        self._snapshot = resolve(
            self._raw_environment(), self._reader, self._catalog, self._settings
        )
        return self._snapshot
