"""FeatureFlagClient プロトコル"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import EvaluationContext, EvaluationResult, FlagDefinition


@runtime_checkable
class FeatureFlagClientProtocol(Protocol):
    """フィーチャーフラグクライアントプロトコル。"""

    def evaluate(
        self, flag_key: str, context: EvaluationContext | None = None
    ) -> EvaluationResult: ...

    def get_flag(self, flag_key: str) -> FlagDefinition: ...

    def is_enabled(self, flag_key: str, context: EvaluationContext | None = None) -> bool: ...
