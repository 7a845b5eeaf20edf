"""依存フラグの評価"""

from __future__ import annotations

from typing import Protocol

from .models import EvaluationContext, FlagDefinition


class _Evaluator(Protocol):
    def is_enabled(self, flag_key: str, context: EvaluationContext | None = None) -> bool: ...


def all_dependencies_satisfied(
    flag: FlagDefinition, context: EvaluationContext, evaluator: _Evaluator
) -> bool:
    """依存フラグがすべて有効なら True。

    キー順に評価し、最初に無効な依存が見つかった時点で打ち切る。
    カタログが DAG であることは load_catalog() で保証済みのため、ここでは循環検出しない。
    """
    return all(evaluator.is_enabled(dep, context) for dep in sorted(flag.dependencies))
