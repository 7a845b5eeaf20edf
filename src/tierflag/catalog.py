"""フラグカタログ（検証済み・不変のフラグ定義レジストリ）"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from pydantic import ValidationError

from .exceptions import CyclicDependencyError, InvalidCatalogError, UnknownFlagError
from .models import FlagDefinition
from .settings import env_var_name

_WHITE, _GRAY, _BLACK = 0, 1, 2


class Catalog:
    """読み込み済みフラグ定義の集合。

    load_catalog() 経由で生成し、依存グラフが DAG であることは生成時に保証される。
    """

    def __init__(self, flags: Mapping[str, FlagDefinition], order: list[str]) -> None:
        self._flags = dict(flags)
        self._order = order
        self._dependents: dict[str, set[str]] = {key: set() for key in self._flags}
        for flag in self._flags.values():
            for dep in flag.dependencies:
                self._dependents[dep].add(flag.key)
        self._role_dependent: set[str] = set()
        for key in order:
            flag = self._flags[key]
            if flag.enabled_for_roles or not flag.dependencies.isdisjoint(self._role_dependent):
                self._role_dependent.add(key)

    def get(self, key: str) -> FlagDefinition:
        """フラグ定義を取得する。存在しなければ UnknownFlagError。"""
        flag = self._flags.get(key)
        if flag is None:
            raise UnknownFlagError(key)
        return flag

    def keys(self) -> list[str]:
        return list(self._flags)

    def topological_order(self) -> list[str]:
        """依存先が依存元より前に並ぶ順序。"""
        return list(self._order)

    def dependents_of(self, key: str) -> set[str]:
        """key に推移的に依存するフラグキーの集合（key 自身は含まない）。"""
        self.get(key)
        found: set[str] = set()
        stack = [key]
        while stack:
            for dependent in self._dependents[stack.pop()]:
                if dependent not in found:
                    found.add(dependent)
                    stack.append(dependent)
        return found

    def is_role_dependent(self, key: str) -> bool:
        """key 自身または推移的な依存先がロール指定を持つか。"""
        return key in self._role_dependent

    def __contains__(self, key: object) -> bool:
        return key in self._flags

    def __iter__(self) -> Iterator[FlagDefinition]:
        return iter(self._flags.values())

    def __len__(self) -> int:
        return len(self._flags)


def _validate(definitions: Iterable[FlagDefinition | Mapping[str, Any]]) -> dict[str, FlagDefinition]:
    flags: dict[str, FlagDefinition] = {}
    env_vars: dict[str, str] = {}
    for raw in definitions:
        if isinstance(raw, FlagDefinition):
            flag = raw
        else:
            try:
                flag = FlagDefinition.model_validate(raw)
            except ValidationError as e:
                raise InvalidCatalogError(f"Invalid flag definition: {e}", cause=e) from e
        if flag.key in flags:
            raise InvalidCatalogError(f"Duplicate flag key: {flag.key}")
        var = env_var_name(flag.key)
        if var in env_vars:
            raise InvalidCatalogError(
                f"Flags {env_vars[var]} and {flag.key} share environment variable {var}"
            )
        env_vars[var] = flag.key
        flags[flag.key] = flag

    for flag in flags.values():
        missing = sorted(dep for dep in flag.dependencies if dep not in flags)
        if missing:
            raise InvalidCatalogError(
                f"Flag {flag.key} depends on undefined flags: {', '.join(missing)}"
            )
    return flags


def _sort(flags: Mapping[str, FlagDefinition]) -> list[str]:
    """三色 DFS でトポロジカル順序を求める。back edge があれば CyclicDependencyError。"""
    color = {key: _WHITE for key in flags}
    order: list[str] = []

    for root in flags:
        if color[root] != _WHITE:
            continue
        color[root] = _GRAY
        path = [root]
        stack = [iter(sorted(flags[root].dependencies))]
        while stack:
            dep = next(stack[-1], None)
            if dep is None:
                stack.pop()
                done = path.pop()
                color[done] = _BLACK
                order.append(done)
                continue
            if color[dep] == _GRAY:
                raise CyclicDependencyError(path[path.index(dep):] + [dep])
            if color[dep] == _WHITE:
                color[dep] = _GRAY
                path.append(dep)
                stack.append(iter(sorted(flags[dep].dependencies)))
    return order


def load_catalog(definitions: Iterable[FlagDefinition | Mapping[str, Any]]) -> Catalog:
    """フラグ定義を検証してカタログを構築する。

    Args:
        definitions: FlagDefinition または同等の辞書のリスト

    Raises:
        InvalidCatalogError: スキーマ違反、重複キー、未定義の依存先
        CyclicDependencyError: 依存関係に循環がある場合
    """
    flags = _validate(definitions)
    return Catalog(flags, _sort(flags))
