"""tierflag ライブラリの例外型定義"""

from __future__ import annotations


class FeatureFlagError(Exception):
    """tierflag ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class FeatureFlagErrorCodes:
    """エラーコード定数。"""

    FLAG_NOT_FOUND: str = "FLAG_NOT_FOUND"
    CYCLIC_DEPENDENCY: str = "CYCLIC_DEPENDENCY"
    INVALID_CATALOG: str = "INVALID_CATALOG"
    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_YAML: str = "PARSE_YAML_ERROR"
    VALIDATION: str = "VALIDATION_ERROR"


class UnknownFlagError(FeatureFlagError):
    """カタログに存在しないフラグキーが指定された。"""

    def __init__(self, flag_key: str) -> None:
        super().__init__(
            FeatureFlagErrorCodes.FLAG_NOT_FOUND,
            f"Unknown feature flag: {flag_key}",
        )
        self.flag_key = flag_key


class InvalidCatalogError(FeatureFlagError):
    """カタログ定義が不正（重複キー、未定義の依存先、スキーマ違反）。"""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(FeatureFlagErrorCodes.INVALID_CATALOG, message, cause=cause)


class CyclicDependencyError(FeatureFlagError):
    """フラグ依存関係に循環がある。

    cycle は循環を構成するフラグキーのリストで、先頭と末尾が同じキーになる。
    例: ["A", "B", "A"]
    """

    def __init__(self, cycle: list[str]) -> None:
        super().__init__(
            FeatureFlagErrorCodes.CYCLIC_DEPENDENCY,
            "Cyclic flag dependency: " + " -> ".join(cycle),
        )
        self.cycle = cycle
