"""フラグ設定ファイル読み込み"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .catalog import Catalog, load_catalog
from .exceptions import FeatureFlagError, FeatureFlagErrorCodes
from .settings import EngineSettings


@dataclass
class FlagConfig:
    """設定ファイルから読み込んだエンジン設定とカタログ。"""

    settings: EngineSettings
    catalog: Catalog


def _read_yaml(path: Path) -> dict[str, Any]:
    """YAML ファイルを読み込む。"""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FeatureFlagError(
            code=FeatureFlagErrorCodes.READ_FILE,
            message=f"Failed to read flag file: {path}",
            cause=e,
        ) from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise FeatureFlagError(
            code=FeatureFlagErrorCodes.PARSE_YAML,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    if not isinstance(data, dict):
        raise FeatureFlagError(
            code=FeatureFlagErrorCodes.PARSE_YAML,
            message=f"Flag file must contain a mapping: {path}",
        )
    return data


def _merge_mapping(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_mapping(result[key], value)
        else:
            result[key] = value
    return result


def _merge_flags(
    base: list[dict[str, Any]], override: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    """同じ key のフラグ定義同士をマージする。base に無い key は末尾に追加。"""
    merged = list(base)
    index = {entry.get("key"): i for i, entry in enumerate(merged) if isinstance(entry, dict)}
    for entry in override:
        key = entry.get("key") if isinstance(entry, dict) else None
        if key in index:
            merged[index[key]] = _merge_mapping(merged[index[key]], entry)
        else:
            merged.append(entry)
    return merged


def merge_documents(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """ベース文書に環境別文書を重ねた新しい辞書を返す。引数は変更しない。"""
    result = _merge_mapping(base, {k: v for k, v in override.items() if k != "flags"})
    if "flags" in override:
        result["flags"] = _merge_flags(base.get("flags") or [], override["flags"] or [])
    return result


def load(base_path: Path, env_path: Path | None = None) -> FlagConfig:
    """フラグ設定ファイルを読み込んで FlagConfig を返す。

    base_path: ベース設定ファイルパス（必須）
    env_path: 環境別設定ファイルパス（オプション）。存在する場合はベースにマージ。

    Raises:
        FeatureFlagError: 読み込み・パース・設定検証に失敗した場合
        InvalidCatalogError, CyclicDependencyError: カタログが不正な場合
    """
    data = _read_yaml(base_path)
    if env_path is not None and env_path.exists():
        data = merge_documents(data, _read_yaml(env_path))
    try:
        settings = EngineSettings.model_validate(data.get("settings") or {})
    except ValidationError as e:
        raise FeatureFlagError(
            code=FeatureFlagErrorCodes.VALIDATION,
            message=f"Flag settings validation failed: {e}",
            cause=e,
        ) from e
    return FlagConfig(settings=settings, catalog=load_catalog(data.get("flags") or []))
