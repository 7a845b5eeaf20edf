"""環境ティア解決のユニットテスト"""

import pytest
from tierflag import (
    Catalog,
    EngineSettings,
    EnvironmentResolver,
    env_var_name,
    parse_bool,
    resolve,
)


def reader(values: dict[str, str]):
    return values.get


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        ("betaTesting", "FEATURE_BETA_TESTING"),
        ("experimentalUI", "FEATURE_EXPERIMENTAL_UI"),
        ("apiV2", "FEATURE_API_V2"),
        ("auth", "FEATURE_AUTH"),
        ("AUTH_ENABLED", "FEATURE_AUTH_ENABLED"),
        ("data-import", "FEATURE_DATA_IMPORT"),
    ],
)
def test_env_var_name(key: str, expected: str) -> None:
    """フラグキーから環境変数名への変換。"""
    assert env_var_name(key) == expected


def test_env_var_name_custom_prefix() -> None:
    """プレフィックスを変更できること。"""
    assert env_var_name("betaTesting", "FF_") == "FF_BETA_TESTING"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("true", True),
        ("TRUE", True),
        (" False ", False),
        ("false", False),
        ("maybe", None),
        ("1", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_bool(raw: str | None, expected: bool | None) -> None:
    """true/false のみ真偽値として解釈する。"""
    assert parse_bool(raw) is expected


def test_resolve_known_environment(scenario_catalog: Catalog) -> None:
    """既知の環境名は大文字小文字・空白を無視して解決される。"""
    snapshot = resolve(" Staging ", reader({}), scenario_catalog)
    assert snapshot.environment == "staging"
    assert snapshot.raw_environment == " Staging "
    assert snapshot.overrides == {}


@pytest.mark.parametrize("raw", ["qa", "", None])
def test_resolve_unknown_environment_falls_back(scenario_catalog: Catalog, raw: str | None) -> None:
    """未知の環境名は development にフォールバックする。"""
    assert resolve(raw, reader({}), scenario_catalog).environment == "development"


def test_resolve_custom_default_environment(scenario_catalog: Catalog) -> None:
    """フォールバック先は設定で変更できる。"""
    settings = EngineSettings(default_environment="test")
    assert resolve("qa", reader({}), scenario_catalog, settings).environment == "test"


def test_resolve_env_var_overrides(scenario_catalog: Catalog) -> None:
    """FEATURE_<KEY> の true/false がオーバーライドになる。"""
    env = {"FEATURE_BETA_TESTING": "TRUE", "FEATURE_EXPERIMENTAL_UI": "false"}
    snapshot = resolve("production", reader(env), scenario_catalog)
    assert snapshot.overrides == {"betaTesting": True, "experimentalUI": False}
    assert snapshot.override_for("betaTesting") is True


def test_resolve_ignores_unparseable_override(scenario_catalog: Catalog) -> None:
    """解釈できない値は未設定として扱う。"""
    snapshot = resolve("staging", reader({"FEATURE_BETA_TESTING": "maybe"}), scenario_catalog)
    assert snapshot.override_for("betaTesting") is None


def test_resolver_prefers_app_env(scenario_catalog: Catalog) -> None:
    """APP_ENV が NODE_ENV より優先される。"""
    resolver = EnvironmentResolver(
        scenario_catalog,
        env_var_reader=reader({"APP_ENV": "production", "NODE_ENV": "staging"}),
    )
    assert resolver.current().environment == "production"


def test_resolver_falls_back_to_node_env(scenario_catalog: Catalog) -> None:
    """APP_ENV が無ければ NODE_ENV を使う。"""
    resolver = EnvironmentResolver(scenario_catalog, env_var_reader=reader({"NODE_ENV": "staging"}))
    assert resolver.current().environment == "staging"


def test_resolver_snapshot_is_stable_until_refresh(scenario_catalog: Catalog) -> None:
    """refresh() を呼ぶまでスナップショットは変わらない。"""
    env = {"APP_ENV": "staging"}
    resolver = EnvironmentResolver(scenario_catalog, env_var_reader=env.get)
    first = resolver.current()
    env["APP_ENV"] = "production"
    env["FEATURE_BETA_TESTING"] = "true"
    assert resolver.current() is first
    refreshed = resolver.refresh()
    assert refreshed.environment == "production"
    assert refreshed.overrides == {"betaTesting": True}
    assert resolver.current() is refreshed


def test_resolver_reads_process_environment(
    scenario_catalog: Catalog, monkeypatch: pytest.MonkeyPatch
) -> None:
    """デフォルトでは os.environ を読む。"""
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("FEATURE_EXPERIMENTAL_UI", "false")
    snapshot = EnvironmentResolver(scenario_catalog).refresh()
    assert snapshot.environment == "staging"
    assert snapshot.overrides["experimentalUI"] is False
