# tests/unit/test_config.py
"""测试配置模型的默认值、校验与环境变量加载。"""

import pytest
from pydantic import ValidationError
from pytest import MonkeyPatch

from localize_hub.config import (
    EngineName,
    GlossaryConfig,
    LocalizeHubConfig,
    RetryPolicyConfig,
)


def test_defaults(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.chdir("/")
    config = LocalizeHubConfig()

    assert config.active_engine is EngineName.DEEPL
    assert config.fallback_locale == "en"
    assert config.batch.max_batch_size == 50
    assert config.retry_policy.max_attempts == 3
    assert config.retry_policy.initial_backoff == 1.0
    assert config.glossary.glossary_name("en", "de") == "Strapi Glossary (en-de)"


def test_environment_overrides_nested_values(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("LH_ACTIVE_ENGINE", "debug")
    monkeypatch.setenv("LH_DEEPL__API_KEY", "env-key:fx")
    monkeypatch.setenv("LH_BATCH__MAX_CONCURRENCY", "2")
    monkeypatch.setenv("LH_LOGGING__FORMAT", "json")

    config = LocalizeHubConfig()

    assert config.active_engine is EngineName.DEBUG
    assert config.deepl.api_key is not None
    assert config.deepl.api_key.get_secret_value() == "env-key:fx"
    assert config.batch.max_concurrency == 2
    assert config.logging.format == "json"


def test_api_key_is_not_exposed_in_repr() -> None:
    config = LocalizeHubConfig(deepl={"api_key": "super-secret"})
    assert "super-secret" not in repr(config)


def test_backoff_consistency_is_validated() -> None:
    with pytest.raises(ValidationError):
        RetryPolicyConfig(initial_backoff=10.0, max_backoff=1.0)


def test_glossary_base_lang_is_normalized() -> None:
    assert GlossaryConfig(base_lang="EN").base_lang == "en"
    with pytest.raises(ValidationError):
        GlossaryConfig(base_lang="123")


@pytest.mark.parametrize(
    "url, expected",
    [
        ("sqlite+aiosqlite:///localize_hub.db", "localize_hub.db"),
        ("sqlite+aiosqlite:////var/data/lh.db", "/var/data/lh.db"),
        ("sqlite+aiosqlite:///:memory:", ":memory:"),
    ],
)
def test_db_path(url: str, expected: str) -> None:
    assert LocalizeHubConfig(database_url=url).db_path == expected


def test_db_path_requires_sqlite() -> None:
    with pytest.raises(ValueError):
        _ = LocalizeHubConfig(database_url="postgresql://localhost/db").db_path
