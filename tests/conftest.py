# tests/conftest.py
"""项目全局共享的测试 Fixtures。"""

from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock

import pytest
from pytest_mock import MockerFixture
from rich.console import Console

from localize_hub.config import EngineName, LocalizeHubConfig, RetryPolicyConfig
from localize_hub.engines.debug import DebugClient
from localize_hub.settings import SettingsService
from localize_hub.stores.memory import (
    InMemoryEntityStore,
    InMemorySchemaRegistry,
    InMemorySettingsStore,
    StaticLocaleRegistry,
)
from localize_hub.types import AttributeSchema, Locale, ModelSchema

ARTICLE_UID = "api::article.article"
PAGE_UID = "api::page.page"
TEST_ENCRYPTION_KEY = "test-encryption-passphrase"


@pytest.fixture(scope="session", autouse=True)
def disable_rich_colors_for_tests(
    session_mocker: MockerFixture,
) -> Generator[None, None, None]:
    """全局禁用 rich 库的颜色输出，以确保测试结果的确定性。"""
    original_init = Console.__init__

    def new_init(self: Console, *args: Any, **kwargs: Any) -> None:
        kwargs["force_terminal"] = False
        kwargs["color_system"] = None
        original_init(self, *args, **kwargs)

    session_mocker.patch("rich.console.Console.__init__", new=new_init)
    yield


@pytest.fixture
def no_sleep(mocker: MockerFixture) -> AsyncMock:
    """让重试退避立即返回，并记录每次等待的秒数。"""
    return mocker.patch("localize_hub.retry.asyncio.sleep", new_callable=AsyncMock)


@pytest.fixture
def article_schema() -> ModelSchema:
    return ModelSchema(
        uid=ARTICLE_UID,
        localized=True,
        attributes={
            "title": AttributeSchema(type="string"),
            "slug": AttributeSchema(type="uid"),
            "content": AttributeSchema(type="component"),
            "category": AttributeSchema(
                type="relation", relation="manyToOne", target="api::category.category"
            ),
            "tags": AttributeSchema(
                type="relation", relation="manyToMany", target="api::tag.tag"
            ),
        },
    )


@pytest.fixture
def schemas(article_schema: ModelSchema) -> InMemorySchemaRegistry:
    return InMemorySchemaRegistry(
        [article_schema, ModelSchema(uid=PAGE_UID, localized=False)]
    )


@pytest.fixture
def entity_store() -> InMemoryEntityStore:
    return InMemoryEntityStore()


@pytest.fixture
def settings_store() -> InMemorySettingsStore:
    return InMemorySettingsStore()


@pytest.fixture
def settings_service(settings_store: InMemorySettingsStore) -> SettingsService:
    return SettingsService(settings_store, encryption_key=TEST_ENCRYPTION_KEY)


@pytest.fixture
def debug_client() -> DebugClient:
    return DebugClient()


@pytest.fixture
def locales() -> StaticLocaleRegistry:
    return StaticLocaleRegistry(
        [Locale(code="en", name="English", is_default=True), Locale(code="de"), Locale(code="fr")]
    )


@pytest.fixture
def test_config() -> LocalizeHubConfig:
    """一个不访问网络、不等待的配置。"""
    return LocalizeHubConfig(
        active_engine=EngineName.DEBUG,
        database_url="sqlite+aiosqlite:///:memory:",
        encryption_key=TEST_ENCRYPTION_KEY,
        auto_translate_delay=0,
        retry_policy=RetryPolicyConfig(
            max_attempts=3, initial_backoff=0.01, max_backoff=0.02, jitter=False
        ),
    )
