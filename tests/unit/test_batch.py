# tests/unit/test_batch.py
"""测试批量翻译驱动的校验顺序、失败隔离与并发上限。"""

import asyncio
from typing import Any, Optional
from unittest.mock import AsyncMock

import pytest
from pytest_mock import MockerFixture

from localize_hub.batch import BatchDriver
from localize_hub.config import BatchConfig
from localize_hub.engines.debug import DebugClient
from localize_hub.exceptions import BatchSizeError, NotFoundError, ValidationError
from localize_hub.resolver import ContentUpsertResolver
from localize_hub.settings import SettingsService
from localize_hub.stores.memory import InMemoryEntityStore, InMemorySchemaRegistry
from localize_hub.translator import FieldTranslator
from localize_hub.types import BatchItemStatus
from tests.conftest import ARTICLE_UID, PAGE_UID


@pytest.fixture
def resolver(
    entity_store: InMemoryEntityStore,
    schemas: InMemorySchemaRegistry,
    settings_service: SettingsService,
    debug_client: DebugClient,
) -> ContentUpsertResolver:
    return ContentUpsertResolver(
        entity_store, schemas, settings_service, FieldTranslator(debug_client)
    )


@pytest.fixture
def driver(
    resolver: ContentUpsertResolver, schemas: InMemorySchemaRegistry
) -> BatchDriver:
    return BatchDriver(resolver, schemas)


@pytest.mark.asyncio
async def test_partial_failure_is_reported_per_item(
    driver: BatchDriver, entity_store: InMemoryEntityStore
) -> None:
    entity_store.insert(ARTICLE_UID, {"id": 1, "locale": "en", "title": "One"})
    entity_store.insert(ARTICLE_UID, {"id": 3, "locale": "en", "title": "Three"})

    result = await driver.translate_batch([1, 2, 3], ARTICLE_UID, "de")

    assert (result.total, result.successful, result.failed) == (3, 2, 1)
    assert [r.id for r in result.results] == [1, 2, 3]
    assert [r.status for r in result.results] == [
        BatchItemStatus.SUCCESS,
        BatchItemStatus.FAILED,
        BatchItemStatus.SUCCESS,
    ]
    assert result.results[1].error and "id=2" in result.results[1].error
    assert result.results[0].data is not None
    assert result.results[0].data["title"] == "Translated(One) to de"
    assert result.failed_ids == [2]


@pytest.mark.asyncio
async def test_duplicate_ids_are_translated_once(
    driver: BatchDriver,
    resolver: ContentUpsertResolver,
    entity_store: InMemoryEntityStore,
    mocker: MockerFixture,
) -> None:
    entity_store.insert(ARTICLE_UID, {"id": 1, "locale": "en", "title": "One"})
    entity_store.insert(ARTICLE_UID, {"id": 3, "locale": "en", "title": "Three"})
    spy = mocker.spy(resolver, "translate_content")

    result = await driver.translate_batch([1, 3, "1", 1], ARTICLE_UID, "de")

    assert spy.call_count == 2
    assert [r.id for r in result.results] == [1, 3, 1, 1]
    assert (result.total, result.successful, result.failed) == (4, 4, 0)
    assert result.results[0].data == result.results[3].data
    copies = await entity_store.find_many(ARTICLE_UID, filters={"locale": "de"})
    assert len(copies) == 2


@pytest.mark.asyncio
async def test_empty_batch_is_rejected(driver: BatchDriver) -> None:
    with pytest.raises(ValidationError):
        await driver.translate_batch([], ARTICLE_UID, "de")


@pytest.mark.asyncio
async def test_non_list_ids_are_rejected(driver: BatchDriver) -> None:
    with pytest.raises(ValidationError):
        await driver.translate_batch("1,2", ARTICLE_UID, "de")


@pytest.mark.asyncio
async def test_oversized_batch_is_rejected_before_any_work(
    driver: BatchDriver, mocker: MockerFixture
) -> None:
    spy = mocker.spy(driver.resolver, "translate_content")

    with pytest.raises(BatchSizeError):
        await driver.translate_batch(list(range(1, 52)), ARTICLE_UID, "de")
    spy.assert_not_called()


@pytest.mark.asyncio
async def test_batch_at_the_cap_proceeds(driver: BatchDriver) -> None:
    result = await driver.translate_batch(list(range(1, 51)), ARTICLE_UID, "de")

    assert result.total == 50
    assert result.failed == 50


@pytest.mark.parametrize("bad_id", [0, -1, "abc", 1.5, None, True])
def test_malformed_id_is_rejected(driver: BatchDriver, bad_id: Any) -> None:
    with pytest.raises(ValidationError, match="无效的 ID"):
        driver.validate([1, bad_id], ARTICLE_UID, "de")


def test_numeric_string_ids_are_normalized(driver: BatchDriver) -> None:
    assert driver.validate(["1", 2, "3"], ARTICLE_UID, "de") == [1, 2, 3]


@pytest.mark.parametrize(
    "model",
    ["article", "api::missing.missing", PAGE_UID, "", None],
)
def test_invalid_model_is_rejected(driver: BatchDriver, model: Any) -> None:
    with pytest.raises(ValidationError):
        driver.validate([1], model, "de")


@pytest.mark.parametrize(
    "target, source",
    [("DE", None), ("german", None), ("", None), ("de", "EN"), ("de-de", None)],
)
def test_invalid_locale_is_rejected(
    driver: BatchDriver, target: str, source: Optional[str]
) -> None:
    with pytest.raises(ValidationError):
        driver.validate([1], ARTICLE_UID, target, source)


def test_region_locale_is_accepted(driver: BatchDriver) -> None:
    assert driver.validate([1], ARTICLE_UID, "pt-BR", "en") == [1]


def test_validation_order_size_before_ids_before_model(driver: BatchDriver) -> None:
    with pytest.raises(BatchSizeError):
        driver.validate([0] * 51, "bad-model", "XX")
    with pytest.raises(ValidationError, match="无效的 ID"):
        driver.validate([0], "bad-model", "XX")
    with pytest.raises(ValidationError, match="内容类型"):
        driver.validate([1], "bad-model", "XX")


@pytest.mark.asyncio
async def test_unexpected_error_is_isolated(driver: BatchDriver, mocker: MockerFixture) -> None:
    mocker.patch.object(
        driver.resolver,
        "translate_content",
        AsyncMock(side_effect=[{"id": 10}, RuntimeError("boom"), NotFoundError("gone")]),
    )

    result = await driver.translate_batch([1, 2, 3], ARTICLE_UID, "de")

    assert [r.status for r in result.results] == [
        BatchItemStatus.SUCCESS,
        BatchItemStatus.FAILED,
        BatchItemStatus.FAILED,
    ]
    assert result.results[1].error == "boom"
    assert result.results[2].error == "gone"


@pytest.mark.asyncio
async def test_concurrency_is_bounded(schemas: InMemorySchemaRegistry) -> None:
    active = 0
    peak = 0

    class SlowResolver:
        async def translate_content(self, entity_id: int, *args: Any) -> dict[str, Any]:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.001)
            active -= 1
            return {"id": entity_id + 100}

    driver = BatchDriver(
        SlowResolver(),  # type: ignore[arg-type]
        schemas,
        BatchConfig(max_concurrency=3),
    )
    result = await driver.translate_batch(list(range(1, 21)), ARTICLE_UID, "de")

    assert result.successful == 20
    assert 1 <= peak <= 3
