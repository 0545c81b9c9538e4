# localize_hub/batch.py
"""
本模块实现批量翻译驱动：先整体校验请求，再以有界并发逐个翻译实体。

单个实体的失败只会体现为该条目的 FAILED 结果，不会中止同批次的其他实体。
"""

import asyncio
import time
from typing import Any, Optional

import structlog

from localize_hub.config import BatchConfig
from localize_hub.exceptions import BatchSizeError, LocalizeHubError, ValidationError
from localize_hub.interfaces import SchemaRegistry
from localize_hub.resolver import ContentUpsertResolver
from localize_hub.types import BatchItemResult, BatchItemStatus, BatchResult
from localize_hub.utils import (
    validate_entity_id,
    validate_locale,
    validate_model_uid,
)

logger = structlog.get_logger(__name__)


def validate_content_model(schemas: SchemaRegistry, model: Any) -> str:
    """校验内容类型存在且启用了多语言。"""
    validate_model_uid(model)
    schema = schemas.get_model(model)
    if schema is None:
        raise ValidationError(f"内容类型 '{model}' 不存在")
    if not schema.localized:
        raise ValidationError(f"内容类型 '{model}' 未启用 i18n")
    return model


def validate_translation_target(
    target_locale: Any, source_locale: Optional[str] = None
) -> None:
    validate_locale(target_locale, "targetLocale")
    if source_locale:
        validate_locale(source_locale, "sourceLocale")


class BatchDriver:
    """批量翻译驱动。"""

    def __init__(
        self,
        resolver: ContentUpsertResolver,
        schemas: SchemaRegistry,
        config: Optional[BatchConfig] = None,
    ):
        self.resolver = resolver
        self.schemas = schemas
        self.config = config or BatchConfig()

    def validate(
        self,
        ids: Any,
        model: Any,
        target_locale: Any,
        source_locale: Optional[str] = None,
    ) -> list[int]:
        """按固定顺序校验批量请求，返回规范化后的 ID 列表。"""
        if not isinstance(ids, list) or not ids:
            raise ValidationError("ids 必须是非空列表")
        if len(ids) > self.config.max_batch_size:
            raise BatchSizeError(
                f"批量大小 {len(ids)} 超过上限 {self.config.max_batch_size}"
            )
        normalized: list[int] = []
        for entity_id in ids:
            try:
                normalized.append(validate_entity_id(entity_id))
            except ValidationError as e:
                raise ValidationError(f"无效的 ID '{entity_id}': {e}") from e
        validate_content_model(self.schemas, model)
        validate_translation_target(target_locale, source_locale)
        return normalized

    async def translate_batch(
        self,
        ids: Any,
        model: str,
        target_locale: str,
        source_locale: Optional[str] = None,
    ) -> BatchResult:
        started = time.perf_counter()
        logger.info(
            "收到批量翻译请求",
            model=model,
            count=len(ids) if isinstance(ids, list) else None,
            target=target_locale,
            source=source_locale or "auto",
        )
        try:
            normalized = self.validate(ids, model, target_locale, source_locale)
        except ValidationError as e:
            logger.warning("批量翻译校验失败", error=str(e))
            raise

        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def _translate_one(entity_id: int) -> BatchItemResult:
            async with semaphore:
                try:
                    data = await self.resolver.translate_content(
                        entity_id, model, target_locale, source_locale
                    )
                except LocalizeHubError as e:
                    return BatchItemResult(
                        id=entity_id, status=BatchItemStatus.FAILED, error=str(e)
                    )
                except Exception as e:
                    logger.error(
                        "翻译实体时发生未预期的错误", entity_id=entity_id, exc_info=True
                    )
                    return BatchItemResult(
                        id=entity_id,
                        status=BatchItemStatus.FAILED,
                        error=str(e) or e.__class__.__name__,
                    )
            return BatchItemResult(
                id=entity_id, status=BatchItemStatus.SUCCESS, data=data
            )

        # 重复的 ID 只翻译一次，结果按输入位置复用
        unique_ids = list(dict.fromkeys(normalized))
        unique_items = await asyncio.gather(*(_translate_one(i) for i in unique_ids))
        by_id = dict(zip(unique_ids, unique_items))
        result = BatchResult.from_items([by_id[i] for i in normalized])

        logger.info(
            "批量翻译完成",
            model=model,
            total=result.total,
            successful=result.successful,
            failed=result.failed,
            duration_ms=round((time.perf_counter() - started) * 1000),
        )
        if result.failed:
            logger.warning("部分实体翻译失败", failed_ids=result.failed_ids)
        return result
