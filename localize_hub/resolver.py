# localize_hub/resolver.py
"""
本模块实现内容翻译的幂等写入：为源实体查找或创建其目标 locale 副本。

同一 (源实体, 目标 locale) 最多只会存在一个副本，重复调用会收敛为更新。
"""

import asyncio
import time
import weakref
from collections.abc import Iterable
from typing import Any, Optional

import structlog

from localize_hub.exceptions import NotFoundError
from localize_hub.interfaces import EntityId, EntityStore, SchemaRegistry, SettingsProvider
from localize_hub.translator import FieldTranslator
from localize_hub.types import LOCALIZATIONS_FIELD, SYSTEM_FIELDS, ContentEntity

logger = structlog.get_logger(__name__)

REGENERATED_FIELDS = ("id", LOCALIZATIONS_FIELD)

UpsertKey = tuple[str, str, str]


def build_exclusion_set(ignored_fields: Iterable[str]) -> tuple[str, ...]:
    """系统字段在前、内容类型配置在后的有序去重并集。"""
    return tuple(dict.fromkeys([*SYSTEM_FIELDS, *ignored_fields]))


def _ref_id(value: Any) -> Any:
    if isinstance(value, dict):
        return value.get("id", value)
    return value


def project_relations(
    entity: ContentEntity, relation_fields: Iterable[str]
) -> dict[str, Any]:
    """将关系字段投影为裸 ID（单个 ID 或 ID 列表）。"""
    relations: dict[str, Any] = {}
    for field in relation_fields:
        value = entity.get(field)
        if not value:
            continue
        if isinstance(value, (list, tuple)):
            relations[field] = [_ref_id(item) for item in value]
        else:
            relations[field] = _ref_id(value)
    return relations


def links_to(candidate: ContentEntity, source_id: EntityId) -> bool:
    """判断候选实体的 localizations 是否引用了源实体。"""
    links = candidate.get(LOCALIZATIONS_FIELD) or []
    return any(str(_ref_id(link)) == str(source_id) for link in links)


class ContentUpsertResolver:
    """翻译单个实体并以 upsert 方式写回实体存储。"""

    def __init__(
        self,
        store: EntityStore,
        schemas: SchemaRegistry,
        settings: SettingsProvider,
        translator: FieldTranslator,
        fallback_locale: str = "en",
    ):
        self.store = store
        self.schemas = schemas
        self.settings = settings
        self.translator = translator
        self.fallback_locale = fallback_locale
        # 锁只在有调用持有时存活
        self._locks: weakref.WeakValueDictionary[UpsertKey, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _upsert_lock(self, model: str, source_id: EntityId, target_locale: str) -> asyncio.Lock:
        key = (model, str(source_id), target_locale)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def translate_content(
        self,
        entity_id: EntityId,
        model: str,
        target_locale: str,
        source_locale: Optional[str] = None,
    ) -> ContentEntity:
        """
        翻译 `model` 中的实体 `entity_id` 到 `target_locale`，返回持久化后的副本。

        任何翻译失败都会向上传播，此时不会写入任何数据。
        """
        started = time.perf_counter()
        log = logger.bind(model=model, entity_id=entity_id, target=target_locale)
        log.info("开始翻译内容", source=source_locale or "auto")

        entity = await self.store.find_one(
            model,
            entity_id,
            populate="deep",
            locale=source_locale or self.fallback_locale,
        )
        if not entity:
            log.error("源实体不存在")
            raise NotFoundError(f"实体不存在: model={model}, id={entity_id}")

        # 设置在整次调用中只读取一次
        settings = await self.settings.get_settings()
        content_type = settings.content_types.get(model)
        ignored = content_type.ignored_fields if content_type else []
        excluded = build_exclusion_set(ignored)
        log.debug("翻译配置", ignored_fields=len(ignored))

        # 关系字段只投影为 ID，其内容不送去翻译
        schema = self.schemas.get_model(model)
        relation_fields = schema.relation_fields if schema else []
        translatable = {k: v for k, v in entity.items() if k not in relation_fields}

        translated = await self.translator.translate_object(
            translatable,
            target_locale,
            source_locale,
            excluded,
            glossary_ids=settings.glossary_ids,
        )
        for field in REGENERATED_FIELDS:
            translated.pop(field, None)

        payload = {
            **translated,
            **project_relations(entity, relation_fields),
            "locale": target_locale,
        }

        source_id = entity.get("id", entity_id)
        # 查找与写入必须对同一 (模型, 源实体, 目标 locale) 串行执行
        async with self._upsert_lock(model, source_id, target_locale):
            existing = await self.find_counterpart(model, source_id, target_locale)
            if existing is not None:
                log.debug("更新已有译文", translation_id=existing["id"])
                result = await self.store.update(model, existing["id"], data=payload)
            else:
                log.debug("创建新译文")
                result = await self.store.create(
                    model, data={**payload, LOCALIZATIONS_FIELD: [source_id]}
                )

        log.info(
            "内容翻译完成",
            result_id=result.get("id"),
            duration_ms=round((time.perf_counter() - started) * 1000),
        )
        return result

    async def find_counterpart(
        self, model: str, source_id: EntityId, target_locale: str
    ) -> Optional[ContentEntity]:
        """查找目标 locale 中已链接到源实体的副本。"""
        candidates = await self.store.find_many(
            model,
            filters={"locale": target_locale},
            populate=[LOCALIZATIONS_FIELD],
        )
        return next((c for c in candidates if links_to(c, source_id)), None)
