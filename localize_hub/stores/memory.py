# localize_hub/stores/memory.py
"""
本模块提供各外部协作方协议的内存实现，以及实体存储共用的 localizations 链接逻辑。

内存实现用于测试、调试引擎和 CLI 的注册表加载。
"""

import copy
import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from localize_hub.exceptions import ConfigurationError, NotFoundError
from localize_hub.interfaces import EntityId
from localize_hub.types import LOCALIZATIONS_FIELD, ContentEntity, Locale, ModelSchema

logger = structlog.get_logger(__name__)


def normalize_link_ids(links: Any) -> list[int]:
    """将 `[3, {"id": 4}]` 这样的链接列表规范化为整数 ID 列表。"""
    ids: list[int] = []
    for link in links or []:
        raw = link.get("id") if isinstance(link, dict) else link
        if raw is None:
            continue
        ids.append(int(raw))
    return ids


def wants_localizations(populate: Any) -> bool:
    if populate is None:
        return False
    if isinstance(populate, str):
        return populate in ("deep", "*", LOCALIZATIONS_FIELD)
    return LOCALIZATIONS_FIELD in populate


def matches_filters(entity: ContentEntity, filters: Optional[dict[str, Any]]) -> bool:
    return all(entity.get(k) == v for k, v in (filters or {}).items())


class InMemoryEntityStore:
    """
    按模型分区保存实体的内存存储。

    实体以整数 ID 为主键，`localizations` 内部保存为 ID 列表；
    读取时若要求 populate，则展开为 `{"id", "locale"}` 对象。
    创建带 `localizations` 的实体时会双向链接整个语言版本组。
    """

    def __init__(self) -> None:
        self._models: dict[str, dict[int, ContentEntity]] = {}
        self._next_id = 1

    def insert(self, model: str, entity: ContentEntity) -> ContentEntity:
        """按原样写入一个实体（测试与种子数据用），保留其 ID。"""
        record = copy.deepcopy(entity)
        if "id" not in record:
            record["id"] = self._allocate_id()
        record["id"] = int(record["id"])
        record[LOCALIZATIONS_FIELD] = normalize_link_ids(record.get(LOCALIZATIONS_FIELD))
        self._next_id = max(self._next_id, record["id"] + 1)
        self._models.setdefault(model, {})[record["id"]] = record
        return copy.deepcopy(record)

    def _allocate_id(self) -> int:
        entity_id = self._next_id
        self._next_id += 1
        return entity_id

    def _present(self, model: str, record: ContentEntity, populate: Any) -> ContentEntity:
        entity = copy.deepcopy(record)
        link_ids = entity.pop(LOCALIZATIONS_FIELD, [])
        if wants_localizations(populate):
            table = self._models.get(model, {})
            entity[LOCALIZATIONS_FIELD] = [
                {"id": i, "locale": table[i].get("locale")} for i in link_ids if i in table
            ]
        return entity

    async def find_one(
        self,
        model: str,
        entity_id: EntityId,
        *,
        populate: Any = None,
        locale: Optional[str] = None,
    ) -> Optional[ContentEntity]:
        # ID 全局唯一，locale 仅作为查询提示
        try:
            key = int(entity_id)
        except (TypeError, ValueError):
            return None
        record = self._models.get(model, {}).get(key)
        if record is None:
            return None
        return self._present(model, record, populate)

    async def find_many(
        self,
        model: str,
        *,
        filters: Optional[dict[str, Any]] = None,
        populate: Any = None,
    ) -> list[ContentEntity]:
        return [
            self._present(model, record, populate)
            for record in self._models.get(model, {}).values()
            if matches_filters(record, filters)
        ]

    async def create(self, model: str, *, data: dict[str, Any]) -> ContentEntity:
        table = self._models.setdefault(model, {})
        record = copy.deepcopy(data)
        record.pop("id", None)
        record["id"] = self._allocate_id()

        group = self._link_group(table, normalize_link_ids(record.get(LOCALIZATIONS_FIELD)))
        record[LOCALIZATIONS_FIELD] = group
        for linked_id in group:
            links = table[linked_id][LOCALIZATIONS_FIELD]
            if record["id"] not in links:
                links.append(record["id"])
        table[record["id"]] = record
        logger.debug("实体已创建", model=model, entity_id=record["id"], linked=group)
        return self._present(model, record, LOCALIZATIONS_FIELD)

    @staticmethod
    def _link_group(table: dict[int, ContentEntity], seed: Iterable[int]) -> list[int]:
        group: list[int] = []
        for linked_id in seed:
            if linked_id not in table:
                continue
            for member in [linked_id, *table[linked_id][LOCALIZATIONS_FIELD]]:
                if member not in group:
                    group.append(member)
        return group

    async def update(
        self, model: str, entity_id: EntityId, *, data: dict[str, Any]
    ) -> ContentEntity:
        table = self._models.get(model, {})
        key = int(entity_id)
        if key not in table:
            raise NotFoundError(f"实体不存在: model={model}, id={entity_id}")
        changes = copy.deepcopy(data)
        changes.pop("id", None)
        changes.pop(LOCALIZATIONS_FIELD, None)
        table[key].update(changes)
        return self._present(model, table[key], LOCALIZATIONS_FIELD)


class InMemorySettingsStore:
    def __init__(self, initial: Optional[dict[str, dict[str, Any]]] = None):
        self._data: dict[str, dict[str, Any]] = copy.deepcopy(initial or {})

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)


class InMemorySchemaRegistry:
    """以字典保存 `ModelSchema` 的内容类型注册表。"""

    def __init__(self, models: Iterable[ModelSchema] = ()):
        self._models = {m.uid: m for m in models}

    def register(self, schema: ModelSchema) -> None:
        self._models[schema.uid] = schema

    def get_model(self, uid: str) -> Optional[ModelSchema]:
        return self._models.get(uid)

    def list_models(self) -> list[ModelSchema]:
        return list(self._models.values())


class StaticLocaleRegistry:
    def __init__(self, locales: Iterable[Locale] = ()):
        self._locales = list(locales)

    async def list_locales(self) -> list[Locale]:
        return list(self._locales)


def load_registries(
    path: Optional[Path], default_locale: str = "en"
) -> tuple[InMemorySchemaRegistry, StaticLocaleRegistry]:
    """
    从 JSON 文件加载内容类型与 locale 注册表。

    文件格式为 `{"models": [ModelSchema...], "locales": [Locale...]}`。
    未提供文件时返回空的内容类型注册表和只含默认 locale 的 locale 注册表。
    """
    if path is None:
        return InMemorySchemaRegistry(), StaticLocaleRegistry(
            [Locale(code=default_locale, is_default=True)]
        )
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"无法读取注册表文件 '{path}': {e}") from e

    try:
        models = [ModelSchema.model_validate(m) for m in raw.get("models", [])]
        locales = [Locale.model_validate(loc) for loc in raw.get("locales", [])]
    except PydanticValidationError as e:
        raise ConfigurationError(f"注册表文件 '{path}' 格式无效: {e}") from e
    if not locales:
        locales = [Locale(code=default_locale, is_default=True)]
    logger.info("注册表已加载", path=str(path), models=len(models), locales=len(locales))
    return InMemorySchemaRegistry(models), StaticLocaleRegistry(locales)
