# localize_hub/interfaces.py
"""
本模块使用 typing.Protocol 定义了编排引擎与外部协作方之间的接口协议。

引擎只依赖这些协议：实体存储、设置存储、内容类型注册表、locale 注册表，
以及翻译客户端本身。生产环境与测试分别注入不同的实现。
"""

from typing import Any, Optional, Protocol, Union

from localize_hub.types import (
    ContentEntity,
    GlossaryRecord,
    GlossaryTerm,
    Language,
    Locale,
    ModelSchema,
    PluginSettings,
)

EntityId = Union[int, str]


class EntityStore(Protocol):
    """内容实体的持久化协作方。"""

    async def find_one(
        self,
        model: str,
        entity_id: EntityId,
        *,
        populate: Any = None,
        locale: Optional[str] = None,
    ) -> Optional[ContentEntity]: ...

    async def find_many(
        self,
        model: str,
        *,
        filters: Optional[dict[str, Any]] = None,
        populate: Any = None,
    ) -> list[ContentEntity]: ...

    async def create(self, model: str, *, data: dict[str, Any]) -> ContentEntity: ...

    async def update(
        self, model: str, entity_id: EntityId, *, data: dict[str, Any]
    ) -> ContentEntity: ...


class SchemaRegistry(Protocol):
    """内容类型注册表。"""

    def get_model(self, uid: str) -> Optional[ModelSchema]: ...

    def list_models(self) -> list[ModelSchema]: ...


class SettingsStore(Protocol):
    """键值形式的设置存储。"""

    async def get(self, key: str) -> Optional[dict[str, Any]]: ...

    async def set(self, key: str, value: dict[str, Any]) -> None: ...


class SettingsProvider(Protocol):
    """为引擎提供当前设置快照（API 密钥、术语表 ID 映射等）。"""

    async def get_settings(self) -> PluginSettings: ...


class LocaleRegistry(Protocol):
    async def list_locales(self) -> list[Locale]: ...


class TranslationClient(Protocol):
    """翻译供应商客户端的契约。"""

    async def translate(
        self,
        text: str,
        target_lang: str,
        source_lang: Optional[str] = None,
        glossary_id: Optional[str] = None,
    ) -> str: ...

    async def get_available_languages(self) -> list[Language]: ...

    async def list_glossaries(self) -> list[GlossaryRecord]: ...

    async def create_glossary(
        self,
        name: str,
        source_lang: str,
        target_lang: str,
        entries: list[GlossaryTerm],
    ) -> GlossaryRecord: ...

    async def delete_glossary(self, glossary_id: str) -> None: ...

    async def get_glossary_entries(self, glossary_id: str) -> dict[str, str]: ...

    async def check_connection(self) -> dict[str, Any]: ...

    async def close(self) -> None: ...
