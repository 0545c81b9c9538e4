# localize_hub/coordinator.py
"""本模块包含 Localize-Hub 的主协调器，是所有公共操作的统一入口。"""

import asyncio
from typing import Any, Optional

import structlog

from localize_hub.batch import BatchDriver, validate_content_model, validate_translation_target
from localize_hub.cache import TranslationCache
from localize_hub.config import LocalizeHubConfig
from localize_hub.engines import create_client
from localize_hub.glossary import GlossaryReconciler
from localize_hub.interfaces import (
    EntityId,
    EntityStore,
    LocaleRegistry,
    SchemaRegistry,
    SettingsStore,
    TranslationClient,
)
from localize_hub.resolver import ContentUpsertResolver
from localize_hub.settings import SettingsService
from localize_hub.translator import FieldTranslator
from localize_hub.types import (
    LOCALIZATIONS_FIELD,
    BatchResult,
    ContentEntity,
    GlossaryIdMap,
    GlossaryRecord,
    Language,
)
from localize_hub.utils import validate_entity_id

logger = structlog.get_logger(__name__)

EXCLUDED_MODEL_PREFIXES = ("plugin::", "strapi::")


class Coordinator:
    """异步主协调器，组装翻译客户端、字段翻译器、写入器、批量驱动与术语表同步。"""

    def __init__(
        self,
        config: LocalizeHubConfig,
        entity_store: EntityStore,
        schemas: SchemaRegistry,
        settings_store: SettingsStore,
        locales: LocaleRegistry,
        client: Optional[TranslationClient] = None,
    ):
        self.config = config
        self.store = entity_store
        self.schemas = schemas
        self.locales = locales
        self.settings = SettingsService(
            settings_store,
            encryption_key=(
                config.encryption_key.get_secret_value() if config.encryption_key else None
            ),
        )

        self._owns_client = client is None
        self.client: TranslationClient = client or create_client(config, self.settings)
        self.cache = TranslationCache(config.cache) if config.cache.enabled else None
        self.translator = FieldTranslator(
            self.client,
            cache=self.cache,
            array_concurrency=config.deepl.array_concurrency,
            default_source_lang=config.glossary.base_lang,
        )
        self.resolver = ContentUpsertResolver(
            entity_store,
            schemas,
            self.settings,
            self.translator,
            fallback_locale=config.fallback_locale,
        )
        self.batch_driver = BatchDriver(self.resolver, schemas, config.batch)
        self.reconciler = GlossaryReconciler(self.client, self.settings, config.glossary)

        self.initialized = False
        self._shutting_down = False
        self._active_tasks: set[asyncio.Task[Any]] = set()

    async def initialize(self) -> None:
        if self.initialized:
            return
        models = self.localizable_models()
        logger.info("协调器初始化完成", localizable_models=len(models))
        if models:
            logger.debug("可本地化的内容类型", models=models)
        self.initialized = True

    async def close(self) -> None:
        """取消未完成的自动翻译任务，并释放自有的翻译客户端。"""
        if self._shutting_down or not self.initialized:
            return
        logger.info("开始优雅停机...")
        self._shutting_down = True

        if self._active_tasks:
            for task in list(self._active_tasks):
                task.cancel()
            await asyncio.gather(*self._active_tasks, return_exceptions=True)

        if self._owns_client:
            await self.client.close()
        if self.cache is not None:
            await self.cache.clear()
        self.initialized = False
        logger.info("优雅停机完成。")

    def localizable_models(self) -> list[str]:
        """列出会订阅自动翻译的内容类型：启用 i18n 的集合类型，排除插件与系统模型。"""
        return [
            schema.uid
            for schema in self.schemas.list_models()
            if schema.kind == "collectionType"
            and schema.localized
            and not schema.uid.startswith(EXCLUDED_MODEL_PREFIXES)
        ]

    # ---- 公共操作 ----

    async def translate_content(
        self,
        entity_id: Any,
        model: Any,
        target_locale: Any,
        source_locale: Optional[str] = None,
    ) -> ContentEntity:
        normalized_id = validate_entity_id(entity_id)
        validate_content_model(self.schemas, model)
        validate_translation_target(target_locale, source_locale)
        return await self.resolver.translate_content(
            normalized_id, model, target_locale, source_locale
        )

    async def translate_batch(
        self,
        ids: Any,
        model: str,
        target_locale: str,
        source_locale: Optional[str] = None,
    ) -> BatchResult:
        return await self.batch_driver.translate_batch(
            ids, model, target_locale, source_locale
        )

    async def get_available_languages(self) -> list[Language]:
        return await self.client.get_available_languages()

    async def sync_glossaries(self) -> Optional[GlossaryIdMap]:
        return await self.reconciler.sync()

    async def list_glossaries(self) -> list[GlossaryRecord]:
        return await self.reconciler.list_glossaries()

    async def get_glossary_entries(self, glossary_id: str) -> dict[str, str]:
        return await self.client.get_glossary_entries(glossary_id)

    async def check_connection(self) -> dict[str, Any]:
        """调用供应商的用量接口，验证凭证与网络是否可用。"""
        return await self.client.check_connection()

    # ---- 自动翻译 ----

    def on_entity_changed(self, model: str, entity_id: EntityId) -> Optional[asyncio.Task[None]]:
        """
        实体创建或更新后的回调。

        在 `auto_translate_delay` 秒后于后台执行自动翻译，让触发本次回调的写入先完成。
        返回已调度的任务；协调器正在停机时返回 None。
        """
        if self._shutting_down:
            logger.warning("协调器正在停机，忽略实体变更通知", model=model, entity_id=entity_id)
            return None
        task = asyncio.create_task(self._delayed_auto_translate(model, entity_id))
        self._active_tasks.add(task)
        task.add_done_callback(self._active_tasks.discard)
        return task

    async def _delayed_auto_translate(self, model: str, entity_id: EntityId) -> None:
        await asyncio.sleep(self.config.auto_translate_delay)
        await self.auto_translate(model, entity_id)

    async def auto_translate(self, model: str, entity_id: EntityId) -> list[str]:
        """
        将实体翻译到除自身 locale 外的所有已注册 locale。

        Returns:
            成功翻译的 locale 列表；不满足自动翻译条件时为空列表。
        """
        log = logger.bind(model=model, entity_id=entity_id)
        settings = await self.settings.get_settings()
        if not settings.auto_translate:
            return []
        content_type = settings.content_types.get(model)
        if content_type is None or not content_type.enabled or not content_type.auto_translate:
            return []
        schema = self.schemas.get_model(model)
        if schema is None or not schema.localized:
            return []

        entity = await self.store.find_one(model, entity_id, populate=[LOCALIZATIONS_FIELD])
        if not entity or not entity.get(LOCALIZATIONS_FIELD):
            log.debug("实体没有其他语言版本，跳过自动翻译")
            return []

        current_locale = entity.get("locale") or self.config.fallback_locale
        translated: list[str] = []
        for locale in await self.locales.list_locales():
            if locale.code == current_locale:
                continue
            try:
                await self.resolver.translate_content(
                    entity_id, model, locale.code, current_locale
                )
            except Exception as e:
                log.error("自动翻译失败", target=locale.code, error=str(e))
                continue
            translated.append(locale.code)
            log.info("自动翻译完成", source=current_locale, target=locale.code)
        return translated
