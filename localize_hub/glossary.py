# localize_hub/glossary.py
"""
本模块负责将设置中的术语表与 DeepL 上的远程术语表保持同步。

DeepL v2 的术语表创建后不可修改，因此每个语言对的更新都是“删除后重建”。
同步按 加载 -> 分组 -> 比对并替换 -> 持久化 的顺序执行，
并通过锁保证同一时刻只有一次同步在运行。
"""

import asyncio
import time
from collections import defaultdict
from typing import Optional

import structlog

from localize_hub.config import GlossaryConfig
from localize_hub.exceptions import GlossarySyncError
from localize_hub.interfaces import TranslationClient
from localize_hub.settings import SettingsService
from localize_hub.types import GlossaryEntry, GlossaryIdMap, GlossaryRecord, GlossaryTerm
from localize_hub.utils import lang_pair_key

logger = structlog.get_logger(__name__)


def group_by_language_pair(
    entries: list[GlossaryEntry], base_lang: str = "en"
) -> dict[str, list[GlossaryTerm]]:
    """按 (基准语言, 目标语言) 分组；没有非空译法的语言对不会出现在结果中。"""
    grouped: dict[str, list[GlossaryTerm]] = defaultdict(list)
    for entry in entries:
        for target_lang, translation in entry.translations.items():
            if not translation:
                continue
            grouped[lang_pair_key(base_lang, target_lang)].append(
                GlossaryTerm(term=entry.term, translation=translation)
            )
    return dict(grouped)


def find_remote_glossary(
    remote: list[GlossaryRecord], name: str, source_lang: str, target_lang: str
) -> Optional[GlossaryRecord]:
    for record in remote:
        if (
            record.name == name
            and record.source_lang.lower() == source_lang.lower()
            and record.target_lang.lower() == target_lang.lower()
        ):
            return record
    return None


class GlossaryReconciler:
    """术语表同步状态机。"""

    def __init__(
        self,
        client: TranslationClient,
        settings: SettingsService,
        config: Optional[GlossaryConfig] = None,
    ):
        self.client = client
        self.settings = settings
        self.config = config or GlossaryConfig()
        self._lock = asyncio.Lock()

    async def list_glossaries(self) -> list[GlossaryRecord]:
        """列出远程术语表；失败时记录日志并返回空列表。"""
        try:
            return await self.client.list_glossaries()
        except Exception as e:
            logger.error("列出术语表失败", error=str(e))
            return []

    async def sync(self) -> Optional[GlossaryIdMap]:
        """
        执行一次完整同步。

        Returns:
            新的术语表 ID 映射；未配置任何术语时返回 None 且不发起远程调用。
        """
        async with self._lock:
            return await self._sync_locked()

    async def _sync_locked(self) -> Optional[GlossaryIdMap]:
        started = time.perf_counter()
        logger.info("开始同步术语表")

        # 加载
        settings = await self.settings.get_settings()
        if not settings.glossary:
            logger.info("未配置术语，跳过同步")
            return None
        remote = await self.list_glossaries()

        # 分组
        grouped = group_by_language_pair(settings.glossary, self.config.base_lang)
        logger.info("待同步的语言对", count=len(grouped), total_entries=len(settings.glossary))

        # 比对并替换
        glossary_ids: GlossaryIdMap = {}
        created = updated = failed = 0
        for pair, terms in grouped.items():
            source_lang, _, target_lang = pair.partition("_")
            name = self.config.glossary_name(source_lang, target_lang)

            existing = find_remote_glossary(remote, name, source_lang, target_lang)
            if existing is not None:
                logger.debug(
                    "替换已有术语表", lang_pair=pair, glossary_id=existing.glossary_id
                )
                try:
                    await self.client.delete_glossary(existing.glossary_id)
                except Exception as e:
                    logger.error(
                        "删除术语表失败",
                        glossary_id=existing.glossary_id,
                        error=str(e),
                    )
                updated += 1
            else:
                created += 1

            try:
                record = await self.client.create_glossary(
                    name, source_lang.upper(), target_lang.upper(), terms
                )
            except Exception as e:
                logger.error("创建术语表失败", lang_pair=pair, error=str(e))
                failed += 1
                continue
            glossary_ids[pair] = record.glossary_id

        # 持久化：整体覆盖旧映射
        try:
            await self.settings.replace_glossary_ids(glossary_ids)
        except Exception as e:
            raise GlossarySyncError(f"无法保存术语表 ID 映射: {e}") from e

        logger.info(
            "术语表同步完成",
            created=created,
            updated=updated,
            failed=failed,
            duration_ms=round((time.perf_counter() - started) * 1000),
        )
        return glossary_ids
