# localize_hub/translator.py
"""
本模块实现结构保持的字段翻译器。

翻译器深度优先遍历任意字段树，只翻译字符串叶子值，并保证：
- 输出的键集合、键顺序、数组长度与元素顺序与输入一致；
- 命中排除集的字段在任意深度都原样复制；
- 带 `id` 与 `__typename` 的对象被视为外部引用，原样复制。
"""

import asyncio
import datetime
import decimal
import uuid
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import structlog

from localize_hub.cache import TranslationCache
from localize_hub.interfaces import TranslationClient
from localize_hub.types import GlossaryIdMap, TranslationRequest
from localize_hub.utils import lang_pair_key

logger = structlog.get_logger(__name__)

SCALAR_TYPES: tuple[type, ...] = (
    type(None),
    bool,
    int,
    float,
    decimal.Decimal,
    datetime.date,
    datetime.time,
    uuid.UUID,
    bytes,
    bytearray,
    memoryview,
    Enum,
)


class FieldKind(str, Enum):
    """字段值的分类；每个分类都必须在分派表中有对应的处理器。"""

    STRING = "string"
    SEQUENCE = "sequence"
    REFERENCE = "reference"
    MAPPING = "mapping"
    SCALAR = "scalar"


def is_reference(value: Mapping[str, Any]) -> bool:
    """同时带有标识字段与类型判别字段的对象是外部引用，不是可翻译内容。"""
    return bool(value.get("id")) and bool(value.get("__typename"))


def classify_value(value: Any) -> FieldKind:
    """将字段值归入一个 `FieldKind`；无法识别的类型直接报错。"""
    if isinstance(value, str):
        return FieldKind.STRING
    if isinstance(value, Mapping):
        return FieldKind.REFERENCE if is_reference(value) else FieldKind.MAPPING
    if isinstance(value, (list, tuple)):
        return FieldKind.SEQUENCE
    if isinstance(value, SCALAR_TYPES):
        return FieldKind.SCALAR
    raise TypeError(f"无法分类的字段值类型: {type(value).__name__}")


@dataclass(frozen=True)
class _TranslationRun:
    """一次 `translate_object` 调用的不可变快照。"""

    target_lang: str
    source_lang: Optional[str]
    excluded: frozenset[str]
    glossary_id: Optional[str]


_Handler = Callable[["FieldTranslator", Any, _TranslationRun], Awaitable[Any]]


class FieldTranslator:
    """递归翻译内容实体字段的翻译器。"""

    def __init__(
        self,
        client: TranslationClient,
        *,
        cache: Optional[TranslationCache] = None,
        array_concurrency: int = 4,
        default_source_lang: str = "en",
    ):
        if array_concurrency <= 0:
            raise ValueError("array_concurrency 必须为正数")
        self.client = client
        self.cache = cache
        self.default_source_lang = default_source_lang
        self._leaf_semaphore = asyncio.Semaphore(array_concurrency)

    async def translate_object(
        self,
        entity: Mapping[str, Any],
        target_lang: str,
        source_lang: Optional[str] = None,
        excluded_fields: Iterable[str] = (),
        glossary_ids: Optional[GlossaryIdMap] = None,
    ) -> dict[str, Any]:
        """
        返回 `entity` 的翻译副本，源对象不会被修改。

        Args:
            entity: 待翻译的字段树。
            target_lang: 目标语言。
            source_lang: 源语言提示；为 None 时由供应商自动检测。
            excluded_fields: 在任意深度都不翻译的字段名。
            glossary_ids: 本次调用使用的术语表 ID 映射快照。
        """
        pair = lang_pair_key(source_lang, target_lang, self.default_source_lang)
        glossary_id = (glossary_ids or {}).get(pair)
        run = _TranslationRun(
            target_lang=target_lang,
            source_lang=source_lang,
            excluded=frozenset(excluded_fields),
            glossary_id=glossary_id,
        )
        if glossary_id:
            logger.debug("本次翻译使用术语表", lang_pair=pair, glossary_id=glossary_id)
        return await self._translate_mapping(entity, run)

    async def _translate_value(self, value: Any, run: _TranslationRun) -> Any:
        handler = _HANDLERS[classify_value(value)]
        return await handler(self, value, run)

    async def _translate_mapping(
        self, value: Mapping[str, Any], run: _TranslationRun
    ) -> dict[str, Any]:
        # 同一对象内的字段按顺序串行翻译
        translated: dict[str, Any] = {}
        for key, item in value.items():
            if key in run.excluded:
                translated[key] = item
                continue
            translated[key] = await self._translate_value(item, run)
        return translated

    async def _translate_sequence(self, value: Any, run: _TranslationRun) -> list[Any]:
        async def _element(item: Any) -> Any:
            kind = classify_value(item)
            if kind is FieldKind.STRING:
                return await self._translate_text(item, run)
            if kind is FieldKind.MAPPING or kind is FieldKind.REFERENCE:
                return await self._translate_mapping(item, run)
            return item

        return list(await asyncio.gather(*(_element(item) for item in value)))

    async def _translate_string(self, value: str, run: _TranslationRun) -> str:
        if not value.strip():
            return value
        return await self._translate_text(value, run)

    async def _copy_reference(self, value: Any, run: _TranslationRun) -> Any:
        return value

    async def _copy_scalar(self, value: Any, run: _TranslationRun) -> Any:
        return value

    async def _translate_text(self, text: str, run: _TranslationRun) -> str:
        source_lang = run.source_lang
        if run.glossary_id and not source_lang:
            # DeepL 要求使用术语表时必须显式给出源语言
            source_lang = self.default_source_lang
        request = TranslationRequest(
            text=text,
            target_lang=run.target_lang,
            source_lang=source_lang,
            glossary_id=run.glossary_id,
        )
        if self.cache is not None:
            cached = await self.cache.get(request)
            if cached is not None:
                return cached

        async with self._leaf_semaphore:
            translated = await self.client.translate(
                request.text,
                request.target_lang,
                request.source_lang,
                request.glossary_id,
            )
        if self.cache is not None:
            await self.cache.set(request, translated)
        return translated


_HANDLERS: dict[FieldKind, _Handler] = {
    FieldKind.STRING: FieldTranslator._translate_string,
    FieldKind.SEQUENCE: FieldTranslator._translate_sequence,
    FieldKind.REFERENCE: FieldTranslator._copy_reference,
    FieldKind.MAPPING: FieldTranslator._translate_mapping,
    FieldKind.SCALAR: FieldTranslator._copy_scalar,
}
assert set(_HANDLERS) == set(FieldKind), "每个 FieldKind 都必须有处理器"
