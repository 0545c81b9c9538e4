# localize_hub/cache.py
"""本模块提供内存级的叶子翻译缓存，用于避免同一批次内重复的 API 请求。"""

import asyncio
import hashlib
from enum import Enum
from typing import Union

from cachetools import LRUCache, TTLCache
from pydantic import BaseModel, Field

from localize_hub.types import TranslationRequest


class CacheType(str, Enum):
    """定义了支持的缓存类型。"""

    TTL = "ttl"
    LRU = "lru"


class CacheConfig(BaseModel):
    """缓存配置模型。"""

    enabled: bool = True
    maxsize: int = Field(default=1000, gt=0)
    ttl: int = Field(default=3600, gt=0)
    cache_type: CacheType = CacheType.TTL


class TranslationCache:
    """一个异步安全的翻译结果缓存。"""

    def __init__(self, config: CacheConfig | None = None):
        self.config = config or CacheConfig()
        self.cache: Union[LRUCache[str, str], TTLCache[str, str]]
        self._lock = asyncio.Lock()
        self._initialize_cache()

    def _initialize_cache(self) -> None:
        if self.config.cache_type is CacheType.TTL:
            self.cache = TTLCache(maxsize=self.config.maxsize, ttl=self.config.ttl)
        else:
            self.cache = LRUCache(maxsize=self.config.maxsize)

    @staticmethod
    def generate_cache_key(request: TranslationRequest) -> str:
        """为翻译请求生成确定性的键；原文只以哈希形式出现。"""
        text_hash = hashlib.sha256(request.text.encode("utf-8")).hexdigest()
        return "|".join(
            [
                text_hash,
                (request.source_lang or "auto").lower(),
                request.target_lang.lower(),
                request.glossary_id or "-",
            ]
        )

    async def get(self, request: TranslationRequest) -> str | None:
        key = self.generate_cache_key(request)
        async with self._lock:
            return self.cache.get(key)

    async def set(self, request: TranslationRequest, translated: str) -> None:
        key = self.generate_cache_key(request)
        async with self._lock:
            self.cache[key] = translated

    async def clear(self) -> None:
        async with self._lock:
            self._initialize_cache()
