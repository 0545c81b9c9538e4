# localize_hub/settings.py
"""
本模块提供对插件设置的读写服务，封装底层的键值设置存储。

DeepL API 密钥以 Fernet 密文形式落盘（带 `enc:` 前缀），读取时解密；
不带前缀的旧值按明文读取，下次保存密钥时会被加密。
"""

import base64
import hashlib
from typing import Optional

import structlog
from cryptography.fernet import Fernet, InvalidToken
from pydantic import ValidationError as PydanticValidationError

from localize_hub.exceptions import ConfigurationError
from localize_hub.interfaces import SettingsStore
from localize_hub.types import (
    ContentTypeSettings,
    GlossaryEntry,
    GlossaryIdMap,
    PluginSettings,
)

logger = structlog.get_logger(__name__)

SETTINGS_KEY = "settings"
ENCRYPTED_PREFIX = "enc:"


class ApiKeyCipher:
    """用任意长度的口令派生 Fernet 密钥，加解密存储中的 API 密钥。"""

    def __init__(self, secret: str):
        if not secret:
            raise ConfigurationError("加密口令不能为空")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    @staticmethod
    def is_encrypted(value: str) -> bool:
        return value.startswith(ENCRYPTED_PREFIX)

    def encrypt(self, api_key: str) -> str:
        token = self._fernet.encrypt(api_key.encode("utf-8")).decode("ascii")
        return f"{ENCRYPTED_PREFIX}{token}"

    def decrypt(self, stored: str) -> str:
        """解密存储值；不带前缀的旧值原样返回。解密失败时抛出 `InvalidToken`。"""
        if not self.is_encrypted(stored):
            return stored
        token = stored[len(ENCRYPTED_PREFIX) :].encode("ascii")
        return self._fernet.decrypt(token).decode("utf-8")


class SettingsService:
    """`SettingsProvider` 协议的默认实现。"""

    def __init__(
        self,
        store: SettingsStore,
        key: str = SETTINGS_KEY,
        encryption_key: Optional[str] = None,
    ):
        self.store = store
        self.key = key
        self.cipher = ApiKeyCipher(encryption_key) if encryption_key else None

    async def get_settings(self) -> PluginSettings:
        """读取完整设置；存储为空时返回默认设置。返回值中的 API 密钥为明文。"""
        raw = await self.store.get(self.key)
        if not raw:
            return PluginSettings()
        try:
            settings = PluginSettings.model_validate(raw)
        except PydanticValidationError:
            logger.warning("存储中的设置无法解析，将使用默认设置", key=self.key, exc_info=True)
            return PluginSettings()
        settings.api_key = self._decrypt_api_key(settings.api_key)
        return settings

    def _decrypt_api_key(self, stored: str) -> str:
        if not stored or not ApiKeyCipher.is_encrypted(stored):
            return stored
        if self.cipher is None:
            logger.warning("API 密钥已加密但未配置 LH_ENCRYPTION_KEY，视为未设置")
            return ""
        try:
            return self.cipher.decrypt(stored)
        except InvalidToken:
            logger.warning("无法解密 API 密钥，密钥可能已损坏或加密口令已更换")
            return ""

    async def update_settings(self, settings: PluginSettings) -> PluginSettings:
        data = settings.model_dump(mode="json")
        if settings.api_key:
            if self.cipher is not None:
                data["api_key"] = self.cipher.encrypt(settings.api_key)
            else:
                logger.warning("未配置 LH_ENCRYPTION_KEY，API 密钥保持明文存储")
        await self.store.set(self.key, data)
        logger.debug("设置已更新", key=self.key)
        return settings

    async def set_api_key(self, api_key: str) -> PluginSettings:
        """保存 API 密钥；必须配置加密口令。"""
        if self.cipher is None:
            raise ConfigurationError("保存 API 密钥前必须设置 LH_ENCRYPTION_KEY")
        settings = await self.get_settings()
        settings.api_key = api_key.strip()
        return await self.update_settings(settings)

    async def get_content_type_settings(self, model: str) -> ContentTypeSettings:
        settings = await self.get_settings()
        return settings.content_types.get(model, ContentTypeSettings())

    async def update_content_type_settings(
        self, model: str, content_type_settings: ContentTypeSettings
    ) -> PluginSettings:
        settings = await self.get_settings()
        settings.content_types[model] = content_type_settings
        return await self.update_settings(settings)

    async def get_glossary(self) -> list[GlossaryEntry]:
        return (await self.get_settings()).glossary

    async def update_glossary(self, glossary: list[GlossaryEntry]) -> PluginSettings:
        settings = await self.get_settings()
        settings.glossary = glossary
        return await self.update_settings(settings)

    async def replace_glossary_ids(self, glossary_ids: GlossaryIdMap) -> PluginSettings:
        """整体替换术语表 ID 映射，不做部分合并。"""
        settings = await self.get_settings()
        settings.glossary_ids = dict(glossary_ids)
        return await self.update_settings(settings)
