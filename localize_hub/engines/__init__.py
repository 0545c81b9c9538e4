# localize_hub/engines/__init__.py
"""翻译客户端的公共入口与工厂函数。"""

import structlog

from localize_hub.config import EngineName, LocalizeHubConfig
from localize_hub.engines.debug import DebugClient, DebugClientConfig
from localize_hub.engines.deepl import DeepLClient, resolve_endpoint
from localize_hub.exceptions import ConfigurationError
from localize_hub.interfaces import SettingsProvider, TranslationClient

logger = structlog.get_logger(__name__)


def create_client(
    config: LocalizeHubConfig, settings: SettingsProvider
) -> TranslationClient:
    """根据 `active_engine` 创建翻译客户端实例。"""
    if config.active_engine is EngineName.DEEPL:
        client: TranslationClient = DeepLClient(
            config.deepl, settings, retry_policy=config.retry_policy
        )
    elif config.active_engine is EngineName.DEBUG:
        client = DebugClient()
    else:
        raise ConfigurationError(f"未知的翻译引擎: {config.active_engine!r}")
    logger.info("翻译客户端已创建", engine=config.active_engine.value)
    return client


__all__ = [
    "DebugClient",
    "DebugClientConfig",
    "DeepLClient",
    "create_client",
    "resolve_endpoint",
]
