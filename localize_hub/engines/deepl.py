# localize_hub/engines/deepl.py
"""提供基于 DeepL v2 REST API 的翻译客户端。"""

import time
from typing import Any, Optional

import httpx
import structlog

from localize_hub.config import DeepLConfig, RetryPolicyConfig
from localize_hub.exceptions import (
    ConfigurationError,
    ProviderError,
    TerminalProviderError,
    TransientProviderError,
)
from localize_hub.interfaces import SettingsProvider
from localize_hub.retry import retry_with_backoff
from localize_hub.types import GlossaryRecord, GlossaryTerm, Language
from localize_hub.utils import text_preview

logger = structlog.get_logger(__name__)

FREE_API_URL = "https://api-free.deepl.com"
PRO_API_URL = "https://api.deepl.com"
API_VERSION = "v2"
FREE_KEY_SUFFIX = ":fx"
TSV_MEDIA_TYPE = "text/tab-separated-values"


def is_free_api_key(api_key: Optional[str]) -> bool:
    """免费版密钥以 ':fx' 结尾。"""
    return bool(api_key) and api_key.endswith(FREE_KEY_SUFFIX)  # type: ignore[union-attr]


def resolve_endpoint(api_key: str) -> str:
    """根据密钥形态选择 API 基础地址，不产生网络请求。"""
    return FREE_API_URL if is_free_api_key(api_key) else PRO_API_URL


def encode_glossary_entries(entries: list[GlossaryTerm]) -> str:
    """将术语编码为 DeepL 接受的 TSV 文本。"""
    return "\n".join(f"{e.term}\t{e.translation}" for e in entries)


def decode_glossary_entries(tsv: str) -> dict[str, str]:
    entries: dict[str, str] = {}
    for line in tsv.splitlines():
        if not line.strip():
            continue
        term, _, translation = line.partition("\t")
        entries[term] = translation
    return entries


class DeepLClient:
    """DeepL API 客户端（生产级）：端点选择、鉴权与指数退避重试。"""

    def __init__(
        self,
        config: DeepLConfig,
        settings: SettingsProvider,
        retry_policy: Optional[RetryPolicyConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.settings = settings
        self.retry_policy = retry_policy or RetryPolicyConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_total, connect=config.timeout_connect)
        )

    async def close(self) -> None:
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()
            logger.info("DeepL 客户端的 HTTP 连接已关闭。")

    async def get_api_key(self) -> str:
        """读取 API 密钥：设置存储中的值优先于环境配置。"""
        settings = await self.settings.get_settings()
        api_key = settings.api_key or (
            self.config.api_key.get_secret_value() if self.config.api_key else ""
        )
        if not api_key:
            logger.error("DeepL API 密钥未配置")
            raise ConfigurationError("DeepL API 密钥未配置")
        return api_key

    def _deadline(self) -> Optional[float]:
        if self.retry_policy.deadline_seconds is None:
            return None
        return time.monotonic() + self.retry_policy.deadline_seconds

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
        *,
        accept: str = "application/json",
    ) -> Any:
        """
        向 DeepL 发送一次带重试的请求。

        Returns:
            解析后的 JSON；`accept` 不是 JSON 时返回原始文本；无响应体时返回 None。
        """
        api_key = await self.get_api_key()
        url = f"{resolve_endpoint(api_key)}/{API_VERSION}/{endpoint}"
        api_type = "free" if is_free_api_key(api_key) else "pro"
        headers = {"Authorization": f"DeepL-Auth-Key {api_key}", "Accept": accept}
        logger.info(
            "DeepL API 请求", method=method, endpoint=endpoint, api_type=api_type
        )
        started = time.perf_counter()

        async def _send() -> Any:
            try:
                response = await self._client.request(
                    method, url, json=body, params=params, headers=headers
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise self._classify(e) from e
            except httpx.TransportError as e:
                raise TransientProviderError(f"DeepL 网络错误: {e}") from e

            logger.info(
                "DeepL API 响应",
                endpoint=endpoint,
                status=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000),
            )
            if not response.content:
                return None
            if accept != "application/json":
                return response.text
            try:
                return response.json()
            except ValueError as e:
                raise TerminalProviderError(
                    f"DeepL 响应不是有效的 JSON: {e}", status_code=response.status_code
                ) from e

        return await retry_with_backoff(
            _send,
            self.retry_policy.max_attempts,
            self.retry_policy.initial_backoff,
            max_delay=self.retry_policy.max_backoff,
            jitter=self.retry_policy.jitter,
            deadline=self._deadline(),
        )

    @staticmethod
    def _classify(error: httpx.HTTPStatusError) -> ProviderError:
        status = error.response.status_code
        try:
            detail = error.response.json().get("message", error.response.text)
        except ValueError:
            detail = error.response.text
        message = f"DeepL API 错误 {status}: {detail or error.response.reason_phrase}"
        if 400 <= status < 500 and status != 429:
            return TerminalProviderError(message, status_code=status)
        return TransientProviderError(message, status_code=status)

    async def translate(
        self,
        text: str,
        target_lang: str,
        source_lang: Optional[str] = None,
        glossary_id: Optional[str] = None,
    ) -> str:
        """翻译单段文本；空文本或空目标语言原样返回。"""
        if not text or not target_lang:
            return text

        payload: dict[str, Any] = {
            "text": [text],
            "target_lang": target_lang.upper(),
        }
        if source_lang:
            payload["source_lang"] = source_lang.upper()
        if glossary_id:
            payload["glossary_id"] = glossary_id
            logger.debug("使用术语表", glossary_id=glossary_id)

        logger.debug(
            "正在翻译文本",
            source=source_lang or "auto",
            target=target_lang,
            length=len(text),
            preview=text_preview(text),
        )
        try:
            data = await self.request("translate", "POST", body=payload)
        except Exception as e:
            logger.error(
                "翻译失败",
                source=source_lang or "auto",
                target=target_lang,
                error=str(e),
            )
            raise
        try:
            return str(data["translations"][0]["text"])
        except (KeyError, IndexError, TypeError) as e:
            raise TransientProviderError("DeepL 返回了无法解析的翻译结果") from e

    async def get_available_languages(self) -> list[Language]:
        data = await self.request("languages", "GET", params={"type": "target"})
        languages = [Language.model_validate(item) for item in data or []]
        logger.info("已获取可用语言", count=len(languages))
        return languages

    async def check_connection(self) -> dict[str, Any]:
        """调用 `/usage` 验证密钥与连通性，返回用量信息。"""
        data = await self.request("usage", "GET")
        return dict(data or {})

    async def list_glossaries(self) -> list[GlossaryRecord]:
        data = await self.request("glossaries", "GET")
        records = [
            GlossaryRecord.model_validate(g) for g in (data or {}).get("glossaries", [])
        ]
        logger.info("已列出术语表", count=len(records))
        return records

    async def create_glossary(
        self,
        name: str,
        source_lang: str,
        target_lang: str,
        entries: list[GlossaryTerm],
    ) -> GlossaryRecord:
        logger.info(
            "正在创建术语表",
            name=name,
            source=source_lang,
            target=target_lang,
            entries=len(entries),
        )
        data = await self.request(
            "glossaries",
            "POST",
            body={
                "name": name,
                "source_lang": source_lang,
                "target_lang": target_lang,
                "entries": encode_glossary_entries(entries),
                "entries_format": "tsv",
            },
        )
        record = GlossaryRecord.model_validate(data)
        logger.info("术语表已创建", glossary_id=record.glossary_id, name=name)
        return record

    async def delete_glossary(self, glossary_id: str) -> None:
        await self.request(f"glossaries/{glossary_id}", "DELETE")
        logger.info("术语表已删除", glossary_id=glossary_id)

    async def get_glossary_entries(self, glossary_id: str) -> dict[str, str]:
        text = await self.request(
            f"glossaries/{glossary_id}/entries", "GET", accept=TSV_MEDIA_TYPE
        )
        return decode_glossary_entries(text or "")
