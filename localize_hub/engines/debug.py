# localize_hub/engines/debug.py
"""提供一个用于开发和测试的调试翻译客户端，不访问网络。"""

import itertools
from typing import Any, Optional

from pydantic import BaseModel, Field

from localize_hub.exceptions import TerminalProviderError, TransientProviderError
from localize_hub.types import GlossaryRecord, GlossaryTerm, Language


class DebugClientConfig(BaseModel):
    """Debug 客户端的配置模型。"""

    fail_on_text: Optional[str] = Field(default=None)
    fail_is_retryable: bool = Field(default=True)
    translation_map: dict[str, str] = Field(default_factory=dict)
    languages: list[str] = Field(default_factory=lambda: ["DE", "FR", "ES", "JA"])


class DebugClient:
    """一个遵循 `TranslationClient` 契约的内存实现。"""

    def __init__(self, config: Optional[DebugClientConfig] = None):
        self.config = config or DebugClientConfig()
        self.glossaries: dict[str, GlossaryRecord] = {}
        self.glossary_entries: dict[str, dict[str, str]] = {}
        self.calls: list[dict[str, Any]] = []
        self._ids = itertools.count(1)

    async def translate(
        self,
        text: str,
        target_lang: str,
        source_lang: Optional[str] = None,
        glossary_id: Optional[str] = None,
    ) -> str:
        self.calls.append(
            {
                "text": text,
                "target_lang": target_lang,
                "source_lang": source_lang,
                "glossary_id": glossary_id,
            }
        )
        if self.config.fail_on_text and text == self.config.fail_on_text:
            error_cls = (
                TransientProviderError
                if self.config.fail_is_retryable
                else TerminalProviderError
            )
            status = 503 if self.config.fail_is_retryable else 400
            raise error_cls(f"模拟失败：检测到配置的文本 '{text}'", status_code=status)

        if glossary_id and text in self.glossary_entries.get(glossary_id, {}):
            return self.glossary_entries[glossary_id][text]
        return self.config.translation_map.get(
            text, f"Translated({text}) to {target_lang}"
        )

    async def get_available_languages(self) -> list[Language]:
        return [Language(language=code, name=code) for code in self.config.languages]

    async def list_glossaries(self) -> list[GlossaryRecord]:
        return list(self.glossaries.values())

    async def create_glossary(
        self,
        name: str,
        source_lang: str,
        target_lang: str,
        entries: list[GlossaryTerm],
    ) -> GlossaryRecord:
        glossary_id = f"debug-glossary-{next(self._ids)}"
        record = GlossaryRecord(
            glossary_id=glossary_id,
            name=name,
            source_lang=source_lang.lower(),
            target_lang=target_lang.lower(),
            ready=True,
            entry_count=len(entries),
        )
        self.glossaries[glossary_id] = record
        self.glossary_entries[glossary_id] = {e.term: e.translation for e in entries}
        return record

    async def delete_glossary(self, glossary_id: str) -> None:
        if glossary_id not in self.glossaries:
            raise TerminalProviderError("术语表不存在", status_code=404)
        del self.glossaries[glossary_id]
        self.glossary_entries.pop(glossary_id, None)

    async def get_glossary_entries(self, glossary_id: str) -> dict[str, str]:
        return dict(self.glossary_entries.get(glossary_id, {}))

    async def check_connection(self) -> dict[str, Any]:
        return {"character_count": 0, "character_limit": 0}

    async def close(self) -> None:
        return None
