# localize_hub/types.py
"""
本模块定义了 Localize-Hub 系统的核心数据类型。

内容实体本身保持为普通的 `dict` 树（由实体存储持有），
这里只定义在各组件之间传递的请求、结果、设置与远程记录模型。
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

ContentEntity = dict[str, Any]
"""一个内容实体：带 id、locale 与 localizations 的任意字段树。"""

GlossaryIdMap = dict[str, str]
"""语言对键（如 'en_de'）到远程术语表 ID 的映射。"""

SYSTEM_FIELDS: tuple[str, ...] = (
    "id",
    "createdAt",
    "updatedAt",
    "publishedAt",
    "createdBy",
    "updatedBy",
    "locale",
    "localizations",
)
"""无论内容类型如何配置，都不会送去翻译的系统字段。"""

LOCALIZATIONS_FIELD = "localizations"


class TranslationRequest(BaseModel):
    """一次叶子值翻译请求，也用作缓存查找的键来源。"""

    text: str
    target_lang: str
    source_lang: Optional[str] = None
    glossary_id: Optional[str] = None


class BatchItemStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class BatchItemResult(BaseModel):
    """批量翻译中单个实体的结果。"""

    id: Union[int, str]
    status: BatchItemStatus
    data: Optional[dict[str, Any]] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def check_consistency(self) -> "BatchItemResult":
        if self.status == BatchItemStatus.FAILED and self.error is None:
            raise ValueError("FAILED 状态的结果必须包含 error 信息。")
        return self


class BatchResult(BaseModel):
    """一次批量调用的汇总结果，按输入 ID 顺序排列。"""

    total: int
    successful: int
    failed: int
    results: list[BatchItemResult] = Field(default_factory=list)

    @classmethod
    def from_items(cls, items: list[BatchItemResult]) -> "BatchResult":
        successful = sum(1 for i in items if i.status == BatchItemStatus.SUCCESS)
        return cls(
            total=len(items),
            successful=successful,
            failed=len(items) - successful,
            results=items,
        )

    @property
    def failed_ids(self) -> list[Union[int, str]]:
        return [i.id for i in self.results if i.status == BatchItemStatus.FAILED]


class GlossaryEntry(BaseModel):
    """一条期望的术语：原文及其在各目标语言下的译法。"""

    term: str
    translations: dict[str, str] = Field(default_factory=dict)


class GlossaryTerm(BaseModel):
    """某个语言对下的一条扁平术语。"""

    term: str
    translation: str


class GlossaryRecord(BaseModel):
    """DeepL 上的一个术语表（一个语言对一份，创建后不可修改）。"""

    model_config = ConfigDict(extra="ignore")

    glossary_id: str
    name: str
    source_lang: str
    target_lang: str
    ready: Optional[bool] = None
    entry_count: Optional[int] = None
    creation_time: Optional[str] = None


class Language(BaseModel):
    """DeepL `/languages` 返回的一种目标语言。"""

    model_config = ConfigDict(extra="ignore")

    language: str
    name: str
    supports_formality: Optional[bool] = None


class Locale(BaseModel):
    """内容系统中注册的一个 locale。"""

    code: str
    name: str = ""
    is_default: bool = False


class ContentTypeSettings(BaseModel):
    """单个内容类型的翻译配置。"""

    enabled: bool = False
    auto_translate: bool = False
    ignored_fields: list[str] = Field(default_factory=list)


class PluginSettings(BaseModel):
    """持久化在设置存储中的完整插件设置。"""

    api_key: str = ""
    auto_translate: bool = False
    content_types: dict[str, ContentTypeSettings] = Field(default_factory=dict)
    glossary: list[GlossaryEntry] = Field(default_factory=list)
    glossary_ids: GlossaryIdMap = Field(default_factory=dict)


class AttributeSchema(BaseModel):
    """内容类型中单个属性的描述。"""

    type: str
    relation: Optional[str] = None
    target: Optional[str] = None


class ModelSchema(BaseModel):
    """内容类型注册表返回的模型描述。"""

    uid: str
    kind: str = "collectionType"
    localized: bool = False
    attributes: dict[str, AttributeSchema] = Field(default_factory=dict)

    @property
    def relation_fields(self) -> list[str]:
        return [name for name, attr in self.attributes.items() if attr.type == "relation"]
