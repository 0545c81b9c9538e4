# localize_hub/config.py

import enum
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from localize_hub.cache import CacheConfig
from localize_hub.utils import validate_lang_codes


class EngineName(str, enum.Enum):
    DEEPL = "deepl"
    DEBUG = "debug"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: Literal["json", "console"] = "console"


class RetryPolicyConfig(BaseModel):
    max_attempts: int = Field(default=3, gt=0)
    initial_backoff: float = Field(default=1.0, gt=0)
    max_backoff: float = Field(default=30.0, gt=0)
    jitter: bool = True
    deadline_seconds: Optional[float] = Field(
        default=None, gt=0, description="单次 API 调用（含重试）的总时限（秒）"
    )

    @model_validator(mode="after")
    def check_backoff_consistency(self) -> "RetryPolicyConfig":
        if self.max_backoff < self.initial_backoff:
            raise ValueError("max_backoff 必须大于或等于 initial_backoff")
        return self


class BatchConfig(BaseModel):
    max_batch_size: int = Field(default=50, gt=0)
    max_concurrency: int = Field(default=5, gt=0, description="批量翻译的最大并发实体数")


class GlossaryConfig(BaseModel):
    base_lang: str = "en"
    name_template: str = "Strapi Glossary ({source}-{target})"

    @field_validator("base_lang")
    @classmethod
    def validate_base_lang(cls, v: str) -> str:
        validate_lang_codes([v])
        return v.lower()

    def glossary_name(self, source_lang: str, target_lang: str) -> str:
        return self.name_template.format(source=source_lang, target=target_lang)


class DeepLConfig(BaseModel):
    api_key: Optional[SecretStr] = None
    timeout_total: float = Field(default=30.0, gt=0)
    timeout_connect: float = Field(default=5.0, gt=0)
    array_concurrency: int = Field(
        default=4, gt=0, description="翻译数组元素时的最大并发请求数"
    )


class LocalizeHubConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database_url: str = "sqlite+aiosqlite:///localize_hub.db"
    registry_file: Optional[Path] = Field(
        default=None, description="内容类型与 locale 注册表 JSON 文件的路径"
    )
    active_engine: EngineName = EngineName.DEEPL
    encryption_key: Optional[SecretStr] = Field(
        default=None, description="用于加密存储中 API 密钥的口令（LH_ENCRYPTION_KEY）"
    )
    fallback_locale: str = "en"
    auto_translate_delay: float = Field(
        default=1.0, ge=0, description="实体变更后延迟触发自动翻译的秒数"
    )

    deepl: DeepLConfig = Field(default_factory=DeepLConfig)
    retry_policy: RetryPolicyConfig = Field(default_factory=RetryPolicyConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    glossary: GlossaryConfig = Field(default_factory=GlossaryConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("fallback_locale")
    @classmethod
    def validate_fallback_locale(cls, v: str) -> str:
        validate_lang_codes([v])
        return v

    @property
    def db_path(self) -> str:
        """从 `database_url` 中提取 SQLite 文件路径。"""
        scheme, sep, rest = self.database_url.partition("://")
        if not sep or not scheme.startswith("sqlite"):
            raise ValueError("db_path 属性仅在 database_url 为 sqlite 类型时可用。")
        # 'sqlite+aiosqlite:///a.db' -> '/a.db' -> 'a.db'；四个斜杠表示绝对路径
        path = rest[1:] if rest.startswith("/") else rest
        return path or ":memory:"
