# localize_hub/utils.py
"""
本模块包含项目范围内的通用工具函数：语言代码、实体 ID 与内容类型标识的校验，
以及术语表语言对键的构造。
"""

import re
from typing import Any, Optional

from langcodes import Language
from langcodes.tag_parser import LanguageTagError

from localize_hub.exceptions import ValidationError

# 语言子标签应该由 2-3 个字母组成 (BCP 47)
LANGUAGE_SUBTAG_PATTERN = re.compile(r"^[a-zA-Z]{2,3}$")
# 内容侧 locale 只接受 'en'、'de'、'fr-FR' 这类形式
LOCALE_PATTERN = re.compile(r"^[a-z]{2}(-[A-Z]{2})?$")
MODEL_UID_PATTERN = re.compile(r"^(api|plugin)::[a-z0-9-]+\.[a-z0-9-]+$", re.IGNORECASE)


def validate_lang_codes(lang_codes: list[str]) -> None:
    """使用 `langcodes` 库校验语言代码列表中的每个代码是否符合 BCP 47 规范。"""
    for code in lang_codes:
        try:
            lang = Language.get(code)
            if not lang.language or not LANGUAGE_SUBTAG_PATTERN.match(lang.language):
                raise LanguageTagError(
                    f"Tag '{code}' lacks a valid 2-3 letter language subtag."
                )
        except LanguageTagError as e:
            raise ValueError(f"提供的语言代码 '{code}' 格式无效。原因: {e}") from e


def validate_locale(locale: Any, field_name: str = "locale") -> str:
    """校验内容 locale 的格式（如 en、de、fr-FR），返回原值。"""
    if not locale or not isinstance(locale, str):
        raise ValidationError(f"{field_name} 必须是非空字符串")
    if not LOCALE_PATTERN.match(locale):
        raise ValidationError(
            f"{field_name} 格式无效: '{locale}'，期望格式: en, de, fr-FR"
        )
    return locale


def validate_entity_id(entity_id: Any) -> int:
    """校验实体 ID 为正整数（允许数字字符串），返回规范化后的整数。"""
    if entity_id is None or entity_id == "" or isinstance(entity_id, bool):
        raise ValidationError("实体 ID 不能为空")
    try:
        number = float(entity_id)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"实体 ID '{entity_id}' 必须是正数") from e
    if number != number or number <= 0 or not number.is_integer():
        raise ValidationError(f"实体 ID '{entity_id}' 必须是正整数")
    return int(number)


def validate_model_uid(model: Any) -> str:
    """校验内容类型标识的格式，例如 'api::article.article'。"""
    if not model or not isinstance(model, str):
        raise ValidationError("内容类型标识必须是非空字符串")
    if not MODEL_UID_PATTERN.match(model):
        raise ValidationError(
            f"内容类型标识格式无效: '{model}'，期望格式: api::name.name"
        )
    return model


def lang_pair_key(source_lang: Optional[str], target_lang: str, default_source: str = "en") -> str:
    """构造术语表 ID 映射使用的语言对键，例如 'en_de'。"""
    return f"{(source_lang or default_source).lower()}_{target_lang.lower()}"


def text_preview(text: str, limit: int = 50) -> str:
    """截断长文本，用于日志输出。"""
    return f"{text[:limit]}..." if len(text) > limit else text
