# localize_hub/exceptions.py
"""
本模块定义了 Localize-Hub 项目中所有自定义的、语义化的异常类型。

上层调用者可以根据异常类型决定是中止整个操作（配置、校验错误），
还是仅将单个实体标记为失败（未找到、供应商终止性错误）。
"""

from typing import Optional


class LocalizeHubError(Exception):
    """
    所有 Localize-Hub 自定义异常的通用基类。
    捕获此异常可以处理所有源自本项目的预期错误。
    """

    pass


class ConfigurationError(LocalizeHubError):
    """
    表示配置缺失或无效，例如未配置 DeepL API 密钥。
    此类错误是终止性的，在任何网络请求之前抛出，不会重试。
    """

    pass


class ValidationError(LocalizeHubError, ValueError):
    """
    表示调用参数不合法（实体 ID、内容类型、语言代码等）。
    校验失败时整个操作会在开始任何工作之前被拒绝。
    """

    pass


class BatchSizeError(ValidationError):
    """批量请求的条目数超过了允许的上限。"""

    pass


class NotFoundError(LocalizeHubError, LookupError):
    """待翻译的源实体不存在。"""

    pass


class ProviderError(LocalizeHubError):
    """
    表示与 DeepL API 交互时发生的错误。
    `status_code` 为 HTTP 状态码；网络层错误时为 None。
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransientProviderError(ProviderError):
    """可重试的供应商错误：5xx、429 或网络层故障。"""

    pass


class TerminalProviderError(ProviderError):
    """不可重试的供应商错误：除 429 以外的 4xx。"""

    pass


class DeadlineExceededError(LocalizeHubError, TimeoutError):
    """重试循环因超过调用时限而提前中止。"""

    pass


class GlossarySyncError(LocalizeHubError):
    """术语表同步结果无法写回设置存储。"""

    pass
