# localize_hub/__init__.py
"""Localize-Hub: 结构保持的内容实体翻译与 DeepL 术语表同步引擎。

该模块导出主协调器与配置，调用方通过协调器执行全部公共操作。
"""

__version__ = "1.0.0.dev0"

from .config import EngineName, LocalizeHubConfig
from .coordinator import Coordinator
from .exceptions import LocalizeHubError
from .types import BatchItemStatus, BatchResult

__all__ = [
    "__version__",
    "BatchItemStatus",
    "BatchResult",
    "Coordinator",
    "EngineName",
    "LocalizeHubConfig",
    "LocalizeHubError",
]
