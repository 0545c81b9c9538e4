# localize_hub/logging_config.py
"""
本模块集中配置 structlog 日志系统。

- `console` 格式使用基于 Rich 的单行渲染器，适合在终端中阅读；
- `json` 格式使用 structlog 自带的 JSON 渲染器，适合日志收集。
"""

import logging
from collections.abc import MutableMapping
from typing import Any, Literal

import structlog
from rich.console import Console
from rich.text import Text
from structlog.typing import Processor

APP_LOGGER_NAME = "localize_hub"


class RichLineRenderer:
    """将日志事件渲染为一行带颜色的文本，上下文键值对追加在行尾。"""

    LEVEL_STYLES = {
        "debug": ("blue", "DEBUG   "),
        "info": ("green", "INFO    "),
        "warning": ("yellow", "WARNING "),
        "error": ("bold red", "ERROR   "),
        "critical": ("bold magenta", "CRITICAL"),
    }

    def __init__(
        self,
        show_timestamp: bool = True,
        show_logger_name: bool = True,
        value_truncate_at: int = 80,
        console: Console | None = None,
    ):
        self._console = console or Console()
        self._show_timestamp = show_timestamp
        self._show_logger_name = show_logger_name
        self._value_truncate_at = value_truncate_at

    def _format_value(self, value: Any) -> str:
        text = value if isinstance(value, str) else repr(value)
        if len(text) > self._value_truncate_at:
            text = text[: self._value_truncate_at] + "..."
        return text

    def __call__(
        self, logger: Any, name: str, event_dict: MutableMapping[str, Any]
    ) -> str:
        event = str(event_dict.pop("event", "")).strip()
        timestamp = event_dict.pop("timestamp", "")
        level = str(event_dict.pop("level", "info")).lower()
        logger_name = event_dict.pop("logger", None)
        exception = event_dict.pop("exception", None)
        style, level_text = self.LEVEL_STYLES.get(level, ("default", level.upper()))

        line = Text()
        if self._show_timestamp and timestamp:
            line.append(f"{timestamp} ", style="dim")
        line.append(level_text, style=style)
        line.append(f" {event}")
        for key, value in sorted(event_dict.items()):
            line.append(f" {key}=", style="dim")
            line.append(self._format_value(value), style="bright_white")
        if self._show_logger_name and logger_name:
            line.append(f" ({logger_name})", style="cyan dim")

        with self._console.capture() as capture:
            self._console.print(line, soft_wrap=True)
        rendered = capture.get().rstrip()
        if exception:
            rendered = f"{rendered}\n{exception}"
        return rendered


def setup_logging(
    log_level: str = "INFO",
    log_format: Literal["json", "console"] = "console",
    show_timestamp: bool = True,
    show_logger_name: bool = True,
) -> None:
    """
    配置全局日志。这是整个应用的日志配置入口，CLI 启动时调用一次。

    Args:
        log_level: 本项目日志记录器的最低级别。
        log_format: 'console' 或 'json'。
        show_timestamp: console 模式下是否显示时间戳。
        show_logger_name: console 模式下是否显示记录器名称。
    """
    if log_format not in ("json", "console"):
        raise ValueError(f"不支持的日志格式: {log_format}")

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if log_format == "console":
        processors.insert(
            3, structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False)
        )
        processors.append(
            RichLineRenderer(
                show_timestamp=show_timestamp, show_logger_name=show_logger_name
            )
        )
    else:
        processors.insert(3, structlog.processors.TimeStamper(fmt="iso", utc=True))
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # 标准库 logging 只作为输出端点，消息已由 structlog 渲染完成
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(log_level.upper())
    app_logger.propagate = True

    structlog.get_logger(f"{APP_LOGGER_NAME}.logging_config").debug(
        "日志系统已配置", log_format=log_format, app_log_level=log_level.upper()
    )
