# localize_hub/cli/utils.py
"""提供 CLI 命令共享的协调器构建与执行工具。"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, Optional, TypeVar

import structlog
import typer
from rich.console import Console

from localize_hub.config import LocalizeHubConfig
from localize_hub.coordinator import Coordinator
from localize_hub.exceptions import LocalizeHubError
from localize_hub.interfaces import TranslationClient
from localize_hub.stores import (
    SQLiteDatabase,
    SQLiteEntityStore,
    SQLiteSettingsStore,
    load_registries,
)

logger = structlog.get_logger(__name__)
console = Console()

T = TypeVar("T")


@asynccontextmanager
async def open_coordinator(
    config: LocalizeHubConfig, client: Optional[TranslationClient] = None
) -> AsyncIterator[Coordinator]:
    """
    连接 SQLite 数据库、加载注册表并初始化协调器，退出时按相反顺序释放。

    Args:
        config: 主配置对象。
        client: 可选的翻译客户端；为 None 时按 `active_engine` 创建。
    """
    db = SQLiteDatabase(config.db_path)
    await db.connect()
    try:
        schemas, locales = load_registries(config.registry_file, config.fallback_locale)
        coordinator = Coordinator(
            config,
            SQLiteEntityStore(db),
            schemas,
            SQLiteSettingsStore(db),
            locales,
            client=client,
        )
        await coordinator.initialize()
        try:
            yield coordinator
        finally:
            await coordinator.close()
    finally:
        await db.close()


def run_with_coordinator(
    config: LocalizeHubConfig, action: Callable[[Coordinator], Awaitable[T]]
) -> T:
    """在新的事件循环中执行 `action`，并把项目异常转换为退出码 1。"""

    async def _run() -> T:
        async with open_coordinator(config) as coordinator:
            return await action(coordinator)

    try:
        return asyncio.run(_run())
    except LocalizeHubError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise typer.Exit(code=1) from e
    except Exception as e:
        logger.error("命令执行失败", error=str(e), exc_info=True)
        console.print(f"[bold red]❌ 命令执行失败: {e}[/bold red]")
        raise typer.Exit(code=1) from e


def format_value(value: Any) -> str:
    if value is None:
        return "[dim]-[/dim]"
    if isinstance(value, bool):
        return "[green]✓[/green]" if value else "[red]✗[/red]"
    return str(value)
