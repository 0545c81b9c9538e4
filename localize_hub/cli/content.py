# localize_hub/cli/content.py
"""内容翻译相关的 CLI 命令：单个翻译、批量翻译、导入实体与列出语言。"""

import json
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from localize_hub.cli.state import State
from localize_hub.cli.utils import format_value, run_with_coordinator
from localize_hub.coordinator import Coordinator
from localize_hub.types import BatchItemStatus

console = Console()


def translate(
    ctx: typer.Context,
    model: Annotated[str, typer.Argument(help="内容类型 UID，如 'api::article.article'。")],
    entity_id: Annotated[int, typer.Argument(help="源实体 ID。")],
    target: Annotated[str, typer.Option("--to", "-t", help="目标 locale。")],
    source: Annotated[
        Optional[str], typer.Option("--from", "-s", help="源 locale（可选）。")
    ] = None,
) -> None:
    """翻译单个实体到目标 locale，并创建或更新其译文副本。"""
    state: State = ctx.obj

    async def _action(coordinator: Coordinator) -> dict[str, Any]:
        return await coordinator.translate_content(entity_id, model, target, source)

    result = run_with_coordinator(state.config, _action)
    console.print(
        f"[bold green]✅ 已翻译 {model} #{entity_id} -> {target}[/bold green] "
        f"[dim](译文 ID: {result.get('id')})[/dim]"
    )


def batch(
    ctx: typer.Context,
    model: Annotated[str, typer.Argument(help="内容类型 UID。")],
    ids: Annotated[list[int], typer.Argument(help="一个或多个源实体 ID。")],
    target: Annotated[str, typer.Option("--to", "-t", help="目标 locale。")],
    source: Annotated[
        Optional[str], typer.Option("--from", "-s", help="源 locale（可选）。")
    ] = None,
) -> None:
    """批量翻译多个实体；部分失败不会影响其他实体。"""
    state: State = ctx.obj
    result = run_with_coordinator(
        state.config,
        lambda c: c.translate_batch(list(ids), model, target, source),
    )

    table = Table(title=f"批量翻译结果 ({model} -> {target})")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("状态")
    table.add_column("详情", overflow="fold")
    for item in result.results:
        if item.status is BatchItemStatus.SUCCESS:
            detail = f"译文 ID: {(item.data or {}).get('id')}"
            table.add_row(str(item.id), "[green]success[/green]", detail)
        else:
            table.add_row(str(item.id), "[red]failed[/red]", item.error or "")
    console.print(table)
    console.print(
        f"总计 {result.total}，成功 [green]{result.successful}[/green]，"
        f"失败 [red]{result.failed}[/red]"
    )
    if result.failed:
        raise typer.Exit(code=1)


def import_entities(
    ctx: typer.Context,
    model: Annotated[str, typer.Argument(help="内容类型 UID。")],
    path: Annotated[
        Path, typer.Argument(exists=True, dir_okay=False, help="包含实体列表的 JSON 文件。")
    ],
) -> None:
    """将 JSON 文件中的实体导入本地实体存储，便于之后翻译。"""
    try:
        entities = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(entities, list) or not all(isinstance(e, dict) for e in entities):
            raise TypeError("文件内容必须是 JSON 对象数组。")
    except (json.JSONDecodeError, TypeError) as e:
        console.print(f"[bold red]❌ JSON 格式错误: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    state: State = ctx.obj

    async def _action(coordinator: Coordinator) -> list[dict[str, Any]]:
        return [await coordinator.store.create(model, data=e) for e in entities]

    created = run_with_coordinator(state.config, _action)
    ids = ", ".join(str(e.get("id")) for e in created)
    console.print(f"[bold green]✅ 已导入 {len(created)} 个实体[/bold green] [dim]({ids})[/dim]")


def languages(ctx: typer.Context) -> None:
    """列出翻译供应商支持的目标语言。"""
    state: State = ctx.obj
    langs = run_with_coordinator(state.config, lambda c: c.get_available_languages())

    table = Table(title="可用目标语言")
    table.add_column("代码", style="cyan")
    table.add_column("名称")
    table.add_column("支持正式程度", justify="center")
    for lang in langs:
        table.add_row(lang.language, lang.name, format_value(lang.supports_formality))
    console.print(table)


def check(ctx: typer.Context) -> None:
    """检查 API 密钥与网络连接是否可用，并显示用量。"""
    state: State = ctx.obj
    usage = run_with_coordinator(state.config, lambda c: c.check_connection())

    table = Table(title="连接检查", show_header=False)
    table.add_column(style="dim")
    table.add_column()
    for key, value in usage.items():
        table.add_row(key, format_value(value))
    console.print("[bold green]✅ 连接正常[/bold green]")
    console.print(table)
