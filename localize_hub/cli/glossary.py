# localize_hub/cli/glossary.py
"""术语表相关的 CLI 命令。"""

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from localize_hub.cli.state import State
from localize_hub.cli.utils import format_value, run_with_coordinator

console = Console()
glossary_app = typer.Typer(help="同步与查看 DeepL 术语表")


@glossary_app.command("sync")
def glossary_sync(ctx: typer.Context) -> None:
    """将设置中的术语同步到 DeepL（按语言对删除后重建）。"""
    state: State = ctx.obj
    glossary_ids = run_with_coordinator(state.config, lambda c: c.sync_glossaries())
    if glossary_ids is None:
        console.print("[yellow]未配置任何术语，无需同步。[/yellow]")
        return

    table = Table(title="术语表 ID 映射")
    table.add_column("语言对", style="cyan")
    table.add_column("术语表 ID")
    for pair, glossary_id in sorted(glossary_ids.items()):
        table.add_row(pair, glossary_id)
    console.print(table)
    console.print(f"[bold green]✅ 已同步 {len(glossary_ids)} 个术语表[/bold green]")


@glossary_app.command("list")
def glossary_list(ctx: typer.Context) -> None:
    """列出 DeepL 上的所有术语表。"""
    state: State = ctx.obj
    records = run_with_coordinator(state.config, lambda c: c.list_glossaries())

    table = Table(title="DeepL 术语表")
    table.add_column("ID", style="cyan", overflow="fold")
    table.add_column("名称")
    table.add_column("语言对")
    table.add_column("条目数", justify="right")
    table.add_column("就绪", justify="center")
    for record in records:
        table.add_row(
            record.glossary_id,
            record.name,
            f"{record.source_lang}->{record.target_lang}",
            format_value(record.entry_count),
            format_value(record.ready),
        )
    console.print(table)


@glossary_app.command("entries")
def glossary_entries(
    ctx: typer.Context,
    glossary_id: Annotated[str, typer.Argument(help="DeepL 术语表 ID。")],
) -> None:
    """显示某个术语表中的全部条目。"""
    state: State = ctx.obj
    entries = run_with_coordinator(
        state.config, lambda c: c.get_glossary_entries(glossary_id)
    )

    table = Table(title=f"术语表 {glossary_id}")
    table.add_column("原文", style="cyan")
    table.add_column("译法")
    for term, translation in entries.items():
        table.add_row(term, translation)
    console.print(table)
