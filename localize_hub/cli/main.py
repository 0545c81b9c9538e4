# localize_hub/cli/main.py
"""Localize-Hub CLI 的主入口点。"""

from typing import Annotated

import typer
from rich.console import Console

import localize_hub
from localize_hub.cli import content
from localize_hub.cli.glossary import glossary_app
from localize_hub.cli.settings import settings_app
from localize_hub.cli.state import State
from localize_hub.config import LocalizeHubConfig
from localize_hub.logging_config import setup_logging

app = typer.Typer(
    name="localize-hub",
    help="🌐 Localize-Hub: 结构保持的内容翻译与 DeepL 术语表同步工具。",
    add_completion=False,
    no_args_is_help=True,
)

app.command("translate")(content.translate)
app.command("batch")(content.batch)
app.command("import")(content.import_entities)
app.command("languages")(content.languages)
app.command("check")(content.check)
app.add_typer(glossary_app, name="glossary")
app.add_typer(settings_app, name="settings")

console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"Localize-Hub [bold cyan]v{localize_hub.__version__}[/bold cyan]")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="显示版本信息并退出。",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """加载配置并初始化日志，在任何子命令执行前运行。"""
    try:
        config = LocalizeHubConfig()
        setup_logging(log_level=config.logging.level, log_format=config.logging.format)
        ctx.obj = State(config=config)
    except Exception as e:
        console.print("[bold red]❌ 启动失败：无法加载配置或初始化日志。[/bold red]")
        console.print(f"[dim]{e}[/dim]")
        raise typer.Exit(code=1) from e


if __name__ == "__main__":
    app()
