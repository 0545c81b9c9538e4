# localize_hub/cli/settings.py
"""插件设置相关的 CLI 命令。"""

from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from localize_hub.cli.state import State
from localize_hub.cli.utils import format_value, run_with_coordinator
from localize_hub.coordinator import Coordinator
from localize_hub.exceptions import ValidationError
from localize_hub.types import GlossaryEntry, PluginSettings
from localize_hub.utils import validate_locale, validate_model_uid

console = Console()
settings_app = typer.Typer(help="查看与修改插件设置")


def _check_model(model: str) -> None:
    try:
        validate_model_uid(model)
    except ValidationError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise typer.Exit(code=1) from e


def _mask(api_key: str) -> str:
    if not api_key:
        return ""
    return f"{'*' * 8}{api_key[-4:]}"


@settings_app.command("show")
def settings_show(ctx: typer.Context) -> None:
    """显示当前设置（API 密钥仅显示末尾 4 位）。"""
    state: State = ctx.obj
    settings: PluginSettings = run_with_coordinator(
        state.config, lambda c: c.settings.get_settings()
    )

    console.print(f"API 密钥: {_mask(settings.api_key) or '[dim]未设置[/dim]'}")
    console.print(f"自动翻译: {format_value(settings.auto_translate)}")

    types_table = Table(title="内容类型")
    types_table.add_column("UID", style="cyan")
    types_table.add_column("启用", justify="center")
    types_table.add_column("自动翻译", justify="center")
    types_table.add_column("忽略字段")
    for uid, ct in sorted(settings.content_types.items()):
        types_table.add_row(
            uid,
            format_value(ct.enabled),
            format_value(ct.auto_translate),
            ", ".join(ct.ignored_fields),
        )
    console.print(types_table)

    glossary_table = Table(title="术语")
    glossary_table.add_column("原文", style="cyan")
    glossary_table.add_column("译法")
    for entry in settings.glossary:
        glossary_table.add_row(
            entry.term,
            ", ".join(f"{lang}={t}" for lang, t in sorted(entry.translations.items())),
        )
    console.print(glossary_table)


@settings_app.command("set-key")
def settings_set_key(
    ctx: typer.Context,
    api_key: Annotated[str, typer.Argument(help="DeepL API 密钥；以 ':fx' 结尾表示免费版。")],
) -> None:
    """保存 DeepL API 密钥，优先级高于环境变量。"""
    if not api_key.strip():
        console.print("[bold red]❌ API 密钥不能为空。[/bold red]")
        raise typer.Exit(code=1)
    state: State = ctx.obj
    run_with_coordinator(state.config, lambda c: c.settings.set_api_key(api_key))
    console.print("[bold green]✅ API 密钥已保存。[/bold green]")


@settings_app.command("auto-translate")
def settings_auto_translate(
    ctx: typer.Context,
    enabled: Annotated[bool, typer.Argument(help="是否开启全局自动翻译。")],
) -> None:
    """开启或关闭全局自动翻译。"""
    state: State = ctx.obj

    async def _action(coordinator: Coordinator) -> PluginSettings:
        settings = await coordinator.settings.get_settings()
        settings.auto_translate = enabled
        return await coordinator.settings.update_settings(settings)

    run_with_coordinator(state.config, _action)
    console.print(f"自动翻译: {format_value(enabled)}")


@settings_app.command("content-type")
def settings_content_type(
    ctx: typer.Context,
    model: Annotated[str, typer.Argument(help="内容类型 UID。")],
    enabled: Annotated[
        Optional[bool], typer.Option("--enabled/--disabled", help="是否启用翻译。")
    ] = None,
    auto: Annotated[
        Optional[bool], typer.Option("--auto/--no-auto", help="是否自动翻译。")
    ] = None,
) -> None:
    """修改单个内容类型的启用与自动翻译开关。"""
    _check_model(model)
    state: State = ctx.obj

    async def _action(coordinator: Coordinator) -> None:
        ct = await coordinator.settings.get_content_type_settings(model)
        if enabled is not None:
            ct.enabled = enabled
        if auto is not None:
            ct.auto_translate = auto
        await coordinator.settings.update_content_type_settings(model, ct)

    run_with_coordinator(state.config, _action)
    console.print(f"[bold green]✅ 已更新 {model} 的设置。[/bold green]")


@settings_app.command("ignore-fields")
def settings_ignore_fields(
    ctx: typer.Context,
    model: Annotated[str, typer.Argument(help="内容类型 UID。")],
    fields: Annotated[
        Optional[list[str]], typer.Argument(help="翻译时原样复制的字段名；留空表示清空。")
    ] = None,
) -> None:
    """设置某个内容类型在任意深度都不翻译的字段。"""
    _check_model(model)
    state: State = ctx.obj
    ignored = list(dict.fromkeys(fields or []))

    async def _action(coordinator: Coordinator) -> None:
        ct = await coordinator.settings.get_content_type_settings(model)
        ct.ignored_fields = ignored
        await coordinator.settings.update_content_type_settings(model, ct)

    run_with_coordinator(state.config, _action)
    console.print(
        f"[bold green]✅ {model} 的忽略字段: {', '.join(ignored) or '(无)'}[/bold green]"
    )


@settings_app.command("add-term")
def settings_add_term(
    ctx: typer.Context,
    term: Annotated[str, typer.Argument(help="原文术语。")],
    translations: Annotated[
        list[str], typer.Option("--translation", "-t", help="形如 'de=Begriff' 的译法。")
    ],
) -> None:
    """新增或替换一条术语；之后运行 `glossary sync` 生效。"""
    parsed: dict[str, str] = {}
    for item in translations:
        lang, sep, text = item.partition("=")
        if not sep or not text:
            console.print(f"[bold red]❌ 无效的译法 '{item}'，应为 'lang=text'。[/bold red]")
            raise typer.Exit(code=1)
        try:
            parsed[validate_locale(lang.strip())] = text.strip()
        except ValidationError as e:
            console.print(f"[bold red]❌ {e}[/bold red]")
            raise typer.Exit(code=1) from e
    state: State = ctx.obj

    async def _action(coordinator: Coordinator) -> None:
        glossary = [e for e in await coordinator.settings.get_glossary() if e.term != term]
        glossary.append(GlossaryEntry(term=term, translations=parsed))
        await coordinator.settings.update_glossary(glossary)

    run_with_coordinator(state.config, _action)
    console.print(f"[bold green]✅ 已保存术语 '{term}'。[/bold green]")
