# tests/integration/cli/test_cli_entrypoint.py
"""测试 CLI 主入口点和全局选项。"""

from pytest_mock import MockerFixture
from typer.testing import CliRunner

from localize_hub import __version__
from localize_hub.cli.main import app


def test_version_option(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout
    assert "Localize-Hub" in result.stdout


def test_help_lists_commands(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("translate", "batch", "glossary", "settings"):
        assert command in result.stdout


def test_config_load_failure_exits_gracefully(
    cli_runner: CliRunner, mocker: MockerFixture
) -> None:
    """配置加载失败时 CLI 应显示错误并以退出码 1 结束。"""
    mocker.patch(
        "localize_hub.cli.main.LocalizeHubConfig",
        side_effect=ValueError("Invalid .env file"),
    )
    result = cli_runner.invoke(app, ["languages"])
    assert result.exit_code == 1
    assert "启动失败" in result.stdout
