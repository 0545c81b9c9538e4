# tests/integration/cli/conftest.py
"""为 CLI 集成测试提供 Fixtures：真实的 SQLite 文件与调试翻译引擎。"""

import json
from pathlib import Path

import pytest
from pytest import MonkeyPatch
from typer.testing import CliRunner

from tests.conftest import ARTICLE_UID, PAGE_UID, TEST_ENCRYPTION_KEY


@pytest.fixture
def cli_runner() -> CliRunner:
    """提供一个 Typer CliRunner 实例用于模拟命令行调用。"""
    return CliRunner()


@pytest.fixture
def registry_file(tmp_path: Path) -> Path:
    path = tmp_path / "registry.json"
    path.write_text(
        json.dumps(
            {
                "models": [
                    {
                        "uid": ARTICLE_UID,
                        "localized": True,
                        "attributes": {
                            "title": {"type": "string"},
                            "slug": {"type": "uid"},
                        },
                    },
                    {"uid": PAGE_UID, "localized": False},
                ],
                "locales": [
                    {"code": "en", "is_default": True},
                    {"code": "de"},
                    {"code": "fr"},
                ],
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def cli_env(tmp_path: Path, registry_file: Path, monkeypatch: MonkeyPatch) -> Path:
    """让 CLI 使用临时目录中的数据库和注册表，并选用调试引擎。返回数据库路径。"""
    monkeypatch.chdir(tmp_path)
    db_path = tmp_path / "localize_hub.db"
    monkeypatch.setenv("LH_ACTIVE_ENGINE", "debug")
    monkeypatch.setenv("LH_DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setenv("LH_REGISTRY_FILE", str(registry_file))
    monkeypatch.setenv("LH_LOGGING__LEVEL", "WARNING")
    monkeypatch.setenv("LH_ENCRYPTION_KEY", TEST_ENCRYPTION_KEY)
    return db_path


@pytest.fixture
def articles_file(tmp_path: Path) -> Path:
    path = tmp_path / "articles.json"
    path.write_text(
        json.dumps(
            [
                {"locale": "en", "title": "Hello", "slug": "hello"},
                {"locale": "en", "title": "World", "slug": "world"},
            ]
        ),
        encoding="utf-8",
    )
    return path
