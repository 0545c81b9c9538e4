"""Localize-Hub CLI 模块入口。"""

from localize_hub.cli.main import app

__all__ = ["app"]
