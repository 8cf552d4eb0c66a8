"""
测试会话级别配置。

- 清空所有供应商密钥并关闭联网调研，避免本地 .env 触发真实网络请求。
- 回退顺序文件与输出目录指向临时目录。
"""
from __future__ import annotations

from pathlib import Path

import pytest

from newsdesk_ai.config import settings

_PROVIDERS = ("openai", "google", "openrouter", "puter", "deepseek")


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for name in _PROVIDERS:
        monkeypatch.setattr(settings, f"{name}_api_key", "")
        monkeypatch.setattr(settings, f"{name}_min_interval_ms", 0)
    monkeypatch.setattr(settings, "tavily_api_key", "")
    monkeypatch.setattr(settings, "research_enabled", False)
    monkeypatch.setattr(settings, "output_dir", str(tmp_path / "output"))
    monkeypatch.setattr(settings, "fallback_order_path", str(tmp_path / "fallback_order.json"))
    monkeypatch.setattr(settings, "article_db_path", "")
    yield
