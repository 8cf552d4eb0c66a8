"""
供应商注册表

每次调用时从配置构建 ProviderConfig，并按名称创建对应的适配器。
"""

from __future__ import annotations

from typing import Mapping, Optional

from ..config import Settings, get_settings
from ..pipeline.models import ProviderConfig
from .base import ProviderAdapter
from .gemini import GeminiAdapter
from .openai_compat import OpenAICompatibleAdapter

PROVIDER_NAMES: tuple[str, ...] = ("openai", "google", "openrouter", "puter", "deepseek")

_OPENROUTER_HEADERS = {
    "HTTP-Referer": "https://newsdesk.local",
    "X-Title": "newsdesk-ai",
}


def dedupe_models(models) -> tuple[str, ...]:
    """去重并保持顺序，忽略空白项。"""
    seen: set[str] = set()
    ordered: list[str] = []
    for model in models or ():
        model = (model or "").strip()
        if model and model not in seen:
            seen.add(model)
            ordered.append(model)
    return tuple(ordered)


class ProviderRegistry:
    """供应商配置与适配器的统一入口"""

    def __init__(
        self,
        app_settings: Optional[Settings] = None,
        adapters: Optional[Mapping[str, ProviderAdapter]] = None,
        configs: Optional[Mapping[str, ProviderConfig]] = None,
    ):
        self._settings = app_settings
        self._overrides = dict(adapters or {})
        self._configs = dict(configs or {})
        self._cache: dict[tuple[str, str, str], ProviderAdapter] = {}

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def config(self, name: str) -> Optional[ProviderConfig]:
        """读取供应商配置快照；未知名称返回 None。"""
        if name in self._configs:
            return self._configs[name]
        if name not in PROVIDER_NAMES:
            return None
        s = self.settings
        api_key = getattr(s, f"{name}_api_key", "") or ""
        return ProviderConfig(
            name=name,
            model_candidates=dedupe_models(getattr(s, f"{name}_models", ())),
            min_call_interval_ms=int(getattr(s, f"{name}_min_interval_ms", 0) or 0),
            is_configured=bool(api_key.strip()) or name in self._overrides,
        )

    def adapter(self, name: str) -> ProviderAdapter:
        """获取供应商适配器（测试注入优先）"""
        if name in self._overrides:
            return self._overrides[name]
        if name not in PROVIDER_NAMES:
            raise KeyError(name)

        s = self.settings
        api_key = getattr(s, f"{name}_api_key", "")
        base_url = getattr(s, f"{name}_base_url", "")
        key = (name, api_key, base_url)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        adapter: ProviderAdapter
        if name == "google":
            adapter = GeminiAdapter(api_key=api_key, base_url=base_url)
        else:
            adapter = OpenAICompatibleAdapter(
                name=name,
                api_key=api_key,
                base_url=base_url,
                default_headers=_OPENROUTER_HEADERS if name == "openrouter" else None,
            )
        self._cache[key] = adapter
        return adapter


def get_provider_registry() -> ProviderRegistry:
    """获取默认注册表（每次读取最新配置）"""
    return ProviderRegistry()
