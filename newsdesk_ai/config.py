"""
配置管理模块

使用 Pydantic Settings 从 .env 文件读取配置，包括各 AI 供应商的密钥、
候选模型、最小调用间隔以及默认的回退顺序。
"""

from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_DIR = PACKAGE_DIR.parent


class Settings(BaseSettings):
    """应用配置类"""

    # OpenAI 官方 API
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_models: list[str] = ["gpt-4o", "gpt-4o-mini"]
    openai_min_interval_ms: int = 1000

    # Google Gemini（generateContent REST 接口）
    google_api_key: str = ""
    google_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    google_models: list[str] = [
        "gemini-2.5-flash",
        "gemini-1.5-flash-latest",
        "gemini-1.5-pro-latest",
        "gemini-pro",
    ]
    google_min_interval_ms: int = 4000

    # OpenRouter（OpenAI 兼容）
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_models: list[str] = ["openai/gpt-4o-mini", "anthropic/claude-3-haiku"]
    openrouter_min_interval_ms: int = 1000

    # Puter AI（OpenAI 兼容网关）
    puter_api_key: str = ""
    puter_base_url: str = "https://api.puter.com/puterai/openai/v1"
    puter_models: list[str] = ["gpt-4o-mini"]
    puter_min_interval_ms: int = 1500

    # DeepSeek（OpenAI 兼容）
    deepseek_api_key: str = ""
    deepseek_base_url: str = "https://api.deepseek.com/v1"
    deepseek_models: list[str] = ["deepseek-chat"]
    deepseek_min_interval_ms: int = 1000

    # 回退顺序：用户可编辑的持久化文件优先，其次为此默认值
    fallback_order: list[str] = ["openai", "google", "openrouter", "puter"]
    fallback_order_path: str = ""

    # 生成参数
    provider_timeout_seconds: float = 60.0
    generation_temperature: float = 0.7
    generation_max_tokens: int = 4000

    # Tavily 搜索 API 配置（联网调研）
    tavily_api_key: str = ""
    tavily_request_timeout_seconds: int = 20
    research_enabled: bool = True
    research_max_results: int = 5

    # 存储
    output_dir: str = str(PROJECT_DIR / "output")
    article_db_path: str = ""

    # 日志
    log_level: str = "INFO"
    log_format: str = "auto"  # "auto" | "json" | "console"

    debug: bool = False

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def validate_startup(self) -> list[str]:
        """启动时校验关键配置，返回警告列表。"""
        warnings: list[str] = []
        configured = [
            name
            for name in ("openai", "google", "openrouter", "puter", "deepseek")
            if getattr(self, f"{name}_api_key", "")
        ]
        if not configured:
            warnings.append("未配置任何 AI 供应商的 API Key，文章生成将不可用")
        if self.research_enabled and not self.tavily_api_key:
            warnings.append("TAVILY_API_KEY 未设置，联网调研将被跳过")
        return warnings

    @property
    def output_path(self) -> Path:
        """获取输出目录的绝对路径"""
        return Path(self.output_dir).resolve()

    @property
    def fallback_order_file(self) -> Path:
        """回退顺序持久化文件路径"""
        if self.fallback_order_path:
            return Path(self.fallback_order_path).resolve()
        return self.output_path / "settings" / "fallback_order.json"


@lru_cache()
def get_settings() -> Settings:
    """获取配置单例（带缓存）"""
    return Settings()


# 导出全局配置实例
settings = get_settings()
