"""
newsdesk-ai

新闻编辑部的文章生成编排器：多供应商回退链、配额节流、字段抽取与内容清理。
"""

from .errors import (
    AllProvidersFailedError,
    AppError,
    ArticleStoreError,
    ErrorCode,
    GenerationCancelledError,
    InvalidGenerationRequestError,
    NoProviderConfiguredError,
    ProviderFailure,
)
from .pipeline.orchestrator import GenerationOrchestrator, generate_with_fallback, get_orchestrator
from .pipeline.models import GeneratedArticle, GenerationRequest, JournalisticStyle
from .storage import ArticleStatus, SQLiteArticleStore
from .utils.html_utils import sanitize_html

__version__ = "1.0.0"

__all__ = [
    "AllProvidersFailedError",
    "AppError",
    "ArticleStoreError",
    "ErrorCode",
    "GenerationCancelledError",
    "InvalidGenerationRequestError",
    "NoProviderConfiguredError",
    "ProviderFailure",
    "GenerationOrchestrator",
    "generate_with_fallback",
    "get_orchestrator",
    "GeneratedArticle",
    "GenerationRequest",
    "JournalisticStyle",
    "ArticleStatus",
    "SQLiteArticleStore",
    "sanitize_html",
]
