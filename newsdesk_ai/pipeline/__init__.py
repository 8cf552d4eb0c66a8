"""Pipeline 模块。

编排器依赖 llm / storage / search 子包，需通过 ``newsdesk_ai.pipeline.orchestrator``
或顶层包导入，此处只导出无外部依赖的组件。
"""

from .models import (
    AttemptOutcome,
    ChainResult,
    ExtractedFields,
    GeneratedArticle,
    GenerationRequest,
    JournalisticStyle,
    OutcomeKind,
    PromptPayload,
    ProviderConfig,
)
from .extractor import clean_ai_generated_content, extract_fields
from .fallback_order import FallbackOrderStore, get_fallback_order_store
from .normalizer import html_to_document, markdown_to_html
from .prompts import build_generation_prompt, get_style, styles_for_category
from .quota_guard import QuotaGuard, get_quota_guard

__all__ = [
    "AttemptOutcome",
    "ChainResult",
    "ExtractedFields",
    "GeneratedArticle",
    "GenerationRequest",
    "JournalisticStyle",
    "OutcomeKind",
    "PromptPayload",
    "ProviderConfig",
    "clean_ai_generated_content",
    "extract_fields",
    "FallbackOrderStore",
    "get_fallback_order_store",
    "html_to_document",
    "markdown_to_html",
    "build_generation_prompt",
    "get_style",
    "styles_for_category",
    "QuotaGuard",
    "get_quota_guard",
]
