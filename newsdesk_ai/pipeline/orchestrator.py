from __future__ import annotations

"""文章生成编排器（回退链执行器）。"""

import asyncio
import uuid
from typing import Optional, Sequence

from ..config import settings
from ..errors import (
    AllProvidersFailedError,
    GenerationCancelledError,
    InvalidGenerationRequestError,
    NoProviderConfiguredError,
    ProviderFailure,
)
from ..llm.registry import ProviderRegistry, get_provider_registry
from ..logging_config import bind_generation_id, get_logger
from ..search import ResearchProvider, get_research_client
from ..storage import ArticleStatus, ArticleStore, get_article_store
from ..utils.html_utils import clean_llm_response, extract_text_content
from .extractor import clean_ai_generated_content, extract_fields, truncate_description
from .fallback_order import FallbackOrderStore, get_fallback_order_store
from .ladder import call_cancellable, run_ladder
from .models import ChainResult, GeneratedArticle, GenerationRequest, PromptPayload, ProviderConfig
from .normalizer import markdown_to_html
from .prompts import build_description_prompt, build_generation_prompt, build_title_prompt
from .quota_guard import QuotaGuard, get_quota_guard

logger = get_logger(__name__)

_QUOTE_CHARS = "\"'“”«»‘’"
_RESEARCH_TOPIC_CHARS = 200


def _strip_quotes(text: str) -> str:
    return text.strip().strip(_QUOTE_CHARS).strip()


def _clean_title(text: str) -> str:
    lines = [line.strip() for line in clean_llm_response(text).split("\n") if line.strip()]
    if not lines:
        return ""
    title = lines[0].lstrip("#").strip().strip("*").strip()
    return _strip_quotes(title)


def _clean_description(text: str) -> str:
    cleaned = " ".join(clean_llm_response(text).split()).strip("*").strip()
    return truncate_description(_strip_quotes(cleaned))


class GenerationOrchestrator:
    """文章生成编排器。

    按回退顺序依次尝试已配置的供应商，每个供应商只走一遍自己的模型阶梯，
    第一个成功结果进入字段抽取与规范化；全部失败时抛出聚合错误。
    """

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        quota_guard: Optional[QuotaGuard] = None,
        research_client: Optional[ResearchProvider] = None,
        order_store: Optional[FallbackOrderStore] = None,
    ):
        self.registry = registry or get_provider_registry()
        self.quota_guard = quota_guard or get_quota_guard()
        self.research_client = research_client
        self.order_store = order_store or get_fallback_order_store()

    # ------------------------------------------------------------------ #
    # 回退链
    # ------------------------------------------------------------------ #

    def resolve_order(self, order: Optional[Sequence[str]] = None) -> list[str]:
        """显式传入的顺序优先，否则读取持久化的用户顺序。"""
        if order is not None:
            return [str(name).strip().lower() for name in order if str(name).strip()]
        return self.order_store.load()

    def configured_providers(self, order: Sequence[str]) -> list[ProviderConfig]:
        providers: list[ProviderConfig] = []
        seen: set[str] = set()
        for name in order:
            if name in seen:
                continue
            seen.add(name)
            config = self.registry.config(name)
            if config is None:
                logger.warning("provider_unknown", provider=name)
                continue
            if not config.is_configured:
                logger.debug("provider_not_configured", provider=name)
                continue
            providers.append(config)
        return providers

    async def _run_providers(
        self,
        providers: Sequence[ProviderConfig],
        prompt: PromptPayload,
        cancel_event: Optional[asyncio.Event],
    ) -> ChainResult:
        failures: list[ProviderFailure] = []
        for config in providers:
            if cancel_event is not None and cancel_event.is_set():
                raise GenerationCancelledError()

            adapter = self.registry.adapter(config.name)
            outcome = await run_ladder(
                config,
                adapter,
                prompt,
                guard=self.quota_guard,
                cancel_event=cancel_event,
            )
            if outcome.ok:
                if cancel_event is not None and cancel_event.is_set():
                    raise GenerationCancelledError(config.name)
                logger.info(
                    "provider_succeeded",
                    provider=config.name,
                    model=outcome.model,
                    chars=len(outcome.text),
                )
                return ChainResult(provider=config.name, model=outcome.model, text=outcome.text)

            failures.append(
                ProviderFailure(provider=config.name, kind=outcome.kind.value, message=outcome.message)
            )

        logger.error(
            "all_providers_failed",
            providers=[f.provider for f in failures],
            kinds=[f.kind for f in failures],
        )
        raise AllProvidersFailedError(failures)

    async def run_chain(
        self,
        prompt: PromptPayload,
        order: Optional[Sequence[str]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ChainResult:
        """
        按回退顺序执行一次生成

        Args:
            prompt: 请求内容
            order: 供应商顺序，默认读取用户设置
            cancel_event: 取消事件

        Returns:
            第一个成功的 ChainResult

        Raises:
            NoProviderConfiguredError: 没有任何已配置的供应商（未发起网络请求）
            AllProvidersFailedError: 所有已配置供应商均失败
            GenerationCancelledError: 调用方取消
        """
        resolved = self.resolve_order(order)
        providers = self.configured_providers(resolved)
        if not providers:
            raise NoProviderConfiguredError(resolved)
        return await self._run_providers(providers, prompt, cancel_event)

    # ------------------------------------------------------------------ #
    # 调研
    # ------------------------------------------------------------------ #

    async def _research(
        self, request: GenerationRequest, cancel_event: Optional[asyncio.Event]
    ) -> str:
        if request.research_context is not None:
            return request.research_context.strip()

        topic = (request.topic or "").strip() or (request.custom_prompt or "").strip()[:_RESEARCH_TOPIC_CHARS]
        if not topic:
            return ""

        try:
            client = self.research_client or get_research_client()
            if client is None:
                return ""
            research = await call_cancellable(
                asyncio.to_thread(client.research, topic), cancel_event
            )
        except GenerationCancelledError:
            raise
        except Exception as e:
            logger.warning("research_failed", topic=topic[:120], error=f"{type(e).__name__}: {e}")
            return ""

        logger.info("research_completed", chars=len(research or ""))
        return research or ""

    # ------------------------------------------------------------------ #
    # 对外接口
    # ------------------------------------------------------------------ #

    async def generate_with_fallback(
        self,
        request: GenerationRequest,
        order: Optional[Sequence[str]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> GeneratedArticle:
        """
        生成一篇完整文章

        Args:
            request: 生成请求
            order: 供应商顺序，默认读取用户设置
            cancel_event: 取消事件

        Returns:
            GeneratedArticle
        """
        if request.is_empty():
            raise InvalidGenerationRequestError()

        bind_generation_id(uuid.uuid4().hex[:12])
        resolved = self.resolve_order(order)
        providers = self.configured_providers(resolved)
        if not providers:
            raise NoProviderConfiguredError(resolved)

        logger.info(
            "generation_started",
            style=request.style.value,
            category=request.category,
            providers=[p.name for p in providers],
        )

        research = await self._research(request, cancel_event)
        prompt = build_generation_prompt(request, research)
        result = await self._run_providers(providers, prompt, cancel_event)

        cleaned = clean_ai_generated_content(clean_llm_response(result.text))
        fields = extract_fields(cleaned, request.topic)
        article = GeneratedArticle(
            title=fields.title,
            description=fields.description,
            body_html=markdown_to_html(fields.body),
            provider_used=result.provider,
            prompt_used=prompt.user,
            model_used=result.model,
            style=request.style.value,
            category=request.category,
        )
        logger.info(
            "generation_completed",
            provider=result.provider,
            model=result.model,
            has_description=bool(article.description),
        )
        return article

    async def generate_title(
        self,
        body: str,
        category: str = "",
        current_title: str = "",
        order: Optional[Sequence[str]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """根据正文生成标题（经同一回退链）"""
        if not extract_text_content(body):
            raise InvalidGenerationRequestError("请先提供文章正文再生成标题")
        bind_generation_id(uuid.uuid4().hex[:12])
        result = await self.run_chain(
            build_title_prompt(body, category, current_title), order, cancel_event
        )
        return _clean_title(result.text)

    async def generate_description(
        self,
        body: str,
        category: str = "",
        current_description: str = "",
        order: Optional[Sequence[str]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """根据正文生成摘要（经同一回退链，最多 300 字符）"""
        if not extract_text_content(body):
            raise InvalidGenerationRequestError("请先提供文章正文再生成摘要")
        bind_generation_id(uuid.uuid4().hex[:12])
        result = await self.run_chain(
            build_description_prompt(body, category, current_description), order, cancel_event
        )
        return _clean_description(result.text)

    async def generate_and_store(
        self,
        request: GenerationRequest,
        store: Optional[ArticleStore] = None,
        status: ArticleStatus = ArticleStatus.DRAFT,
        order: Optional[Sequence[str]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> tuple[str, GeneratedArticle]:
        """生成文章并交给存储协作方，返回 (记录 ID, 文章)"""
        article = await self.generate_with_fallback(request, order, cancel_event)
        store = store or get_article_store()
        record_id = store.save(article, status)
        return record_id, article


_orchestrator: Optional[GenerationOrchestrator] = None


def get_orchestrator() -> GenerationOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        for warning in settings.validate_startup():
            logger.warning("startup_config_warning", warning=warning)
        _orchestrator = GenerationOrchestrator()
    return _orchestrator


async def generate_with_fallback(
    request: GenerationRequest,
    order: Optional[Sequence[str]] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> GeneratedArticle:
    """使用默认编排器生成文章"""
    return await get_orchestrator().generate_with_fallback(request, order, cancel_event)
