"""
Tavily 搜索客户端模块

使用 Tavily API 进行联网调研，把搜索结果整理成可直接拼进提示词的调研上下文。
"""

import time
from typing import Optional, Protocol

from tavily import TavilyClient

from ..config import settings
from ..logging_config import get_logger

logger = get_logger(__name__)

_RESULT_CONTENT_CHARS = 500


class ResearchProvider(Protocol):
    """调研协作方：给定主题返回调研上下文文本。"""

    def research(self, topic: str) -> str:
        ...


class TavilyResearchClient:
    """Tavily 调研客户端封装类"""

    def __init__(self, api_key: Optional[str] = None, client: Optional[TavilyClient] = None):
        """
        初始化 Tavily 调研客户端

        Args:
            api_key: Tavily API Key，默认从配置读取
            client: 已构建的 TavilyClient（测试时注入）
        """
        self.api_key = api_key or settings.tavily_api_key

        if client is None and not self.api_key:
            raise ValueError("Tavily API Key 未配置，请在 .env 中设置 TAVILY_API_KEY")

        self.client = client or TavilyClient(api_key=self.api_key)

    def search(
        self,
        query: str,
        search_depth: str = "advanced",
        max_results: Optional[int] = None,
        include_answer: bool = True,
    ) -> dict:
        """
        执行搜索查询

        Args:
            query: 搜索查询字符串
            search_depth: 搜索深度，"basic" 或 "advanced"
            max_results: 最大返回结果数，默认从配置读取
            include_answer: 是否包含 AI 生成的答案摘要

        Returns:
            搜索结果字典，包含 ok, answer, results, error 等字段
        """
        start = time.perf_counter()
        timeout_s = float(settings.tavily_request_timeout_seconds or 20)

        try:
            response = self.client.search(
                query=query,
                search_depth=search_depth,
                max_results=max_results or settings.research_max_results,
                include_answer=include_answer,
                timeout=timeout_s,
            )
        except Exception as e:
            latency_ms = int((time.perf_counter() - start) * 1000)
            logger.warning(
                "research_search_failed",
                query=query[:120],
                latency_ms=latency_ms,
                error=f"{type(e).__name__}: {e}",
            )
            return {
                "ok": False,
                "query": query,
                "answer": "",
                "results": [],
                "latency_ms": latency_ms,
                "error": f"{type(e).__name__}: {e}",
            }

        latency_ms = int((time.perf_counter() - start) * 1000)
        return {
            "ok": True,
            "query": query,
            "answer": response.get("answer", "") or "",
            "results": response.get("results", []) or [],
            "latency_ms": latency_ms,
            "error": None,
        }

    def get_formatted_context(self, search_result: dict) -> str:
        """
        将搜索结果格式化为提示词可用的上下文文本

        Args:
            search_result: search 的返回结果

        Returns:
            格式化的上下文字符串；没有可用内容时返回空字符串
        """
        answer = search_result.get("answer", "")
        results = search_result.get("results", [])
        if not answer and not results:
            return ""

        context_parts = [f"# Investigación web: {search_result.get('query', '')}\n\n"]

        if answer:
            context_parts.append(f"**Resumen**: {answer}\n\n")

        if results:
            context_parts.append("**Fuentes**:\n")
            for i, result in enumerate(results, 1):
                title = result.get("title", "")
                url = result.get("url", "")
                content = (result.get("content", "") or "")[:_RESULT_CONTENT_CHARS]
                context_parts.append(f"{i}. [{title}]({url})\n   {content}\n\n")

        return "".join(context_parts).strip()

    def research(self, topic: str) -> str:
        """搜索主题并返回格式化后的调研上下文；失败时返回空字符串。"""
        if not topic or not topic.strip():
            return ""
        result = self.search(topic.strip())
        if not result["ok"]:
            return ""
        return self.get_formatted_context(result)


def get_research_client() -> Optional[TavilyResearchClient]:
    """获取 Tavily 调研客户端实例；未启用或未配置时返回 None"""
    if not settings.research_enabled or not settings.tavily_api_key:
        return None
    return TavilyResearchClient()
