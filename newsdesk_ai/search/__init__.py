"""
搜索模块

提供联网调研能力，为文章生成提供可验证的事实依据。
"""

from .tavily_client import ResearchProvider, TavilyResearchClient, get_research_client

__all__ = ["ResearchProvider", "TavilyResearchClient", "get_research_client"]
