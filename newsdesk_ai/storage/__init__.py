"""存储模块。"""

from .article_store import ArticleStatus, ArticleStore, SQLiteArticleStore, get_article_store

__all__ = ["ArticleStatus", "ArticleStore", "SQLiteArticleStore", "get_article_store"]
