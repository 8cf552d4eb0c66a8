from __future__ import annotations

"""文章 SQLite 存储。"""

import sqlite3
import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Protocol

from ..config import settings
from ..errors import ArticleStoreError, ErrorCode
from ..logging_config import get_logger
from ..pipeline.models import GeneratedArticle

logger = get_logger(__name__)


class ArticleStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class ArticleStore(Protocol):
    """存储协作方：接收完整文章与状态，返回不透明的记录 ID。"""

    def save(self, article: GeneratedArticle, status: ArticleStatus) -> str:
        ...


def _now_iso() -> str:
    return datetime.now().isoformat()


class SQLiteArticleStore:
    """文章存储（SQLite）。"""

    def __init__(self, db_path: Optional[Path] = None):
        configured = getattr(settings, "article_db_path", "")
        default_path = settings.output_path / ".articles" / "articles.db"
        self.db_path = Path(configured).resolve() if configured else default_path
        if db_path is not None:
            self.db_path = Path(db_path).resolve()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.db_path), check_same_thread=False, timeout=5.0
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA busy_timeout=5000;")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS articles (
                    article_id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    body_html TEXT NOT NULL,
                    status TEXT NOT NULL,
                    category TEXT NOT NULL DEFAULT '',
                    style TEXT,
                    provider_used TEXT NOT NULL,
                    model_used TEXT,
                    prompt_used TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_articles_status_created
                ON articles(status, created_at);
                """
            )

    def save(
        self,
        article: GeneratedArticle,
        status: ArticleStatus | str = ArticleStatus.DRAFT,
    ) -> str:
        status = ArticleStatus(status)
        article_id = uuid.uuid4().hex
        now = _now_iso()
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO articles (
                        article_id, title, description, body_html, status, category,
                        style, provider_used, model_used, prompt_used, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        article_id,
                        article.title,
                        article.description,
                        article.body_html,
                        status.value,
                        article.category,
                        article.style,
                        article.provider_used,
                        article.model_used,
                        article.prompt_used,
                        now,
                        now,
                    ),
                )
        except sqlite3.Error as e:
            raise ArticleStoreError(f"文章保存失败: {type(e).__name__}: {e}") from e
        logger.info("article_saved", article_id=article_id, status=status.value)
        return article_id

    @staticmethod
    def _row_to_dict(row: sqlite3.Row) -> dict[str, Any]:
        return {
            "article_id": row["article_id"],
            "title": row["title"],
            "description": row["description"],
            "body_html": row["body_html"],
            "status": row["status"],
            "category": row["category"],
            "style": row["style"],
            "provider_used": row["provider_used"],
            "model_used": row["model_used"],
            "prompt_used": row["prompt_used"],
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }

    def get(self, article_id: str) -> Optional[dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM articles WHERE article_id = ?", (article_id,)
            ).fetchone()
            if row is None:
                return None
            return self._row_to_dict(row)

    def update_status(self, article_id: str, status: ArticleStatus | str) -> None:
        status = ArticleStatus(status)
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE articles SET status = ?, updated_at = ? WHERE article_id = ?",
                (status.value, _now_iso(), article_id),
            )
        if cursor.rowcount == 0:
            raise ArticleStoreError(
                f"文章不存在: {article_id}", code=ErrorCode.ARTICLE_NOT_FOUND
            )
        logger.info("article_status_updated", article_id=article_id, status=status.value)

    def delete(self, article_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM articles WHERE article_id = ?", (article_id,))
            return cursor.rowcount > 0

    def list_recent(
        self, limit: int = 20, status: Optional[ArticleStatus | str] = None
    ) -> list[dict[str, Any]]:
        with self._connect() as conn:
            if status is None:
                rows = conn.execute(
                    "SELECT * FROM articles ORDER BY created_at DESC, rowid DESC LIMIT ?",
                    (limit,),
                ).fetchall()
            else:
                rows = conn.execute(
                    """
                    SELECT * FROM articles
                    WHERE status = ?
                    ORDER BY created_at DESC, rowid DESC
                    LIMIT ?
                    """,
                    (ArticleStatus(status).value, limit),
                ).fetchall()
        return [self._row_to_dict(row) for row in rows]


_article_store: Optional[SQLiteArticleStore] = None


def get_article_store() -> SQLiteArticleStore:
    global _article_store
    if _article_store is None:
        _article_store = SQLiteArticleStore()
    return _article_store
