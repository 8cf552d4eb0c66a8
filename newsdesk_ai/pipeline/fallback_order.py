"""
回退顺序存储

用户可编辑的供应商顺序以 JSON 文件持久化，每次生成调用都重新读取。
文件缺失或损坏时使用配置中的默认顺序。
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional, Sequence

from ..config import settings
from ..errors import AppError, ErrorCode
from ..logging_config import get_logger

logger = get_logger(__name__)


def _normalize(order: Sequence[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for name in order:
        name = str(name).strip().lower()
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return result


class FallbackOrderStore:
    """回退顺序的 JSON 文件存储"""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path).resolve() if path is not None else settings.fallback_order_file

    def default(self) -> list[str]:
        return _normalize(settings.fallback_order)

    def load(self) -> list[str]:
        """读取当前顺序（每次都从磁盘读取）"""
        if not self.path.exists():
            return self.default()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("fallback_order_unreadable", path=str(self.path), error=str(e))
            return self.default()

        order = data.get("fallback_order") if isinstance(data, dict) else data
        if not isinstance(order, list) or not all(isinstance(x, str) for x in order):
            logger.warning("fallback_order_invalid", path=str(self.path))
            return self.default()
        return _normalize(order) or self.default()

    def save(self, order: Sequence[str]) -> list[str]:
        """持久化新的顺序，返回规范化后的列表"""
        if isinstance(order, str) or not all(isinstance(x, str) for x in order):
            raise AppError(ErrorCode.VALIDATION_INVALID_ORDER, "回退顺序必须是供应商名称列表")
        normalized = _normalize(order)
        if not normalized:
            raise AppError(ErrorCode.VALIDATION_INVALID_ORDER, "回退顺序不能为空")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(
            json.dumps({"fallback_order": normalized}, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        os.replace(tmp_path, self.path)
        logger.info("fallback_order_saved", fallback_order=normalized)
        return normalized

    def move(self, provider: str, offset: int) -> list[str]:
        """把某个供应商上移（offset<0）或下移（offset>0）"""
        order = self.load()
        provider = provider.strip().lower()
        if provider not in order:
            raise AppError(
                ErrorCode.VALIDATION_INVALID_ORDER,
                f"供应商 {provider} 不在当前回退顺序中",
            )
        index = order.index(provider)
        target = max(0, min(len(order) - 1, index + offset))
        order.insert(target, order.pop(index))
        return self.save(order)

    def reset(self) -> list[str]:
        if self.path.exists():
            self.path.unlink()
        return self.default()


def get_fallback_order_store() -> FallbackOrderStore:
    """获取回退顺序存储（路径每次从配置读取）"""
    return FallbackOrderStore()
