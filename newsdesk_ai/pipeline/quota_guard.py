"""
供应商调用节流（Quota Guard）。

记录每个供应商最近一次调用的时间戳，保证同一供应商两次调用之间
至少间隔 min_interval_ms。锁只保护时间戳读写，从不跨越 await。
"""

from __future__ import annotations

import threading
import time
from functools import lru_cache
from typing import Callable


class QuotaGuard:
    """按供应商维度的最小调用间隔节流器。"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._last_call: dict[str, float] = {}

    def acquire(self, provider_name: str, min_interval_ms: int) -> float:
        """
        计算调用前还需等待的秒数。

        Args:
            provider_name: 供应商名称
            min_interval_ms: 最小调用间隔（毫秒）

        Returns:
            需要等待的秒数；从未调用过或间隔已足够时为 0
        """
        if min_interval_ms <= 0:
            return 0.0
        with self._lock:
            last = self._last_call.get(provider_name)
            if last is None:
                return 0.0
            elapsed = self._clock() - last
        remaining = min_interval_ms / 1000.0 - elapsed
        return remaining if remaining > 0 else 0.0

    def release(self, provider_name: str) -> None:
        """记录"最近一次调用 = 现在"，无论调用成功、失败或被取消。"""
        with self._lock:
            self._last_call[provider_name] = self._clock()

    def last_call(self, provider_name: str) -> float | None:
        with self._lock:
            return self._last_call.get(provider_name)

    def reset(self) -> None:
        with self._lock:
            self._last_call.clear()


@lru_cache()
def get_quota_guard() -> QuotaGuard:
    """获取进程级 QuotaGuard 单例"""
    return QuotaGuard()
