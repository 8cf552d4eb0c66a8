"""
供应商错误分类。

按状态码优先的顺序把一次失败的 HTTP 调用归为配额耗尽、瞬时错误或致命错误：

1. 429 → 配额耗尽
2. 非 2xx 且响应体包含配额关键字 → 配额耗尽
3. 5xx → 瞬时错误
4. 其它 4xx → 致命错误

成功响应（2xx）从不检查关键字。
"""

from __future__ import annotations

from typing import Any, Optional

from ..pipeline.models import AttemptOutcome

QUOTA_MARKERS: tuple[str, ...] = (
    "quota",
    "exceeded",
    "resource exhausted",
    "resource_exhausted",
    "rate limit",
    "rate_limit",
)

_MAX_MESSAGE_CHARS = 300


def contains_quota_marker(body: Any) -> bool:
    text = str(body or "").lower()
    return any(marker in text for marker in QUOTA_MARKERS)


def _short(text: Any) -> str:
    text = " ".join(str(text or "").split())
    if len(text) > _MAX_MESSAGE_CHARS:
        return text[: _MAX_MESSAGE_CHARS - 3] + "..."
    return text


def classify_http_failure(
    status_code: int, body: Any, model: Optional[str] = None
) -> AttemptOutcome:
    """
    将非 2xx 响应归类

    Args:
        status_code: HTTP 状态码
        body: 响应体（文本或已解析的 JSON）
        model: 本次调用的模型

    Returns:
        QUOTA_EXCEEDED / TRANSIENT_ERROR / FATAL_ERROR 之一
    """
    detail = _short(body)
    message = f"HTTP {status_code}: {detail}" if detail else f"HTTP {status_code}"
    if status_code == 429:
        return AttemptOutcome.quota_exceeded(message, model=model)
    if contains_quota_marker(body):
        return AttemptOutcome.quota_exceeded(message, model=model)
    if status_code >= 500:
        return AttemptOutcome.transient(message, model=model)
    return AttemptOutcome.fatal(message, model=model)


def network_failure(exc: BaseException, model: Optional[str] = None) -> AttemptOutcome:
    """网络错误与超时一律视为瞬时错误。"""
    return AttemptOutcome.transient(
        f"{type(exc).__name__}: {_short(exc)}", model=model
    )


def empty_response(detail: str, model: Optional[str] = None) -> AttemptOutcome:
    """2xx 但无法解析或内容为空，视为致命错误而不是成功。"""
    return AttemptOutcome.fatal(f"响应为空或无法解析: {detail}", model=model)
