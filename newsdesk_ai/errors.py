"""
标准化错误码与统一异常。

定义全局错误码枚举、应用异常类以及生成链路对外暴露的异常子类。
单个供应商 / 单个模型的失败不会以异常形式抛出，只有整条回退链的结果才会。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence


# ---------------------------------------------------------------------------
# 错误码枚举
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """应用级标准错误码。

    命名规则: 全大写 + 下划线，前缀表示模块。
    """

    # ── 输入校验 ──
    VALIDATION_EMPTY_REQUEST = "VALIDATION_EMPTY_REQUEST"
    VALIDATION_INVALID_ORDER = "VALIDATION_INVALID_ORDER"

    # ── 供应商 / 生成 ──
    PROVIDER_NOT_CONFIGURED = "PROVIDER_NOT_CONFIGURED"
    LLM_ALL_PROVIDERS_FAILED = "LLM_ALL_PROVIDERS_FAILED"
    LLM_QUOTA_EXHAUSTED = "LLM_QUOTA_EXHAUSTED"
    GENERATION_CANCELLED = "GENERATION_CANCELLED"

    # ── 存储 ──
    ARTICLE_NOT_FOUND = "ARTICLE_NOT_FOUND"
    ARTICLE_STORE_FAILED = "ARTICLE_STORE_FAILED"

    # ── 系统 ──
    SYSTEM_INTERNAL_ERROR = "SYSTEM_INTERNAL_ERROR"


# ---------------------------------------------------------------------------
# 错误码元信息（默认 HTTP 状态码 & retriable 标记）
# ---------------------------------------------------------------------------

_ERROR_META: dict[ErrorCode, dict[str, Any]] = {
    # 校验
    ErrorCode.VALIDATION_EMPTY_REQUEST:     {"status": 422, "retriable": False},
    ErrorCode.VALIDATION_INVALID_ORDER:     {"status": 422, "retriable": False},
    # 供应商
    ErrorCode.PROVIDER_NOT_CONFIGURED:      {"status": 503, "retriable": False},
    ErrorCode.LLM_ALL_PROVIDERS_FAILED:     {"status": 502, "retriable": True},
    ErrorCode.LLM_QUOTA_EXHAUSTED:          {"status": 429, "retriable": True},
    ErrorCode.GENERATION_CANCELLED:         {"status": 499, "retriable": False},
    # 存储
    ErrorCode.ARTICLE_NOT_FOUND:            {"status": 404, "retriable": False},
    ErrorCode.ARTICLE_STORE_FAILED:         {"status": 500, "retriable": True},
    # 系统
    ErrorCode.SYSTEM_INTERNAL_ERROR:        {"status": 500, "retriable": True},
}


# ---------------------------------------------------------------------------
# 应用异常类
# ---------------------------------------------------------------------------

class AppError(Exception):
    """统一应用异常。

    使用方式::

        raise AppError(
            ErrorCode.PROVIDER_NOT_CONFIGURED,
            "未配置任何可用的 AI 供应商",
        )
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        status_code: Optional[int] = None,
        retriable: Optional[bool] = None,
        retry_after_seconds: Optional[int] = None,
        extra: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        meta = _ERROR_META.get(code, {"status": 500, "retriable": False})
        self.code = code
        self.message = message
        self.status_code = status_code or meta["status"]
        self.retriable = retriable if retriable is not None else meta["retriable"]
        self.retry_after_seconds = retry_after_seconds
        self.extra = extra or {}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
            "retriable": self.retriable,
        }
        if self.retry_after_seconds is not None:
            body["retry_after_seconds"] = self.retry_after_seconds
        if self.extra:
            body.update(self.extra)
        return body


# ---------------------------------------------------------------------------
# 生成链路异常
# ---------------------------------------------------------------------------

class InvalidGenerationRequestError(AppError):
    """请求中主题、自定义提示词与待改写正文均为空。"""

    def __init__(self, message: str = "请提供主题、自定义提示词或待改写的正文"):
        super().__init__(ErrorCode.VALIDATION_EMPTY_REQUEST, message)


class NoProviderConfiguredError(AppError):
    """回退顺序中没有任何已配置的供应商，未发起任何网络请求。"""

    def __init__(self, order: Sequence[str] = ()):
        order = list(order)
        super().__init__(
            ErrorCode.PROVIDER_NOT_CONFIGURED,
            f"回退顺序 {order} 中没有已配置 API Key 的 AI 供应商",
            extra={"fallback_order": order},
        )


@dataclass(frozen=True)
class ProviderFailure:
    """单个供应商在一次回退链中的最终失败记录。"""

    provider: str
    kind: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"provider": self.provider, "kind": self.kind, "message": self.message}


class AllProvidersFailedError(AppError):
    """所有已配置供应商均失败。

    ``failures`` 按尝试顺序列出每个供应商的失败类别与消息。
    当全部失败均为配额耗尽时，错误码为 LLM_QUOTA_EXHAUSTED。
    """

    def __init__(self, failures: Sequence[ProviderFailure]):
        self.failures: list[ProviderFailure] = list(failures)
        summary = "; ".join(f"{f.provider}: [{f.kind}] {f.message}" for f in self.failures)
        code = (
            ErrorCode.LLM_QUOTA_EXHAUSTED
            if self.all_quota_exhausted
            else ErrorCode.LLM_ALL_PROVIDERS_FAILED
        )
        super().__init__(
            code,
            f"所有 AI 供应商均失败: {summary}",
            retriable=self._compute_retriable(),
            extra={"failures": [f.to_dict() for f in self.failures]},
        )

    @property
    def all_quota_exhausted(self) -> bool:
        return bool(self.failures) and all(
            f.kind == "quota_exceeded" for f in self.failures
        )

    def _compute_retriable(self) -> bool:
        # 只要有一个失败不是致命错误，稍后重试就可能成功
        return any(f.kind != "fatal_error" for f in self.failures)


class GenerationCancelledError(AppError):
    """调用方取消了生成，不返回任何部分结果。"""

    def __init__(self, provider: Optional[str] = None):
        message = "文章生成已被取消"
        if provider:
            message = f"{message}（进行中的供应商: {provider}）"
        super().__init__(ErrorCode.GENERATION_CANCELLED, message)


class ArticleStoreError(AppError):
    """文章存储读写失败。"""

    def __init__(self, message: str, *, code: ErrorCode = ErrorCode.ARTICLE_STORE_FAILED):
        super().__init__(code, message)
