"""供应商适配器接口。"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..pipeline.models import AttemptOutcome, PromptPayload


@runtime_checkable
class ProviderAdapter(Protocol):
    """统一的供应商调用接口。

    每次 generate 只发起一次 HTTP 调用，带超时，不做 SDK 级重试，
    失败以 AttemptOutcome 返回而不是抛出。适配器不接触 QuotaGuard。
    """

    name: str

    async def generate(self, prompt: PromptPayload, model: str) -> AttemptOutcome:
        ...
