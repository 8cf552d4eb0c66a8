"""
模型阶梯（Model Fallback Ladder）。

按顺序尝试同一供应商的候选模型：每个候选先经 QuotaGuard 节流，再调用一次适配器，
调用结束后无论结果如何都记录时间戳。任何失败都直接换下一个模型，不对同一模型重试。
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Optional

from ..errors import GenerationCancelledError
from ..llm.base import ProviderAdapter
from ..logging_config import get_logger
from .models import AttemptOutcome, OutcomeKind, PromptPayload, ProviderConfig
from .quota_guard import QuotaGuard, get_quota_guard

logger = get_logger(__name__)


async def call_cancellable(
    awaitable: Awaitable[Any],
    cancel_event: Optional[asyncio.Event],
    provider: Optional[str] = None,
) -> Any:
    """
    执行一个可被 cancel_event 中断的等待

    事件一旦被设置，进行中的调用会被取消并抛出 GenerationCancelledError，
    即使该调用恰好已经成功完成。外层任务被取消时 CancelledError 原样传播。
    """
    if cancel_event is None:
        return await awaitable

    call = asyncio.ensure_future(awaitable)
    if cancel_event.is_set():
        call.cancel()
        await asyncio.gather(call, return_exceptions=True)
        raise GenerationCancelledError(provider)

    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        call.cancel()
        waiter.cancel()
        raise
    finally:
        if not waiter.done():
            waiter.cancel()

    if cancel_event.is_set():
        if not call.done():
            call.cancel()
        await asyncio.gather(call, return_exceptions=True)
        raise GenerationCancelledError(provider)
    return call.result()


async def sleep_cancellable(
    seconds: float, cancel_event: Optional[asyncio.Event], provider: Optional[str] = None
) -> None:
    if seconds <= 0:
        if cancel_event is not None and cancel_event.is_set():
            raise GenerationCancelledError(provider)
        return
    await call_cancellable(asyncio.sleep(seconds), cancel_event, provider)


async def run_ladder(
    provider: ProviderConfig,
    adapter: ProviderAdapter,
    prompt: PromptPayload,
    *,
    guard: Optional[QuotaGuard] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> AttemptOutcome:
    """
    依次尝试供应商的候选模型

    Args:
        provider: 供应商配置快照
        adapter: 供应商适配器
        prompt: 请求内容
        guard: 节流器，默认使用进程级单例
        cancel_event: 取消事件

    Returns:
        第一个成功的结果；全部为配额耗尽时返回 QUOTA_EXCEEDED，
        否则返回携带最后一个非配额错误的 FATAL_ERROR。
        只有一个候选模型时，其结果原样返回。
    """
    guard = guard or get_quota_guard()
    candidates = list(dict.fromkeys(m for m in provider.model_candidates if m))
    if not candidates:
        return AttemptOutcome.fatal(f"供应商 {provider.name} 没有可用的候选模型")

    last_quota: Optional[AttemptOutcome] = None
    last_other: Optional[AttemptOutcome] = None
    outcome: Optional[AttemptOutcome] = None

    for index, model in enumerate(candidates, start=1):
        wait_s = guard.acquire(provider.name, provider.min_call_interval_ms)
        if wait_s > 0:
            logger.info(
                "quota_guard_wait",
                provider=provider.name,
                wait_s=round(wait_s, 3),
            )
        await sleep_cancellable(wait_s, cancel_event, provider.name)

        logger.info(
            "provider_attempt",
            provider=provider.name,
            model=model,
            attempt=index,
            candidates=len(candidates),
        )
        try:
            outcome = await call_cancellable(
                adapter.generate(prompt, model), cancel_event, provider.name
            )
        finally:
            guard.release(provider.name)

        if outcome.ok:
            return outcome

        logger.warning(
            "provider_failed",
            provider=provider.name,
            model=model,
            kind=outcome.kind.value,
            error=outcome.message[:200],
        )
        if outcome.kind is OutcomeKind.QUOTA_EXCEEDED:
            last_quota = outcome
        else:
            last_other = outcome

    if len(candidates) == 1 and outcome is not None:
        return outcome

    logger.warning(
        "ladder_exhausted",
        provider=provider.name,
        candidates=len(candidates),
        all_quota=last_other is None,
    )
    if last_other is not None:
        failed_model = last_other.model or provider.name
        return AttemptOutcome.fatal(
            f"{failed_model}: {last_other.message}", model=last_other.model
        )
    return AttemptOutcome.quota_exceeded(
        f"所有模型配额均已耗尽: {last_quota.message if last_quota else ''}",
        model=last_quota.model if last_quota else None,
    )
