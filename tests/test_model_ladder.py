from __future__ import annotations

import asyncio

from newsdesk_ai.pipeline.ladder import run_ladder
from newsdesk_ai.pipeline.models import AttemptOutcome, OutcomeKind, PromptPayload, ProviderConfig
from newsdesk_ai.pipeline.quota_guard import QuotaGuard

PROMPT = PromptPayload(system="", user="Escribe una nota breve.")


class _ScriptedAdapter:
    """按模型名返回预设结果的适配器。"""

    def __init__(self, name: str, outcomes: dict[str, AttemptOutcome]) -> None:
        self.name = name
        self.outcomes = outcomes
        self.calls: list[str] = []

    async def generate(self, prompt: PromptPayload, model: str) -> AttemptOutcome:
        self.calls.append(model)
        return self.outcomes[model]


def _provider(*models: str, interval_ms: int = 0) -> ProviderConfig:
    return ProviderConfig(
        name="google",
        model_candidates=tuple(models),
        min_call_interval_ms=interval_ms,
        is_configured=True,
    )


def test_quota_moves_to_next_model_without_retry() -> None:
    adapter = _ScriptedAdapter(
        "google",
        {
            "gemini-2.5-flash": AttemptOutcome.quota_exceeded("HTTP 429", model="gemini-2.5-flash"),
            "gemini-1.5-flash-latest": AttemptOutcome.success("texto", model="gemini-1.5-flash-latest"),
        },
    )
    provider = _provider("gemini-2.5-flash", "gemini-2.5-flash", "gemini-1.5-flash-latest", "gemini-pro")

    outcome = asyncio.run(run_ladder(provider, adapter, PROMPT, guard=QuotaGuard()))

    assert outcome.ok
    assert outcome.text == "texto"
    assert adapter.calls == ["gemini-2.5-flash", "gemini-1.5-flash-latest"]


def test_all_models_quota_exhausted_reports_quota() -> None:
    adapter = _ScriptedAdapter(
        "google",
        {
            "a": AttemptOutcome.quota_exceeded("HTTP 429", model="a"),
            "b": AttemptOutcome.quota_exceeded("HTTP 429: RESOURCE_EXHAUSTED", model="b"),
        },
    )

    outcome = asyncio.run(run_ladder(_provider("a", "b"), adapter, PROMPT, guard=QuotaGuard()))

    assert outcome.kind is OutcomeKind.QUOTA_EXCEEDED
    assert adapter.calls == ["a", "b"]


def test_mixed_failures_report_last_non_quota_message() -> None:
    adapter = _ScriptedAdapter(
        "google",
        {
            "a": AttemptOutcome.transient("HTTP 503: overloaded", model="a"),
            "b": AttemptOutcome.fatal("HTTP 404: model not found", model="b"),
            "c": AttemptOutcome.quota_exceeded("HTTP 429", model="c"),
        },
    )

    outcome = asyncio.run(run_ladder(_provider("a", "b", "c"), adapter, PROMPT, guard=QuotaGuard()))

    assert outcome.kind is OutcomeKind.FATAL_ERROR
    assert outcome.message == "b: HTTP 404: model not found"
    assert adapter.calls == ["a", "b", "c"]


def test_single_candidate_passes_outcome_through() -> None:
    transient = AttemptOutcome.transient("ReadTimeout: timed out", model="gpt-4o-mini")
    adapter = _ScriptedAdapter("puter", {"gpt-4o-mini": transient})

    outcome = asyncio.run(run_ladder(_provider("gpt-4o-mini"), adapter, PROMPT, guard=QuotaGuard()))

    assert outcome == transient


def test_no_candidates_is_fatal_without_calls() -> None:
    adapter = _ScriptedAdapter("google", {})

    outcome = asyncio.run(run_ladder(_provider(), adapter, PROMPT, guard=QuotaGuard()))

    assert outcome.kind is OutcomeKind.FATAL_ERROR
    assert adapter.calls == []


def test_release_is_stamped_even_on_failure() -> None:
    guard = QuotaGuard()
    adapter = _ScriptedAdapter("google", {"a": AttemptOutcome.fatal("HTTP 401", model="a")})

    asyncio.run(run_ladder(_provider("a"), adapter, PROMPT, guard=guard))

    assert guard.last_call("google") is not None


def test_ladder_waits_for_quota_guard_between_models() -> None:
    guard = QuotaGuard()
    adapter = _ScriptedAdapter(
        "google",
        {
            "a": AttemptOutcome.quota_exceeded("HTTP 429", model="a"),
            "b": AttemptOutcome.success("ok", model="b"),
        },
    )
    provider = _provider("a", "b", interval_ms=50)

    async def scenario() -> float:
        loop = asyncio.get_running_loop()
        start = loop.time()
        await run_ladder(provider, adapter, PROMPT, guard=guard)
        return loop.time() - start

    elapsed = asyncio.run(scenario())
    assert elapsed >= 0.04


def test_exhausted_ladder_without_model_names_uses_provider_prefix() -> None:
    adapter = _ScriptedAdapter(
        "google",
        {
            "a": AttemptOutcome.fatal("HTTP 400: bad request"),
            "b": AttemptOutcome.quota_exceeded("HTTP 429"),
        },
    )

    outcome = asyncio.run(run_ladder(_provider("a", "b"), adapter, PROMPT, guard=QuotaGuard()))

    assert outcome.kind is OutcomeKind.FATAL_ERROR
    assert outcome.message == "google: HTTP 400: bad request"
