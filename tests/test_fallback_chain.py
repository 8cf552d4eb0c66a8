from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import pytest

from newsdesk_ai.errors import (
    AllProvidersFailedError,
    AppError,
    ErrorCode,
    GenerationCancelledError,
    InvalidGenerationRequestError,
    NoProviderConfiguredError,
)
from newsdesk_ai.llm.registry import ProviderRegistry
from newsdesk_ai.pipeline.fallback_order import FallbackOrderStore
from newsdesk_ai.pipeline.models import (
    AttemptOutcome,
    GenerationRequest,
    JournalisticStyle,
    PromptPayload,
    ProviderConfig,
)
from newsdesk_ai.pipeline.orchestrator import GenerationOrchestrator
from newsdesk_ai.pipeline.quota_guard import QuotaGuard
from newsdesk_ai.storage import ArticleStatus, SQLiteArticleStore

RAW_ARTICLE = "**Precios suben 5%**\n*Resumen breve del aumento*\nCuerpo del artículo..."


class _StubAdapter:
    def __init__(self, name: str, outcome: AttemptOutcome) -> None:
        self.name = name
        self.outcome = outcome
        self.calls: list[str] = []
        self.prompts: list[PromptPayload] = []

    async def generate(self, prompt: PromptPayload, model: str) -> AttemptOutcome:
        self.calls.append(model)
        self.prompts.append(prompt)
        return self.outcome


class _GatedAdapter:
    """调用开始后等待 gate，之后返回成功。"""

    def __init__(self, name: str) -> None:
        self.name = name
        self.started = asyncio.Event()
        self.gate = asyncio.Event()
        self.calls: list[str] = []

    async def generate(self, prompt: PromptPayload, model: str) -> AttemptOutcome:
        self.calls.append(model)
        self.started.set()
        await self.gate.wait()
        return AttemptOutcome.success(RAW_ARTICLE, model=model)


class _DummyResearch:
    def __init__(self, result: str = "", error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.topics: list[str] = []

    def research(self, topic: str) -> str:
        self.topics.append(topic)
        if self.error is not None:
            raise self.error
        return self.result


def _config(name: str, configured: bool = True) -> ProviderConfig:
    return ProviderConfig(
        name=name,
        model_candidates=(f"{name}-model",),
        min_call_interval_ms=0,
        is_configured=configured,
    )


def _make_orchestrator(
    tmp_path: Path,
    adapters: dict,
    configs: Optional[dict] = None,
    research=None,
    guard: Optional[QuotaGuard] = None,
) -> GenerationOrchestrator:
    configs = configs or {name: _config(name) for name in adapters}
    return GenerationOrchestrator(
        registry=ProviderRegistry(adapters=adapters, configs=configs),
        quota_guard=guard or QuotaGuard(),
        research_client=research,
        order_store=FallbackOrderStore(tmp_path / "order.json"),
    )


def _request(**overrides) -> GenerationRequest:
    values = {
        "topic": "inflación",
        "style": JournalisticStyle.NOTICIA_OBJETIVA,
        "category": "Economía",
        "research_context": "",
    }
    values.update(overrides)
    return GenerationRequest(**values)


def test_end_to_end_extracts_fields_from_stub_chain(tmp_path: Path) -> None:
    adapter = _StubAdapter("a", AttemptOutcome.success(RAW_ARTICLE, model="a-model"))
    orchestrator = _make_orchestrator(tmp_path, {"a": adapter})

    article = asyncio.run(orchestrator.generate_with_fallback(_request(), order=["a"]))

    assert article.title == "Precios suben 5%"
    assert article.description == "Resumen breve del aumento"
    assert article.body_html == "<p>Cuerpo del artículo...</p>"
    assert article.provider_used == "a"
    assert article.model_used == "a-model"
    assert article.style == "noticia-objetiva"
    assert article.category == "Economía"
    assert "TEMA DEL ARTÍCULO: inflación" in article.prompt_used


def test_quota_providers_are_tried_once_then_next_succeeds(tmp_path: Path) -> None:
    a = _StubAdapter("a", AttemptOutcome.quota_exceeded("HTTP 429", model="a-model"))
    b = _StubAdapter("b", AttemptOutcome.quota_exceeded("HTTP 429", model="b-model"))
    c = _StubAdapter("c", AttemptOutcome.success(RAW_ARTICLE, model="c-model"))
    orchestrator = _make_orchestrator(tmp_path, {"a": a, "b": b, "c": c})

    article = asyncio.run(orchestrator.generate_with_fallback(_request(), order=["a", "b", "c"]))

    assert article.provider_used == "c"
    assert a.calls == ["a-model"]
    assert b.calls == ["b-model"]
    assert c.calls == ["c-model"]


def test_unconfigured_and_unknown_providers_are_skipped(tmp_path: Path) -> None:
    a = _StubAdapter("a", AttemptOutcome.success(RAW_ARTICLE))
    b = _StubAdapter("b", AttemptOutcome.success(RAW_ARTICLE))
    orchestrator = _make_orchestrator(
        tmp_path,
        {"a": a, "b": b},
        configs={"a": _config("a", configured=False), "b": _config("b")},
    )

    article = asyncio.run(
        orchestrator.generate_with_fallback(_request(), order=["ghost", "a", "b"])
    )

    assert article.provider_used == "b"
    assert a.calls == []


def test_no_configured_provider_fails_before_any_network_call(tmp_path: Path) -> None:
    a = _StubAdapter("a", AttemptOutcome.success(RAW_ARTICLE))
    research = _DummyResearch("contexto")
    orchestrator = _make_orchestrator(
        tmp_path,
        {"a": a},
        configs={"a": _config("a", configured=False)},
        research=research,
    )

    with pytest.raises(NoProviderConfiguredError) as exc_info:
        asyncio.run(
            orchestrator.generate_with_fallback(_request(research_context=None), order=["a"])
        )

    assert exc_info.value.code == ErrorCode.PROVIDER_NOT_CONFIGURED
    assert a.calls == []
    assert research.topics == []


def test_default_registry_without_keys_reports_no_provider(tmp_path: Path) -> None:
    orchestrator = GenerationOrchestrator(
        quota_guard=QuotaGuard(),
        order_store=FallbackOrderStore(tmp_path / "order.json"),
    )

    with pytest.raises(NoProviderConfiguredError):
        asyncio.run(orchestrator.generate_with_fallback(_request()))


def test_all_providers_failed_enumerates_each_failure(tmp_path: Path) -> None:
    a = _StubAdapter("a", AttemptOutcome.quota_exceeded("HTTP 429", model="a-model"))
    b = _StubAdapter("b", AttemptOutcome.fatal("HTTP 401: invalid api key", model="b-model"))
    orchestrator = _make_orchestrator(tmp_path, {"a": a, "b": b})

    with pytest.raises(AllProvidersFailedError) as exc_info:
        asyncio.run(orchestrator.generate_with_fallback(_request(), order=["a", "b"]))

    err = exc_info.value
    assert [(f.provider, f.kind) for f in err.failures] == [
        ("a", "quota_exceeded"),
        ("b", "fatal_error"),
    ]
    assert err.all_quota_exhausted is False
    assert err.code == ErrorCode.LLM_ALL_PROVIDERS_FAILED
    assert "invalid api key" in err.message
    assert err.to_dict()["failures"][1]["provider"] == "b"


def test_all_quota_exhausted_is_retriable_429(tmp_path: Path) -> None:
    a = _StubAdapter("a", AttemptOutcome.quota_exceeded("HTTP 429", model="a-model"))
    b = _StubAdapter("b", AttemptOutcome.quota_exceeded("HTTP 429", model="b-model"))
    orchestrator = _make_orchestrator(tmp_path, {"a": a, "b": b})

    with pytest.raises(AllProvidersFailedError) as exc_info:
        asyncio.run(orchestrator.generate_with_fallback(_request(), order=["a", "b"]))

    assert exc_info.value.all_quota_exhausted is True
    assert exc_info.value.code == ErrorCode.LLM_QUOTA_EXHAUSTED
    assert exc_info.value.status_code == 429
    assert exc_info.value.retriable is True


def test_empty_request_is_rejected_before_network(tmp_path: Path) -> None:
    a = _StubAdapter("a", AttemptOutcome.success(RAW_ARTICLE))
    orchestrator = _make_orchestrator(tmp_path, {"a": a})

    with pytest.raises(InvalidGenerationRequestError) as exc_info:
        asyncio.run(
            orchestrator.generate_with_fallback(
                GenerationRequest(topic="  ", custom_prompt="", existing_body=None), order=["a"]
            )
        )

    assert exc_info.value.status_code == 422
    assert a.calls == []


def test_cancel_event_during_call_never_returns_article(tmp_path: Path) -> None:
    async def scenario() -> None:
        a = _GatedAdapter("a")
        b = _StubAdapter("b", AttemptOutcome.success(RAW_ARTICLE))
        guard = QuotaGuard()
        orchestrator = _make_orchestrator(tmp_path, {"a": a, "b": b}, guard=guard)
        cancel_event = asyncio.Event()

        task = asyncio.create_task(
            orchestrator.generate_with_fallback(_request(), order=["a", "b"], cancel_event=cancel_event)
        )
        await a.started.wait()
        cancel_event.set()
        a.gate.set()

        with pytest.raises(GenerationCancelledError):
            await task
        assert b.calls == []
        assert guard.last_call("a") is not None

    asyncio.run(scenario())


def test_task_cancellation_propagates_to_in_flight_call(tmp_path: Path) -> None:
    async def scenario() -> None:
        a = _GatedAdapter("a")
        guard = QuotaGuard()
        orchestrator = _make_orchestrator(tmp_path, {"a": a}, guard=guard)

        task = asyncio.create_task(orchestrator.generate_with_fallback(_request(), order=["a"]))
        await a.started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert guard.last_call("a") is not None

    asyncio.run(scenario())


def test_research_failure_is_not_fatal(tmp_path: Path) -> None:
    a = _StubAdapter("a", AttemptOutcome.success(RAW_ARTICLE))
    research = _DummyResearch(error=RuntimeError("tavily down"))
    orchestrator = _make_orchestrator(tmp_path, {"a": a}, research=research)

    article = asyncio.run(
        orchestrator.generate_with_fallback(_request(research_context=None), order=["a"])
    )

    assert research.topics == ["inflación"]
    assert article.title == "Precios suben 5%"
    assert "NOTA: No hay información específica verificada" in a.prompts[0].user


def test_research_result_is_added_to_prompt(tmp_path: Path) -> None:
    a = _StubAdapter("a", AttemptOutcome.success(RAW_ARTICLE))
    research = _DummyResearch("El INDEC informó una suba del 5%.")
    orchestrator = _make_orchestrator(tmp_path, {"a": a}, research=research)

    asyncio.run(orchestrator.generate_with_fallback(_request(research_context=None), order=["a"]))

    assert "El INDEC informó una suba del 5%." in a.prompts[0].user


def test_supplied_research_context_skips_research(tmp_path: Path) -> None:
    a = _StubAdapter("a", AttemptOutcome.success(RAW_ARTICLE))
    research = _DummyResearch("no se usa")
    orchestrator = _make_orchestrator(tmp_path, {"a": a}, research=research)

    asyncio.run(
        orchestrator.generate_with_fallback(_request(research_context="Datos del BCRA"), order=["a"])
    )

    assert research.topics == []
    assert "Datos del BCRA" in a.prompts[0].user


def test_persisted_fallback_order_is_read_on_each_call(tmp_path: Path) -> None:
    a = _StubAdapter("a", AttemptOutcome.success(RAW_ARTICLE))
    b = _StubAdapter("b", AttemptOutcome.success(RAW_ARTICLE))
    orchestrator = _make_orchestrator(tmp_path, {"a": a, "b": b})

    orchestrator.order_store.save(["b", "a"])
    first = asyncio.run(orchestrator.generate_with_fallback(_request()))
    orchestrator.order_store.save(["a", "b"])
    second = asyncio.run(orchestrator.generate_with_fallback(_request()))

    assert first.provider_used == "b"
    assert second.provider_used == "a"


def test_assistant_preamble_is_removed_before_extraction(tmp_path: Path) -> None:
    raw = "Claro, aquí tienes el artículo:\n\n" + RAW_ARTICLE + "\n\n¿Quieres que agregue más detalles?"
    a = _StubAdapter("a", AttemptOutcome.success(raw))
    orchestrator = _make_orchestrator(tmp_path, {"a": a})

    article = asyncio.run(orchestrator.generate_with_fallback(_request(), order=["a"]))

    assert article.title == "Precios suben 5%"
    assert "Quieres" not in article.body_html


def test_generate_title_and_description_clean_output(tmp_path: Path) -> None:
    title_adapter = _StubAdapter("a", AttemptOutcome.success('"La inflación de marzo fue del 5%"'))
    orchestrator = _make_orchestrator(tmp_path, {"a": title_adapter})

    title = asyncio.run(
        orchestrator.generate_title("<p>Los precios subieron.</p>", "Economía", order=["a"])
    )
    assert title == "La inflación de marzo fue del 5%"
    assert title_adapter.prompts[0].max_tokens == 100

    long_text = "«" + "x" * 400 + "»"
    desc_adapter = _StubAdapter("a", AttemptOutcome.success(long_text))
    orchestrator = _make_orchestrator(tmp_path, {"a": desc_adapter})

    description = asyncio.run(
        orchestrator.generate_description("<p>Los precios subieron.</p>", "Economía", order=["a"])
    )
    assert len(description) == 300
    assert description.endswith("...")
    assert not description.startswith("«")


def test_generate_title_requires_body(tmp_path: Path) -> None:
    orchestrator = _make_orchestrator(tmp_path, {"a": _StubAdapter("a", AttemptOutcome.success("x"))})

    with pytest.raises(InvalidGenerationRequestError):
        asyncio.run(orchestrator.generate_title("<p> </p>", "Economía", order=["a"]))


def test_generate_and_store_persists_draft(tmp_path: Path) -> None:
    a = _StubAdapter("a", AttemptOutcome.success(RAW_ARTICLE, model="a-model"))
    orchestrator = _make_orchestrator(tmp_path, {"a": a})
    store = SQLiteArticleStore(tmp_path / "articles.db")

    record_id, article = asyncio.run(
        orchestrator.generate_and_store(_request(), store, ArticleStatus.DRAFT, order=["a"])
    )

    saved = store.get(record_id)
    assert saved is not None
    assert saved["status"] == "draft"
    assert saved["title"] == article.title
    assert saved["provider_used"] == "a"


def test_all_errors_share_app_error_base() -> None:
    for cls in (
        AllProvidersFailedError,
        GenerationCancelledError,
        InvalidGenerationRequestError,
        NoProviderConfiguredError,
    ):
        assert issubclass(cls, AppError)
