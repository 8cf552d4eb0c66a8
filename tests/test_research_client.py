from __future__ import annotations

import pytest

from newsdesk_ai.config import settings
from newsdesk_ai.search import TavilyResearchClient, get_research_client


class _FakeTavily:
    def __init__(self, response: dict | None = None, error: Exception | None = None) -> None:
        self.response = response or {}
        self.error = error
        self.calls: list[dict] = []

    def search(self, **kwargs) -> dict:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


RESPONSE = {
    "answer": "La inflación de septiembre fue 5%.",
    "results": [
        {"title": "INDEC", "url": "https://indec.gob.ar", "content": "Dato oficial " * 100},
        {"title": "Diario", "url": "https://diario.example", "content": None},
    ],
}


def test_research_formats_answer_and_sources() -> None:
    fake = _FakeTavily(RESPONSE)
    client = TavilyResearchClient(client=fake)

    context = client.research("  inflación  ")

    assert context.startswith("# Investigación web: inflación")
    assert "**Resumen**: La inflación de septiembre fue 5%." in context
    assert "1. [INDEC](https://indec.gob.ar)" in context
    assert "2. [Diario](https://diario.example)" in context
    assert fake.calls[0]["query"] == "inflación"
    assert fake.calls[0]["max_results"] == settings.research_max_results


def test_search_failure_returns_error_result() -> None:
    client = TavilyResearchClient(client=_FakeTavily(error=RuntimeError("boom")))

    result = client.search("inflación")

    assert result["ok"] is False
    assert result["error"] == "RuntimeError: boom"
    assert client.research("inflación") == ""


def test_empty_results_give_empty_context() -> None:
    client = TavilyResearchClient(client=_FakeTavily({"answer": "", "results": []}))

    assert client.research("inflación") == ""
    assert client.research("   ") == ""


def test_missing_key_without_client_raises() -> None:
    with pytest.raises(ValueError):
        TavilyResearchClient()


def test_get_research_client_respects_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    assert get_research_client() is None

    monkeypatch.setattr(settings, "research_enabled", True)
    assert get_research_client() is None

    monkeypatch.setattr(settings, "tavily_api_key", "tvly-test")
    assert isinstance(get_research_client(), TavilyResearchClient)
