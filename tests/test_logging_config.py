from __future__ import annotations

import asyncio
import logging

from newsdesk_ai.logging_config import (
    PACKAGE_LOGGER,
    _add_generation_id,
    bind_generation_id,
    current_generation_id,
    get_logger,
)


def test_generation_id_is_injected_into_events() -> None:
    async def scenario() -> dict:
        bind_generation_id("abc123")
        return _add_generation_id(None, "info", {"event": "provider_attempt"})

    event = asyncio.run(scenario())

    assert event["generation_id"] == "abc123"


def test_generation_id_does_not_leak_between_tasks() -> None:
    async def bound(gid: str) -> str:
        bind_generation_id(gid)
        await asyncio.sleep(0)
        return current_generation_id()

    async def scenario() -> list[str]:
        return await asyncio.gather(bound("uno"), bound("dos"))

    assert asyncio.run(scenario()) == ["uno", "dos"]


def test_event_without_generation_keeps_fields() -> None:
    event = _add_generation_id(None, "info", {"event": "x", "generation_id": "fijo"})

    assert event["generation_id"] == "fijo"


def test_handler_is_attached_to_package_logger_only() -> None:
    get_logger(__name__)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    assert len(package_logger.handlers) == 1
    assert package_logger.propagate is False
