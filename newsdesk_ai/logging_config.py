"""
结构化日志配置模块。

structlog 事件经标准 logging 输出，处理器只挂在 ``newsdesk_ai`` 包 logger 上，
不改动宿主应用的 root logger。每次生成调用绑定一个 generation_id，
同一调用链上的日志都会带上它。
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar, Token
from typing import Any, Optional

import structlog

from .config import settings

PACKAGE_LOGGER = "newsdesk_ai"

# 第三方客户端日志只保留 WARNING 以上
_QUIET_LIBRARIES = ("httpx", "httpcore", "openai", "urllib3")

_generation_id_ctx: ContextVar[str] = ContextVar("generation_id", default="")


def bind_generation_id(gid: str) -> Token:
    """绑定当前任务的 generation_id，返回可用于恢复的 token。"""
    return _generation_id_ctx.set(gid)


def current_generation_id() -> str:
    return _generation_id_ctx.get()


def _add_generation_id(
    _logger: Any, _method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    gid = _generation_id_ctx.get()
    if gid:
        event_dict.setdefault("generation_id", gid)
    return event_dict


def _wants_json(log_format: str) -> bool:
    if log_format == "auto":
        return not sys.stderr.isatty()
    return log_format == "json"


def _renderer(as_json: bool) -> Any:
    if as_json:
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


_configured = False


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    配置 structlog 与包级 logging handler（重复调用无效）

    Args:
        level: 日志级别，默认读取 settings.log_level
        log_format: "auto" | "json" | "console"，默认读取 settings.log_format
    """
    global _configured
    if _configured:
        return
    _configured = True

    level_name = (level or settings.log_level or "INFO").upper()
    as_json = _wants_json(log_format or settings.log_format)

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _add_generation_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=False),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(as_json),
            ],
        )
    )

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(getattr(logging, level_name, logging.INFO))
    package_logger.propagate = False

    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """获取 structlog 日志实例（首次调用时完成配置）。"""
    if not _configured:
        setup_logging()
    return structlog.get_logger(name or PACKAGE_LOGGER)  # type: ignore[return-value]
