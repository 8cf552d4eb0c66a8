"""
OpenAI 兼容适配器

封装 OpenAI SDK（AsyncOpenAI），支持自定义 base_url，
用于 OpenAI、OpenRouter、Puter、DeepSeek 等兼容 chat/completions 格式的供应商。
"""

from typing import Optional

import httpx
import openai
from openai import AsyncOpenAI

from ..config import settings
from ..logging_config import get_logger
from ..pipeline.models import AttemptOutcome, PromptPayload
from .classification import classify_http_failure, empty_response, network_failure

logger = get_logger(__name__)


class OpenAICompatibleAdapter:
    """OpenAI 兼容供应商适配器"""

    def __init__(
        self,
        name: str,
        api_key: str,
        base_url: str,
        timeout_seconds: Optional[float] = None,
        default_headers: Optional[dict[str, str]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        初始化适配器

        Args:
            name: 供应商名称（openai / openrouter / puter / deepseek）
            api_key: API Key
            base_url: API Base URL
            timeout_seconds: 单次调用超时，默认从配置读取
            default_headers: 额外请求头（如 OpenRouter 的 X-Title）
            http_client: 自定义 httpx 客户端，测试时注入 MockTransport
        """
        self.name = name
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds or settings.provider_timeout_seconds

        # 重试由模型阶梯与回退链负责，SDK 层不重试
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=self.timeout_seconds,
            max_retries=0,
            default_headers=default_headers,
            http_client=http_client,
        )

    async def generate(self, prompt: PromptPayload, model: str) -> AttemptOutcome:
        """
        发起一次 chat/completions 调用

        Args:
            prompt: 系统提示词、用户提示词与生成参数
            model: 模型名称

        Returns:
            AttemptOutcome，失败时不抛出异常
        """
        messages = []
        if prompt.system:
            messages.append({"role": "system", "content": prompt.system})
        messages.append({"role": "user", "content": prompt.user})

        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=prompt.temperature,
                max_tokens=prompt.max_tokens,
            )
        except openai.APITimeoutError as e:
            return network_failure(e, model=model)
        except openai.APIConnectionError as e:
            return network_failure(e, model=model)
        except openai.APIStatusError as e:
            return classify_http_failure(e.status_code, _error_body(e), model=model)
        except openai.APIError as e:
            return AttemptOutcome.fatal(f"{type(e).__name__}: {e}", model=model)

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            return empty_response(type(e).__name__, model=model)

        if not content or not content.strip():
            return empty_response("choices[0].message.content 为空", model=model)

        logger.debug(
            "provider_response",
            provider=self.name,
            model=model,
            chars=len(content),
        )
        return AttemptOutcome.success(content, model=model)


def _error_body(exc: openai.APIStatusError) -> str:
    try:
        text = exc.response.text
    except (httpx.ResponseNotRead, AttributeError):
        text = ""
    return text or str(exc.body or exc.message or "")
