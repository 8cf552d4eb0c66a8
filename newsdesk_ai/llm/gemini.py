"""
Google Gemini 适配器

通过 httpx 调用 generateContent REST 接口。
"""

from typing import Any, Optional

import httpx

from ..config import settings
from ..logging_config import get_logger
from ..pipeline.models import AttemptOutcome, PromptPayload
from .classification import classify_http_failure, empty_response, network_failure

logger = get_logger(__name__)


class GeminiAdapter:
    """Google Gemini 供应商适配器"""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        name: str = "google",
    ):
        """
        初始化适配器

        Args:
            api_key: Google AI Studio API Key
            base_url: API Base URL，默认从配置读取
            timeout_seconds: 单次调用超时，默认从配置读取
            transport: 自定义 httpx transport，测试时注入 MockTransport
            name: 供应商名称
        """
        self.name = name
        self.api_key = api_key
        self.base_url = (base_url or settings.google_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.provider_timeout_seconds
        self._transport = transport

    def _build_body(self, prompt: PromptPayload) -> dict[str, Any]:
        body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt.user}]}],
            "generationConfig": {
                "temperature": prompt.temperature,
                "maxOutputTokens": prompt.max_tokens,
            },
        }
        if prompt.system:
            body["systemInstruction"] = {"parts": [{"text": prompt.system}]}
        return body

    async def generate(self, prompt: PromptPayload, model: str) -> AttemptOutcome:
        """
        发起一次 generateContent 调用

        Args:
            prompt: 系统提示词、用户提示词与生成参数
            model: Gemini 模型名称

        Returns:
            AttemptOutcome，失败时不抛出异常
        """
        url = f"{self.base_url}/models/{model}:generateContent"
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(url, json=self._build_body(prompt), headers=headers)
        except httpx.TimeoutException as e:
            return network_failure(e, model=model)
        except httpx.TransportError as e:
            return network_failure(e, model=model)
        except httpx.DecodingError as e:
            return empty_response(f"{type(e).__name__}: {e}", model=model)
        except httpx.HTTPError as e:
            return network_failure(e, model=model)

        if not response.is_success:
            return classify_http_failure(response.status_code, response.text, model=model)

        try:
            data = response.json()
        except ValueError:
            return empty_response("响应不是合法 JSON", model=model)

        text = _extract_text(data)
        if not text:
            return empty_response("candidates 中没有文本", model=model)

        logger.debug("provider_response", provider=self.name, model=model, chars=len(text))
        return AttemptOutcome.success(text, model=model)


def _extract_text(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts") or []
    texts = [p.get("text", "") for p in parts if isinstance(p, dict)]
    return "".join(t for t in texts if isinstance(t, str)).strip()
