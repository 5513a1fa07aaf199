"""
OpenAI-compatible LLM
OpenAI 以及兼容 OpenAI 协议的端点 (DeepSeek / 智谱 / 智增增)
"""
from typing import List, Optional
import logging
import inspect

from utils.exceptions import LLMError

from .base import BaseLLM, Message, LLMResponse


logger = logging.getLogger(__name__)


class OpenAILLM(BaseLLM):
    """
    OpenAI 兼容 LLM 实现

    provider_name 只用于日志和错误信息, 实际端点由 base_url 决定。
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        timeout: float = 60.0,
        provider_name: str = "openai",
        **kwargs,
    ):
        super().__init__(model, temperature, max_tokens, timeout, **kwargs)
        self.api_key = api_key
        self.base_url = base_url
        self._provider_name = provider_name
        self._async_client = None

    @property
    def provider(self) -> str:
        return self._provider_name

    def _get_async_client(self):
        """获取异步客户端"""
        if self._async_client is None:
            from openai import AsyncOpenAI
            self._async_client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._async_client

    async def acomplete(
        self,
        messages: List[Message],
        **kwargs,
    ) -> LLMResponse:
        """异步生成响应"""
        client = self._get_async_client()

        request_params = {
            "model": kwargs.get("model", self.model),
            "messages": [m.to_dict() for m in messages],
            "temperature": kwargs.get("temperature", self.temperature),
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
        }

        response = await client.chat.completions.create(**request_params)

        if not response.choices:
            raise LLMError("Empty choices in completion response", provider=self.provider)
        choice = response.choices[0]
        content = choice.message.content or ""
        if not content.strip():
            raise LLMError("Empty completion content", provider=self.provider, model=response.model)

        usage = {}
        if response.usage is not None:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
        logger.debug(f"[{self.provider}] completion ok, tokens={usage.get('total_tokens', 'N/A')}")

        return LLMResponse(
            content=content,
            model=response.model,
            usage=usage,
            finish_reason=choice.finish_reason,
            raw_response=response,
        )

    async def aclose(self) -> None:
        client = self._async_client
        if client is None:
            return
        try:
            close_fn = getattr(client, "close", None)
            if callable(close_fn):
                maybe_awaitable = close_fn()
                if inspect.isawaitable(maybe_awaitable):
                    await maybe_awaitable
        except Exception as exc:
            logger.debug(f"[{self.provider}] client close failed: {exc}")
        self._async_client = None
