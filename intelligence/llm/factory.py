"""
LLM Factory
工厂函数 - 根据配置自动创建 LLM 实例
"""
from typing import Optional
import logging

from utils.exceptions import ConfigurationError

from .base import BaseLLM
from .openai_llm import OpenAILLM


logger = logging.getLogger(__name__)


# 默认模型配置
DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "deepseek": "deepseek-chat",
    "zhipu": "glm-4-flash",
    "zhizengzeng": "gpt-4o-mini",
}

# 图片分析默认模型
DEFAULT_VISION_MODELS = {
    "openai": "gpt-4o-mini",
    "zhipu": "glm-4v-flash",
    "zhizengzeng": "qwen3-vl-235b-a22b-thinking",
}

# OpenAI 兼容端点
BASE_URLS = {
    "openai": None,
    "deepseek": "https://api.deepseek.com",
    "zhipu": "https://open.bigmodel.cn/api/paas/v4",
    "zhizengzeng": "https://api.zhizengzeng.com/v1",
}


def get_llm(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    *,
    vision: bool = False,
    **kwargs,
) -> BaseLLM:
    """
    获取 LLM 实例

    自动从 .env 读取配置，也可手动指定

    Args:
        provider: LLM 供应商 (openai, deepseek, zhipu, zhizengzeng)
        model: 模型名称 (不传则使用默认)
        vision: 是否用于图片分析 (选择 VLM 默认模型)
        **kwargs: 额外参数 (temperature, max_tokens, base_url 等)

    Returns:
        BaseLLM 实例

    Example:
        llm = get_llm()
        llm = get_llm(provider="deepseek")
        vlm = get_llm(provider="zhizengzeng", vision=True)
    """
    from config import get_llm_settings

    settings = get_llm_settings()

    provider = (provider or settings.provider or "").strip().lower()
    if provider not in BASE_URLS:
        raise ConfigurationError(f"Unsupported LLM provider: {provider}")

    if vision:
        model = model or settings.vlm_model_name or DEFAULT_VISION_MODELS.get(provider)
        if not model:
            raise ConfigurationError(f"Provider {provider} has no default vision model")
    else:
        model = model or settings.model_name or DEFAULT_MODELS[provider]

    api_keys = {
        "openai": settings.openai_api_key,
        "deepseek": settings.deepseek_api_key,
        "zhipu": settings.zhipu_api_key,
        "zhizengzeng": settings.zhizengzeng_api_key,
    }
    api_key = kwargs.pop("api_key", None) or api_keys.get(provider)
    if not api_key:
        raise ConfigurationError(
            f"Missing API key for provider {provider}",
            {"env": f"LLM_{provider.upper()}_API_KEY"},
        )

    base_url = kwargs.pop("base_url", None) or settings.base_url or BASE_URLS[provider]

    default_params = {
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
        "timeout": settings.timeout,
    }
    for key, value in default_params.items():
        if key not in kwargs:
            kwargs[key] = value

    logger.debug(f"Creating LLM provider={provider} model={model}")
    return OpenAILLM(
        model=model,
        api_key=api_key,
        base_url=base_url,
        provider_name=provider,
        **kwargs,
    )
