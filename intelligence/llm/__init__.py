"""
LLM Module
OpenAI 兼容 LLM 抽象层
"""
from .base import BaseLLM, LLMResponse, Message, MessageRole
from .openai_llm import OpenAILLM
from .factory import get_llm, DEFAULT_MODELS, DEFAULT_VISION_MODELS, BASE_URLS

__all__ = [
    "BaseLLM",
    "LLMResponse",
    "Message",
    "MessageRole",
    "OpenAILLM",
    "get_llm",
    "DEFAULT_MODELS",
    "DEFAULT_VISION_MODELS",
    "BASE_URLS",
]
