"""
Utils Module
通用工具函数
"""
from .logger import setup_logger
from .exceptions import (
    EvidenceAgentError,
    ConfigurationError,
    ScraperError,
    NoteFetchError,
    CompressionError,
    StorageError,
    LLMError,
)

__all__ = [
    "setup_logger",
    "EvidenceAgentError",
    "ConfigurationError",
    "ScraperError",
    "NoteFetchError",
    "CompressionError",
    "StorageError",
    "LLMError",
]
