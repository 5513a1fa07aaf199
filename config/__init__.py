"""
Configuration Management Module
统一配置管理
"""
from .settings import (
    Settings,
    BrowserSettings,
    RetrievalSettings,
    PacingSettings,
    CompressionSettings,
    StorageSettings,
    LLMSettings,
    get_settings,
    get_browser_settings,
    get_retrieval_settings,
    get_compression_settings,
    get_storage_settings,
    get_llm_settings,
)

__all__ = [
    "Settings",
    "BrowserSettings",
    "RetrievalSettings",
    "PacingSettings",
    "CompressionSettings",
    "StorageSettings",
    "LLMSettings",
    "get_settings",
    "get_browser_settings",
    "get_retrieval_settings",
    "get_compression_settings",
    "get_storage_settings",
    "get_llm_settings",
]
