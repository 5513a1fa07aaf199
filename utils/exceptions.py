"""
Custom Exceptions
自定义异常类
"""


class EvidenceAgentError(Exception):
    """素材收集助手基础异常类"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(EvidenceAgentError):
    """配置错误 (调用方传参错误也归入此类, 会直接抛给调用方)"""
    pass


class ScraperError(EvidenceAgentError):
    """抓取器错误"""

    def __init__(self, message: str, source: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.source = source


class NoteFetchError(ScraperError):
    """单条笔记获取失败 (只影响该条笔记, 不会中断批量任务)"""

    def __init__(self, message: str, url: str = None, **kwargs):
        super().__init__(message, source="rednote", **kwargs)
        self.url = url

    def __str__(self):
        return self.message


class CompressionError(EvidenceAgentError):
    """图片压缩错误"""
    pass


class StorageError(EvidenceAgentError):
    """存储错误"""
    pass


class LLMError(EvidenceAgentError):
    """LLM 调用错误"""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider
