"""
Agent Tools
图片预分析工具
"""
from .vlm_analyzer import (
    ImageAnalyzer,
    DEFAULT_VLM_PROMPT,
    extract_objects,
    extract_text_content,
    parse_vlm_response,
)

__all__ = [
    "ImageAnalyzer",
    "DEFAULT_VLM_PROMPT",
    "extract_objects",
    "extract_text_content",
    "parse_vlm_response",
]
