"""
Intelligence Module
智能层 - LLM 抽象 + 充分性判断 + 图片预分析
"""
from .llm import BaseLLM, OpenAILLM, get_llm
from .quality_gates import FastSufficiencyGate, quick_judge
from .judge_parser import parse_judge_response, extract_json_object, KEYWORD_FALLBACK_REASON
from .agents import SemanticSufficiencyJudge, build_context_summary, extract_products
from .tools import ImageAnalyzer, parse_vlm_response

__all__ = [
    # LLM
    "BaseLLM",
    "OpenAILLM",
    "get_llm",
    # Gates
    "FastSufficiencyGate",
    "quick_judge",
    "SemanticSufficiencyJudge",
    "build_context_summary",
    "extract_products",
    # Parsing
    "parse_judge_response",
    "extract_json_object",
    "KEYWORD_FALLBACK_REASON",
    # VLM
    "ImageAnalyzer",
    "parse_vlm_response",
]
