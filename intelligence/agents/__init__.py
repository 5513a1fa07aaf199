"""
Agents Module
LLM 判断 Agent
"""
from .sufficiency_judge import (
    SemanticSufficiencyJudge,
    build_context_summary,
    extract_products,
    PRODUCT_KEYWORDS,
    JUDGE_FAILED_REASON,
)

__all__ = [
    "SemanticSufficiencyJudge",
    "build_context_summary",
    "extract_products",
    "PRODUCT_KEYWORDS",
    "JUDGE_FAILED_REASON",
]
