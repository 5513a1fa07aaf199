"""
Judge Response Parser
两阶段解析 LLM 的充分性判断回复: 结构化 JSON 解析, 失败时退回关键词判断
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from models import SufficiencyVerdict, VerdictSource


logger = logging.getLogger(__name__)

KEYWORD_FALLBACK_REASON = "parsed via keyword fallback"

_TRUE_MARKERS = ('"isSufficient": true', '"isSufficient":true')
_FALSE_MARKERS = ('"isSufficient": false', '"isSufficient":false')
# 否定词先于肯定词检查, 避免 "insufficient" / "不足够" 被当成足够
_NEGATIVE_WORDS = ("insufficient", "not sufficient", "not enough", "不足", "不够")
_POSITIVE_WORDS = ("sufficient", "足够")


def _balanced_spans(text: str):
    """依次产出每个 '{' 起点对应的平衡花括号片段 (忽略字符串字面量中的括号)"""
    for start, ch in enumerate(text):
        if ch != "{":
            continue
        depth = 0
        in_string = False
        escaped = False
        for end in range(start, len(text)):
            c = text[end]
            if in_string:
                if escaped:
                    escaped = False
                elif c == "\\":
                    escaped = True
                elif c == '"':
                    in_string = False
                continue
            if c == '"':
                in_string = True
            elif c == "{":
                depth += 1
            elif c == "}":
                depth -= 1
                if depth == 0:
                    yield text[start : end + 1]
                    break


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """从自由文本中提取第一个可解析的 JSON 对象"""
    text = str(text or "").strip()
    if not text:
        return None
    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except ValueError:
        pass

    for candidate in _balanced_spans(text):
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def _as_str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


def keyword_verdict(text: str) -> bool:
    """关键词降级: 在回复中寻找充分/不充分标记"""
    raw = str(text or "")
    if any(marker in raw for marker in _TRUE_MARKERS):
        return True
    if any(marker in raw for marker in _FALSE_MARKERS):
        return False
    lowered = raw.lower()
    if any(word in lowered for word in _NEGATIVE_WORDS):
        return False
    return any(word in lowered for word in _POSITIVE_WORDS)


def parse_judge_response(text: str) -> SufficiencyVerdict:
    """
    解析充分性判断回复

    1. 提取平衡的 {...} 片段并按 JSON 解析, 缺失字段取安全默认值
       (isSufficient=False, reason="", 空列表)
    2. 无法结构化解析时按关键词判断, reason 固定为 "parsed via keyword fallback"
       否定词 (insufficient / 不足 等) 先于肯定词检查, "insufficient" 不会被当作 "sufficient" 命中

    纯函数, 不会抛出异常。
    """
    parsed = extract_json_object(text)
    if parsed is not None:
        return SufficiencyVerdict(
            is_sufficient=_as_bool(parsed.get("isSufficient")),
            reason=str(parsed.get("reason") or ""),
            missing_aspects=_as_str_list(parsed.get("missingAspects")),
            suggestions=_as_str_list(parsed.get("suggestions")),
            source=VerdictSource.LLM,
        )

    logger.debug("[JudgeParser] No JSON object found, using keyword fallback")
    return SufficiencyVerdict(
        is_sufficient=keyword_verdict(text),
        reason=KEYWORD_FALLBACK_REASON,
        source=VerdictSource.KEYWORD_FALLBACK,
    )
