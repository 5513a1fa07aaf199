"""
Sufficiency Judge
语义充分性判断: 让 LLM 评估收集到的笔记是否足够回答用户问题
"""

from __future__ import annotations

from typing import List, Optional, Sequence
import logging

from intelligence.judge_parser import parse_judge_response
from intelligence.llm import BaseLLM, get_llm
from models import Note, SufficiencyVerdict, VerdictSource


logger = logging.getLogger(__name__)

SUMMARY_CHARS = 300
MAX_PRODUCTS = 5
FALLBACK_MIN_NOTES = 8
JUDGE_FAILED_REASON = "judge failed, default threshold used"

PRODUCT_KEYWORDS = (
    "扩展坞", "硬盘", "固态硬盘", "键盘", "鼠标", "显示器", "屏幕",
    "充电器", "网线", "数据线", "收纳包", "底座", "支架", "手柄",
    "SD卡", "U盘", "贴膜", "散热", "Hub", "Dock", "贝尔金", "绿联",
    "阿卡西斯", "妙控", "触摸板", "小米", "三星", "西部数据",
)

_JUDGE_SYSTEM_PROMPT = """你是一个内容质量评估专家。你的任务是判断收集到的素材是否足够回答用户的问题。

评估标准：
1. 是否有足够多的参考来源（至少 5 篇以上不同角度的内容）
2. 内容是否覆盖用户问题的关键点
3. 是否有重复或低质量内容
4. 是否包含具体的推荐产品、价格、优缺点等实用信息

请基于以下标准给出判断。"""

_JUDGE_USER_TEMPLATE = """用户问题: {question}

收集到的素材摘要:
{summary}

请判断这些素材是否足够回答用户的问题。

请以 JSON 格式返回判断结果，格式如下：
{{
  "isSufficient": true/false,
  "reason": "判断理由（50字以内）",
  "missingAspects": ["缺少的方面1", "缺少的方面2"],
  "suggestions": ["建议1", "建议2"]
}}"""


def extract_products(text: str, keywords: Sequence[str] = PRODUCT_KEYWORDS) -> List[str]:
    """按关键词表匹配正文中提到的产品, 保持关键词表顺序, 最多 5 个"""
    found: List[str] = []
    for keyword in keywords:
        if keyword in (text or "") and keyword not in found:
            found.append(keyword)
    return found[:MAX_PRODUCTS]


def build_context_summary(notes: Sequence[Note]) -> str:
    """每篇笔记只取标题、互动数、产品关键词和前 300 字, 控制 prompt 长度"""
    blocks: List[str] = []
    for idx, note in enumerate(notes, 1):
        excerpt = (note.content or "")[:SUMMARY_CHARS]
        products = extract_products(excerpt)
        blocks.append(
            f"--- 笔记 {idx}: {note.title or '无标题'} ---\n"
            f"热度: 点赞 {note.likes} / 收藏 {note.collects}\n"
            f"产品: {', '.join(products) or '未识别'}\n"
            f"内容: {excerpt}..."
        )
    return "\n\n".join(blocks)


class SemanticSufficiencyJudge:
    """
    LLM-backed sufficiency judge.

    每次 evaluate 只调用一次 LLM; 任何失败 (包括缺少 LLM 配置) 都退回
    保守的默认阈值判断, 不会向调用方抛出异常。
    """

    def __init__(self, llm: Optional[BaseLLM] = None, *, fallback_min_notes: int = FALLBACK_MIN_NOTES):
        self._llm = llm
        self.fallback_min_notes = int(fallback_min_notes)

    @property
    def system_prompt(self) -> str:
        return _JUDGE_SYSTEM_PROMPT

    def build_user_prompt(self, question: str, notes: Sequence[Note]) -> str:
        return _JUDGE_USER_TEMPLATE.format(question=question, summary=build_context_summary(notes))

    async def evaluate(self, question: str, notes: Sequence[Note]) -> SufficiencyVerdict:
        logger.info(f"[SufficiencyJudge] Judging {len(notes)} notes for: {question}")
        try:
            if self._llm is None:
                self._llm = get_llm()
            response = await self._llm.achat(
                self.build_user_prompt(question, notes),
                system_prompt=self.system_prompt,
            )
            verdict = parse_judge_response(response)
        except Exception as exc:
            logger.error(f"[SufficiencyJudge] Judge call failed: {exc}")
            return self.fallback_verdict(notes)

        logger.info(
            f"[SufficiencyJudge] {'sufficient' if verdict.is_sufficient else 'insufficient'} "
            f"({verdict.source.value}): {verdict.reason}"
        )
        if verdict.missing_aspects:
            logger.info(f"[SufficiencyJudge] Missing: {', '.join(verdict.missing_aspects)}")
        return verdict

    def fallback_verdict(self, notes: Sequence[Note]) -> SufficiencyVerdict:
        return SufficiencyVerdict(
            is_sufficient=len(notes) >= self.fallback_min_notes,
            reason=JUDGE_FAILED_REASON,
            missing_aspects=["unable to judge"],
            suggestions=["collect more reference notes"],
            source=VerdictSource.DEFAULT_THRESHOLD,
        )

    async def aclose(self) -> None:
        if self._llm is not None:
            await self._llm.aclose()
