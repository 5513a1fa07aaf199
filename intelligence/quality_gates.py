"""
Quality Gates
快速充分性检查: 不调用 LLM, 用于在语义判断前过滤明显不足的批次
"""

from __future__ import annotations

from typing import Sequence

from models import Note, SufficiencyVerdict, VerdictSource


MIN_NOTES = 5
MIN_TOTAL_CHARS = 1000
MIN_IMAGE_RATIO = 0.5


class FastSufficiencyGate:
    """Deterministic heuristic gate over a batch of notes."""

    def __init__(
        self,
        *,
        min_notes: int = MIN_NOTES,
        min_total_chars: int = MIN_TOTAL_CHARS,
        min_image_ratio: float = MIN_IMAGE_RATIO,
    ):
        self.min_notes = int(min_notes)
        self.min_total_chars = int(min_total_chars)
        self.min_image_ratio = float(min_image_ratio)

    def evaluate(self, notes: Sequence[Note]) -> SufficiencyVerdict:
        """按笔记数量 -> 正文总长度 -> 图片比例依次检查, 第一个不满足的条件决定 reason"""
        count = len(notes)
        if count < self.min_notes:
            return self._fail(f"not enough notes ({count}/{self.min_notes})")

        total_chars = sum(note.content_length for note in notes)
        if total_chars < self.min_total_chars:
            return self._fail(f"combined text too short ({total_chars}/{self.min_total_chars})")

        with_images = sum(1 for note in notes if note.has_images)
        if with_images < count * self.min_image_ratio:
            return self._fail(f"insufficient image evidence ({with_images}/{count} notes with images)")

        return SufficiencyVerdict(
            is_sufficient=True,
            reason=f"quick check passed ({count} notes, {total_chars} chars, {with_images} with images)",
            source=VerdictSource.HEURISTIC,
        )

    @staticmethod
    def _fail(reason: str) -> SufficiencyVerdict:
        return SufficiencyVerdict(is_sufficient=False, reason=reason, source=VerdictSource.HEURISTIC)


def quick_judge(notes: Sequence[Note]) -> SufficiencyVerdict:
    return FastSufficiencyGate().evaluate(notes)
