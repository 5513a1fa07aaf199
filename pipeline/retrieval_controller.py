"""
Retrieval Controller
动态搜索: 搜索 -> 批量获取 -> 快速检查 -> 语义判断, 不够则扩大搜索数量重试
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from config import RetrievalSettings
from intelligence.agents import SemanticSufficiencyJudge
from intelligence.quality_gates import FastSufficiencyGate
from models import (
    BatchResult,
    IterationRecord,
    Note,
    RetrievalOutcome,
    RetrievalState,
    RetrievalStatus,
    SearchResult,
    SufficiencyVerdict,
)
from utils.exceptions import ConfigurationError

from .batch_executor import BatchAcquisitionExecutor


logger = logging.getLogger(__name__)


class SearchProvider(Protocol):
    async def search(
        self,
        keyword: str,
        limit: int = 10,
        sort_mode: str = "general",
        min_engagement: int = 0,
    ) -> SearchResult:
        ...


class SufficiencyJudge(Protocol):
    async def evaluate(self, question: str, notes: Sequence[Note]) -> SufficiencyVerdict:
        ...


class RetrievalController:
    """
    Widening retrieval loop.

    每轮重新获取整批笔记 (不做增量), 保留的批次在每次扩大时被替换而不是合并。
    只有调用方的参数错误会抛出 ConfigurationError, 其余失败都转换为结果状态。
    """

    def __init__(
        self,
        search_provider: SearchProvider,
        executor: BatchAcquisitionExecutor,
        *,
        fast_gate: Optional[FastSufficiencyGate] = None,
        judge: Optional[SufficiencyJudge] = None,
        settings: Optional[RetrievalSettings] = None,
        include_images: bool = True,
    ):
        self.settings = settings or RetrievalSettings()
        self._validate_settings(self.settings)
        self.search_provider = search_provider
        self.executor = executor
        self.fast_gate = fast_gate or FastSufficiencyGate()
        self.judge = judge or SemanticSufficiencyJudge()
        self.include_images = include_images

    @staticmethod
    def _validate_settings(settings: RetrievalSettings) -> None:
        if settings.initial_limit < 1:
            raise ConfigurationError("initial_limit must be >= 1", {"initial_limit": settings.initial_limit})
        if settings.increment < 1:
            raise ConfigurationError("increment must be >= 1", {"increment": settings.increment})
        if settings.max_limit < settings.initial_limit:
            raise ConfigurationError(
                "max_limit must be >= initial_limit",
                {"initial_limit": settings.initial_limit, "max_limit": settings.max_limit},
            )

    @staticmethod
    def _require_text(name: str, value: object) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ConfigurationError(f"{name} must be a non-empty string", {name: repr(value)})
        return value.strip()

    async def _search(self, keyword: str, limit: int) -> SearchResult:
        try:
            return await self.search_provider.search(
                keyword,
                limit,
                self.settings.sort_mode,
                self.settings.min_engagement,
            )
        except Exception as exc:
            logger.error(f"[Retrieval] Search failed for '{keyword}': {exc}")
            return SearchResult(keyword=keyword)

    async def run(self, question: str, keyword: str) -> RetrievalOutcome:
        """
        执行动态搜索

        Args:
            question: 用户问题 (交给语义判断)
            keyword: 搜索关键词

        Returns:
            RetrievalOutcome:
                ACCEPTED  - 通过两道检查 (或语义判断本身异常)
                EXHAUSTED - 用完轮次, 返回最后一轮的批次
                ABORTED   - 搜索无结果, 返回空批次
        """
        question = self._require_text("question", question)
        keyword = self._require_text("keyword", keyword)

        s = self.settings
        state = RetrievalState.start(s.initial_limit, s.max_limit, s.increment)
        history = []
        logger.info(
            f"[Retrieval] Start '{keyword}' limit={state.current_limit}..{state.max_limit} "
            f"step={state.increment} max_iterations={state.max_iterations}"
        )

        while state.has_budget:
            state.iteration += 1
            limit = state.current_limit
            record = IterationRecord(iteration=state.iteration, limit=limit)
            history.append(record)
            logger.info(f"[Retrieval] Iteration {state.iteration}/{state.max_iterations} (limit={limit})")

            search = await self._search(keyword, limit)
            urls = search.urls[:limit]
            record.candidate_count = len(urls)
            if not urls:
                logger.warning(f"[Retrieval] No search results for '{keyword}', aborting")
                return RetrievalOutcome(
                    status=RetrievalStatus.ABORTED,
                    batch=BatchResult(),
                    state=state,
                    history=history,
                )

            batch = await self.executor.fetch_batch(urls, include_images=self.include_images)
            record.note_count = len(batch.notes)

            fast = self.fast_gate.evaluate(batch.notes)
            record.fast_verdict = fast
            logger.info(f"[Retrieval] Quick check {'passed' if fast.is_sufficient else 'failed'}: {fast.reason}")
            if not fast.is_sufficient:
                self._widen(state, batch)
                continue

            try:
                verdict = await self.judge.evaluate(question, batch.notes)
            except Exception as exc:
                logger.error(f"[Retrieval] Judge unavailable, accepting current batch: {exc}")
                state.last_batch = batch
                return RetrievalOutcome(
                    status=RetrievalStatus.ACCEPTED,
                    batch=batch,
                    state=state,
                    history=history,
                )

            record.semantic_verdict = verdict
            if verdict.is_sufficient:
                logger.info(f"[Retrieval] Accepted {len(batch.notes)} notes: {verdict.reason}")
                state.last_batch = batch
                return RetrievalOutcome(
                    status=RetrievalStatus.ACCEPTED,
                    batch=batch,
                    state=state,
                    history=history,
                )

            if verdict.missing_aspects:
                logger.info(f"[Retrieval] Missing: {', '.join(verdict.missing_aspects)}")
            self._widen(state, batch)

        logger.warning(
            f"[Retrieval] Budget exhausted after {state.iteration} iterations, "
            f"returning {len(state.last_batch.notes)} notes"
        )
        return RetrievalOutcome(
            status=RetrievalStatus.EXHAUSTED,
            batch=state.last_batch,
            state=state,
            history=history,
        )

    @staticmethod
    def _widen(state: RetrievalState, batch: BatchResult) -> None:
        state.last_batch = batch
        previous = state.current_limit
        state.widen()
        logger.info(f"[Retrieval] Widening search {previous} -> {state.current_limit}")
