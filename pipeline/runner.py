"""
Collection Runner
端到端流程: 浏览器会话 -> 动态搜索 -> (可选) 图片预分析 -> 渲染文章 -> 导出
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config import Settings, get_settings
from intelligence.agents import SemanticSufficiencyJudge
from intelligence.quality_gates import FastSufficiencyGate
from intelligence.tools import ImageAnalyzer
from models import RetrievalOutcome
from outputs import MarkdownArticleRenderer, export_article, export_outcome
from processing import AdaptiveCompressor
from scrapers import BrowserSession, RedNoteNoteScraper, RedNoteSearchScraper
from storage import LocalImageStore

from .batch_executor import BatchAcquisitionExecutor
from .retrieval_controller import RetrievalController


logger = logging.getLogger(__name__)


@dataclass
class CollectionReport:
    outcome: RetrievalOutcome
    article_path: Optional[Path] = None


def build_executor(session: BrowserSession, settings: Settings) -> BatchAcquisitionExecutor:
    compressor = AdaptiveCompressor.from_settings(settings.compression) if settings.compression.enabled else None
    image_store = LocalImageStore.from_settings(settings.storage) if settings.storage.persist_images else None
    return BatchAcquisitionExecutor(
        RedNoteNoteScraper(session, settings.browser),
        compressor=compressor,
        compress_images=settings.compression.enabled,
        image_store=image_store,
        min_delay=settings.pacing.min_delay,
        max_delay=settings.pacing.max_delay,
    )


async def analyze_outcome_images(outcome: RetrievalOutcome, analyzer: ImageAnalyzer) -> int:
    """为每篇笔记的图片补充 VLM 分析, 返回分析的图片数"""
    analyzed = 0
    for note in outcome.notes:
        if not note.images:
            continue
        results = await analyzer.analyze_images(note.images)
        for image, analysis in zip(note.images, results):
            image.analysis = analysis
        analyzed += len(results)
    return analyzed


async def collect_article(
    question: str,
    keyword: str,
    topic: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
    output_dir: Optional[str] = None,
    analyze_images: bool = False,
) -> CollectionReport:
    """
    收集素材并生成文章

    Args:
        question: 用户问题
        keyword: 搜索关键词
        topic: 文章标题 (默认使用 question)
        output_dir: 输出目录 (默认 STORAGE_OUTPUT_DIR)
        analyze_images: 是否调用 VLM 预分析图片

    Returns:
        CollectionReport, 没有收集到任何笔记时 article_path 为 None
    """
    settings = settings or get_settings()
    topic = topic or question
    out_dir = Path(output_dir or settings.storage.output_dir).expanduser()

    judge = SemanticSufficiencyJudge()
    analyzer = ImageAnalyzer() if analyze_images else None
    try:
        async with BrowserSession(settings.browser) as session:
            controller = RetrievalController(
                RedNoteSearchScraper(session, settings.browser),
                build_executor(session, settings),
                fast_gate=FastSufficiencyGate(),
                judge=judge,
                settings=settings.retrieval,
            )
            outcome = await controller.run(question, keyword)

        logger.info(
            f"[Runner] Retrieval finished: {outcome.status.value}, "
            f"{len(outcome.notes)} notes, {outcome.batch.failed_count} failures"
        )
        if not outcome.notes:
            export_outcome(outcome, out_dir, topic=topic)
            return CollectionReport(outcome=outcome)

        if analyzer is not None:
            count = await analyze_outcome_images(outcome, analyzer)
            logger.info(f"[Runner] Analyzed {count} images")

        markdown = MarkdownArticleRenderer(out_dir).render(topic, outcome.notes)
        article_path = export_article(markdown, out_dir, topic=topic)
        export_outcome(outcome, out_dir, topic=topic, article_path=article_path)
        logger.info(f"[Runner] Article written to {article_path}")
        return CollectionReport(outcome=outcome, article_path=article_path)
    finally:
        await judge.aclose()
        if analyzer is not None:
            await analyzer.aclose()
