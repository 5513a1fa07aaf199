"""
Batch Acquisition Executor
顺序批量获取笔记: 单条失败隔离, 图片逐张压缩, 请求之间随机等待
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence

from models import BatchResult, ImageAsset, Note
from processing import AdaptiveCompressor
from utils.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


class ContentFetcher(Protocol):
    async def fetch_note(self, url: str, include_images: bool = True) -> Note:
        ...


class ImageSink(Protocol):
    def save(self, data: bytes, note_id: str, index: int, mime_type: Optional[str] = None):
        ...


class BatchAcquisitionExecutor:
    """
    批量获取执行器

    - 严格顺序执行, notes 的顺序与输入 URL 中成功条目的顺序一致
    - success_count + failed_count == len(urls)
    - 图片默认经过 AdaptiveCompressor, compress_images=False 时保留原图
    - 每两次请求之间等待 uniform(min_delay, max_delay) 秒 (最后一条之后不等待)
    """

    def __init__(
        self,
        fetcher: ContentFetcher,
        *,
        compressor: Optional[AdaptiveCompressor] = None,
        compress_images: bool = True,
        image_store: Optional[ImageSink] = None,
        min_delay: float = 1.0,
        max_delay: float = 3.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        if min_delay < 0 or max_delay < min_delay:
            raise ConfigurationError(
                "Invalid pacing window",
                {"min_delay": min_delay, "max_delay": max_delay},
            )
        self.fetcher = fetcher
        if compressor is None and compress_images:
            compressor = AdaptiveCompressor()
        self.compressor = compressor
        self.image_store = image_store
        self.min_delay = float(min_delay)
        self.max_delay = float(max_delay)
        self._sleep = sleep
        self._rng = rng or random.Random()

    async def fetch_batch(self, urls: Sequence[str], include_images: bool = True) -> BatchResult:
        """
        批量获取笔记

        Args:
            urls: 笔记 URL 列表
            include_images: 是否下载并压缩图片

        Returns:
            BatchResult (失败条目记录在 errors 中, 不会抛出)
        """
        result = BatchResult()
        total = len(urls)
        logger.info(f"[Batch] Fetching {total} notes (images={'on' if include_images else 'off'})")

        for idx, url in enumerate(urls, 1):
            try:
                note = await self.fetcher.fetch_note(url, include_images=include_images)
                if include_images and note.images and self.compressor is not None:
                    note.images = await self._compress_images(note.images)
            except Exception as exc:
                result.record_failure(url, str(exc))
                logger.warning(f"[Batch] [{idx}/{total}] Failed {url[:60]}: {exc}")
            else:
                result.record_success(note)
                logger.info(
                    f"[Batch] [{idx}/{total}] OK '{note.title[:30]}' "
                    f"({note.content_length} chars, {len(note.images)} images)"
                )
                if include_images and note.images and self.image_store is not None:
                    self._persist_images(note)

            if idx < total:
                await self._pace()

        logger.info(f"[Batch] Done: {result.success_count} succeeded, {result.failed_count} failed")
        return result

    async def _pace(self) -> None:
        delay = self._rng.uniform(self.min_delay, self.max_delay)
        logger.debug(f"[Batch] Waiting {delay:.2f}s before next request")
        await self._sleep(delay)

    async def _compress_images(self, images: Sequence[ImageAsset]) -> List[ImageAsset]:
        compressed: List[ImageAsset] = []
        for image in images:
            outcome = await self.compressor.acompress(image.data)
            if outcome.skipped:
                compressed.append(image)
                continue
            meta = outcome.metadata
            compressed.append(
                image.model_copy(
                    update={
                        "data": outcome.compressed,
                        "size": meta.compressed_size,
                        "original_size": meta.original_size,
                        "compression_ratio": meta.compression_ratio,
                        "width": meta.width,
                        "height": meta.height,
                        "mime_type": outcome.mime_type or image.mime_type,
                        "format": meta.format,
                    }
                )
            )
        return compressed

    def _persist_images(self, note: Note) -> None:
        """图片落盘是附带操作, 单张失败只记录日志"""
        for index, image in enumerate(note.images, 1):
            try:
                path = self.image_store.save(image.data, note.note_id, index, image.mime_type)
            except Exception as exc:
                logger.warning(f"[Batch] Could not save image {index} of note {note.note_id}: {exc}")
                continue
            image.local_path = str(path)
