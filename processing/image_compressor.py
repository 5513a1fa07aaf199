"""
Image Compressor
图片智能压缩: Pillow 重采样 + JPEG/WebP 编码, 超过目标大小时按降级阶梯重新压缩
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
import io
import logging
from typing import Dict, Iterator, List, Optional, Sequence

from PIL import Image, ImageOps

from utils.exceptions import CompressionError


logger = logging.getLogger(__name__)

DEFAULT_TARGET_BYTES = 500 * 1024

_ENCODERS = {"jpeg": "JPEG", "webp": "WEBP"}
_MIME_TYPES = {"jpeg": "image/jpeg", "webp": "image/webp"}


@dataclass(frozen=True)
class CompressionOptions:
    """压缩配置"""

    max_width: int = 1600
    max_height: int = 1600
    quality: int = 65
    format: str = "jpeg"

    def merged(self, **overrides) -> "CompressionOptions":
        return replace(self, **{key: value for key, value in overrides.items() if value is not None})


# 3 张图片总大小约 450KB
DEFAULT_COMPRESSION_OPTIONS = CompressionOptions()

# 超出目标大小后依次尝试, 与已尝试过的配置相同的阶梯会被跳过
FALLBACK_LADDER: Sequence[Dict[str, int]] = (
    {"quality": 65, "max_width": 1600, "max_height": 1600},
    {"quality": 60, "max_width": 1280, "max_height": 1280},
    {"quality": 55, "max_width": 960, "max_height": 960},
)


@dataclass
class CompressionMetadata:
    original_size: int
    compressed_size: int
    compression_ratio: float
    width: int
    height: int
    format: str


@dataclass
class CompressionResult:
    compressed: bytes
    metadata: CompressionMetadata

    @property
    def mime_type(self) -> Optional[str]:
        return _MIME_TYPES.get(self.metadata.format)

    @property
    def skipped(self) -> bool:
        return self.metadata.format == "original"

    @classmethod
    def passthrough(cls, original: bytes) -> "CompressionResult":
        """压缩不可用时原样返回"""
        return cls(
            compressed=original,
            metadata=CompressionMetadata(
                original_size=len(original),
                compressed_size=len(original),
                compression_ratio=0.0,
                width=0,
                height=0,
                format="original",
            ),
        )


def detect_image_type(data: bytes) -> str:
    """
    图片类型检测: text-heavy / photo / mixed
    目前统一返回 mixed
    """
    _ = data
    return "mixed"


def get_optimal_compression_options(
    image_type: str,
    base_options: Optional[Dict[str, object]] = None,
) -> CompressionOptions:
    """根据图片类型获取推荐的压缩配置 (文字截图需要更高质量)"""
    presets = {
        "text-heavy": 85,
        "photo": 70,
        "mixed": 75,
    }
    quality = presets.get(image_type, presets["mixed"])
    options = DEFAULT_COMPRESSION_OPTIONS.merged(quality=quality, format="jpeg")
    return options.merged(**dict(base_options or {}))


def compress_image(original: bytes, options: Optional[CompressionOptions] = None) -> CompressionResult:
    """
    压缩单张图片

    保持宽高比缩放到边界框以内 (不放大小图), 再按目标格式和质量编码。

    Args:
        original: 原始图片字节
        options: 压缩配置

    Returns:
        CompressionResult

    Raises:
        CompressionError: 解码或编码失败
    """
    opts = options or DEFAULT_COMPRESSION_OPTIONS
    fmt = str(opts.format or "").lower()
    if fmt not in _ENCODERS:
        raise CompressionError(f"Unsupported output format: {opts.format}")

    try:
        with Image.open(io.BytesIO(original)) as source:
            source.load()
            image = ImageOps.exif_transpose(source) or source
            if fmt == "jpeg" and image.mode not in ("RGB", "L"):
                image = image.convert("RGB")
            elif fmt == "webp" and image.mode not in ("RGB", "RGBA"):
                image = image.convert("RGBA" if "A" in image.getbands() else "RGB")

            image.thumbnail((opts.max_width, opts.max_height), Image.Resampling.LANCZOS)

            buffer = io.BytesIO()
            if fmt == "jpeg":
                image.save(buffer, format="JPEG", quality=opts.quality, optimize=True, progressive=True)
            else:
                image.save(buffer, format="WEBP", quality=opts.quality, method=6)
            width, height = image.size
    except Exception as exc:
        raise CompressionError(f"Image compression failed: {exc}") from exc

    compressed = buffer.getvalue()
    ratio = (1 - len(compressed) / len(original)) * 100 if original else 0.0
    metadata = CompressionMetadata(
        original_size=len(original),
        compressed_size=len(compressed),
        compression_ratio=round(ratio, 2),
        width=width,
        height=height,
        format=fmt,
    )
    logger.debug(
        f"[Compressor] {metadata.original_size} -> {metadata.compressed_size} bytes "
        f"({metadata.compression_ratio:.1f}% saved), {width}x{height}, q={opts.quality}"
    )
    return CompressionResult(compressed=compressed, metadata=metadata)


def compress_images(
    buffers: Sequence[bytes],
    options: Optional[CompressionOptions] = None,
) -> List[CompressionResult]:
    """批量压缩图片, 单张失败时保留原图"""
    results: List[CompressionResult] = []
    for idx, data in enumerate(buffers, 1):
        try:
            results.append(compress_image(data, options))
        except CompressionError as exc:
            logger.warning(f"[Compressor] Image {idx}/{len(buffers)} kept original: {exc}")
            results.append(CompressionResult.passthrough(data))

    total_original = sum(r.metadata.original_size for r in results)
    total_compressed = sum(r.metadata.compressed_size for r in results)
    if total_original:
        overall = (1 - total_compressed / total_original) * 100
        logger.info(
            f"[Compressor] Batch of {len(buffers)} images: {total_original} -> {total_compressed} bytes "
            f"({overall:.1f}% saved)"
        )
    return results


class AdaptiveCompressor:
    """
    自适应压缩器

    按阶梯依次尝试, 第一个不超过目标大小的结果即停止;
    全部超出时保留最小的一次。任何一次压缩抛错都退回原图。
    """

    def __init__(
        self,
        *,
        target_bytes: int = DEFAULT_TARGET_BYTES,
        options: Optional[CompressionOptions] = None,
        ladder: Sequence[Dict[str, int]] = FALLBACK_LADDER,
    ):
        self.target_bytes = max(1, int(target_bytes))
        self.options = options or DEFAULT_COMPRESSION_OPTIONS
        self.ladder = list(ladder)

    @classmethod
    def from_settings(cls, settings) -> "AdaptiveCompressor":
        return cls(
            target_bytes=settings.target_bytes,
            options=CompressionOptions(
                max_width=settings.max_width,
                max_height=settings.max_height,
                quality=settings.quality,
                format=settings.format,
            ),
        )

    def tiers(self, base: CompressionOptions) -> Iterator[CompressionOptions]:
        seen = set()
        for candidate in [base, *[base.merged(**step) for step in self.ladder]]:
            if candidate in seen:
                continue
            seen.add(candidate)
            yield candidate

    def compress(
        self,
        original: bytes,
        target_bytes: Optional[int] = None,
        options: Optional[CompressionOptions] = None,
    ) -> CompressionResult:
        target = int(target_bytes or self.target_bytes)
        base = options or self.options
        attempts: List[CompressionResult] = []

        try:
            for tier_idx, tier in enumerate(self.tiers(base), 1):
                result = compress_image(original, tier)
                attempts.append(result)
                size = result.metadata.compressed_size
                if size <= target:
                    if tier_idx > 1:
                        logger.info(f"[Compressor] Tier {tier_idx} met target: {size} <= {target} bytes")
                    break
                logger.debug(
                    f"[Compressor] Tier {tier_idx} (q={tier.quality}, bound={tier.max_width}) "
                    f"still over target: {size} > {target} bytes"
                )
        except CompressionError as exc:
            logger.warning(f"[Compressor] Falling back to original bytes: {exc}")
            return CompressionResult.passthrough(original)

        best = min(attempts, key=lambda item: item.metadata.compressed_size)
        if best.metadata.compressed_size > target:
            logger.warning(
                f"[Compressor] All {len(attempts)} tiers exceed target, keeping smallest "
                f"({best.metadata.compressed_size} bytes)"
            )
        if best.metadata.compressed_size > len(original):
            return CompressionResult.passthrough(original)
        return best

    async def acompress(
        self,
        original: bytes,
        target_bytes: Optional[int] = None,
        options: Optional[CompressionOptions] = None,
    ) -> CompressionResult:
        """在线程池中执行压缩 (CPU 密集)"""
        return await asyncio.to_thread(self.compress, original, target_bytes, options)
