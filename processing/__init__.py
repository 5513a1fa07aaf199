"""
Processing Module
图片压缩
"""
from .image_compressor import (
    DEFAULT_COMPRESSION_OPTIONS,
    DEFAULT_TARGET_BYTES,
    FALLBACK_LADDER,
    AdaptiveCompressor,
    CompressionMetadata,
    CompressionOptions,
    CompressionResult,
    compress_image,
    compress_images,
    detect_image_type,
    get_optimal_compression_options,
)

__all__ = [
    "DEFAULT_COMPRESSION_OPTIONS",
    "DEFAULT_TARGET_BYTES",
    "FALLBACK_LADDER",
    "AdaptiveCompressor",
    "CompressionMetadata",
    "CompressionOptions",
    "CompressionResult",
    "compress_image",
    "compress_images",
    "detect_image_type",
    "get_optimal_compression_options",
]
