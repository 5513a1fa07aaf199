"""
Storage Module
存储模块 - 笔记图片落盘
"""
from .image_store import LocalImageStore

__all__ = [
    "LocalImageStore",
]
