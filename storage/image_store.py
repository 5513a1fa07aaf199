"""
Local Image Store
笔记图片落盘: <image_dir>/<note_id>/image_<n>.<ext>
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Union

from utils.exceptions import StorageError


logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^0-9A-Za-z_-]")
_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/avif": "avif",
}


class LocalImageStore:
    """按笔记 ID 分目录保存图片"""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser()

    @classmethod
    def from_settings(cls, settings) -> "LocalImageStore":
        return cls(settings.image_dir)

    @staticmethod
    def extension_for(mime_type: Optional[str]) -> str:
        return _EXTENSIONS.get(str(mime_type or "").lower(), "jpg")

    def note_dir(self, note_id: str) -> Path:
        safe_id = _UNSAFE_CHARS.sub("_", str(note_id or "").strip()) or "unknown"
        return self.root / safe_id

    def path_for(self, note_id: str, index: int, mime_type: Optional[str] = None) -> Path:
        return self.note_dir(note_id) / f"image_{index}.{self.extension_for(mime_type)}"

    def save(self, data: bytes, note_id: str, index: int, mime_type: Optional[str] = None) -> Path:
        """
        保存单张图片

        Args:
            data: 图片字节
            note_id: 笔记 ID (目录名)
            index: 图片序号 (从 1 开始)
            mime_type: 决定文件扩展名

        Returns:
            写入的文件路径

        Raises:
            StorageError: 写入失败
        """
        if not data:
            raise StorageError("Refusing to save an empty image", {"note_id": note_id, "index": index})

        path = self.path_for(note_id, index, mime_type)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to write image: {exc}", {"path": str(path)}) from exc

        logger.debug(f"[ImageStore] Saved {len(data)} bytes to {path}")
        return path
