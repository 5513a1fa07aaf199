"""
Output Exporter
把文章和收集结果导出为文件（Markdown/JSON）
"""

from __future__ import annotations

from datetime import datetime
import json
from pathlib import Path
import re
from typing import Any, Dict, Optional, Union

from models import RetrievalOutcome


_UNSAFE_FILENAME = re.compile(r"[\\/:*?\"<>|\s]+")


def _json_dump(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2, default=str) + "\n"


def article_filename(topic: str) -> str:
    stem = _UNSAFE_FILENAME.sub("_", str(topic or "").strip()).strip("_") or "article"
    return f"{stem[:80]}.md"


def export_article(
    markdown: str,
    output_dir: Union[str, Path],
    filename: Optional[str] = None,
    *,
    topic: str = "",
) -> Path:
    """写入文章, 返回文件路径"""
    out_path = Path(output_dir).expanduser()
    out_path.mkdir(parents=True, exist_ok=True)
    target = out_path / (filename or article_filename(topic))
    target.write_text(markdown, encoding="utf-8")
    return target


def export_outcome(
    outcome: RetrievalOutcome,
    output_dir: Union[str, Path],
    *,
    topic: str,
    article_path: Optional[Path] = None,
) -> Dict[str, Path]:
    """
    导出收集结果摘要 (不含图片二进制)

    写入文件：
    - collection.json
    """
    out_path = Path(output_dir).expanduser()
    out_path.mkdir(parents=True, exist_ok=True)

    summary = {
        "topic": topic,
        "generated_at": datetime.now().isoformat(timespec="seconds"),
        "status": outcome.status.value,
        "iterations": outcome.state.iteration,
        "final_limit": outcome.state.current_limit,
        "success_count": outcome.batch.success_count,
        "failed_count": outcome.batch.failed_count,
        "errors": [error.model_dump() for error in outcome.batch.errors],
        "notes": [
            note.model_dump(mode="json", exclude={"images": {"__all__": {"data"}}})
            for note in outcome.notes
        ],
        "history": [record.model_dump(mode="json") for record in outcome.history],
        "article": article_path.name if article_path else None,
    }
    target = out_path / "collection.json"
    target.write_text(_json_dump(summary), encoding="utf-8")
    return {"collection_json": target}
