"""
Tests for article rendering and export.
"""

from __future__ import annotations

import json

from models import (
    Author,
    BatchResult,
    ImageAnalysis,
    ImageAsset,
    Note,
    RetrievalOutcome,
    RetrievalState,
    RetrievalStatus,
)


def _note(note_id, likes, content="", images=None, **kwargs):
    return Note(
        url=f"https://www.xiaohongshu.com/explore/{note_id}",
        note_id=note_id,
        title=f"title {note_id}",
        content=content,
        likes=likes,
        images=images or [],
        **kwargs,
    )


def test_notes_are_rendered_by_likes_descending():
    from outputs import render_article_markdown

    md = render_article_markdown("Mac 桌搭", [_note("low", 5), _note("high", 500)])

    assert md.startswith("# Mac 桌搭\n")
    assert "本文整理自 2 篇小红书笔记" in md
    assert md.index("title high") < md.index("title low")
    assert "[小红书](https://www.xiaohongshu.com/explore/high)" in md


def test_products_prices_and_tags_are_summarized():
    from outputs import render_article_markdown

    notes = [
        _note("a", 10, "绿联扩展坞 199元 很好用", tags=["桌搭"], author=Author(name="小王")),
        _note("b", 20, "扩展坞和键盘 一共 350块"),
    ]

    md = render_article_markdown("桌搭", notes)

    assert "1. **扩展坞** (350块, 199元) - 2 篇笔记提到" in md
    assert "预算范围参考: 350块, 199元" in md
    assert "**标签**: #桌搭" in md
    assert "作者: 小王" in md


def test_excerpt_is_truncated():
    from outputs import render_article_markdown

    md = render_article_markdown("T", [_note("a", 1, "字" * 600)])

    assert "> " + "字" * 500 + "..." in md
    assert "字" * 501 not in md


def test_local_images_are_relative_to_output_dir(tmp_path):
    from outputs import MarkdownArticleRenderer

    local = tmp_path / "images" / "a" / "image_1.jpg"
    images = [
        ImageAsset(url="https://cdn/1.jpg", local_path=str(local),
                   analysis=ImageAnalysis(has_text=True, text_content="限时优惠")),
        ImageAsset(url="https://cdn/2.jpg"),
        ImageAsset(url="https://cdn/3.jpg"),
    ]

    md = MarkdownArticleRenderer(tmp_path).render("T", [_note("a", 1, "x", images=images)])

    assert "![图片](images/a/image_1.jpg)" in md
    assert "![图片](https://cdn/2.jpg)" in md
    assert "https://cdn/3.jpg" not in md
    assert "*图片文字*: 限时优惠" in md


def test_image_outside_output_dir_keeps_absolute_path(tmp_path):
    from outputs import MarkdownArticleRenderer

    renderer = MarkdownArticleRenderer(tmp_path / "out")
    image = ImageAsset(url="https://cdn/1.jpg", local_path=str(tmp_path / "images" / "1.jpg"))

    assert renderer.image_ref(image) == str(tmp_path / "images" / "1.jpg")


def test_extract_prices_deduplicates():
    from outputs import extract_prices

    assert extract_prices("99元 到 99元, 或者 12.5块, ¥ 不算") == ["99元", "12.5块"]


def test_export_article_and_outcome(tmp_path):
    from outputs import article_filename, export_article, export_outcome

    path = export_article("# hi\n", tmp_path / "out", topic="溧阳 南山竹海/攻略")
    assert path.name == article_filename("溧阳 南山竹海/攻略") == "溧阳_南山竹海_攻略.md"
    assert path.read_text(encoding="utf-8") == "# hi\n"

    batch = BatchResult()
    batch.record_success(_note("a", 1, "x", images=[ImageAsset.from_raw("https://cdn/1.jpg", b"secret-bytes")]))
    batch.record_failure("https://www.xiaohongshu.com/explore/b", "timeout")
    outcome = RetrievalOutcome(
        status=RetrievalStatus.ACCEPTED,
        batch=batch,
        state=RetrievalState.start(5, 30, 5),
    )

    written = export_outcome(outcome, tmp_path / "out", topic="T", article_path=path)
    payload = json.loads(written["collection_json"].read_text(encoding="utf-8"))

    assert payload["status"] == "accepted"
    assert payload["success_count"] == 1
    assert payload["errors"] == [{"url": "https://www.xiaohongshu.com/explore/b", "error": "timeout"}]
    assert "data" not in payload["notes"][0]["images"][0]
    assert payload["article"] == path.name
