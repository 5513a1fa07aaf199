"""
Output Renderers
将收集到的笔记渲染为 Markdown 攻略文章
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from intelligence.agents import extract_products
from models import ImageAsset, Note


EXCERPT_CHARS = 500
IMAGES_PER_NOTE = 2
TOP_PRODUCTS = 10

_PRICE_PATTERN = re.compile(r"\d+(?:\.\d+)?\s*(?:元|块|¥)")


def extract_prices(text: str) -> List[str]:
    """提取价格表述 (如 "199元", "50块"), 去重且保持出现顺序"""
    prices: List[str] = []
    for match in _PRICE_PATTERN.findall(text or ""):
        price = match.replace(" ", "")
        if price not in prices:
            prices.append(price)
    return prices


def _excerpt(text: str, max_len: int = EXCERPT_CHARS) -> str:
    text = re.sub(r"\n{3,}", "\n\n", str(text or "")).strip()
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."


def _quote(text: str) -> str:
    return "> " + text.replace("\n", "\n> ")


class MarkdownArticleRenderer:
    """
    Markdown 文章渲染器

    笔记按点赞数降序排列; 本地图片路径尽量写成相对输出目录的路径。
    """

    def __init__(self, output_dir: Optional[Union[str, Path]] = None):
        self.output_dir = Path(output_dir).expanduser() if output_dir else None

    def image_ref(self, image: ImageAsset) -> str:
        if not image.local_path:
            return image.url
        if self.output_dir is None:
            return image.local_path
        try:
            relative = os.path.relpath(image.local_path, self.output_dir)
        except ValueError:
            return image.local_path
        return image.local_path if relative.startswith("..") else Path(relative).as_posix()

    def _product_ranking(self, notes: Sequence[Note]) -> List[Dict[str, object]]:
        ranking: Dict[str, Dict[str, object]] = {}
        for note in notes:
            prices = extract_prices(note.content)
            for product in extract_products(note.content):
                entry = ranking.setdefault(product, {"name": product, "count": 0, "prices": []})
                entry["count"] += 1
                for price in prices:
                    if price not in entry["prices"]:
                        entry["prices"].append(price)
        ordered = sorted(ranking.values(), key=lambda item: item["count"], reverse=True)
        return ordered[:TOP_PRODUCTS]

    def _render_note(self, index: int, note: Note) -> List[str]:
        lines = [
            f"### 推荐 {index}: {note.title or '无标题'}",
            f"> 来源: [小红书]({note.url}) | 热度: 点赞 {note.likes} / 收藏 {note.collects} / 评论 {note.comments} "
            f"| 作者: {note.author.name}",
            "",
        ]
        if note.tags:
            lines.extend([f"**标签**: {' '.join('#' + tag for tag in note.tags)}", ""])

        products = extract_products(note.content)
        if products:
            lines.extend([f"**涉及产品**: {' | '.join(products)}", ""])

        prices = extract_prices(note.content)
        if prices:
            lines.extend([f"**价格参考**: {', '.join(prices)}", ""])

        excerpt = _excerpt(note.content)
        if excerpt:
            lines.extend([_quote(excerpt), ""])

        images = note.images[:IMAGES_PER_NOTE]
        if images:
            lines.extend(["**实拍分享:**", ""])
            for image in images:
                lines.extend([f"![图片]({self.image_ref(image)})", ""])
                if image.analysis and image.analysis.text_content:
                    lines.extend([f"*图片文字*: {image.analysis.text_content}", ""])

        lines.extend(["---", ""])
        return lines

    def render(self, topic: str, notes: Sequence[Note]) -> str:
        ordered = sorted(notes, key=lambda note: note.likes, reverse=True)
        lines = [f"# {topic}", "", f"> 本文整理自 {len(ordered)} 篇小红书笔记", ""]

        ranking = self._product_ranking(ordered)
        all_prices: List[str] = []
        for note in ordered:
            for price in extract_prices(note.content):
                if price not in all_prices:
                    all_prices.append(price)

        if ranking or all_prices:
            lines.extend(["## 核心结论", ""])
        if ranking:
            lines.extend(["### 热门推荐", ""])
            for idx, item in enumerate(ranking, 1):
                price_text = f" ({', '.join(item['prices'])})" if item["prices"] else ""
                lines.append(f"{idx}. **{item['name']}**{price_text} - {item['count']} 篇笔记提到")
            lines.append("")
        if all_prices:
            lines.extend(["### 价格参考", "", f"预算范围参考: {', '.join(all_prices[:8])}", ""])

        lines.extend(["---", "", "## 笔记详情", ""])
        for idx, note in enumerate(ordered, 1):
            lines.extend(self._render_note(idx, note))

        return "\n".join(lines).rstrip() + "\n"


def render_article_markdown(
    topic: str,
    notes: Sequence[Note],
    output_dir: Optional[Union[str, Path]] = None,
) -> str:
    return MarkdownArticleRenderer(output_dir).render(topic, notes)
