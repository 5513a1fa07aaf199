"""
Outputs Module
输出层 - Markdown 文章渲染与导出
"""

from .renderers import (
    MarkdownArticleRenderer,
    render_article_markdown,
    extract_prices,
)
from .exporter import export_article, export_outcome, article_filename

__all__ = [
    # Renderers
    "MarkdownArticleRenderer",
    "render_article_markdown",
    "extract_prices",
    # Export
    "export_article",
    "export_outcome",
    "article_filename",
]
