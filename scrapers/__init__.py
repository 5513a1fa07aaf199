"""
Scrapers Module
小红书浏览器抓取器
"""
from .session import BrowserSession, load_cookies
from .base import BaseScraper
from .rednote_search import (
    RedNoteSearchScraper,
    SORT_PARAMS,
    extract_note_id,
    normalize_note_url,
    parse_count,
    select_top_results,
)
from .rednote_note import RedNoteNoteScraper

__all__ = [
    "BrowserSession",
    "load_cookies",
    "BaseScraper",
    "RedNoteSearchScraper",
    "RedNoteNoteScraper",
    "SORT_PARAMS",
    "extract_note_id",
    "normalize_note_url",
    "parse_count",
    "select_top_results",
]
