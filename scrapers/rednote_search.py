"""
RedNote Search Scraper
小红书关键词搜索: 打开搜索页, 滚动加载卡片, 按点赞数筛选排序
"""
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote, urlsplit, urlunsplit
import logging
import re

from tenacity import retry, stop_after_attempt, wait_exponential

from models import Author, SearchResult, SearchResultNote

from .base import BaseScraper


logger = logging.getLogger(__name__)

# sort_mode -> 站点排序参数
SORT_PARAMS = {
    "general": "general",
    "popular": "popularity_descending",
    "latest": "time_descending",
}

_NOTE_ID_PATTERN = re.compile(r"/(?:explore|discovery/item|search_result)/([0-9a-zA-Z]+)")
_COUNT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*([万wW千kK]?)")
_UNITS = {"万": 10000, "w": 10000, "W": 10000, "千": 1000, "k": 1000, "K": 1000}

# 搜索页卡片提取
_EXTRACT_CARDS_JS = """
() => {
  const cards = Array.from(document.querySelectorAll('section.note-item, div.note-item'));
  return cards.map(card => {
    const link = card.querySelector('a[href*="/explore/"]') ||
                 card.querySelector('a[href*="/search_result/"]') ||
                 card.querySelector('a.cover');
    const titleEl = card.querySelector('.title span') || card.querySelector('[class*="title"]');
    const authorEl = card.querySelector('.author .name') || card.querySelector('[class*="author"] [class*="name"]');
    const authorLink = card.querySelector('a[href*="/user/profile/"]');
    const likeEl = card.querySelector('.like-wrapper .count') || card.querySelector('[class*="like"] [class*="count"]');
    const img = card.querySelector('img');
    return {
      url: link ? link.href : '',
      title: titleEl ? titleEl.textContent.trim() : '',
      author: authorEl ? authorEl.textContent.trim() : '',
      authorUrl: authorLink ? authorLink.href : '',
      likes: likeEl ? likeEl.textContent.trim() : '0',
      cover: img ? (img.src || '') : '',
    };
  });
}
"""


def parse_count(value: Any) -> int:
    """
    解析互动数文本

    Examples:
        "1.2万" -> 12000, "3,456" -> 3456, "赞" -> 0
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(0, int(value))

    text = str(value).replace(",", "").strip()
    match = _COUNT_PATTERN.search(text)
    if not match:
        return 0
    number = float(match.group(1))
    return int(round(number * _UNITS.get(match.group(2), 1)))


def extract_note_id(url: str) -> str:
    match = _NOTE_ID_PATTERN.search(url or "")
    return match.group(1) if match else ""


def normalize_note_url(url: str) -> str:
    """搜索页链接统一转换为 /explore/<id> 详情页 (保留 xsec_token 等查询参数)"""
    note_id = extract_note_id(url)
    if not note_id:
        return url
    parts = urlsplit(url)
    return urlunsplit((parts.scheme or "https", parts.netloc or "www.xiaohongshu.com", f"/explore/{note_id}", parts.query, ""))


def _to_result_note(item: Dict[str, Any]) -> Optional[SearchResultNote]:
    url = str(item.get("url") or "").strip()
    note_id = str(item.get("note_id") or item.get("noteId") or extract_note_id(url))
    if not url or not note_id:
        return None
    return SearchResultNote(
        url=normalize_note_url(url),
        note_id=note_id,
        title=str(item.get("title") or ""),
        cover=str(item.get("cover") or ""),
        author=Author(
            name=str(item.get("author") or "") or Author().name,
            url=item.get("authorUrl") or item.get("author_url") or None,
        ),
        likes=parse_count(item.get("likes")),
    )


def select_top_results(
    raw_items: Iterable[Dict[str, Any]],
    limit: int,
    min_likes: int = 0,
) -> List[SearchResultNote]:
    """
    从原始卡片中选出排名靠前的结果

    1. 丢弃缺少 url 或笔记 ID 的条目 (重复笔记只保留第一次出现)
    2. 按 min_likes 过滤; 若过滤后少于 min(limit / 2, 3) 条, 放弃过滤
    3. 按点赞数降序, 截取前 limit 条
    """
    valid: List[SearchResultNote] = []
    seen = set()
    for item in raw_items:
        note = _to_result_note(item)
        if note is None or note.note_id in seen:
            continue
        seen.add(note.note_id)
        valid.append(note)

    results = valid
    filtered = [note for note in valid if note.likes >= min_likes]
    if min_likes > 0 and len(filtered) < min(limit / 2, 3):
        logger.debug(
            f"[RedNote Search] Only {len(filtered)} results with likes >= {min_likes}, relaxing filter"
        )
    else:
        results = filtered

    results = sorted(results, key=lambda note: note.likes, reverse=True)
    return results[:max(0, limit)]


class RedNoteSearchScraper(BaseScraper):
    """
    小红书搜索抓取器

    使用已登录的浏览器会话打开搜索页; 导航失败会按指数退避重试,
    重试耗尽后记录日志并返回空结果。
    """

    MAX_SCROLLS = 12

    @property
    def name(self) -> str:
        return "RedNote Search"

    def build_search_url(self, keyword: str, sort_mode: str = "general") -> str:
        sort = SORT_PARAMS.get(sort_mode, SORT_PARAMS["general"])
        return (
            f"{self.settings.base_url}/search_result"
            f"?keyword={quote(keyword)}&source=web_search_result_notes&sort={sort}"
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
    )
    async def _collect_cards(self, keyword: str, limit: int, sort_mode: str) -> List[Dict[str, Any]]:
        """打开搜索页并滚动, 直到卡片数量足够或不再增长"""
        await self._goto(self.build_search_url(keyword, sort_mode))
        page = self.session.page

        # 多取一些, 给点赞过滤留余量
        wanted = max(limit * 2, limit + 5)
        cards: List[Dict[str, Any]] = await page.evaluate(_EXTRACT_CARDS_JS)
        for _ in range(self.MAX_SCROLLS):
            if len(cards) >= wanted:
                break
            await page.mouse.wheel(0, 2400)
            await page.wait_for_timeout(1200)
            more = await page.evaluate(_EXTRACT_CARDS_JS)
            if len(more) <= len(cards):
                break
            cards = more
        return cards

    async def search(
        self,
        keyword: str,
        limit: int = 10,
        sort_mode: str = "general",
        min_engagement: int = 0,
    ) -> SearchResult:
        """
        搜索笔记

        Args:
            keyword: 搜索关键词
            limit: 最大结果数
            sort_mode: 排序方式 (general, popular, latest)
            min_engagement: 最低点赞数 (结果太少时自动放宽)

        Returns:
            SearchResult, 失败时为空结果
        """
        logger.info(f"[{self.name}] Searching: {keyword} (limit={limit}, sort={sort_mode})")
        try:
            cards = await self._collect_cards(keyword, limit, sort_mode)
        except Exception as e:
            self._log_error(f"Search failed for '{keyword}'", e)
            return SearchResult(keyword=keyword)

        results = select_top_results(cards, limit, min_engagement)
        self._log_search(keyword, len(results))
        return SearchResult(keyword=keyword, results=results)
