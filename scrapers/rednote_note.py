"""
RedNote Note Scraper
小红书笔记详情: 元数据 + 正文 + 轮播图片 (原图, 压缩由批量执行器负责)
"""
from typing import Any, Dict, List
import hashlib
import logging

from models import Author, ImageAsset, Note
from utils.exceptions import NoteFetchError

from .base import BaseScraper
from .rednote_search import extract_note_id, parse_count


logger = logging.getLogger(__name__)

# 笔记详情页元数据提取, 计数保留原始文本, 在 Python 侧解析
_EXTRACT_METADATA_JS = """
() => {
  const idMatch = window.location.pathname.match(/\\/explore\\/([a-zA-Z0-9]+)/);
  const metaTitle = document.querySelector('meta[property="og:title"]');
  const titleEl = document.querySelector('#detail-title') || document.querySelector('[class*="title"]');
  const title = metaTitle ? metaTitle.content : (titleEl ? titleEl.textContent.trim() : '');

  let content = '';
  for (const selector of ['#detail-desc', '[class*="note-content"]', '[class*="desc"]', 'div.content', 'div.note-text']) {
    const el = document.querySelector(selector);
    if (el && el.textContent) {
      content = el.textContent.trim();
      if (content.length > 10) break;
    }
  }

  const authorEl = document.querySelector('[class*="author-name"]') || document.querySelector('[class*="user-name"]') ||
                   document.querySelector('.author-wrapper .username');
  const authorLink = document.querySelector('a[href*="/user/profile/"]');

  const tags = Array.from(document.querySelectorAll('[class*="tag"]'))
    .map(el => (el.textContent || '').trim())
    .filter(tag => tag.startsWith('#'))
    .map(tag => tag.substring(1));

  const countText = (selectors) => {
    for (const selector of selectors) {
      const el = document.querySelector(selector);
      if (el && el.textContent && /\\d/.test(el.textContent)) return el.textContent.trim();
    }
    return '0';
  };

  const timeEl = document.querySelector('[class*="date"]') || document.querySelector('[class*="time"]');
  const timeMeta = document.querySelector('meta[property="article:published_time"]');

  return {
    noteId: idMatch ? idMatch[1] : '',
    title,
    content,
    author: authorEl ? authorEl.textContent.trim() : '',
    authorUrl: authorLink ? authorLink.href : '',
    tags,
    likes: countText(['.interact-container .like-wrapper .count', '.like-wrapper .count', '[class*="like"] .count']),
    collects: countText(['.interact-container .collect-wrapper .count', '.collect-wrapper .count', '[class*="collect"] .count']),
    comments: countText(['.interact-container .chat-wrapper .count', '.chat-wrapper .count', '[class*="chat"] .count']),
    publishTime: timeMeta ? timeMeta.content : (timeEl ? timeEl.textContent.trim() : ''),
  };
}
"""

# 点击轮播右箭头加载全部图片 (最多 9 张)
_WALK_CAROUSEL_JS = """
async () => {
  const selectors = ['button[aria-label*="next"]', 'button[class*="next"]', 'button[class*="arrow-right"]',
                     '.swiper-button-next', '[class*="slide-next"]'];
  let clicks = 0;
  await new Promise(r => setTimeout(r, 1000));
  for (let i = 0; i < 8; i++) {
    let btn = null;
    for (const selector of selectors) {
      const el = document.querySelector(selector);
      if (el && el.offsetParent !== null) { btn = el; break; }
    }
    if (!btn) break;
    btn.click();
    clicks++;
    await new Promise(r => setTimeout(r, 800));
    if (btn.hasAttribute('disabled') || btn.classList.contains('disabled')) break;
  }
  return clicks;
}
"""

# 收集笔记图片 URL, 排除头像/图标和 200px 以下的小图
_COLLECT_IMAGE_URLS_JS = """
() => {
  const isCdn = src => src && (src.includes('xhscdn') || src.includes('sns-webpic') ||
                               src.includes('sns-img') || src.includes('ci.xiaohongshu'));
  const isNoteImage = img => {
    if (img.naturalWidth && img.naturalHeight && (img.naturalWidth < 200 || img.naturalHeight < 200)) return false;
    const cls = img.className || '';
    return !['avatar', 'icon', 'logo', 'user-head'].some(name => cls.includes(name));
  };
  const found = new Set();
  for (const selector of ['img.note-slider-img', 'img[src*="sns-webpic"]', 'img[src*="ci.xiaohongshu"]',
                          'img[src*="sns-img"]', 'img[src*="xhscdn"]']) {
    document.querySelectorAll(selector).forEach(img => {
      if (isCdn(img.src) && isNoteImage(img)) found.add(img.src);
    });
    if (found.size > 0) break;
  }
  return Array.from(found);
}
"""


class RedNoteNoteScraper(BaseScraper):
    """
    小红书笔记抓取器

    任何导致整条笔记无法获取的错误都会转换为 NoteFetchError;
    单张图片下载失败只跳过该图片。
    """

    @property
    def name(self) -> str:
        return "RedNote Note"

    async def fetch_note(self, url: str, include_images: bool = True) -> Note:
        """
        获取笔记详情

        Args:
            url: 笔记 URL (/explore/<id>)
            include_images: 是否下载图片

        Returns:
            Note (images 为未压缩的原图)

        Raises:
            NoteFetchError: 页面被重定向或提取失败
        """
        try:
            await self._warmup()
            current_url = await self._goto(url)
            if "/explore/" not in current_url:
                raise NoteFetchError(
                    f"Redirected to {current_url}, login may have expired",
                    url=url,
                )

            metadata: Dict[str, Any] = await self.session.page.evaluate(_EXTRACT_METADATA_JS)
            note = self._build_note(url, metadata)
        except NoteFetchError:
            raise
        except Exception as e:
            raise NoteFetchError(f"Failed to load note: {e}", url=url) from e

        logger.debug(
            f"[{self.name}] '{note.title[:30]}' by {note.author.name}, {note.content_length} chars"
        )

        if include_images:
            try:
                note.images = await self._download_images()
            except Exception as e:
                # 图片失败不影响文本内容
                self._log_error(f"Image collection failed for {url}", e)
        return note

    def _build_note(self, url: str, metadata: Dict[str, Any]) -> Note:
        author_url = metadata.get("authorUrl") or None
        return Note(
            url=url,
            note_id=metadata.get("noteId") or extract_note_id(url),
            title=metadata.get("title") or "",
            content=metadata.get("content") or "",
            author=Author(name=metadata.get("author") or Author().name, url=author_url),
            tags=[tag for tag in metadata.get("tags") or [] if tag],
            likes=parse_count(metadata.get("likes")),
            collects=parse_count(metadata.get("collects")),
            comments=parse_count(metadata.get("comments")),
            publish_time=metadata.get("publishTime") or None,
        )

    async def _download_images(self) -> List[ImageAsset]:
        page = self.session.page
        clicks = await page.evaluate(_WALK_CAROUSEL_JS)
        await page.wait_for_timeout(1000)
        image_urls: List[str] = await page.evaluate(_COLLECT_IMAGE_URLS_JS)
        logger.debug(f"[{self.name}] Carousel clicks={clicks}, found {len(image_urls)} image urls")

        images: List[ImageAsset] = []
        seen_hashes = set()
        for idx, image_url in enumerate(image_urls, 1):
            try:
                response = await self.session.request.get(
                    image_url,
                    timeout=self.settings.image_timeout_ms,
                )
                if not response.ok:
                    logger.warning(f"[{self.name}] Image {idx} HTTP {response.status}: {image_url[:60]}")
                    continue
                data = await response.body()
            except Exception as e:
                logger.warning(f"[{self.name}] Image {idx} download failed: {e}")
                continue

            if not data:
                continue
            digest = hashlib.sha1(data).hexdigest()
            if digest in seen_hashes:
                continue
            seen_hashes.add(digest)

            mime_type = response.headers.get("content-type", "image/jpeg").split(";")[0].strip()
            if not mime_type.startswith("image/"):
                mime_type = "image/jpeg"
            images.append(ImageAsset.from_raw(image_url, data, mime_type))

        return images
