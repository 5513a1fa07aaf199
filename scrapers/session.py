"""
Browser Session
Playwright 浏览器会话: 一个浏览器 / 一个上下文 / 一个页面, 由调用方创建并显式传递
"""
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import json
import logging

from config import BrowserSettings, get_browser_settings
from utils.exceptions import ScraperError


logger = logging.getLogger(__name__)

_SAME_SITE = {"strict": "Strict", "lax": "Lax", "none": "None", "no_restriction": "None"}


def load_cookies(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    读取登录 cookies 文件, 转换为 Playwright add_cookies 格式

    支持两种文件结构: cookie 列表, 或 {"cookies": [...]} (storage_state)。
    文件不存在或无法解析时返回空列表。
    """
    cookie_file = Path(path).expanduser()
    if not cookie_file.exists():
        return []

    try:
        raw = json.loads(cookie_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning(f"[Session] Cannot read cookie file {cookie_file}: {exc}")
        return []

    if isinstance(raw, dict):
        raw = raw.get("cookies", [])
    if not isinstance(raw, list):
        return []

    cookies = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("name") or "value" not in item:
            continue
        cookie = {
            "name": str(item["name"]),
            "value": str(item["value"]),
            "domain": item.get("domain") or ".xiaohongshu.com",
            "path": item.get("path") or "/",
        }
        expires = item.get("expires", item.get("expirationDate"))
        if isinstance(expires, (int, float)) and expires > 0:
            cookie["expires"] = float(expires)
        if "httpOnly" in item:
            cookie["httpOnly"] = bool(item["httpOnly"])
        if "secure" in item:
            cookie["secure"] = bool(item["secure"])
        same_site = _SAME_SITE.get(str(item.get("sameSite", "")).lower())
        if same_site:
            cookie["sameSite"] = same_site
        cookies.append(cookie)
    return cookies


class BrowserSession:
    """
    浏览器会话

    用法:
        async with BrowserSession() as session:
            await session.page.goto(...)

    同一个会话只服务于一个顺序执行的流程, 不要在并发任务之间共享。
    """

    def __init__(
        self,
        settings: Optional[BrowserSettings] = None,
        *,
        cookie_path: Optional[str] = None,
        headless: Optional[bool] = None,
    ):
        self.settings = settings or get_browser_settings()
        self.cookie_path = Path(cookie_path or self.settings.cookie_path).expanduser()
        self.headless = self.settings.headless if headless is None else headless

        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    @property
    def is_started(self) -> bool:
        return self._page is not None

    @property
    def page(self):
        if self._page is None:
            raise ScraperError("Browser session is not started", source="session")
        return self._page

    @property
    def request(self):
        """共享 cookies 的 APIRequestContext (用于下载图片)"""
        if self._context is None:
            raise ScraperError("Browser session is not started", source="session")
        return self._context.request

    def has_saved_cookies(self) -> bool:
        return bool(load_cookies(self.cookie_path))

    async def start(self) -> "BrowserSession":
        if self.is_started:
            return self

        from playwright.async_api import async_playwright

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.headless)
        self._context = await self._browser.new_context(
            locale="zh-CN",
            viewport={"width": 1440, "height": 900},
        )
        self._context.set_default_navigation_timeout(self.settings.navigation_timeout_ms)

        cookies = load_cookies(self.cookie_path)
        if cookies:
            await self._context.add_cookies(cookies)
            logger.info(f"[Session] Loaded {len(cookies)} cookies from {self.cookie_path}")
        else:
            logger.warning(f"[Session] No saved cookies at {self.cookie_path}, continuing logged out")

        self._page = await self._context.new_page()
        return self

    async def close(self) -> None:
        """按 page -> context -> browser -> playwright 顺序释放"""
        for name, resource, method in (
            ("page", self._page, "close"),
            ("context", self._context, "close"),
            ("browser", self._browser, "close"),
            ("playwright", self._playwright, "stop"),
        ):
            if resource is None:
                continue
            try:
                await getattr(resource, method)()
            except Exception as exc:
                logger.debug(f"[Session] Closing {name} failed: {exc}")
        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None

    async def __aenter__(self) -> "BrowserSession":
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
