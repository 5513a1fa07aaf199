"""
Base Scraper
所有抓取器的抽象基类
"""
from abc import ABC, abstractmethod
from typing import Optional
import logging

from config import BrowserSettings

from .session import BrowserSession


logger = logging.getLogger(__name__)


class BaseScraper(ABC):
    """
    抓取器抽象基类
    具体抓取器共享调用方传入的 BrowserSession, 不自行创建浏览器
    """

    def __init__(self, session: BrowserSession, settings: Optional[BrowserSettings] = None):
        self.session = session
        self.settings = settings or session.settings

    @property
    @abstractmethod
    def name(self) -> str:
        """返回抓取器名称"""
        pass

    async def _goto(self, url: str, timeout_ms: Optional[int] = None) -> str:
        """
        导航到指定页面并等待页面稳定

        Returns:
            导航后的实际 URL (可能被重定向)
        """
        page = self.session.page
        await page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=timeout_ms or self.settings.navigation_timeout_ms,
        )
        await page.wait_for_timeout(self.settings.settle_ms)
        return page.url

    async def _warmup(self) -> None:
        """先访问首页建立会话, 失败不影响后续"""
        try:
            await self.session.page.goto(
                self.settings.base_url,
                wait_until="domcontentloaded",
                timeout=self.settings.warmup_timeout_ms,
            )
            await self.session.page.wait_for_timeout(self.settings.settle_ms)
        except Exception as exc:
            logger.debug(f"[{self.name}] Warmup failed, continuing: {exc}")

    def _log_search(self, query: str, count: int):
        """记录搜索日志"""
        logger.info(f"[{self.name}] Search '{query}' returned {count} results")

    def _log_error(self, message: str, error: Exception):
        """记录错误日志"""
        logger.error(f"[{self.name}] {message}: {error}")
