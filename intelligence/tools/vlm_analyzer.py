"""
VLM Image Analyzer
使用视觉模型预分析笔记图片: 提取图片中的文字, 描述场景, 识别图片类型
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Awaitable, Callable, List, Optional, Sequence

from intelligence.llm import BaseLLM, Message, get_llm
from models import ImageAnalysis, ImageAsset
from utils.exceptions import LLMError


logger = logging.getLogger(__name__)

DEFAULT_VLM_PROMPT = """请详细分析这张图片，并提供以下信息：

1. 图片中是否包含文字？如果有，请逐字提取所有可见文字（包括中英文）
2. 图片的主要内容和场景描述
3. 图片中的关键对象、元素或主题
4. 图片的类型（如：截图、照片、图表、设计稿等）

请以结构化的方式回答，清晰明了。"""

OBJECT_KEYWORDS = (
    "截图", "screenshot", "照片", "photo", "图表", "chart",
    "代码", "code", "文档", "document", "设计", "design",
    "界面", "UI", "网页", "webpage", "海报", "poster",
    "公式", "formula", "表格", "table", "流程图", "flowchart",
)

_LABELLED_TEXT = re.compile(r"文字[：:]([\s\S]+?)(?=\n\n|\n[0-9]|\n[A-Z]|$)")
_QUOTED_TEXT = re.compile(r"[「『\"“]([^「『\"“」』\"”]*)[」』\"”]")
_CONTENT_LINE = re.compile(r"(?:内容|文本|文字)[:：]\s*(.+)")
_HAS_TEXT = re.compile(r"包含|存在|有.*文字")

VLM_CONFIDENCE = 0.85


def extract_text_content(response: str) -> str:
    """从 VLM 回复中提取图片文字: 优先 "文字:" 段落, 其次引号内容, 最后 "内容/文本:" 行"""
    match = _LABELLED_TEXT.search(response)
    if match and match.group(1).strip():
        return match.group(1).strip()

    quoted = [item for item in _QUOTED_TEXT.findall(response) if item.strip()]
    if quoted:
        return "\n".join(quoted)

    match = _CONTENT_LINE.search(response)
    if match:
        return match.group(1).strip()
    return ""


def extract_objects(response: str) -> List[str]:
    lowered = response.lower()
    return [keyword for keyword in OBJECT_KEYWORDS if keyword.lower() in lowered]


def parse_vlm_response(response: str) -> ImageAnalysis:
    lowered = response.lower()
    has_text = "文字" in response or "text" in lowered or bool(_HAS_TEXT.search(response))
    return ImageAnalysis(
        has_text=has_text,
        text_content=extract_text_content(response),
        description=response,
        detected_objects=extract_objects(response),
        confidence=VLM_CONFIDENCE,
    )


class ImageAnalyzer:
    """顺序分析图片, 每张之间暂停以避免限流"""

    def __init__(
        self,
        llm: Optional[BaseLLM] = None,
        *,
        prompt: str = DEFAULT_VLM_PROMPT,
        delay: float = 1.0,
        max_tokens: int = 1024,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._llm = llm
        self.prompt = prompt
        self.delay = max(0.0, float(delay))
        self.max_tokens = max_tokens
        self._sleep = sleep

    @property
    def llm(self) -> BaseLLM:
        if self._llm is None:
            self._llm = get_llm(vision=True)
        return self._llm

    async def analyze(self, image: ImageAsset, prompt: Optional[str] = None) -> ImageAnalysis:
        """
        分析单张图片

        Raises:
            LLMError: 图片为空或模型调用失败
        """
        if not image.data:
            raise LLMError("Image has no payload to analyze")

        message = Message.user_with_image(prompt or self.prompt, image.to_base64(), image.mime_type)
        try:
            response = await self.llm.acomplete([message], max_tokens=self.max_tokens)
        except LLMError:
            raise
        except Exception as exc:
            raise LLMError(f"VLM request failed: {exc}", provider=getattr(self._llm, "provider", None)) from exc

        logger.debug(f"[ImageAnalyzer] Analyzed {image.url[:60]} (tokens={response.usage.get('total_tokens', 'N/A')})")
        return parse_vlm_response(response.content)

    async def analyze_images(
        self,
        images: Sequence[ImageAsset],
        prompt: Optional[str] = None,
    ) -> List[ImageAnalysis]:
        """批量分析, 单张失败时返回空结果 (description 记录错误)"""
        results: List[ImageAnalysis] = []
        for idx, image in enumerate(images):
            try:
                results.append(await self.analyze(image, prompt))
            except Exception as exc:
                logger.error(f"[ImageAnalyzer] Image {idx + 1}/{len(images)} failed: {exc}")
                results.append(ImageAnalysis(description=f"analysis failed: {exc}"))
            if idx < len(images) - 1 and self.delay > 0:
                await self._sleep(self.delay)
        return results

    async def aclose(self) -> None:
        if self._llm is not None:
            await self._llm.aclose()
