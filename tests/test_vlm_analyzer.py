"""
Tests for VLM image pre-analysis.
"""

from __future__ import annotations

import pytest

from intelligence.llm import BaseLLM, LLMResponse
from intelligence.tools import ImageAnalyzer, extract_objects, extract_text_content, parse_vlm_response
from models import ImageAsset


class _FakeVLM(BaseLLM):
    def __init__(self, replies):
        super().__init__(model="fake-vl")
        self.replies = list(replies)
        self.messages = []

    @property
    def provider(self) -> str:
        return "fake"

    async def acomplete(self, messages, **kwargs):
        self.messages.append((messages, kwargs))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(content=reply, model=self.model, usage={"total_tokens": 42})


class _RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def test_labelled_text_is_preferred():
    reply = "1. 图片包含文字：绿联扩展坞 限时 199\n\n2. 场景：桌面截图"

    assert extract_text_content(reply) == "绿联扩展坞 限时 199"


def test_quoted_text_is_collected():
    reply = "图片上写着「好物推荐」和「必买清单」"

    assert extract_text_content(reply) == "好物推荐\n必买清单"


def test_objects_and_has_text():
    analysis = parse_vlm_response("这是一张 Screenshot，包含一个表格和 UI 界面")

    assert analysis.has_text is True
    assert analysis.detected_objects == ["screenshot", "界面", "UI", "表格"]
    assert analysis.confidence == 0.85
    assert extract_objects("一张风景照片") == ["照片"]


@pytest.mark.asyncio
async def test_analyze_sends_image_as_data_url():
    llm = _FakeVLM(["图片中没有可辨认的内容"])
    analyzer = ImageAnalyzer(llm)
    image = ImageAsset.from_raw("https://cdn/1.jpg", b"\xff\xd8jpeg", "image/jpeg")

    analysis = await analyzer.analyze(image)

    messages, kwargs = llm.messages[0]
    parts = messages[0].to_dict()["content"]
    assert parts[0]["image_url"]["url"].startswith("data:image/jpeg;base64,")
    assert parts[1]["type"] == "text"
    assert kwargs["max_tokens"] == 1024
    assert analysis.description == "图片中没有可辨认的内容"


@pytest.mark.asyncio
async def test_analyze_images_is_sequential_and_isolates_failures():
    llm = _FakeVLM(["照片", RuntimeError("rate limited"), "图表"])
    sleep = _RecordingSleep()
    analyzer = ImageAnalyzer(llm, sleep=sleep)
    images = [ImageAsset.from_raw(f"https://cdn/{idx}.jpg", b"img") for idx in range(3)]

    results = await analyzer.analyze_images(images)

    assert len(results) == 3
    assert results[0].detected_objects == ["照片"]
    assert results[1].confidence == 0.0
    assert results[1].description.startswith("analysis failed")
    assert results[2].detected_objects == ["图表"]
    assert sleep.delays == [1.0, 1.0]


@pytest.mark.asyncio
async def test_empty_image_is_reported_as_failure():
    analyzer = ImageAnalyzer(_FakeVLM([]), sleep=_RecordingSleep())

    results = await analyzer.analyze_images([ImageAsset(url="https://cdn/empty.jpg")])

    assert results[0].description.startswith("analysis failed")
