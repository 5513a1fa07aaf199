"""
Tests for the sequential batch acquisition executor.
"""

from __future__ import annotations

import io
import random

import pytest
from PIL import Image

from models import ImageAsset, Note
from pipeline import BatchAcquisitionExecutor
from processing import AdaptiveCompressor, CompressionMetadata, CompressionResult
from utils.exceptions import ConfigurationError, NoteFetchError, StorageError


class _FakeFetcher:
    def __init__(self, failures=(), images_per_note: int = 0):
        self.failures = set(failures)
        self.images_per_note = images_per_note
        self.calls = []

    async def fetch_note(self, url, include_images=True):
        self.calls.append((url, include_images))
        if url in self.failures:
            raise NoteFetchError(f"Redirected to login for {url}", url=url)
        note_id = url.rsplit("/", 1)[-1]
        images = []
        if include_images:
            images = [
                ImageAsset.from_raw(f"https://img.example/{note_id}/{idx}.jpg", b"r" * 1000)
                for idx in range(self.images_per_note)
            ]
        return Note(url=url, note_id=note_id, title=f"title {note_id}", content="content", images=images)


class _RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


class _FakeCompressor:
    def __init__(self, skip: bool = False):
        self.skip = skip
        self.calls = 0

    async def acompress(self, original, target_bytes=None, options=None):
        self.calls += 1
        if self.skip:
            return CompressionResult.passthrough(original)
        compressed = original[: len(original) // 4]
        return CompressionResult(
            compressed=compressed,
            metadata=CompressionMetadata(
                original_size=len(original),
                compressed_size=len(compressed),
                compression_ratio=75.0,
                width=800,
                height=600,
                format="jpeg",
            ),
        )


class _FakeStore:
    def __init__(self, fail_index=None):
        self.fail_index = fail_index
        self.saved = []

    def save(self, data, note_id, index, mime_type=None):
        if index == self.fail_index:
            raise StorageError("disk full")
        path = f"/images/{note_id}/image_{index}.jpg"
        self.saved.append(path)
        return path


def _urls(*ids):
    return [f"https://www.xiaohongshu.com/explore/{note_id}" for note_id in ids]


@pytest.mark.asyncio
async def test_failures_are_isolated_and_order_is_preserved():
    urls = _urls("a", "b", "c", "d")
    fetcher = _FakeFetcher(failures={urls[1]})
    executor = BatchAcquisitionExecutor(fetcher, sleep=_RecordingSleep())

    result = await executor.fetch_batch(urls)

    assert result.success_count == 3
    assert result.failed_count == 1
    assert result.total == len(urls)
    assert [note.note_id for note in result.notes] == ["a", "c", "d"]
    assert [error.url for error in result.errors] == [urls[1]]
    assert "Redirected to login" in result.errors[0].error
    assert [call[0] for call in fetcher.calls] == urls


@pytest.mark.asyncio
async def test_pacing_between_non_final_items_only():
    sleep = _RecordingSleep()
    urls = _urls("a", "b", "c")
    executor = BatchAcquisitionExecutor(
        _FakeFetcher(failures={urls[1]}),
        sleep=sleep,
        rng=random.Random(7),
    )

    await executor.fetch_batch(urls)

    assert len(sleep.delays) == 2
    assert all(1.0 <= delay <= 3.0 for delay in sleep.delays)


@pytest.mark.asyncio
@pytest.mark.parametrize("urls", [[], _urls("only")])
async def test_no_pacing_for_empty_or_single_item(urls):
    sleep = _RecordingSleep()
    executor = BatchAcquisitionExecutor(_FakeFetcher(), sleep=sleep)

    result = await executor.fetch_batch(urls)

    assert sleep.delays == []
    assert result.total == len(urls)


@pytest.mark.asyncio
async def test_images_are_routed_through_compressor():
    compressor = _FakeCompressor()
    executor = BatchAcquisitionExecutor(
        _FakeFetcher(images_per_note=2),
        compressor=compressor,
        sleep=_RecordingSleep(),
    )

    result = await executor.fetch_batch(_urls("a"))

    images = result.notes[0].images
    assert compressor.calls == 2
    assert all(image.size == 250 and image.original_size == 1000 for image in images)
    assert all(image.format == "jpeg" and image.width == 800 for image in images)
    assert all(image.size <= image.original_size for image in images)


@pytest.mark.asyncio
async def test_skipped_compression_keeps_original_image():
    executor = BatchAcquisitionExecutor(
        _FakeFetcher(images_per_note=1),
        compressor=_FakeCompressor(skip=True),
        sleep=_RecordingSleep(),
    )

    result = await executor.fetch_batch(_urls("a"))

    image = result.notes[0].images[0]
    assert image.size == image.original_size == 1000
    assert image.format == "original"


@pytest.mark.asyncio
async def test_without_images_compressor_is_not_used():
    compressor = _FakeCompressor()
    fetcher = _FakeFetcher(images_per_note=2)
    executor = BatchAcquisitionExecutor(fetcher, compressor=compressor, sleep=_RecordingSleep())

    result = await executor.fetch_batch(_urls("a"), include_images=False)

    assert compressor.calls == 0
    assert fetcher.calls == [(_urls("a")[0], False)]
    assert result.notes[0].images == []


@pytest.mark.asyncio
async def test_storage_failure_is_logged_and_skipped():
    store = _FakeStore(fail_index=2)
    executor = BatchAcquisitionExecutor(
        _FakeFetcher(images_per_note=3),
        image_store=store,
        sleep=_RecordingSleep(),
    )

    result = await executor.fetch_batch(_urls("n1"))

    images = result.notes[0].images
    assert result.success_count == 1
    assert images[0].local_path == "/images/n1/image_1.jpg"
    assert images[1].local_path is None
    assert images[2].local_path == "/images/n1/image_3.jpg"


def test_invalid_pacing_window_is_rejected():
    with pytest.raises(ConfigurationError):
        BatchAcquisitionExecutor(_FakeFetcher(), min_delay=3.0, max_delay=1.0)
    with pytest.raises(ConfigurationError):
        BatchAcquisitionExecutor(_FakeFetcher(), min_delay=-1.0)


def _noise_png(width: int, height: int) -> bytes:
    image = Image.frombytes("RGB", (width, height), random.Random(3).randbytes(width * height * 3))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class _PayloadFetcher:
    def __init__(self, payload: bytes):
        self.payload = payload

    async def fetch_note(self, url, include_images=True):
        note_id = url.rsplit("/", 1)[-1]
        images = [ImageAsset.from_raw(f"https://img.example/{note_id}/0.png", self.payload, "image/png")]
        return Note(url=url, note_id=note_id, title=note_id, content="content", images=images)


@pytest.mark.asyncio
async def test_images_are_compressed_by_default():
    payload = _noise_png(300, 200)
    executor = BatchAcquisitionExecutor(_PayloadFetcher(payload), sleep=_RecordingSleep())

    result = await executor.fetch_batch(_urls("n1"))

    image = result.notes[0].images[0]
    assert isinstance(executor.compressor, AdaptiveCompressor)
    assert image.format == "jpeg"
    assert image.mime_type == "image/jpeg"
    assert image.original_size == len(payload)
    assert image.size == len(image.data) < len(payload)


@pytest.mark.asyncio
async def test_compression_can_be_turned_off():
    payload = _noise_png(300, 200)
    executor = BatchAcquisitionExecutor(_PayloadFetcher(payload), compress_images=False, sleep=_RecordingSleep())

    result = await executor.fetch_batch(_urls("n1"))

    assert executor.compressor is None
    assert result.notes[0].images[0].data == payload
    assert result.notes[0].images[0].format == "original"
