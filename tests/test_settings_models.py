"""
Tests for settings defaults and the core data models.
"""

from __future__ import annotations

from config import CompressionSettings, PacingSettings, RetrievalSettings
from models import BatchResult, ImageAsset, Note, RetrievalState, SearchResult, SearchResultNote, SufficiencyVerdict, VerdictSource


def test_retrieval_defaults():
    settings = RetrievalSettings()

    assert (settings.initial_limit, settings.max_limit, settings.increment) == (5, 30, 5)
    assert settings.sort_mode == "popular"


def test_env_overrides_use_section_prefix(monkeypatch):
    monkeypatch.setenv("RETRIEVAL_MAX_LIMIT", "40")
    monkeypatch.setenv("PACING_MAX_DELAY", "5.5")

    assert RetrievalSettings().max_limit == 40
    assert PacingSettings().max_delay == 5.5
    assert CompressionSettings().target_bytes == 500 * 1024


def test_retrieval_state_widens_up_to_max():
    state = RetrievalState.start(5, 12, 5)

    assert state.max_iterations == 3
    assert state.current_limit == 5
    assert [state.widen(), state.widen(), state.widen()] == [10, 12, 12]


def test_default_budget_allows_six_iterations():
    state = RetrievalState.start(5, 30, 5)

    assert state.max_iterations == 6
    assert state.has_budget
    state.iteration = 6
    assert not state.has_budget


def test_batch_result_accumulates():
    batch = BatchResult()
    batch.record_success(Note(url="https://www.xiaohongshu.com/explore/a", content="正文"))
    batch.record_failure("https://www.xiaohongshu.com/explore/b", "timeout")

    assert (batch.success_count, batch.failed_count, batch.total) == (1, 1, 2)
    assert batch.notes[0].content_length == 2
    assert batch.notes[0].has_images is False
    assert batch.errors[0].error == "timeout"


def test_image_asset_helpers():
    image = ImageAsset.from_raw("https://cdn/1", b"abc", "image/jpeg")

    assert image.size == image.original_size == 3
    assert image.extension == "jpg"
    assert image.to_base64() == "YWJj"
    assert ImageAsset(url="u", mime_type="image/webp").extension == "webp"


def test_search_result_urls_and_verdict_source():
    notes = [SearchResultNote(note_id="n1", url="u1"), SearchResultNote(note_id="n2", url="u2")]
    result = SearchResult(keyword="桌搭", results=notes)

    assert result.result_count == 2
    assert result.urls == ["u1", "u2"]
    assert SufficiencyVerdict(source=VerdictSource.KEYWORD_FALLBACK).from_llm
    assert not SufficiencyVerdict(source=VerdictSource.DEFAULT_THRESHOLD).from_llm
