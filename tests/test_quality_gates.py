"""
Unit tests for the fast sufficiency gate.
"""

from __future__ import annotations

from intelligence.quality_gates import FastSufficiencyGate, quick_judge
from models import ImageAsset, Note, VerdictSource


def _notes(count: int, chars_each: int, with_images: int):
    notes = []
    for idx in range(count):
        images = [ImageAsset.from_raw(f"https://img.example/{idx}.jpg", b"img")] if idx < with_images else []
        notes.append(
            Note(
                url=f"https://www.xiaohongshu.com/explore/{idx}",
                note_id=str(idx),
                title=f"note {idx}",
                content="字" * chars_each,
                images=images,
            )
        )
    return notes


def test_passes_with_enough_notes_text_and_images():
    verdict = FastSufficiencyGate().evaluate(_notes(5, 240, with_images=3))

    assert verdict.is_sufficient is True
    assert verdict.source == VerdictSource.HEURISTIC


def test_fails_on_image_ratio_when_only_one_note_has_images():
    verdict = FastSufficiencyGate().evaluate(_notes(5, 240, with_images=1))

    assert verdict.is_sufficient is False
    assert "image" in verdict.reason
    assert "1/5" in verdict.reason


def test_note_count_is_checked_first():
    verdict = quick_judge(_notes(4, 10, with_images=0))

    assert verdict.is_sufficient is False
    assert verdict.reason == "not enough notes (4/5)"


def test_fails_on_short_combined_text():
    verdict = quick_judge(_notes(6, 100, with_images=6))

    assert verdict.is_sufficient is False
    assert verdict.reason == "combined text too short (600/1000)"


def test_half_of_notes_with_images_is_enough():
    verdict = quick_judge(_notes(6, 200, with_images=3))

    assert verdict.is_sufficient is True


def test_empty_batch_fails():
    verdict = quick_judge([])

    assert verdict.is_sufficient is False
    assert "0/5" in verdict.reason


def test_gate_is_deterministic():
    notes = _notes(5, 240, with_images=2)
    gate = FastSufficiencyGate()

    assert gate.evaluate(notes) == gate.evaluate(notes)
