"""Tests for BM25 extractive compression."""

from __future__ import annotations

from repobrief.rag.bm25 import compress_text, score_units, split_units


def test_split_units_keeps_terminal_punctuation() -> None:
    assert split_units("One. Two! Three? tail") == ["One.", "Two!", "Three?", "tail"]


def test_short_texts_are_returned_unchanged() -> None:
    text = "First point. Second point. Third point."

    assert compress_text(text) == text
    assert compress_text("") == ""


def test_compression_keeps_ceil_of_ratio_in_original_order() -> None:
    text = (
        "Widgets render charts quickly. "
        "The weather was pleasant. "
        "Widgets export charts to images. "
        "Lunch was served at noon. "
        "Charts support widgets and themes."
    )

    compressed = compress_text(text, ratio=0.6)
    units = split_units(compressed)

    assert len(units) == 3
    original = split_units(text)
    positions = [original.index(unit) for unit in units]
    assert positions == sorted(positions)


def test_target_units_overrides_ratio() -> None:
    text = "Alpha one. Beta two. Gamma three. Delta four. Epsilon five."

    assert len(split_units(compress_text(text, target_units=2))) == 2


def test_equal_scores_prefer_earlier_units() -> None:
    text = "Cat sat. Dog ran. Fox hid. Owl flew."

    assert compress_text(text, target_units=2) == "Cat sat. Dog ran."


def test_rare_terms_score_higher_than_common_terms() -> None:
    units = ["shared shared words", "shared words here", "unique zebra giraffe"]

    scores = score_units(units)

    assert scores[2] > scores[0]
