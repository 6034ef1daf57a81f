"""Tests for pipeline checkpoints."""

from __future__ import annotations

from repobrief.jobs.progress import Checkpoint


def test_checkpoints_increase_strictly() -> None:
    values = [checkpoint.percent for checkpoint in Checkpoint]

    assert values == sorted(values)
    assert len(set(values)) == len(values)
    assert Checkpoint.PROCESSING.percent == 10.0
    assert Checkpoint.COMPLETED.percent == 100.0
