"""Named pipeline checkpoints and their progress percentages."""

from __future__ import annotations

from enum import Enum


class Checkpoint(Enum):
    """Ordered pipeline stages. Values are percentages and must only increase."""

    PROCESSING = 10.0
    TREE_LISTED = 20.0
    CONTENTS_FETCHED = 40.0
    EMBEDDED = 55.0
    SELECTED = 65.0
    CONTEXT_READY = 70.0
    GENERATED = 95.0
    COMPLETED = 100.0

    @property
    def percent(self) -> float:
        return float(self.value)


def _assert_monotonic() -> None:
    values = [checkpoint.percent for checkpoint in Checkpoint]
    if values != sorted(values) or len(set(values)) != len(values):
        raise RuntimeError("Checkpoint percentages must be strictly increasing")


_assert_monotonic()

__all__ = ["Checkpoint"]
