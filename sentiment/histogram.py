"""
Eleven-bucket polarity histogram.

A compound score in [-1, 1] is remapped linearly onto integer buckets 0..10
of width 0.2, bucket 5 centred on neutral. Ties round half up, so a score
of exactly -0.5 lands in bucket 3 and 0.5 in bucket 8.
"""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np


BUCKET_COUNT = 11
NEUTRAL_BUCKET = 5

BUCKET_COLUMNS: tuple[str, ...] = (
    "bin_n1_0",
    "bin_n0_8",
    "bin_n0_6",
    "bin_n0_4",
    "bin_n0_2",
    "bin_0_0",
    "bin_p0_2",
    "bin_p0_4",
    "bin_p0_6",
    "bin_p0_8",
    "bin_p1_0",
)


def bucket_label(index: int) -> str:
    """Lower bound of bucket ``index`` as a signed label, e.g. ``-1.0`` or ``+0.4``."""
    value = -1.0 + 0.2 * index
    if abs(value) < 1e-9:
        return "0.0"
    return f"{value:+.1f}"


def bin_index(score: float) -> int:
    """Map a polarity score to a bucket index in [0, 10]. Never raises."""
    try:
        value = float(score)
    except (TypeError, ValueError):
        return NEUTRAL_BUCKET
    if not math.isfinite(value):
        return NEUTRAL_BUCKET
    raw = math.floor((value + 1.0) * 5.0 + 0.5)
    return int(np.clip(raw, 0, BUCKET_COUNT - 1))


class Histogram:
    """Per-run counter; one instance per ingestion, never shared."""

    def __init__(self):
        self._counts = [0] * BUCKET_COUNT

    def add(self, score: float) -> int:
        index = bin_index(score)
        self._counts[index] += 1
        return index

    @property
    def counts(self) -> list[int]:
        return list(self._counts)

    @property
    def total(self) -> int:
        return sum(self._counts)

    def __len__(self) -> int:
        return BUCKET_COUNT


def validate_counts(counts: Iterable[int]) -> list[int]:
    """Return ``counts`` as a list of 11 ints, raising ValueError otherwise."""
    values = [int(c) for c in counts]
    if len(values) != BUCKET_COUNT:
        raise ValueError(f"Histogram must have {BUCKET_COUNT} buckets, got {len(values)}")
    if any(c < 0 for c in values):
        raise ValueError("Histogram counts must be non-negative")
    return values
