"""
Sentiment histogram pipeline package.
"""

from .columns import normalize_row, select_text
from .display import DatasetDisplay
from .histogram import BUCKET_COLUMNS, BUCKET_COUNT, Histogram, bin_index
from .pipeline import IngestionEngine, IngestionOptions, IngestionResult
from .redaction import redact
from .scoring import Scorer, VaderScorer

__all__ = [
    "BUCKET_COLUMNS",
    "BUCKET_COUNT",
    "DatasetDisplay",
    "Histogram",
    "IngestionEngine",
    "IngestionOptions",
    "IngestionResult",
    "Scorer",
    "VaderScorer",
    "bin_index",
    "normalize_row",
    "redact",
    "select_text",
]
