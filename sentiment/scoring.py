"""
Sentiment scorer contract and the VADER-backed default.

The pipeline only depends on ``Scorer.score(text) -> float``; any object
with that method can be injected (tests use plain fakes).
"""

from __future__ import annotations

import logging
from typing import Protocol

from core.errors import ScoringError

logger = logging.getLogger("pulseboard.scoring")


class Scorer(Protocol):
    def score(self, text: str) -> float:
        ...


class VaderScorer:
    """
    Compound polarity from the VADER lexicon.

    VADER is tuned for short social-media text, which is what uploaded
    posts are. Empty input is neutral and never reaches the analyzer.
    """

    def __init__(self):
        from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

        self._analyzer = SentimentIntensityAnalyzer()

    def score(self, text: str) -> float:
        if not isinstance(text, str) or not text.strip():
            return 0.0
        return float(self._analyzer.polarity_scores(text)["compound"])


def score_text(scorer: Scorer, text: str) -> float:
    """Call ``scorer`` and wrap any failure as ScoringError."""
    try:
        return float(scorer.score(text))
    except Exception as exc:
        logger.exception("Scorer %s failed", type(scorer).__name__)
        raise ScoringError(f"Sentiment scoring failed: {exc}") from exc
