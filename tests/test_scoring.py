from __future__ import annotations

import pytest

from core.errors import ScoringError
from sentiment.scoring import VaderScorer, score_text


@pytest.fixture(scope="module")
def vader() -> VaderScorer:
    return VaderScorer()


def test_vader_polarity_direction(vader):
    assert vader.score("I love this, it is wonderful!") > 0.5
    assert vader.score("I hate this, it is terrible.") < -0.5


@pytest.mark.parametrize("text", ["", "   ", None])
def test_vader_empty_input_is_neutral(vader, text):
    assert vader.score(text) == 0.0


def test_vader_scores_stay_in_range(vader):
    for text in ("ok", "GREAT!!! :) :) love love love", "worst. ever. awful!!!", "[EMAIL] [PHONE]"):
        assert -1.0 <= vader.score(text) <= 1.0


def test_score_text_wraps_scorer_failures():
    class _Broken:
        def score(self, text):
            raise KeyError("lexicon")

    with pytest.raises(ScoringError) as excinfo:
        score_text(_Broken(), "anything")

    assert excinfo.value.category == "scoring_error"


def test_score_text_rejects_non_numeric_results():
    class _Sloppy:
        def score(self, text):
            return None

    with pytest.raises(ScoringError):
        score_text(_Sloppy(), "anything")
