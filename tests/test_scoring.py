import pytest

from conftest import make_record
from multi_weather_mcp.scoring import BASELINE_ACCURACY, AccuracyScorer, StaticAccuracyTable
from multi_weather_mcp.selector import select_best


class RecordingHistory:
    """History store that remembers what it was asked"""

    def __init__(self, scores):
        self.scores = scores
        self.lookups = []

    async def lookup(self, source, location):
        self.lookups.append((source, location))
        return self.scores.get((source, location))


@pytest.mark.asyncio
async def test_static_table_scores_every_known_provider():
    scorer = AccuracyScorer(StaticAccuracyTable())

    assert await scorer.score("openweathermap", "Seattle, US") == 0.94
    assert await scorer.score("accuweather", "Seattle, US") == 0.89
    assert await scorer.score("weatherapi", "Seattle, US") == 0.87


@pytest.mark.asyncio
async def test_unknown_provider_gets_baseline():
    scorer = AccuracyScorer()
    assert await scorer.score("darksky", "Seattle, US") == BASELINE_ACCURACY == 0.85


@pytest.mark.asyncio
async def test_history_store_is_consulted_by_source_and_location():
    history = RecordingHistory({("weatherapi", "Seattle, US"): 0.97, ("openweathermap", "Seattle, US"): 1.7})
    scorer = AccuracyScorer(history)

    assert await scorer.score("weatherapi", "Seattle, US") == 0.97
    # Out of range values are clamped
    assert await scorer.score("openweathermap", "Seattle, US") == 1.0
    assert history.lookups == [("weatherapi", "Seattle, US"), ("openweathermap", "Seattle, US")]


@pytest.mark.asyncio
async def test_annotate_attaches_score_without_mutating():
    record = make_record("accuweather")
    scored = await AccuracyScorer().annotate(record)

    assert scored.accuracy == 0.89
    assert record.accuracy is None


def test_select_best_picks_highest_score():
    records = [
        make_record("weatherapi").with_accuracy(0.87),
        make_record("openweathermap").with_accuracy(0.94),
        make_record("accuweather").with_accuracy(0.89),
    ]
    result = select_best(records)

    assert result.best.source == "openweathermap"
    assert result.sources == records
    assert all(result.best.accuracy >= record.accuracy for record in result.sources)


def test_select_best_ties_go_to_first_record():
    first = make_record("weatherapi").with_accuracy(0.9)
    second = make_record("accuweather").with_accuracy(0.9)

    for _ in range(5):
        assert select_best([first, second]).best is first
        assert select_best([second, first]).best is second


def test_select_best_rejects_empty_input():
    with pytest.raises(ValueError):
        select_best([])


def test_unscored_record_ranks_at_baseline():
    unscored = make_record("accuweather")
    below = make_record("weatherapi").with_accuracy(0.5)
    above = make_record("openweathermap").with_accuracy(0.9)

    assert select_best([below, unscored]).best is unscored
    assert select_best([unscored, above]).best is above
