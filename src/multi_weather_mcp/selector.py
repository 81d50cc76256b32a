from typing import Iterable, List

from multi_weather_mcp.models import AggregatedWeather, WeatherRecord
from multi_weather_mcp.scoring import BASELINE_ACCURACY


def select_best(records: Iterable[WeatherRecord], failed_sources: Iterable[str] = ()) -> AggregatedWeather:
    """Pick the highest scored record, keeping every record for comparison.

    max() returns the first maximal element, so equal scores resolve to the
    record whose provider comes first in the configured order. A record that
    was never scored ranks at the baseline accuracy.
    """
    sources: List[WeatherRecord] = list(records)
    if not sources:
        raise ValueError("Cannot select from an empty set of weather records")

    best = max(sources, key=lambda record: record.accuracy if record.accuracy is not None else BASELINE_ACCURACY)
    return AggregatedWeather(sources=sources, best=best, failed_sources=list(failed_sources))
