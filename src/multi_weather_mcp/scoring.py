import logging
from typing import Dict, Optional, Protocol

from multi_weather_mcp.models import WeatherRecord

logger = logging.getLogger("multi_weather.scoring")

# Applied to any source the history store has no score for
BASELINE_ACCURACY = 0.85

DEFAULT_ACCURACY: Dict[str, float] = {
    "openweathermap": 0.94,
    "accuweather": 0.89,
    "weatherapi": 0.87,
}


class AccuracyHistoryStore(Protocol):
    """Source of per-provider reliability, keyed by source and location"""

    async def lookup(self, source: str, location: str) -> Optional[float]: ...


class StaticAccuracyTable:
    """Fixed per-provider scores that ignore the location"""

    def __init__(self, scores: Optional[Dict[str, float]] = None):
        self._scores = dict(DEFAULT_ACCURACY if scores is None else scores)

    async def lookup(self, source: str, location: str) -> Optional[float]:
        return self._scores.get(source)


class AccuracyScorer:
    """Annotates weather records with a trust score in [0, 1]"""

    def __init__(self, history: Optional[AccuracyHistoryStore] = None):
        self._history = history or StaticAccuracyTable()

    async def score(self, source: str, location: str) -> float:
        value = await self._history.lookup(source, location)
        if value is None:
            logger.warning(f"No accuracy history for {source} at {location}, using baseline {BASELINE_ACCURACY}")
            return BASELINE_ACCURACY
        return min(1.0, max(0.0, float(value)))

    async def annotate(self, record: WeatherRecord) -> WeatherRecord:
        return record.with_accuracy(await self.score(record.source, record.location))
