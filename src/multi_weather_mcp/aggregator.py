import asyncio
import logging
from typing import List, Optional, Sequence, Union

from multi_weather_mcp.errors import AllSourcesFailed, ProviderError
from multi_weather_mcp.models import KNOWN_SOURCES, AggregatedWeather, Coordinates, WeatherRecord
from multi_weather_mcp.providers.base import WeatherProvider
from multi_weather_mcp.scoring import AccuracyScorer
from multi_weather_mcp.selector import select_best

logger = logging.getLogger("multi_weather.aggregator")


class WeatherAggregator:
    """Fans one request out to every provider and ranks what comes back.

    All providers run concurrently and the aggregator waits for every one of
    them to settle. A failed or stalled provider contributes nothing; only an
    empty result set fails the request.
    """

    def __init__(
        self,
        providers: Sequence[WeatherProvider],
        scorer: Optional[AccuracyScorer] = None,
        timeout: float = 10.0,
    ):
        self.providers = list(providers)
        self.scorer = scorer or AccuracyScorer()
        self.timeout = timeout

    async def aggregate(self, coords: Coordinates) -> AggregatedWeather:
        logger.info(
            f"Aggregating weather for ({coords.latitude}, {coords.longitude}) from {len(self.providers)} providers"
        )
        outcomes = await asyncio.gather(*(self._settle(provider, coords) for provider in self.providers))

        records: List[WeatherRecord] = []
        failures: List[ProviderError] = []
        for outcome in outcomes:
            if isinstance(outcome, ProviderError):
                failures.append(outcome)
            elif outcome.source not in KNOWN_SOURCES:
                logger.error(f"Dropping record from unknown source '{outcome.source}'")
                failures.append(ProviderError(outcome.source, message="unknown source"))
            else:
                records.append(outcome)

        if not records:
            logger.error(f"All {len(failures)} weather providers failed")
            raise AllSourcesFailed(failures)

        scored = await asyncio.gather(*(self.scorer.annotate(record) for record in records))
        result = select_best(scored, failed_sources=[failure.source for failure in failures])
        logger.info(
            f"{len(result.sources)} of {len(self.providers)} providers answered, "
            f"best is {result.best.source} ({result.best.accuracy})"
        )
        return result

    async def _settle(self, provider: WeatherProvider, coords: Coordinates) -> Union[WeatherRecord, ProviderError]:
        """Run one provider, turning any failure or timeout into a ProviderError value"""
        try:
            return await asyncio.wait_for(provider.fetch(coords), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            failure = ProviderError(provider.name, e, f"no response within {self.timeout}s")
        except ProviderError as e:
            failure = e
        except Exception as e:
            failure = ProviderError(provider.name, e)
        logger.warning(f"Weather provider {provider.name} failed: {failure}")
        return failure
