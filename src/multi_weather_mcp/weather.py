import logging
from typing import List, Optional

import httpx

from multi_weather_mcp.aggregator import WeatherAggregator
from multi_weather_mcp.config import Config
from multi_weather_mcp.errors import LocationNotFoundError
from multi_weather_mcp.location import LocationResolver, LocationSearchResult, OpenWeatherGeocoder
from multi_weather_mcp.models import AggregatedWeather, Coordinates, StoredWeatherRecord
from multi_weather_mcp.providers import build_providers
from multi_weather_mcp.scoring import AccuracyHistoryStore, AccuracyScorer
from multi_weather_mcp.storage import InMemoryLocationCache, InMemoryWeatherRecordStore, WeatherRecordStore

logger = logging.getLogger("multi_weather.weather")


class WeatherService:
    """Entry point for weather lookups by coordinates or by place name"""

    def __init__(
        self,
        aggregator: WeatherAggregator,
        resolver: LocationResolver,
        record_store: Optional[WeatherRecordStore] = None,
    ):
        self.aggregator = aggregator
        self.resolver = resolver
        self.record_store = record_store

    async def get_weather(self, latitude: float, longitude: float) -> AggregatedWeather:
        """Aggregate weather for coordinates and persist every scored record"""
        coords = Coordinates(latitude=latitude, longitude=longitude)
        result = await self.aggregator.aggregate(coords)
        await self._persist(result)
        return result

    async def get_weather_by_location(self, location: str) -> AggregatedWeather:
        """Resolve a place name to coordinates, then aggregate"""
        logger.info(f"=== Weather lookup for {location} ===")
        matches = await self.resolver.resolve(location)
        if not matches:
            raise LocationNotFoundError(location)

        place = matches[0]
        logger.info(f"Using {place.name} ({place.latitude}, {place.longitude}) for '{location}'")
        return await self.get_weather(place.latitude, place.longitude)

    async def search_locations(self, query: str) -> LocationSearchResult:
        return await self.resolver.search(query)

    async def get_history(self, location: str, source: Optional[str] = None) -> List[StoredWeatherRecord]:
        if self.record_store is None:
            return []
        return await self.record_store.history(location, source)

    async def _persist(self, result: AggregatedWeather) -> None:
        if self.record_store is None:
            return
        for record in result.sources:
            try:
                await self.record_store.save(record)
            except Exception as e:
                logger.error(f"Failed to save weather data from {record.source}: {str(e)}")


def build_service(
    config: Config,
    client: Optional[httpx.AsyncClient] = None,
    history: Optional[AccuracyHistoryStore] = None,
) -> WeatherService:
    """Wire providers, scorer, resolver and in-memory stores from configuration"""
    aggregator = WeatherAggregator(
        build_providers(config, client),
        scorer=AccuracyScorer(history),
        timeout=config.provider_timeout,
    )
    geocoder = OpenWeatherGeocoder(
        config.openweathermap_api_key,
        client=client,
        limit=config.geocoding_limit,
        timeout=config.provider_timeout,
    )
    resolver = LocationResolver(geocoder, InMemoryLocationCache())
    return WeatherService(aggregator, resolver, InMemoryWeatherRecordStore())
