import logging
from dataclasses import dataclass, field
from typing import List, Optional

import httpx
from pydantic import ValidationError

from multi_weather_mcp.errors import DuplicateSaveError, GeocodingUnavailable
from multi_weather_mcp.models import Location
from multi_weather_mcp.storage import LocationCacheStore

logger = logging.getLogger("multi_weather.location")


class OpenWeatherGeocoder:
    """Free-text place search using the OpenWeatherMap direct geocoding API"""

    GEOCODING_URL = "https://api.openweathermap.org/geo/1.0/direct"

    def __init__(self, api_key: str, client: Optional[httpx.AsyncClient] = None, limit: int = 5, timeout: float = 10.0):
        self._api_key = api_key
        self._client = client
        self.limit = limit
        self.timeout = timeout

    async def geocode(self, query: str) -> List[Location]:
        """Get candidate locations for a query, raising GeocodingUnavailable on any failure"""
        params = {"q": query, "limit": self.limit, "appid": self._api_key}
        try:
            if self._client is not None:
                response = await self._client.get(self.GEOCODING_URL, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.GEOCODING_URL, params=params)
            response.raise_for_status()

            return [
                Location(
                    name=place["name"],
                    latitude=float(place["lat"]),
                    longitude=float(place["lon"]),
                    country=place.get("country"),
                    state=place.get("state"),
                )
                for place in response.json()
            ]

        except (httpx.HTTPError, KeyError, TypeError, ValueError, ValidationError) as e:
            logger.error(f"Error geocoding '{query}': {str(e)}")
            raise GeocodingUnavailable(query, e) from e


@dataclass
class LocationSearchResult:
    """Outcome of a location search, including the failures that were absorbed"""

    locations: List[Location]
    from_cache: bool = False
    geocoding_error: Optional[GeocodingUnavailable] = None
    duplicates: List[DuplicateSaveError] = field(default_factory=list)


class LocationResolver:
    """Resolves free text to locations, falling back to the cache when geocoding is down"""

    def __init__(self, geocoder: OpenWeatherGeocoder, cache: LocationCacheStore):
        self.geocoder = geocoder
        self.cache = cache

    async def resolve(self, query: str) -> List[Location]:
        return (await self.search(query)).locations

    async def search(self, query: str) -> LocationSearchResult:
        query = query.strip() if query else ""
        if not query:
            raise ValueError("A non-empty search query is required")

        try:
            locations = await self.geocoder.geocode(query)
        except GeocodingUnavailable as e:
            logger.warning(f"Geocoding unavailable, searching cached locations for '{query}'")
            cached = await self.cache.search_by_text(query)
            return LocationSearchResult(locations=cached, from_cache=True, geocoding_error=e)

        result = LocationSearchResult(locations=locations)
        for location in locations:
            try:
                await self._remember(location)
            except DuplicateSaveError as e:
                logger.debug(f"Skipping duplicate cache entry: {e}")
                result.duplicates.append(e)

        logger.info(f"Found {len(locations)} locations for '{query}'")
        return result

    async def _remember(self, location: Location) -> Location:
        """Update the cached entry for the same place, or insert a new one"""
        existing = await self.cache.find(location.latitude, location.longitude)
        if existing is not None:
            location = location.model_copy(update={"id": existing.id})
        return await self.cache.save(location)
