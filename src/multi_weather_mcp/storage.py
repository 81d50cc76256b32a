import logging
import uuid
from typing import Dict, List, Optional, Protocol

from multi_weather_mcp.errors import DuplicateSaveError
from multi_weather_mcp.models import LOCATION_TOLERANCE, Location, StoredWeatherRecord, WeatherRecord, utcnow

logger = logging.getLogger("multi_weather.storage")


class LocationCacheStore(Protocol):
    async def find(self, latitude: float, longitude: float, tolerance: float = LOCATION_TOLERANCE) -> Optional[Location]: ...

    async def save(self, location: Location) -> Location: ...

    async def search_by_text(self, text: str) -> List[Location]: ...


class WeatherRecordStore(Protocol):
    async def save(self, record: WeatherRecord) -> StoredWeatherRecord: ...

    async def history(self, location: str, source: Optional[str] = None) -> List[StoredWeatherRecord]: ...


class InMemoryLocationCache:
    """Process-local location cache.

    ``save`` inserts new locations and replaces the entry when the location
    carries the id of one already stored. Inserting a location near an
    existing entry raises ``DuplicateSaveError``.
    """

    def __init__(self):
        self._locations: Dict[str, Location] = {}

    def __len__(self) -> int:
        return len(self._locations)

    async def find(self, latitude: float, longitude: float, tolerance: float = LOCATION_TOLERANCE) -> Optional[Location]:
        for location in self._locations.values():
            if location.is_near(latitude, longitude, tolerance):
                return location
        return None

    async def save(self, location: Location) -> Location:
        if location.id is not None and location.id in self._locations:
            stored = location.model_copy(update={"created_at": self._locations[location.id].created_at})
            self._locations[location.id] = stored
            logger.debug(f"Updated cached location {stored.name} ({stored.id})")
            return stored

        existing = await self.find(location.latitude, location.longitude)
        if existing is not None:
            raise DuplicateSaveError(location, existing)

        stored = location.model_copy(update={"id": location.id or str(uuid.uuid4()), "created_at": utcnow()})
        self._locations[stored.id] = stored
        logger.debug(f"Cached location {stored.name} ({stored.id})")
        return stored

    async def search_by_text(self, text: str) -> List[Location]:
        return [location for location in self._locations.values() if location.matches_text(text)]


class InMemoryWeatherRecordStore:
    """Process-local store of every scored record"""

    def __init__(self):
        self._records: Dict[str, StoredWeatherRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def save(self, record: WeatherRecord) -> StoredWeatherRecord:
        stored = StoredWeatherRecord(id=str(uuid.uuid4()), **record.model_dump())
        self._records[stored.id] = stored
        return stored

    async def history(self, location: str, source: Optional[str] = None) -> List[StoredWeatherRecord]:
        """Records for a location, newest first"""
        matches = [
            record
            for record in self._records.values()
            if record.location == location and (source is None or record.source == source)
        ]
        return sorted(matches, key=lambda record: record.fetched_at, reverse=True)
