from datetime import date, datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

SourceName = Literal["openweathermap", "weatherapi", "accuweather"]

# Configured iteration order; ties in accuracy resolve to the earliest entry
KNOWN_SOURCES: Tuple[str, ...] = ("openweathermap", "weatherapi", "accuweather")

# Degrees within which two locations are treated as the same place
LOCATION_TOLERANCE = 0.01


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Coordinates(BaseModel):
    """Geographic coordinates"""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class CurrentConditions(CamelModel):
    """Current conditions in imperial units (F, mph, miles, mb)"""

    temperature: int
    feels_like: int
    humidity: int
    wind_speed: int
    wind_direction: int
    visibility: int
    pressure: float
    uv_index: int
    condition: str
    description: str


class HourlyPoint(CamelModel):
    timestamp: datetime
    time: str
    temperature: int
    condition: str
    precipitation: int = Field(..., ge=0, le=100)
    icon: str


class DailyPoint(CamelModel):
    forecast_date: date
    day: str
    condition: str
    description: str
    high_temp: int
    low_temp: int
    precipitation: int = Field(..., ge=0, le=100)
    icon: str


class WeatherRecord(CamelModel):
    """Canonical weather record produced by a provider adapter.

    Records are immutable. The accuracy score is attached in a second pass
    through with_accuracy, which returns a new record.
    """

    source: SourceName
    location: str
    latitude: float
    longitude: float
    current: CurrentConditions
    hourly: List[HourlyPoint] = Field(default_factory=list, max_length=24)
    daily: List[DailyPoint] = Field(default_factory=list, max_length=10)
    accuracy: Optional[float] = Field(None, ge=0, le=1)
    fetched_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _check_chronological(self) -> "WeatherRecord":
        hours = [point.timestamp for point in self.hourly]
        if hours != sorted(hours):
            raise ValueError("hourly forecast must be in chronological order")
        days = [point.forecast_date for point in self.daily]
        if days != sorted(days):
            raise ValueError("daily forecast must be in chronological order")
        return self

    def with_accuracy(self, accuracy: float) -> "WeatherRecord":
        return self.model_copy(update={"accuracy": accuracy})


class StoredWeatherRecord(WeatherRecord):
    """Weather record as persisted by a record store"""

    id: str


class Location(CamelModel):
    id: Optional[str] = None
    name: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    country: Optional[str] = None
    state: Optional[str] = None
    created_at: Optional[datetime] = None

    def is_near(self, latitude: float, longitude: float, tolerance: float = LOCATION_TOLERANCE) -> bool:
        """True when both coordinate deltas are strictly below the tolerance"""
        return abs(self.latitude - latitude) < tolerance and abs(self.longitude - longitude) < tolerance

    def matches_text(self, text: str) -> bool:
        """Case-insensitive substring match on name, country or state"""
        needle = text.lower()
        fields = (self.name, self.country, self.state)
        return any(value and needle in value.lower() for value in fields)


class AggregatedWeather(BaseModel):
    """Outcome of one aggregation cycle.

    ``best`` always belongs to ``sources``. There is no blending step, so
    ``aggregated`` is the same record as ``best``.
    """

    sources: List[WeatherRecord]
    best: WeatherRecord
    failed_sources: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_best_is_member(self) -> "AggregatedWeather":
        if not self.sources:
            raise ValueError("an aggregate needs at least one source")
        if not any(record is self.best or record == self.best for record in self.sources):
            raise ValueError("best record must be one of the sources")
        return self

    @property
    def all(self) -> List[WeatherRecord]:
        return self.sources

    @property
    def aggregated(self) -> WeatherRecord:
        return self.best

    def to_payload(self) -> Dict[str, Any]:
        best = self.best.to_payload()
        return {
            "sources": [record.to_payload() for record in self.sources],
            "mostAccurate": best,
            "aggregated": best,
            "failedSources": list(self.failed_sources),
        }
