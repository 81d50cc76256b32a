from typing import Optional, Sequence


class WeatherError(Exception):
    """Base class for weather aggregation errors"""


class ProviderError(WeatherError):
    """A single provider was unreachable, rejected our key or returned garbage"""

    def __init__(self, source: str, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.source = source
        self.cause = cause
        detail = message or (f"{type(cause).__name__}: {cause}" if cause is not None else "unknown error")
        super().__init__(f"{source}: {detail}")


class AllSourcesFailed(WeatherError):
    """Every configured provider failed during one aggregation cycle"""

    def __init__(self, failures: Sequence[ProviderError]):
        self.failures = list(failures)
        sources = ", ".join(failure.source for failure in self.failures) or "none configured"
        super().__init__(f"Failed to fetch weather data from all sources ({sources})")


class GeocodingUnavailable(WeatherError):
    """The geocoding provider could not answer a search"""

    def __init__(self, query: str, cause: Optional[BaseException] = None):
        self.query = query
        self.cause = cause
        super().__init__(f"Geocoding unavailable for '{query}': {cause}")


class DuplicateSaveError(WeatherError):
    """A location near an already cached one was inserted"""

    def __init__(self, location, existing=None):
        self.location = location
        self.existing = existing
        super().__init__(
            f"Location '{location.name}' ({location.latitude}, {location.longitude}) is already cached"
        )


class LocationNotFoundError(WeatherError, ValueError):
    """A free-text location did not resolve to any coordinates"""

    def __init__(self, query: str):
        self.query = query
        super().__init__(f"Location '{query}' not found")
