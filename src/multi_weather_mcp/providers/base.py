import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Optional

import httpx
from pydantic import ValidationError

from multi_weather_mcp.errors import ProviderError
from multi_weather_mcp.models import Coordinates, WeatherRecord

logger = logging.getLogger("multi_weather.providers")

# Response shapes that count as a malformed payload rather than a bug
MALFORMED_RESPONSE_ERRORS = (AttributeError, KeyError, IndexError, TypeError, ValueError, ValidationError)


class WeatherProvider(ABC):
    """Adapter turning one provider's API into canonical weather records.

    Subclasses implement ``_fetch``. ``fetch`` guarantees that the only
    exception leaving the adapter is ``ProviderError``.
    """

    name: str
    timeout: float = 10.0

    def __init__(self, api_key: str, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None):
        self._api_key = api_key
        self._client = client
        if timeout is not None:
            self.timeout = timeout

    async def fetch(self, coords: Coordinates) -> WeatherRecord:
        """Fetch and normalize weather for the given coordinates"""
        logger.info(f"Fetching weather from {self.name} for ({coords.latitude}, {coords.longitude})")
        try:
            record = await self._fetch(coords)
        except ProviderError:
            raise
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in (401, 403):
                raise ProviderError(self.name, e, f"authentication failed ({status})") from e
            raise ProviderError(self.name, e, f"HTTP {status} from {e.request.url.host}") from e
        except httpx.HTTPError as e:
            raise ProviderError(self.name, e) from e
        except MALFORMED_RESPONSE_ERRORS as e:
            raise ProviderError(self.name, e, f"malformed response: {e}") from e

        if record.source != self.name:
            raise ProviderError(self.name, message=f"adapter produced a record for '{record.source}'")
        logger.debug(f"{self.name} returned {len(record.hourly)} hourly and {len(record.daily)} daily points")
        return record

    @abstractmethod
    async def _fetch(self, coords: Coordinates) -> WeatherRecord:
        ...

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        """Use the shared client when one was injected, otherwise a short-lived one"""
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def _get_json(self, client: httpx.AsyncClient, url: str, params: dict):
        response = await client.get(url, params=params)
        response.raise_for_status()
        return response.json()


def format_location(*parts: Optional[str], coords: Optional[Coordinates] = None) -> str:
    """Join whatever place metadata a provider returned into a display string"""
    label = ", ".join(part.strip() for part in parts if part and part.strip())
    if label:
        return label
    if coords is not None:
        return f"{coords.latitude:.4f}, {coords.longitude:.4f}"
    return "Unknown location"


def hour_label(moment: datetime) -> str:
    """'3 PM' style label for a forecast hour"""
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour} {suffix}"


def day_label(index: int, moment) -> str:
    """'Today' for the first forecast day, abbreviated weekday after that"""
    if index == 0:
        return "Today"
    return moment.strftime("%a")


def from_epoch(seconds: int, offset_seconds: int = 0) -> datetime:
    """Epoch seconds to an aware datetime in the location's UTC offset"""
    tz = timezone(timedelta(seconds=offset_seconds))
    return datetime.fromtimestamp(int(seconds), tz=tz)
