import asyncio
import logging
from datetime import date
from typing import Any, Dict, List

from multi_weather_mcp.models import Coordinates, CurrentConditions, DailyPoint, HourlyPoint, WeatherRecord
from multi_weather_mcp.providers.base import WeatherProvider, day_label, format_location, from_epoch, hour_label
from multi_weather_mcp.units import (
    kelvin_to_fahrenheit,
    meters_to_miles,
    mps_to_mph,
    probability_to_percent,
    round_half_up,
)

logger = logging.getLogger("multi_weather.providers.openweathermap")


class OpenWeatherMapProvider(WeatherProvider):
    """OpenWeatherMap current weather plus the 5 day / 3 hour forecast.

    Both endpoints are queried in SI units (Kelvin, m/s, meters) and
    converted here.
    """

    name = "openweathermap"

    BASE_URL = "https://api.openweathermap.org/data/2.5"
    MAX_HOURLY = 24
    MAX_DAILY = 10

    async def _fetch(self, coords: Coordinates) -> WeatherRecord:
        params = {
            "lat": coords.latitude,
            "lon": coords.longitude,
            "appid": self._api_key,
            "units": "standard",
        }
        async with self._session() as client:
            current, forecast = await asyncio.gather(
                self._get_json(client, f"{self.BASE_URL}/weather", params),
                self._get_json(client, f"{self.BASE_URL}/forecast", params),
            )

        offset = int(forecast.get("city", {}).get("timezone", current.get("timezone", 0)) or 0)
        slots = sorted(forecast["list"], key=lambda item: item["dt"])

        return WeatherRecord(
            source=self.name,
            location=format_location(current.get("name"), current.get("sys", {}).get("country"), coords=coords),
            latitude=coords.latitude,
            longitude=coords.longitude,
            current=self._current(current),
            hourly=[self._hourly(slot, offset) for slot in slots[: self.MAX_HOURLY]],
            daily=self._daily(slots, offset),
        )

    def _current(self, data: Dict[str, Any]) -> CurrentConditions:
        main = data["main"]
        wind = data.get("wind") or {}
        weather = data["weather"][0]
        return CurrentConditions(
            temperature=round_half_up(kelvin_to_fahrenheit(main["temp"])),
            feels_like=round_half_up(kelvin_to_fahrenheit(main.get("feels_like", main["temp"]))),
            humidity=round_half_up(main.get("humidity")),
            wind_speed=round_half_up(mps_to_mph(wind.get("speed", 0.0))),
            wind_direction=round_half_up(wind.get("deg")),
            visibility=round_half_up(meters_to_miles(data.get("visibility", 0))),
            pressure=main["pressure"],
            # UV index is not part of the free tier
            uv_index=0,
            condition=weather["main"],
            description=weather.get("description", weather["main"]),
        )

    def _hourly(self, slot: Dict[str, Any], offset: int) -> HourlyPoint:
        moment = from_epoch(slot["dt"], offset)
        weather = slot["weather"][0]
        return HourlyPoint(
            timestamp=moment,
            time=hour_label(moment),
            temperature=round_half_up(kelvin_to_fahrenheit(slot["main"]["temp"])),
            condition=weather["main"],
            precipitation=probability_to_percent(slot.get("pop")),
            icon=weather.get("icon", ""),
        )

    def _daily(self, slots: List[Dict[str, Any]], offset: int) -> List[DailyPoint]:
        """Collapse three-hour slots into one summary per local calendar day"""
        by_day: Dict[date, List[Dict[str, Any]]] = {}
        for slot in slots:
            by_day.setdefault(from_epoch(slot["dt"], offset).date(), []).append(slot)

        daily = []
        for index, (day, day_slots) in enumerate(list(by_day.items())[: self.MAX_DAILY]):
            midday = min(day_slots, key=lambda s: abs(from_epoch(s["dt"], offset).hour - 12))
            weather = midday["weather"][0]
            high = max(s["main"].get("temp_max", s["main"]["temp"]) for s in day_slots)
            low = min(s["main"].get("temp_min", s["main"]["temp"]) for s in day_slots)
            daily.append(
                DailyPoint(
                    forecast_date=day,
                    day=day_label(index, day),
                    condition=weather["main"],
                    description=weather.get("description", weather["main"]),
                    high_temp=round_half_up(kelvin_to_fahrenheit(high)),
                    low_temp=round_half_up(kelvin_to_fahrenheit(low)),
                    precipitation=max(probability_to_percent(s.get("pop")) for s in day_slots),
                    icon=weather.get("icon", ""),
                )
            )

        logger.debug(f"Grouped {len(slots)} forecast slots into {len(daily)} days")
        return daily
