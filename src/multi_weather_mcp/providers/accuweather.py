import asyncio
import logging
from datetime import datetime
from typing import Any, Dict

from multi_weather_mcp.models import Coordinates, CurrentConditions, DailyPoint, WeatherRecord
from multi_weather_mcp.providers.base import WeatherProvider, day_label, format_location
from multi_weather_mcp.units import clamp_percent, inhg_to_mb, round_half_up

logger = logging.getLogger("multi_weather.providers.accuweather")


class AccuWeatherProvider(WeatherProvider):
    """AccuWeather current conditions and 10 day forecast.

    AccuWeather addresses forecasts by location key, so every fetch starts with
    a geoposition lookup. Hourly data needs a separate paid call and is left
    empty.
    """

    name = "accuweather"

    BASE_URL = "https://dataservice.accuweather.com"

    async def _fetch(self, coords: Coordinates) -> WeatherRecord:
        async with self._session() as client:
            place = await self._get_json(
                client,
                f"{self.BASE_URL}/locations/v1/cities/geoposition/search",
                {"apikey": self._api_key, "q": f"{coords.latitude},{coords.longitude}"},
            )
            location_key = place["Key"]
            logger.debug(f"Resolved ({coords.latitude}, {coords.longitude}) to location key {location_key}")

            current, forecast = await asyncio.gather(
                self._get_json(
                    client,
                    f"{self.BASE_URL}/currentconditions/v1/{location_key}",
                    {"apikey": self._api_key, "details": "true"},
                ),
                self._get_json(
                    client,
                    f"{self.BASE_URL}/forecasts/v1/daily/10day/{location_key}",
                    {"apikey": self._api_key, "details": "true", "metric": "false"},
                ),
            )

        daily_forecasts = sorted(forecast["DailyForecasts"], key=lambda day: day["Date"])
        return WeatherRecord(
            source=self.name,
            location=format_location(
                place.get("LocalizedName"), (place.get("Country") or {}).get("LocalizedName"), coords=coords
            ),
            latitude=coords.latitude,
            longitude=coords.longitude,
            current=self._current(current[0]),
            hourly=[],
            daily=[self._daily(index, day) for index, day in enumerate(daily_forecasts[:10])],
        )

    def _current(self, data: Dict[str, Any]) -> CurrentConditions:
        wind = data.get("Wind") or {}
        return CurrentConditions(
            temperature=round_half_up(data["Temperature"]["Imperial"]["Value"]),
            feels_like=round_half_up(
                (data.get("RealFeelTemperature") or data["Temperature"])["Imperial"]["Value"]
            ),
            humidity=round_half_up(data.get("RelativeHumidity")),
            wind_speed=round_half_up(wind.get("Speed", {}).get("Imperial", {}).get("Value")),
            wind_direction=round_half_up(wind.get("Direction", {}).get("Degrees")),
            visibility=round_half_up(data.get("Visibility", {}).get("Imperial", {}).get("Value")),
            pressure=self._pressure_mb(data.get("Pressure") or {}),
            uv_index=round_half_up(data.get("UVIndex")),
            condition=data["WeatherText"],
            description=data["WeatherText"],
        )

    def _pressure_mb(self, pressure: Dict[str, Any]) -> float:
        """The imperial block reports inHg; prefer the metric millibar value"""
        metric = pressure.get("Metric", {}).get("Value")
        if metric is not None:
            return float(metric)
        imperial = pressure.get("Imperial", {}).get("Value")
        if imperial is None:
            raise ValueError("current conditions carry no pressure reading")
        return round(inhg_to_mb(imperial), 1)

    def _daily(self, index: int, data: Dict[str, Any]) -> DailyPoint:
        forecast_date = datetime.fromisoformat(data["Date"]).date()
        day = data["Day"]
        return DailyPoint(
            forecast_date=forecast_date,
            day=day_label(index, forecast_date),
            condition=day["IconPhrase"],
            description=day.get("LongPhrase") or day["IconPhrase"],
            high_temp=round_half_up(data["Temperature"]["Maximum"]["Value"]),
            low_temp=round_half_up(data["Temperature"]["Minimum"]["Value"]),
            precipitation=clamp_percent(day.get("PrecipitationProbability")),
            icon=str(day.get("Icon", "")),
        )
