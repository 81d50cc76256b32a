import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List

from multi_weather_mcp.models import Coordinates, CurrentConditions, DailyPoint, HourlyPoint, WeatherRecord
from multi_weather_mcp.providers.base import WeatherProvider, day_label, format_location, from_epoch, hour_label
from multi_weather_mcp.units import clamp_percent, round_half_up

logger = logging.getLogger("multi_weather.providers.weatherapi")


class WeatherApiProvider(WeatherProvider):
    """WeatherAPI.com forecast endpoint, which already reports imperial values"""

    name = "weatherapi"

    BASE_URL = "https://api.weatherapi.com/v1"
    FORECAST_DAYS = 10
    MAX_HOURLY = 24

    async def _fetch(self, coords: Coordinates) -> WeatherRecord:
        params = {
            "key": self._api_key,
            "q": f"{coords.latitude},{coords.longitude}",
            "days": self.FORECAST_DAYS,
            "aqi": "no",
            "alerts": "no",
        }
        async with self._session() as client:
            data = await self._get_json(client, f"{self.BASE_URL}/forecast.json", params)

        place = data["location"]
        forecast_days = sorted(data["forecast"]["forecastday"], key=lambda day: day["date"])
        offset = self._utc_offset(place)

        return WeatherRecord(
            source=self.name,
            location=format_location(place.get("name"), place.get("country"), coords=coords),
            latitude=coords.latitude,
            longitude=coords.longitude,
            current=self._current(data["current"]),
            hourly=self._hourly(forecast_days, place.get("localtime_epoch"), offset),
            daily=[self._daily(index, day) for index, day in enumerate(forecast_days[: self.FORECAST_DAYS])],
        )

    def _utc_offset(self, place: Dict[str, Any]) -> int:
        """Seconds east of UTC, derived from the local clock the API reports"""
        epoch = place.get("localtime_epoch")
        local = place.get("localtime")
        if epoch is None or not local:
            return 0
        local_time = datetime.strptime(local, "%Y-%m-%d %H:%M")
        utc_time = datetime.fromtimestamp(int(epoch), tz=timezone.utc).replace(tzinfo=None)
        # Offsets come in quarter hours; the local clock drops seconds
        return round((local_time - utc_time).total_seconds() / 900) * 900

    def _current(self, current: Dict[str, Any]) -> CurrentConditions:
        condition = current["condition"]["text"]
        return CurrentConditions(
            temperature=round_half_up(current["temp_f"]),
            feels_like=round_half_up(current.get("feelslike_f", current["temp_f"])),
            humidity=round_half_up(current.get("humidity")),
            wind_speed=round_half_up(current.get("wind_mph")),
            wind_direction=round_half_up(current.get("wind_degree")),
            visibility=round_half_up(current.get("vis_miles")),
            pressure=current["pressure_mb"],
            uv_index=round_half_up(current.get("uv")),
            condition=condition,
            description=condition,
        )

    def _hourly(self, forecast_days: List[Dict[str, Any]], now_epoch, offset: int) -> List[HourlyPoint]:
        hours = [hour for day in forecast_days for hour in day.get("hour", [])]
        if now_epoch is not None:
            # Keep the hour containing "now" and everything after it
            hours = [hour for hour in hours if int(hour["time_epoch"]) + 3600 > int(now_epoch)]
        hours.sort(key=lambda hour: int(hour["time_epoch"]))
        logger.debug(f"{len(hours)} upcoming hours available, keeping {min(len(hours), self.MAX_HOURLY)}")

        points = []
        for hour in hours[: self.MAX_HOURLY]:
            moment = from_epoch(hour["time_epoch"], offset)
            points.append(
                HourlyPoint(
                    timestamp=moment,
                    time=hour_label(moment),
                    temperature=round_half_up(hour["temp_f"]),
                    condition=hour["condition"]["text"],
                    precipitation=clamp_percent(max(hour.get("chance_of_rain", 0), hour.get("chance_of_snow", 0))),
                    icon=hour["condition"].get("icon", ""),
                )
            )
        return points

    def _daily(self, index: int, forecast_day: Dict[str, Any]) -> DailyPoint:
        day = forecast_day["day"]
        forecast_date = date.fromisoformat(forecast_day["date"])
        condition = day["condition"]["text"]
        return DailyPoint(
            forecast_date=forecast_date,
            day=day_label(index, forecast_date),
            condition=condition,
            description=condition,
            high_temp=round_half_up(day["maxtemp_f"]),
            low_temp=round_half_up(day["mintemp_f"]),
            precipitation=clamp_percent(
                max(day.get("daily_chance_of_rain", 0), day.get("daily_chance_of_snow", 0))
            ),
            icon=day["condition"].get("icon", ""),
        )
