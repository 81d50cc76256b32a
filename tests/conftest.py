import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from multi_weather_mcp.models import CurrentConditions, DailyPoint, HourlyPoint, WeatherRecord
from multi_weather_mcp.providers.base import WeatherProvider

SEATTLE = (47.6062, -122.3321)

# 2024-05-01 12:00 UTC, 05:00 in Seattle
NOW_EPOCH = 1714564800
PDT = -7 * 3600


def openweathermap_current(temp_kelvin: float = 288.15) -> dict:
    return {
        "coord": {"lat": SEATTLE[0], "lon": SEATTLE[1]},
        "weather": [{"main": "Clouds", "description": "overcast clouds", "icon": "04d"}],
        "main": {"temp": temp_kelvin, "feels_like": temp_kelvin - 1.0, "pressure": 1016, "humidity": 72},
        "visibility": 10000,
        "wind": {"speed": 4.0, "deg": 200},
        "dt": NOW_EPOCH,
        "sys": {"country": "US"},
        "timezone": PDT,
        "name": "Seattle",
    }


def openweathermap_forecast(slots: int = 40) -> dict:
    return {
        "list": [
            {
                "dt": NOW_EPOCH + i * 10800,
                "main": {"temp": 285.0 + (i % 8) * 0.5, "temp_min": 284.0 + (i % 8) * 0.5, "temp_max": 286.0 + (i % 8) * 0.5},
                "weather": [{"main": "Rain", "description": "light rain", "icon": "10d"}],
                "pop": (i % 5) / 5,
            }
            for i in range(slots)
        ],
        "city": {"name": "Seattle", "country": "US", "timezone": PDT},
    }


def weatherapi_forecast(temp_f: float = 59.0, days: int = 3) -> dict:
    # Local midnight of 2024-05-01 in Seattle
    midnight = NOW_EPOCH - 5 * 3600
    forecast_days = []
    for d in range(days):
        day_start = midnight + d * 86400
        forecast_days.append(
            {
                "date": (datetime(2024, 5, 1) + timedelta(days=d)).strftime("%Y-%m-%d"),
                "day": {
                    "maxtemp_f": 64.4,
                    "mintemp_f": 49.6,
                    "daily_chance_of_rain": 80,
                    "daily_chance_of_snow": 0,
                    "condition": {"text": "Patchy rain possible", "icon": "//cdn.weatherapi.com/176.png"},
                },
                "hour": [
                    {
                        "time_epoch": day_start + h * 3600,
                        "time": (datetime(2024, 5, 1 + d, h)).strftime("%Y-%m-%d %H:%M"),
                        "temp_f": 50.0 + h * 0.5,
                        "condition": {"text": "Cloudy", "icon": "//cdn.weatherapi.com/119.png"},
                        "chance_of_rain": 40,
                        "chance_of_snow": 0,
                    }
                    for h in range(24)
                ],
            }
        )
    return {
        "location": {
            "name": "Seattle",
            "region": "Washington",
            "country": "United States of America",
            "lat": 47.61,
            "lon": -122.33,
            "localtime_epoch": NOW_EPOCH,
            "localtime": "2024-05-01 05:00",
        },
        "current": {
            "temp_f": temp_f,
            "feelslike_f": temp_f - 1.5,
            "condition": {"text": "Partly cloudy", "icon": "//cdn.weatherapi.com/116.png"},
            "wind_mph": 8.7,
            "wind_degree": 210,
            "pressure_mb": 1015.0,
            "humidity": 70,
            "vis_miles": 9.0,
            "uv": 3.0,
        },
        "forecast": {"forecastday": forecast_days},
    }


def accuweather_geoposition() -> dict:
    return {"Key": "351409", "LocalizedName": "Seattle", "Country": {"LocalizedName": "United States"}}


def accuweather_current(temp_f: float = 59.0) -> list:
    return [
        {
            "WeatherText": "Mostly cloudy",
            "WeatherIcon": 6,
            "Temperature": {"Metric": {"Value": 15.0}, "Imperial": {"Value": temp_f}},
            "RealFeelTemperature": {"Metric": {"Value": 14.0}, "Imperial": {"Value": temp_f - 2.0}},
            "RelativeHumidity": 68,
            "Wind": {"Direction": {"Degrees": 225}, "Speed": {"Imperial": {"Value": 9.2}}},
            "UVIndex": 2,
            "Visibility": {"Imperial": {"Value": 10.0}},
            "Pressure": {"Metric": {"Value": 1014.0}, "Imperial": {"Value": 29.94}},
        }
    ]


def accuweather_daily(days: int = 10) -> dict:
    return {
        "DailyForecasts": [
            {
                "Date": (datetime(2024, 5, 1, 7, tzinfo=timezone(timedelta(hours=-7))) + timedelta(days=d)).isoformat(),
                "Temperature": {"Minimum": {"Value": 48.0}, "Maximum": {"Value": 61.5}},
                "Day": {
                    "Icon": 12,
                    "IconPhrase": "Showers",
                    "LongPhrase": "Cloudy with a couple of showers",
                    "PrecipitationProbability": 62,
                },
            }
            for d in range(days)
        ]
    }


def provider_routes() -> dict:
    """Successful replies for every endpoint, keyed by URL path prefix"""
    return {
        "/data/2.5/weather": openweathermap_current(),
        "/data/2.5/forecast": openweathermap_forecast(),
        "/v1/forecast.json": weatherapi_forecast(),
        "/locations/v1/cities/geoposition/search": accuweather_geoposition(),
        "/currentconditions/v1/": accuweather_current(),
        "/forecasts/v1/daily/10day/": accuweather_daily(),
        "/geo/1.0/direct": [],
    }


def mock_client(routes: dict) -> httpx.AsyncClient:
    """AsyncClient answering from ``routes``.

    A route value may be a JSON payload, an int status code, or a callable
    taking the request (it may raise to simulate a transport error).
    """

    def handler(request: httpx.Request) -> httpx.Response:
        for path, reply in routes.items():
            if request.url.path.startswith(path):
                if callable(reply):
                    reply = reply(request)
                if isinstance(reply, httpx.Response):
                    return reply
                if isinstance(reply, int):
                    return httpx.Response(reply, json={"message": "error"})
                return httpx.Response(200, json=reply)
        return httpx.Response(404, json={"message": f"no route for {request.url.path}"})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def connection_refused(request: httpx.Request):
    raise httpx.ConnectError("connection refused", request=request)


def make_record(source: str, location: str = "Seattle, US", temperature: int = 59) -> WeatherRecord:
    start = datetime(2024, 5, 1, 5, tzinfo=timezone(timedelta(hours=-7)))
    return WeatherRecord(
        source=source,
        location=location,
        latitude=SEATTLE[0],
        longitude=SEATTLE[1],
        current=CurrentConditions(
            temperature=temperature,
            feels_like=temperature - 1,
            humidity=70,
            wind_speed=9,
            wind_direction=200,
            visibility=10,
            pressure=1016.0,
            uv_index=2,
            condition="Clouds",
            description="overcast clouds",
        ),
        hourly=[
            HourlyPoint(
                timestamp=start + timedelta(hours=i),
                time=f"{5 + i} AM",
                temperature=temperature + i,
                condition="Clouds",
                precipitation=10,
                icon="04d",
            )
            for i in range(3)
        ],
        daily=[
            DailyPoint(
                forecast_date=(start + timedelta(days=i)).date(),
                day="Today" if i == 0 else (start + timedelta(days=i)).strftime("%a"),
                condition="Rain",
                description="light rain",
                high_temp=64,
                low_temp=50,
                precipitation=60,
                icon="10d",
            )
            for i in range(2)
        ],
    )


class StubProvider(WeatherProvider):
    """Provider returning a canned record, an error, or nothing for a while"""

    def __init__(self, name: str, record=None, error: Exception = None, delay: float = 0.0):
        super().__init__(api_key="test")
        self.name = name
        self.record = record
        self.error = error
        self.delay = delay
        self.calls = 0

    async def _fetch(self, coords):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.record if self.record is not None else make_record(self.name)


@pytest.fixture
def routes():
    return provider_routes()
