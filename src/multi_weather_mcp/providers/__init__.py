"""Weather provider adapters."""

from typing import List, Optional

import httpx

from multi_weather_mcp.config import Config
from multi_weather_mcp.providers.accuweather import AccuWeatherProvider
from multi_weather_mcp.providers.base import WeatherProvider
from multi_weather_mcp.providers.openweathermap import OpenWeatherMapProvider
from multi_weather_mcp.providers.weatherapi import WeatherApiProvider

__all__ = [
    "AccuWeatherProvider",
    "OpenWeatherMapProvider",
    "WeatherApiProvider",
    "WeatherProvider",
    "build_providers",
]


def build_providers(config: Config, client: Optional[httpx.AsyncClient] = None) -> List[WeatherProvider]:
    """All providers in the order they are queried and ranked"""
    timeout = config.provider_timeout
    return [
        OpenWeatherMapProvider(config.openweathermap_api_key, client=client, timeout=timeout),
        WeatherApiProvider(config.weatherapi_key, client=client, timeout=timeout),
        AccuWeatherProvider(config.accuweather_api_key, client=client, timeout=timeout),
    ]
