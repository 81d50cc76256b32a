from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    openweathermap_api_key: str = Field(
        "demo_key",
        validation_alias=AliasChoices("OPENWEATHER_API_KEY", "OPENWEATHERMAP_API_KEY"),
    )
    weatherapi_key: str = Field(
        "demo_key",
        validation_alias=AliasChoices("WEATHERAPI_KEY", "WEATHER_API_KEY"),
    )
    accuweather_api_key: str = Field(
        "demo_key",
        validation_alias=AliasChoices("ACCUWEATHER_API_KEY", "ACCUWEATHER_KEY"),
    )

    # Seconds a single provider may take before it is counted as failed
    provider_timeout: float = 10.0
    geocoding_limit: int = 5

    port: int = 8001
    log_level: str = "INFO"
    log_file: str = "logs/multi_weather.log"


config = Config()
