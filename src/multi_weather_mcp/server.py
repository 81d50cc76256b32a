import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from mcp.server.fastmcp.server import Context, FastMCP
from pydantic import ValidationError

from multi_weather_mcp.config import config
from multi_weather_mcp.errors import AllSourcesFailed, LocationNotFoundError
from multi_weather_mcp.weather import build_service

load_dotenv()

# Set up logging
log_file = Path(config.log_file)
log_file.parent.mkdir(parents=True, exist_ok=True)

logging.basicConfig(
    level=getattr(logging, config.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler(log_file),
        logging.StreamHandler(),  # This will still print to console
    ],
)

logger = logging.getLogger("multi_weather")

mcp = FastMCP(
    "Multi-Source Weather",
    instructions="Current weather and forecasts from OpenWeatherMap, WeatherAPI and AccuWeather, ranked by accuracy",
    dependencies=["httpx", "pydantic", "pydantic-settings", "python-dotenv"],
    debug=False,
    log_level=config.log_level.upper(),
    port=config.port,
)

weather_service = build_service(config)


# Tools
@mcp.tool()
async def search_locations(query: str, ctx: Context) -> List[Dict[str, Any]]:
    """
    Search for locations by name

    Args:
        query: City or place name, e.g. "Springfield"
    """
    result = await weather_service.search_locations(query)
    if result.from_cache:
        await ctx.info(f"Geocoding unavailable, returning {len(result.locations)} cached matches")
    return [location.to_payload() for location in result.locations]


@mcp.tool()
async def get_weather(
    ctx: Context,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    location: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Get current weather and forecasts from every provider, with the most accurate one highlighted

    Args:
        latitude: Latitude in degrees
        longitude: Longitude in degrees
        location: Place name, used when coordinates are not given
    """
    has_coords = latitude is not None and longitude is not None
    if not has_coords and not location:
        return {"status": "invalid", "message": "Either latitude/longitude or location is required"}

    try:
        if has_coords:
            logger.info(f"Starting weather request for ({latitude}, {longitude})")
            result = await weather_service.get_weather(latitude, longitude)
        else:
            logger.info(f"Starting weather request for {location}")
            result = await weather_service.get_weather_by_location(location)
    except AllSourcesFailed as e:
        logger.error(f"Weather unavailable: {str(e)}")
        await ctx.error(str(e))
        return {"status": "unavailable", "message": str(e), "failedSources": [f.source for f in e.failures]}
    except LocationNotFoundError as e:
        return {"status": "not_found", "message": str(e)}
    except ValidationError as e:
        logger.warning(f"Rejected coordinates ({latitude}, {longitude}): {e.error_count()} errors")
        return {"status": "invalid", "message": "Latitude must be within -90..90 and longitude within -180..180"}
    except ValueError as e:
        return {"status": "invalid", "message": str(e)}

    await ctx.info(f"Most accurate source: {result.best.source}")
    return {"status": "ok", **result.to_payload()}


@mcp.tool()
async def get_weather_history(location: str, source: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    List previously fetched weather records for a location, newest first

    Args:
        location: Location display string as returned by get_weather, e.g. "Seattle, US"
        source: Optional provider name (openweathermap, weatherapi or accuweather)
    """
    records = await weather_service.get_history(location, source)
    return [record.to_payload() for record in records]


# Prompts
@mcp.prompt()
def compare_weather_sources(raw_data: Dict[str, Any]) -> str:
    """Help Claude compare what each weather provider reports"""
    try:
        sources = raw_data.get("sources", [])
        best = raw_data.get("mostAccurate", {})
        lines = []
        for source in sources:
            current = source.get("current", {})
            lines.append(
                f"- {source.get('source')} (accuracy {source.get('accuracy', 'N/A')}): "
                f"{current.get('temperature', 'N/A')}°F, {current.get('description', 'N/A')}, "
                f"wind {current.get('windSpeed', 'N/A')} mph, humidity {current.get('humidity', 'N/A')}%"
            )
        readings = "\n        ".join(lines) or "No provider data"

        return f"""Please compare these weather reports and provide:
        1. A short summary of current conditions
        2. Where the providers disagree and by how much
        3. Which provider to trust and why

        Location: {best.get("location", "Unknown location")}
        Most accurate source: {best.get("source", "Unknown")}

        Provider readings:
        {readings}
        """
    except Exception as e:
        logger.error(f"Error formatting weather comparison: {str(e)}")
        return "Error: Unable to compare weather data due to missing or invalid data."


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    # For running directly
    main()
