"""
Open-Meteo weather lookups for event dates.
"""

from __future__ import annotations

import httpx
import structlog

from photocomp.core.errors import AppError
from photocomp_shared.schemas.events import WeatherData

log = structlog.get_logger()

DAILY_FIELDS = "temperature_2m_max,weathercode,precipitation_sum,windspeed_10m_max"

# WMO weather interpretation codes
WEATHER_CODES: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


def describe_weather_code(code: int) -> str:
    return WEATHER_CODES.get(code, "Unknown")


class WeatherClient:
    def __init__(self, http: httpx.AsyncClient, base_url: str):
        self._http = http
        self._base_url = base_url

    async def get_weather_for_location(self, latitude: float, longitude: float, date: str) -> dict:
        """Daily weather for one location and date (``date`` may carry a time part)."""
        day = date.split("T")[0]
        params = {
            "latitude": str(latitude),
            "longitude": str(longitude),
            "daily": DAILY_FIELDS,
            "timezone": "auto",
            "start_date": day,
            "end_date": day,
        }
        try:
            response = await self._http.get(self._base_url, params=params)
            response.raise_for_status()
            daily = response.json().get("daily") or {}
        except httpx.HTTPError as exc:
            raise AppError(f"Failed to get weather data: {exc}", 500) from exc

        if not daily.get("time"):
            raise AppError("Invalid weather data format received", 500)

        code = int(daily["weathercode"][0])
        weather = WeatherData(
            temperature=daily["temperature_2m_max"][0],
            weather_code=code,
            wind_speed=daily["windspeed_10m_max"][0],
            precipitation=daily["precipitation_sum"][0],
            weather_description=describe_weather_code(code),
        )
        log.debug("weather.fetched", latitude=latitude, longitude=longitude, date=day)
        return weather.model_dump(by_alias=True)
