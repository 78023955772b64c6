"""Event schemas: creation, update, location and weather payloads."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from .common import CamelModel


class Location(CamelModel):
    name: Optional[str] = None
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class WeatherData(CamelModel):
    temperature: float
    weather_code: int
    wind_speed: float
    precipitation: float
    weather_description: str


class EventCreateRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    date: str = Field(..., min_length=1, description="ISO-8601 date or datetime")
    is_public: bool = True
    location: Optional[Location] = None
    address: Optional[str] = Field(None, description="Free-text address, geocoded when no location is given")


class EventUpdateRequest(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    date: Optional[str] = Field(None, min_length=1)
    location: Optional[Location] = None

    def changes(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True)
