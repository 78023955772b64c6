"""
Nominatim geocoding: free-text address to coordinates.
"""

from __future__ import annotations

import httpx
import structlog

from photocomp.core.errors import AppError

log = structlog.get_logger()


class GeocodingClient:
    def __init__(self, http: httpx.AsyncClient, base_url: str, user_agent: str):
        self._http = http
        self._base_url = base_url
        # Nominatim's usage policy requires an identifying User-Agent
        self._headers = {"User-Agent": user_agent, "Accept-Language": "en-US,en;q=0.9"}

    async def geocode_address(self, address: str) -> dict:
        """Return ``{"name", "latitude", "longitude"}`` for the best match."""
        if not address or not address.strip():
            raise AppError("Address is required", 400)

        params = {"q": address, "format": "json", "addressdetails": "1", "limit": "1"}
        try:
            response = await self._http.get(self._base_url, params=params, headers=self._headers)
            response.raise_for_status()
            results = response.json()
        except httpx.HTTPError as exc:
            raise AppError(f"Geocoding service error: {exc}", 500) from exc

        if not results:
            raise AppError("No results found for the provided address", 404)

        try:
            latitude = float(results[0]["lat"])
            longitude = float(results[0]["lon"])
        except (KeyError, TypeError, ValueError):
            raise AppError("Invalid coordinates received from geocoding service", 500)

        log.info("geocoding.resolved", address=address, latitude=latitude, longitude=longitude)
        return {
            "name": results[0].get("display_name") or address,
            "latitude": latitude,
            "longitude": longitude,
        }
