"""
US address autocomplete backed by HERE Autosuggest.
"""

from typing import Any, Dict, Optional
from credora.config import settings
from credora.utils.formatting import normalize_state
import httpx
import logging

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3

FALLBACK_ADDRESSES = [
    {"street": "123 Main St", "city": "Birmingham", "state": "AL", "zip_code": "35203"},
    {"street": "456 University Blvd", "city": "Tuscaloosa", "state": "AL", "zip_code": "35401"},
    {"street": "789 Peachtree St NE", "city": "Atlanta", "state": "GA", "zip_code": "30308"},
    {"street": "1600 Broadway", "city": "New York", "state": "NY", "zip_code": "10019"},
    {"street": "200 Congress Ave", "city": "Austin", "state": "TX", "zip_code": "78701"},
    {"street": "500 Michigan Ave", "city": "Chicago", "state": "IL", "zip_code": "60611"},
    {"street": "350 Market St", "city": "San Francisco", "state": "CA", "zip_code": "94105"},
    {"street": "100 Biscayne Blvd", "city": "Miami", "state": "FL", "zip_code": "33132"},
]


def format_label(street: Optional[str], city: Optional[str], state: Optional[str], zip_code: Optional[str]) -> str:
    """Build "123 Main St, Birmingham, AL 35203" from whichever parts are present."""
    parts = [part for part in (street, city) if part]
    region = " ".join(part for part in (state, zip_code) if part)
    if region:
        parts.append(region)
    return ", ".join(parts)


def suggestion_from_here(item: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    address = item.get("address") or {}
    house_number = address.get("houseNumber")
    road = address.get("street")
    street = f"{house_number} {road}" if house_number and road else road

    city = address.get("city")
    state = normalize_state(address.get("stateCode") or address.get("state"))
    zip_code = (address.get("postalCode") or "").split("-")[0] or None

    label = format_label(street, city, state, zip_code) or address.get("label") or item.get("title")
    if not label:
        return None
    return {"label": label, "street": street, "city": city, "state": state, "zip_code": zip_code}


class AddressService:
    async def suggest(self, query: str, limit: int = 5) -> Dict[str, Any]:
        """
        Address suggestions for a partial query.

        Queries under three characters return nothing. Without a HERE key,
        or when HERE fails, static suggestions matching the query are
        returned with ``fallback`` set.

        Returns:
            ``{"suggestions": [...], "fallback": bool}``
        """
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return {"suggestions": [], "fallback": False}

        if not settings.here_api_key:
            logger.debug("HERE API key not configured; using fallback address suggestions")
            return self.fallback(query, limit)

        params = {
            "apiKey": settings.here_api_key,
            "q": query,
            "in": "countryCode:USA",
            "limit": limit,
        }
        try:
            async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
                response = await client.get(settings.here_autosuggest_url, params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"HERE autosuggest failed for '{query}': {e}")
            return self.fallback(query, limit)

        if not isinstance(data, dict):
            logger.warning(f"Unexpected HERE autosuggest response for '{query}': {type(data).__name__}")
            return self.fallback(query, limit)

        suggestions = []
        for item in data.get("items") or []:
            suggestion = suggestion_from_here(item)
            if suggestion:
                suggestions.append(suggestion)
        return {"suggestions": suggestions[:limit], "fallback": False}

    @staticmethod
    def fallback(query: str, limit: int = 5) -> Dict[str, Any]:
        needle = query.lower()
        matches = []
        for address in FALLBACK_ADDRESSES:
            label = format_label(address["street"], address["city"], address["state"], address["zip_code"])
            if needle in label.lower():
                matches.append({"label": label, **address})
        return {"suggestions": matches[:limit], "fallback": True}
