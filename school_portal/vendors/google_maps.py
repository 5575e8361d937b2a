"""Client utilities for the Google Geocoding and Places Nearby Search APIs."""

import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api"
_OK_STATUSES = {"OK", "ZERO_RESULTS"}

API_KEY_PREFIX = "AIza"
API_KEY_MIN_LENGTH = 30


class GoogleMapsError(RuntimeError):
    """Raised when a Maps Platform endpoint returns a non-successful status."""

    def __init__(self, status: Optional[str], error_message: Optional[str] = None) -> None:
        super().__init__(error_message or status or "unknown error")
        self.status = status
        self.error_message = error_message


def is_valid_api_key(api_key: str) -> bool:
    """Cheap format check so a malformed key fails before spending quota."""
    return len(api_key) >= API_KEY_MIN_LENGTH and api_key.startswith(API_KEY_PREFIX)


def _get(endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
    response = _SESSION.get(f"{_BASE_URL}/{endpoint}", params=params, timeout=10)
    response.raise_for_status()
    payload = response.json()
    status = payload.get("status")
    if status not in _OK_STATUSES:
        logger.error("%s failed: status=%s, error_message=%s", endpoint, status, payload.get("error_message"))
        raise GoogleMapsError(status, payload.get("error_message"))
    return payload


def geocode(address: str, api_key: str) -> Dict[str, Any]:
    return _get("geocode/json", {"address": address, "key": api_key})


def nearby_search(
    api_key: str,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    radius: Optional[int] = None,
    keyword: Optional[str] = None,
    place_type: Optional[str] = None,
    pagetoken: Optional[str] = None,
) -> Dict[str, Any]:
    """Run a nearby search, or fetch the next page when ``pagetoken`` is given.

    The page token already encodes the original query, so follow-up pages only
    send the token and the key.
    """
    if pagetoken:
        params: Dict[str, Any] = {"pagetoken": pagetoken, "key": api_key}
    else:
        params = {"location": f"{lat},{lng}", "radius": radius, "key": api_key}
        if keyword:
            params["keyword"] = keyword
        if place_type:
            params["type"] = place_type
    return _get("place/nearbysearch/json", params)
