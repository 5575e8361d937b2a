"""Utilities for transforming Maps Platform responses into pipeline models."""

import logging
from typing import Any, Dict, Optional, Tuple

from school_portal.models import CompetitorResult, Coordinates

logger = logging.getLogger(__name__)


def parse_geocode_result(payload: Dict[str, Any]) -> Optional[Tuple[Coordinates, Optional[str]]]:
    """Return the first result's location and formatted address, if any."""
    results = payload.get("results") or []
    if not results:
        return None
    first = results[0]
    location = (first.get("geometry") or {}).get("location") or {}
    lat = _safe_float(location.get("lat"))
    lng = _safe_float(location.get("lng"))
    if lat is None or lng is None:
        logger.warning("Geocode result without usable location: %s", location)
        return None
    return Coordinates(lat=lat, lng=lng), first.get("formatted_address")


def to_competitor(result: Dict[str, Any]) -> Optional[CompetitorResult]:
    name = (result.get("name") or "").strip()
    if not name:
        logger.debug("Skipping place without name: %s", result.get("place_id"))
        return None

    location = (result.get("geometry") or {}).get("location") or {}
    price_level = _safe_int(result.get("price_level"))
    if price_level is not None and not 0 <= price_level <= 4:
        price_level = None

    return CompetitorResult(
        place_id=result.get("place_id"),
        name=name,
        vicinity=result.get("vicinity"),
        rating=_safe_float(result.get("rating")),
        user_ratings_total=_safe_int(result.get("user_ratings_total")),
        price_level=price_level,
        lat=_safe_float(location.get("lat")),
        lng=_safe_float(location.get("lng")),
    )


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _safe_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return None
