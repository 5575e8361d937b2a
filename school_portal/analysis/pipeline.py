"""Market analysis pipeline: geocode, nearby search, filter, aggregate."""

import logging
import time
from datetime import datetime, timezone
from functools import partial
from typing import Callable, Optional

from school_portal.analysis.aggregate import compute_analysis
from school_portal.analysis.filters import split_public_schools
from school_portal.analysis.pagination import PAGE_TOKEN_DELAY_SECONDS, NearbySearchPaginator
from school_portal.core.errors import GeocodeFailed, InvalidApiKeyFormat, MissingAddress, MissingApiKey
from school_portal.etl.transform import parse_geocode_result, to_competitor
from school_portal.models import MarketAnalysisSnapshot
from school_portal.vendors import google_maps

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_METERS = 10000
SEARCH_KEYWORD = "colégio particular privado"
SEARCH_TYPE = "school"
FILTERS_APPLIED = ["public_school_keyword_filter"]


def run_market_analysis(
    address: str,
    *,
    api_key: Optional[str],
    radius: int = DEFAULT_RADIUS_METERS,
    page_delay: float = PAGE_TOKEN_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    now: Optional[datetime] = None,
) -> MarketAnalysisSnapshot:
    """Compute a fresh market analysis snapshot for ``address``.

    Raises a :class:`~school_portal.core.errors.MarketAnalysisError` subclass when
    the request cannot be served. Address and key checks happen before any
    network call.
    """
    started = time.monotonic()
    address = (address or "").strip()
    if not address:
        raise MissingAddress()
    if not api_key:
        raise MissingApiKey()
    if not google_maps.is_valid_api_key(api_key):
        raise InvalidApiKeyFormat()

    logger.info("Geocoding address=%s", address)
    try:
        payload = google_maps.geocode(address, api_key)
    except google_maps.GoogleMapsError as exc:
        raise GeocodeFailed(details=exc.error_message, status=exc.status) from exc

    geocoded = parse_geocode_result(payload)
    if geocoded is None:
        raise GeocodeFailed(details=payload.get("error_message"), status=payload.get("status"))
    center, formatted_address = geocoded
    logger.info("Geocoded %s to lat=%s lng=%s", address, center.lat, center.lng)

    fetch_page = partial(
        _fetch_nearby_page,
        api_key=api_key,
        lat=center.lat,
        lng=center.lng,
        radius=radius,
    )
    outcome = NearbySearchPaginator(fetch_page, page_delay=page_delay, sleep=sleep).run()

    candidates = [c for c in (to_competitor(raw) for raw in outcome.results) if c is not None]
    competitors, removed = split_public_schools(candidates)
    logger.info(
        "Filtered schools: found=%d kept=%d removed=%d examples_removed=%s",
        len(outcome.results),
        len(competitors),
        len(removed),
        [c.name for c in removed[:3]],
    )

    analysis = compute_analysis(competitors)
    computed_at = (now or datetime.now(timezone.utc)).isoformat()

    snapshot = MarketAnalysisSnapshot(
        competitors=competitors,
        analysis=analysis,
        center_coordinates=center,
        computed_at=computed_at,
        radius=radius,
        degraded=outcome.degraded,
        metadata={
            "search_location": {
                "address": address,
                "formatted_address": formatted_address,
                "coordinates": {"lat": center.lat, "lng": center.lng},
            },
            "filtering_stats": {
                "total_schools_found": len(outcome.results),
                "private_schools_kept": len(competitors),
                "public_schools_removed": len(removed),
                "pages_fetched": outcome.pages_fetched,
                "filters_applied": list(FILTERS_APPLIED),
            },
        },
    )

    logger.info(
        "Market analysis completed: execution_time_ms=%d total_competitors=%d average_rating=%s degraded=%s",
        int((time.monotonic() - started) * 1000),
        analysis.total_competitors,
        analysis.average_rating,
        outcome.degraded,
    )
    return snapshot


def _fetch_nearby_page(page_token, *, api_key, lat, lng, radius):
    if page_token:
        return google_maps.nearby_search(api_key, pagetoken=page_token)
    return google_maps.nearby_search(
        api_key,
        lat=lat,
        lng=lng,
        radius=radius,
        keyword=SEARCH_KEYWORD,
        place_type=SEARCH_TYPE,
    )
