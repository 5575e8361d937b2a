"""Serve market analyses from the school record, recomputing stale snapshots."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from school_portal.analysis.pipeline import DEFAULT_RADIUS_METERS, run_market_analysis
from school_portal.core import db
from school_portal.core.errors import MissingAddress, SchoolNotFound
from school_portal.models import MarketAnalysisSnapshot

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = timedelta(hours=24)


def load_cached_snapshot(raw: Any) -> Optional[MarketAnalysisSnapshot]:
    """Parse a stored ``market_analysis`` value; malformed values yield None."""
    if not raw:
        return None
    try:
        return MarketAnalysisSnapshot.from_dict(raw)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        logger.warning("Ignoring malformed cached market analysis: %s", exc)
        return None


def parse_computed_at(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        computed_at = datetime.fromisoformat(raw)
    except ValueError:
        logger.warning("Unparseable computed_at on cached snapshot: %r", raw)
        return None
    if computed_at.tzinfo is None:
        computed_at = computed_at.replace(tzinfo=timezone.utc)
    return computed_at


def is_fresh(raw: Any, now: datetime, ttl: timedelta = DEFAULT_CACHE_TTL) -> bool:
    """A stored snapshot is fresh when it loads cleanly and is younger than ``ttl``."""
    snapshot = load_cached_snapshot(raw)
    if snapshot is None:
        return False
    computed_at = parse_computed_at(snapshot.computed_at)
    if computed_at is None:
        return False
    return now - computed_at < ttl


def get_school_market_analysis(
    school_id: str,
    *,
    api_key: Optional[str],
    radius: int = DEFAULT_RADIUS_METERS,
    ttl: timedelta = DEFAULT_CACHE_TTL,
    force_refresh: bool = False,
    now: Optional[datetime] = None,
    **pipeline_kwargs: Any,
) -> Tuple[Dict[str, Any], bool]:
    """Return ``(snapshot, cache_hit)`` for a school.

    A fresh cached snapshot is returned as stored, without any upstream call.
    Otherwise the pipeline runs on the school's address and its result
    overwrites the cached one.
    """
    now = now or datetime.now(timezone.utc)
    school = db.get_school(school_id)
    if school is None:
        raise SchoolNotFound(school_id)

    if not force_refresh and is_fresh(school.market_analysis, now, ttl):
        logger.info("Serving cached market analysis for school=%s", school_id)
        return school.market_analysis, True

    if not (school.address or "").strip():
        raise MissingAddress(details=f"School {school_id} has no address configured")

    logger.info("Recomputing market analysis for school=%s (force_refresh=%s)", school_id, force_refresh)
    snapshot = run_market_analysis(school.address, api_key=api_key, radius=radius, now=now, **pipeline_kwargs)
    payload = snapshot.to_dict()
    db.save_market_analysis(school_id, payload)
    return payload, False
