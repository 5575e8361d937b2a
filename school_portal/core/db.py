"""Database helpers for reading and caching market analyses on school records."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

import psycopg2
from psycopg2 import extras, pool

from school_portal.core.config import get_settings
from school_portal.models import SchoolRecord

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


_SELECT_SCHOOL = """
SELECT id, school_name, address, market_analysis, updated_at
FROM school_customizations
WHERE id = %(id)s;
"""

# Plain overwrite: concurrent runs for the same school resolve as last write wins.
_UPDATE_MARKET_ANALYSIS = """
UPDATE school_customizations
SET market_analysis = %(market_analysis)s,
    updated_at = NOW()
WHERE id = %(id)s;
"""


def _to_school_record(row: Dict[str, Any]) -> SchoolRecord:
    return SchoolRecord(
        id=str(row["id"]),
        school_name=row.get("school_name") or "",
        address=row.get("address"),
        market_analysis=row.get("market_analysis"),
        updated_at=row.get("updated_at"),
    )


def get_school(school_id: str) -> Optional[SchoolRecord]:
    with get_connection() as conn:
        with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            cur.execute(_SELECT_SCHOOL, {"id": school_id})
            row = cur.fetchone()
    if row is None:
        logger.debug("No school_customizations row for id=%s", school_id)
        return None
    return _to_school_record(row)


def _update_market_analysis(school_id: str, market_analysis: Optional[Any]) -> bool:
    with get_connection() as conn:
        try:
            with conn.cursor() as cur:
                cur.execute(_UPDATE_MARKET_ANALYSIS, {"id": school_id, "market_analysis": market_analysis})
                updated = cur.rowcount
            conn.commit()
        except psycopg2.Error:
            conn.rollback()
            raise
    return updated > 0


def save_market_analysis(school_id: str, snapshot: Dict[str, Any]) -> bool:
    """Overwrite the cached snapshot on a school record."""
    if not snapshot:
        raise ValueError("snapshot must not be empty")
    saved = _update_market_analysis(school_id, extras.Json(snapshot))
    logger.info("Stored market analysis for school=%s (updated=%s)", school_id, saved)
    return saved


def clear_market_analysis(school_id: str) -> bool:
    """Drop the cached snapshot so the next request recomputes it."""
    cleared = _update_market_analysis(school_id, None)
    logger.info("Cleared market analysis for school=%s (updated=%s)", school_id, cleared)
    return cleared
