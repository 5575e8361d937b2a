"""HTTP entrypoint for market analysis requests (Cloud Run friendly)."""

from __future__ import annotations

import logging
import math
import os
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict

from flask import Flask, jsonify, request

from school_portal.analysis.cache import get_school_market_analysis
from school_portal.analysis.pipeline import run_market_analysis
from school_portal.core import db
from school_portal.core.config import get_settings
from school_portal.core.errors import MarketAnalysisError, SchoolNotFound

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)

_TRUE_VALUES = {"1", "true", "yes"}


class BadRequest(ValueError):
    """Raised for malformed request parameters."""


# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only, never touches the database."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "port_config": settings.port,
                "maps_key_configured": bool(settings.google_maps_api_key),
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.post("/market-analysis")
def market_analysis() -> Any:
    """
    Run the market analysis pipeline for an address.
    Required JSON fields: address
    Optional: radius (meters, default from settings)
    """
    payload: Any = request.get_json(silent=True) or {}

    def handler() -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise BadRequest("request body must be a JSON object")
        settings = get_settings()
        radius = _parse_radius(payload.get("radius"), settings.search_radius)
        snapshot = run_market_analysis(
            str(payload.get("address") or ""),
            api_key=settings.google_maps_api_key,
            radius=radius,
            page_delay=settings.page_token_delay,
        )
        return snapshot.to_dict()

    return _respond(handler)


@app.get("/schools/<school_id>/market-analysis")
def school_market_analysis(school_id: str) -> Any:
    """Cached analysis for a school; ``?refresh=1`` forces a recompute."""
    force_refresh = request.args.get("refresh", "").lower() in _TRUE_VALUES

    def handler() -> Dict[str, Any]:
        settings = get_settings()
        radius = _parse_radius(request.args.get("radius"), settings.search_radius)
        snapshot, cache_hit = get_school_market_analysis(
            school_id,
            api_key=settings.google_maps_api_key,
            radius=radius,
            ttl=timedelta(hours=settings.cache_ttl_hours),
            force_refresh=force_refresh,
            page_delay=settings.page_token_delay,
        )
        logger.info("school=%s cache_hit=%s", school_id, cache_hit)
        return snapshot

    return _respond(handler)


@app.delete("/schools/<school_id>/market-analysis")
def clear_school_market_analysis(school_id: str) -> Any:
    def handler() -> Dict[str, Any]:
        cleared = db.clear_market_analysis(school_id)
        if not cleared:
            raise SchoolNotFound(school_id)
        return {"data": {"school_id": school_id, "cleared": True}}

    return _respond(handler)


# ---------- Internals ----------


def _parse_radius(raw: Any, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise BadRequest("radius must be numeric") from exc
    if not math.isfinite(value):
        raise BadRequest("radius must be finite")
    radius = int(value)
    if radius <= 0:
        raise BadRequest("radius must be positive")
    return radius


def _respond(handler: Callable[[], Dict[str, Any]]) -> Any:
    """Single top-level handler turning every failure into a JSON error body."""
    started = time.monotonic()
    try:
        body = handler()
    except BadRequest as exc:
        return jsonify({"error": str(exc)}), 400
    except MarketAnalysisError as exc:
        logger.error("Market analysis failed (%s): %s details=%s", type(exc).__name__, exc.message, exc.details)
        return jsonify(exc.to_dict()), exc.status_code
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "Unhandled error in market analysis: timestamp=%s execution_time_ms=%d",
            datetime.now(timezone.utc).isoformat(),
            int((time.monotonic() - started) * 1000),
        )
        return jsonify({"error": "Internal server error", "details": str(exc) or "An unexpected error occurred"}), 500

    return jsonify(body), 200


def main() -> None:
    """Cloud Run injects PORT; fall back to the configured port locally."""
    port = int(os.getenv("PORT") or get_settings().port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
