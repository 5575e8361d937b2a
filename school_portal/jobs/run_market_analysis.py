"""CLI job to compute (or fetch cached) market analyses."""

import argparse
import json
import logging
import sys
from datetime import timedelta
from typing import Any, Dict, Optional

from school_portal.analysis.cache import get_school_market_analysis
from school_portal.analysis.pipeline import run_market_analysis
from school_portal.core.config import get_settings
from school_portal.core.errors import MarketAnalysisError

logger = logging.getLogger(__name__)


def run_market_analysis_job(
    *,
    address: Optional[str],
    school_id: Optional[str],
    radius: int,
    refresh: bool = False,
) -> Dict[str, Any]:
    settings = get_settings()
    if school_id:
        snapshot, cache_hit = get_school_market_analysis(
            school_id,
            api_key=settings.google_maps_api_key,
            radius=radius,
            ttl=timedelta(hours=settings.cache_ttl_hours),
            force_refresh=refresh,
            page_delay=settings.page_token_delay,
        )
        logger.info("Completed run for school=%s cache_hit=%s", school_id, cache_hit)
        return snapshot

    snapshot = run_market_analysis(
        address or "",
        api_key=settings.google_maps_api_key,
        radius=radius,
        page_delay=settings.page_token_delay,
    )
    logger.info("Completed run for address=%s competitors=%d", address, snapshot.analysis.total_competitors)
    return snapshot.to_dict()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the school market analysis pipeline")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--address", dest="address", help="Free-text address to analyse")
    target.add_argument("--school-id", dest="school_id", help="school_customizations id to analyse (cached)")
    parser.add_argument(
        "--radius",
        dest="radius",
        type=int,
        default=get_settings().search_radius,
        help="Search radius in meters",
    )
    parser.add_argument(
        "--refresh",
        dest="refresh",
        action="store_true",
        help="Ignore a fresh cached snapshot and recompute (only with --school-id)",
    )
    return parser


def main(argv: Optional[list] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.radius <= 0:
        parser.error("--radius must be positive")

    try:
        snapshot = run_market_analysis_job(
            address=args.address,
            school_id=args.school_id,
            radius=args.radius,
            refresh=args.refresh,
        )
    except MarketAnalysisError as exc:
        logger.error("Market analysis failed: %s", json.dumps(exc.to_dict(), ensure_ascii=False))
        return 2 if exc.status_code < 500 else 1

    json.dump(snapshot, sys.stdout, ensure_ascii=False, indent=2, default=str)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
