"""Paginated nearby search driven as a small state machine.

States::

    FETCHING -> WAITING_FOR_NEXT_PAGE -> FETCHING -> ... -> DONE
                                                     \\-> FAILED (first page only)

A page token only becomes valid a short while after it is issued, so every
follow-up fetch is preceded by ``PAGE_TOKEN_DELAY_SECONDS`` of sleep. A failing
follow-up page ends the loop in ``DONE`` with ``degraded`` set; only a failing
first page is fatal.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import requests

from school_portal.core.errors import PlacesApiError
from school_portal.vendors.google_maps import GoogleMapsError

logger = logging.getLogger(__name__)

MAX_RESULTS = 60
MAX_PAGES = 6
PAGE_TOKEN_DELAY_SECONDS = 2.0

PageFetcher = Callable[[Optional[str]], Dict[str, Any]]


class SearchState(enum.Enum):
    FETCHING = "fetching"
    WAITING_FOR_NEXT_PAGE = "waiting_for_next_page"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SearchOutcome:
    results: List[Dict[str, Any]] = field(default_factory=list)
    pages_fetched: int = 0
    degraded: bool = False
    state: SearchState = SearchState.FETCHING


class NearbySearchPaginator:
    def __init__(
        self,
        fetch_page: PageFetcher,
        *,
        max_results: int = MAX_RESULTS,
        max_pages: int = MAX_PAGES,
        page_delay: float = PAGE_TOKEN_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._fetch_page = fetch_page
        self._max_results = max_results
        self._max_pages = max_pages
        self._page_delay = page_delay
        self._sleep = sleep

    def run(self) -> SearchOutcome:
        outcome = SearchOutcome()
        page_token: Optional[str] = None

        while outcome.state not in (SearchState.DONE, SearchState.FAILED):
            if outcome.state is SearchState.WAITING_FOR_NEXT_PAGE:
                self._sleep(self._page_delay)
                outcome.state = SearchState.FETCHING
                continue

            page_number = outcome.pages_fetched + 1
            try:
                payload = self._fetch_page(page_token)
            except (GoogleMapsError, requests.RequestException) as exc:
                outcome.pages_fetched = page_number
                if page_number == 1:
                    outcome.state = SearchState.FAILED
                    status = getattr(exc, "status", None)
                    details = getattr(exc, "error_message", None) or str(exc)
                    raise PlacesApiError(status or "REQUEST_FAILED", details) from exc
                logger.warning("Stopping pagination after page %d failed: %s", page_number, exc)
                outcome.degraded = True
                outcome.state = SearchState.DONE
                continue

            outcome.pages_fetched = page_number
            results = payload.get("results") or []
            outcome.results.extend(results)
            page_token = payload.get("next_page_token")
            logger.info(
                "Fetched %d results on page %d (accumulated=%d, next_page=%s)",
                len(results),
                page_number,
                len(outcome.results),
                bool(page_token),
            )
            outcome.state = self._next_state(outcome, page_token)

        if len(outcome.results) > self._max_results:
            del outcome.results[self._max_results:]
        return outcome

    def _next_state(self, outcome: SearchOutcome, page_token: Optional[str]) -> SearchState:
        if not page_token:
            return SearchState.DONE
        if len(outcome.results) >= self._max_results:
            logger.info("Reached result cap of %d", self._max_results)
            return SearchState.DONE
        if outcome.pages_fetched >= self._max_pages:
            logger.info("Reached page cap of %d", self._max_pages)
            return SearchState.DONE
        return SearchState.WAITING_FOR_NEXT_PAGE
