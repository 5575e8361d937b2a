import pytest
import requests

from school_portal.analysis import pagination
from school_portal.core.errors import PlacesApiError
from school_portal.vendors.google_maps import GoogleMapsError


class FakePaginator:
    """Serves canned pages; an Exception in the list is raised instead."""

    def __init__(self, pages):
        self.pages = list(pages)
        self.tokens = []

    def __call__(self, page_token):
        self.tokens.append(page_token)
        page = self.pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return page


def _page(count, token=None, start=0):
    payload = {"status": "OK", "results": [{"name": f"School {start + i}"} for i in range(count)]}
    if token:
        payload["next_page_token"] = token
    return payload


def _run(fetcher, **kwargs):
    sleeps = []
    outcome = pagination.NearbySearchPaginator(fetcher, sleep=sleeps.append, **kwargs).run()
    return outcome, sleeps


def test_single_page_without_token():
    fetcher = FakePaginator([_page(5)])
    outcome, sleeps = _run(fetcher)
    assert len(outcome.results) == 5
    assert outcome.pages_fetched == 1
    assert outcome.state is pagination.SearchState.DONE
    assert outcome.degraded is False
    assert sleeps == []
    assert fetcher.tokens == [None]


def test_follows_page_tokens_with_delay():
    fetcher = FakePaginator([_page(20, "t1"), _page(20, "t2", start=20), _page(3, start=40)])
    outcome, sleeps = _run(fetcher)
    assert len(outcome.results) == 43
    assert outcome.pages_fetched == 3
    assert fetcher.tokens == [None, "t1", "t2"]
    assert sleeps == [pagination.PAGE_TOKEN_DELAY_SECONDS] * 2


def test_stops_at_result_cap():
    pages = [_page(25, f"t{i}", start=25 * i) for i in range(10)]
    fetcher = FakePaginator(pages)
    outcome, _ = _run(fetcher)
    assert len(outcome.results) == pagination.MAX_RESULTS
    assert outcome.pages_fetched == 3
    assert outcome.results[-1]["name"] == "School 59"


def test_stops_at_page_cap_even_if_upstream_claims_more():
    fetcher = FakePaginator([_page(1, f"t{i}", start=i) for i in range(20)])
    outcome, sleeps = _run(fetcher)
    assert outcome.pages_fetched == pagination.MAX_PAGES
    assert len(fetcher.tokens) == pagination.MAX_PAGES
    assert len(sleeps) == pagination.MAX_PAGES - 1
    assert len(outcome.results) == 6


def test_empty_pages_count_towards_page_cap():
    fetcher = FakePaginator([_page(0, "again") for _ in range(10)])
    outcome, _ = _run(fetcher)
    assert outcome.results == []
    assert outcome.pages_fetched == pagination.MAX_PAGES


def test_later_page_failure_keeps_partial_results():
    fetcher = FakePaginator([_page(20, "t1"), GoogleMapsError("INVALID_REQUEST", "token not ready")])
    outcome, _ = _run(fetcher)
    assert len(outcome.results) == 20
    assert outcome.degraded is True
    assert outcome.pages_fetched == 2
    assert outcome.state is pagination.SearchState.DONE


def test_later_page_transport_error_is_degraded():
    fetcher = FakePaginator([_page(2, "t1"), requests.ConnectionError("reset")])
    outcome, _ = _run(fetcher)
    assert len(outcome.results) == 2
    assert outcome.degraded is True


def test_first_page_failure_is_fatal():
    fetcher = FakePaginator([GoogleMapsError("OVER_QUERY_LIMIT", "quota")])
    with pytest.raises(PlacesApiError) as excinfo:
        _run(fetcher)
    assert excinfo.value.message == "Places API error: OVER_QUERY_LIMIT"
    assert excinfo.value.details == "quota"
    assert excinfo.value.status_code == 500
