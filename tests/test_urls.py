from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest

from fakes import PROFILE_CONFIG, make_profile
from jobtrawl.contexts.scraping.errors import ConfigurationError, InvalidUrl
from jobtrawl.contexts.scraping.models import SearchParams
from jobtrawl.contexts.scraping.urls import build_detail_url, build_listing_url

FULL_PARAMS = {
    "query": "keywords",
    "location": "location",
    "offset": "start",
    "radius": "distance",
    "job_type": "f_JT",
    "experience_level": "f_E",
    "date_posted": "f_TPR",
}


def _query(url):
    return parse_qs(urlsplit(url).query)


def test_listing_url_with_query_location_and_page():
    profile = make_profile()
    url = build_listing_url(profile, SearchParams(query="développeur python", location="Lyon"), page=2)

    assert url.startswith("https://jobs.example.com/search?")
    assert _query(url) == {"q": ["développeur python"], "l": ["Lyon"], "page": ["2"]}


def test_listing_url_without_page_has_no_offset():
    url = build_listing_url(make_profile(), SearchParams(query="rust"))
    assert _query(url) == {"q": ["rust"]}


def test_unsupplied_filters_are_never_emitted():
    profile = make_profile(params=FULL_PARAMS)
    url = build_listing_url(profile, SearchParams(query="rust", location=""), page=None)

    assert _query(url) == {"keywords": ["rust"]}


def test_filters_need_both_a_name_and_a_value():
    # The default test profile names no radius parameter
    url = build_listing_url(make_profile(), SearchParams(query="rust", radius=25))
    assert "25" not in url

    url = build_listing_url(make_profile(params=FULL_PARAMS), SearchParams(query="rust", radius=25))
    assert _query(url)["distance"] == ["25"]


def test_filters_go_through_value_maps():
    profile = make_profile(
        params=FULL_PARAMS,
        value_maps={"job_type": {"full_time": "F"}, "date_posted": {"past_week": "r604800"}},
    )
    url = build_listing_url(
        profile,
        SearchParams(query="rust", job_type="full_time", date_posted="past_week", experience_level="2"),
    )
    query = _query(url)
    assert query["f_JT"] == ["F"]
    assert query["f_TPR"] == ["r604800"]
    # No map for experience level: value passes through
    assert query["f_E"] == ["2"]


def test_values_missing_from_a_value_map_are_omitted():
    profile = make_profile(params=FULL_PARAMS, value_maps={"job_type": {"full_time": "F"}})
    url = build_listing_url(profile, SearchParams(query="rust", job_type="freelance"))
    assert "f_JT" not in _query(url)


def test_offset_converted_with_profile_start_and_step():
    profile = make_profile(params=FULL_PARAMS, offset_start=1, offset_step=25)
    assert _query(build_listing_url(profile, SearchParams(query="go"), page=0))["start"] == ["1"]
    assert _query(build_listing_url(profile, SearchParams(query="go"), page=3))["start"] == ["76"]


def test_existing_query_in_listing_path_is_kept():
    profile = make_profile(listing_path="search?sort=date")
    url = build_listing_url(profile, SearchParams(query="go"), page=0)
    assert _query(url) == {"sort": ["date"], "q": ["go"], "page": ["0"]}


def test_detail_url_escapes_id():
    profile = make_profile()
    assert build_detail_url(profile, "123") == "https://jobs.example.com/jobs/123"
    assert build_detail_url(profile, "a b&c") == "https://jobs.example.com/jobs/a%20b%26c"


def test_detail_url_with_path_ids():
    profile = make_profile(base_url="https://www.welcometothejungle.com/fr/", detail_path="{id}")
    url = build_detail_url(profile, "/fr/companies/acme/jobs/python-dev_lyon")
    assert url == "https://www.welcometothejungle.com/fr/companies/acme/jobs/python-dev_lyon"


def test_malformed_base_url_is_rejected():
    with pytest.raises(ConfigurationError):
        make_profile(base_url="not a url")


def test_listing_path_resolving_off_http_is_invalid():
    profile = make_profile(listing_path="mailto:jobs@example.com")
    with pytest.raises(InvalidUrl):
        build_listing_url(profile, SearchParams(query="go"))


def test_profile_config_is_not_mutated():
    make_profile(params=FULL_PARAMS)
    assert PROFILE_CONFIG["params"]["query"] == "q"
