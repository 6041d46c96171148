from __future__ import annotations

import pytest

from fakes import FailingFetcher, FakeFetcher, make_profiles
from jobtrawl.contexts.scraping.errors import AllSourcesFailed, Blocked, ConfigurationError, RateLimited
from jobtrawl.contexts.scraping.models import SearchParams
from jobtrawl.contexts.scraping.orchestration import SearchResult, run_source, search


def _factory(fetchers):
    return lambda profile: fetchers[profile.name]


def test_failing_source_is_isolated():
    profiles = make_profiles("blocked", "good")
    fetchers = {
        "blocked": FailingFetcher(Blocked("HTTP 403", status_code=403)),
        "good": FakeFetcher(pages=[["g0", "g1", "g2"]]),
    }

    result = search(SearchParams(query="python"), profiles=profiles, fetcher_factory=_factory(fetchers))

    assert [job.id for job in result.jobs] == ["g0", "g1", "g2"]
    assert {job.source for job in result.jobs} == {"good"}
    assert result.succeeded == ["good"]
    assert list(result.failures) == ["blocked"]

    report = result.reports["blocked"]
    assert report["status"] == "failed"
    assert report["error_type"] == "Blocked"
    assert "HTTP 403" in report["error"]
    assert result.reports["good"]["jobs_found"] == 3


def test_results_follow_source_order():
    profiles = make_profiles("first", "second", "third")
    fetchers = {
        "first": FakeFetcher(pages=[["f0", "f1"]]),
        "second": FakeFetcher(pages=[["s0"]]),
        "third": FakeFetcher(pages=[["t0", "t1"]]),
    }

    result = search(SearchParams(query="python"), profiles=profiles, fetcher_factory=_factory(fetchers))

    assert [job.id for job in result.jobs] == ["f0", "f1", "s0", "t0", "t1"]
    assert list(result.reports) == ["first", "second", "third"]


def test_limit_applies_per_source():
    profiles = make_profiles("one", "two")
    fetchers = {name: FakeFetcher(pages=[[f"{name}{i}" for i in range(5)]]) for name in profiles}

    result = search(SearchParams(query="python", limit=2), profiles=profiles, fetcher_factory=_factory(fetchers))

    assert [job.id for job in result.jobs] == ["one0", "one1", "two0", "two1"]


def test_all_sources_failing_raises():
    profiles = make_profiles("a", "b")
    fetchers = {
        "a": FailingFetcher(RateLimited("HTTP 429", status_code=429)),
        "b": FailingFetcher(Blocked("HTTP 403", status_code=403)),
    }

    with pytest.raises(AllSourcesFailed) as excinfo:
        search(SearchParams(query="python"), profiles=profiles, fetcher_factory=_factory(fetchers))

    reports = excinfo.value.reports
    assert reports["a"]["error_type"] == "RateLimited"
    assert reports["b"]["error_type"] == "Blocked"
    assert "a: RateLimited" in str(excinfo.value)


def test_all_sources_empty_is_not_a_failure():
    profiles = make_profiles("a", "b")
    fetchers = {"a": FakeFetcher(), "b": FakeFetcher()}

    result = search(SearchParams(query="cobol"), profiles=profiles, fetcher_factory=_factory(fetchers))

    assert result.jobs == []
    assert result.succeeded == ["a", "b"]


def test_single_source_errors_propagate():
    profiles = make_profiles("a", "b")
    fetchers = {"a": FailingFetcher(RateLimited("HTTP 429", status_code=429)), "b": FakeFetcher()}

    with pytest.raises(RateLimited):
        search(SearchParams(query="python", sources="a"), profiles=profiles, fetcher_factory=_factory(fetchers))

    with pytest.raises(RateLimited):
        search(SearchParams(query="python", sources=("a",)), profiles=profiles, fetcher_factory=_factory(fetchers))


def test_single_source_search():
    profiles = make_profiles("a", "b")
    fetchers = {"a": FakeFetcher(pages=[["a0"]]), "b": FailingFetcher(Blocked("HTTP 403"))}

    result = search(SearchParams(query="python", sources="a"), profiles=profiles, fetcher_factory=_factory(fetchers))

    assert [job.id for job in result.jobs] == ["a0"]
    assert list(result.reports) == ["a"]
    assert fetchers["b"].calls == []


def test_source_subset():
    profiles = make_profiles("a", "b", "c")
    fetchers = {name: FakeFetcher(pages=[[f"{name}0"]]) for name in profiles}

    result = search(
        SearchParams(query="python", sources=["c", "a"]), profiles=profiles, fetcher_factory=_factory(fetchers)
    )

    assert [job.id for job in result.jobs] == ["c0", "a0"]
    assert fetchers["b"].calls == []


def test_unknown_source_is_a_configuration_error():
    profiles = make_profiles("a")
    with pytest.raises(ConfigurationError, match="nowhere"):
        search(SearchParams(query="python", sources="nowhere"), profiles=profiles, fetcher_factory=_factory({}))


def test_run_source_reports_failure_instead_of_raising():
    profile = make_profiles("a")["a"]
    jobs, report = run_source(profile, SearchParams(query="python"), FailingFetcher(Blocked("HTTP 403")))

    assert jobs == []
    assert report["status"] == "failed"
    assert report["error_type"] == "Blocked"
    assert report["traceback"]


def test_search_result_properties():
    result = SearchResult(reports={"a": {"status": "success"}, "b": {"status": "failed"}})
    assert result.succeeded == ["a"]
    assert list(result.failures) == ["b"]


def test_fetchers_are_closed_after_each_source():
    profiles = make_profiles("blocked", "good")
    fetchers = {
        "blocked": FailingFetcher(Blocked("HTTP 403")),
        "good": FakeFetcher(pages=[["g0"]]),
    }

    search(SearchParams(query="python"), profiles=profiles, fetcher_factory=_factory(fetchers))

    assert fetchers["blocked"].closed
    assert fetchers["good"].closed


def test_single_source_fetcher_closed_when_it_fails():
    profiles = make_profiles("a")
    fetcher = FailingFetcher(RateLimited("HTTP 429"))

    with pytest.raises(RateLimited):
        search(SearchParams(query="python", sources="a"), profiles=profiles, fetcher_factory=lambda p: fetcher)
    assert fetcher.closed
