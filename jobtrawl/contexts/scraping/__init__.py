"""
Job board scraping domain.

Turns declarative source profiles into job postings: builds listing URLs,
paginates through results, extracts fields with selector rules, and fans a
search out across boards while isolating their failures.
"""

from jobtrawl.contexts.scraping.base import (
    JobBoard,
    LoopState,
    ProfileBoard,
    SourceSearchLoop,
)
from jobtrawl.contexts.scraping.errors import (
    ActionError,
    AllSourcesFailed,
    Blocked,
    ConfigurationError,
    FetchError,
    InvalidUrl,
    NetworkCircuitBreakerException,
    NetworkFailure,
    RateLimited,
    ScrapingError,
)
from jobtrawl.contexts.scraping.extraction import extract, extract_all, parse_html
from jobtrawl.contexts.scraping.models import ALL_SOURCES, Job, SearchParams
from jobtrawl.contexts.scraping.orchestration import (
    SearchResult,
    run_source,
    search,
    setup_logger,
)
from jobtrawl.contexts.scraping.profiles import (
    QueryParamNames,
    SourceProfile,
    SourceRules,
    load_source_profiles,
)
from jobtrawl.contexts.scraping.requests import (
    PageFetcher,
    RequestsPageFetcher,
    classify_http_outcome,
)
from jobtrawl.contexts.scraping.rules import ReturnKind, Rule
from jobtrawl.contexts.scraping.transforms import Transform, apply_transform
from jobtrawl.contexts.scraping.urls import build_detail_url, build_listing_url

__all__ = [
    # Entry point
    "search",
    "SearchParams",
    "SearchResult",
    "Job",
    "ALL_SOURCES",
    # Search loop
    "SourceSearchLoop",
    "LoopState",
    "JobBoard",
    "ProfileBoard",
    "run_source",
    "setup_logger",
    # Profiles and rules
    "SourceProfile",
    "SourceRules",
    "QueryParamNames",
    "load_source_profiles",
    "Rule",
    "ReturnKind",
    "Transform",
    "apply_transform",
    "extract",
    "extract_all",
    "parse_html",
    "build_listing_url",
    "build_detail_url",
    # Fetching
    "PageFetcher",
    "RequestsPageFetcher",
    "classify_http_outcome",
    # Errors
    "ScrapingError",
    "ConfigurationError",
    "InvalidUrl",
    "FetchError",
    "RateLimited",
    "Blocked",
    "NetworkFailure",
    "NetworkCircuitBreakerException",
    "ActionError",
    "AllSourcesFailed",
]
