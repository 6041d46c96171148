"""
Multi-source search orchestration.

Provides functionality to:
- Search a single source, propagating its errors unchanged
- Search several sources concurrently, one thread per source
- Isolate failures so one misbehaving board never costs the others' results
- Report per-source outcomes alongside the merged jobs
"""

import os
import time
import traceback
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from dotenv import load_dotenv
from loguru import logger

from jobtrawl.contexts.scraping.base import SourceSearchLoop
from jobtrawl.contexts.scraping.errors import AllSourcesFailed, ConfigurationError
from jobtrawl.contexts.scraping.models import Job, SearchParams
from jobtrawl.contexts.scraping.profiles import SourceProfile, load_source_profiles
from jobtrawl.contexts.scraping.requests import PageFetcher, RequestsPageFetcher, close_fetcher

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))

FetcherFactory = Callable[[SourceProfile], PageFetcher]


def setup_logger(log_dir: Path = LOGS_PATH) -> Path:
    """
    Configure loguru to write to a timestamped log file and the console.

    Args:
        log_dir: Directory for log files (default: LOGS_PATH from environment)

    Returns:
        Path to the created log file
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"search_{timestamp}.txt"

    logger.remove()  # Remove default stderr handler
    logger.add(log_file, format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {thread.name} | {message}")
    logger.add(
        lambda msg: print(msg, end=""),
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}\n",
        level="INFO",
    )

    return log_file


@lru_cache(maxsize=1)
def default_profiles() -> Mapping[str, SourceProfile]:
    """Bundled source profiles, loaded once per process."""
    return load_source_profiles()


def default_fetcher_factory(profile: SourceProfile) -> PageFetcher:
    return RequestsPageFetcher.from_config()


@dataclass
class SearchResult:
    """
    Merged jobs plus one report per searched source.

    Report dicts have keys:
        - status: "success" or "failed"
        - jobs_found: Number of jobs the source contributed
        - pages_fetched: Listing pages fetched
        - time_elapsed: Time in seconds
        - error: Error message (if failed)
        - error_type: Exception class name, e.g. "RateLimited" (if failed)
        - traceback: Full traceback (if failed)
    """

    jobs: List[Job] = field(default_factory=list)
    reports: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def failures(self) -> Dict[str, Dict[str, Any]]:
        return {name: r for name, r in self.reports.items() if r["status"] == "failed"}

    @property
    def succeeded(self) -> List[str]:
        return [name for name, r in self.reports.items() if r["status"] == "success"]


def _new_report() -> Dict[str, Any]:
    return {
        "status": "failed",
        "jobs_found": 0,
        "pages_fetched": 0,
        "time_elapsed": 0.0,
        "error": None,
        "error_type": None,
        "traceback": None,
    }


def run_source(
    profile: SourceProfile,
    params: SearchParams,
    fetcher: PageFetcher,
    show_progress: bool = False,
) -> Tuple[List[Job], Dict[str, Any]]:
    """
    Run one source's search loop, capturing any failure in the report.

    Returns:
        (jobs, report); jobs is empty when the source failed
    """
    start_time = time.time()
    report = _new_report()
    loop = SourceSearchLoop(profile, fetcher, show_progress=show_progress)

    try:
        logger.info(f"[{profile.name}] Starting (query={params.query!r}, limit={params.limit}, offset={params.offset})")
        jobs = loop.run(params)
        elapsed = time.time() - start_time

        report.update(
            {
                "status": "success",
                "jobs_found": len(jobs),
                "pages_fetched": loop.pages_fetched,
                "time_elapsed": elapsed,
            }
        )
        logger.success(f"[{profile.name}] Completed: {len(jobs)} jobs from {loop.pages_fetched} page(s) ({elapsed:.1f}s)")
        return jobs, report

    except Exception as e:
        elapsed = time.time() - start_time
        report.update(
            {
                "pages_fetched": loop.pages_fetched,
                "time_elapsed": elapsed,
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        logger.error(f"[{profile.name}] Failed: {type(e).__name__}: {e} ({elapsed:.1f}s)")
        logger.debug(f"[{profile.name}] Traceback:\n{report['traceback']}")
        return [], report

    finally:
        close_fetcher(fetcher)


def _select_profiles(
    params: SearchParams, profiles: Mapping[str, SourceProfile]
) -> List[SourceProfile]:
    names = params.source_names
    if names is None:
        return list(profiles.values())

    unknown = [name for name in names if name not in profiles]
    if unknown:
        raise ConfigurationError(
            f"Unknown source(s): {', '.join(unknown)}. Available sources: {', '.join(profiles)}"
        )
    return [profiles[name] for name in names]


def search(
    params: SearchParams,
    profiles: Optional[Mapping[str, SourceProfile]] = None,
    fetcher_factory: Optional[FetcherFactory] = None,
    max_workers: Optional[int] = None,
    show_progress: bool = False,
) -> SearchResult:
    """
    Search one or more job boards.

    Args:
        params: Search parameters; params.sources selects the boards
        profiles: Source registry (default: bundled sources.yaml)
        fetcher_factory: Builds a fresh PageFetcher per source (default: RequestsPageFetcher)
        max_workers: Thread cap for multi-source searches (default: one per source)
        show_progress: Show a tqdm bar per source while detail pages are fetched

    Returns:
        SearchResult with jobs merged in source order and a report per source

    Raises:
        ConfigurationError: If an unknown source is requested
        ScrapingError: For a single-source search, whatever the source raised
        AllSourcesFailed: If every source of a multi-source search failed and no job was found

    Example:
        # Search every configured board
        result = search(SearchParams(query="développeur", location="Lyon", limit=20))

        # One board, errors propagate
        result = search(SearchParams(query="data engineer", sources="linkedin"))
    """
    profiles = profiles if profiles is not None else default_profiles()
    fetcher_factory = fetcher_factory or default_fetcher_factory
    selected = _select_profiles(params, profiles)

    names = params.source_names
    if names is not None and len(names) == 1:
        profile = selected[0]
        start_time = time.time()
        fetcher = fetcher_factory(profile)
        loop = SourceSearchLoop(profile, fetcher, show_progress=show_progress)
        try:
            jobs = loop.run(params)
        finally:
            close_fetcher(fetcher)

        report = _new_report()
        report.update(
            {
                "status": "success",
                "jobs_found": len(jobs),
                "pages_fetched": loop.pages_fetched,
                "time_elapsed": time.time() - start_time,
            }
        )
        return SearchResult(jobs=jobs, reports={profile.name: report})

    if not selected:
        logger.warning("No sources to search")
        return SearchResult()

    logger.info(f"Searching {len(selected)} source(s): {', '.join(p.name for p in selected)}")

    with ThreadPoolExecutor(max_workers=max_workers or len(selected), thread_name_prefix="source") as ex:
        futures = [
            ex.submit(
                run_source,
                profile,
                params.for_source(profile.name),
                fetcher_factory(profile),
                show_progress,
            )
            for profile in selected
        ]
        # Collected in submission order so merged jobs follow source order
        outcomes = [future.result() for future in futures]

    result = SearchResult()
    for profile, (jobs, report) in zip(selected, outcomes):
        result.jobs.extend(jobs)
        result.reports[profile.name] = report

    failures = len(result.failures)
    logger.info(
        f"Search complete: {len(result.succeeded)}/{len(selected)} sources succeeded, "
        f"{failures} failed, {len(result.jobs)} jobs"
    )

    if failures == len(selected) and not result.jobs:
        raise AllSourcesFailed(result.reports)

    return result
