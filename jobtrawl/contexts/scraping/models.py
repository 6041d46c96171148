"""Search parameters and the job postings a search returns."""

from dataclasses import asdict, dataclass, replace
from datetime import date
from typing import Optional, Tuple, Union

ALL_SOURCES = "all"

DEFAULT_LIMIT = 50


@dataclass(frozen=True)
class SearchParams:
    """
    Caller-supplied search parameters, fixed for the duration of one search.

    Attributes:
        query: Keywords to search for
        location: Free-text location
        limit: Maximum number of jobs to return per source
        offset: First listing page to fetch (0-based page index)
        single_page: Stop after the first listing page even if below limit
        sources: "all", a single source name, or a tuple of source names
        radius: Search radius, sent only to boards that support it
        job_type: e.g. "full_time"; translated through the board's value map
        experience_level: e.g. "entry_level"
        date_posted: Recency window, e.g. "past_week"
    """

    query: str
    location: str = ""
    limit: int = DEFAULT_LIMIT
    offset: int = 0
    single_page: bool = False
    sources: Union[str, Tuple[str, ...]] = ALL_SOURCES
    radius: Optional[int] = None
    job_type: Optional[str] = None
    experience_level: Optional[str] = None
    date_posted: Optional[str] = None

    def __post_init__(self):
        if self.limit < 0:
            raise ValueError(f"limit must be non-negative, got {self.limit}")
        if self.offset < 0:
            raise ValueError(f"offset must be non-negative, got {self.offset}")
        if isinstance(self.sources, list):
            object.__setattr__(self, "sources", tuple(self.sources))

    @property
    def source_names(self) -> Optional[Tuple[str, ...]]:
        """Requested source names, or None for all sources."""
        if self.sources == ALL_SOURCES:
            return None
        if isinstance(self.sources, str):
            return (self.sources,)
        return tuple(self.sources)

    def for_source(self, name: str) -> "SearchParams":
        return replace(self, sources=name)


@dataclass(frozen=True)
class Job:
    id: str
    title: str
    company: str
    location: str
    description: str
    url: str
    date_posted: date
    source: str

    def to_dict(self) -> dict:
        record = asdict(self)
        record["date_posted"] = self.date_posted.isoformat()
        return record
