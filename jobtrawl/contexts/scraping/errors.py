"""
Error taxonomy for job board scraping.

Failures are classified by what the caller can do about them:
- ConfigurationError: a source profile needs correcting (never retried)
- RateLimited: transient, the caller may search the source again later
- Blocked: the source refuses automated access
- NetworkFailure: any other failed fetch
- ActionError: a pre-search page interaction failed

Missing fields and empty listing pages are not errors: they surface as empty
values on a Job and as the end of pagination respectively.
"""

from typing import Optional


class ScrapingError(Exception):
    pass


class ConfigurationError(ScrapingError):
    pass


class InvalidUrl(ConfigurationError):
    pass


class FetchError(ScrapingError):
    """Base class for classified page fetch failures."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class RateLimited(FetchError):
    pass


class Blocked(FetchError):
    pass


class NetworkFailure(FetchError):
    pass


class NetworkCircuitBreakerException(NetworkFailure):
    pass


class ActionError(ScrapingError):
    pass


class AllSourcesFailed(ScrapingError):
    """Raised when every source of a combined search failed and no job was found."""

    def __init__(self, reports: dict):
        self.reports = reports
        summary = "; ".join(
            f"{name}: {report['error_type']}: {report['error']}" for name, report in reports.items()
        )
        super().__init__(f"All {len(reports)} source(s) failed ({summary})")
