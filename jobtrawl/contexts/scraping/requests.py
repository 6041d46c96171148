"""HTTP page fetching with failure classification."""

import os
import time
from pathlib import Path
from typing import Mapping, Optional, Protocol, Union

import requests
from dotenv import load_dotenv
from loguru import logger
from omegaconf import OmegaConf
from omegaconf.dictconfig import DictConfig

from jobtrawl.contexts.scraping.errors import (
    Blocked,
    NetworkCircuitBreakerException,
    NetworkFailure,
    RateLimited,
)
from jobtrawl.utils.config_helpers import BUNDLED_CONFIG_PATH

load_dotenv()
CONFIG_PATH = Path(os.getenv("CONFIG_PATH", BUNDLED_CONFIG_PATH))

RATE_LIMITED_CODES = (429,)
BLOCKED_CODES = (403,)

# Connection-level problems worth another attempt; HTTP statuses never are
RetryableErrorTypes = (requests.exceptions.ConnectionError, requests.exceptions.Timeout)

LINK_GOOD = "success"
RATE_LIMITED = "rate limited"
BLOCKED = "blocked"
NETWORK_FAILURE = "network failure"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)


class PageFetcher(Protocol):
    """
    Anything that turns a URL into HTML.

    Implementations raise RateLimited, Blocked or NetworkFailure instead of
    returning error pages. Browser-backed implementations may also expose
    click(selector) and page_content() for pre-search actions. A close()
    method, when present, is called once the source's search is over.
    """

    def fetch(self, url: str, headers: Optional[Mapping[str, str]] = None) -> str:
        ...


def classify_http_outcome(
    url: str,
    exception: Optional[requests.RequestException] = None,
    response: Optional[requests.Response] = None,
) -> str:
    if response is None and exception is not None:
        response = getattr(exception, "response", None)

    if response is not None:  # We received a response object.
        status = response.status_code
        if 200 <= status < 300:
            return LINK_GOOD
        elif status in RATE_LIMITED_CODES:
            return RATE_LIMITED
        elif status in BLOCKED_CODES:
            return BLOCKED
        else:
            return NETWORK_FAILURE

    # Either an exception without a response (DNS, timeout, refused connection) or nothing at all
    return NETWORK_FAILURE


def close_fetcher(fetcher) -> None:
    close = getattr(fetcher, "close", None)
    if close is not None:
        close()


_FAILURE_CLASSES = {
    RATE_LIMITED: RateLimited,
    BLOCKED: Blocked,
    NETWORK_FAILURE: NetworkFailure,
}


def request_with_retry(session, url, max_attempts=3, delay=1.0, **kwargs):
    """
    GET a URL, retrying connection errors and timeouts with exponential backoff.

    Any response, whatever its status, is returned as-is for classification.

    Args:
        session (requests.Session): Session to send the request with
        url (str): The URL to request
        max_attempts (int): How many times to try the request (default: 3)
        delay (float): Initial delay in seconds between retries (default: 1.0)
        **kwargs: Any additional arguments to pass to session.get()

    Raises:
        requests.RequestException: If all attempts fail or the error is not retryable
    """
    most_recent_exception = None

    for attempt in range(max_attempts):
        try:
            return session.get(url, **kwargs)

        except RetryableErrorTypes as e:
            most_recent_exception = e

            if attempt < max_attempts - 1:
                wait_time = delay * (2**attempt)
                logger.debug(f"Request to {url} failed ({e}), retrying in {wait_time}s...")
                time.sleep(wait_time)

    raise most_recent_exception


class RequestsPageFetcher:
    """
    PageFetcher backed by a requests.Session.

    Not thread-safe: give each concurrent source search its own instance.
    """

    def __init__(
        self,
        timeout=30,
        user_agent=None,
        headers=None,
        request_delay=1.0,
        max_retries=3,
        max_consecutive_failures=5,
        session=None,
    ):
        self.timeout = timeout
        self.request_delay = request_delay
        self.max_retries = max(1, max_retries)
        self.max_consecutive_failures = max_consecutive_failures
        self.consecutive_failures = 0
        self._last_request = None

        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent or DEFAULT_USER_AGENT})
        if headers:
            self.session.headers.update(dict(headers))

    @classmethod
    def from_config(cls, fetch_config: Union[Path, str, DictConfig, None] = None) -> "RequestsPageFetcher":
        """Create a fetcher from fetch.yaml (default) or an already loaded config."""
        if fetch_config is None:
            fetch_config = CONFIG_PATH / "fetch.yaml"
        if isinstance(fetch_config, (Path, str)):
            fetch_config = OmegaConf.load(fetch_config)

        headers = fetch_config.get("headers")
        return cls(
            timeout=fetch_config.timeout,
            user_agent=fetch_config.get("user_agent"),
            headers=OmegaConf.to_container(headers) if headers else None,
            request_delay=fetch_config.request_delay,
            max_retries=fetch_config.max_retries,
            max_consecutive_failures=fetch_config.max_consecutive_failures,
        )

    def close(self):
        """Release the session's pooled connections."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _be_polite(self):
        if self._last_request is not None:
            remaining = self.request_delay - (time.monotonic() - self._last_request)
            if remaining > 0:
                time.sleep(remaining)
        self._last_request = time.monotonic()

    def fetch(self, url: str, headers: Optional[Mapping[str, str]] = None) -> str:
        """
        Fetch a page and return its HTML.

        Raises:
            RateLimited: On HTTP 429
            Blocked: On HTTP 403
            NetworkFailure: On any other failure
            NetworkCircuitBreakerException: If consecutive network failures exceed the threshold
        """
        self._be_polite()
        error_msg = None
        status_code = None

        try:
            response = request_with_retry(
                self.session,
                url,
                max_attempts=self.max_retries,
                delay=self.request_delay,
                headers=dict(headers) if headers else None,
                timeout=self.timeout,
            )
            classification = classify_http_outcome(url, response=response)
            status_code = response.status_code
        except requests.RequestException as e:
            classification = classify_http_outcome(url, exception=e)
            response = None
            error_msg = str(e)

        if classification == LINK_GOOD:
            self.consecutive_failures = 0
            return response.text

        error_msg = error_msg or f"HTTP {status_code}"

        if classification == NETWORK_FAILURE:
            self.consecutive_failures += 1
            if self.consecutive_failures >= self.max_consecutive_failures:
                raise NetworkCircuitBreakerException(
                    f"Circuit breaker: {self.consecutive_failures} consecutive failures (last: {url}: {error_msg})",
                    url=url,
                    status_code=status_code,
                )

        raise _FAILURE_CLASSES[classification](
            f"{classification} for {url}: {error_msg}", url=url, status_code=status_code
        )
