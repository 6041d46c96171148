"""Listing and detail URL construction from source profiles."""

from typing import Optional
from urllib.parse import quote, urlencode, urljoin, urlsplit, urlunsplit

from jobtrawl.contexts.scraping.errors import InvalidUrl
from jobtrawl.contexts.scraping.profiles import JOB_ID_PLACEHOLDER, SourceProfile

# Filters only sent when the board names them and the caller asked for them
OPTIONAL_FILTERS = ("radius", "job_type", "experience_level", "date_posted")


def _resolve(base_url: str, path: str) -> str:
    try:
        url = urljoin(base_url, path)
        parts = urlsplit(url)
    except ValueError as e:
        raise InvalidUrl(f"Cannot resolve '{path}' against '{base_url}': {e}") from e

    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidUrl(f"'{url}' (from base '{base_url}' and path '{path}') is not an absolute http(s) URL")
    return url


def _filter_value(profile: SourceProfile, field: str, value) -> str:
    """Translate a caller value through the board's value map, if it has one. Empty means omit."""
    value = str(value)
    mapping = profile.value_maps.get(field)
    if mapping is None:
        return value
    return mapping.get(value, "")


def build_listing_url(profile: SourceProfile, params, page: Optional[int] = None) -> str:
    """
    Build the listing (search results) URL for one page.

    Args:
        profile: Board configuration
        params: SearchParams for this search
        page: 0-based page index; None leaves the offset parameter out

    Raises:
        InvalidUrl: If the profile's URLs do not resolve to an absolute http(s) URL
    """
    url = _resolve(profile.base_url, profile.listing_path)
    names = profile.params

    pairs = []
    if params.query:
        pairs.append((names.query, params.query))
    if names.location and params.location:
        pairs.append((names.location, params.location))
    if names.offset and page is not None:
        pairs.append((names.offset, str(profile.offset_value(page))))

    for field in OPTIONAL_FILTERS:
        name = getattr(names, field)
        value = getattr(params, field)
        if not name or value is None or value == "":
            continue
        value = _filter_value(profile, field, value)
        if value:
            pairs.append((name, value))

    parts = urlsplit(url)
    query = "&".join(q for q in (parts.query, urlencode(pairs)) if q)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def build_detail_url(profile: SourceProfile, job_id: str) -> str:
    """
    Build the detail page URL for a job id.

    The id is percent-escaped except for '/', so boards whose ids are
    site-relative paths can use a bare '{id}' detail path.

    Example:
        'emplois/{id}.html' with id '123' -> 'https://www.hellowork.com/fr-fr/emplois/123.html'
    """
    path = profile.detail_path.replace(JOB_ID_PLACEHOLDER, quote(job_id, safe="/"))
    return _resolve(profile.base_url, path)
