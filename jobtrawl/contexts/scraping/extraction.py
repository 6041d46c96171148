"""
Apply extraction rules to parsed HTML.

Extraction is pure: nothing here fetches, mutates the document or keeps a
reference to it, so callers can drop a page as soon as its fields are read.
"""

from datetime import date
from typing import List, Optional

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from jobtrawl.contexts.scraping.errors import ConfigurationError
from jobtrawl.contexts.scraping.rules import ReturnKind, Rule
from jobtrawl.contexts.scraping.transforms import apply_transform

# Separator between values taken from several elements; a blank line keeps
# descriptions split over <p> elements readable as paragraphs.
VALUE_SEPARATOR = "\n\n"


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def extract_all(document: Tag, rule: Rule, every_match: bool = False) -> List[Tag]:
    """
    Return the elements selected by the rule, with its range clamped to the matches.

    every_match makes a rule without a range select all matches instead of the first.
    """
    try:
        matches = document.select(rule.selector)
    except SelectorSyntaxError as e:
        raise ConfigurationError(f"Invalid selector '{rule.selector}': {e}") from e

    start, end = rule.bounds(len(matches), every_match=every_match)
    return matches[start:end]


def _element_value(element: Tag, rule: Rule) -> Optional[str]:
    if rule.returns is ReturnKind.TEXT:
        return element.get_text("\n", strip=True)
    if rule.returns is ReturnKind.ATTRIBUTE:
        value = element.get(rule.attribute)
        if value is None:
            return None
        # Multi-valued attributes such as class come back as lists
        if isinstance(value, list):
            value = " ".join(value)
        return value
    return element.decode_contents().strip()


def extract(document: Tag, rule: Rule, today: Optional[date] = None) -> Optional[str]:
    """
    Extract a normalised string value from a document or fragment.

    Args:
        document: Parsed page or card fragment
        rule: Extraction rule to apply
        today: Reference date for relative date transforms (default: today)

    Returns:
        The selected values, transformed and joined with a blank line, or None
        when nothing matched. A missing field is never an error.

    Raises:
        ConfigurationError: If the rule's selector is not valid CSS
    """
    elements = extract_all(document, rule)
    if not elements:
        return None

    values = []
    for element in elements:
        value = _element_value(element, rule)
        if value is None:
            continue
        values.append(apply_transform(rule.transform, value, today=today))

    if not values:
        return None

    return VALUE_SEPARATOR.join(values)
