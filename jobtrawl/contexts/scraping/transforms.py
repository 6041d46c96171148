"""
Named value transforms applied by extraction rules.

Transforms are referenced by name from source profiles and dispatched by
apply_transform(), so profiles stay plain data.
"""

import re
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from jobtrawl.contexts.scraping.errors import ConfigurationError


class Transform(str, Enum):
    IDENTITY = "identity"
    RELATIVE_DATE = "relative_date"
    TRAILING_COLON_SEGMENT = "trailing_colon_segment"
    ISO_DATE = "iso_date"

    @classmethod
    def from_name(cls, name: Optional[str]) -> "Transform":
        if name is None:
            return cls.IDENTITY
        try:
            return cls(str(name).lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown transform '{name}'. Available transforms: {[t.value for t in cls]}"
            )


ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")

# Keyword groups for relative dates, English and French.
# Checked in order: "today" contains "day" and "aujourd'hui" contains "jour".
_NOW_WORDS = re.compile(r"(just now|moment|today|aujourd|instant|maintenant)")
_YESTERDAY_WORDS = re.compile(r"(yesterday|\bhier\b)")
_SAME_DAY_UNITS = re.compile(r"(second|minute|\bmin\b|hour|heure|\bh\b)")
_WEEK_UNITS = re.compile(r"(week|semaine)")
_DAY_UNITS = re.compile(r"(day|jour)")
_MONTH_UNITS = re.compile(r"(month|mois)")
_YEAR_UNITS = re.compile(r"(year|\bans?\b|année)")

# A count directly followed by its unit, e.g. "3 mois" in "mis à jour il y a 3 mois"
_AMOUNT_WITH_UNIT = re.compile(
    r"(\d+)\s*(semaines?|weeks?|jours?|days?|mois|months?|années?|ans?|years?)\b"
)


def _unit_days(unit: str) -> int:
    if _WEEK_UNITS.match(unit):
        return 7
    if _DAY_UNITS.match(unit):
        return 1
    if _MONTH_UNITS.match(unit):
        return 30
    return 365


def _first_number(text: str) -> int:
    match = re.search(r"\d+", text)
    return int(match.group()) if match else 1


def relative_date(text: str, today: Optional[date] = None) -> str:
    """
    Convert a relative posting date to an ISO calendar date.

    Handles phrasings such as "il y a 2 semaines", "2 weeks ago", "hier",
    "Posted 3 days ago" or "il y a un mois". Weeks count 7 days, months 30
    and years 365. Text that is already an ISO date passes through, and
    anything unrecognised resolves to today.

    Example:
        >>> relative_date("il y a 2 semaines", today=date(2024, 6, 10))
        '2024-05-27'
    """
    today = today or date.today()
    clean = " ".join(text.strip().lower().split())

    if ISO_DATE_PATTERN.match(clean):
        return clean[:10]

    if not clean or _NOW_WORDS.search(clean):
        return today.isoformat()
    if _YESTERDAY_WORDS.search(clean):
        return (today - timedelta(days=1)).isoformat()
    if _SAME_DAY_UNITS.search(clean):
        return today.isoformat()

    amount = _AMOUNT_WITH_UNIT.search(clean)
    if amount:
        delta = timedelta(days=int(amount.group(1)) * _unit_days(amount.group(2)))
        return (today - delta).isoformat()

    # No count next to a unit ("il y a un mois"): longest unit first, so a
    # stray "jour" as in "mis à jour" never reads as days
    n = _first_number(clean)
    if _YEAR_UNITS.search(clean):
        delta = timedelta(days=365 * n)
    elif _MONTH_UNITS.search(clean):
        delta = timedelta(days=30 * n)
    elif _WEEK_UNITS.search(clean):
        delta = timedelta(weeks=n)
    elif _DAY_UNITS.search(clean):
        delta = timedelta(days=n)
    else:
        delta = timedelta(0)

    return (today - delta).isoformat()


def trailing_colon_segment(text: str) -> str:
    """'urn:li:jobPosting:4012345678' -> '4012345678'"""
    return text.rsplit(":", 1)[-1].strip()


def iso_date(text: str) -> str:
    """Truncate an ISO timestamp to its calendar date; other text is returned stripped."""
    clean = text.strip()
    if ISO_DATE_PATTERN.match(clean):
        return clean[:10]
    return clean


def apply_transform(transform: Transform, value: str, today: Optional[date] = None) -> str:
    if transform is Transform.IDENTITY:
        return value
    if transform is Transform.RELATIVE_DATE:
        return relative_date(value, today=today)
    if transform is Transform.TRAILING_COLON_SEGMENT:
        return trailing_colon_segment(value)
    if transform is Transform.ISO_DATE:
        return iso_date(value)
    raise ConfigurationError(f"Transform {transform!r} has no implementation")


def parse_posted_date(text: Optional[str], today: Optional[date] = None) -> date:
    """
    Best-effort conversion of an extracted date string to a calendar date.

    Accepts "YYYY-MM-DD" and "YYYY-MM-DDTHH:MM:SS[Z]"; missing or unparseable
    values fall back to today.
    """
    today = today or date.today()
    if not text:
        return today

    clean = text.strip()
    for fmt in ("%Y-%m-%dT%H:%M:%SZ", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d"):
        try:
            return datetime.strptime(clean, fmt).date()
        except ValueError:
            continue

    if ISO_DATE_PATTERN.match(clean):
        try:
            return datetime.strptime(clean[:10], "%Y-%m-%d").date()
        except ValueError:
            pass

    return today
