"""
Declarative extraction rules.

A Rule says where a field lives in a page (CSS selector plus an optional range
of matches), what to take from each matched element, and how to normalise the
result. Rules are plain data so source profiles can live in YAML.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from jobtrawl.contexts.scraping.errors import ConfigurationError
from jobtrawl.contexts.scraping.transforms import Transform


class ReturnKind(str, Enum):
    TEXT = "text"
    ATTRIBUTE = "attribute"
    HTML = "html"


@dataclass(frozen=True)
class Rule:
    """
    A single extraction instruction.

    Attributes:
        selector: CSS selector evaluated against a document or card fragment
        range: (start, end) slice of the matched elements; None means first match only
        returns: What to take from each selected element
        attribute: Attribute name, required when returns is ATTRIBUTE
        transform: Named transform applied to each extracted value
    """

    selector: str
    range: Optional[Tuple[int, int]] = None
    returns: ReturnKind = ReturnKind.TEXT
    attribute: Optional[str] = None
    transform: Transform = Transform.IDENTITY

    def __post_init__(self):
        if not self.selector or not self.selector.strip():
            raise ConfigurationError("Rule selector must not be empty")

        if self.returns is ReturnKind.ATTRIBUTE and not self.attribute:
            raise ConfigurationError(
                f"Rule '{self.selector}' returns an attribute but names none"
            )

        if self.range is not None:
            start, end = self.range
            if start < 0 or end < 0 or start > end:
                raise ConfigurationError(
                    f"Rule '{self.selector}' has invalid range {self.range}: expected 0 <= start <= end"
                )

    def bounds(self, matched: int, every_match: bool = False) -> Tuple[int, int]:
        """
        Clamp the rule's range to the number of matched elements.

        Without a range the rule selects the first match only, or every match
        when every_match is set (job cards). Always returns start <= end <= matched.
        """
        if self.range is None:
            return 0, matched if every_match else min(1, matched)
        start, end = self.range
        end = min(end, matched)
        start = min(start, end)
        return start, end

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "Rule":
        """
        Build a rule from a mapping (plain dict or OmegaConf node).

        Example:
            >>> Rule.from_config({"selector": "li.job", "returns": "attribute", "attribute": "data-id"})
        """
        if "selector" not in config:
            raise ConfigurationError(f"Rule config is missing 'selector': {dict(config)}")

        try:
            returns = ReturnKind(str(config.get("returns", "text")).lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown return kind '{config.get('returns')}' for selector '{config['selector']}'"
            )

        range_value = config.get("range")
        if range_value is not None:
            if len(range_value) != 2:
                raise ConfigurationError(
                    f"Rule range for '{config['selector']}' must be [start, end], got {list(range_value)}"
                )
            range_value = (int(range_value[0]), int(range_value[1]))

        return cls(
            selector=str(config["selector"]),
            range=range_value,
            returns=returns,
            attribute=config.get("attribute"),
            transform=Transform.from_name(config.get("transform")),
        )
