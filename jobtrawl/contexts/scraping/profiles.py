"""
Source profiles: static, per-board scraping configuration.

A profile holds everything board-specific (URLs, query parameter names,
extraction rules, optional pre-search action), so a single search loop can
serve every board. Profiles are loaded once from YAML and shared read-only
between concurrent searches.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlparse

from dotenv import load_dotenv
from omegaconf import OmegaConf
from omegaconf.dictconfig import DictConfig

from jobtrawl.contexts.scraping.actions import PreSearchAction, build_action
from jobtrawl.contexts.scraping.errors import ConfigurationError
from jobtrawl.contexts.scraping.rules import Rule
from jobtrawl.utils.config_helpers import BUNDLED_CONFIG_PATH

load_dotenv()
CONFIG_PATH = Path(os.getenv("CONFIG_PATH", BUNDLED_CONFIG_PATH))

JOB_ID_PLACEHOLDER = "{id}"

RULE_FIELDS = ("card", "id", "title", "company", "location", "description", "date_posted")


@dataclass(frozen=True)
class SourceRules:
    card: Rule
    id: Rule
    title: Rule
    company: Rule
    location: Rule
    description: Rule
    date_posted: Optional[Rule] = None


@dataclass(frozen=True)
class QueryParamNames:
    """Names a board uses for each search parameter. None means the board has no such parameter."""

    query: str
    location: Optional[str] = None
    offset: Optional[str] = None
    radius: Optional[str] = None
    job_type: Optional[str] = None
    experience_level: Optional[str] = None
    date_posted: Optional[str] = None


@dataclass(frozen=True)
class SourceProfile:
    """
    Immutable configuration for one job board.

    The search loop always counts listing pages from 0; offset_start and
    offset_step convert that page index into the value the board expects
    (a 1-based page number, or a result index such as LinkedIn's start=25).
    """

    name: str
    base_url: str
    listing_path: str
    detail_path: str
    rules: SourceRules
    params: QueryParamNames
    value_maps: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    offset_start: int = 0
    offset_step: int = 1
    pre_search_action: Optional[PreSearchAction] = None

    def __post_init__(self):
        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(
                f"[{self.name}] base_url must be an absolute http(s) URL, got '{self.base_url}'"
            )
        if JOB_ID_PLACEHOLDER not in self.detail_path:
            raise ConfigurationError(
                f"[{self.name}] detail_path '{self.detail_path}' has no {JOB_ID_PLACEHOLDER} placeholder"
            )
        if self.offset_step < 1 or self.offset_start < 0:
            raise ConfigurationError(
                f"[{self.name}] offset_start must be >= 0 and offset_step >= 1"
            )

    def offset_value(self, page: int) -> int:
        """Convert a 0-based page index into this board's offset parameter value."""
        return self.offset_start + page * self.offset_step

    @classmethod
    def from_config(cls, name: str, config: Mapping[str, Any]) -> "SourceProfile":
        for required in ("base_url", "listing_path", "detail_path", "rules", "params"):
            if required not in config:
                raise ConfigurationError(f"[{name}] profile is missing '{required}'")

        rules_config = config["rules"]
        missing_rules = [r for r in RULE_FIELDS if r != "date_posted" and r not in rules_config]
        if missing_rules:
            raise ConfigurationError(f"[{name}] profile is missing rules: {missing_rules}")

        rules = SourceRules(
            **{
                rule_name: Rule.from_config(rules_config[rule_name])
                for rule_name in RULE_FIELDS
                if rules_config.get(rule_name) is not None
            }
        )

        params_config = _to_dict(config["params"])
        unknown_params = set(params_config) - set(QueryParamNames.__dataclass_fields__)
        if unknown_params:
            raise ConfigurationError(f"[{name}] unknown query parameters: {sorted(unknown_params)}")
        if not params_config.get("query"):
            raise ConfigurationError(f"[{name}] params must name the 'query' parameter")

        value_maps = {
            param: MappingProxyType({str(k): str(v) for k, v in mapping.items()})
            for param, mapping in _to_dict(config.get("value_maps") or {}).items()
        }

        return cls(
            name=name,
            base_url=str(config["base_url"]),
            listing_path=str(config["listing_path"]),
            detail_path=str(config["detail_path"]),
            rules=rules,
            params=QueryParamNames(**params_config),
            value_maps=MappingProxyType(value_maps),
            offset_start=int(config.get("offset_start", 0)),
            offset_step=int(config.get("offset_step", 1)),
            pre_search_action=build_action(_to_dict(config.get("pre_search_action") or {})),
        )


def _to_dict(config: Any) -> Dict[str, Any]:
    if isinstance(config, DictConfig):
        return OmegaConf.to_container(config, resolve=True)
    return dict(config)


def load_source_profiles(
    sources_config: Union[Path, str, DictConfig] = CONFIG_PATH / "sources.yaml",
) -> Mapping[str, SourceProfile]:
    """
    Build the read-only source registry from a YAML file or DictConfig.

    Args:
        sources_config: Path to a YAML file with a top-level 'sources' mapping,
                        or an already loaded DictConfig

    Returns:
        Read-only mapping of source name to SourceProfile, in file order

    Raises:
        ConfigurationError: If any profile is malformed
    """
    if isinstance(sources_config, (Path, str)):
        config = OmegaConf.load(sources_config)
    elif isinstance(sources_config, DictConfig):
        config = sources_config
    else:
        raise TypeError(
            f"sources_config must be Path, str, or DictConfig, got {type(sources_config)}"
        )

    if not config.get("sources"):
        raise ConfigurationError("Source config has no 'sources' entries")

    profiles = {
        str(name): SourceProfile.from_config(str(name), profile_config)
        for name, profile_config in config.sources.items()
    }
    return MappingProxyType(profiles)
