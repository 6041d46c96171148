"""
One-time page interactions run before the first listing page is read.

Some boards hide results behind a consent banner or need a click before the
listing renders. Actions are named in the source profile and resolved here,
so profiles stay serialisable. They drive an interactive page handle (anything
exposing click(selector), such as a browser-backed fetcher); plain HTTP
fetchers have nothing to click and the action is skipped.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Tuple

from loguru import logger

from jobtrawl.contexts.scraping.errors import ActionError, ConfigurationError


class PreSearchAction(Protocol):
    def run(self, page: Any) -> None:
        ...


def _clicker(page: Any):
    click = getattr(page, "click", None)
    if click is None:
        logger.debug(f"{type(page).__name__} is not interactive, skipping pre-search action")
    return click


@dataclass(frozen=True)
class DismissConsent:
    """Click the consent banner's accept/dismiss button."""

    selector: str

    def run(self, page: Any) -> None:
        click = _clicker(page)
        if click is None:
            return
        try:
            click(self.selector)
        except Exception as e:
            raise ActionError(f"Could not dismiss consent banner '{self.selector}': {e}") from e


@dataclass(frozen=True)
class ClickSequence:
    """Click several elements in order, e.g. open a filter then pick its first entry."""

    selectors: Tuple[str, ...]

    def run(self, page: Any) -> None:
        click = _clicker(page)
        if click is None:
            return
        for selector in self.selectors:
            try:
                click(selector)
            except Exception as e:
                raise ActionError(f"Click on '{selector}' failed: {e}") from e


def _dismiss_consent(config: Mapping[str, Any]) -> DismissConsent:
    if not config.get("selector"):
        raise ConfigurationError("dismiss_consent action requires a 'selector'")
    return DismissConsent(selector=str(config["selector"]))


def _click_sequence(config: Mapping[str, Any]) -> ClickSequence:
    selectors = config.get("selectors")
    if not selectors:
        raise ConfigurationError("click_sequence action requires a non-empty 'selectors' list")
    return ClickSequence(selectors=tuple(str(s) for s in selectors))


ACTIONS = {
    "dismiss_consent": _dismiss_consent,
    "click_sequence": _click_sequence,
}


def build_action(config: Optional[Mapping[str, Any]]) -> Optional[PreSearchAction]:
    """
    Resolve a pre-search action from profile data.

    Example config:
        {"name": "dismiss_consent", "selector": "button#hw-cc-notice-accept-btn"}
    """
    if not config:
        return None

    name = config.get("name")
    if name not in ACTIONS:
        raise ConfigurationError(
            f"Unknown pre-search action '{name}'. Available actions: {sorted(ACTIONS)}"
        )
    return ACTIONS[name](config)
