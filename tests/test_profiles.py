from __future__ import annotations

import pytest
from omegaconf import OmegaConf

from fakes import PROFILE_CONFIG, InteractiveFetcher, make_profile
from jobtrawl.contexts.scraping.actions import ClickSequence, DismissConsent, build_action
from jobtrawl.contexts.scraping.errors import ActionError, ConfigurationError
from jobtrawl.contexts.scraping.profiles import load_source_profiles
from jobtrawl.contexts.scraping.rules import ReturnKind
from jobtrawl.contexts.scraping.transforms import Transform
from jobtrawl.utils.config_helpers import BUNDLED_CONFIG_PATH


@pytest.fixture(scope="module")
def bundled():
    return load_source_profiles(BUNDLED_CONFIG_PATH / "sources.yaml")


def test_bundled_sources_load(bundled):
    assert list(bundled) == ["hellowork", "linkedin", "wttj", "indeed"]
    for name, profile in bundled.items():
        assert profile.name == name
        assert profile.base_url.startswith("https://")


def test_bundled_hellowork_profile(bundled):
    hellowork = bundled["hellowork"]
    assert hellowork.offset_value(0) == 1
    assert hellowork.rules.description.range == (0, 3)
    assert hellowork.rules.date_posted.transform is Transform.RELATIVE_DATE
    assert isinstance(hellowork.pre_search_action, DismissConsent)


def test_bundled_linkedin_profile(bundled):
    linkedin = bundled["linkedin"]
    assert linkedin.offset_value(2) == 50
    assert linkedin.rules.id.returns is ReturnKind.ATTRIBUTE
    assert linkedin.rules.id.transform is Transform.TRAILING_COLON_SEGMENT
    assert linkedin.value_maps["job_type"]["full_time"] == "F"
    assert linkedin.pre_search_action is None


def test_bundled_wttj_action(bundled):
    action = bundled["wttj"].pre_search_action
    assert isinstance(action, ClickSequence)
    assert len(action.selectors) == 2


def test_profiles_are_read_only(bundled):
    with pytest.raises(TypeError):
        bundled["other"] = bundled["linkedin"]
    with pytest.raises(TypeError):
        bundled["linkedin"].value_maps["job_type"]["full_time"] = "X"


@pytest.mark.parametrize("missing", ["base_url", "listing_path", "detail_path", "rules", "params"])
def test_missing_profile_keys(missing):
    config = {k: v for k, v in PROFILE_CONFIG.items() if k != missing}
    with pytest.raises(ConfigurationError, match=missing):
        load_source_profiles(OmegaConf.create({"sources": {"broken": config}}))


def test_missing_rule():
    rules = {k: v for k, v in PROFILE_CONFIG["rules"].items() if k != "title"}
    with pytest.raises(ConfigurationError, match="title"):
        make_profile(rules=rules)


def test_date_rule_is_optional():
    rules = {k: v for k, v in PROFILE_CONFIG["rules"].items() if k != "date_posted"}
    assert make_profile(rules=rules).rules.date_posted is None


def test_profile_validation():
    with pytest.raises(ConfigurationError):
        make_profile(detail_path="jobs/")
    with pytest.raises(ConfigurationError):
        make_profile(offset_step=0)
    with pytest.raises(ConfigurationError):
        make_profile(params={"query": "q", "salary": "s"})
    with pytest.raises(ConfigurationError):
        make_profile(params={"location": "l"})


def test_empty_sources_config():
    with pytest.raises(ConfigurationError):
        load_source_profiles(OmegaConf.create({"sources": {}}))


def test_build_action():
    assert build_action(None) is None
    assert build_action({}) is None
    assert build_action({"name": "dismiss_consent", "selector": "#ok"}) == DismissConsent("#ok")
    assert build_action({"name": "click_sequence", "selectors": ["#a", "#b"]}) == ClickSequence(("#a", "#b"))

    with pytest.raises(ConfigurationError):
        build_action({"name": "scroll_forever"})
    with pytest.raises(ConfigurationError):
        build_action({"name": "dismiss_consent"})
    with pytest.raises(ConfigurationError):
        build_action({"name": "click_sequence", "selectors": []})


def test_click_sequence_clicks_in_order():
    fetcher = InteractiveFetcher()
    ClickSequence(("#a", "#b", "#c")).run(fetcher)
    assert fetcher.clicks == ["#a", "#b", "#c"]


def test_failed_click_is_an_action_error():
    class BrokenPage:
        def click(self, selector):
            raise RuntimeError("element not found")

    with pytest.raises(ActionError, match="#accept"):
        DismissConsent("#accept").run(BrokenPage())


def test_actions_skip_non_interactive_pages():
    DismissConsent("#accept").run(object())
    ClickSequence(("#a",)).run(object())
