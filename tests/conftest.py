"""Shared test fixtures for Baseline Engine tests."""

from __future__ import annotations

from typing import Any

import pytest

from baseline_engine.dataset import WebFeaturesDataStore
from baseline_engine.resolver import SupportResolver, set_default_resolver


FIXTURE_FEATURES: dict[str, Any] = {
    "fetch": {
        "name": "Fetch",
        "spec": ["https://fetch.spec.whatwg.org/"],
        "status": {
            "baseline": "high",
            "baseline_low_date": "2017-03-27",
            "baseline_high_date": "2019-09-27",
            "support": {"chrome": "42", "edge": "14", "firefox": "39", "safari": "10.1"},
        },
    },
    "broadcastchannel": {
        "name": "BroadcastChannel",
        "spec": "https://html.spec.whatwg.org/multipage/web-messaging.html#broadcasting-to-other-browsing-contexts",
        "status": {
            "baseline": "low",
            "baseline_low_date": "2022-03-14",
            "support": {"chrome": "54", "edge": "79", "firefox": "38", "safari": "15.4"},
        },
    },
    "css-display": {
        "name": "display",
        "status": {
            "baseline": "high",
            "by_compat_key": {
                "css.properties.display": {"baseline": False, "support": {"chrome": "1"}},
            },
        },
    },
    "css-color-scheme": {
        "name": "color-scheme",
        "status": {
            "baseline": "low",
            "by_compat_key": {
                "css.properties.color-scheme": {
                    "baseline": "high",
                    "support": {"chrome": "81", "edge": "81", "firefox": "96", "safari": "13"},
                },
            },
        },
    },
    "optional-chaining": {"name": "Optional chaining", "status": {"baseline": "high"}},
    "nullish-coalescing": {"name": "Nullish coalescing", "status": {"baseline": "high"}},
    "urlpattern": {"name": "URLPattern", "status": {"baseline": False}},
    "fetch-api": {"kind": "moved", "redirect_target": "fetch"},
    "grid-legacy": {"kind": "split", "redirect_targets": ["grid", "subgrid"]},
}


class StaticRegistry:
    """Feature-level provider backed by a plain dict."""

    def __init__(self, features: dict[str, Any]):
        self.features = features

    def get(self, feature_id: str) -> dict[str, Any] | None:
        return self.features.get(feature_id)


class StaticStatuses:
    """Granular provider backed by a ``(feature_id, key) -> status`` dict."""

    def __init__(self, statuses: dict[tuple[str, str], Any] | None = None):
        self.statuses = statuses or {}

    def get_status(self, feature_id: str, support_key: str) -> dict[str, Any]:
        return self.statuses[(feature_id, support_key)]


def static_resolver(baselines: dict[str, Any]) -> SupportResolver:
    """Resolver where each feature id maps straight to a Baseline value."""
    features = {fid: {"status": {"baseline": b}} for fid, b in baselines.items()}
    return SupportResolver(StaticRegistry(features), StaticStatuses())


@pytest.fixture(autouse=True)
def isolated_dataset(tmp_path, monkeypatch):
    """Point the default resolver at an empty dataset for every test."""
    monkeypatch.setenv("BASELINE_DATA_PATH", str(tmp_path / "no_cache.json"))
    set_default_resolver(None)
    yield
    set_default_resolver(None)


@pytest.fixture
def store(tmp_path) -> WebFeaturesDataStore:
    s = WebFeaturesDataStore(cache_path=str(tmp_path / "web_features.json"))
    s.load_data({"features": FIXTURE_FEATURES})
    return s


@pytest.fixture
def resolver(store) -> SupportResolver:
    return SupportResolver.from_store(store)


@pytest.fixture
def empty_resolver(tmp_path) -> SupportResolver:
    return SupportResolver.from_store(WebFeaturesDataStore(cache_path=str(tmp_path / "empty.json")))
