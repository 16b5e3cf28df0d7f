"""Tests for the web-features dataset store and its providers."""

from __future__ import annotations

import asyncio
import json

import aiohttp
import pytest
from aiohttp import web
from aiohttp import test_utils

from baseline_engine.analyzer import analyze_text
from baseline_engine.dataset import FeatureRegistry, SupportStatusProvider, WebFeaturesDataStore
from baseline_engine.resolver import set_default_resolver

from conftest import FIXTURE_FEATURES


def test_missing_cache_gives_empty_store(tmp_path):
    store = WebFeaturesDataStore(cache_path=str(tmp_path / "missing.json"))
    assert len(store) == 0
    assert store.last_update is None


def test_cache_is_loaded_on_construction(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text(json.dumps({"last_update": "2026-01-02T03:04:05", "features": FIXTURE_FEATURES}))
    store = WebFeaturesDataStore(cache_path=str(path))
    assert len(store) == len(FIXTURE_FEATURES)
    assert store.last_update.year == 2026


def test_corrupt_cache_is_ignored(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("{ broken")
    assert len(WebFeaturesDataStore(cache_path=str(path))) == 0


@pytest.mark.parametrize("payload", [
    [],
    {"features": ["fetch"]},
    {"features": "fetch"},
])
def test_wrong_shaped_cache_is_ignored(tmp_path, payload):
    path = tmp_path / "cache.json"
    path.write_text(json.dumps(payload))
    store = WebFeaturesDataStore(cache_path=str(path))
    assert len(store) == 0
    assert store.last_update is None


def test_bad_last_update_keeps_features(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text(json.dumps({"last_update": "garbage", "features": {"fetch": FIXTURE_FEATURES["fetch"]}}))
    store = WebFeaturesDataStore(cache_path=str(path))
    assert store.last_update is None
    assert store.get_feature("fetch")["name"] == "Fetch"


@pytest.mark.parametrize("cache_text", ["[]", '{"last_update": "garbage", "features": {}}'])
def test_default_resolver_survives_bad_cache(tmp_path, monkeypatch, cache_text):
    """A bad cache degrades to an empty dataset instead of breaking analysis"""
    path = tmp_path / "bad_cache.json"
    path.write_text(cache_text)
    monkeypatch.setenv("BASELINE_DATA_PATH", str(path))
    set_default_resolver(None)

    report = analyze_text("const v = a ?? b;", "js")

    assert report.total == 1
    assert report.risky[0].id == "nullish-coalescing"
    assert report.risky[0].baseline is False


def test_cache_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "env_cache.json"
    path.write_text(json.dumps({"features": {"fetch": FIXTURE_FEATURES["fetch"]}}))
    monkeypatch.setenv("BASELINE_DATA_PATH", str(path))
    assert WebFeaturesDataStore().get_feature("fetch")["name"] == "Fetch"


def test_save_and_reload_cache(store):
    store._save_to_cache()
    reloaded = WebFeaturesDataStore(cache_path=store.cache_path)
    assert reloaded.get_feature("broadcastchannel")["name"] == "BroadcastChannel"


def test_load_data_accepts_bare_feature_map(tmp_path):
    store = WebFeaturesDataStore(cache_path=str(tmp_path / "c.json"))
    store.load_data({"fetch": FIXTURE_FEATURES["fetch"], "bogus": "not a feature"})
    assert list(store.features) == ["fetch"]


def test_registry_follows_moved_and_drops_split(store):
    registry = FeatureRegistry(store)
    assert registry.get("fetch-api")["name"] == "Fetch"
    assert registry.get("grid-legacy") is None
    assert registry.get("nope") is None


def test_redirect_cycles_terminate(tmp_path):
    store = WebFeaturesDataStore(cache_path=str(tmp_path / "c.json"))
    store.load_data({
        "a": {"kind": "moved", "redirect_target": "b"},
        "b": {"kind": "moved", "redirect_target": "a"},
    })
    assert store.get_feature("a") is None


def test_status_provider(store):
    provider = SupportStatusProvider(store)
    assert provider.get_status("css-display", "css.properties.display")["baseline"] is False
    with pytest.raises(LookupError):
        provider.get_status("css-display", "css.properties.float")
    with pytest.raises(LookupError):
        provider.get_status("nope", "css.properties.display")


# ============================================================================
# DOWNLOAD
# ============================================================================

def _dataset_app(status: int = 200, payload=None) -> web.Application:
    async def handler(request):
        if status != 200:
            return web.Response(status=status, text="unavailable")
        return web.json_response(payload)

    app = web.Application()
    app.router.add_get("/data.json", handler)
    return app


def _fetch_from(app: web.Application, store: WebFeaturesDataStore) -> bool:
    async def run():
        async with test_utils.TestServer(app) as server:
            store.data_url = str(server.make_url("/data.json"))
            return await store.fetch_baseline_data()

    return asyncio.run(run())


def test_fetch_loads_and_caches(tmp_path):
    cache = tmp_path / "cache.json"
    store = WebFeaturesDataStore(cache_path=str(cache))
    payload = {"features": {"fetch": FIXTURE_FEATURES["fetch"]}, "groups": {}}

    assert _fetch_from(_dataset_app(payload=payload), store) is True

    assert list(store.features) == ["fetch"]
    assert store.last_update is not None
    reloaded = WebFeaturesDataStore(cache_path=str(cache))
    assert reloaded.get_feature("fetch")["name"] == "Fetch"
    assert reloaded.last_update == store.last_update


def test_fetch_error_status_keeps_current_data(store):
    before = dict(store.features)
    assert _fetch_from(_dataset_app(status=503), store) is False
    assert store.features == before


def test_fetch_non_object_payload_keeps_current_data(store):
    before = dict(store.features)
    assert _fetch_from(_dataset_app(payload=["fetch"]), store) is False
    assert store.features == before


def test_fetch_client_error_keeps_current_data(store, monkeypatch):
    def refuse(self, url, **kwargs):
        raise aiohttp.ClientConnectionError(f"cannot connect to {url}")

    monkeypatch.setattr(aiohttp.ClientSession, "get", refuse)
    before = dict(store.features)

    assert asyncio.run(store.fetch_baseline_data()) is False
    assert store.features == before
