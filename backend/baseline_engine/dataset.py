"""
web-features dataset integration

The store keeps the published web-features ``data.json`` (features keyed by
id, each with a Baseline status and per compat-key statuses). It is read
from a local JSON cache and can be refreshed from the CDN.
"""

import asyncio
import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional

import aiohttp

logger = logging.getLogger(__name__)

DEFAULT_DATA_URL = "https://unpkg.com/web-features/data.json"
DEFAULT_CACHE_PATH = "web_features_cache.json"

# Guards against cycles in "moved" redirect chains
MAX_REDIRECTS = 5


def default_cache_path() -> str:
    return os.environ.get("BASELINE_DATA_PATH", DEFAULT_CACHE_PATH)


def default_data_url() -> str:
    return os.environ.get("BASELINE_DATA_URL", DEFAULT_DATA_URL)


# ============================================================================
# DATASET STORE
# ============================================================================

class WebFeaturesDataStore:
    """Holds the web-features dataset, backed by a JSON cache file"""

    def __init__(self, cache_path: Optional[str] = None, data_url: Optional[str] = None):
        self.cache_path = cache_path or default_cache_path()
        self.data_url = data_url or default_data_url()
        self.features: Dict[str, Dict[str, Any]] = {}
        self.last_update: Optional[datetime] = None
        self._load_from_cache()

    async def fetch_baseline_data(self) -> bool:
        """Download the dataset and refresh the cache; keeps current data on failure"""
        print(f"📥 Fetching web-features data from {self.data_url}...")

        try:
            timeout = aiohttp.ClientTimeout(total=60)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.data_url) as response:
                    if response.status != 200:
                        logger.warning(f"Dataset download returned HTTP {response.status}")
                        return False
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"Error fetching web-features data: {e}")
            print("Falling back to cached data...")
            return False

        if not isinstance(data, dict):
            logger.warning(f"Dataset download is not a JSON object ({type(data).__name__})")
            return False

        self.load_data(data)
        self.last_update = datetime.now()
        self._save_to_cache()
        print(f"✓ Loaded {len(self.features)} features")
        return True

    def load_data(self, data: Dict[str, Any]):
        """Ingest a web-features payload (either the full document or its ``features`` map)"""
        features = data.get("features", data) if isinstance(data, dict) else {}
        if not isinstance(features, dict):
            logger.warning(f"Ignoring dataset with a non-mapping features value ({type(features).__name__})")
            features = {}
        self.features = {k: v for k, v in features.items() if isinstance(v, dict)}

    def _save_to_cache(self):
        cache_data = {
            "last_update": self.last_update.isoformat() if self.last_update else None,
            "features": self.features,
        }
        try:
            with open(self.cache_path, "w", encoding="utf-8") as f:
                json.dump(cache_data, f)
        except OSError as e:
            logger.warning(f"Could not write dataset cache {self.cache_path}: {e}")

    def _load_from_cache(self):
        try:
            with open(self.cache_path, "r", encoding="utf-8") as f:
                cache_data = json.load(f)
        except FileNotFoundError:
            logger.debug(f"No dataset cache at {self.cache_path}")
            return
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable dataset cache {self.cache_path}: {e}")
            return

        if not isinstance(cache_data, dict):
            logger.warning(f"Ignoring dataset cache {self.cache_path}: expected an object, got {type(cache_data).__name__}")
            return

        self.load_data(cache_data)
        last_update = cache_data.get("last_update")
        try:
            self.last_update = datetime.fromisoformat(last_update) if last_update else None
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring bad last_update in dataset cache {self.cache_path}: {e}")
            self.last_update = None
        logger.info(f"Loaded {len(self.features)} features from cache")

    def get_feature(self, feature_id: str) -> Optional[Dict[str, Any]]:
        feature = self.features.get(feature_id)
        hops = 0
        while feature is not None and feature.get("kind") == "moved" and hops < MAX_REDIRECTS:
            feature = self.features.get(feature.get("redirect_target", ""))
            hops += 1
        if feature is None or feature.get("kind") in ("moved", "split"):
            return None
        return feature

    def __len__(self) -> int:
        return len(self.features)


# ============================================================================
# DATA PROVIDERS
# ============================================================================

class FeatureRegistry:
    """Feature-level lookup: whole-feature record by id"""

    def __init__(self, store: WebFeaturesDataStore):
        self.store = store

    def get(self, feature_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get_feature(feature_id)


class SupportStatusProvider:
    """Granular lookup: Baseline status of one compat key within a feature"""

    def __init__(self, store: WebFeaturesDataStore):
        self.store = store

    def get_status(self, feature_id: str, support_key: str) -> Dict[str, Any]:
        feature = self.store.get_feature(feature_id)
        if feature is None:
            raise LookupError(f"Unknown feature: {feature_id}")

        by_key = (feature.get("status") or {}).get("by_compat_key") or {}
        status = by_key.get(support_key)
        if not isinstance(status, dict):
            raise LookupError(f"No status for {support_key} in {feature_id}")
        return status
