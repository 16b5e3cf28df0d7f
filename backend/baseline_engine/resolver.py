"""
Feature support resolution

Resolves a feature id (and optional compat key) to a Baseline status using
two data providers, most precise first:

1. the granular support-status provider, keyed by ``support_key``;
2. the feature registry, keyed by ``feature_id``;
3. otherwise ``False`` (not Baseline).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from .dataset import FeatureRegistry, SupportStatusProvider, WebFeaturesDataStore
from .models import BaselineStatus, BrowserSupport

logger = logging.getLogger(__name__)

SOURCE_SUPPORT_KEY = "support-key"
SOURCE_FEATURE = "feature"
SOURCE_DEFAULT = "default"


class FeatureLookup(Protocol):
    def get(self, feature_id: str) -> Optional[Dict[str, Any]]: ...


class StatusLookup(Protocol):
    def get_status(self, feature_id: str, support_key: str) -> Dict[str, Any]: ...


@dataclass(frozen=True)
class Resolution:
    baseline: BaselineStatus
    support: BrowserSupport = field(default_factory=BrowserSupport)
    source: str = SOURCE_DEFAULT
    name: Optional[str] = None
    spec: Optional[str] = None
    mdn: Optional[str] = None
    baseline_low_date: Optional[str] = None
    baseline_high_date: Optional[str] = None


def normalize_baseline(value: Any) -> Optional[BaselineStatus]:
    """Map a raw dataset value onto a status; ``None`` when it is not definite"""
    if value in ("high", "low"):
        return value
    if value is False:
        return False
    return None


def _first(value: Any) -> Optional[str]:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


class SupportResolver:
    """Two-tier Baseline status lookup over injectable data providers"""

    def __init__(self, registry: FeatureLookup, status_provider: StatusLookup):
        self.registry = registry
        self.status_provider = status_provider

    @classmethod
    def from_store(cls, store: WebFeaturesDataStore) -> "SupportResolver":
        return cls(FeatureRegistry(store), SupportStatusProvider(store))

    def _lookup_feature(self, feature_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.registry.get(feature_id)
        except Exception as e:
            logger.debug(f"Feature registry lookup failed for {feature_id}: {e}")
            return None

    def _lookup_key(self, feature_id: str, support_key: str) -> Optional[Dict[str, Any]]:
        try:
            return self.status_provider.get_status(feature_id, support_key)
        except Exception as e:
            logger.debug(f"Support key lookup failed for {feature_id} ({support_key}): {e}")
            return None

    def resolve(self, feature_id: str, support_key: Optional[str] = None) -> Resolution:
        feature = self._lookup_feature(feature_id) or {}
        feature_status = feature.get("status") or {}

        baseline: Optional[BaselineStatus] = None
        support_data = None
        source = SOURCE_DEFAULT

        if support_key:
            key_status = self._lookup_key(feature_id, support_key)
            if key_status is not None:
                baseline = normalize_baseline(key_status.get("baseline"))
                if baseline is not None:
                    support_data = key_status.get("support")
                    source = SOURCE_SUPPORT_KEY

        if baseline is None:
            baseline = normalize_baseline(feature_status.get("baseline"))
            if baseline is not None:
                source = SOURCE_FEATURE

        if baseline is None:
            baseline = False

        if support_data is None:
            support_data = feature_status.get("support")

        return Resolution(
            baseline=baseline,
            support=BrowserSupport.from_mapping(support_data),
            source=source,
            name=feature.get("name"),
            spec=_first(feature.get("spec")),
            mdn=_first(feature.get("mdn_url")),
            baseline_low_date=feature_status.get("baseline_low_date"),
            baseline_high_date=feature_status.get("baseline_high_date"),
        )


_default_resolver: Optional[SupportResolver] = None


def get_default_resolver() -> SupportResolver:
    """Resolver over the cached web-features dataset, created on first use"""
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = SupportResolver.from_store(WebFeaturesDataStore())
    return _default_resolver


def set_default_resolver(resolver: Optional[SupportResolver]):
    """Replace the process-wide resolver; ``None`` rebuilds it lazily"""
    global _default_resolver
    _default_resolver = resolver
