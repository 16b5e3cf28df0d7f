"""
Report building: classify detections under a rule configuration
"""

from typing import Iterable, List, Optional

from .config import DEFAULT_CONFIG, BaselineConfig
from .models import BaselineReport, BaselineStatus, FeatureDetection, RiskyFeature
from .resolver import Resolution, SupportResolver, get_default_resolver


def safety_score(safe: int, total: int) -> int:
    """Percentage of safe features, rounded half up; 100 when nothing was analyzed"""
    if total <= 0:
        return 100
    return (safe * 200 + total) // (2 * total)


def is_risky(status: BaselineStatus, config: BaselineConfig) -> bool:
    return (
        (status is False and config.rules.block_false)
        or (status == "low" and not config.rules.allow_low)
    )


def _risky_feature(detection: FeatureDetection, resolution: Resolution) -> RiskyFeature:
    return RiskyFeature(
        id=detection.feature_id,
        baseline=False if resolution.baseline is False else "low",
        support=resolution.support,
        name=resolution.name,
        spec=resolution.spec,
        mdn=resolution.mdn,
        baseline_low_date=resolution.baseline_low_date,
        baseline_high_date=resolution.baseline_high_date,
        location=detection.location,
        value=detection.value,
    )


def create_report(
    detections: Iterable[FeatureDetection],
    config: BaselineConfig = DEFAULT_CONFIG,
    resolver: Optional[SupportResolver] = None,
) -> BaselineReport:
    """Classify each detection as safe or risky, in detection order

    Ignored feature ids are dropped before classification and do not count
    toward ``total``.
    """
    resolver = resolver or get_default_resolver()
    ignored = set(config.ignore)

    risky: List[RiskyFeature] = []
    safe = 0

    for detection in detections:
        if detection.feature_id in ignored:
            continue

        resolution = resolver.resolve(detection.feature_id, detection.support_key)
        if is_risky(resolution.baseline, config):
            risky.append(_risky_feature(detection, resolution))
        else:
            safe += 1

    total = safe + len(risky)
    return BaselineReport(
        safe=safe,
        risky=risky,
        total=total,
        safety_score=safety_score(safe, total),
    )
