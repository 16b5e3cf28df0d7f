"""
Data models for Baseline feature analysis

Domain records are plain dataclasses; ``to_dict`` produces the camelCase
shape that reports are exchanged in.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union

BaselineStatus = Union[Literal["high", "low"], Literal[False]]


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is absent"""
    return {k: v for k, v in data.items() if v is not None}


# ============================================================================
# DETECTIONS
# ============================================================================

@dataclass(frozen=True)
class SourceLocation:
    line: int
    column: int
    end_line: Optional[int] = None
    end_column: Optional[int] = None

    def shifted(self, line_offset: int, first_line_column_offset: int) -> "SourceLocation":
        """Re-base a location found in an embedded block onto its host document"""
        column = self.column + first_line_column_offset if self.line == 1 else self.column
        end_column = self.end_column
        if end_column is not None and self.end_line == 1:
            end_column += first_line_column_offset
        return SourceLocation(
            line=self.line + line_offset,
            column=column,
            end_line=self.end_line + line_offset if self.end_line is not None else None,
            end_column=end_column,
        )

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "line": self.line,
            "column": self.column,
            "endLine": self.end_line,
            "endColumn": self.end_column,
        })


@dataclass(frozen=True)
class FeatureDetection:
    """One occurrence of a recognized feature in source text"""
    feature_id: str
    location: SourceLocation
    value: str
    support_key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "featureId": self.feature_id,
            "supportKey": self.support_key,
            "location": self.location.to_dict(),
            "value": self.value,
        })


# ============================================================================
# REPORTS
# ============================================================================

@dataclass(frozen=True)
class BrowserSupport:
    chrome: Optional[str] = None
    firefox: Optional[str] = None
    safari: Optional[str] = None
    edge: Optional[str] = None

    @classmethod
    def from_mapping(cls, support: Optional[Dict[str, Any]]) -> "BrowserSupport":
        if not support:
            return cls()
        return cls(
            chrome=support.get("chrome"),
            firefox=support.get("firefox"),
            safari=support.get("safari"),
            edge=support.get("edge"),
        )

    def to_dict(self) -> Dict[str, str]:
        return _compact({
            "chrome": self.chrome,
            "firefox": self.firefox,
            "safari": self.safari,
            "edge": self.edge,
        })


@dataclass(frozen=True)
class RiskyFeature:
    """A detection flagged as risky, enriched with dataset metadata"""
    id: str
    baseline: Union[Literal["low"], Literal[False]]
    support: BrowserSupport = field(default_factory=BrowserSupport)
    name: Optional[str] = None
    spec: Optional[str] = None
    mdn: Optional[str] = None
    baseline_low_date: Optional[str] = None
    baseline_high_date: Optional[str] = None
    location: Optional[SourceLocation] = None
    value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "baseline": self.baseline,
            "support": self.support.to_dict(),
            "name": self.name,
            "spec": self.spec,
            "mdn": self.mdn,
            "baselineLowDate": self.baseline_low_date,
            "baselineHighDate": self.baseline_high_date,
            "location": self.location.to_dict() if self.location else None,
            "value": self.value,
        })


@dataclass(frozen=True)
class BaselineReport:
    safe: int
    risky: List[RiskyFeature]
    total: int
    safety_score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "safe": self.safe,
            "risky": [r.to_dict() for r in self.risky],
            "total": self.total,
            "safetyScore": self.safety_score,
        }


@dataclass
class AnalysisContext:
    """Input handed to the analysis facade for one file or text blob"""
    content: str
    type: str = "js"
    file_path: Optional[str] = None
    config: Optional[Any] = None
