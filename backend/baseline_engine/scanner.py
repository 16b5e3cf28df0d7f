"""
Project scanning: discover files, analyze each and aggregate a summary
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .analyzer import CSS_EXTENSIONS, HTML_EXTENSIONS, SCRIPT_EXTENSIONS, analyze_file, content_type_for_path
from .config import DEFAULT_CONFIG, BaselineConfig
from .models import AnalysisContext, BaselineReport
from .report import safety_score
from .resolver import SupportResolver

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = tuple(sorted(CSS_EXTENSIONS | HTML_EXTENSIONS | SCRIPT_EXTENSIONS))
DEFAULT_EXCLUDE_DIRS = frozenset({'node_modules', 'dist', 'build', '.git', 'coverage'})


@dataclass
class FileReport:
    file: str
    report: BaselineReport

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.file, "report": self.report.to_dict()}


@dataclass
class ProjectSummary:
    total_files: int = 0
    total_features: int = 0
    safe_features: int = 0
    risky_features: int = 0
    safety_score: int = 100
    reports: List[FileReport] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalFiles": self.total_files,
            "totalFeatures": self.total_features,
            "safeFeatures": self.safe_features,
            "riskyFeatures": self.risky_features,
            "safetyScore": self.safety_score,
            "reports": [r.to_dict() for r in self.reports],
        }


def normalize_extensions(values: Iterable[str]) -> Tuple[str, ...]:
    """Accept ``js``, ``.js`` or ``*.js`` spellings; returns lowercase dotted suffixes"""
    normalized = []
    for value in values:
        value = value.strip().lstrip('*').lower()
        if not value:
            continue
        normalized.append(value if value.startswith('.') else f".{value}")
    return tuple(normalized)


def discover_files(
    paths: Iterable[str],
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
) -> List[Path]:
    """Collect analyzable files under the given files/directories, sorted"""
    extensions = {e.lower() for e in extensions}
    exclude_dirs = set(exclude_dirs)
    found = set()

    for raw in paths:
        path = Path(raw)
        if path.is_file():
            found.add(path.resolve())
            continue
        if not path.is_dir():
            logger.warning(f"Skipping missing path {raw}")
            continue
        for file_path in path.rglob('*'):
            if not file_path.is_file() or file_path.suffix.lower() not in extensions:
                continue
            if exclude_dirs.intersection(file_path.relative_to(path).parts[:-1]):
                continue
            found.add(file_path.resolve())

    return sorted(found)


def scan_paths(
    paths: Iterable[str],
    config: BaselineConfig = DEFAULT_CONFIG,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
    base_dir: Optional[str] = None,
    resolver: Optional[SupportResolver] = None,
) -> ProjectSummary:
    """Analyze every discovered file and aggregate the per-file reports"""
    base = Path(base_dir or Path.cwd()).resolve()
    files = discover_files(paths, extensions, exclude_dirs)
    summary = ProjectSummary(total_files=len(files))

    for file_path in files:
        content_type = content_type_for_path(str(file_path))
        if content_type is None:
            logger.debug(f"No detector for {file_path}")
            continue
        try:
            content = file_path.read_text(encoding='utf-8', errors='ignore')
        except OSError as e:
            logger.warning(f"Error scanning {file_path}: {e}")
            continue

        context = AnalysisContext(content=content, type=content_type, file_path=str(file_path), config=config)
        report = analyze_file(context, resolver)

        summary.safe_features += report.safe
        summary.risky_features += len(report.risky)
        summary.total_features += report.total
        if report.total > 0:
            summary.reports.append(FileReport(file=os.path.relpath(file_path, base), report=report))

    summary.safety_score = safety_score(summary.safe_features, summary.total_features)
    return summary


# ============================================================================
# CI/CD INTEGRATION
# ============================================================================

class ComplianceGate:
    """CI/CD gate over a project summary"""

    def __init__(self, min_safety_score: float = 0.0, fail_on_risky: bool = True):
        self.min_safety_score = min_safety_score
        self.fail_on_risky = fail_on_risky

    def check(self, summary: ProjectSummary) -> Tuple[bool, str]:
        """Check whether a scan meets the configured thresholds"""
        score_ok = summary.safety_score >= self.min_safety_score
        risky_blocked = self.fail_on_risky and summary.risky_features > 0
        passed = score_ok and not risky_blocked

        if passed:
            return passed, f"✅ PASSED: Safety score {summary.safety_score}% (threshold: {self.min_safety_score}%)"

        message = f"❌ FAILED: Safety score {summary.safety_score}%"
        if not score_ok:
            message += f" below threshold {self.min_safety_score}%"
        if risky_blocked:
            risky_ids = sorted({r.id for fr in summary.reports for r in fr.report.risky})
            message += f"\n⚠️ Risky features found: {', '.join(risky_ids)}"
        return passed, message
