"""
Upgrade advisor

Line-oriented scan for legacy idioms that have a widely available modern
replacement (float layouts, XMLHttpRequest, ...). Suggestions carry a
confidence level so callers can keep only the ones worth acting on.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .scanner import DEFAULT_EXCLUDE_DIRS, discover_files

logger = logging.getLogger(__name__)

# Most confident first
CONFIDENCE_LEVELS = ("high", "medium", "low")
DEFAULT_CONFIDENCE = "medium"

UPGRADE_EXTENSIONS = ('.css', '.js', '.jsx', '.scss', '.ts', '.tsx')


@dataclass(frozen=True)
class UpgradePattern:
    pattern: re.Pattern
    reason: str
    replacement: str
    confidence: str


UPGRADE_PATTERNS = (
    UpgradePattern(
        pattern=re.compile(r'float\s*:\s*(?:left|right)', re.IGNORECASE),
        reason="Consider using CSS Grid or Flexbox instead of float",
        replacement="display: flex; /* or display: grid; */",
        confidence="high",
    ),
    UpgradePattern(
        pattern=re.compile(r'XMLHttpRequest', re.IGNORECASE),
        reason="Use fetch() API instead of XMLHttpRequest",
        replacement="fetch()",
        confidence="high",
    ),
    UpgradePattern(
        pattern=re.compile(r'document\.getElementById', re.IGNORECASE),
        reason="Consider using document.querySelector() for consistency",
        replacement="document.querySelector()",
        confidence="medium",
    ),
    UpgradePattern(
        pattern=re.compile(r'\.indexOf\(\s*.+\s*\)\s*[>!=]==?\s*-1', re.IGNORECASE),
        reason="Use .includes() instead of .indexOf()",
        replacement=".includes()",
        confidence="high",
    ),
)


@dataclass(frozen=True)
class UpgradeSuggestion:
    file: str
    line: int
    column: int
    found: str
    replacement: str
    reason: str
    confidence: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "from": self.found,
            "to": self.replacement,
            "reason": self.reason,
            "confidence": self.confidence,
        }


@dataclass
class UpgradeReport:
    total_files: int = 0
    suggestions: List[UpgradeSuggestion] = field(default_factory=list)

    def by_confidence(self) -> Dict[str, List[UpgradeSuggestion]]:
        grouped = {level: [] for level in CONFIDENCE_LEVELS}
        for suggestion in self.suggestions:
            grouped[suggestion.confidence].append(suggestion)
        return grouped

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalFiles": self.total_files,
            "totalSuggestions": len(self.suggestions),
            "suggestions": [s.to_dict() for s in self.suggestions],
        }


def _accepted_patterns(min_confidence: str) -> List[UpgradePattern]:
    if min_confidence not in CONFIDENCE_LEVELS:
        raise ValueError(f"Unknown confidence level '{min_confidence}' (expected one of {', '.join(CONFIDENCE_LEVELS)})")
    cutoff = CONFIDENCE_LEVELS.index(min_confidence)
    return [p for p in UPGRADE_PATTERNS if CONFIDENCE_LEVELS.index(p.confidence) <= cutoff]


def suggest_upgrades(content: str, file: str = "", min_confidence: str = DEFAULT_CONFIDENCE) -> List[UpgradeSuggestion]:
    """Suggestions for one file's text, by line then pattern; columns are 1-based"""
    patterns = _accepted_patterns(min_confidence)
    suggestions = []

    for line_num, line in enumerate(content.split('\n'), 1):
        for upgrade in patterns:
            for match in upgrade.pattern.finditer(line):
                suggestions.append(UpgradeSuggestion(
                    file=file,
                    line=line_num,
                    column=match.start() + 1,
                    found=match.group(0),
                    replacement=upgrade.replacement,
                    reason=upgrade.reason,
                    confidence=upgrade.confidence,
                ))

    return suggestions


def scan_for_upgrades(
    paths: Iterable[str],
    min_confidence: str = DEFAULT_CONFIDENCE,
    extensions: Iterable[str] = UPGRADE_EXTENSIONS,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
    base_dir: Optional[str] = None,
) -> UpgradeReport:
    """Run the advisor over every discovered file"""
    _accepted_patterns(min_confidence)
    base = Path(base_dir or Path.cwd()).resolve()
    files = discover_files(paths, extensions, exclude_dirs)
    report = UpgradeReport(total_files=len(files))

    for file_path in files:
        try:
            content = file_path.read_text(encoding='utf-8', errors='ignore')
        except OSError as e:
            logger.warning(f"Could not read {file_path}: {e}")
            continue
        report.suggestions.extend(
            suggest_upgrades(content, os.path.relpath(file_path, base), min_confidence)
        )

    return report
