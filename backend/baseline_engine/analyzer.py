"""
Analysis facade

Single entry point used by the scanner, the REST API and editor
integrations: pick the detector for a content type, then build the report.
"""

from pathlib import PurePath
from typing import List, Optional

from .config import DEFAULT_CONFIG, merge_config
from .css_detector import detect_css
from .markup_detector import detect_markup
from .models import AnalysisContext, BaselineReport, FeatureDetection
from .report import create_report
from .resolver import SupportResolver
from .script_detector import DIALECT_JAVASCRIPT, detect_script, dialect_for_path

CSS_EXTENSIONS = frozenset({".css", ".scss", ".sass", ".less"})
HTML_EXTENSIONS = frozenset({".html", ".htm", ".vue", ".svelte"})
SCRIPT_EXTENSIONS = frozenset({".js", ".mjs", ".cjs", ".jsx", ".ts", ".mts", ".cts", ".tsx"})


def content_type_for_path(file_path: str) -> Optional[str]:
    """Content type for a file name, or None when it is not analyzable"""
    suffix = PurePath(file_path).suffix.lower()
    if suffix in CSS_EXTENSIONS:
        return "css"
    if suffix in HTML_EXTENSIONS:
        return "html"
    if suffix in SCRIPT_EXTENSIONS:
        return "js"
    return None


def detect(content: str, content_type: str, file_path: Optional[str] = None) -> List[FeatureDetection]:
    if content_type == "css":
        return detect_css(content)
    if content_type == "html":
        return detect_markup(content)
    dialect = dialect_for_path(file_path) if file_path else DIALECT_JAVASCRIPT
    return detect_script(content, dialect)


def analyze_file(context: AnalysisContext, resolver: Optional[SupportResolver] = None) -> BaselineReport:
    """Analyze one file's content under its (partial) configuration"""
    config = merge_config(context.config, DEFAULT_CONFIG)
    detections = detect(context.content, context.type, context.file_path)
    return create_report(detections, config, resolver)


def analyze_text(content: str, content_type: str = "js", resolver: Optional[SupportResolver] = None) -> BaselineReport:
    """Analyze a text blob with the default configuration"""
    return create_report(detect(content, content_type), DEFAULT_CONFIG, resolver)
