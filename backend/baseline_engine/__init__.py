"""
Baseline Engine - detect web platform features in CSS, scripts and markup
and classify them by Baseline cross-browser support status.
"""

from .analyzer import analyze_file, analyze_text, content_type_for_path, detect
from .config import DEFAULT_CONFIG, BaselineConfig, ConfigError, RulesConfig, load_config, merge_config, validate_config
from .css_detector import detect_css
from .dataset import FeatureRegistry, SupportStatusProvider, WebFeaturesDataStore
from .markup_detector import detect_markup
from .models import (
    AnalysisContext,
    BaselineReport,
    BrowserSupport,
    FeatureDetection,
    RiskyFeature,
    SourceLocation,
)
from .report import create_report
from .resolver import Resolution, SupportResolver, get_default_resolver, set_default_resolver
from .script_detector import detect_script
from .upgrade import UpgradeSuggestion, scan_for_upgrades, suggest_upgrades

__version__ = "1.0.0"
