"""
CSS feature detection

Parses a stylesheet with tinycss2 and maps each declaration's
``(property, value)`` pair onto a web-features id.
"""

import logging
from types import MappingProxyType
from typing import Iterable, List, Optional, Tuple

import tinycss2
from tinycss2 import ast as css_ast

from .models import FeatureDetection, SourceLocation

logger = logging.getLogger(__name__)


class CssParseError(ValueError):
    """The stylesheet contains a syntax error"""


def _build_property_rules():
    # (property, value keyword or None for any value, feature id); first match wins
    rules: Tuple[Tuple[str, Optional[str], str], ...] = (
        ("display", "grid", "css-display"),
        ("display", "subgrid", "css-subgrid"),
        ("grid-template-columns", "subgrid", "css-subgrid"),
        ("grid-template-columns", None, "css-grid-template-columns"),
        ("grid-template-rows", "subgrid", "css-subgrid"),
        ("grid-template-rows", None, "css-grid-template-columns"),
        ("container-type", None, "css-container-queries"),
        ("container-name", None, "css-container-queries"),
        ("word-break", "auto-phrase", "css-word-break-auto-phrase"),
        ("word-break", None, "css-word-break"),
        ("color-scheme", None, "css-color-scheme"),
    )
    by_property = {}
    for prop, keyword, feature_id in rules:
        by_property.setdefault(prop, []).append((keyword, feature_id))
    return MappingProxyType({prop: tuple(matchers) for prop, matchers in by_property.items()})


PROPERTY_RULES = _build_property_rules()


def map_css_property(prop: str, value: str) -> Optional[str]:
    """Feature id for a declaration, or None when the property is not tracked"""
    value = value.lower()
    for keyword, feature_id in PROPERTY_RULES.get(prop.lower(), ()):
        if keyword is None or keyword in value:
            return feature_id
    return None


def _iter_declarations(nodes: Iterable) -> Iterable[css_ast.Declaration]:
    """Yield declarations in document order, descending into nested blocks"""
    for node in nodes:
        if isinstance(node, css_ast.ParseError):
            raise CssParseError(f"{node.kind} at {node.source_line}:{node.source_column}: {node.message}")
        if isinstance(node, css_ast.Declaration):
            yield node
        elif isinstance(node, (css_ast.QualifiedRule, css_ast.AtRule)) and node.content is not None:
            yield from _iter_declarations(tinycss2.parse_blocks_contents(
                node.content, skip_comments=True, skip_whitespace=True
            ))


def detect_css(content: str) -> List[FeatureDetection]:
    """Detect tracked CSS features; malformed input yields no detections"""
    detections = []

    try:
        rules = tinycss2.parse_stylesheet(content, skip_comments=True, skip_whitespace=True)
        for decl in _iter_declarations(rules):
            prop = decl.lower_name
            value = tinycss2.serialize(decl.value).strip()
            feature_id = map_css_property(prop, value)
            if not feature_id:
                continue
            detections.append(FeatureDetection(
                feature_id=feature_id,
                support_key=f"css.properties.{prop}",
                location=SourceLocation(line=decl.source_line, column=decl.source_column),
                value=f"{prop}: {value}",
            ))
    except Exception as e:
        logger.warning(f"CSS parsing error: {e}")
        return []

    return detections
