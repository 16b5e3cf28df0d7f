"""
Script feature detection

Parses JavaScript / TypeScript (including JSX and TSX) with tree-sitter and
walks the syntax tree once, dispatching on the node kinds that carry
detectable features:

- member access ``a.b`` whose dotted name is a known API
- optional chaining ``a?.b`` / ``a?.[k]``
- ``new X()`` where ``X`` is a known API
- BigInt literals (``10n``)
- nullish coalescing ``??``
- ``async function`` declarations
"""

import logging
import re
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, List, Optional

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .models import FeatureDetection, SourceLocation

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "unknown"

DIALECT_JAVASCRIPT = "javascript"
DIALECT_TYPESCRIPT = "typescript"
DIALECT_TSX = "tsx"

LANGUAGES = MappingProxyType({
    DIALECT_JAVASCRIPT: Language(tree_sitter_javascript.language()),
    DIALECT_TYPESCRIPT: Language(tree_sitter_typescript.language_typescript()),
    DIALECT_TSX: Language(tree_sitter_typescript.language_tsx()),
})

_DIALECT_BY_SUFFIX = MappingProxyType({
    ".ts": DIALECT_TYPESCRIPT,
    ".mts": DIALECT_TYPESCRIPT,
    ".cts": DIALECT_TYPESCRIPT,
    ".tsx": DIALECT_TSX,
})

# Resolved name -> feature id; lookups are exact and case-sensitive
KNOWN_APIS = MappingProxyType({
    "IdleDetector": "idle-detection",
    "BroadcastChannel": "broadcastchannel",
    "IntersectionObserver": "intersectionobserver",
    "ResizeObserver": "resizeobserver",
    "fetch": "fetch",
    "Promise": "promises",
    "async": "async-functions",
    "URLPattern": "urlpattern",
    "structuredClone": "structured-clone",
    "WeakRef": "weakref",
    "FinalizationRegistry": "finalizationregistry",
    "Atomics": "shared-memory",
})

BIGINT_LITERAL = re.compile(r"^(?:0[xXoObB])?[0-9a-fA-F_]+n$")


def dialect_for_path(file_path: Optional[str]) -> str:
    if not file_path:
        return DIALECT_JAVASCRIPT
    lowered = file_path.lower()
    for suffix, dialect in _DIALECT_BY_SUFFIX.items():
        if lowered.endswith(suffix):
            return dialect
    return DIALECT_JAVASCRIPT


def map_js_api(name: str) -> Optional[str]:
    return KNOWN_APIS.get(name)


class ScriptSyntaxError(ValueError):
    """The script does not parse under the selected grammar"""


class NodeKind(Enum):
    """Syntax node kinds the detector reacts to"""
    MEMBER = "member_expression"
    SUBSCRIPT = "subscript_expression"
    NEW = "new_expression"
    NUMBER = "number"
    BINARY = "binary_expression"
    FUNCTION_DECLARATION = "function_declaration"
    GENERATOR_DECLARATION = "generator_function_declaration"


_KIND_BY_TYPE = MappingProxyType({kind.value: kind for kind in NodeKind})


def _has_child(node: Node, child_type: str) -> bool:
    return any(child.type == child_type for child in node.children)


def _first_error(root: Node) -> Optional[Node]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return None


class _DetectionWalker:
    """Single pre-order walk over one parsed script"""

    def __init__(self, source: bytes):
        self.lines = source.split(b"\n")
        self.detections: List[FeatureDetection] = []
        self.handlers: Dict[NodeKind, Callable[[Node], None]] = {
            NodeKind.MEMBER: self._visit_member,
            NodeKind.SUBSCRIPT: self._visit_subscript,
            NodeKind.NEW: self._visit_new,
            NodeKind.NUMBER: self._visit_number,
            NodeKind.BINARY: self._visit_binary,
            NodeKind.FUNCTION_DECLARATION: self._visit_function,
            NodeKind.GENERATOR_DECLARATION: self._visit_function,
        }

    def walk(self, root: Node) -> List[FeatureDetection]:
        stack = [root]
        while stack:
            node = stack.pop()
            kind = _KIND_BY_TYPE.get(node.type)
            if kind is not None:
                self.handlers[kind](node)
            stack.extend(reversed(node.children))
        return self.detections

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _column(self, row: int, byte_column: int) -> int:
        """1-based character column from tree-sitter's byte column"""
        line = self.lines[row] if row < len(self.lines) else b""
        return len(line[:byte_column].decode("utf-8", errors="replace")) + 1

    def _location(self, node: Node) -> SourceLocation:
        start_row, start_col = node.start_point
        end_row, end_col = node.end_point
        return SourceLocation(
            line=start_row + 1,
            column=self._column(start_row, start_col),
            end_line=end_row + 1,
            end_column=self._column(end_row, end_col),
        )

    def _text(self, node: Node) -> str:
        return node.text.decode("utf-8", errors="replace")

    def _emit(self, feature_id: str, node: Node, value: str, support_key: Optional[str]):
        self.detections.append(FeatureDetection(
            feature_id=feature_id,
            support_key=support_key,
            location=self._location(node),
            value=value,
        ))

    def node_name(self, node: Optional[Node]) -> str:
        """Dotted name for identifier chains, ``unknown`` for anything else"""
        if node is None:
            return UNKNOWN_NAME
        if node.type in ("identifier", "property_identifier"):
            return self._text(node)
        if node.type == "member_expression":
            obj = self.node_name(node.child_by_field_name("object"))
            prop = self.node_name(node.child_by_field_name("property"))
            return f"{obj}.{prop}"
        return UNKNOWN_NAME

    # ------------------------------------------------------------------
    # visitors
    # ------------------------------------------------------------------

    def _visit_member(self, node: Node):
        prop_name = self.node_name(node.child_by_field_name("property"))
        api_call = f"{self.node_name(node.child_by_field_name('object'))}.{prop_name}"
        feature_id = map_js_api(api_call)
        if feature_id:
            self._emit(feature_id, node, api_call, f"api.{prop_name.lower()}")

        if _has_child(node, "optional_chain"):
            self._emit("optional-chaining", node, "?.", "js.optional-chaining")

    def _visit_subscript(self, node: Node):
        if _has_child(node, "optional_chain"):
            self._emit("optional-chaining", node, "?.", "js.optional-chaining")

    def _visit_new(self, node: Node):
        ctor_name = self.node_name(node.child_by_field_name("constructor"))
        feature_id = map_js_api(ctor_name)
        if feature_id:
            self._emit(feature_id, node, f"new {ctor_name}()", f"api.{ctor_name.lower()}")

    def _visit_number(self, node: Node):
        raw = self._text(node)
        if BIGINT_LITERAL.match(raw):
            self._emit("bigint", node, raw, "js.bigint")

    def _visit_binary(self, node: Node):
        operator = node.child_by_field_name("operator")
        if operator is not None and operator.type == "??":
            self._emit("nullish-coalescing", node, "??", "js.nullish-coalescing")

    def _visit_function(self, node: Node):
        if _has_child(node, "async"):
            self._emit("async-functions", node, "async function", "js.async-functions")


def parse_script(content: str, dialect: str = DIALECT_JAVASCRIPT):
    """Parse script text as a module; raises ScriptSyntaxError on invalid input"""
    source = content.encode("utf-8")
    parser = Parser(LANGUAGES[dialect])
    tree = parser.parse(source)
    if tree.root_node.has_error:
        error = _first_error(tree.root_node) or tree.root_node
        row, col = error.start_point
        raise ScriptSyntaxError(f"Unexpected token at line {row + 1}, byte column {col + 1}")
    return source, tree


def detect_script(content: str, dialect: str = DIALECT_JAVASCRIPT) -> List[FeatureDetection]:
    """Detect tracked script features; unparsable input yields no detections"""
    try:
        source, tree = parse_script(content, dialect)
        return _DetectionWalker(source).walk(tree.root_node)
    except Exception as e:
        logger.warning(f"JavaScript parsing error: {e}")
        return []
