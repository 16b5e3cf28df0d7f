"""
Markup feature detection

Extracts inline ``<script>`` and ``<style>`` elements with BeautifulSoup and
hands their text to the script and CSS detectors. Element order in the
document is preserved, and detections are re-based onto document lines and
columns.
"""

import logging
import re
from bisect import bisect_right
from dataclasses import replace
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from .css_detector import detect_css
from .models import FeatureDetection
from .script_detector import DIALECT_JAVASCRIPT, DIALECT_TSX, DIALECT_TYPESCRIPT, detect_script

logger = logging.getLogger(__name__)

JS_SCRIPT_TYPES = frozenset({
    "",
    "module",
    "text/javascript",
    "application/javascript",
    "application/ecmascript",
    "text/ecmascript",
    "text/babel",
    "text/jsx",
})

_SCRIPT_LANG_DIALECTS = {
    "ts": DIALECT_TYPESCRIPT,
    "typescript": DIALECT_TYPESCRIPT,
    "tsx": DIALECT_TSX,
}

_START_TAG = re.compile(r"""<[^\s>/]+(?:[^>"']|"[^"]*"|'[^']*')*>""")


class _LineIndex:
    """Offset <-> (line, column) conversion for the markup document"""

    def __init__(self, content: str):
        self.content = content
        self.starts = [0] + [m.end() for m in re.finditer(r"\n", content)]

    def offset(self, line: int, column: int) -> int:
        return self.starts[line - 1] + column

    def position(self, offset: int) -> Tuple[int, int]:
        line = bisect_right(self.starts, offset)
        return line, offset - self.starts[line - 1] + 1


def _content_origin(index: _LineIndex, tag: Tag) -> Optional[Tuple[int, int]]:
    """1-based (line, column) of the first character inside ``tag``"""
    if tag.sourceline is None or tag.sourcepos is None:
        return None
    match = _START_TAG.match(index.content, index.offset(tag.sourceline, tag.sourcepos))
    if match is None:
        return None
    return index.position(match.end())


def _script_dialect(tag: Tag) -> Optional[str]:
    """Grammar to parse a script element with; None for non-JavaScript payloads"""
    script_type = (tag.get("type") or "").strip().lower()
    if script_type not in JS_SCRIPT_TYPES:
        return None
    lang = (tag.get("lang") or "").strip().lower()
    return _SCRIPT_LANG_DIALECTS.get(lang, DIALECT_JAVASCRIPT)


def detect_markup(content: str) -> List[FeatureDetection]:
    """Detect features in inline scripts and styles, in element order"""
    detections = []

    try:
        soup = BeautifulSoup(content, "html.parser")
        index = _LineIndex(content)

        for tag in soup.find_all(["script", "style"]):
            text = tag.string or ""
            if not text.strip():
                continue

            if tag.name == "script":
                dialect = _script_dialect(tag)
                if dialect is None:
                    logger.debug(f"Skipping script element of type {tag.get('type')!r}")
                    continue
                found = detect_script(text, dialect)
            else:
                found = detect_css(text)

            origin = _content_origin(index, tag)
            if origin is not None:
                line, column = origin
                found = [replace(d, location=d.location.shifted(line - 1, column - 1)) for d in found]
            detections.extend(found)
    except Exception as e:
        logger.warning(f"HTML parsing error: {e}")
        return []

    return detections
