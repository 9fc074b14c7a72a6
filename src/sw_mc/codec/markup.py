"""Low-level markup text helpers shared by the parser and the emitter."""

from __future__ import annotations

import bisect
import re

from sw_mc.codec.primitives import escape_attribute, escape_text
from sw_mc.models.types import XmlNode

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
INDENT = "\t"

# Comments, CDATA, processing instructions and DOCTYPE are copied untouched.
# Any other "<...>" run is a tag whose quoted values may hold raw whitespace.
_MARKUP_PATTERN = re.compile(
    r"<!--.*?(?:-->|\Z)"
    r"|<!\[CDATA\[.*?(?:\]\]>|\Z)"
    r"|<\?.*?(?:\?>|\Z)"
    r"|<!(?:[^>\[]|\[[^\]]*\]?)*>?"
    r"|<(?:[^>\"']|\"[^\"]*\"?|'[^']*'?)*>?",
    re.DOTALL,
)
_QUOTED_PATTERN = re.compile(r"\"[^\"]*\"?|'[^']*'?")
_WHITESPACE_REFS = str.maketrans({"\n": "&#10;", "\r": "&#13;", "\t": "&#9;"})
_RAW_WHITESPACE = re.compile(r"[\n\r\t]")


class ProtectedText:
    """Markup with raw attribute whitespace turned into character references.

    An XML parser normalizes raw whitespace control characters inside an
    attribute value to a space. The game writes them raw (Lua scripts are
    multi-line), so they are replaced by references before parsing. Each
    replaced newline shifts later line numbers; ``original_line`` maps them
    back.
    """

    def __init__(self, source: str):
        self._breaks: list[int] = []
        self._shifts: list[int] = []
        self._removed = 0
        self._scanned_to = 0
        self._line = 1
        self._source = source
        self.text = _MARKUP_PATTERN.sub(self._protect, source)

    def original_line(self, line: int) -> int:
        """Line number in the source for a line number in ``text``."""
        index = bisect.bisect_right(self._breaks, line) - 1
        return line + (self._shifts[index] if index >= 0 else 0)

    def _protect(self, match: re.Match) -> str:
        chunk = match.group(0)
        if chunk.startswith(("<!", "<?")):
            return chunk

        self._line += self._source.count("\n", self._scanned_to, match.start())
        self._scanned_to = match.start()

        quoted_values = [q.group(0) for q in _QUOTED_PATTERN.finditer(chunk)]
        if not any(_RAW_WHITESPACE.search(value) for value in quoted_values):
            return chunk

        protected = _QUOTED_PATTERN.sub(lambda q: q.group(0).translate(_WHITESPACE_REFS), chunk)
        # Only newlines move later lines up
        removed = sum(value.count("\n") for value in quoted_values)
        if removed:
            self._removed += removed
            self._breaks.append(self._line - self._removed + removed + 1)
            self._shifts.append(self._removed)
        return protected


def render_document(root: XmlNode) -> str:
    """Render a full document: declaration, tab-indented tree, blank last line."""
    lines = [XML_DECLARATION]
    _render(root, 0, lines)
    return "\n".join(lines) + "\n\n"


def _render(node: XmlNode, depth: int, lines: list[str]) -> None:
    pad = INDENT * depth
    attrs = "".join(f' {name}="{escape_attribute(value)}"' for name, value in node.attributes.items())

    if not node.children:
        if node.text:
            lines.append(f"{pad}<{node.tag}{attrs}>{escape_text(node.text)}</{node.tag}>")
        else:
            lines.append(f"{pad}<{node.tag}{attrs}/>")
        return

    lines.append(f"{pad}<{node.tag}{attrs}>")
    for child in node.children:
        _render(child, depth + 1, lines)
    lines.append(f"{pad}</{node.tag}>")
