"""Grammar-based source location for native configuration files.

The HCL parser (``hcl2.loads(..., with_meta=True)``) annotates every block
body with ``__start_line__`` / ``__end_line__``. The locator walks the parsed
tree for the requested block type, matches labels case-insensitively and
positionally, and slices the verbatim lines out of the original text.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Sequence

from .errors import SourceNotFound
from .model import DList, DMap, DScalar, Node, SourceSpan
from .sanitizer import is_reserved
from .scan_locator import nesting_delta

logger = logging.getLogger(__name__)

START_KEY = "__start_line__"
END_KEY = "__end_line__"

# Top-level block types recognised by the locator and their label names.
# ``required_providers`` is only valid inside ``terraform`` but is accepted at
# the top level so misplaced blocks can still be located.
BLOCK_SCHEMA: dict[str, tuple[str, ...]] = {
    "terraform": (),
    "required_providers": (),
    "provider": ("name",),
    "variable": ("name",),
    "locals": (),
    "output": ("name",),
    "module": ("name",),
    "resource": ("type", "name"),
    "data": ("type", "name"),
    "moved": (),
}


class GrammarLocator:
    """Locate blocks of one configuration file using parser positions."""

    def __init__(self, content: str, tree: DMap) -> None:
        self._lines = content.split("\n")
        self._tree = tree

    @classmethod
    def from_source(cls, parser, path: str, content: str) -> GrammarLocator:
        """Parse *content* with *parser* (a ``ParserService``) and wrap it."""
        return cls(content, parser.parse_hcl(path, content))

    # -- Blocks ---------------------------------------------------------

    def locate(self, kind: str, labels: Sequence[str], occurrence: int = 0) -> SourceSpan:
        """Return the span of the *occurrence*-th block matching *kind* and *labels*.

        Unknown block types, a wrong number of labels and no match all give
        the empty span.
        """
        label_names = BLOCK_SCHEMA.get(kind.lower())
        if label_names is None or len(labels) != len(label_names):
            return SourceSpan.empty()

        for index, body in enumerate(self._matching_bodies(kind, tuple(labels))):
            if index == occurrence:
                return self._span_of(body)
        logger.debug("locate: no %s block with labels %s", kind, list(labels))
        return SourceSpan.empty()

    def require(self, kind: str, labels: Sequence[str], occurrence: int = 0) -> SourceSpan:
        """Like ``locate`` but raise ``SourceNotFound`` instead of returning empty."""
        span = self.locate(kind, labels, occurrence)
        if not span.found:
            raise SourceNotFound(kind, tuple(labels))
        return span

    def _matching_bodies(self, kind: str, labels: tuple[str, ...]) -> Iterator[DMap]:
        for key, value in self._tree.entries.items():
            if key.lower() != kind.lower():
                continue
            blocks = value.items if isinstance(value, DList) else [value]
            for block in blocks:
                yield from _descend(block, labels)

    def _span_of(self, body: DMap) -> SourceSpan:
        start = _line_number(body.get(START_KEY))
        end = _line_number(body.get(END_KEY))
        if start <= 0 or end < start:
            return SourceSpan.empty()
        return SourceSpan(start, end, "\n".join(self._lines[start - 1:end]))

    # -- Attributes -----------------------------------------------------

    def locate_attribute(self, block: SourceSpan, name: str) -> SourceSpan:
        """Find ``name = ...`` at the top level of *block*.

        The span runs from the attribute line until its brackets balance.
        """
        if not block.found:
            return SourceSpan.empty()
        pattern = re.compile(rf"^\s*{re.escape(name)}\s*=(?!=)")
        depth = 0
        for lineno in range(block.start_line, block.end_line + 1):
            line = self._lines[lineno - 1]
            before = depth
            depth += nesting_delta(line)
            if before == 1 and pattern.match(line):
                end = self._attribute_end(lineno, block.end_line)
                return SourceSpan(lineno, end, "\n".join(self._lines[lineno - 1:end]))
        return SourceSpan.empty()

    def _attribute_end(self, start: int, limit: int) -> int:
        depth = 0
        for lineno in range(start, limit + 1):
            depth += nesting_delta(self._lines[lineno - 1])
            if depth <= 0:
                return lineno
        return limit


def _descend(node: Node, labels: tuple[str, ...]) -> Iterator[DMap]:
    if not isinstance(node, DMap):
        return
    if not labels:
        yield node
        return
    for key, child in node.entries.items():
        if is_reserved(key):
            continue
        if key.lower() == labels[0].lower():
            yield from _descend(child, labels[1:])


def _line_number(node: Node | None) -> int:
    if isinstance(node, DScalar) and isinstance(node.value, int) and not isinstance(node.value, bool):
        return node.value
    return 0
