"""Text-scan source location for plan and state JSON exports.

JSON exports carry no parser position data, so blocks are found by scanning
the raw text line by line while tracking nesting depth. Each export layout
has its own locator object; ``select_locator`` picks one for a block.

Depth counts ``{`` / ``[`` minus ``}`` / ``]`` outside string literals. A
container such as ``"resources": [`` is entered at depth 1, its elements
live at depth 2.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from enum import Enum, auto
from typing import Any

from .model import BlockReference, SourceSpan
from .parser import FileKind

logger = logging.getLogger(__name__)

_MISSING = object()


# ---------------------------------------------------------------------------
# Line helpers
# ---------------------------------------------------------------------------

def _brackets(line: str, start: int = 0) -> Iterator[tuple[int, str]]:
    """Yield ``(column, char)`` for each bracket of *line* outside strings."""
    in_string = False
    escaped = False
    for column in range(start, len(line)):
        ch = line[column]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{[}]":
            yield column, ch


def nesting_delta(line: str) -> int:
    """Net change in bracket depth for *line*, ignoring string contents."""
    return sum(1 if ch in "{[" else -1 for _, ch in _brackets(line))


def split_lines(text: str) -> list[str]:
    """Split on newlines only; a trailing newline does not add a line."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line.rstrip("\r") for line in lines]


def _source(lines: list[str], start: int, end: int) -> str:
    return "".join(line + "\n" for line in lines[start - 1:end])


def _json_text(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _container_pattern(key: str) -> re.Pattern[str]:
    return re.compile("^" + re.escape(_json_text(key)) + r"\s*:\s*[\[{]")


def _element_matcher(fields: dict[str, str], absent: tuple[str, ...]) -> Callable[[Any], bool]:
    """Top-level test for a decoded ``resources[]`` element."""
    def matches(element: Any) -> bool:
        if not isinstance(element, dict):
            return False
        if any(key in element for key in absent):
            return False
        return all(element.get(key) == value for key, value in fields.items())
    return matches


# ---------------------------------------------------------------------------
# ScanState
# ---------------------------------------------------------------------------

class ScanState(Enum):
    Searching = auto()
    InContainer = auto()
    InNamedChild = auto()
    InCandidateObject = auto()
    Done = auto()


class TextScanLocator(ABC):
    """Common contract: find one block in the full text of a file."""

    @abstractmethod
    def locate(self, text: str) -> SourceSpan:
        ...


# ---------------------------------------------------------------------------
# Named children: "outputs": { "<name>": { ... } }
# ---------------------------------------------------------------------------

class NamedChildLocator(TextScanLocator):
    """Locate ``"<name>": {`` directly inside an object container."""

    def __init__(self, container: str, name: str) -> None:
        self.container = container
        self.name = name
        self._container = _container_pattern(container)
        self._child = re.compile("^" + re.escape(_json_text(name)) + r"\s*:\s*\{")

    def locate(self, text: str) -> SourceSpan:
        lines = split_lines(text)
        state = ScanState.Searching
        depth = start = end = 0

        for lineno, line in enumerate(lines, 1):
            stripped = line.strip()
            if state is ScanState.Searching:
                if self._container.match(stripped):
                    depth = nesting_delta(line)
                    if depth > 0:
                        state = ScanState.InContainer
                continue

            before = depth
            depth += nesting_delta(line)

            if state is ScanState.InContainer:
                if before == 1 and self._child.match(stripped):
                    start = lineno
                    state = ScanState.InNamedChild
                elif depth <= 0:
                    # Container closed without the child; try the next one
                    state = ScanState.Searching
                    continue
                else:
                    continue

            if state is ScanState.InNamedChild and depth <= 1:
                end = lineno
                state = ScanState.Done
                break

        if state is ScanState.Done:
            return SourceSpan(start, end, _source(lines, start, end))
        if start:
            logger.debug("locate: %s.%s opened at line %d but never closed",
                         self.container, self.name, start)
        return SourceSpan.empty()


# ---------------------------------------------------------------------------
# Resource lists: "resources": [ { ... }, { ... } ]
# ---------------------------------------------------------------------------

class ResourceListLocator(TextScanLocator):
    """Locate one element of a ``resources`` array.

    Element boundaries are tracked bracket by bracket, so ``}, {`` on one
    line closes one element and opens the next. Each element is decoded
    once it closes and matches when every field in *fields* has the given
    value at its top level and none of the *absent* keys are present.
    """

    def __init__(
        self,
        fields: dict[str, str],
        absent: tuple[str, ...] = (),
        container: str = "resources",
    ) -> None:
        self.fields = dict(fields)
        self.absent = tuple(absent)
        self.container = container
        self._container = _container_pattern(container)
        self._matches = _element_matcher(self.fields, self.absent)

    @classmethod
    def for_state(
        cls,
        resource_type: str,
        name: str,
        mode: str = "",
        module: str = "",
    ) -> ResourceListLocator:
        fields = {"type": resource_type, "name": name}
        if mode:
            fields["mode"] = mode
        if module:
            fields["module"] = module
            return cls(fields)
        # root module elements carry no "module" key
        return cls(fields, absent=("module",))

    @classmethod
    def for_plan(cls, address: str, resource_type: str) -> ResourceListLocator:
        # count / for_each give several entries the same type and name, so
        # plans are matched on their unique address
        return cls({"address": address, "type": resource_type})

    def locate(self, text: str) -> SourceSpan:
        lines = split_lines(text)
        state = ScanState.Searching
        depth = 0
        start: tuple[int, int] | None = None

        for lineno, line in enumerate(lines, 1):
            column = 0
            if state is ScanState.Searching:
                if not self._container.match(line.strip()):
                    continue
                state = ScanState.InContainer
                depth = 0
                column = len(line) - len(line.lstrip())

            for column, ch in _brackets(line, column):
                if ch in "{[":
                    depth += 1
                    if depth == 2:
                        start = (lineno, column)
                        state = ScanState.InCandidateObject
                    continue
                depth -= 1
                if depth == 1 and start is not None:
                    if self._matches(self._decode(lines, start, (lineno, column))):
                        return SourceSpan(start[0], lineno, _source(lines, start[0], lineno))
                    start = None
                    state = ScanState.InContainer
                elif depth <= 0:
                    state = ScanState.Searching
                    break

        if start is not None:
            logger.debug("locate: %s element opened at line %d but never closed",
                         self.container, start[0])
        return SourceSpan.empty()

    @staticmethod
    def _decode(lines: list[str], start: tuple[int, int], end: tuple[int, int]) -> Any:
        (first, first_col), (last, last_col) = start, end
        if first == last:
            text = lines[first - 1][first_col:last_col + 1]
        else:
            text = "\n".join(
                [lines[first - 1][first_col:]]
                + lines[first:last - 1]
                + [lines[last - 1][:last_col + 1]]
            )
        try:
            return json.loads(text)
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Minified (single-line) files
# ---------------------------------------------------------------------------

class MinifiedLocator(TextScanLocator):
    """Fallback for files written on a single line.

    Line numbers carry no information there, so the span is the whole file
    and the block is recovered by extracting the container with a regex,
    JSON-decoding it and re-serializing the matching element.
    """

    def __init__(self, container: str, select: Callable[[Any], Any]) -> None:
        self.container = container
        self._select = select
        self._key = re.compile(re.escape(_json_text(container)) + r"\s*:\s*")

    @classmethod
    def for_named_child(cls, container: str, name: str) -> MinifiedLocator:
        def select(value: Any) -> Any:
            if isinstance(value, dict):
                return value.get(name, _MISSING)
            return _MISSING
        return cls(container, select)

    @classmethod
    def for_resource(cls, fields: dict[str, str], absent: tuple[str, ...] = ()) -> MinifiedLocator:
        matches = _element_matcher(fields, absent)

        def select(value: Any) -> Any:
            if not isinstance(value, list):
                return _MISSING
            for element in value:
                if matches(element):
                    return element
            return _MISSING
        return cls("resources", select)

    def locate(self, text: str) -> SourceSpan:
        total = len(split_lines(text))
        decoder = json.JSONDecoder()
        for match in self._key.finditer(text):
            try:
                value, _ = decoder.raw_decode(text, match.end())
            except ValueError:
                continue
            fragment = self._select(value)
            if fragment is not _MISSING:
                source = json.dumps(fragment, sort_keys=True, separators=(",", ":"),
                                    ensure_ascii=False)
                return SourceSpan(1, total, source)
        return SourceSpan(1, total, "")


# ---------------------------------------------------------------------------
# Format detection
# ---------------------------------------------------------------------------

_NAMED_CONTAINERS = {"output": "outputs", "variable": "variables"}


def select_locator(ref: BlockReference, file_kind: FileKind, text: str) -> TextScanLocator:
    """Pick the locator for *ref* in a JSON export.

    Resource labels are ``(address, type)`` for plans and
    ``(type, name[, mode[, module]])`` for state files. An empty module
    label selects root module elements only.
    """
    minified = len(split_lines(text)) <= 1

    if ref.kind in _NAMED_CONTAINERS:
        container = _NAMED_CONTAINERS[ref.kind]
        (name,) = ref.labels
        if minified:
            return MinifiedLocator.for_named_child(container, name)
        return NamedChildLocator(container, name)

    if ref.kind == "resource":
        if file_kind is FileKind.Plan:
            address, resource_type = ref.labels
            if minified:
                return MinifiedLocator.for_resource({"address": address, "type": resource_type})
            return ResourceListLocator.for_plan(address, resource_type)
        resource_type, name, *qualifiers = ref.labels
        mode, module = (tuple(qualifiers) + ("", ""))[:2]
        locator = ResourceListLocator.for_state(resource_type, name, mode, module)
        if minified:
            return MinifiedLocator.for_resource(locator.fields, locator.absent)
        return locator

    raise ValueError(f"no text-scan locator for block kind {ref.kind!r}")
