"""Data model for tfdoc_core: generic document tree, spans and block references."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Union

from .errors import UnsupportedValueType

# Position metadata keys emitted by the HCL parser (``__start_line__`` ...).
# User keys that merely start with ``__`` are data.
RESERVED_KEY = re.compile(r"^__\w+__$")


# ---------------------------------------------------------------------------
# Shape: expected primitive shape of a meta-argument
# ---------------------------------------------------------------------------

class Shape(Enum):
    String = auto()
    Number = auto()
    Bool = auto()
    List = auto()
    Map = auto()
    Any = auto()


# ---------------------------------------------------------------------------
# Document nodes
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class DScalar:
    value: str | int | float | bool | None

    @property
    def is_string(self) -> bool:
        return isinstance(self.value, str)

    @property
    def is_number(self) -> bool:
        return isinstance(self.value, (int, float)) and not isinstance(self.value, bool)


@dataclass(slots=True)
class DList:
    items: list[Node] = field(default_factory=list)


@dataclass(slots=True)
class DMap:
    entries: dict[str, Node] = field(default_factory=dict)

    def get(self, key: str) -> Node | None:
        return self.entries.get(key)

    def get_str(self, key: str, default: str = "") -> str:
        node = self.entries.get(key)
        if isinstance(node, DScalar) and node.is_string:
            return node.value
        return default

    def __contains__(self, key: str) -> bool:
        return key in self.entries


Node = Union[DScalar, DList, DMap]


def shape_of(node: Node) -> Shape:
    """Return the primitive shape of *node*."""
    if isinstance(node, DMap):
        return Shape.Map
    if isinstance(node, DList):
        return Shape.List
    if isinstance(node.value, bool):
        return Shape.Bool
    if node.is_number:
        return Shape.Number
    if node.is_string:
        return Shape.String
    return Shape.Any


# ---------------------------------------------------------------------------
# Conversion from / to plain Python values
# ---------------------------------------------------------------------------

def from_raw(raw: Any) -> Node:
    """Convert a parser's Python output (dicts, lists, scalars) to a Node.

    Tuples are treated as lists. Anything else without a tree form raises
    ``UnsupportedValueType``.
    """
    if isinstance(raw, dict):
        return DMap({str(k): from_raw(v) for k, v in raw.items()})
    if isinstance(raw, (list, tuple)):
        return DList([from_raw(v) for v in raw])
    if isinstance(raw, float) and not math.isfinite(raw):
        raise UnsupportedValueType(f"non-finite {type(raw).__name__}")
    if raw is None or isinstance(raw, (str, int, float, bool)):
        return DScalar(raw)
    raise UnsupportedValueType(type(raw).__name__)


def to_python(node: Node) -> Any:
    """Convert a Node back to plain dicts, lists and scalars."""
    if isinstance(node, DMap):
        return {k: to_python(v) for k, v in node.entries.items()}
    if isinstance(node, DList):
        return [to_python(v) for v in node.items]
    if isinstance(node, DScalar):
        return node.value
    raise UnsupportedValueType(type(node).__name__)


# ---------------------------------------------------------------------------
# BlockReference / SourceSpan
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class BlockReference:
    """A block within one file: ``(resource, (type, name))``, ``(output, (name,))``."""

    kind: str
    labels: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SourceSpan:
    start_line: int = 0
    end_line: int = 0
    source: str = ""

    @classmethod
    def empty(cls) -> SourceSpan:
        return cls()

    @property
    def found(self) -> bool:
        return self.start_line > 0
