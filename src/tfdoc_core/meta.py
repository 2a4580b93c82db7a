"""Meta-argument extraction driven by per-kind schema tables.

Each entity kind declares which keys are meta-arguments, the shape each must
have and a setter writing the normalized value into the entity's fields.
Every other key lands in the generic ``arguments`` bag.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .errors import TypeMismatch
from .model import DList, DMap, DScalar, Node, Shape, shape_of, to_python
from .values import canonicalize, stringify

Fields = dict[str, Any]
Setter = Callable[[Fields, Node], None]

_TYPE_EXPR_RE = re.compile(r"^\$\{(.+)\}$")

_SHAPE_NAMES = {
    Shape.String: "string",
    Shape.Number: "number",
    Shape.Bool: "bool",
    Shape.List: "list",
    Shape.Map: "map",
    Shape.Any: "any",
}

_KIND_NAMES = {"data": "data source"}


@dataclass(frozen=True, slots=True)
class MetaArg:
    shape: Shape
    setter: Setter


@dataclass(slots=True)
class Extraction:
    fields: Fields = field(default_factory=dict)
    arguments: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def _accepts(shape: Shape, node: Node) -> bool:
    if shape is Shape.Any:
        return True
    if shape is Shape.Map:
        return isinstance(node, DMap) or (
            isinstance(node, DList) and all(isinstance(i, DMap) for i in node.items)
        )
    if shape is Shape.Bool:
        return _as_bool(node) is not None
    return shape_of(node) is shape


def _as_bool(node: Node) -> bool | None:
    if not isinstance(node, DScalar):
        return None
    if isinstance(node.value, bool):
        return node.value
    if node.value in ("true", "false"):
        return node.value == "true"
    return None


def _as_map(node: Node) -> dict[str, Any]:
    # Nested blocks (``lifecycle { ... }``) arrive as a list of documents
    if isinstance(node, DList):
        merged: dict[str, Any] = {}
        for item in node.items:
            merged.update(to_python(item))
        return merged
    return to_python(node)


def coerce_count(node: Node) -> int | None:
    """Integer value of a literal count, or None when it is not a whole number."""
    if not isinstance(node, DScalar) or not node.is_number:
        return None
    value = node.value
    if isinstance(value, float) and not value.is_integer():
        return None
    return int(value)


def format_type_expression(value: str) -> str:
    """``${list(string)}`` → ``list(string)``."""
    match = _TYPE_EXPR_RE.match(value)
    if match:
        return match.group(1)
    return value


# ---------------------------------------------------------------------------
# Setters
# ---------------------------------------------------------------------------

def _set_count(fields: Fields, node: Node) -> None:
    # count_src is authoritative; the integer is only a convenience
    fields["count_src"] = canonicalize(node)
    fields["count"] = coerce_count(node)


def _set_canonical(target: str) -> Setter:
    def setter(fields: Fields, node: Node) -> None:
        fields[target] = canonicalize(node)
    return setter


def _set_string(target: str) -> Setter:
    def setter(fields: Fields, node: Node) -> None:
        fields[target] = node.value
    return setter


def _set_bool(target: str) -> Setter:
    def setter(fields: Fields, node: Node) -> None:
        fields[target] = _as_bool(node)
    return setter


def _set_map(target: str) -> Setter:
    def setter(fields: Fields, node: Node) -> None:
        fields[target] = _as_map(node)
    return setter


def _set_depends_on(fields: Fields, node: Node) -> None:
    fields["depends_on"] = [stringify(item) for item in node.items]


def _set_type(fields: Fields, node: Node) -> None:
    fields["type"] = format_type_expression(node.value)


# ---------------------------------------------------------------------------
# Schema tables
# ---------------------------------------------------------------------------

COUNT = MetaArg(Shape.Any, _set_count)
FOR_EACH = MetaArg(Shape.Any, _set_canonical("for_each"))
DEPENDS_ON = MetaArg(Shape.List, _set_depends_on)
PROVIDER = MetaArg(Shape.String, _set_string("provider"))
LIFECYCLE = MetaArg(Shape.Map, _set_map("lifecycle"))
DESCRIPTION = MetaArg(Shape.String, _set_string("description"))
SENSITIVE = MetaArg(Shape.Bool, _set_bool("sensitive"))
VERSION = MetaArg(Shape.String, _set_string("version"))

_BLOCK_META = {
    "count": COUNT,
    "for_each": FOR_EACH,
    "depends_on": DEPENDS_ON,
    "provider": PROVIDER,
    "lifecycle": LIFECYCLE,
}

META_SCHEMA: dict[str, dict[str, MetaArg]] = {
    "resource": dict(_BLOCK_META),
    "data": dict(_BLOCK_META),
    "module": {
        "count": COUNT,
        "for_each": FOR_EACH,
        "depends_on": DEPENDS_ON,
        "providers": MetaArg(Shape.Map, _set_map("providers")),
        "source": MetaArg(Shape.String, _set_string("module_source")),
        "version": VERSION,
    },
    "provider": {
        "alias": MetaArg(Shape.String, _set_string("alias")),
        "version": VERSION,
    },
    "output": {
        "description": DESCRIPTION,
        "sensitive": SENSITIVE,
        "depends_on": DEPENDS_ON,
        "value": MetaArg(Shape.Any, _set_canonical("value")),
    },
    "variable": {
        "description": DESCRIPTION,
        "sensitive": SENSITIVE,
        "nullable": MetaArg(Shape.Bool, _set_bool("nullable")),
        "default": MetaArg(Shape.Any, _set_canonical("default_value")),
        "type": MetaArg(Shape.String, _set_type),
        "value": MetaArg(Shape.Any, _set_canonical("value")),
    },
}


def extract(kind: str, name: str, body: DMap) -> Extraction:
    """Split a sanitized block *body* into meta fields and plain arguments.

    Raises ``TypeMismatch`` when a meta-argument has the wrong shape.
    """
    schema = META_SCHEMA.get(kind, {})
    result = Extraction()
    for key, node in body.entries.items():
        meta = schema.get(key)
        if meta is None:
            result.arguments[key] = to_python(node)
            continue
        if not _accepts(meta.shape, node):
            raise TypeMismatch(_KIND_NAMES.get(kind, kind), name, key, _SHAPE_NAMES[meta.shape])
        meta.setter(result.fields, node)
    return result
