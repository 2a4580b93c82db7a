"""Value canonicalization: any document node to a stable JSON string.

Meta-argument values may be literals (``count = 3``) or unresolved
expressions (``count = var.x``, which the parser renders as ``"${var.x}"``).
Both are kept as JSON text so callers can recover structure with
``json.loads`` without an expression evaluator.
"""

from __future__ import annotations

import json

from .errors import UnsupportedValueType
from .model import DList, DMap, DScalar, Node


def canonicalize(node: Node) -> str:
    """Return the canonical JSON form of *node*.

    - DScalar (string) → JSON-quoted string
    - DScalar (number / bool / null) → JSON text of the value
    - DMap → JSON object, keys sorted, fields canonicalized recursively
    - DList → ``[e1,e2,...]``
    """
    if isinstance(node, DScalar):
        return _scalar_json(node)
    if isinstance(node, DMap):
        fields = (
            f"{json.dumps(key)}:{canonicalize(node.entries[key])}"
            for key in sorted(node.entries)
        )
        return "{" + ",".join(fields) + "}"
    if isinstance(node, DList):
        return "[" + ",".join(canonicalize(item) for item in node.items) + "]"
    raise UnsupportedValueType(type(node).__name__)


def _scalar_json(node: DScalar) -> str:
    value = node.value
    if value is None or isinstance(value, (str, int, float, bool)):
        try:
            return json.dumps(value, allow_nan=False)
        except ValueError as exc:
            raise UnsupportedValueType(type(value).__name__) from exc
    raise UnsupportedValueType(type(value).__name__)


def stringify(node: Node) -> str:
    """Plain string form: strings verbatim, everything else canonicalized."""
    if isinstance(node, DScalar) and node.is_string:
        return node.value
    return canonicalize(node)
