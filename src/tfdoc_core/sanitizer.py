"""Strip parser position metadata from a document tree.

Only trees produced by the HCL parser carry metadata. Plan and state
exports are passed through untouched.
"""

from __future__ import annotations

from .model import RESERVED_KEY, DList, DMap, DScalar, Node


def is_reserved(key: str) -> bool:
    return RESERVED_KEY.match(key) is not None


def sanitize(doc: DMap | None) -> DMap:
    """Return a copy of *doc* without reserved keys at any depth.

    Sequence elements that are documents are sanitized too.
    """
    if doc is None:
        return DMap()
    return _sanitize_map(doc)


def _sanitize_map(doc: DMap) -> DMap:
    return DMap({
        key: _sanitize_node(value)
        for key, value in doc.entries.items()
        if not is_reserved(key)
    })


def _sanitize_node(node: Node) -> Node:
    if isinstance(node, DMap):
        return _sanitize_map(node)
    if isinstance(node, DList):
        return DList([_sanitize_node(item) for item in node.items])
    return DScalar(node.value)
