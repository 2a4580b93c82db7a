"""Tests for the document sanitizer (parser position metadata)."""

from tfdoc_core.model import DList, DMap, DScalar, Node, from_raw
from tfdoc_core.sanitizer import is_reserved, sanitize


def _keys(node: Node) -> list[str]:
    keys: list[str] = []
    if isinstance(node, DMap):
        for key, value in node.entries.items():
            keys.append(key)
            keys.extend(_keys(value))
    elif isinstance(node, DList):
        for item in node.items:
            keys.extend(_keys(item))
    return keys


# ---------------------------------------------------------------------------
# Reserved keys
# ---------------------------------------------------------------------------

def test_parser_metadata_is_reserved():
    """`__start_line__` / `__end_line__` are reserved"""
    assert is_reserved("__start_line__")
    assert is_reserved("__end_line__")


def test_leading_underscores_alone_not_reserved():
    """A key that only starts with `__` is user data"""
    assert not is_reserved("__owner")
    assert not is_reserved("_private")
    assert not is_reserved("name__")


# ---------------------------------------------------------------------------
# sanitize
# ---------------------------------------------------------------------------

def test_none_and_empty():
    """None and an empty document both give an empty document"""
    assert sanitize(None) == DMap()
    assert sanitize(DMap()) == DMap()


def test_strips_top_level():
    doc = from_raw({"ami": "x", "__start_line__": 3, "__end_line__": 5})
    assert sanitize(doc) == DMap({"ami": DScalar("x")})


def test_strips_nested_and_inside_lists():
    """Metadata is removed at every depth, including list elements"""
    doc = from_raw({
        "lifecycle": [{"prevent_destroy": True, "__start_line__": 4, "__end_line__": 6}],
        "tags": {"Name": "web", "__end_line__": 9},
        "__start_line__": 1,
    })
    result = sanitize(doc)
    assert result == from_raw({
        "lifecycle": [{"prevent_destroy": True}],
        "tags": {"Name": "web"},
    })
    assert not any(is_reserved(k) for k in _keys(result))


def test_input_not_mutated():
    doc = from_raw({"a": 1, "__start_line__": 1})
    sanitize(doc)
    assert "__start_line__" in doc


def test_plain_keys_kept():
    """`tags = { "__owner" = ... }` keeps its user keys"""
    doc = from_raw({"tags": {"__owner": "ops", "Name": "w"}, "_private": 1, "name__": 2})
    assert sanitize(doc) == doc
