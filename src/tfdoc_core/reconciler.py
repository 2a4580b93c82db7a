"""Resource reconciliation across configuration, plan and state files.

The three sources describe resources in different shapes:

- configuration: one block per (type, name)
- plan: ``planned_values.root_module.resources[]``, one entry per instance,
  usually with the address already computed
- state: ``resources[].instances[]``, one resource carrying N instances

All of them are turned into the same ``Resource`` record. ``attributes_std``
mirrors ``arguments`` (configuration, plan) or ``attributes`` (state).
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

from .entities import Resource, span_fields
from .errors import TypeMismatch
from .meta import extract
from .model import DList, DMap, DScalar, Node, SourceSpan, to_python
from .sanitizer import sanitize


def resource_address(
    resource_type: str,
    name: str,
    index: Any = None,
    mode: str = "managed",
    module: str = "",
) -> str:
    """``type.name`` or ``type.name[index]``, with ``data.`` / module prefixes."""
    address = f"{resource_type}.{name}"
    if mode == "data":
        address = f"data.{address}"
    if module:
        address = f"{module}.{address}"
    if index is None:
        return address
    if isinstance(index, str):
        return f"{address}[{json.dumps(index)}]"
    return f"{address}[{index}]"


def _is_null(node: Node | None) -> bool:
    # an explicit JSON null counts as a missing key
    return node is None or (isinstance(node, DScalar) and node.value is None)


def _require_map(node: Node | None, address: str, key: str) -> dict[str, Any] | None:
    if _is_null(node):
        return None
    if not isinstance(node, DMap):
        raise TypeMismatch("resource", address, key, "map")
    return to_python(node)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def from_config(path: str, resource_type: str, name: str, body: DMap, span: SourceSpan) -> Resource:
    address = resource_address(resource_type, name)
    extraction = extract("resource", address, sanitize(body))
    return Resource(
        path=path,
        type=resource_type,
        name=name,
        address=address,
        arguments=extraction.arguments,
        attributes_std=extraction.arguments,
        **extraction.fields,
        **span_fields(span),
    )


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------

def iter_plan_entries(tree: DMap) -> Iterator[DMap]:
    """Yield every planned resource, root module first, then child modules."""
    planned = tree.get("planned_values")
    if isinstance(planned, DMap):
        root = planned.get("root_module")
        if isinstance(root, DMap):
            yield from _module_entries(root)


def _module_entries(module: DMap) -> Iterator[DMap]:
    resources = module.get("resources")
    if isinstance(resources, DList):
        for entry in resources.items:
            if isinstance(entry, DMap):
                yield entry
    children = module.get("child_modules")
    if isinstance(children, DList):
        for child in children.items:
            if isinstance(child, DMap):
                yield from _module_entries(child)


def plan_address(entry: DMap) -> str:
    """The address a plan entry supplies, or one computed from type and name."""
    return entry.get_str("address") or resource_address(
        entry.get_str("type"), entry.get_str("name"), mode=entry.get_str("mode", "managed")
    )


def from_plan(path: str, entry: DMap, span: SourceSpan) -> Resource:
    address = plan_address(entry)

    meta_body = DMap()
    if "provider_name" in entry:
        meta_body.entries["provider"] = entry.entries["provider_name"]
    extraction = extract("resource", address, meta_body)

    arguments = _require_map(entry.get("values"), address, "values") or {}
    index = entry.get("index")
    return Resource(
        path=path,
        type=entry.get_str("type"),
        name=entry.get_str("name"),
        mode=entry.get_str("mode", "managed"),
        address=address,
        index=to_python(index) if index is not None else None,
        arguments=arguments,
        attributes_std=arguments,
        **extraction.fields,
        **span_fields(span),
    )


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

def iter_state_resources(tree: DMap) -> Iterator[DMap]:
    resources = tree.get("resources")
    if isinstance(resources, DList):
        for resource in resources.items:
            if isinstance(resource, DMap):
                yield resource


def state_instances(resource: DMap) -> list[DMap]:
    """The instances of a state resource; a non-list value is a type mismatch."""
    instances = resource.get("instances")
    if _is_null(instances):
        return []
    if not isinstance(instances, DList):
        raise TypeMismatch("resource", _state_base_address(resource), "instances", "list")
    return [item for item in instances.items if isinstance(item, DMap)]


def _state_base_address(resource: DMap) -> str:
    return resource_address(
        resource.get_str("type"),
        resource.get_str("name"),
        mode=resource.get_str("mode", "managed"),
        module=resource.get_str("module"),
    )


def from_state_instance(path: str, resource: DMap, instance: DMap, span: SourceSpan) -> Resource:
    index_node = instance.get("index_key")
    index = to_python(index_node) if index_node is not None else None
    address = resource_address(
        resource.get_str("type"),
        resource.get_str("name"),
        index=index,
        mode=resource.get_str("mode", "managed"),
        module=resource.get_str("module"),
    )

    meta_body = DMap()
    if "provider" in resource:
        meta_body.entries["provider"] = resource.entries["provider"]
    if "dependencies" in instance:
        meta_body.entries["depends_on"] = instance.entries["dependencies"]
    extraction = extract("resource", address, meta_body)

    attributes = _require_map(instance.get("attributes"), address, "attributes")
    if attributes is None:
        # Pre-0.12 state files only carry the flattened form
        attributes = _require_map(instance.get("attributes_flat"), address, "attributes_flat") or {}

    return Resource(
        path=path,
        type=resource.get_str("type"),
        name=resource.get_str("name"),
        mode=resource.get_str("mode", "managed"),
        address=address,
        index=index,
        attributes=attributes,
        attributes_std=attributes,
        **extraction.fields,
        **span_fields(span),
    )
