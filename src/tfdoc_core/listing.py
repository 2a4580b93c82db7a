"""Per-file listing: read, classify, parse once, build and stream entities.

Each ``list_*`` function pushes one entity at a time to the caller's sink.
A parse failure is raised before any entity is emitted. A build failure
skips that entity only; the rest of the file is still emitted and the first
failure is raised once the file is exhausted.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterator
from typing import Any

from . import builders, reconciler
from .entities import Entity
from .errors import EntityBuildError
from .grammar_locator import GrammarLocator
from .model import BlockReference, DList, DMap, Node, SourceSpan
from .parser import FileKind, FilePath, ParserService, SourceFile, default_parser
from .sanitizer import is_reserved, sanitize
from .scan_locator import select_locator

logger = logging.getLogger(__name__)

Sink = Callable[[Entity], None]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class _Emitter:
    """Builds entities one by one, collecting per-entity failures."""

    def __init__(self, operation: str, path: str, sink: Sink) -> None:
        self.operation = operation
        self.path = path
        self.sink = sink
        self.errors: list[EntityBuildError] = []

    def emit(self, build: Callable[..., Entity], *args: Any) -> None:
        try:
            entity = build(*args)
        except EntityBuildError as exc:
            self.fail(exc)
            return
        self.sink(entity)

    def fail(self, exc: EntityBuildError) -> None:
        logger.error("%s: build error in %s: %s", self.operation, self.path, exc)
        self.errors.append(exc)

    def finish(self) -> None:
        if self.errors:
            raise self.errors[0]


def _load(item: FilePath, parser: ParserService | None) -> SourceFile:
    return (parser or default_parser()).load(item)


def _config_blocks(tree: DMap, kind: str, depth: int) -> Iterator[tuple[tuple[str, ...], DMap, int]]:
    """Yield ``(labels, sanitized body, occurrence)`` for every *kind* block.

    ``occurrence`` counts earlier blocks with the same labels so repeated
    blocks (several ``locals``, aliased providers) map to their own span.
    """
    node = tree.get(kind)
    if node is None:
        return
    blocks = node.items if isinstance(node, DList) else [node]
    seen: Counter[tuple[str, ...]] = Counter()
    for block in blocks:
        for labels, body in _walk_labels(block, depth, ()):
            key = tuple(label.lower() for label in labels)
            yield labels, sanitize(body), seen[key]
            seen[key] += 1


def _walk_labels(node: Node, depth: int, prefix: tuple[str, ...]) -> Iterator[tuple[tuple[str, ...], DMap]]:
    if not isinstance(node, DMap):
        return
    if depth == 0:
        yield prefix, node
        return
    for key, child in node.entries.items():
        if is_reserved(key):
            continue
        yield from _walk_labels(child, depth - 1, prefix + (key,))


def _scan(source: SourceFile, ref: BlockReference) -> SourceSpan:
    return select_locator(ref, source.kind, source.content).locate(source.content)


def _named_entries(node: Node | None) -> Iterator[tuple[str, DMap]]:
    if isinstance(node, DMap):
        for name, body in node.entries.items():
            if isinstance(body, DMap):
                yield name, body


def _skip_json(operation: str, source: SourceFile) -> bool:
    if source.kind is FileKind.Config:
        return False
    logger.debug("%s: skipping %s file %s", operation, source.kind.name, source.path)
    return True


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------

def list_resources(item: FilePath, sink: Sink, parser: ParserService | None = None) -> None:
    source = _load(item, parser)
    emitter = _Emitter("list_resources", source.path, sink)

    if source.kind is FileKind.Config:
        locator = GrammarLocator(source.content, source.tree)
        for (resource_type, name), body, occurrence in _config_blocks(source.tree, "resource", 2):
            span = locator.locate("resource", (resource_type, name), occurrence)
            emitter.emit(reconciler.from_config, source.path, resource_type, name, body, span)

    elif source.kind is FileKind.Plan:
        for entry in reconciler.iter_plan_entries(source.tree):
            ref = BlockReference("resource", (reconciler.plan_address(entry), entry.get_str("type")))
            emitter.emit(reconciler.from_plan, source.path, entry, _scan(source, ref))

    else:
        for resource in reconciler.iter_state_resources(source.tree):
            ref = BlockReference("resource", (
                resource.get_str("type"),
                resource.get_str("name"),
                resource.get_str("mode"),
                resource.get_str("module"),
            ))
            span = _scan(source, ref)
            try:
                instances = reconciler.state_instances(resource)
            except EntityBuildError as exc:
                emitter.fail(exc)
                continue
            for instance in instances:
                emitter.emit(reconciler.from_state_instance, source.path, resource, instance, span)

    emitter.finish()


# ---------------------------------------------------------------------------
# Configuration-only kinds
# ---------------------------------------------------------------------------

def list_data_sources(item: FilePath, sink: Sink, parser: ParserService | None = None) -> None:
    source = _load(item, parser)
    if _skip_json("list_data_sources", source):
        return
    emitter = _Emitter("list_data_sources", source.path, sink)
    locator = GrammarLocator(source.content, source.tree)
    for (data_type, name), body, occurrence in _config_blocks(source.tree, "data", 2):
        span = locator.locate("data", (data_type, name), occurrence)
        emitter.emit(builders.build_data_source, source.path, data_type, name, body, span)
    emitter.finish()


def list_modules(item: FilePath, sink: Sink, parser: ParserService | None = None) -> None:
    source = _load(item, parser)
    if _skip_json("list_modules", source):
        return
    emitter = _Emitter("list_modules", source.path, sink)
    locator = GrammarLocator(source.content, source.tree)
    for (name,), body, occurrence in _config_blocks(source.tree, "module", 1):
        span = locator.locate("module", (name,), occurrence)
        emitter.emit(builders.build_module, source.path, name, body, span)
    emitter.finish()


def list_providers(item: FilePath, sink: Sink, parser: ParserService | None = None) -> None:
    source = _load(item, parser)
    if _skip_json("list_providers", source):
        return
    emitter = _Emitter("list_providers", source.path, sink)
    locator = GrammarLocator(source.content, source.tree)
    for (name,), body, occurrence in _config_blocks(source.tree, "provider", 1):
        span = locator.locate("provider", (name,), occurrence)
        emitter.emit(builders.build_provider, source.path, name, body, span)
    emitter.finish()


def list_locals(item: FilePath, sink: Sink, parser: ParserService | None = None) -> None:
    source = _load(item, parser)
    if _skip_json("list_locals", source):
        return
    emitter = _Emitter("list_locals", source.path, sink)
    locator = GrammarLocator(source.content, source.tree)
    for _, body, occurrence in _config_blocks(source.tree, "locals", 0):
        block_span = locator.locate("locals", (), occurrence)
        for name, value in body.entries.items():
            span = locator.locate_attribute(block_span, name)
            emitter.emit(builders.build_local, source.path, name, value, span)
    emitter.finish()


# ---------------------------------------------------------------------------
# Outputs and variables (configuration and JSON exports)
# ---------------------------------------------------------------------------

def list_outputs(item: FilePath, sink: Sink, parser: ParserService | None = None) -> None:
    source = _load(item, parser)
    emitter = _Emitter("list_outputs", source.path, sink)

    if source.kind is FileKind.Config:
        locator = GrammarLocator(source.content, source.tree)
        for (name,), body, occurrence in _config_blocks(source.tree, "output", 1):
            span = locator.locate("output", (name,), occurrence)
            emitter.emit(builders.build_output, source.path, name, body, span)
    else:
        outputs = source.tree.get("outputs")
        if source.kind is FileKind.Plan:
            planned = source.tree.get("planned_values")
            outputs = planned.get("outputs") if isinstance(planned, DMap) else None
        for name, body in _named_entries(outputs):
            span = _scan(source, BlockReference("output", (name,)))
            emitter.emit(builders.build_output, source.path, name, body, span)

    emitter.finish()


def list_variables(item: FilePath, sink: Sink, parser: ParserService | None = None) -> None:
    source = _load(item, parser)
    emitter = _Emitter("list_variables", source.path, sink)

    if source.kind is FileKind.Config:
        locator = GrammarLocator(source.content, source.tree)
        for (name,), body, occurrence in _config_blocks(source.tree, "variable", 1):
            span = locator.locate("variable", (name,), occurrence)
            emitter.emit(builders.build_variable, source.path, name, body, span)
    else:
        for name, body in _named_entries(source.tree.get("variables")):
            span = _scan(source, BlockReference("variable", (name,)))
            emitter.emit(builders.build_variable, source.path, name, body, span, False)

    emitter.finish()


LISTERS: dict[str, Callable[[FilePath, Sink, ParserService | None], None]] = {
    "resource": list_resources,
    "data_source": list_data_sources,
    "module": list_modules,
    "output": list_outputs,
    "variable": list_variables,
    "provider": list_providers,
    "local": list_locals,
}
