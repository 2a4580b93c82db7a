"""Entity builders: one per block kind.

Every builder runs meta-argument extraction on a block body and combines the
result with the span found by the caller's locator. Bodies from
configuration files arrive already sanitized. Resources are built by
``reconciler``.
"""

from __future__ import annotations

import logging
import re

from .entities import DataSource, Local, Module, Output, Provider, Variable, span_fields
from .errors import ValidationBlockNotFound
from .meta import extract
from .model import DMap, Node, SourceSpan
from .values import canonicalize

logger = logging.getLogger(__name__)

_VALIDATION_RE = re.compile(r"validation\s*\{[^}]+\}")


def extract_validation_block(source: str) -> str:
    """Return every ``validation { ... }`` block in *source*, blank-line separated."""
    blocks = _VALIDATION_RE.findall(source)
    if not blocks:
        raise ValidationBlockNotFound("no validation blocks found")
    return "\n\n".join(blocks)


def build_data_source(path: str, data_type: str, name: str, body: DMap, span: SourceSpan) -> DataSource:
    extraction = extract("data", f"{data_type}.{name}", body)
    return DataSource(
        path=path,
        type=data_type,
        name=name,
        arguments=extraction.arguments,
        **extraction.fields,
        **span_fields(span),
    )


def build_module(path: str, name: str, body: DMap, span: SourceSpan) -> Module:
    extraction = extract("module", name, body)
    return Module(
        path=path,
        name=name,
        arguments=extraction.arguments,
        **extraction.fields,
        **span_fields(span),
    )


def build_provider(path: str, name: str, body: DMap, span: SourceSpan) -> Provider:
    extraction = extract("provider", name, body)
    return Provider(
        path=path,
        name=name,
        arguments=extraction.arguments,
        **extraction.fields,
        **span_fields(span),
    )


def build_output(path: str, name: str, body: DMap, span: SourceSpan) -> Output:
    extraction = extract("output", name, body)
    return Output(
        path=path,
        name=name,
        arguments=extraction.arguments,
        **extraction.fields,
        **span_fields(span),
    )


def build_variable(
    path: str,
    name: str,
    body: DMap,
    span: SourceSpan,
    with_validation: bool = True,
) -> Variable:
    """Build a variable from a configuration block or a plan/state entry.

    Configuration variables also carry the text of their validation blocks;
    a missing block leaves the field empty.
    """
    extraction = extract("variable", name, body)
    validation = ""
    if with_validation:
        try:
            validation = extract_validation_block(span.source)
        except ValidationBlockNotFound:
            logger.debug("build_variable: no validation block for variable %s in %s", name, path)
    return Variable(
        path=path,
        name=name,
        validation=validation,
        arguments=extraction.arguments,
        **extraction.fields,
        **span_fields(span),
    )


def build_local(path: str, name: str, value: Node, span: SourceSpan) -> Local:
    return Local(path=path, name=name, value=canonicalize(value), **span_fields(span))
