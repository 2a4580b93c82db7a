"""Normalized entity records, one per Terraform block kind."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Union

from .model import SourceSpan


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True, kw_only=True)
class Located:
    """Path plus the span a record was read from."""

    path: str
    start_line: int = 0
    end_line: int = 0
    source: str = ""

    @property
    def span(self) -> SourceSpan:
        return SourceSpan(self.start_line, self.end_line, self.source)

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


def span_fields(span: SourceSpan) -> dict[str, Any]:
    return {"start_line": span.start_line, "end_line": span.end_line, "source": span.source}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True, kw_only=True)
class Resource(Located):
    type: str
    name: str
    address: str
    mode: str = "managed"
    index: Any = None
    count: int | None = None
    count_src: str | None = None
    for_each: str | None = None
    depends_on: list[str] | None = None
    provider: str | None = None
    lifecycle: dict[str, Any] | None = None
    arguments: dict[str, Any] | None = None
    attributes: dict[str, Any] | None = None
    attributes_std: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class DataSource(Located):
    type: str
    name: str
    count: int | None = None
    count_src: str | None = None
    for_each: str | None = None
    depends_on: list[str] | None = None
    provider: str | None = None
    lifecycle: dict[str, Any] | None = None
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True, kw_only=True)
class Module(Located):
    name: str
    module_source: str | None = None
    version: str | None = None
    count: int | None = None
    count_src: str | None = None
    for_each: str | None = None
    depends_on: list[str] | None = None
    providers: dict[str, Any] | None = None
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True, kw_only=True)
class Output(Located):
    name: str
    value: str | None = None
    description: str | None = None
    sensitive: bool = False
    depends_on: list[str] | None = None
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True, kw_only=True)
class Variable(Located):
    name: str
    type: str | None = None
    default_value: str | None = None
    value: str | None = None
    description: str | None = None
    sensitive: bool = False
    nullable: bool | None = None
    validation: str = ""
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True, kw_only=True)
class Provider(Located):
    name: str
    alias: str | None = None
    version: str | None = None
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True, kw_only=True)
class Local(Located):
    name: str
    value: str


Entity = Union[Resource, DataSource, Module, Output, Variable, Provider, Local]
