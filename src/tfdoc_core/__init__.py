"""tfdoc_core: Terraform document normalization and source-location engine."""

from .config import ConnectionConfig
from .entities import DataSource, Entity, Local, Module, Output, Provider, Resource, Variable
from .errors import (
    EntityBuildError,
    ParseError,
    SourceNotFound,
    TFDocCoreError,
    TypeMismatch,
    UnsupportedValueType,
    ValidationBlockNotFound,
)
from .grammar_locator import GrammarLocator
from .listing import (
    LISTERS,
    list_data_sources,
    list_locals,
    list_modules,
    list_outputs,
    list_providers,
    list_resources,
    list_variables,
)
from .model import BlockReference, DList, DMap, DScalar, Node, SourceSpan, from_raw, to_python
from .parser import FileKind, FilePath, ParserService, default_parser
from .sanitizer import sanitize
from .scan_locator import select_locator
from .values import canonicalize

__all__ = [
    "BlockReference",
    "ConnectionConfig",
    "DList",
    "DMap",
    "DScalar",
    "DataSource",
    "Entity",
    "EntityBuildError",
    "FileKind",
    "FilePath",
    "GrammarLocator",
    "LISTERS",
    "Local",
    "Module",
    "Node",
    "Output",
    "ParseError",
    "ParserService",
    "Provider",
    "Resource",
    "SourceNotFound",
    "SourceSpan",
    "TFDocCoreError",
    "TypeMismatch",
    "UnsupportedValueType",
    "ValidationBlockNotFound",
    "Variable",
    "canonicalize",
    "default_parser",
    "from_raw",
    "list_data_sources",
    "list_locals",
    "list_modules",
    "list_outputs",
    "list_providers",
    "list_resources",
    "list_variables",
    "sanitize",
    "select_locator",
    "to_python",
]
