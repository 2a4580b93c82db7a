"""Parser service: file classification and the serialized parse entry point."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path

import hcl2
from lark.exceptions import LarkError

from .errors import ParseError, UnsupportedValueType
from .model import DMap, from_raw

logger = logging.getLogger(__name__)

STATE_SUFFIX = ".tfstate"


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class FileKind(Enum):
    Config = auto()
    Plan = auto()
    State = auto()


@dataclass(frozen=True, slots=True)
class FilePath:
    """A path handed to a listing call, with the caller's classification."""

    path: str
    is_plan: bool = False
    is_state: bool = False

    @classmethod
    def from_path(cls, path: str) -> FilePath:
        """Tag *path* as state when it carries the ``.tfstate`` suffix."""
        return cls(path=path, is_state=path.endswith(STATE_SUFFIX))


def is_terraform_plan(content: str) -> bool:
    """True when *content* is JSON with ``resource_changes`` and ``format_version``."""
    try:
        data = json.loads(content)
    except ValueError:
        return False
    if not isinstance(data, dict):
        return False
    return "resource_changes" in data and "format_version" in data


def classify(item: FilePath, content: str) -> FileKind:
    if item.is_state:
        return FileKind.State
    if item.is_plan or is_terraform_plan(content):
        return FileKind.Plan
    return FileKind.Config


@dataclass(frozen=True, slots=True)
class SourceFile:
    """A file read fully into memory, classified and parsed."""

    path: str
    content: str
    kind: FileKind
    tree: DMap

    @property
    def lines(self) -> list[str]:
        return self.content.split("\n")


# ---------------------------------------------------------------------------
# ParserService
# ---------------------------------------------------------------------------

class ParserService:
    """Owns the HCL parser and the lock serializing every call into it.

    The lock covers exactly the conversion of bytes into a tree. Everything
    done with the resulting tree is pure and runs unlocked.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def parse_hcl(self, path: str, content: str) -> DMap:
        with self._lock:
            try:
                raw = hcl2.loads(content, with_meta=True)
            except LarkError as exc:
                logger.error("parse_hcl: parse error in %s: %s", path, exc)
                raise ParseError(path, str(exc)) from exc
        return _as_document(path, raw)

    def parse_json(self, path: str, content: str) -> DMap:
        try:
            raw = json.loads(content)
        except json.JSONDecodeError as exc:
            logger.error("parse_json: parse error in %s: %s", path, exc)
            raise ParseError(path, str(exc)) from exc
        return _as_document(path, raw)

    def load(self, item: FilePath) -> SourceFile:
        """Read *item* fully, classify it and parse it with the matching parser."""
        try:
            content = Path(item.path).read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(item.path, str(exc)) from exc
        kind = classify(item, content)
        if kind is FileKind.Config:
            tree = self.parse_hcl(item.path, content)
        else:
            tree = self.parse_json(item.path, content)
        logger.debug("load: parsed %s as %s", item.path, kind.name)
        return SourceFile(path=item.path, content=content, kind=kind, tree=tree)


def _as_document(path: str, raw: object) -> DMap:
    try:
        node = from_raw(raw)
    except UnsupportedValueType as exc:
        raise ParseError(path, str(exc)) from exc
    if not isinstance(node, DMap):
        raise ParseError(path, f"top-level value is {type(raw).__name__}, not an object")
    return node


_default_parser = ParserService()


def default_parser() -> ParserService:
    """The process-wide parser service shared by listing calls."""
    return _default_parser
