"""Exception hierarchy for tfdoc_core."""

from __future__ import annotations


class TFDocCoreError(Exception):
    """Base class for every error raised by tfdoc_core."""


class ParseError(TFDocCoreError):
    """The parser rejected a file's bytes. Fatal for that file."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"failed to parse file {path}: {reason}")
        self.path = path
        self.reason = reason


class EntityBuildError(TFDocCoreError):
    """A single entity could not be built. Fatal for that entity only."""


class TypeMismatch(EntityBuildError):
    """A meta-argument had an unexpected shape."""

    def __init__(self, kind: str, name: str, key: str, expected: str) -> None:
        super().__init__(
            f"the '{key}' argument for {kind} '{name}' must be of type {expected}"
        )
        self.kind = kind
        self.name = name
        self.key = key
        self.expected = expected


class UnsupportedValueType(EntityBuildError):
    """A value has no defined canonical string form."""

    def __init__(self, type_name: str) -> None:
        super().__init__(f"failed to convert value due to unknown type: {type_name}")
        self.type_name = type_name


class SourceNotFound(TFDocCoreError):
    """A locator could not find the requested block."""

    def __init__(self, kind: str, labels: tuple[str, ...]) -> None:
        label_str = " ".join(f'"{label}"' for label in labels)
        super().__init__(f"block not found: {kind} {label_str}".rstrip())
        self.kind = kind
        self.labels = labels


class ValidationBlockNotFound(TFDocCoreError):
    """No validation block could be extracted from a variable's source."""
