from __future__ import annotations

from typing import Any, Optional


class DsvLoadError(ValueError):
    """Base class for every error raised by dsvload."""


class MalformedConfigSyntax(DsvLoadError):
    """
    The relaxed-JSON text could not be parsed.

    ``offset`` is the 0-based character offset of the problem; ``line`` and
    ``column`` are 1-based and derived from it.
    """

    def __init__(self, message: str, offset: Optional[int] = None, text: Optional[str] = None):
        self.reason = message
        self.offset = offset
        self.line: Optional[int] = None
        self.column: Optional[int] = None
        if offset is not None and text is not None:
            self.line = text.count("\n", 0, offset) + 1
            self.column = offset - (text.rfind("\n", 0, offset) + 1) + 1
        if self.line is not None:
            message = f"{message} (line {self.line}, column {self.column})"
        elif offset is not None:
            message = f"{message} (offset {offset})"
        super().__init__(message)


class SchemaError(DsvLoadError):
    """A config document parsed fine but does not describe a valid schema."""

    def __init__(self, message: str, path: str = "", fragment: Any = None):
        self.reason = message
        self.path = path
        self.fragment = fragment
        where = f"{path}: " if path else ""
        super().__init__(f"{where}{message}")


class MissingRequiredField(SchemaError):
    pass


class InvalidColumnReference(SchemaError):
    """column_position and column_name are both set, or neither is."""


class EmptyOrInvalidMappingList(SchemaError):
    pass


class InvalidFieldValue(SchemaError):
    """A field is present but has the wrong shape or type."""
