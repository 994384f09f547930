from __future__ import annotations

from typing import Optional


class SurveyCrosstabError(Exception):
    """Base exception for every failure surfaced by the report pipeline."""


class SchemaParseError(SurveyCrosstabError):
    """Raised when the schema document is malformed or has an unexpected shape."""


class RecordParseError(SurveyCrosstabError):
    """Raised when a response row cannot be turned into a typed record."""


class InvalidRecord(SurveyCrosstabError):
    """
    A record parsed fine but violates a semantic rule (e.g. negative age).

    `row` is 1-based and counts the header row, so it points at the
    offending line of the source file.
    """

    def __init__(self, field: str, value: str, row: Optional[int] = None) -> None:
        self.field = field
        self.value = value
        self.row = row
        where = str(row) if row is not None else "unknown"
        super().__init__(f"Invalid {field}: {value} at row {where}")


class UnknownField(SurveyCrosstabError):
    """Raised when a field reference cannot be resolved against the active schema."""


class UnsupportedField(SurveyCrosstabError):
    """Raised when tabulation is requested on a field without discrete variants."""


class MissingOption(SurveyCrosstabError):
    """Raised when a filter criterion names an unknown category or value."""


class ConfigError(SurveyCrosstabError):
    """Raised when a filter or report configuration document is malformed."""
