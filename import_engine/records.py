"""
import_engine.records - Value objects produced by the parser.

CandidateRecord   - one data row projected onto the language schema
ValidationIssue   - an error or warning addressed by row + field
ParseResult       - everything the preview step needs, built once per upload
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    row_number: int
    field: str
    message: str
    severity: Severity = Severity.ERROR

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> dict:
        return {
            "row_number": self.row_number,
            "field": self.field,
            "message": self.message,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class CandidateRecord:
    row_number: int
    name: str = ""
    endonym: Optional[str] = None
    iso_639_3_code: Optional[str] = None
    language_family: Optional[str] = None
    country_of_origin: Optional[str] = None
    speaker_count: Optional[str] = None
    translations: dict[str, str] = field(default_factory=dict)    # locale → name
    taxonomies: dict[str, str] = field(default_factory=dict)      # column → raw value
    custom_fields: dict[str, str] = field(default_factory=dict)   # column → raw value

    def column_value(self, column: str) -> str:
        """Raw value of a taxonomy-like column, wherever the parser routed it."""
        if column in self.taxonomies:
            return self.taxonomies[column]
        return self.custom_fields.get(column, "")

    def to_dict(self) -> dict:
        return {
            "row_number": self.row_number,
            "name": self.name,
            "endonym": self.endonym,
            "iso_639_3_code": self.iso_639_3_code,
            "language_family": self.language_family,
            "country_of_origin": self.country_of_origin,
            "speaker_count": self.speaker_count,
            "translations": dict(self.translations),
            "taxonomies": dict(self.taxonomies),
            "custom_fields": dict(self.custom_fields),
        }


@dataclass(frozen=True)
class ParseResult:
    rows: tuple[CandidateRecord, ...]
    errors: tuple[ValidationIssue, ...]
    headers: tuple[str, ...]
    taxonomy_columns: tuple[str, ...] = ()
    custom_columns: tuple[str, ...] = ()
    file_warnings: tuple[str, ...] = ()
    skipped_rows: int = 0          # malformed records, not present in rows

    @property
    def total_rows(self) -> int:
        return len(self.rows)

    @property
    def valid_rows(self) -> int:
        bad = self.error_row_numbers()
        return sum(1 for r in self.rows if r.row_number not in bad)

    @property
    def mappable_columns(self) -> tuple[str, ...]:
        """Columns a user may route to a taxonomy type."""
        return self.taxonomy_columns + self.custom_columns

    def error_row_numbers(self) -> set[int]:
        return {i.row_number for i in self.errors if i.is_error}

    def issues_for(self, row_number: int) -> list[ValidationIssue]:
        return [i for i in self.errors if i.row_number == row_number]

    def importable_rows(self) -> list[CandidateRecord]:
        """Rows without any error-severity issue, in file order."""
        bad = self.error_row_numbers()
        return [r for r in self.rows if r.row_number not in bad]

    def to_dict(self) -> dict:
        return {
            "total_rows": self.total_rows,
            "valid_rows": self.valid_rows,
            "skipped_rows": self.skipped_rows,
            "headers": list(self.headers),
            "taxonomy_columns": list(self.taxonomy_columns),
            "custom_columns": list(self.custom_columns),
            "file_warnings": list(self.file_warnings),
            "rows": [r.to_dict() for r in self.rows],
            "errors": [i.to_dict() for i in self.errors],
        }
