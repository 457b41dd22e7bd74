"""
import_engine.validator - Field rules and value coercers.

Each rule looks at one CandidateRecord and yields zero or more
ValidationIssues.  validate_record() runs every rule for the row, so the
user sees all problems of a row at once, and never raises.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, Iterator, Optional

import config
from import_engine.records import CandidateRecord, Severity, ValidationIssue

logger = logging.getLogger(__name__)

ISO_639_3_RE = re.compile(r"^[a-z]{3}$")
_WS_RE = re.compile(r"\s+")
_THOUSANDS_RE = re.compile(r"[\s,_']")

Rule = Callable[[CandidateRecord], Iterable[ValidationIssue]]


# ── Coercers ──────────────────────────────────────────────────────────

def normalize_text(value: Optional[str]) -> Optional[str]:
    """Trim and collapse inner whitespace.  Empty → None."""
    if value is None:
        return None
    value = _WS_RE.sub(" ", value).strip()
    return value or None


def normalize_iso_code(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


def coerce_speaker_count(raw: Optional[str]) -> Optional[int]:
    """
    Parse a speaker count such as '12 000' or '1,500'.
    Returns None when absent; raises ValueError when not a non-negative integer.
    """
    if raw is None or not raw.strip():
        return None
    cleaned = _THOUSANDS_RE.sub("", raw.strip())
    if not re.fullmatch(r"[+-]?\d+", cleaned):
        raise ValueError(f"not a whole number: {raw!r}")
    count = int(cleaned)
    if count < 0:
        raise ValueError(f"must not be negative: {raw!r}")
    return count


# ── Rules ─────────────────────────────────────────────────────────────

def _error(row: CandidateRecord, field: str, message: str) -> ValidationIssue:
    return ValidationIssue(row.row_number, field, message, Severity.ERROR)


def _warning(row: CandidateRecord, field: str, message: str) -> ValidationIssue:
    return ValidationIssue(row.row_number, field, message, Severity.WARNING)


def rule_name_required(row: CandidateRecord) -> Iterator[ValidationIssue]:
    if not row.name or not row.name.strip():
        yield _error(row, "name", "Language name is required")


def rule_name_length(row: CandidateRecord) -> Iterator[ValidationIssue]:
    limit = config.MAX_NAME_LENGTH
    if row.name and len(row.name) > limit:
        yield _error(row, "name",
                     f"Language name exceeds maximum length ({limit} characters)")
    if row.endonym and len(row.endonym) > limit:
        yield _error(row, "endonym",
                     f"Endonym exceeds maximum length ({limit} characters)")
    for locale, name in row.translations.items():
        if len(name) > limit:
            yield _error(row, f"name_{locale}",
                         f"Translated name exceeds maximum length ({limit} characters)")


def rule_iso_code_format(row: CandidateRecord) -> Iterator[ValidationIssue]:
    code = normalize_iso_code(row.iso_639_3_code)
    if code is not None and not ISO_639_3_RE.match(code):
        yield _error(row, "iso_639_3_code",
                     f"ISO 639-3 code must be exactly 3 letters, got {row.iso_639_3_code!r}")


def rule_speaker_count(row: CandidateRecord) -> Iterator[ValidationIssue]:
    try:
        coerce_speaker_count(row.speaker_count)
    except ValueError as exc:
        yield _error(row, "speaker_count",
                     f"Speaker count must be a non-negative integer ({exc})")


def rule_consistency(row: CandidateRecord) -> Iterator[ValidationIssue]:
    """Suspicious but valid combinations; never blocks the row."""
    name = (row.name or "").strip()
    if name and not row.endonym:
        yield _warning(row, "endonym", "Endonym is recommended but not required")
    if len(name) == 1:
        yield _warning(row, "name", f"Language name {name!r} is unusually short")
    code = normalize_iso_code(row.iso_639_3_code)
    if code and name.lower() == code:
        yield _warning(row, "name",
                       "Language name is identical to its ISO code; "
                       "check the columns are not swapped")


RULES: tuple[Rule, ...] = (
    rule_name_required,
    rule_name_length,
    rule_iso_code_format,
    rule_speaker_count,
    rule_consistency,
)


def validate_record(
    row: CandidateRecord,
    rules: Iterable[Rule] = RULES,
) -> list[ValidationIssue]:
    """Run every rule against the row and collect all issues."""
    issues: list[ValidationIssue] = []
    for rule in rules:
        try:
            issues.extend(rule(row))
        except Exception as exc:
            logger.exception(f"Rule {rule.__name__} crashed on row {row.row_number}")
            issues.append(_error(row, "row", f"Validation failed: {exc}"))
    return issues


def has_errors(issues: Iterable[ValidationIssue]) -> bool:
    return any(i.is_error for i in issues)
