"""
import_engine.csv_parser - Turn an uploaded CSV into a ParseResult.

Responsibilities:
  • size cap before decoding, UTF-8 decoding with BOM removal
  • splitting into records without breaking quoted commas/newlines
  • one malformed record → one row error, parsing continues
  • header checks (empty, duplicates, required columns)
  • projecting each record onto a CandidateRecord and validating it
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from typing import Iterator, Optional

import config
from import_engine.errors import ParseError
from import_engine.field_map import ColumnClass, ColumnKind, classify_column
from import_engine.records import CandidateRecord, ParseResult, Severity, ValidationIssue
from import_engine.validator import normalize_iso_code, normalize_text, validate_record

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseOptions:
    max_file_size: int = config.IMPORT_MAX_FILE_SIZE
    max_rows: int = config.IMPORT_MAX_ROWS
    required_columns: tuple[str, ...] = ("name",)
    taxonomy_slugs: tuple[str, ...] = ()
    locales: tuple[str, ...] = ()


@dataclass(frozen=True)
class _Record:
    """One logical CSV record: its cells, or the reason it is malformed."""
    cells: Optional[list[str]]
    problem: Optional[str] = None


def parse_csv(content: str | bytes, options: ParseOptions | None = None) -> ParseResult:
    """
    Parse raw CSV content into candidate records plus diagnostics.

    Raises ParseError for file-level problems; row-level problems are
    reported in ParseResult.errors.
    """
    options = options or ParseOptions()
    text = _decode(content, options.max_file_size)

    records = _iter_records(text)
    header = next(records, None)
    if header is None:
        raise ParseError("CSV file is empty")
    if header.cells is None:
        raise ParseError(f"CSV header row is malformed: {header.problem}")

    headers = _check_headers(header.cells, options.required_columns)
    classes = [classify_column(h, options.taxonomy_slugs, options.locales) for h in headers]

    rows: list[CandidateRecord] = []
    issues: list[ValidationIssue] = []
    file_warnings: list[str] = []
    skipped = 0

    row_number = 1
    for record in records:
        if row_number - 1 >= options.max_rows:
            # The generator is lazy: nothing past this point gets parsed
            msg = (f"File has more than {options.max_rows} data rows; "
                   f"only the first {options.max_rows} were read")
            logger.warning(msg)
            file_warnings.append(msg)
            break
        row_number += 1

        if record.cells is None:
            skipped += 1
            issues.append(ValidationIssue(
                row_number, "row", f"Malformed CSV row: {record.problem}", Severity.ERROR,
            ))
            continue

        row, extra_issues = _build_record(record.cells, headers, classes, row_number)
        rows.append(row)
        issues.extend(extra_issues)
        issues.extend(validate_record(row))

    taxonomy_columns = tuple(h for h, c in zip(headers, classes) if c.kind is ColumnKind.TAXONOMY)
    custom_columns = tuple(h for h, c in zip(headers, classes) if c.kind is ColumnKind.CUSTOM)
    result = ParseResult(
        rows=tuple(rows),
        errors=tuple(issues),
        headers=tuple(headers),
        taxonomy_columns=taxonomy_columns,
        custom_columns=custom_columns,
        file_warnings=tuple(file_warnings),
        skipped_rows=skipped,
    )
    logger.info(f"Parsed CSV: {result.total_rows} rows, {result.valid_rows} valid, "
                f"{skipped} malformed, {len(issues)} issues")
    return result


# ── Decoding ──────────────────────────────────────────────────────────

def _decode(raw: str | bytes, max_size: int) -> str:
    size = len(raw) if isinstance(raw, bytes) else len(raw.encode("utf-8"))
    if size > max_size:
        raise ParseError(
            f"File size ({size / 1024 / 1024:.2f}MB) exceeds maximum "
            f"allowed size ({max_size / 1024 / 1024:.2f}MB)"
        )

    if isinstance(raw, bytes):
        # Strip UTF-8 BOM
        if raw.startswith(b"\xef\xbb\xbf"):
            raw = raw[3:]
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"File is not valid UTF-8 (byte {exc.start})") from exc
    else:
        text = raw[1:] if raw.startswith("\ufeff") else raw

    return text.replace("\r\n", "\n").replace("\r", "\n")


# ── Record splitting ──────────────────────────────────────────────────

def _iter_records(text: str) -> Iterator[_Record]:
    """
    Yield non-blank logical records.

    A record continues onto the next physical line while a quoted field is
    open.  When the joined lines do not form exactly one record (a quote
    that never closes, or a stray quote inside an unquoted value), the
    first physical line is read on its own and scanning resumes after it.
    """
    lines = text.split("\n")
    i = 0
    while i < len(lines):
        if not lines[i].strip():
            i += 1
            continue

        end = i
        open_quote = _quote_parity(lines[i])
        while open_quote and end + 1 < len(lines):
            end += 1
            open_quote ^= _quote_parity(lines[end])

        if not open_quote:
            record = _split_record("\n".join(lines[i:end + 1]))
            if record.cells is not None or end == i:
                yield record
                i = end + 1
                continue

        yield _split_record(lines[i])
        i += 1


def _quote_parity(line: str) -> bool:
    return line.count('"') % 2 == 1


def _split_record(chunk: str) -> _Record:
    try:
        parsed = list(csv.reader(io.StringIO(chunk, newline=""), strict=True))
    except csv.Error as exc:
        return _Record(None, str(exc))
    if len(parsed) != 1:
        return _Record(None, "record spans several rows")
    return _Record(parsed[0])


# ── Header handling ───────────────────────────────────────────────────

def _check_headers(cells: list[str], required: tuple[str, ...]) -> list[str]:
    headers = [c.strip() for c in cells]
    while headers and not headers[-1]:          # trailing commas from spreadsheets
        headers.pop()
    if not headers:
        raise ParseError("CSV file has no columns")

    for pos, h in enumerate(headers, start=1):
        if not h:
            raise ParseError(f"Header column {pos} has no name")

    seen: set[str] = set()
    dupes: list[str] = []
    for h in headers:
        key = h.lower()
        if key in seen:
            dupes.append(h)
        seen.add(key)
    if dupes:
        raise ParseError(f"CSV file contains duplicate column headers: {', '.join(dupes)}")

    missing = [c for c in required if c.strip().lower() not in seen]
    if missing:
        raise ParseError(f"Missing required columns: {', '.join(missing)}")
    return headers


# ── Row projection ────────────────────────────────────────────────────

def _build_record(
    cells: list[str],
    headers: list[str],
    classes: list[ColumnClass],
    row_number: int,
) -> tuple[CandidateRecord, list[ValidationIssue]]:
    issues: list[ValidationIssue] = []
    overflow = [c for c in cells[len(headers):] if c.strip()]
    if overflow:
        issues.append(ValidationIssue(
            row_number, "row",
            f"Row has {len(cells)} values but the header has {len(headers)} columns; "
            f"extra values were ignored",
            Severity.WARNING,
        ))

    core: dict[str, str] = {}
    translations: dict[str, str] = {}
    taxonomies: dict[str, str] = {}
    custom: dict[str, str] = {}

    for idx, (header, cls) in enumerate(zip(headers, classes)):
        value = cells[idx].strip() if idx < len(cells) else ""
        if not value:
            continue
        if cls.kind is ColumnKind.CORE:
            if not cls.is_alias or not core.get(cls.target):
                core[cls.target] = value
        elif cls.kind is ColumnKind.TRANSLATION:
            translations[cls.target] = normalize_text(value) or ""
        elif cls.kind is ColumnKind.TAXONOMY:
            taxonomies[header] = value
        else:
            custom[header] = value

    record = CandidateRecord(
        row_number=row_number,
        name=normalize_text(core.get("name")) or "",
        endonym=normalize_text(core.get("endonym")),
        iso_639_3_code=normalize_iso_code(core.get("iso_639_3_code")),
        language_family=normalize_text(core.get("language_family")),
        country_of_origin=normalize_text(core.get("country_of_origin")),
        speaker_count=core.get("speaker_count"),
        translations=translations,
        taxonomies=taxonomies,
        custom_fields=custom,
    )
    return record, issues
