"""
import_engine - CSV import pipeline.

Public API:
    parse_csv(content, ParseOptions)        → ParseResult
    TaxonomyMapper(columns, rows, types)    → to_mappings()
    run_import(rows, ImportOptions)         → ImportSummary
    generate_template(slugs)                → CSV text
"""

from import_engine.csv_parser import ParseOptions, parse_csv              # noqa: F401
from import_engine.errors import (                                        # noqa: F401
    CityNotFoundError,
    ImportConfigError,
    ImportEngineError,
    MappingError,
    ParseError,
)
from import_engine.field_map import ColumnKind, classify_column           # noqa: F401
from import_engine.importer import ImportOptions, run_import              # noqa: F401
from import_engine.records import (                                       # noqa: F401
    CandidateRecord,
    ParseResult,
    Severity,
    ValidationIssue,
)
from import_engine.report import ImportResult, ImportSummary              # noqa: F401
from import_engine.taxonomy_mapper import (                               # noqa: F401
    TaxonomyMapper,
    TaxonomyMapping,
    TaxonomyTypeOption,
    TaxonomyValueOption,
)
from import_engine.template import generate_template, template_filename   # noqa: F401
from import_engine.validator import validate_record                       # noqa: F401
