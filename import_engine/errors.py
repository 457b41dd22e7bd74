"""
import_engine.errors - Exceptions that end an import operation.

Row-level problems never surface here: the parser turns them into
ValidationIssues and the importer into failed ImportResults.  These
classes are for conditions that make the whole file or batch meaningless.
"""


class ImportEngineError(Exception):
    """Base class for every import-engine failure."""


class ParseError(ImportEngineError):
    """The uploaded file cannot be parsed at all (size, encoding, header)."""


class MappingError(ImportEngineError):
    """A taxonomy column mapping refers to an unknown column, type or value."""


class ImportConfigError(ImportEngineError):
    """The import options are unusable (unsupported mode, unknown locale …)."""


class CityNotFoundError(ImportEngineError):
    """The target city does not exist (any more)."""

    def __init__(self, city_slug: str):
        super().__init__(f"City not found: {city_slug}")
        self.city_slug = city_slug
