"""
import_engine.field_map - Column-name ↔ record-attribute mapping.

Core columns land on CandidateRecord attributes.  Taxonomy columns are
detected against the live taxonomy slugs of the city, and ``name_<locale>``
columns against the active locales; both lists come from the caller, so
classification never touches the database.  Everything else is a custom
field and is kept verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

# CSV column name (lower-case)  →  CandidateRecord attribute
CORE_FIELDS: dict[str, str] = {
    "name":              "name",
    "endonym":           "endonym",
    "iso_639_3_code":    "iso_639_3_code",
    "language_family":   "language_family",
    "country_of_origin": "country_of_origin",
    "speaker_count":     "speaker_count",
}

# Short spellings accepted on input; the canonical column wins when both exist
FIELD_ALIASES: dict[str, str] = {
    "iso_code": "iso_639_3_code",
    "family":   "language_family",
    "country":  "country_of_origin",
}

TRANSLATION_PREFIX = "name_"


class ColumnKind(str, Enum):
    CORE = "core"
    TRANSLATION = "translation"
    TAXONOMY = "taxonomy"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ColumnClass:
    kind: ColumnKind
    target: str          # attribute, locale code, taxonomy slug or raw header
    is_alias: bool = False


def classify_column(
    name: str,
    known_taxonomy_slugs: Iterable[str] = (),
    known_locales: Iterable[str] = (),
) -> ColumnClass:
    """Decide where a header's values go.  Matching is case-insensitive."""
    key = name.strip().lower()

    if key in CORE_FIELDS:
        return ColumnClass(ColumnKind.CORE, CORE_FIELDS[key])
    if key in FIELD_ALIASES:
        return ColumnClass(ColumnKind.CORE, FIELD_ALIASES[key], is_alias=True)

    if key in {s.strip().lower() for s in known_taxonomy_slugs}:
        return ColumnClass(ColumnKind.TAXONOMY, key)

    if key.startswith(TRANSLATION_PREFIX):
        locale = key[len(TRANSLATION_PREFIX):]
        if locale in {l.strip().lower() for l in known_locales}:
            return ColumnClass(ColumnKind.TRANSLATION, locale)

    return ColumnClass(ColumnKind.CUSTOM, name)
