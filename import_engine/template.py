"""
import_engine.template - Blank CSV for users to fill in.

The header is always something parse_csv() accepts: core columns first,
then one column per taxonomy slug, skipping slugs that would duplicate a
column already present.
"""

from __future__ import annotations

import csv
import io
from typing import Iterable

TEMPLATE_COLUMNS: tuple[str, ...] = (
    "name",
    "endonym",
    "iso_639_3_code",
    "language_family",
    "country_of_origin",
    "speaker_count",
)

EXAMPLE_ROW: dict[str, str] = {
    "name": "Spanish",
    "endonym": "Español",
    "iso_639_3_code": "spa",
    "language_family": "Indo-European",
    "country_of_origin": "Spain",
    "speaker_count": "",
}


def template_columns(taxonomy_slugs: Iterable[str] = ()) -> list[str]:
    columns = list(TEMPLATE_COLUMNS)
    seen = {c.lower() for c in columns}
    for slug in taxonomy_slugs:
        slug = slug.strip()
        if slug and slug.lower() not in seen:
            columns.append(slug)
            seen.add(slug.lower())
    return columns


def generate_template(taxonomy_slugs: Iterable[str] = (), *, include_example: bool = False) -> str:
    """Return CSV text: the header row, plus one example row on request."""
    columns = template_columns(taxonomy_slugs)
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(columns)
    if include_example:
        writer.writerow([EXAMPLE_ROW.get(c, "") for c in columns])
    return buf.getvalue()


def template_filename(city_slug: str) -> str:
    return f"language-import-template-{city_slug}.csv"
