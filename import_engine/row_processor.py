"""
import_engine.row_processor - Write one CandidateRecord to the database.

Single-responsibility: given a validated row, create (or update) the
language, its translations and its taxonomy links inside the caller's
session, or raise RowError.  Committing and rolling back is the
importer's job, so one row is always one transaction.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.models import (
    Language, LanguageFamily, LanguageFamilyTranslation, LanguageTaxonomy,
    LanguageTranslation,
)
from import_engine.errors import ImportConfigError
from import_engine.records import CandidateRecord
from import_engine.taxonomy_mapper import TaxonomyMapping, TaxonomyTypeOption
from import_engine.validator import (
    coerce_speaker_count, normalize_iso_code, normalize_text, validate_record,
)

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^\w]+", re.UNICODE)


class RowError(Exception):
    """Raised when a row cannot be imported."""
    pass


def slugify(text: str) -> str:
    return _SLUG_RE.sub("-", text.strip().lower()).strip("-_")


class RowProcessor:
    """
    Holds the per-run lookups (locales, taxonomy ownership) so each row
    only queries what can change between rows: languages and families.
    """

    def __init__(
        self,
        session: Session,
        *,
        city_id: str,
        locale: str,
        locales: Iterable[str],
        taxonomy_types: Iterable[TaxonomyTypeOption],
        mappings: Iterable[TaxonomyMapping] = (),
        update_existing: bool = False,
    ):
        self._session = session
        self._city_id = city_id
        self._locale = locale
        self._locales = set(locales)
        self._update_existing = update_existing

        self._types: dict[str, TaxonomyTypeOption] = {t.id: t for t in taxonomy_types}
        self._value_type: dict[str, str] = {
            v.id: t.id for t in self._types.values() for v in t.values
        }

        self._mappings = list(mappings)
        for m in self._mappings:
            if m.taxonomy_type_id not in self._types:
                raise ImportConfigError(
                    f"Column {m.csv_column!r} is mapped to taxonomy type "
                    f"{m.taxonomy_type_id!r}, which does not belong to this city"
                )
        self._mapped_columns = {m.csv_column for m in self._mappings}

    def process(self, row: CandidateRecord) -> tuple[Language, str]:
        """
        Validate one row and stage its writes.  Returns (language, action)
        where action is "created" or "updated".  Raises RowError.
        """
        errors = [i for i in validate_record(row) if i.is_error]
        if errors:
            raise RowError("; ".join(f"{i.field}: {i.message}" for i in errors))

        name = normalize_text(row.name) or ""
        iso = normalize_iso_code(row.iso_639_3_code)
        links = self._resolve_taxonomy_links(row)

        existing = self._find_existing(name, iso)
        if existing is not None and not self._update_existing:
            raise RowError(existing[1])

        if existing is None:
            language = Language(city_id=self._city_id)
            self._session.add(language)
            action = "created"
        else:
            language = existing[0]
            action = "updated"

        self._apply_fields(language, row, iso)
        self._apply_translations(language, name, row.translations)
        self._apply_taxonomies(language, links)

        self._session.flush()
        return language, action

    # ── Private helpers ────────────────────────────────────────────────

    def _find_existing(self, name: str, iso: Optional[str]) -> Optional[tuple[Language, str]]:
        """Return (language, collision message) for a natural-key match."""
        by_iso = None
        if iso:
            by_iso = self._session.scalars(
                select(Language).where(
                    Language.city_id == self._city_id,
                    Language.iso_639_3_code == iso,
                )
            ).first()

        by_name = self._session.scalars(
            select(Language)
            .join(LanguageTranslation)
            .where(
                Language.city_id == self._city_id,
                LanguageTranslation.locale_code == self._locale,
                func.lower(LanguageTranslation.name) == name.lower(),
            )
        ).first()

        if by_iso is not None and by_name is not None and by_iso.id != by_name.id:
            raise RowError(
                f'ISO code "{iso}" and name "{name}" match two different existing languages'
            )
        if by_iso is not None:
            return by_iso, f'A language with ISO 639-3 code "{iso}" already exists'
        if by_name is not None:
            return by_name, f'Language "{name}" already exists'
        return None

    def _apply_fields(self, language: Language, row: CandidateRecord, iso: Optional[str]) -> None:
        """Set the columns the row provides; absent values leave existing data alone."""
        if iso:
            language.iso_639_3_code = iso
        if row.endonym:
            language.endonym = normalize_text(row.endonym)
        if row.country_of_origin:
            language.country_of_origin = row.country_of_origin
        if row.language_family:
            language.language_family_id = self._resolve_family(row.language_family).id

        try:
            count = coerce_speaker_count(row.speaker_count)
        except ValueError as exc:
            raise RowError(f"speaker_count: {exc}") from exc
        if count is not None:
            language.speaker_count = count

        # Unrouted taxonomy columns are kept as free text next to custom fields
        extra: dict[str, str] = {}
        if language.extra_json:
            try:
                extra = json.loads(language.extra_json)
            except (json.JSONDecodeError, TypeError):
                extra = {}
        for column, value in {**row.custom_fields, **row.taxonomies}.items():
            if column not in self._mapped_columns:
                extra[column] = value
        language.extra_json = json.dumps(extra, ensure_ascii=False) if extra else "{}"

    def _apply_translations(self, language: Language, name: str, others: dict[str, str]) -> None:
        names = {self._locale: name}
        for locale, value in others.items():
            if locale != self._locale and locale in self._locales and value:
                names[locale] = value

        current = {t.locale_code: t for t in language.translations}
        for locale, value in names.items():
            if locale in current:
                current[locale].name = value
            else:
                language.translations.append(
                    LanguageTranslation(locale_code=locale, name=value)
                )

    def _resolve_family(self, text: str) -> LanguageFamily:
        """Find a family by slug or translated name; create it if unknown."""
        slug = slugify(text)
        if not slug:
            raise RowError(f"Language family {text!r} has no usable characters")

        family = self._session.scalars(
            select(LanguageFamily).where(LanguageFamily.slug == slug)
        ).first()
        if family is None:
            family = self._session.scalars(
                select(LanguageFamily)
                .join(LanguageFamilyTranslation)
                .where(func.lower(LanguageFamilyTranslation.name) == text.lower())
            ).first()
        if family is not None:
            return family

        family = LanguageFamily(slug=slug)
        family.translations.append(
            LanguageFamilyTranslation(locale_code=self._locale, name=text)
        )
        self._session.add(family)
        self._session.flush()
        logger.info(f"Created language family {slug!r}")
        return family

    def _resolve_taxonomy_links(self, row: CandidateRecord) -> dict[str, list[str]]:
        """
        Map the row's raw values to taxonomy value ids, grouped by type.
        Values without a mapping are skipped; ownership and single-value
        types are enforced here.
        """
        chosen: dict[str, list[str]] = {}
        for m in self._mappings:
            raw = row.column_value(m.csv_column).strip()
            if not raw:
                continue
            value_id = m.value_mapping.get(raw)
            if not value_id:
                logger.debug(f"Row {row.row_number}: no mapping for {raw!r} in {m.csv_column!r}")
                continue
            if self._value_type.get(value_id) != m.taxonomy_type_id:
                raise RowError(
                    f"Taxonomy value {value_id!r} mapped from column {m.csv_column!r} "
                    f"does not belong to the selected taxonomy type"
                )
            ids = chosen.setdefault(m.taxonomy_type_id, [])
            if value_id not in ids:
                ids.append(value_id)

        for type_id, ids in chosen.items():
            ttype = self._types[type_id]
            if len(ids) > 1 and not ttype.allow_multiple:
                raise RowError(
                    f'Taxonomy type "{ttype.slug}" allows only one value, got {len(ids)}'
                )
        return chosen

    def _apply_taxonomies(self, language: Language, chosen: dict[str, list[str]]) -> None:
        wanted = {vid for ids in chosen.values() for vid in ids}

        # Only links of types this row resolved a value for are replaced
        language.taxonomy_links = [
            link for link in language.taxonomy_links
            if link.taxonomy_value_id in wanted
            or self._value_type.get(link.taxonomy_value_id) not in chosen
        ]
        present = {link.taxonomy_value_id for link in language.taxonomy_links}
        for value_id in sorted(wanted - present):
            language.taxonomy_links.append(LanguageTaxonomy(taxonomy_value_id=value_id))
