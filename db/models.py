"""
db.models - SQLAlchemy ORM declarations.

Tables
------
cities / locales          - tenant and locale reference rows.
languages                 - one row per language in a city.  Names live in
                            language_translations (one per locale); the
                            endonym is the same in every locale.
language_families         - shared family catalogue, names translated.
taxonomy_types / _values  - city-scoped controlled vocabularies.  Read-only
                            for the importer.
language_taxonomies       - junction between languages and taxonomy values.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, Text, ForeignKey, Index,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class City(Base):
    __tablename__ = "cities"

    id   = Column(String(36), primary_key=True, default=_uuid)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False, default="")

    created_at = Column(DateTime, default=_now)


class Locale(Base):
    __tablename__ = "locales"

    code       = Column(String(5), primary_key=True)           # 'en', 'nl', ...
    name       = Column(String(100), nullable=False, default="")
    is_default = Column(Boolean, nullable=False, default=False)
    is_active  = Column(Boolean, nullable=False, default=True)


# ── Language families ─────────────────────────────────────────────────

class LanguageFamily(Base):
    __tablename__ = "language_families"

    id   = Column(String(36), primary_key=True, default=_uuid)
    slug = Column(String(200), unique=True, nullable=False, index=True)

    created_at = Column(DateTime, default=_now)

    translations = relationship(
        "LanguageFamilyTranslation", back_populates="family",
        cascade="all, delete-orphan", lazy="selectin",
    )


class LanguageFamilyTranslation(Base):
    __tablename__ = "language_family_translations"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    family_id   = Column(String(36),
                         ForeignKey("language_families.id", ondelete="CASCADE"),
                         nullable=False, index=True)
    locale_code = Column(String(5), ForeignKey("locales.code"), nullable=False)
    name        = Column(String(200), nullable=False)

    family = relationship("LanguageFamily", back_populates="translations")

    __table_args__ = (
        UniqueConstraint("family_id", "locale_code"),
    )


# ── Languages ─────────────────────────────────────────────────────────

class Language(Base):
    __tablename__ = "languages"

    id      = Column(String(36), primary_key=True, default=_uuid)
    city_id = Column(String(36), ForeignKey("cities.id", ondelete="CASCADE"),
                     nullable=False, index=True)

    iso_639_3_code     = Column(String(3), index=True)
    endonym            = Column(String(200))
    language_family_id = Column(String(36), ForeignKey("language_families.id"),
                                index=True)
    country_of_origin  = Column(String(200))
    speaker_count      = Column(Integer)

    # Columns with no home in the schema, kept verbatim from the import
    extra_json = Column(Text, default="{}")

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    translations = relationship(
        "LanguageTranslation", back_populates="language",
        cascade="all, delete-orphan", lazy="selectin",
    )
    taxonomy_links = relationship(
        "LanguageTaxonomy", back_populates="language",
        cascade="all, delete-orphan", lazy="selectin",
    )
    family = relationship("LanguageFamily")

    __table_args__ = (
        UniqueConstraint("city_id", "iso_639_3_code", name="uq_language_city_iso"),
    )

    def name_in(self, locale: str) -> str | None:
        for t in self.translations:
            if t.locale_code == locale:
                return t.name
        return None

    # ── Serialisation ──────────────────────────────────────────────────
    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "city_id": self.city_id,
            "iso_639_3_code": self.iso_639_3_code or "",
            "endonym": self.endonym or "",
            "language_family_id": self.language_family_id,
            "country_of_origin": self.country_of_origin or "",
            "speaker_count": self.speaker_count,
            "names": {t.locale_code: t.name for t in self.translations},
            "taxonomy_value_ids": sorted(l.taxonomy_value_id for l in self.taxonomy_links),
        }
        try:
            d["extra"] = json.loads(self.extra_json or "{}")
        except json.JSONDecodeError:
            d["extra"] = {}
        return d


class LanguageTranslation(Base):
    __tablename__ = "language_translations"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    language_id = Column(String(36),
                         ForeignKey("languages.id", ondelete="CASCADE"),
                         nullable=False, index=True)
    locale_code = Column(String(5), ForeignKey("locales.code"), nullable=False)
    name        = Column(String(200), nullable=False)

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    language = relationship("Language", back_populates="translations")

    __table_args__ = (
        UniqueConstraint("language_id", "locale_code"),
        Index("ix_language_translation_name", "locale_code", "name"),
    )


# ── Taxonomies ────────────────────────────────────────────────────────

class TaxonomyType(Base):
    __tablename__ = "taxonomy_types"

    id      = Column(String(36), primary_key=True, default=_uuid)
    city_id = Column(String(36), ForeignKey("cities.id", ondelete="CASCADE"),
                     nullable=False, index=True)
    slug           = Column(String(100), nullable=False)
    is_required    = Column(Boolean, nullable=False, default=False)
    allow_multiple = Column(Boolean, nullable=False, default=False)
    display_order  = Column(Integer, nullable=False, default=0)

    translations = relationship(
        "TaxonomyTypeTranslation", cascade="all, delete-orphan", lazy="selectin",
    )
    values = relationship(
        "TaxonomyValue", back_populates="taxonomy_type",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="TaxonomyValue.display_order",
    )

    __table_args__ = (
        UniqueConstraint("city_id", "slug"),
    )


class TaxonomyTypeTranslation(Base):
    __tablename__ = "taxonomy_type_translations"

    id               = Column(Integer, primary_key=True, autoincrement=True)
    taxonomy_type_id = Column(String(36),
                              ForeignKey("taxonomy_types.id", ondelete="CASCADE"),
                              nullable=False, index=True)
    locale_code      = Column(String(5), ForeignKey("locales.code"), nullable=False)
    name             = Column(String(200), nullable=False)

    __table_args__ = (
        UniqueConstraint("taxonomy_type_id", "locale_code"),
    )


class TaxonomyValue(Base):
    __tablename__ = "taxonomy_values"

    id               = Column(String(36), primary_key=True, default=_uuid)
    taxonomy_type_id = Column(String(36),
                              ForeignKey("taxonomy_types.id", ondelete="CASCADE"),
                              nullable=False, index=True)
    slug          = Column(String(100), nullable=False)
    display_order = Column(Integer, nullable=False, default=0)

    taxonomy_type = relationship("TaxonomyType", back_populates="values")
    translations = relationship(
        "TaxonomyValueTranslation", cascade="all, delete-orphan", lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("taxonomy_type_id", "slug"),
    )


class TaxonomyValueTranslation(Base):
    __tablename__ = "taxonomy_value_translations"

    id                = Column(Integer, primary_key=True, autoincrement=True)
    taxonomy_value_id = Column(String(36),
                               ForeignKey("taxonomy_values.id", ondelete="CASCADE"),
                               nullable=False, index=True)
    locale_code       = Column(String(5), ForeignKey("locales.code"), nullable=False)
    name              = Column(String(200), nullable=False)

    __table_args__ = (
        UniqueConstraint("taxonomy_value_id", "locale_code"),
    )


class LanguageTaxonomy(Base):
    __tablename__ = "language_taxonomies"

    id                = Column(Integer, primary_key=True, autoincrement=True)
    language_id       = Column(String(36),
                               ForeignKey("languages.id", ondelete="CASCADE"),
                               nullable=False, index=True)
    taxonomy_value_id = Column(String(36),
                               ForeignKey("taxonomy_values.id", ondelete="CASCADE"),
                               nullable=False, index=True)

    language = relationship("Language", back_populates="taxonomy_links")

    __table_args__ = (
        UniqueConstraint("language_id", "taxonomy_value_id"),
    )
