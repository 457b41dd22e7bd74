"""
services.taxonomy_service - Read-only reference data for the importer.

City lookup, active locales, and the city's taxonomy types flattened into
TaxonomyTypeOption objects with names resolved for one locale.  Session
management is the caller's responsibility.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

import config
from db.models import City, Locale, TaxonomyType
from import_engine.errors import CityNotFoundError
from import_engine.taxonomy_mapper import TaxonomyTypeOption, TaxonomyValueOption


def get_city(session: Session, city_slug: str) -> City:
    """Return the city or raise CityNotFoundError."""
    city = session.scalars(select(City).where(City.slug == city_slug)).first()
    if city is None:
        raise CityNotFoundError(city_slug)
    return city


def active_locales(session: Session) -> list[str]:
    stmt = select(Locale.code).where(Locale.is_active.is_(True)).order_by(Locale.code)
    return list(session.scalars(stmt))


def _translated(translations, locale: str, fallback: str) -> str:
    by_locale = {t.locale_code: t.name for t in translations}
    return by_locale.get(locale) or by_locale.get(config.DEFAULT_LOCALE) or fallback


class TaxonomyService:

    @staticmethod
    def types_for_mapping(
        session: Session,
        city_slug: str,
        locale: str = config.DEFAULT_LOCALE,
    ) -> list[TaxonomyTypeOption]:
        """
        All taxonomy types of a city with their values, ordered by
        display order then slug.  Names fall back to the default locale,
        then to the slug.
        """
        city = get_city(session, city_slug)
        stmt = (
            select(TaxonomyType)
            .where(TaxonomyType.city_id == city.id)
            .order_by(TaxonomyType.display_order, TaxonomyType.slug)
        )
        out = []
        for ttype in session.scalars(stmt):
            values = sorted(ttype.values, key=lambda v: (v.display_order, v.slug))
            out.append(TaxonomyTypeOption(
                id=ttype.id,
                slug=ttype.slug,
                name=_translated(ttype.translations, locale, ttype.slug),
                allow_multiple=bool(ttype.allow_multiple),
                is_required=bool(ttype.is_required),
                values=tuple(
                    TaxonomyValueOption(
                        id=v.id,
                        slug=v.slug,
                        name=_translated(v.translations, locale, v.slug),
                    )
                    for v in values
                ),
            ))
        return out

    @staticmethod
    def slugs(types: list[TaxonomyTypeOption]) -> tuple[str, ...]:
        return tuple(t.slug for t in types)
