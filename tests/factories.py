import factory
from factory.alchemy import SQLAlchemyModelFactory
from sqlalchemy.orm import scoped_session, sessionmaker

from db.models import (
    City, Language, LanguageTaxonomy, LanguageTranslation, Locale,
    TaxonomyType, TaxonomyTypeTranslation, TaxonomyValue, TaxonomyValueTranslation,
)

# Bound to the per-test engine in conftest.py
Session = scoped_session(sessionmaker(expire_on_commit=False))


class _Factory(SQLAlchemyModelFactory):

    class Meta:
        abstract = True
        sqlalchemy_session = Session
        sqlalchemy_session_persistence = "commit"


class LocaleFactory(_Factory):
    """Factory for creating Locale rows."""

    class Meta:
        model = Locale

    code = factory.Iterator(["en", "nl", "fr", "de"])
    name = factory.LazyAttribute(lambda o: o.code.upper())
    is_default = False
    is_active = True


class CityFactory(_Factory):
    """Factory for creating City instances."""

    class Meta:
        model = City

    slug = factory.Sequence(lambda n: f"city-{n}")
    name = factory.Sequence(lambda n: f"City {n}")


class TaxonomyTypeFactory(_Factory):
    """Factory for creating TaxonomyType instances with an English name."""

    class Meta:
        model = TaxonomyType

    city_id = factory.LazyFunction(lambda: CityFactory().id)
    slug = factory.Sequence(lambda n: f"type-{n}")
    is_required = False
    allow_multiple = False
    display_order = factory.Sequence(lambda n: n)

    @factory.post_generation
    def name(self, create, extracted, **kwargs):
        """Add a translation when name="..." is passed."""
        if not create or not extracted:
            return
        self.translations.append(TaxonomyTypeTranslation(locale_code="en", name=extracted))
        Session.commit()


class TaxonomyValueFactory(_Factory):
    """Factory for creating TaxonomyValue instances."""

    class Meta:
        model = TaxonomyValue

    taxonomy_type_id = factory.LazyFunction(lambda: TaxonomyTypeFactory().id)
    slug = factory.Sequence(lambda n: f"value-{n}")
    display_order = factory.Sequence(lambda n: n)

    @factory.post_generation
    def name(self, create, extracted, **kwargs):
        """Add a translation when name="..." is passed."""
        if not create or not extracted:
            return
        self.translations.append(TaxonomyValueTranslation(locale_code="en", name=extracted))
        Session.commit()


class LanguageFactory(_Factory):
    """Factory for creating Language instances named in English."""

    class Meta:
        model = Language

    city_id = factory.LazyFunction(lambda: CityFactory().id)
    iso_639_3_code = None
    endonym = None
    extra_json = "{}"

    @factory.post_generation
    def name(self, create, extracted, **kwargs):
        if not create or not extracted:
            return
        self.translations.append(LanguageTranslation(locale_code="en", name=extracted))
        Session.commit()

    @factory.post_generation
    def value_ids(self, create, extracted, **kwargs):
        """Link the language to taxonomy values when value_ids=[...] is passed."""
        if not create or not extracted:
            return
        for value_id in extracted:
            self.taxonomy_links.append(LanguageTaxonomy(taxonomy_value_id=value_id))
        Session.commit()
