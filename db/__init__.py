"""
db - Database layer.

Public API:
    init_db()       → create engine + tables
    get_session()   → new Session
    ORM models      → City, Locale, Language, TaxonomyType, …
"""

from db.engine import init_db, dispose_db, get_engine, get_session  # noqa: F401
from db.models import (                                         # noqa: F401
    Base,
    City,
    Locale,
    Language,
    LanguageTranslation,
    LanguageFamily,
    LanguageFamilyTranslation,
    LanguageTaxonomy,
    TaxonomyType,
    TaxonomyTypeTranslation,
    TaxonomyValue,
    TaxonomyValueTranslation,
)
