"""
services - Business-logic layer sitting between API and DB.
"""

from services.taxonomy_service import (      # noqa: F401
    TaxonomyService,
    active_locales,
    get_city,
)
