"""
api - REST API layer.

Import, preview, template and health routes share one Flask Blueprint
mounted at /api/v1; error handlers live in api.errors.
"""

from flask import Blueprint

api_bp = Blueprint("api", __name__, url_prefix="/api/v1")

# Import route modules so their @api_bp decorators execute
from api import routes_health     # noqa: F401, E402
from api import routes_import     # noqa: F401, E402
from api import errors            # noqa: F401, E402
