"""
api.errors - JSON error handlers for the API blueprint.

Import-engine exceptions that end a whole operation are mapped to status
codes here, so the route functions can simply let them propagate.
"""

import logging

from flask import jsonify
from sqlalchemy.exc import InterfaceError, OperationalError

from api import api_bp
from import_engine.errors import (
    CityNotFoundError, ImportConfigError, MappingError, ParseError,
)

logger = logging.getLogger(__name__)


@api_bp.errorhandler(ParseError)
def api_parse_error(e):
    return jsonify({"error": str(e), "kind": "parse"}), 400


@api_bp.errorhandler(MappingError)
def api_mapping_error(e):
    return jsonify({"error": str(e), "kind": "mapping"}), 400


@api_bp.errorhandler(ImportConfigError)
def api_config_error(e):
    return jsonify({"error": str(e), "kind": "config"}), 400


@api_bp.errorhandler(CityNotFoundError)
def api_city_not_found(e):
    return jsonify({"error": str(e), "kind": "city"}), 404


@api_bp.errorhandler(OperationalError)
@api_bp.errorhandler(InterfaceError)
def api_store_unavailable(e):
    logger.error(f"Data store unavailable: {e}")
    return jsonify({"error": "The database could not be reached; nothing was "
                             "imported after this point. Please retry the import.",
                    "kind": "store"}), 503


@api_bp.errorhandler(404)
def api_not_found(_e):
    return jsonify({"error": "not found"}), 404


@api_bp.errorhandler(400)
def api_bad_request(_e):
    return jsonify({"error": "bad request"}), 400


@api_bp.errorhandler(500)
def api_server_error(_e):
    return jsonify({"error": "internal server error"}), 500
