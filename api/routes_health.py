"""
api.routes_health - /api/v1/health liveness probe.
"""

from flask import jsonify
from sqlalchemy import text

from api import api_bp
from db import get_session


@api_bp.route("/health")
def health():
    """GET /api/v1/health → {"ok": true} when the database answers."""
    session = get_session()
    try:
        session.execute(text("SELECT 1"))
        return jsonify({"ok": True})
    finally:
        session.close()
