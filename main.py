#!/usr/bin/env python3
"""
LangMap - Language map import service
=====================================

Single-command run:  python main.py

See config.py for all environment-variable tunables.
"""

import logging

from flask import Flask, jsonify

import config
from db import init_db, get_session, Locale
from api import api_bp


def create_app(db_url: str | None = None) -> Flask:
    """Flask application factory."""

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = config.SECRET
    app.config["MAX_CONTENT_LENGTH"] = config.IMPORT_MAX_FILE_SIZE + 64 * 1024

    # ── Initialise database ─────────────────────────────────────────
    init_db(db_url or config.DB_URL)

    # ── Register blueprints ─────────────────────────────────────────
    app.register_blueprint(api_bp)

    # ── Error handlers ──────────────────────────────────────────────
    @app.errorhandler(404)
    def _404(e):
        return jsonify({"error": "not found"}), 404

    @app.errorhandler(413)
    def _413(e):
        return jsonify({"error": "upload too large", "kind": "parse"}), 413

    @app.errorhandler(500)
    def _500(e):
        return jsonify({"error": "internal server error"}), 500

    return app


def _seed_if_empty():
    """Register the default locale when the locales table is empty."""
    session = get_session()
    try:
        count = session.query(Locale).count()
        if count > 0:
            print(f"\n  Database has {count} locale(s).")
            return
        session.add(Locale(code=config.DEFAULT_LOCALE, name=config.DEFAULT_LOCALE,
                           is_default=True, is_active=True))
        session.commit()
        print(f"\n  Database empty → registered default locale {config.DEFAULT_LOCALE!r}")
    finally:
        session.close()


def main():
    print("=" * 56)
    print("  LangMap - CSV import service")
    print("=" * 56)

    app = create_app()
    print(f"  Database: {config.DB_URL}")
    _seed_if_empty()

    print(f"\n  http://{config.HOST}:{config.PORT}/api/v1/health")
    print("=" * 56)

    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)


if __name__ == "__main__":
    main()
