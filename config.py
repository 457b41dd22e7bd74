"""
LangMap - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.  A .env file next to this
module is loaded first, so local overrides don't need exporting.
"""

from __future__ import annotations
import os
from pathlib import Path

import dotenv


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent
dotenv.load_dotenv(BASE_DIR / ".env")

# ── Database ───────────────────────────────────────────────────────────
DB_URL = os.environ.get("LANGMAP_DB", f"sqlite:///{BASE_DIR / 'langmap.sqlite'}")

# ── Server ─────────────────────────────────────────────────────────────
HOST   = os.environ.get("LANGMAP_HOST", "0.0.0.0")
PORT   = int(os.environ.get("LANGMAP_PORT", "5000"))
DEBUG  = os.environ.get("LANGMAP_DEBUG", "0") == "1"
SECRET = os.environ.get("LANGMAP_SECRET", "langmap-dev-key-change-in-prod")

# ── Logging ────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("LANGMAP_LOG_LEVEL", "INFO").upper()

# ── CSV import ─────────────────────────────────────────────────────────
IMPORT_MAX_FILE_SIZE = int(os.environ.get("LANGMAP_IMPORT_MAX_FILE_SIZE", 5 * 1024 * 1024))
IMPORT_MAX_ROWS      = int(os.environ.get("LANGMAP_IMPORT_MAX_ROWS", "10000"))
DEFAULT_LOCALE       = os.environ.get("LANGMAP_DEFAULT_LOCALE", "en")
MAX_NAME_LENGTH      = 200
