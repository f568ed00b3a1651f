"""
OBDB - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.
"""

from __future__ import annotations
import os
from pathlib import Path

from dotenv import load_dotenv


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent

# Existing environment variables win over .env entries
load_dotenv(BASE_DIR / ".env", override=False)

USE_CODES_PATH = Path(os.environ.get(
    "OBDB_USE_CODES",
    BASE_DIR / "import_engine" / "data" / "patent_use_codes.json",
))

# ── Database ───────────────────────────────────────────────────────────
DB_URL = os.environ.get("OBDB_DB", f"sqlite:///{BASE_DIR / 'obdb.sqlite'}")

# ── Server ─────────────────────────────────────────────────────────────
HOST   = os.environ.get("OBDB_HOST", "0.0.0.0")
PORT   = int(os.environ.get("OBDB_PORT", "5000"))
DEBUG  = os.environ.get("OBDB_DEBUG", "0") == "1"
SECRET = os.environ.get("OBDB_SECRET", "obdb-dev-key-change-in-prod")

# ── Logging ────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("OBDB_LOG_LEVEL", "INFO").upper()

# ── Import engine ──────────────────────────────────────────────────────
# Pending upserts are flushed (not committed) every N rows; the in-run key
# cache only holds records staged since the last flush
FLUSH_EVERY = int(os.environ.get("OBDB_FLUSH_EVERY", "5000"))

FIELD_DELIMITER = "~"

PATENT_COLUMN_COUNT      = 10
EXCLUSIVITY_COLUMN_COUNT = 5
PRODUCT_COLUMN_COUNT     = 14

# Member names inside the Orange Book ZIP (matched case-insensitively)
PRODUCTS_FILE    = "products.txt"
PATENT_FILE      = "patent.txt"
EXCLUSIVITY_FILE = "exclusivity.txt"

# ── Pagination ─────────────────────────────────────────────────────────
DEFAULT_PAGE_SIZE = 50
API_MAX_LIMIT     = 1000
# Expiry window cap for /patents/expiring; larger values overflow date arithmetic
API_MAX_MONTHS    = 1200
