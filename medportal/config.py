"""
Centralised configuration constants and environment helpers.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# ── Session cookies ──────────────────────────────────────────────────
ROLE_COOKIE = "role"
TOKEN_COOKIE = "token"
STAFF_LOGIN_PATH = "/login/staff"

# ── ID-card classifier ───────────────────────────────────────────────
ID_CARD_MODEL_ID = os.getenv("ROBOFLOW_MODEL_ID", "egyptian-national-id/2")
ID_CARD_MODEL_BASE_URL = os.getenv("ROBOFLOW_BASE_URL", "https://detect.roboflow.com")
ID_CARD_REQUEST_TIMEOUT = float(os.getenv("ROBOFLOW_TIMEOUT_SECONDS", "30"))

# Both thresholds are inclusive.
ID_CARD_PRIMARY_THRESHOLD = 0.50
ID_CARD_FALLBACK_THRESHOLD = 0.40
ID_CARD_KNOWN_LABEL = "egyption-id"

# ── Batch reports ────────────────────────────────────────────────────
DEFAULT_ID_COLUMN = "national_id"

# ── API server ───────────────────────────────────────────────────────
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
TOKEN_EXPIRY_HOURS = 24
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value
