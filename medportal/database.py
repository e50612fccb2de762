"""
Database engine initialisation for the staff account store.
"""

import sys

from sqlalchemy import create_engine, text

from medportal.config import get_env


def init_engine():
    """Create a SQLAlchemy engine from DB_URI and verify the connection."""
    db_uri = get_env("DB_URI")
    engine = create_engine(db_uri, echo=False, future=True)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print("ERROR: could not connect to DB:", e, file=sys.stderr)
        sys.exit(1)
    print("[init] Connected to DB.")
    return engine


def ping(engine) -> bool:
    """Return True if a trivial query succeeds on *engine*."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print(f"[WARN] Database ping failed: {e}", file=sys.stderr)
        return False
    return True
