# ============================================================================
# LEO-CAD — Database Connection
# ============================================================================

import sqlite3

from app.config import CONFIG


def get_conn() -> sqlite3.Connection:
    """Open a connection to the configured sqlite file (row_factory set)."""
    conn = sqlite3.connect(CONFIG["db_path"], timeout=30, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn
