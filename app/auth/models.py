# ============================================================================
# LEO-CAD Auth — Users Schema & Queries
# ============================================================================

import sqlite3
from typing import Optional, Dict


def init_auth_schema(conn: sqlite3.Connection):
    """Create the users table."""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            username TEXT UNIQUE NOT NULL,
            is_leo INTEGER DEFAULT 0,
            created_at TEXT NOT NULL
        )
    """)
    conn.commit()


def get_user_by_username(conn: sqlite3.Connection, username: str) -> Optional[Dict]:
    row = conn.execute(
        "SELECT * FROM users WHERE username = ? COLLATE NOCASE", (username,)
    ).fetchone()
    return dict(row) if row else None
