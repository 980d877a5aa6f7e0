# ============================================================================
# LEO-CAD Officer Chat — Database Models & Schema
# ============================================================================
# officer_chat:   one row per message, linked to exactly one creator
# chat_creators:  one row per unit (officer XOR combined unit), shared by
#                 every message that unit posts
# ============================================================================

import sqlite3
import uuid
import datetime
from typing import Optional, List, Dict, Tuple

from app.leo.models import LeoUnit, load_unit

OFFICER_CHAT_HISTORY_LIMIT = 100

# Creator column per unit kind
CREATOR_COLUMNS = {
    "officer": "officer_id",
    "combined": "combined_leo_id",
}


# ============================================================================
# SCHEMA INITIALIZATION
# ============================================================================

def init_officer_chat_schema(conn: sqlite3.Connection):
    """Initialize officer chat tables."""
    c = conn.cursor()

    # UNIQUE on each unit column: at most one creator per unit.
    # SQLite allows many NULLs under UNIQUE, so the unused column is fine.
    c.execute("""
        CREATE TABLE IF NOT EXISTS chat_creators (
            id TEXT PRIMARY KEY,
            officer_id TEXT UNIQUE,
            combined_leo_id TEXT UNIQUE,
            created_at TEXT NOT NULL,
            CHECK ((officer_id IS NULL) <> (combined_leo_id IS NULL))
        )
    """)

    c.execute("""
        CREATE TABLE IF NOT EXISTS officer_chat (
            id TEXT PRIMARY KEY,
            creator_id TEXT NOT NULL,
            message TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY (creator_id) REFERENCES chat_creators(id)
        )
    """)

    c.execute("CREATE INDEX IF NOT EXISTS idx_officer_chat_created ON officer_chat(created_at)")
    c.execute("CREATE INDEX IF NOT EXISTS idx_officer_chat_creator ON officer_chat(creator_id)")

    conn.commit()


def _ts() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="microseconds")


def _new_id() -> str:
    return uuid.uuid4().hex


# ============================================================================
# CREATORS
# ============================================================================

def find_creator(conn: sqlite3.Connection, unit: LeoUnit) -> Optional[Dict]:
    """Find the creator row for a unit."""
    column = CREATOR_COLUMNS[unit.kind]
    row = conn.execute(
        f"SELECT * FROM chat_creators WHERE {column} = ?", (unit.id,)
    ).fetchone()
    return dict(row) if row else None


def get_or_create_creator(conn: sqlite3.Connection, unit: LeoUnit) -> Tuple[Dict, bool]:
    """
    Get the creator row for a unit, creating it on first use.

    INSERT OR IGNORE against the UNIQUE unit column makes this atomic:
    concurrent first messages from the same unit end up sharing one row.

    Returns (creator, created).
    """
    column = CREATOR_COLUMNS[unit.kind]
    c = conn.cursor()
    c.execute(
        f"INSERT OR IGNORE INTO chat_creators (id, {column}, created_at) VALUES (?, ?, ?)",
        (_new_id(), unit.id, _ts())
    )
    conn.commit()
    created = c.rowcount == 1
    return find_creator(conn, unit), created


def resolve_creator_unit(conn: sqlite3.Connection, creator: Optional[Dict]) -> Optional[LeoUnit]:
    """Resolve a creator row (or a joined message row) to its unit, if it still exists."""
    if not creator:
        return None
    if creator.get("officer_id"):
        return load_unit(conn, "officer", creator["officer_id"])
    if creator.get("combined_leo_id"):
        return load_unit(conn, "combined", creator["combined_leo_id"])
    return None


# ============================================================================
# MESSAGES
# ============================================================================

_MESSAGE_SELECT = """
    SELECT oc.id, oc.creator_id, oc.message, oc.created_at, oc.updated_at,
           cc.officer_id, cc.combined_leo_id
    FROM officer_chat oc
    LEFT JOIN chat_creators cc ON cc.id = oc.creator_id
"""


def insert_officer_chat(conn: sqlite3.Connection, creator_id: str, message: str) -> Dict:
    """Insert a message and return it joined with its creator columns."""
    msg_id = _new_id()
    now = _ts()
    conn.execute("""
        INSERT INTO officer_chat (id, creator_id, message, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?)
    """, (msg_id, creator_id, message, now, now))
    conn.commit()
    return get_officer_chat(conn, msg_id)


def get_officer_chat(conn: sqlite3.Connection, message_id: str) -> Optional[Dict]:
    row = conn.execute(_MESSAGE_SELECT + " WHERE oc.id = ?", (message_id,)).fetchone()
    return dict(row) if row else None


def get_recent_officer_chat(
    conn: sqlite3.Connection,
    limit: int = OFFICER_CHAT_HISTORY_LIMIT
) -> List[Dict]:
    """Most recent messages, newest first. Ties on created_at fall back to insertion order."""
    rows = conn.execute(
        _MESSAGE_SELECT + " ORDER BY oc.created_at DESC, oc.rowid DESC LIMIT ?",
        (limit,)
    ).fetchall()
    return [dict(r) for r in rows]


def delete_officer_chat(conn: sqlite3.Connection, message_id: str) -> bool:
    c = conn.cursor()
    c.execute("DELETE FROM officer_chat WHERE id = ?", (message_id,))
    conn.commit()
    return c.rowcount > 0


# ============================================================================
# WIRE SHAPE
# ============================================================================

def normalize_officer_chat(
    conn: sqlite3.Connection,
    row: Dict,
    unit_cache: Optional[Dict[str, Optional[LeoUnit]]] = None
) -> Dict:
    """
    Message row -> wire shape:
    {id, createdAt, updatedAt, message, creator: {unit}}
    """
    if unit_cache is not None and row["creator_id"] in unit_cache:
        unit = unit_cache[row["creator_id"]]
    else:
        unit = resolve_creator_unit(conn, row)
        if unit_cache is not None:
            unit_cache[row["creator_id"]] = unit

    return {
        "id": row["id"],
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
        "message": row["message"],
        "creator": {"unit": unit.unit if unit else None},
    }
