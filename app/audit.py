# ============================================================================
# LEO-CAD — MasterLog (append-only audit trail)
# ============================================================================

import datetime
import logging
import sqlite3

from app.db import get_conn

logger = logging.getLogger(__name__)


def init_audit_schema(conn: sqlite3.Connection):
    conn.execute("""
        CREATE TABLE IF NOT EXISTS MasterLog (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp TEXT NOT NULL,
            user TEXT,
            action TEXT NOT NULL,
            unit_id TEXT,
            ok INTEGER DEFAULT 1,
            reason TEXT,
            details TEXT
        )
    """)
    conn.commit()


def _ts():
    return datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def masterlog(action: str, user: str = None, unit_id: str = None, ok: bool = True,
              reason: str = None, details: str = None):
    """Append a MasterLog row. Never raises; a failed audit write must not fail the request."""
    conn = None
    try:
        conn = get_conn()
        conn.execute(
            "INSERT INTO MasterLog (timestamp, user, action, unit_id, ok, reason, details) VALUES (?,?,?,?,?,?,?)",
            (_ts(), user or "UNKNOWN", action, unit_id, 1 if ok else 0, reason, details)
        )
        conn.commit()
    except sqlite3.Error as e:
        logger.warning(f"[MasterLog] write failed for {action}: {e}")
    finally:
        if conn is not None:
            conn.close()


def reject_and_log(action: str, reason: str, user: str = None, unit_id: str = None, details: str = None):
    """Standardized failure logging."""
    masterlog(action, user=user, unit_id=unit_id, ok=False, reason=reason, details=details)
