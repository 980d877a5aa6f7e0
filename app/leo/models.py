# ============================================================================
# LEO-CAD — Unit Model (Officers, Combined Units) — Schema & Queries
# ============================================================================
# Read-only to the officer chat. Officers and combined (paired) units are
# loaded into plain dicts shaped for the wire; LeoUnit tags which kind a
# resolved unit is.
# ============================================================================

import sqlite3
from dataclasses import dataclass
from typing import Optional, List, Dict, Literal


SET_OFF_DUTY = "SET_OFF_DUTY"

UnitKind = Literal["officer", "combined"]


@dataclass(frozen=True)
class LeoUnit:
    """A resolved unit: either a single officer or a combined unit."""
    kind: UnitKind
    unit: Dict

    @property
    def id(self) -> str:
        return self.unit["id"]


# ============================================================================
# SCHEMA INITIALIZATION
# ============================================================================

def init_leo_schema(conn: sqlite3.Connection):
    """Create the unit tables the officer chat reads from."""
    c = conn.cursor()

    c.execute("""
        CREATE TABLE IF NOT EXISTS departments (
            id TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            callsign TEXT
        )
    """)

    c.execute("""
        CREATE TABLE IF NOT EXISTS divisions (
            id TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            callsign TEXT,
            department_id TEXT,
            FOREIGN KEY (department_id) REFERENCES departments(id)
        )
    """)

    c.execute("""
        CREATE TABLE IF NOT EXISTS ranks (
            id TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
    """)

    # should_do: SET_ON_DUTY, SET_OFF_DUTY, SET_STATUS
    c.execute("""
        CREATE TABLE IF NOT EXISTS status_values (
            id TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            should_do TEXT NOT NULL DEFAULT 'SET_STATUS',
            color TEXT
        )
    """)

    c.execute("""
        CREATE TABLE IF NOT EXISTS officers (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL,
            callsign TEXT NOT NULL,
            callsign2 TEXT NOT NULL DEFAULT '',
            badge_number TEXT,
            rank_id TEXT,
            department_id TEXT,
            status_id TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY (rank_id) REFERENCES ranks(id),
            FOREIGN KEY (department_id) REFERENCES departments(id),
            FOREIGN KEY (status_id) REFERENCES status_values(id)
        )
    """)

    c.execute("""
        CREATE TABLE IF NOT EXISTS officer_divisions (
            officer_id TEXT NOT NULL,
            division_id TEXT NOT NULL,
            PRIMARY KEY (officer_id, division_id),
            FOREIGN KEY (officer_id) REFERENCES officers(id),
            FOREIGN KEY (division_id) REFERENCES divisions(id)
        )
    """)

    c.execute("""
        CREATE TABLE IF NOT EXISTS combined_units (
            id TEXT PRIMARY KEY,
            callsign TEXT NOT NULL,
            status_id TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY (status_id) REFERENCES status_values(id)
        )
    """)

    c.execute("""
        CREATE TABLE IF NOT EXISTS combined_unit_officers (
            combined_unit_id TEXT NOT NULL,
            officer_id TEXT NOT NULL,
            position INTEGER DEFAULT 0,
            PRIMARY KEY (combined_unit_id, officer_id),
            FOREIGN KEY (combined_unit_id) REFERENCES combined_units(id),
            FOREIGN KEY (officer_id) REFERENCES officers(id)
        )
    """)

    c.execute("CREATE INDEX IF NOT EXISTS idx_officers_user ON officers(user_id)")
    c.execute("CREATE INDEX IF NOT EXISTS idx_cuo_officer ON combined_unit_officers(officer_id)")

    conn.commit()


# ============================================================================
# ROW → DICT HELPERS
# ============================================================================

def _status(conn: sqlite3.Connection, status_id: Optional[str]) -> Optional[Dict]:
    if not status_id:
        return None
    row = conn.execute("SELECT * FROM status_values WHERE id = ?", (status_id,)).fetchone()
    if not row:
        return None
    return {"id": row["id"], "value": row["value"], "shouldDo": row["should_do"], "color": row["color"]}


def _department(conn: sqlite3.Connection, department_id: Optional[str]) -> Optional[Dict]:
    if not department_id:
        return None
    row = conn.execute("SELECT * FROM departments WHERE id = ?", (department_id,)).fetchone()
    if not row:
        return None
    return {"id": row["id"], "value": row["value"], "callsign": row["callsign"]}


def _rank(conn: sqlite3.Connection, rank_id: Optional[str]) -> Optional[Dict]:
    if not rank_id:
        return None
    row = conn.execute("SELECT * FROM ranks WHERE id = ?", (rank_id,)).fetchone()
    return {"id": row["id"], "value": row["value"]} if row else None


def _divisions(conn: sqlite3.Connection, officer_id: str) -> List[Dict]:
    rows = conn.execute("""
        SELECT d.id, d.value, d.callsign
        FROM officer_divisions od
        JOIN divisions d ON d.id = od.division_id
        WHERE od.officer_id = ?
        ORDER BY d.value
    """, (officer_id,)).fetchall()
    return [{"id": r["id"], "value": r["value"], "callsign": r["callsign"]} for r in rows]


def _officer_from_row(conn: sqlite3.Connection, row: sqlite3.Row) -> Dict:
    return {
        "id": row["id"],
        "userId": row["user_id"],
        "firstName": row["first_name"],
        "lastName": row["last_name"],
        "callsign": row["callsign"],
        "callsign2": row["callsign2"],
        "badgeNumber": row["badge_number"],
        "rank": _rank(conn, row["rank_id"]),
        "department": _department(conn, row["department_id"]),
        "divisions": _divisions(conn, row["id"]),
        "status": _status(conn, row["status_id"]),
    }


# ============================================================================
# UNIT QUERIES
# ============================================================================

def get_officer(conn: sqlite3.Connection, officer_id: str) -> Optional[Dict]:
    """Load a single officer with department, divisions, rank and status."""
    row = conn.execute("SELECT * FROM officers WHERE id = ?", (officer_id,)).fetchone()
    return _officer_from_row(conn, row) if row else None


def get_combined_unit(conn: sqlite3.Connection, combined_id: str) -> Optional[Dict]:
    """Load a combined unit with its member officers.

    The combined unit has no department of its own; it takes the department
    of its first member officer.
    """
    row = conn.execute("SELECT * FROM combined_units WHERE id = ?", (combined_id,)).fetchone()
    if not row:
        return None

    member_rows = conn.execute("""
        SELECT o.* FROM combined_unit_officers cuo
        JOIN officers o ON o.id = cuo.officer_id
        WHERE cuo.combined_unit_id = ?
        ORDER BY cuo.position, o.callsign
    """, (combined_id,)).fetchall()
    officers = [_officer_from_row(conn, r) for r in member_rows]

    return {
        "id": row["id"],
        "callsign": row["callsign"],
        "department": officers[0]["department"] if officers else None,
        "status": _status(conn, row["status_id"]),
        "officers": officers,
    }


def find_combined_unit_for_officer(conn: sqlite3.Connection, officer_id: str) -> Optional[Dict]:
    """Return the combined unit an officer is currently merged into, if any."""
    row = conn.execute(
        "SELECT combined_unit_id FROM combined_unit_officers WHERE officer_id = ? LIMIT 1",
        (officer_id,)
    ).fetchone()
    if not row:
        return None
    return get_combined_unit(conn, row["combined_unit_id"])


def load_unit(conn: sqlite3.Connection, kind: UnitKind, unit_id: str) -> Optional[LeoUnit]:
    """Load a unit of a known kind and tag it."""
    if kind == "combined":
        unit = get_combined_unit(conn, unit_id)
    else:
        unit = get_officer(conn, unit_id)
    return LeoUnit(kind, unit) if unit else None


def is_unit_on_duty(unit: Optional[Dict]) -> bool:
    """A unit is on duty when it has a status that is not an off-duty status."""
    if not unit:
        return False
    status = unit.get("status")
    return status is not None and status.get("shouldDo") != SET_OFF_DUTY
