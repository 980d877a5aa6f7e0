"""
LEO-CAD — Test Infrastructure (conftest.py)
============================================
Provides:
  - CAD_TEST_MODE / CAD_DB_PATH environment setup
  - Test database (cad_test.db) with deterministic LEO seed data
  - FastAPI TestClient with session login helpers
  - DB assertion helpers
  - Artifact collection
"""

import os
import sys
import sqlite3
import datetime
import json
import pytest

# Ensure project root is on path
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT_DIR)

# ============================================================================
# TEST MODE: Use separate test database (must be set before main is imported)
# ============================================================================
TEST_DB_PATH = os.path.join(ROOT_DIR, "cad_test.db")
ARTIFACTS_DIR = os.path.join(ROOT_DIR, "test_artifacts",
                              datetime.datetime.now().strftime("%Y%m%d_%H%M%S"))

os.environ["CAD_TEST_MODE"] = "1"
os.environ["CAD_DB_PATH"] = TEST_DB_PATH


# ============================================================================
# Seed identifiers
# ============================================================================

STATUS_ON_DUTY = "st-10-8"
STATUS_BUSY = "st-10-6"
STATUS_OFF_DUTY = "st-10-7"

OFFICER_A = "off-a"          # alpha, on duty, LSPD patrol
OFFICER_B = "off-b"          # bravo, busy (still on duty), Sheriff
OFFICER_OFF = "off-c"        # charlie, off duty
OFFICER_NO_STATUS = "off-d"  # charlie, no status at all
OFFICER_E = "off-e"          # delta, merged into COMBINED_UNIT
OFFICER_F = "off-f"          # delta, merged into COMBINED_UNIT
OFFICER_CIV = "off-g"        # civilian account, on duty but not LEO
COMBINED_UNIT = "cu-1"


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Session-wide test environment setup."""
    # Remove stale test DB
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)

    for subdir in ["json_snapshots", "html_snapshots"]:
        os.makedirs(os.path.join(ARTIFACTS_DIR, subdir), exist_ok=True)

    yield

    # Cleanup (ignore Windows file lock errors)
    try:
        if os.path.exists(TEST_DB_PATH):
            os.remove(TEST_DB_PATH)
    except (PermissionError, OSError):
        pass


@pytest.fixture(scope="session")
def app():
    """Get the FastAPI app instance with test DB."""
    import main
    return main.app


@pytest.fixture(scope="session")
def client(app):
    """FastAPI TestClient (session-scoped; startup creates the schema)."""
    from starlette.testclient import TestClient
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture(scope="session")
def seeded_db(app, client):
    """Seed the test database with deterministic users, units and statuses."""
    conn = sqlite3.connect(TEST_DB_PATH, timeout=30)
    conn.row_factory = sqlite3.Row
    c = conn.cursor()

    ts = datetime.datetime.now(datetime.timezone.utc).isoformat()

    # ---- USERS ----
    users = [
        ("u-alpha", "alpha", 1),
        ("u-bravo", "bravo", 1),
        ("u-charlie", "charlie", 1),
        ("u-delta", "delta", 1),
        ("u-civ", "civilian", 0),
    ]
    for uid, username, is_leo in users:
        c.execute("""
            INSERT OR REPLACE INTO users (id, username, is_leo, created_at)
            VALUES (?, ?, ?, ?)
        """, (uid, username, is_leo, ts))

    # ---- VALUES ----
    c.execute("INSERT OR REPLACE INTO departments (id, value, callsign) VALUES (?, ?, ?)",
              ("dept-lspd", "Los Santos Police Department", "L"))
    c.execute("INSERT OR REPLACE INTO departments (id, value, callsign) VALUES (?, ?, ?)",
              ("dept-sheriff", "Sheriff", "S"))
    c.execute("INSERT OR REPLACE INTO divisions (id, value, callsign, department_id) VALUES (?, ?, ?, ?)",
              ("div-patrol", "Patrol", "P", "dept-lspd"))
    c.execute("INSERT OR REPLACE INTO divisions (id, value, callsign, department_id) VALUES (?, ?, ?, ?)",
              ("div-traffic", "Traffic", "T", "dept-lspd"))
    c.execute("INSERT OR REPLACE INTO ranks (id, value) VALUES (?, ?)", ("rank-officer", "Officer"))
    c.execute("INSERT OR REPLACE INTO ranks (id, value) VALUES (?, ?)", ("rank-sgt", "Sergeant"))

    statuses = [
        (STATUS_ON_DUTY, "10-8", "SET_ON_DUTY", "#22c55e"),
        (STATUS_BUSY, "10-6", "SET_STATUS", "#eab308"),
        (STATUS_OFF_DUTY, "10-7", "SET_OFF_DUTY", "#ef4444"),
    ]
    for sid, value, should_do, color in statuses:
        c.execute("""
            INSERT OR REPLACE INTO status_values (id, value, should_do, color)
            VALUES (?, ?, ?, ?)
        """, (sid, value, should_do, color))

    # ---- OFFICERS ----
    # id, user, first, last, callsign, callsign2, badge, rank, department, status
    officers = [
        (OFFICER_A, "u-alpha", "John", "Doe", "A1", "12", "1001", "rank-officer", "dept-lspd", STATUS_ON_DUTY),
        (OFFICER_B, "u-bravo", "Jane", "Roe", "B2", "", "1002", "rank-sgt", "dept-sheriff", STATUS_BUSY),
        (OFFICER_OFF, "u-charlie", "Carl", "Coe", "C3", "", "1003", None, "dept-lspd", STATUS_OFF_DUTY),
        (OFFICER_NO_STATUS, "u-charlie", "Carl", "Coe", "C4", "", "1004", None, "dept-lspd", None),
        (OFFICER_E, "u-delta", "Dana", "Poe", "E5", "", "1005", "rank-officer", "dept-lspd", STATUS_ON_DUTY),
        (OFFICER_F, "u-delta", "Dale", "Moe", "F6", "", "1006", "rank-officer", "dept-sheriff", STATUS_ON_DUTY),
        (OFFICER_CIV, "u-civ", "Cody", "Loe", "G7", "", "1007", None, "dept-lspd", STATUS_ON_DUTY),
    ]
    for oid, uid, first, last, cs1, cs2, badge, rank, dept, status in officers:
        c.execute("""
            INSERT OR REPLACE INTO officers
            (id, user_id, first_name, last_name, callsign, callsign2, badge_number,
             rank_id, department_id, status_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (oid, uid, first, last, cs1, cs2, badge, rank, dept, status, ts, ts))

    c.execute("INSERT OR REPLACE INTO officer_divisions (officer_id, division_id) VALUES (?, ?)",
              (OFFICER_A, "div-patrol"))
    c.execute("INSERT OR REPLACE INTO officer_divisions (officer_id, division_id) VALUES (?, ?)",
              (OFFICER_A, "div-traffic"))

    # ---- COMBINED UNIT ----
    c.execute("""
        INSERT OR REPLACE INTO combined_units (id, callsign, status_id, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?)
    """, (COMBINED_UNIT, "1", STATUS_ON_DUTY, ts, ts))
    for position, oid in enumerate([OFFICER_E, OFFICER_F]):
        c.execute("""
            INSERT OR REPLACE INTO combined_unit_officers (combined_unit_id, officer_id, position)
            VALUES (?, ?, ?)
        """, (COMBINED_UNIT, oid, position))

    conn.commit()
    conn.close()
    return TEST_DB_PATH


@pytest.fixture
def clean_chat(seeded_db):
    """Empty the officer chat tables before a test."""
    conn = get_test_db()
    conn.execute("DELETE FROM officer_chat")
    conn.execute("DELETE FROM chat_creators")
    conn.commit()
    conn.close()
    yield


# ============================================================================
# Session helpers
# ============================================================================

def make_session_cookies(client, user, officer_id=None):
    """Login via the session endpoint and return the response (cookies are stored)."""
    payload = {"user": user}
    if officer_id:
        payload["active_officer_id"] = officer_id
    return client.post("/api/session/login", json=payload)


@pytest.fixture
def alpha_session(client, seeded_db):
    """Client acting as officer A (on duty)."""
    make_session_cookies(client, "alpha", OFFICER_A)
    return client


@pytest.fixture
def bravo_session(client, seeded_db):
    """Client acting as officer B (busy, still on duty)."""
    make_session_cookies(client, "bravo", OFFICER_B)
    return client


@pytest.fixture
def off_duty_session(client, seeded_db):
    """Client acting as an off-duty officer."""
    make_session_cookies(client, "charlie", OFFICER_OFF)
    return client


@pytest.fixture
def combined_session(client, seeded_db):
    """Client acting as officer E, who is merged into the combined unit."""
    make_session_cookies(client, "delta", OFFICER_E)
    return client


@pytest.fixture
def civilian_session(client, seeded_db):
    """Client logged in without LEO permissions."""
    make_session_cookies(client, "civilian")
    return client


def set_officer_status(officer_id, status_id):
    conn = get_test_db()
    conn.execute("UPDATE officers SET status_id = ? WHERE id = ?", (status_id, officer_id))
    conn.commit()
    conn.close()


# ============================================================================
# DB helpers
# ============================================================================

def get_test_db():
    """Direct connection to test database for assertions."""
    conn = sqlite3.connect(TEST_DB_PATH, timeout=30)
    conn.row_factory = sqlite3.Row
    return conn


def db_query(sql, params=()):
    """Run a query against the test DB and return list of dicts."""
    conn = get_test_db()
    rows = conn.execute(sql, params).fetchall()
    result = [dict(r) for r in rows]
    conn.close()
    return result


def db_count(table, where="1=1", params=()):
    """Count rows in a table."""
    conn = get_test_db()
    row = conn.execute(f"SELECT COUNT(*) AS cnt FROM {table} WHERE {where}", params).fetchone()
    conn.close()
    return row["cnt"]


def insert_raw_message(creator_id, message, created_at, officer_id=None, combined_id=None):
    """Insert a creator (if missing) and one message with a fixed timestamp."""
    conn = get_test_db()
    conn.execute("""
        INSERT OR IGNORE INTO chat_creators (id, officer_id, combined_leo_id, created_at)
        VALUES (?, ?, ?, ?)
    """, (creator_id, officer_id, combined_id, created_at))
    msg_id = f"{creator_id}-{created_at}"
    conn.execute("""
        INSERT INTO officer_chat (id, creator_id, message, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?)
    """, (msg_id, creator_id, message, created_at, created_at))
    conn.commit()
    conn.close()
    return msg_id


# ============================================================================
# Artifact helpers
# ============================================================================

def save_artifact(name, content, subdir="json_snapshots"):
    """Save test artifact to the artifacts directory."""
    path = os.path.join(ARTIFACTS_DIR, subdir, name)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    if isinstance(content, (dict, list)):
        with open(path, "w") as f:
            json.dump(content, f, indent=2, default=str)
    elif isinstance(content, bytes):
        with open(path, "wb") as f:
            f.write(content)
    else:
        with open(path, "w") as f:
            f.write(str(content))
    return path
