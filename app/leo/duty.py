# ============================================================================
# LEO-CAD — Duty-Status Resolver
# ============================================================================
# Resolves the caller's active on-duty unit from the session's selected
# officer. An officer merged into a combined unit acts as that combined unit.
# ============================================================================

import logging
import sqlite3
from typing import Optional

from fastapi import Request

from .models import (
    LeoUnit, get_officer, find_combined_unit_for_officer, is_unit_on_duty,
)

logger = logging.getLogger(__name__)

SESSION_ACTIVE_OFFICER = "active_officer_id"


def get_selected_unit(
    conn: sqlite3.Connection,
    user_id: Optional[str],
    officer_id: Optional[str],
) -> Optional[LeoUnit]:
    """The unit the user is currently acting as, regardless of status."""
    if not user_id or not officer_id:
        return None

    officer = get_officer(conn, officer_id)
    if not officer or officer["userId"] != user_id:
        return None

    combined = find_combined_unit_for_officer(conn, officer_id)
    if combined:
        return LeoUnit("combined", combined)
    return LeoUnit("officer", officer)


def get_active_unit(
    conn: sqlite3.Connection,
    user_id: Optional[str],
    officer_id: Optional[str],
) -> Optional[LeoUnit]:
    """Return the active on-duty unit for a user, or None."""
    selected = get_selected_unit(conn, user_id, officer_id)
    if selected is None or not is_unit_on_duty(selected.unit):
        return None
    return selected


def _session_ids(request: Request):
    return request.session.get("user_id"), request.session.get(SESSION_ACTIVE_OFFICER)


def resolve_selected_unit(request: Request, get_conn) -> Optional[LeoUnit]:
    user_id, officer_id = _session_ids(request)
    conn = get_conn()
    try:
        return get_selected_unit(conn, user_id, officer_id)
    finally:
        conn.close()


def resolve_active_unit(request: Request, get_conn) -> Optional[LeoUnit]:
    """Duty check for a request: session user + selected officer, on duty."""
    user_id, officer_id = _session_ids(request)
    conn = get_conn()
    try:
        return get_active_unit(conn, user_id, officer_id)
    finally:
        conn.close()
