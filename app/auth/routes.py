# ============================================================================
# LEO-CAD Auth — Session Routes
# ============================================================================
# Login is by username only; credentials belong to the host application.
# ============================================================================

import logging

from fastapi import FastAPI, Request, HTTPException

from app.audit import masterlog
from app.errors import UserNotFound, OfficerNotFound, NotLoggedIn
from app.leo.duty import SESSION_ACTIVE_OFFICER
from app.leo.models import get_officer
from .models import get_user_by_username
from .schemas import LoginRequest, ActiveOfficerRequest

logger = logging.getLogger(__name__)


def register_session_routes(app: FastAPI, get_conn):
    """Register /api/session/* routes."""

    def _officer_owned_by(user_id: str, officer_id: str) -> bool:
        conn = get_conn()
        try:
            officer = get_officer(conn, officer_id)
        finally:
            conn.close()
        return bool(officer) and officer["userId"] == user_id

    @app.post("/api/session/login")
    async def session_login(request: Request, body: LoginRequest):
        username = (body.user or "").strip()
        if not username:
            raise HTTPException(status_code=400, detail="User required")

        conn = get_conn()
        try:
            user = get_user_by_username(conn, username)
        finally:
            conn.close()
        if not user:
            logger.warning(f"[Auth] Login rejected for unknown user {username}")
            raise UserNotFound()

        officer_id = body.active_officer_id
        if officer_id and not _officer_owned_by(user["id"], officer_id):
            raise OfficerNotFound()

        request.session.clear()
        request.session["user_id"] = user["id"]
        request.session["user"] = user["username"]
        request.session["is_leo"] = bool(user["is_leo"])
        if officer_id:
            request.session[SESSION_ACTIVE_OFFICER] = officer_id

        masterlog("SESSION_LOGIN", user=user["username"], unit_id=officer_id)
        logger.info(f"[Auth] {user['username']} logged in")
        return {
            "ok": True,
            "user": user["username"],
            "is_leo": bool(user["is_leo"]),
            "active_officer_id": officer_id,
        }

    @app.post("/api/session/active-officer")
    async def session_active_officer(request: Request, body: ActiveOfficerRequest):
        user_id = request.session.get("user_id")
        if not user_id:
            raise NotLoggedIn()
        officer_id = body.officer_id
        if not officer_id or not _officer_owned_by(user_id, officer_id):
            raise OfficerNotFound()
        request.session[SESSION_ACTIVE_OFFICER] = officer_id
        return {"ok": True, "active_officer_id": officer_id}

    @app.post("/api/session/logout")
    async def session_logout(request: Request):
        user = request.session.get("user")
        request.session.clear()
        if user:
            masterlog("SESSION_LOGOUT", user=user)
        return {"ok": True}

    @app.get("/api/session/status")
    async def session_status(request: Request):
        return {
            "logged_in": bool(request.session.get("user_id")),
            "user": request.session.get("user"),
            "is_leo": bool(request.session.get("is_leo")),
            "active_officer_id": request.session.get(SESSION_ACTIVE_OFFICER),
        }

    logger.info("[Auth] Session routes registered")
