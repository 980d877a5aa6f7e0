# ================================================================
# LEO-CAD — Core Backend
# Sessions + Unit Duty + Officer Chat
# ================================================================

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from starlette.middleware.sessions import SessionMiddleware
from fastapi.templating import Jinja2Templates

import datetime
import logging

from app.config import CONFIG, TEMPLATES_DIR
from app.db import get_conn
from app.audit import init_audit_schema, masterlog
from app.auth import init_auth_schema, register_session_routes
from app.leo import init_leo_schema
from app.leo.duty import resolve_selected_unit
from app.leo.routes import register_leo_routes
from app.leo.utils import generate_callsign
from app.officer_chat import register_officer_chat_routes, render_officer_chatbox
from app.officer_chat.scheduler_jobs import init_chat_scheduler, shutdown_chat_scheduler

# ================================================================
# LOGGING
# ================================================================

logging.basicConfig(
    level=CONFIG["log_level"],
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("leo_cad")

# ================================================================
# FASTAPI APP
# ================================================================

cad_app = FastAPI(title="LEO-CAD")
app = cad_app
cad_app.add_middleware(SessionMiddleware, secret_key=CONFIG["session_secret"])

# Templates
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


@app.on_event("startup")
async def _cad_startup():
    # Core tables first; module routes init their own tables after this.
    conn = get_conn()
    try:
        init_audit_schema(conn)
        init_auth_schema(conn)
        init_leo_schema(conn)
    finally:
        conn.close()

    if not CONFIG["test_mode"]:
        init_chat_scheduler()

    masterlog("SYSTEM_STARTUP", user="SYSTEM", details="LEO-CAD backend startup")
    logger.info(f"[Startup] LEO-CAD ready (db={CONFIG['db_path']}, test_mode={CONFIG['test_mode']})")


@app.on_event("shutdown")
async def _cad_shutdown():
    shutdown_chat_scheduler()


# ================================================================
# MODULE ROUTES
# ================================================================

register_session_routes(app, get_conn)
register_leo_routes(app, get_conn)
register_officer_chat_routes(app, templates, get_conn)


# ================================================================
# ROOT + HEALTH
# ================================================================

@app.get("/", response_class=HTMLResponse)
async def root_view(request: Request):
    """Landing page; carries the officer chatbox while the viewer is on duty."""
    user = request.session.get("user")
    selected = resolve_selected_unit(request, get_conn) if user else None

    return templates.TemplateResponse(request, "layout.html", {
        "user": user,
        "unit_callsign": generate_callsign(selected.unit) if selected else None,
        "chatbox": render_officer_chatbox(request, templates, get_conn) if selected else "",
    })


@app.get("/api/ping")
async def api_ping():
    return {"ok": True, "ts": datetime.datetime.now().isoformat()}


@app.get("/health")
async def health():
    conn = get_conn()
    try:
        conn.execute("SELECT 1").fetchone()
    finally:
        conn.close()
    return {"status": "healthy"}
