# ============================================================================
# LEO-CAD Officer Chat — API Routes
# ============================================================================
# GET    /leo/officer-chat          100 most recent messages, oldest first
# POST   /leo/officer-chat          post a message as the active unit
# DELETE /leo/officer-chat/{id}     delete one of the active unit's messages
# GET    /leo/officer-chat/widget   chatbox HTML fragment
# GET    /leo/officer-chat/widget/messages/{id}  one message entry fragment
# WS     /ws/leo                    officer-chat / officer-chat-deleted pushes
# ============================================================================

import logging
from typing import Dict

from fastapi import (
    APIRouter, Depends, FastAPI, Request, WebSocket, WebSocketDisconnect,
)
from fastapi.responses import HTMLResponse

from app.auth.guards import require_leo
from app.leo.duty import resolve_active_unit, resolve_selected_unit
from .engine import OfficerChatEngine
from .models import init_officer_chat_schema
from .schemas import OfficerChatCreate
from .websocket import get_broadcaster
from .widget import (
    OfficerChatbox, DutyState, SocketListeners, render_entry, should_show_chatbox,
)

logger = logging.getLogger(__name__)


def render_officer_chatbox(request: Request, templates, get_conn, minimized: bool = False) -> str:
    """Server-rendered chatbox; empty fragment unless the viewer is an on-duty LEO."""
    if not request.session.get("is_leo"):
        return ""
    selected = resolve_selected_unit(request, get_conn)
    active = selected.unit if selected else None
    if not should_show_chatbox(active):
        return ""

    engine = OfficerChatEngine(get_conn, get_broadcaster())
    box = OfficerChatbox(None, DutyState(active), SocketListeners())
    box.hydrate(engine.list_messages(selected, user=request.session.get("user")))
    if minimized:
        box.minimize()
    return box.render(templates)


def register_officer_chat_routes(app: FastAPI, templates, get_conn):
    """
    Register all officer chat routes with the FastAPI app.

    Args:
        app: FastAPI application
        templates: Jinja2 templates
        get_conn: Function to get database connection
    """

    router = APIRouter(
        prefix="/leo/officer-chat",
        tags=["officer-chat"],
        dependencies=[Depends(require_leo)],
    )

    broadcaster = get_broadcaster()
    engine = OfficerChatEngine(get_conn, broadcaster)

    @app.on_event("startup")
    async def init_officer_chat():
        conn = get_conn()
        try:
            init_officer_chat_schema(conn)
        finally:
            conn.close()
        logger.info("[OfficerChat] Schema initialized")

    # =========================================================================
    # JSON API
    # =========================================================================

    @router.get("")
    @router.get("/", include_in_schema=False)
    async def list_officer_chat(request: Request, user: Dict = Depends(require_leo)):
        active_unit = resolve_active_unit(request, get_conn)
        return engine.list_messages(active_unit, user=user["username"])

    @router.post("")
    @router.post("/", include_in_schema=False)
    async def create_officer_chat(request: Request, body: OfficerChatCreate,
                                  user: Dict = Depends(require_leo)):
        active_unit = resolve_active_unit(request, get_conn)
        return await engine.create_message(active_unit, body.message, user=user["username"])

    @router.get("/widget", response_class=HTMLResponse)
    async def officer_chat_widget(request: Request, minimized: bool = False):
        return HTMLResponse(render_officer_chatbox(request, templates, get_conn, minimized))

    @router.get("/widget/messages/{message_id}", response_class=HTMLResponse)
    async def officer_chat_widget_entry(request: Request, message_id: str,
                                        user: Dict = Depends(require_leo)):
        active_unit = resolve_active_unit(request, get_conn)
        message = engine.get_message(active_unit, message_id, user=user["username"])
        return HTMLResponse(render_entry(templates, message, active_unit.unit))

    @router.delete("/{message_id}")
    async def delete_officer_chat(request: Request, message_id: str,
                                  user: Dict = Depends(require_leo)):
        active_unit = resolve_active_unit(request, get_conn)
        return await engine.delete_message(active_unit, message_id, user=user["username"])

    app.include_router(router)

    # =========================================================================
    # PUSH CHANNEL
    # =========================================================================

    @app.websocket("/ws/leo")
    async def leo_websocket(websocket: WebSocket):
        """Push channel for LEO clients (session-authenticated)."""
        user_id = websocket.session.get("user_id")
        if not user_id or not websocket.session.get("is_leo"):
            await websocket.close(code=1008)
            return

        await broadcaster.connect(websocket, user_id)
        try:
            while True:
                data = await websocket.receive_json()
                await broadcaster.handle_client_message(websocket, data)
        except WebSocketDisconnect:
            await broadcaster.disconnect(websocket)
        except Exception as e:
            logger.warning(f"[WS/Leo] Error for {user_id}: {e}")
            await broadcaster.disconnect(websocket)

    logger.info("[OfficerChat] Routes registered")
