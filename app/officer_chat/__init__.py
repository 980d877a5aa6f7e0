# ============================================================================
# LEO-CAD Officer Chat Module
# ============================================================================
# Short text messages between on-duty units:
# - List / post / delete API gated on duty status and ownership
# - WebSocket push of create/delete events
# - Floating chatbox widget state + HTML fragment
# ============================================================================

from .models import init_officer_chat_schema
from .routes import register_officer_chat_routes, render_officer_chatbox
from .websocket import MessageBroadcaster, get_broadcaster
from .engine import OfficerChatEngine
from .widget import OfficerChatbox, DutyState, SocketListeners

__all__ = [
    "init_officer_chat_schema",
    "register_officer_chat_routes",
    "render_officer_chatbox",
    "MessageBroadcaster",
    "get_broadcaster",
    "OfficerChatEngine",
    "OfficerChatbox",
    "DutyState",
    "SocketListeners",
]
