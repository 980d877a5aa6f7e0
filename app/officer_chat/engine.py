# ============================================================================
# LEO-CAD Officer Chat Engine — Core Business Logic
# ============================================================================
# List / create / delete on top of the duty resolver and message store.
# Broadcasts go out through the WebSocket push channel.
# ============================================================================

import sqlite3
import logging
from typing import Optional, List, Dict

from app.audit import masterlog, reject_and_log
from app.errors import (
    MustBeOnDuty, MessageNotFound, CannotDeleteMessage, CanOnlyDeleteOwnMessages,
)
from app.leo.models import LeoUnit
from .models import (
    OFFICER_CHAT_HISTORY_LIMIT, get_or_create_creator, insert_officer_chat,
    get_officer_chat, get_recent_officer_chat, delete_officer_chat,
    resolve_creator_unit, normalize_officer_chat,
)
from .websocket import OFFICER_CHAT_EVENT, OFFICER_CHAT_DELETED_EVENT

logger = logging.getLogger(__name__)


class OfficerChatEngine:
    """
    Officer chat operations for an already-resolved active unit.

    Usage:
        engine = OfficerChatEngine(get_conn, get_broadcaster())
        messages = engine.list_messages(active_unit)
        msg = await engine.create_message(active_unit, "10-4")
    """

    def __init__(self, get_conn, broadcaster):
        """
        Args:
            get_conn: Callable that returns a sqlite3.Connection (row_factory set).
            broadcaster: MessageBroadcaster used for push events.
        """
        self._get_conn = get_conn
        self._broadcaster = broadcaster

    def _conn(self) -> sqlite3.Connection:
        return self._get_conn()

    @staticmethod
    def _require_on_duty(active_unit: Optional[LeoUnit], action: str, user: str = None) -> LeoUnit:
        if active_unit is None:
            reject_and_log(action, "mustBeOnDuty", user=user)
            raise MustBeOnDuty()
        return active_unit

    # ---- List ----

    def list_messages(self, active_unit: Optional[LeoUnit], user: str = None) -> List[Dict]:
        """The 100 most recent messages in chronological order."""
        self._require_on_duty(active_unit, "OFFICER_CHAT_LIST", user)

        conn = self._conn()
        try:
            rows = get_recent_officer_chat(conn, OFFICER_CHAT_HISTORY_LIMIT)
            rows.reverse()
            unit_cache: Dict = {}
            return [normalize_officer_chat(conn, r, unit_cache) for r in rows]
        finally:
            conn.close()

    def get_message(self, active_unit: Optional[LeoUnit], message_id: str, user: str = None) -> Dict:
        """A single message in list shape."""
        self._require_on_duty(active_unit, "OFFICER_CHAT_LIST", user)

        conn = self._conn()
        try:
            row = get_officer_chat(conn, message_id)
            if not row:
                raise MessageNotFound()
            return normalize_officer_chat(conn, row)
        finally:
            conn.close()

    # ---- Create ----

    async def create_message(self, active_unit: Optional[LeoUnit], message: str, user: str = None) -> Dict:
        """Store a message for the active unit and broadcast it."""
        unit = self._require_on_duty(active_unit, "OFFICER_CHAT_CREATE", user)

        conn = self._conn()
        try:
            creator, created = get_or_create_creator(conn, unit)
            if created:
                logger.info(f"[OfficerChat] New creator {creator['id']} for {unit.kind} {unit.id}")
            row = insert_officer_chat(conn, creator["id"], message)
            chat = normalize_officer_chat(conn, row)
        finally:
            conn.close()

        await self._broadcaster.broadcast(OFFICER_CHAT_EVENT, chat)

        masterlog("OFFICER_CHAT_CREATE", user=user, unit_id=unit.id, details=chat["id"])
        logger.info(f"[OfficerChat] {unit.kind} {unit.id} posted message {chat['id']}")
        return chat

    # ---- Delete ----

    async def delete_message(self, active_unit: Optional[LeoUnit], message_id: str, user: str = None) -> bool:
        """
        Delete a message posted by the active unit.

        Ownership is by unit identity only: a combined unit and the officers
        in it are different identities.
        """
        unit = self._require_on_duty(active_unit, "OFFICER_CHAT_DELETE", user)

        conn = self._conn()
        try:
            row = get_officer_chat(conn, message_id)
            if not row:
                raise MessageNotFound()

            creator_unit = resolve_creator_unit(conn, row)
            if creator_unit is None:
                reject_and_log("OFFICER_CHAT_DELETE", "cannotDeleteMessage", user=user,
                               unit_id=unit.id, details=message_id)
                raise CannotDeleteMessage()

            if creator_unit.id != unit.id:
                reject_and_log("OFFICER_CHAT_DELETE", "canOnlyDeleteOwnMessages", user=user,
                               unit_id=unit.id, details=message_id)
                logger.warning(f"[OfficerChat] {unit.id} tried to delete {message_id} owned by {creator_unit.id}")
                raise CanOnlyDeleteOwnMessages()

            delete_officer_chat(conn, message_id)
        finally:
            conn.close()

        await self._broadcaster.broadcast(OFFICER_CHAT_DELETED_EVENT, message_id)

        masterlog("OFFICER_CHAT_DELETE", user=user, unit_id=unit.id, details=message_id)
        logger.info(f"[OfficerChat] {unit.kind} {unit.id} deleted message {message_id}")
        return True

