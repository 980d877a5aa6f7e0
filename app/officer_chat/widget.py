# ============================================================================
# LEO-CAD Officer Chat — Floating Chat Widget
# ============================================================================
# Client-side state for the officer chatbox: loads history over HTTP, applies
# push events to its local list, submits and deletes messages, and renders
# itself through the Jinja2 fragment template.
#
# Duty state is passed in explicitly (DutyState) so the widget can be driven
# and tested without any global store.
# ============================================================================

import datetime
import logging
from dataclasses import dataclass
from typing import Optional, List, Dict, Callable, Any, Tuple

import httpx

from app.leo.models import is_unit_on_duty
from app.leo.utils import (
    CALLSIGN_TEMPLATE, PAIRED_UNIT_TEMPLATE, generate_callsign, make_unit_name,
    get_unit_department, get_department_abbreviation, format_unit_divisions,
    is_combined_unit, is_unit_officer,
)
from .websocket import OFFICER_CHAT_EVENT, OFFICER_CHAT_DELETED_EVENT

logger = logging.getLogger(__name__)

OFFICER_CHAT_PATH = "/leo/officer-chat"
ACTIVE_OFFICER_PATH = "/leo/active-officer"
CHATBOX_TEMPLATE = "leo/officer_chatbox.html"
ENTRY_TEMPLATE = "leo/officer_chat_entry.html"


# ============================================================================
# SHARED STATE
# ============================================================================

class DutyState:
    """Observable holder of the viewer's active unit (officer or combined unit dict)."""

    def __init__(self, active_unit: Optional[Dict] = None):
        self._active_unit = active_unit
        self._subscribers: List[Callable[[Optional[Dict]], None]] = []

    @property
    def active_unit(self) -> Optional[Dict]:
        return self._active_unit

    def set_active_unit(self, unit: Optional[Dict]):
        self._active_unit = unit
        for callback in list(self._subscribers):
            callback(unit)

    def subscribe(self, callback: Callable[[Optional[Dict]], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def refresh(self, http: httpx.Client) -> Optional[Dict]:
        """Reload the active unit from the server."""
        resp = http.get(ACTIVE_OFFICER_PATH)
        if resp.status_code >= 400:
            self.set_active_unit(None)
        else:
            self.set_active_unit(resp.json())
        return self._active_unit


class SocketListeners:
    """Event name -> callbacks. Feed it decoded push frames with dispatch()."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable[[Any], None]]] = {}

    def on(self, event: str, callback: Callable[[Any], None]) -> Callable[[], None]:
        self._listeners.setdefault(event, []).append(callback)

        def unsubscribe():
            callbacks = self._listeners.get(event, [])
            if callback in callbacks:
                callbacks.remove(callback)
        return unsubscribe

    def dispatch(self, frame: Dict) -> int:
        """Deliver a frame {"type": event, "data": payload} to its listeners."""
        callbacks = list(self._listeners.get(frame.get("type"), []))
        for callback in callbacks:
            callback(frame.get("data"))
        return len(callbacks)


def should_show_chatbox(active_unit: Optional[Dict]) -> bool:
    """The chatbox is only shown to a unit whose status is set and not off duty."""
    return is_unit_on_duty(active_unit)


# ============================================================================
# MESSAGE PRESENTATION
# ============================================================================

@dataclass
class MessageView:
    id: str
    message: str
    time_label: str
    callsign: str
    unit_name: str
    department_name: str
    department_abbreviation: str
    divisions: Optional[str]
    rank: Optional[str]
    status: Optional[str]
    is_own: bool

    @property
    def label(self) -> str:
        return f"{self.callsign} {self.unit_name} ({self.department_abbreviation})"

    @property
    def show_details(self) -> bool:
        # Hover details are only offered on other units' messages
        return not self.is_own


def _time_label(created_at: str) -> str:
    try:
        when = datetime.datetime.fromisoformat(created_at)
    except (TypeError, ValueError):
        return ""
    if when.tzinfo is not None:
        when = when.astimezone()
    return when.strftime("%H:%M:%S")


def is_own_message(message: Dict, active_unit: Optional[Dict]) -> bool:
    unit = (message.get("creator") or {}).get("unit")
    if not active_unit or not unit:
        return False
    return unit.get("id") == active_unit.get("id")


def describe_message(message: Dict, active_unit: Optional[Dict]) -> Optional[MessageView]:
    """Presentational fields for one message. None when its unit no longer resolves."""
    unit = (message.get("creator") or {}).get("unit")
    if not unit:
        return None

    template_id = PAIRED_UNIT_TEMPLATE if is_combined_unit(unit) else CALLSIGN_TEMPLATE
    department = get_unit_department(unit) or {}
    department_name = department.get("value") or ""
    status = unit.get("status") or {}
    rank = (unit.get("rank") or {}) if is_unit_officer(unit) else {}

    return MessageView(
        id=message["id"],
        message=message.get("message", ""),
        time_label=_time_label(message.get("createdAt")),
        callsign=generate_callsign(unit, template_id),
        unit_name=make_unit_name(unit),
        department_name=department_name,
        department_abbreviation=get_department_abbreviation(department_name),
        divisions=(format_unit_divisions(unit) or None) if is_unit_officer(unit) else None,
        rank=rank.get("value"),
        status=status.get("value"),
        is_own=is_own_message(message, active_unit),
    )


def render_entry(templates, message: Dict, active_unit: Optional[Dict]) -> str:
    """One message as it appears in the chatbox list; empty when its unit no longer resolves."""
    view = describe_message(message, active_unit)
    if view is None:
        return ""
    return templates.get_template(ENTRY_TEMPLATE).render(entry=view)


# ============================================================================
# CHATBOX
# ============================================================================

class OfficerChatbox:
    """
    Floating officer chat widget.

    Usage:
        duty = DutyState()
        listeners = SocketListeners()
        box = OfficerChatbox(http_client, duty, listeners)
        box.mount()
        duty.refresh(http_client)          # shows + loads when on duty
        listeners.dispatch(ws.receive_json())
        box.set_draft("10-4"); box.submit()
        box.unmount()
    """

    def __init__(self, http: Optional[httpx.Client], duty: DutyState, listeners: SocketListeners):
        self.http = http
        self.duty = duty
        self.listeners = listeners

        self.messages: List[Dict] = []
        self.is_loading = False
        self.is_minimized = False
        self.fetch_state: Optional[str] = None  # None | "loading" | "error"
        self.error: Optional[str] = None
        self.draft = ""
        self.scroll_target: Optional[str] = None

        self._mounted = False
        self._was_visible = False
        self._unsubscribers: List[Callable[[], None]] = []

    # ---- Lifecycle ----

    @property
    def is_visible(self) -> bool:
        return should_show_chatbox(self.duty.active_unit)

    def mount(self):
        if self._mounted:
            return
        self._mounted = True
        self._unsubscribers = [
            self.duty.subscribe(self._on_duty_change),
            self.listeners.on(OFFICER_CHAT_EVENT, self.on_officer_chat),
            self.listeners.on(OFFICER_CHAT_DELETED_EVENT, self.on_officer_chat_deleted),
        ]
        self._on_duty_change(self.duty.active_unit)

    def unmount(self):
        """Drop every subscription; late callbacks become no-ops."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._mounted = False

    def _on_duty_change(self, _unit: Optional[Dict]):
        if not self._mounted:
            return
        visible = self.is_visible
        if visible and not self._was_visible:
            self._was_visible = True
            self.load()
        elif not visible:
            self._was_visible = False

    # ---- HTTP ----

    def _request(self, method: str, path: str, **kwargs) -> Tuple[bool, Any]:
        """Run one request, tracking fetch state. Returns (ok, json)."""
        self.fetch_state = "loading"
        self.error = None
        try:
            resp = self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"[OfficerChatbox] {method} {path} failed: {e}")
            self.fetch_state = "error"
            self.error = str(e)
            return False, None

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.status_code >= 400:
            self.fetch_state = "error"
            self.error = data.get("detail") if isinstance(data, dict) else resp.text
            logger.warning(f"[OfficerChatbox] {method} {path} -> {resp.status_code} {self.error}")
            return False, data

        self.fetch_state = None
        return True, data

    def load(self):
        """Fetch history and replace local state with it."""
        self.is_loading = True
        ok, data = self._request("GET", OFFICER_CHAT_PATH)
        self.is_loading = False
        if ok:
            self._set_messages(data if isinstance(data, list) else [])

    def hydrate(self, messages: List[Dict]):
        """Seed state from an already-fetched list (server-side render)."""
        self._was_visible = self.is_visible
        self._set_messages(list(messages))

    # ---- Local state ----

    def _set_messages(self, messages: List[Dict]):
        self.messages = messages
        self._after_change()

    def _after_change(self):
        if self.is_visible:
            self.scroll_target = self.messages[-1]["id"] if self.messages else None

    def _remove(self, message_id: str) -> bool:
        remaining = [m for m in self.messages if m["id"] != message_id]
        if len(remaining) == len(self.messages):
            return False
        self._set_messages(remaining)
        return True

    # ---- Push events ----

    def on_officer_chat(self, data: Dict):
        if not self._mounted or not self.is_visible or not isinstance(data, dict):
            return
        if any(m["id"] == data.get("id") for m in self.messages):
            return
        self._set_messages(self.messages + [data])

    def on_officer_chat_deleted(self, message_id: str):
        if not self._mounted or not self.is_visible:
            return
        self._remove(message_id)

    # ---- Input ----

    @property
    def can_submit(self) -> bool:
        return self.fetch_state != "loading" and bool(self.draft.strip())

    def set_draft(self, text: str):
        self.draft = text

    def submit(self) -> Optional[Dict]:
        """Post the draft. The new message itself arrives through the push event."""
        if not self.can_submit:
            return None
        ok, data = self._request("POST", OFFICER_CHAT_PATH, json={"message": self.draft})
        if ok and isinstance(data, dict) and data.get("id"):
            self.draft = ""
            return data
        return None

    def handle_key_down(self, key: str, ctrl: bool = False, meta: bool = False) -> bool:
        """Ctrl/Cmd+Enter submits."""
        if (ctrl or meta) and key == "Enter":
            self.submit()
            return True
        return False

    def delete_message(self, message_id: str) -> bool:
        ok, data = self._request("DELETE", f"{OFFICER_CHAT_PATH}/{message_id}")
        if ok and data:
            self._remove(message_id)
            return True
        return False

    def is_own_message(self, message: Dict) -> bool:
        return is_own_message(message, self.duty.active_unit)

    # ---- View ----

    def minimize(self):
        self.is_minimized = True

    def expand(self):
        self.is_minimized = False

    @property
    def badge_label(self) -> str:
        count = len(self.messages)
        if count <= 0:
            return ""
        return "9+" if count > 9 else str(count)

    def entries(self) -> List[MessageView]:
        active = self.duty.active_unit
        views = (describe_message(m, active) for m in self.messages)
        return [v for v in views if v is not None]

    def render(self, templates) -> str:
        """HTML fragment; empty when the viewer is not on duty."""
        if not self.is_visible:
            return ""
        return templates.get_template(CHATBOX_TEMPLATE).render(
            box=self,
            entries=self.entries(),
        )
