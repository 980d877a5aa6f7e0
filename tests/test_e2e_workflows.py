"""
LEO-CAD — End-to-End Workflow Tests
====================================
Two officers chatting through the real API, the push channel and the
chatbox widget state.
"""

from app.officer_chat.widget import OfficerChatbox, DutyState, SocketListeners
from tests.conftest import (
    db_count, db_query, save_artifact, make_session_cookies, set_officer_status,
    OFFICER_A, OFFICER_B, STATUS_BUSY, STATUS_OFF_DUTY,
)


def _mounted_box(client):
    duty = DutyState()
    listeners = SocketListeners()
    box = OfficerChatbox(client, duty, listeners)
    box.mount()
    duty.refresh(client)
    return box, listeners


class TestOfficerChatLifecycle:
    """A posts "10-4", B sees it pushed live, A deletes it, B sees it go."""

    def test_ten_four_round_trip(self, client, clean_chat):
        # 1. B opens the chatbox and the push channel
        make_session_cookies(client, "bravo", OFFICER_B)
        box_b, listeners_b = _mounted_box(client)
        assert box_b.is_visible is True
        assert box_b.messages == []

        with client.websocket_connect("/ws/leo") as ws_b:
            assert ws_b.receive_json()["type"] == "connected"

            # 2. A posts through the widget
            make_session_cookies(client, "alpha", OFFICER_A)
            box_a, listeners_a = _mounted_box(client)
            box_a.set_draft("10-4")
            assert box_a.handle_key_down("Enter", ctrl=True) is True
            assert box_a.draft == ""
            assert db_count("officer_chat") == 1

            # 3. B receives the push frame
            frame = ws_b.receive_json()
            assert frame["type"] == "officer-chat"
            listeners_b.dispatch(frame)
            listeners_a.dispatch(frame)

            assert [m["message"] for m in box_b.messages] == ["10-4"]
            entry_b = box_b.entries()[0]
            assert entry_b.label == "LA1 - 12P John Doe (LSPD)"
            assert entry_b.is_own is False
            assert entry_b.show_details is True
            assert entry_b.divisions == "Patrol, Traffic"

            entry_a = box_a.entries()[0]
            assert entry_a.is_own is True
            save_artifact("e2e_1_pushed.json", frame)

            # 4. Duplicate delivery changes nothing
            listeners_b.dispatch(frame)
            assert len(box_b.messages) == 1

            # 5. A deletes; B gets the deletion
            message_id = frame["data"]["id"]
            assert box_a.delete_message(message_id) is True
            assert box_a.messages == []

            deleted = ws_b.receive_json()
            assert deleted["type"] == "officer-chat-deleted"
            assert deleted["data"] == message_id
            listeners_b.dispatch(deleted)
            assert box_b.messages == []

        box_a.unmount()
        box_b.unmount()

        rows = db_query(
            "SELECT action FROM MasterLog WHERE details = ? ORDER BY id", (message_id,)
        )
        assert [r["action"] for r in rows] == ["OFFICER_CHAT_CREATE", "OFFICER_CHAT_DELETE"]

    def test_other_officer_cannot_delete(self, client, clean_chat):
        make_session_cookies(client, "alpha", OFFICER_A)
        box_a, _ = _mounted_box(client)
        box_a.set_draft("mine")
        posted = box_a.submit()

        make_session_cookies(client, "bravo", OFFICER_B)
        box_b, listeners_b = _mounted_box(client)
        assert [m["id"] for m in box_b.messages] == [posted["id"]]

        assert box_b.delete_message(posted["id"]) is False
        assert box_b.error == "canOnlyDeleteOwnMessages"
        assert [m["id"] for m in box_b.messages] == [posted["id"]]

        box_a.unmount()
        box_b.unmount()

    def test_going_off_duty_hides_then_reloads(self, client, clean_chat):
        make_session_cookies(client, "bravo", OFFICER_B)
        box_b, _ = _mounted_box(client)
        assert box_b.is_visible is True

        set_officer_status(OFFICER_B, STATUS_OFF_DUTY)
        try:
            box_b.duty.refresh(client)
            assert box_b.is_visible is False
            assert client.get("/leo/officer-chat/widget").text == ""

            # a message posted meanwhile shows up on the next load
            make_session_cookies(client, "alpha", OFFICER_A)
            client.post("/leo/officer-chat", json={"message": "while you were out"})
        finally:
            set_officer_status(OFFICER_B, STATUS_BUSY)

        make_session_cookies(client, "bravo", OFFICER_B)
        box_b.duty.refresh(client)
        assert box_b.is_visible is True
        assert [m["message"] for m in box_b.messages] == ["while you were out"]
        box_b.unmount()
