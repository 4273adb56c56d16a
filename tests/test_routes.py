"""Tests for HTTP and WebSocket routes using FastAPI TestClient."""

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool
from starlette.websockets import WebSocketDisconnect

from mycircle.auth.service import create_access_token
from mycircle.contacts.models import ContactRequest, RequestStatus
from mycircle.database.base import Base
from mycircle.notifications.models import Notification, NotificationType
from mycircle.users.models import User


class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["db"] == "ok"
        assert "version" in data
        assert "uptime_seconds" in data

    def test_security_headers(self, client):
        response = client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


class TestErrors:
    def test_unknown_route_uses_msg_body(self, client):
        response = client.get("/api/does-not-exist")
        assert response.status_code == 404
        assert "msg" in response.json()

    def test_missing_token(self, client):
        response = client.get("/api/contact/received")
        assert response.status_code == 401
        assert response.json() == {"msg": "No token, authorization denied"}

    def test_bad_token(self, client):
        response = client.get("/api/contact/received", headers={"x-auth-token": "garbage"})
        assert response.status_code == 401
        assert response.json() == {"msg": "Token is not valid"}

    def test_validation_error_is_400(self, client, post, requester, auth_headers):
        response = client.post(f"/api/contact/{post.id}", json={"message": "x" * 201}, headers=auth_headers(requester))
        assert response.status_code == 400
        assert "message" in response.json()["msg"]

    def test_unhandled_error_is_generic_500(self, client, requester, auth_headers, monkeypatch):
        def _boom(*args, **kwargs):
            raise RuntimeError("database exploded")

        monkeypatch.setattr("mycircle.contacts.routes.list_sent", _boom)
        response = client.get("/api/contact/sent", headers=auth_headers(requester))
        assert response.status_code == 500
        assert response.json() == {"msg": "Server Error"}


class TestContactScenarios:
    def test_request_then_duplicate_then_approve(self, client, db_session, post, owner, requester, auth_headers):
        # 1. pending request hides contact details
        response = client.post(f"/api/contact/{post.id}", json={"message": "Hi!"}, headers=auth_headers(requester))
        assert response.status_code == 200
        created = response.json()
        assert created["status"] == "pending"
        assert "contact_whatsapp" not in created["post"]
        assert "contact_phone" not in created["post"]

        # 2. duplicate
        response = client.post(f"/api/contact/{post.id}", headers=auth_headers(requester))
        assert response.status_code == 400
        assert response.json() == {"msg": "Request already sent"}
        assert db_session.query(ContactRequest).count() == 1

        # 3. approve, requester now sees the number
        response = client.put(
            f"/api/contact/{created['id']}/status", json={"status": "approved"}, headers=auth_headers(owner)
        )
        assert response.status_code == 200
        assert response.json()["status"] == "approved"

        sent = client.get("/api/contact/sent", headers=auth_headers(requester)).json()
        assert sent[0]["post"]["contact_whatsapp"] == "+919811111111"

        # 4. no guard on terminal states
        response = client.patch(
            f"/api/contact/{created['id']}/status", json={"status": "rejected"}, headers=auth_headers(owner)
        )
        assert response.status_code == 200
        sent = client.get("/api/contact/sent", headers=auth_headers(requester)).json()
        assert sent[0]["status"] == "rejected"
        assert "contact_whatsapp" not in sent[0]["post"]

    def test_non_recipient_cannot_change_status(self, client, db_session, post, requester, stranger, auth_headers):
        created = client.post(f"/api/contact/{post.id}", headers=auth_headers(requester)).json()

        response = client.put(
            f"/api/contact/{created['id']}/status", json={"status": "approved"}, headers=auth_headers(stranger)
        )
        assert response.status_code == 404
        assert response.json() == {"msg": "Request not found or not authorized"}
        db_session.expire_all()
        assert db_session.query(ContactRequest).one().status == RequestStatus.PENDING

    def test_self_request(self, client, post, owner, auth_headers):
        response = client.post(f"/api/contact/{post.id}", headers=auth_headers(owner))
        assert response.status_code == 400
        assert response.json() == {"msg": "Cannot request contact for your own post"}

    def test_missing_post(self, client, requester, auth_headers):
        response = client.post(f"/api/contact/{uuid.uuid4()}", headers=auth_headers(requester))
        assert response.status_code == 404
        assert response.json() == {"msg": "Post not found"}

    def test_invalid_status(self, client, post, owner, requester, auth_headers):
        created = client.post(f"/api/contact/{post.id}", headers=auth_headers(requester)).json()
        response = client.put(
            f"/api/contact/{created['id']}/status", json={"status": "maybe"}, headers=auth_headers(owner)
        )
        assert response.status_code == 400
        assert response.json() == {"msg": "Invalid status"}

    def test_received_shows_requester(self, client, post, owner, requester, auth_headers):
        client.post(f"/api/contact/{post.id}", json={"message": "Hello"}, headers=auth_headers(requester))
        received = client.get("/api/contact/received", headers=auth_headers(owner)).json()
        assert len(received) == 1
        assert received[0]["requester"]["display_name"] == "Bilal"
        assert received[0]["message"] == "Hello"

    def test_blocked_requester_forbidden(self, client, post, owner, requester, auth_headers):
        client.post(f"/api/user/{requester.id}/block", headers=auth_headers(owner))
        response = client.post(f"/api/contact/{post.id}", headers=auth_headers(requester))
        assert response.status_code == 403

    def test_workflow_writes_notifications(self, client, db_session, post, owner, requester, auth_headers):
        created = client.post(f"/api/contact/{post.id}", headers=auth_headers(requester)).json()
        client.put(f"/api/contact/{created['id']}/status", json={"status": "approved"}, headers=auth_headers(owner))

        types = {n.recipient_id: n.type for n in db_session.query(Notification).all()}
        assert types == {owner.id: NotificationType.REQUEST, requester.id: NotificationType.APPROVAL}

        listed = client.get("/api/notifications", headers=auth_headers(owner)).json()
        assert listed[0]["type"] == "request"
        assert listed[0]["sender"]["display_name"] == "Bilal"


class TestNotificationRoutes:
    def test_read_and_delete(self, client, post, owner, requester, auth_headers):
        client.post(f"/api/contact/{post.id}", headers=auth_headers(requester))
        notification_id = client.get("/api/notifications", headers=auth_headers(owner)).json()[0]["id"]

        response = client.put(f"/api/notifications/{notification_id}/read", headers=auth_headers(owner))
        assert response.status_code == 200
        assert response.json()["read"] is True

        assert client.put(f"/api/notifications/{notification_id}/read", headers=auth_headers(requester)).status_code == 404

        response = client.put("/api/notifications/read-all", headers=auth_headers(owner))
        assert response.json()["updated"] == 0

        assert client.delete(f"/api/notifications/{notification_id}", headers=auth_headers(owner)).status_code == 200
        assert client.get("/api/notifications", headers=auth_headers(owner)).json() == []


class TestUserAndPostRoutes:
    def test_me(self, client, owner, auth_headers):
        data = client.get("/api/auth/me", headers=auth_headers(owner)).json()
        assert data["display_name"] == "Asha"
        assert data["privacy"]["show_email"] is False

    def test_profile_respects_privacy(self, client, owner, requester, auth_headers):
        data = client.get(f"/api/user/{owner.id}", headers=auth_headers(requester)).json()
        assert "email" not in data
        assert data["contact_whatsapp"] == "+919800000001"

    def test_update_me(self, client, requester, auth_headers):
        response = client.put("/api/user/me", json={"bio": "Plant swapper"}, headers=auth_headers(requester))
        assert response.status_code == 200
        assert response.json()["bio"] == "Plant swapper"

    def test_create_post_and_feed(self, client, owner, requester, auth_headers):
        body = {
            "type": "service",
            "title": "Math tutoring",
            "description": "Grades 6 to 10",
            "location": "Jayanagar",
            "contact_phone": "+9133",
        }
        response = client.post("/api/posts", json=body, headers=auth_headers(owner))
        assert response.status_code == 201
        assert response.json()["contact_phone"] == "+9133"

        feed = client.get("/api/posts", headers=auth_headers(requester)).json()
        assert [p["title"] for p in feed] == ["Math tutoring"]
        assert "contact_phone" not in feed[0]

    def test_profane_post_rejected(self, client, owner, auth_headers):
        body = {"type": "sell", "title": "Damn good sofa", "description": "Cheap", "location": "BTM"}
        response = client.post("/api/posts", json=body, headers=auth_headers(owner))
        assert response.status_code == 400
        assert "Post title" in response.json()["msg"]

    def test_delete_post(self, client, post, owner, requester, auth_headers):
        assert client.delete(f"/api/posts/{post.id}", headers=auth_headers(requester)).status_code == 404
        assert client.delete(f"/api/posts/{post.id}", headers=auth_headers(owner)).status_code == 200
        assert client.get(f"/api/posts/{post.id}", headers=auth_headers(owner)).status_code == 404

    def test_edit_toggle_and_my_posts(self, client, post, owner, requester, auth_headers):
        response = client.put(f"/api/posts/{post.id}", json={"price": 2500}, headers=auth_headers(requester))
        assert response.status_code == 403
        assert response.json() == {"msg": "User not authorized"}

        response = client.put(
            f"/api/posts/{post.id}", json={"title": "Road bike", "price": 2500}, headers=auth_headers(owner)
        )
        assert response.status_code == 200
        assert response.json()["title"] == "Road bike"
        assert response.json()["price"] == 2500

        response = client.patch(f"/api/posts/{post.id}/toggle-status", headers=auth_headers(owner))
        assert response.json()["status"] == "inactive"
        assert client.get("/api/posts", headers=auth_headers(requester)).json() == []

        mine = client.get("/api/posts/my-posts", headers=auth_headers(owner)).json()
        assert [(p["title"], p["status"]) for p in mine] == [("Road bike", "inactive")]

    def test_profane_edit_rejected(self, client, post, owner, auth_headers):
        response = client.put(f"/api/posts/{post.id}", json={"title": "Damn good bike"}, headers=auth_headers(owner))
        assert response.status_code == 400
        assert "Post title" in response.json()["msg"]


@pytest.mark.usefixtures("approved_request")
class TestChatRoutes:
    def test_send_and_read(self, client, owner, requester, auth_headers):
        response = client.post(
            "/api/chat/message", json={"recipient_id": str(owner.id), "text": "Hi"}, headers=auth_headers(requester)
        )
        assert response.status_code == 200
        conversation_id = response.json()["conversation_id"]

        assert client.get("/api/chat/unread/count", headers=auth_headers(owner)).json() == {"count": 1}
        conversations = client.get("/api/chat/conversations", headers=auth_headers(owner)).json()
        assert conversations[0]["unread_count"] == 1

        assert client.put(f"/api/chat/read/{conversation_id}", headers=auth_headers(owner)).status_code == 200
        assert client.get("/api/chat/unread/count", headers=auth_headers(owner)).json() == {"count": 0}

        messages = client.get(f"/api/chat/messages/{conversation_id}", headers=auth_headers(owner)).json()
        assert [m["text"] for m in messages] == ["Hi"]

    def test_stranger_cannot_message(self, client, owner, stranger, auth_headers):
        response = client.post(
            "/api/chat/message", json={"recipient_id": str(owner.id), "text": "Hi"}, headers=auth_headers(stranger)
        )
        assert response.status_code == 403
        assert response.json() == {"msg": "You can only message connected users (accepted requests)"}

    def test_init_and_delete(self, client, owner, requester, auth_headers):
        response = client.post(f"/api/chat/init/{requester.id}", headers=auth_headers(owner))
        assert response.status_code == 200
        conversation_id = response.json()["id"]

        response = client.delete(f"/api/chat/conversation/{conversation_id}", headers=auth_headers(owner))
        assert response.json() == {"msg": "Conversation deleted"}
        assert client.get("/api/chat/conversations", headers=auth_headers(owner)).json() == []


class TestWebSocket:
    def test_rejects_missing_token(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws") as websocket:
                websocket.receive_text()
        assert exc_info.value.code == 4401

    def test_owner_is_told_about_new_request(self, client, post, owner, requester, auth_headers):
        token = auth_headers(owner)["x-auth-token"]
        with client.websocket_connect(f"/ws?token={token}") as websocket:
            response = client.post(f"/api/contact/{post.id}", headers=auth_headers(requester))
            assert response.status_code == 200

            frame = websocket.receive_json()
            assert frame["event"] == "request_received"
            assert frame["data"]["post_id"] == str(post.id)
            assert frame["data"]["requester"]["display_name"] == "Bilal"

            frame = websocket.receive_json()
            assert frame["event"] == "new_notification"
            assert frame["data"]["type"] == "request"

    def test_unknown_event_gets_error(self, client, owner, auth_headers):
        token = auth_headers(owner)["x-auth-token"]
        with client.websocket_connect(f"/ws?token={token}") as websocket:
            websocket.send_json({"event": "dance", "data": {}})
            assert websocket.receive_json() == {"event": "error", "data": {"msg": "Unknown event"}}

            websocket.send_text("not json")
            assert websocket.receive_json()["data"]["msg"] == "Invalid frame"

    @pytest.mark.usefixtures("approved_request")
    def test_send_message_over_socket(self, client, owner, requester, auth_headers):
        owner_token = auth_headers(owner)["x-auth-token"]
        requester_token = auth_headers(requester)["x-auth-token"]
        with client.websocket_connect(f"/ws?token={owner_token}") as owner_ws, client.websocket_connect(
            f"/ws?token={requester_token}"
        ) as requester_ws:
            requester_ws.send_json({"event": "send_message", "data": {"recipient_id": str(owner.id), "text": "Hey"}})

            ack = requester_ws.receive_json()
            assert ack["event"] == "message_sent"
            assert ack["data"]["message"]["text"] == "Hey"

            delivered = owner_ws.receive_json()
            assert delivered["event"] == "receive_message"
            assert delivered["data"]["message"]["text"] == "Hey"
            assert owner_ws.receive_json()["event"] == "unread_count_update"

            owner_ws.send_json({"event": "read_messages", "data": {"conversation_id": delivered["data"]["conversation_id"]}})
            receipt = requester_ws.receive_json()
            assert receipt["event"] == "messages_read"
            assert receipt["data"]["reader_id"] == str(owner.id)

    def test_domain_error_reported_on_socket(self, client, owner, stranger, auth_headers):
        token = auth_headers(stranger)["x-auth-token"]
        with client.websocket_connect(f"/ws?token={token}") as websocket:
            websocket.send_json({"event": "send_message", "data": {"recipient_id": str(owner.id), "text": "Hi"}})
            frame = websocket.receive_json()
            assert frame["event"] == "error"
            assert frame["data"]["msg"] == "You can only message connected users (accepted requests)"

    @pytest.mark.usefixtures("approved_request")
    def test_recipient_id_in_any_uuid_spelling_is_delivered(self, client, owner, requester, auth_headers):
        owner_token = auth_headers(owner)["x-auth-token"]
        requester_token = auth_headers(requester)["x-auth-token"]
        with client.websocket_connect(f"/ws?token={owner_token}") as owner_ws, client.websocket_connect(
            f"/ws?token={requester_token}"
        ) as requester_ws:
            requester_ws.send_json(
                {"event": "send_message", "data": {"recipient_id": owner.id.hex.upper(), "text": "Hey"}}
            )
            assert requester_ws.receive_json()["event"] == "message_sent"

            delivered = owner_ws.receive_json()
            assert delivered["event"] == "receive_message"
            assert delivered["data"]["message"]["text"] == "Hey"
            assert owner_ws.receive_json()["event"] == "unread_count_update"

    @pytest.mark.usefixtures("approved_request")
    def test_open_conversation_gets_no_unread_update(self, client, owner, requester, auth_headers):
        conversation_id = client.post(f"/api/chat/init/{requester.id}", headers=auth_headers(owner)).json()["id"]
        owner_token = auth_headers(owner)["x-auth-token"]
        requester_token = auth_headers(requester)["x-auth-token"]
        send = {"event": "send_message", "data": {"recipient_id": str(owner.id), "text": "Still available?"}}

        with client.websocket_connect(f"/ws?token={owner_token}") as owner_ws, client.websocket_connect(
            f"/ws?token={requester_token}"
        ) as requester_ws:
            owner_ws.send_json({"event": "join_conversation", "data": {"conversation_id": conversation_id}})
            assert owner_ws.receive_json() == {
                "event": "conversation_joined",
                "data": {"conversation_id": conversation_id},
            }

            requester_ws.send_json(send)
            assert requester_ws.receive_json()["event"] == "message_sent"
            assert owner_ws.receive_json()["event"] == "receive_message"

            owner_ws.send_json({"event": "leave_conversation", "data": {"conversation_id": conversation_id}})
            assert owner_ws.receive_json()["event"] == "conversation_left"

            requester_ws.send_json(send)
            assert requester_ws.receive_json()["event"] == "message_sent"
            assert owner_ws.receive_json()["event"] == "receive_message"
            assert owner_ws.receive_json()["event"] == "unread_count_update"

    def test_join_foreign_conversation_refused(self, client, owner, auth_headers):
        token = auth_headers(owner)["x-auth-token"]
        with client.websocket_connect(f"/ws?token={token}") as websocket:
            websocket.send_json({"event": "join_conversation", "data": {"conversation_id": str(uuid.uuid4())}})
            assert websocket.receive_json() == {
                "event": "error",
                "data": {"event": "join_conversation", "msg": "Conversation not found"},
            }


class TestIdleSocket:
    @pytest.fixture
    def pooled_engine(self, tmp_path):
        """File database behind a one-connection pool."""
        engine = create_engine(
            f"sqlite:///{tmp_path / 'pool.db'}",
            connect_args={"check_same_thread": False},
            poolclass=QueuePool,
            pool_size=1,
            max_overflow=0,
            pool_timeout=1,
        )
        Base.metadata.create_all(bind=engine)
        yield engine
        engine.dispose()

    def test_idle_socket_holds_no_pooled_connection(self, app_factory, pooled_engine):
        factory = sessionmaker(bind=pooled_engine)
        uid = uuid.uuid4()
        with factory() as db:
            db.add(User(id=uid, google_id=f"google-{uid.hex}", email=f"{uid.hex[:8]}@example.com", display_name="Asha"))
            db.commit()

        def _request_db():
            with factory() as db:
                yield db

        token = create_access_token(uid)
        app = app_factory(factory, _request_db)
        with TestClient(app, raise_server_exceptions=False) as client:
            with client.websocket_connect(f"/ws?token={token}"):
                assert pooled_engine.pool.checkedout() == 0

                response = client.get("/api/contact/received", headers={"x-auth-token": token})
                assert response.status_code == 200
                assert response.json() == []
