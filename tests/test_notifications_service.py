"""Tests for in-app notifications."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest

from mycircle.errors import NotFound
from mycircle.notifications.models import Notification, NotificationType
from mycircle.notifications.service import (
    create_notification,
    delete_notification,
    list_notifications,
    mark_all_read,
    mark_read,
)


def _notify(db_session, recipient, sender=None, **fields):
    fields.setdefault("type", NotificationType.INFO)
    fields.setdefault("title", "Hello")
    fields.setdefault("message", "Something happened")
    notification = create_notification(
        db_session,
        recipient_id=recipient.id,
        sender_id=sender.id if sender else None,
        **fields,
    )
    db_session.commit()
    return notification


class TestCreateNotification:
    def test_persists(self, db_session, owner, requester):
        notification = _notify(db_session, owner, requester, link="/requests")
        assert notification.read is False
        assert notification.link == "/requests"
        assert db_session.query(Notification).count() == 1

    def test_self_notification_skipped(self, db_session, owner):
        assert _notify(db_session, owner, owner) is None
        assert db_session.query(Notification).count() == 0

    def test_system_notification_without_sender(self, db_session, owner):
        assert _notify(db_session, owner, type=NotificationType.SYSTEM) is not None


class TestListNotifications:
    def test_newest_first_with_sender(self, db_session, owner, requester):
        old = _notify(db_session, owner, requester)
        new = _notify(db_session, owner, requester)
        old.created_at = datetime.now(UTC) - timedelta(hours=1)
        db_session.commit()

        views = list_notifications(db_session, owner.id)
        assert [v.id for v in views] == [new.id, old.id]
        assert views[0].sender.display_name == "Bilal"

    def test_limited(self, db_session, owner, monkeypatch):
        monkeypatch.setattr("mycircle.notifications.service.settings.notification_list_limit", 3)
        for _ in range(5):
            _notify(db_session, owner)
        assert len(list_notifications(db_session, owner.id)) == 3

    def test_scoped_to_recipient(self, db_session, owner, requester):
        _notify(db_session, owner)
        assert list_notifications(db_session, requester.id) == []


class TestMarkRead:
    def test_mark_one(self, db_session, owner):
        notification = _notify(db_session, owner)
        mark_read(db_session, str(notification.id), owner.id)
        db_session.commit()
        assert db_session.get(Notification, notification.id).read is True

    def test_other_users_notification_is_not_found(self, db_session, owner, requester):
        notification = _notify(db_session, owner)
        with pytest.raises(NotFound, match="Notification not found"):
            mark_read(db_session, str(notification.id), requester.id)

    def test_mark_all(self, db_session, owner, requester):
        for _ in range(3):
            _notify(db_session, owner)
        _notify(db_session, requester)

        assert mark_all_read(db_session, owner.id) == 3
        db_session.commit()
        assert db_session.query(Notification).filter(Notification.read.is_(False)).count() == 1


class TestDeleteNotification:
    def test_deletes_own(self, db_session, owner):
        notification = _notify(db_session, owner)
        delete_notification(db_session, str(notification.id), owner.id)
        db_session.commit()
        assert db_session.query(Notification).count() == 0

    def test_missing(self, db_session, owner):
        with pytest.raises(NotFound):
            delete_notification(db_session, str(uuid.uuid4()), owner.id)
