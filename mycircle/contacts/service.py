"""Contact request workflow: create, list, approve/reject.

Requests go through a ``ContactRequestRepository`` and leave this module as
views built by ``disclosure``, so callers never see raw rows.
"""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from ..errors import Forbidden, InvalidOperation, NotFound
from ..notifications.models import Notification, NotificationType
from ..notifications.service import create_notification
from ..posts.service import get_post
from ..users.models import User
from ..users.service import is_blocked_between, to_uuid
from .disclosure import to_recipient_view, to_requester_view
from .models import RequestStatus
from .repository import ContactRequestRepository, SqlContactRequestRepository
from .schemas import RecipientView, RequesterView

logger = logging.getLogger(__name__)

DECISION_STATUSES = (RequestStatus.APPROVED, RequestStatus.REJECTED)


def create_request(
    db: Session,
    post_id: str | UUID,
    requester_id: UUID,
    message: str | None = None,
    repo: ContactRequestRepository | None = None,
) -> RequesterView:
    """Ask the owner of ``post_id`` for their contact details."""
    repo = repo or SqlContactRequestRepository(db)

    post = get_post(db, post_id)
    if not post:
        raise NotFound("Post not found")
    if post.user_id == requester_id:
        raise InvalidOperation("Cannot request contact for your own post")
    if is_blocked_between(db, requester_id, post.user_id):
        raise Forbidden("You cannot make a request to this user")

    record = repo.insert(
        post_id=post.id,
        requester_id=requester_id,
        recipient_id=post.user_id,
        message=message or None,
    )
    logger.info("Contact request created: id=%s post=%s requester=%s", record.id, post.id, requester_id)
    return to_requester_view(record)


def list_received(
    db: Session, user_id: UUID, repo: ContactRequestRepository | None = None
) -> list[RecipientView]:
    repo = repo or SqlContactRequestRepository(db)
    return [to_recipient_view(r) for r in repo.list_for_recipient(user_id)]


def list_sent(
    db: Session, user_id: UUID, repo: ContactRequestRepository | None = None
) -> list[RequesterView]:
    repo = repo or SqlContactRequestRepository(db)
    return [to_requester_view(r) for r in repo.list_for_requester(user_id)]


def parse_decision(value: str | None) -> RequestStatus:
    """Only approve/reject are client-settable; anything else is rejected."""
    try:
        status = RequestStatus(value)
    except ValueError:
        raise InvalidOperation("Invalid status") from None
    if status not in DECISION_STATUSES:
        raise InvalidOperation("Invalid status")
    return status


def update_status(
    db: Session,
    request_id: str | UUID,
    acting_user_id: UUID,
    new_status: str | None,
    repo: ContactRequestRepository | None = None,
) -> RecipientView:
    """Approve or reject a request addressed to ``acting_user_id``.

    A missing request and someone else's request give the same NotFound.
    The current status is not checked, so a recipient can change their mind.
    """
    repo = repo or SqlContactRequestRepository(db)
    status = parse_decision(new_status)

    uid = to_uuid(request_id)
    record = repo.update_status(uid, acting_user_id, status) if uid else None
    if record is None:
        raise NotFound("Request not found or not authorized")
    logger.info("Contact request %s: id=%s by=%s", status, record.id, acting_user_id)
    return to_recipient_view(record)


def has_approved_connection(
    db: Session, a: UUID, b: UUID, repo: ContactRequestRepository | None = None
) -> bool:
    """True when an approved request exists between ``a`` and ``b`` in either direction."""
    repo = repo or SqlContactRequestRepository(db)
    return repo.has_approved_between(a, b)


# ── Persisted notifications ───────────────────────────────────────────


def record_request_notification(db: Session, view: RequesterView, requester: User) -> Notification | None:
    return create_notification(
        db,
        recipient_id=view.recipient.id,
        sender_id=requester.id,
        type=NotificationType.REQUEST,
        title="New contact request",
        message=f'{requester.display_name} wants to contact you about "{view.post.title}"',
        link="/requests",
        related_id=view.id,
    )


def record_decision_notification(db: Session, view: RecipientView, recipient: User) -> Notification | None:
    approved = view.status == RequestStatus.APPROVED
    return create_notification(
        db,
        recipient_id=view.requester.id,
        sender_id=recipient.id,
        type=NotificationType.APPROVAL if approved else NotificationType.INFO,
        title="Request approved" if approved else "Request declined",
        message=(
            f'{recipient.display_name} shared their contact details for "{view.post.title}"'
            if approved
            else f'{recipient.display_name} declined your request for "{view.post.title}"'
        ),
        link="/requests",
        related_id=view.id,
    )
