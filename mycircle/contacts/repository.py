"""Contact request storage.

The service only talks to ``ContactRequestRepository``; the SQLAlchemy
implementation maps rows to immutable ``ContactRequestRecord`` objects.
"""

import logging
from typing import Protocol
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..database.errors import is_unique_violation
from ..errors import Conflict
from ..posts.models import Post
from ..users.schemas import UserSummary
from .models import ContactRequest, RequestStatus
from .schemas import ContactRequestRecord, OwnerContact, PostRecord

logger = logging.getLogger(__name__)


class ContactRequestRepository(Protocol):
    """Storage interface for contact requests."""

    def find(self, request_id: UUID) -> ContactRequestRecord | None: ...
    def insert(
        self, *, post_id: UUID, requester_id: UUID, recipient_id: UUID, message: str | None
    ) -> ContactRequestRecord: ...
    def update_status(
        self, request_id: UUID, recipient_id: UUID, status: RequestStatus
    ) -> ContactRequestRecord | None: ...
    def list_for_recipient(self, user_id: UUID) -> list[ContactRequestRecord]: ...
    def list_for_requester(self, user_id: UUID) -> list[ContactRequestRecord]: ...
    def has_approved_between(self, a: UUID, b: UUID) -> bool: ...


def to_record(row: ContactRequest) -> ContactRequestRecord:
    post = row.post
    owner = post.user
    return ContactRequestRecord(
        id=row.id,
        post=PostRecord(
            id=post.id,
            title=post.title,
            type=post.type,
            images=tuple(post.images or ()),
            contact_phone=post.contact_phone,
            contact_whatsapp=post.contact_whatsapp,
            owner=OwnerContact(
                contact_whatsapp=owner.contact_whatsapp,
                whatsapp_number=owner.whatsapp_number,
                contact_phone=owner.contact_phone,
            ),
        ),
        requester=UserSummary.model_validate(row.requester),
        recipient=UserSummary.model_validate(row.recipient),
        status=row.status,
        message=row.message,
        created_at=row.created_at,
    )


class SqlContactRequestRepository:
    """SQLAlchemy-backed repository. Flushes, never commits."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _query(self):
        return self.db.query(ContactRequest).options(
            joinedload(ContactRequest.post).joinedload(Post.user),
            joinedload(ContactRequest.requester),
            joinedload(ContactRequest.recipient),
        )

    def find(self, request_id: UUID) -> ContactRequestRecord | None:
        row = self._query().filter(ContactRequest.id == request_id).first()
        return to_record(row) if row else None

    def insert(
        self, *, post_id: UUID, requester_id: UUID, recipient_id: UUID, message: str | None
    ) -> ContactRequestRecord:
        """Insert a pending request; the unique constraint rejects duplicates."""
        row = ContactRequest(
            post_id=post_id,
            requester_id=requester_id,
            recipient_id=recipient_id,
            message=message,
            status=RequestStatus.PENDING,
        )
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            if is_unique_violation(exc):
                logger.info("Duplicate contact request: post=%s requester=%s", post_id, requester_id)
                raise Conflict("Request already sent") from exc
            raise
        return to_record(row)

    def update_status(
        self, request_id: UUID, recipient_id: UUID, status: RequestStatus
    ) -> ContactRequestRecord | None:
        """Set the status only if ``recipient_id`` owns the request."""
        row = (
            self._query()
            .filter(ContactRequest.id == request_id, ContactRequest.recipient_id == recipient_id)
            .first()
        )
        if row is None:
            return None
        row.status = status
        self.db.flush()
        return to_record(row)

    def list_for_recipient(self, user_id: UUID) -> list[ContactRequestRecord]:
        rows = (
            self._query()
            .filter(ContactRequest.recipient_id == user_id)
            .order_by(ContactRequest.created_at.desc())
            .all()
        )
        return [to_record(r) for r in rows]

    def list_for_requester(self, user_id: UUID) -> list[ContactRequestRecord]:
        rows = (
            self._query()
            .filter(ContactRequest.requester_id == user_id)
            .order_by(ContactRequest.created_at.desc())
            .all()
        )
        return [to_record(r) for r in rows]

    def has_approved_between(self, a: UUID, b: UUID) -> bool:
        return (
            self.db.query(ContactRequest.id)
            .filter(
                ContactRequest.status == RequestStatus.APPROVED,
                or_(
                    and_(ContactRequest.requester_id == a, ContactRequest.recipient_id == b),
                    and_(ContactRequest.requester_id == b, ContactRequest.recipient_id == a),
                ),
            )
            .first()
            is not None
        )
