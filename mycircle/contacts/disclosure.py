"""Disclosure rule: who sees which contact fields of a request's post.

All functions are pure; they build new view objects and never touch the
stored rows.
"""

from .models import RequestStatus
from .schemas import ContactRequestRecord, DisclosedPost, PostRecord, PostSummary, RecipientView, RequesterView


def _first_non_empty(*values: str | None) -> str | None:
    for value in values:
        if value and value.strip():
            return value
    return None


def effective_whatsapp(post: PostRecord) -> str | None:
    """Resolve the number to reach the owner on WhatsApp.

    Order: post whatsapp, post phone, owner whatsapp, owner legacy
    whatsapp number, owner phone.
    """
    return _first_non_empty(
        post.contact_whatsapp,
        post.contact_phone,
        post.owner.contact_whatsapp,
        post.owner.whatsapp_number,
        post.owner.contact_phone,
    )


def _summary(post: PostRecord) -> PostSummary:
    return PostSummary(id=post.id, title=post.title, type=post.type, images=list(post.images))


def _disclosed(post: PostRecord) -> DisclosedPost:
    return DisclosedPost(
        id=post.id,
        title=post.title,
        type=post.type,
        images=list(post.images),
        contact_whatsapp=effective_whatsapp(post),
        contact_phone=post.contact_phone,
    )


def to_requester_view(record: ContactRequestRecord) -> RequesterView:
    """Contact details appear only once the recipient approved the request."""
    post = _disclosed(record.post) if record.status == RequestStatus.APPROVED else _summary(record.post)
    return RequesterView(
        id=record.id,
        post=post,
        recipient=record.recipient,
        status=record.status,
        message=record.message,
        created_at=record.created_at,
    )


def to_recipient_view(record: ContactRequestRecord) -> RecipientView:
    """The recipient owns the post, so nothing is hidden from them."""
    return RecipientView(
        id=record.id,
        post=_disclosed(record.post),
        requester=record.requester,
        status=record.status,
        message=record.message,
        created_at=record.created_at,
    )
