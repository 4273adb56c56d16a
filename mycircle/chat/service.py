"""One-to-one chat between connected users.

Two users are connected when one approved the other's contact request.
Messages carry read receipts; a message is unread for a participant until
a ``MessageRead`` row exists for them.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import exists, select
from sqlalchemy.orm import Session, aliased

from ..contacts.service import has_approved_connection
from ..errors import ContentViolation, Forbidden, InvalidOperation, NotFound
from ..moderation.profanity import contains_profanity
from ..users.models import User, UserBlock
from ..users.schemas import UserSummary
from ..users.service import get_user, to_uuid
from .models import Conversation, ConversationParticipant, Message, MessageRead, MessageStatus
from .schemas import ConversationView, MessageView, ParticipantView

logger = logging.getLogger(__name__)


# ── Lookups ───────────────────────────────────────────────────────────


def find_conversation_between(db: Session, a: UUID, b: UUID) -> Conversation | None:
    pa = aliased(ConversationParticipant)
    pb = aliased(ConversationParticipant)
    return (
        db.query(Conversation)
        .join(pa, pa.conversation_id == Conversation.id)
        .join(pb, pb.conversation_id == Conversation.id)
        .filter(pa.user_id == a, pb.user_id == b)
        .first()
    )


def get_participant_conversation(db: Session, conversation_id: str | UUID, user_id: UUID) -> Conversation:
    """Conversation ``user_id`` takes part in; anything else is NotFound."""
    uid = to_uuid(conversation_id)
    conversation = (
        db.query(Conversation)
        .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
        .filter(Conversation.id == uid, ConversationParticipant.user_id == user_id)
        .first()
        if uid
        else None
    )
    if not conversation:
        raise NotFound("Conversation not found")
    return conversation


def other_participant_id(conversation: Conversation, user_id: UUID) -> UUID | None:
    for participant in conversation.participants:
        if participant.user_id != user_id:
            return participant.user_id
    return None


def message_recipient_id(db: Session, message: Message) -> UUID | None:
    """The participant a stored message is addressed to."""
    conversation = db.get(Conversation, message.conversation_id)
    return other_participant_id(conversation, message.sender_id) if conversation else None


def _unread_for(db: Session, user_id: UUID):
    already_read = exists().where(MessageRead.message_id == Message.id, MessageRead.user_id == user_id)
    return db.query(Message).filter(Message.sender_id != user_id, ~already_read)


# ── Views ─────────────────────────────────────────────────────────────


def to_message_view(db: Session, message: Message) -> MessageView:
    readers = db.query(MessageRead.user_id).filter(MessageRead.message_id == message.id).all()
    return MessageView(
        id=message.id,
        conversation_id=message.conversation_id,
        sender=UserSummary.model_validate(message.sender),
        text=message.text,
        status=message.status,
        read_by=[r.user_id for r in readers],
        created_at=message.created_at,
    )


def to_conversation_view(
    db: Session,
    conversation: Conversation,
    user_id: UUID,
    is_online: Callable[[UUID], bool] | None = None,
) -> ConversationView:
    participant_ids = [p.user_id for p in conversation.participants]
    users = db.query(User).filter(User.id.in_(participant_ids)).all()
    last = (
        db.query(Message)
        .filter(Message.conversation_id == conversation.id)
        .order_by(Message.created_at.desc())
        .first()
    )
    return ConversationView(
        id=conversation.id,
        participants=[
            ParticipantView(
                id=u.id,
                display_name=u.display_name,
                avatar=u.avatar,
                is_online=bool(is_online and is_online(u.id)),
            )
            for u in users
        ],
        last_message=to_message_view(db, last) if last else None,
        unread_count=_unread_for(db, user_id).filter(Message.conversation_id == conversation.id).count(),
        updated_at=conversation.updated_at,
    )


# ── Operations ────────────────────────────────────────────────────────


def _check_can_message(db: Session, sender_id: UUID, recipient_id: str | UUID) -> User:
    recipient = get_user(db, recipient_id)
    if not recipient:
        raise NotFound("User not found")
    if recipient.id == sender_id:
        raise InvalidOperation("You cannot message yourself")
    if not has_approved_connection(db, sender_id, recipient.id):
        raise Forbidden("You can only message connected users (accepted requests)")
    return recipient


def _check_not_blocked(db: Session, sender_id: UUID, recipient_id: UUID) -> None:
    if db.get(UserBlock, (sender_id, recipient_id)):
        raise Forbidden("You have blocked this user.")
    if db.get(UserBlock, (recipient_id, sender_id)):
        raise Forbidden("You cannot message this user.")


def _get_or_create_conversation(db: Session, a: UUID, b: UUID) -> Conversation:
    conversation = find_conversation_between(db, a, b)
    if conversation is None:
        conversation = Conversation(
            participants=[ConversationParticipant(user_id=a), ConversationParticipant(user_id=b)]
        )
        db.add(conversation)
        db.flush()
        logger.info("Conversation created: id=%s between %s and %s", conversation.id, a, b)
    return conversation


def send_message(db: Session, sender_id: UUID, recipient_id: str | UUID, text: str) -> Message:
    """Store a message from ``sender_id`` to a connected user."""
    recipient = _check_can_message(db, sender_id, recipient_id)
    text = (text or "").strip()
    if not text:
        raise InvalidOperation("Message text is required")
    if contains_profanity(text):
        raise ContentViolation("Message contains inappropriate content. Please be respectful.")
    _check_not_blocked(db, sender_id, recipient.id)

    conversation = _get_or_create_conversation(db, sender_id, recipient.id)
    message = Message(conversation_id=conversation.id, sender_id=sender_id, text=text, status=MessageStatus.SENT)
    db.add(message)
    db.flush()
    db.add(MessageRead(message_id=message.id, user_id=sender_id))
    conversation.updated_at = datetime.now(UTC)
    db.flush()
    logger.debug("Message sent: id=%s conversation=%s", message.id, conversation.id)
    return message


def init_conversation(db: Session, user_id: UUID, other_id: str | UUID) -> Conversation:
    """Open (or reuse) the conversation with a connected user."""
    other = _check_can_message(db, user_id, other_id)
    _check_not_blocked(db, user_id, other.id)
    return _get_or_create_conversation(db, user_id, other.id)


def list_conversations(
    db: Session, user_id: UUID, is_online: Callable[[UUID], bool] | None = None
) -> list[ConversationView]:
    """Conversations of ``user_id``, most recently active first."""
    conversations = (
        db.query(Conversation)
        .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
        .filter(ConversationParticipant.user_id == user_id)
        .order_by(Conversation.updated_at.desc())
        .all()
    )
    return [to_conversation_view(db, c, user_id, is_online) for c in conversations]


def get_messages(db: Session, conversation_id: str | UUID, user_id: UUID) -> list[Message]:
    conversation = get_participant_conversation(db, conversation_id, user_id)
    return (
        db.query(Message)
        .filter(Message.conversation_id == conversation.id)
        .order_by(Message.created_at.asc())
        .all()
    )


def mark_read(db: Session, conversation_id: str | UUID, user_id: UUID) -> UUID | None:
    """Mark every message addressed to ``user_id`` as read.

    Returns the other participant, who gets the read receipt.
    """
    conversation = get_participant_conversation(db, conversation_id, user_id)
    unread = _unread_for(db, user_id).filter(Message.conversation_id == conversation.id).all()
    for message in unread:
        db.add(MessageRead(message_id=message.id, user_id=user_id))
        message.status = MessageStatus.READ
    db.flush()
    return other_participant_id(conversation, user_id)


def total_unread_count(db: Session, user_id: UUID) -> int:
    mine = select(ConversationParticipant.conversation_id).where(ConversationParticipant.user_id == user_id)
    return _unread_for(db, user_id).filter(Message.conversation_id.in_(mine)).count()


def delete_conversation(db: Session, conversation_id: str | UUID, user_id: UUID) -> None:
    conversation = get_participant_conversation(db, conversation_id, user_id)
    message_ids = select(Message.id).where(Message.conversation_id == conversation.id)
    db.query(MessageRead).filter(MessageRead.message_id.in_(message_ids)).delete(
        synchronize_session=False
    )
    db.query(Message).filter(Message.conversation_id == conversation.id).delete(synchronize_session=False)
    db.delete(conversation)
    db.flush()
    logger.info("Conversation deleted: id=%s by=%s", conversation.id, user_id)
