from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.context import RequestContext
from ..db import models, schemas
from ..db.models.chat_message import SenderType
from .errors import ForbiddenError, NotFoundError, ValidationError


def _conversation_query(user_id: int, warnet_id: int):
    return select(models.ChatMessage).where(
        models.ChatMessage.user_id == user_id,
        models.ChatMessage.warnet_id == warnet_id,
    )


def user_conversation(db: Session, user: RequestContext, warnet_id: int) -> list[models.ChatMessage]:
    query = _conversation_query(user.user_id, warnet_id).order_by(
        models.ChatMessage.created_at.asc(), models.ChatMessage.id.asc()
    )
    return list(db.scalars(query))


def operator_conversation(db: Session, operator: RequestContext, user_id: int) -> list[models.ChatMessage]:
    if not operator.is_operator or not operator.warnet_id:
        raise ValidationError("Invalid conversation parameters")
    query = _conversation_query(user_id, operator.warnet_id).order_by(
        models.ChatMessage.created_at.asc(), models.ChatMessage.id.asc()
    )
    return list(db.scalars(query))


def send_message(db: Session, sender: RequestContext, payload: schemas.ChatMessageCreate) -> models.ChatMessage:
    text = (payload.message or "").strip()
    if not text:
        raise ValidationError("Message cannot be empty")

    if sender.is_operator:
        if not sender.warnet_id:
            raise ForbiddenError("Operator not assigned to a warnet")
        if not payload.user_id:
            raise ValidationError("user_id is required")
        if not db.get(models.User, payload.user_id):
            raise NotFoundError("User not found")
        chat = models.ChatMessage(
            user_id=payload.user_id,
            warnet_id=sender.warnet_id,
            sender_type=SenderType.operator,
        )
    else:
        if not payload.warnet_id:
            raise ValidationError("warnet_id is required")
        if not db.get(models.Warnet, payload.warnet_id):
            raise NotFoundError("Warnet not found")
        chat = models.ChatMessage(
            user_id=sender.user_id,
            warnet_id=payload.warnet_id,
            sender_type=SenderType.user,
        )
    chat.sender_id = sender.user_id
    chat.message = text
    chat.is_read = False
    db.add(chat)
    db.commit()
    db.refresh(chat)
    return chat


def list_conversations(db: Session, operator: RequestContext) -> list[dict]:
    """One entry per customer who wrote to the operator's warnet, latest first."""
    if not operator.is_operator or not operator.warnet_id:
        raise ForbiddenError("Unauthorized")
    warnet_id = operator.warnet_id

    last_message_at = func.max(models.ChatMessage.created_at).label("last_message_at")
    last_id = func.max(models.ChatMessage.id).label("last_id")
    rows = db.execute(
        select(models.ChatMessage.user_id, last_message_at, last_id)
        .where(models.ChatMessage.warnet_id == warnet_id)
        .group_by(models.ChatMessage.user_id)
        .order_by(last_message_at.desc(), last_id.desc())
    ).all()
    if not rows:
        return []

    user_ids = [row.user_id for row in rows]
    users = {
        user.id: user
        for user in db.scalars(select(models.User).where(models.User.id.in_(user_ids)))
    }
    unread = dict(
        db.execute(
            select(models.ChatMessage.user_id, func.count(models.ChatMessage.id))
            .where(
                models.ChatMessage.warnet_id == warnet_id,
                models.ChatMessage.user_id.in_(user_ids),
                models.ChatMessage.sender_type == SenderType.user,
                models.ChatMessage.is_read.is_(False),
            )
            .group_by(models.ChatMessage.user_id)
        ).all()
    )

    results = []
    for row in rows:
        last_message = db.scalars(
            _conversation_query(row.user_id, warnet_id)
            .order_by(models.ChatMessage.created_at.desc(), models.ChatMessage.id.desc())
            .limit(1)
        ).first()
        results.append(
            {
                "user": users.get(row.user_id),
                "last_message": last_message,
                "unread_count": int(unread.get(row.user_id, 0)),
            }
        )
    return results


def mark_read(db: Session, reader: RequestContext, message_id: int) -> models.ChatMessage:
    message = db.get(models.ChatMessage, message_id)
    if not message:
        raise NotFoundError("Message not found")
    is_party = message.user_id == reader.user_id or (
        reader.is_operator and reader.warnet_id == message.warnet_id
    )
    if not is_party:
        raise ForbiddenError("Unauthorized")
    # only the recipient side may flip the flag
    is_recipient = (
        message.sender_type == SenderType.operator and message.user_id == reader.user_id
    ) or (
        message.sender_type == SenderType.user
        and reader.is_operator
        and reader.warnet_id == message.warnet_id
    )
    if is_recipient and not message.is_read:
        message.is_read = True
        db.commit()
        db.refresh(message)
    return message


__all__ = [
    "user_conversation",
    "operator_conversation",
    "send_message",
    "list_conversations",
    "mark_read",
]
