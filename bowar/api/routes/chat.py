from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from ...api import deps
from ...core.context import RequestContext
from ...db.session import get_db
from ...db import schemas
from ...services import chat_service

router = APIRouter(tags=["chat"])


@router.get("/chat/{warnet_id}", response_model=schemas.ApiResponse[list[schemas.ChatMessage]])
def user_messages(
    warnet_id: int,
    db: Session = Depends(get_db),
    user: RequestContext = Depends(deps.get_request_context),
):
    messages = chat_service.user_conversation(db, user, warnet_id)
    return schemas.ApiResponse[list[schemas.ChatMessage]](
        message="Messages retrieved successfully",
        data=[schemas.ChatMessage.model_validate(item) for item in messages],
    )


@router.get("/operator/chat/{user_id}", response_model=schemas.ApiResponse[list[schemas.ChatMessage]])
def operator_messages(
    user_id: int,
    db: Session = Depends(get_db),
    operator: RequestContext = Depends(deps.get_request_context),
):
    messages = chat_service.operator_conversation(db, operator, user_id)
    return schemas.ApiResponse[list[schemas.ChatMessage]](
        message="Messages retrieved successfully",
        data=[schemas.ChatMessage.model_validate(item) for item in messages],
    )


@router.post(
    "/chat",
    response_model=schemas.ApiResponse[schemas.ChatMessage],
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    payload: schemas.ChatMessageCreate,
    db: Session = Depends(get_db),
    sender: RequestContext = Depends(deps.get_request_context),
):
    chat = chat_service.send_message(db, sender, payload)
    return schemas.ApiResponse[schemas.ChatMessage](
        message="Message sent successfully", data=schemas.ChatMessage.model_validate(chat)
    )


@router.get("/operator/conversations", response_model=schemas.ApiResponse[list[schemas.Conversation]])
def conversations(
    db: Session = Depends(get_db),
    operator: RequestContext = Depends(deps.get_request_context),
):
    items = [
        schemas.Conversation(
            user=schemas.UserSummary.model_validate(entry["user"]) if entry["user"] else None,
            last_message=(
                schemas.ChatMessage.model_validate(entry["last_message"])
                if entry["last_message"]
                else None
            ),
            unread_count=entry["unread_count"],
        )
        for entry in chat_service.list_conversations(db, operator)
    ]
    return schemas.ApiResponse[list[schemas.Conversation]](
        message="Conversations retrieved successfully", data=items
    )


@router.patch("/chat/read/{message_id}", response_model=schemas.ApiResponse[schemas.ChatMessage])
def mark_read(
    message_id: int,
    db: Session = Depends(get_db),
    reader: RequestContext = Depends(deps.get_request_context),
):
    chat = chat_service.mark_read(db, reader, message_id)
    return schemas.ApiResponse[schemas.ChatMessage](
        message="Message marked as read", data=schemas.ChatMessage.model_validate(chat)
    )
