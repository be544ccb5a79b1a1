from datetime import datetime
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from ..models.chat_message import SenderType
from .user import UserSummary


class ChatMessage(BaseModel):
    id: int
    user_id: int
    warnet_id: int
    sender_id: int
    sender_type: SenderType
    message: str
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ChatMessageCreate(BaseModel):
    message: str | None = None
    warnet_id: int | None = None
    user_id: int | None = None


class Conversation(BaseModel):
    user: UserSummary | None = None
    last_message: ChatMessage | None = None
    unread_count: int = 0

    class Config:
        alias_generator = to_camel
        populate_by_name = True
