from datetime import datetime
from pydantic import BaseModel

from ..models.user import UserRole


class UserSummary(BaseModel):
    id: int
    username: str
    email: str
    avatar: str | None = None

    class Config:
        from_attributes = True


class User(UserSummary):
    role: UserRole
    warnet_id: int | None = None
    created_at: datetime
