from dataclasses import dataclass

from ..db.models.user import UserRole


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Authenticated identity handed to every service call."""

    user_id: int
    username: str
    role: UserRole
    warnet_id: int | None = None

    @property
    def is_operator(self) -> bool:
        return self.role == UserRole.operator

    @classmethod
    def from_user(cls, user) -> "RequestContext":
        return cls(
            user_id=user.id,
            username=user.username,
            role=UserRole(user.role),
            warnet_id=user.warnet_id,
        )
