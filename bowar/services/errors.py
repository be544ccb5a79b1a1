from typing import Any


class ServiceError(Exception):
    """Base class for failures the API reports back to the caller."""

    status_code = 400

    def __init__(
        self,
        message: str,
        *,
        data: Any = None,
        errors: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.data = data
        self.errors = errors


class ValidationError(ServiceError):
    status_code = 400


class StateError(ServiceError):
    """The entity is not in a state that allows the operation."""

    status_code = 400


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


__all__ = [
    "ServiceError",
    "ValidationError",
    "StateError",
    "ForbiddenError",
    "NotFoundError",
]
