from typing import Generic, TypeVar

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class PageMeta(BaseModel):
    total: int
    per_page: int
    current_page: int
    last_page: int
    first_page: int = 1

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ApiResponse(BaseModel, Generic[T]):
    message: str
    data: T | None = None
    meta: PageMeta | None = None
