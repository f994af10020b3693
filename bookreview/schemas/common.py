from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from bookreview.pagination import Pagination

T = TypeVar("T")


class ApiModel(BaseModel):
    """snake_case in Python, camelCase on the wire; both accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class DataEnvelope(ApiModel, Generic[T]):
    data: T


class MessageEnvelope(ApiModel, Generic[T]):
    message: str
    data: T


class Message(ApiModel):
    message: str


class Page(ApiModel, Generic[T]):
    data: list[T]
    pagination: Pagination


class UserSummary(ApiModel):
    id: int
    name: str
    email: str


class BookSummary(ApiModel):
    id: int
    title: str
    author: str


class RatingCount(ApiModel):
    rating: float
    count: int


class RatingShare(RatingCount):
    percentage: int
