from datetime import datetime
from typing import Annotated

from pydantic import Field, StringConstraints

from bookreview.pagination import Pagination
from bookreview.schemas.common import ApiModel, BookSummary, RatingCount, UserSummary

Comment = Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]


class ReviewCreate(ApiModel):
    book_id: int
    rating: float = Field(ge=1.0, le=5.0)
    comment: Comment | None = None


class ReviewUpdate(ApiModel):
    rating: float | None = Field(None, ge=1.0, le=5.0)
    comment: Comment | None = None


class ReviewResponse(ApiModel):
    id: int
    book_id: int
    user_id: int
    rating: float
    comment: str | None
    created_at: datetime
    updated_at: datetime


class ReviewWithBook(ReviewResponse):
    book: BookSummary


class ReviewWithUser(ReviewResponse):
    user: UserSummary


class ReviewDetail(ReviewResponse):
    book: BookSummary
    user: UserSummary


class GenreBookSummary(BookSummary):
    genre: list[str] = []


class MyReview(ReviewResponse):
    book: GenreBookSummary


class UserReviewStats(ApiModel):
    total_reviews: int
    average_rating: float


class MyReviewsPage(ApiModel):
    data: list[MyReview]
    pagination: Pagination
    stats: UserReviewStats


class GlobalReviewStats(ApiModel):
    average_rating: float
    total_reviews: int
    max_rating: float | None
    min_rating: float | None
    rating_distribution: list[RatingCount]
