from datetime import date, datetime
from typing import Annotated

from pydantic import Field, StringConstraints

from bookreview.pagination import Pagination
from bookreview.schemas.common import ApiModel, BookSummary, RatingCount, RatingShare
from bookreview.schemas.review import ReviewWithUser

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Author = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
GenreLabel = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]


class BookCreate(ApiModel):
    title: Title
    author: Author
    genre: list[GenreLabel] = Field(min_length=1)
    published: date


class BookUpdate(ApiModel):
    title: Title | None = None
    author: Author | None = None
    genre: list[GenreLabel] | None = Field(None, min_length=1)
    published: date | None = None


class BookResponse(ApiModel):
    id: int
    title: str
    author: str
    genre: list[str]
    published: date
    created_at: datetime
    updated_at: datetime
    review_count: int = 0
    average_rating: float = 0.0


class ReviewStats(ApiModel):
    total_reviews: int
    average_rating: float
    rating_distribution: list[RatingShare]


class BookDetail(BookResponse):
    reviews: list[ReviewWithUser] = []
    review_stats: ReviewStats


class GenreCount(ApiModel):
    genre: str
    count: int


class BookReviewStats(ApiModel):
    total_reviews: int
    average_rating: float
    rating_distribution: list[RatingCount]


class BookReviewsPage(ApiModel):
    data: list[ReviewWithUser]
    book: BookSummary
    pagination: Pagination
    stats: BookReviewStats
