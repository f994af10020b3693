import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bookreview.database import get_session
from bookreview.dependencies import ensure_owner, require_current_user
from bookreview.models import Book, Review, User
from bookreview.pagination import PageParams, page_params
from bookreview.schemas.common import DataEnvelope, Message, MessageEnvelope, Page, RatingCount
from bookreview.schemas.review import (
    GlobalReviewStats,
    MyReview,
    MyReviewsPage,
    ReviewCreate,
    ReviewDetail,
    ReviewUpdate,
    UserReviewStats,
)
from bookreview.services.ratings import average_rating, summarize_ratings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


async def _load_review(session: AsyncSession, review_id: int) -> Review:
    stmt = (
        select(Review)
        .where(Review.id == review_id)
        .options(selectinload(Review.book), selectinload(Review.user))
        .execution_options(populate_existing=True)
    )
    review = (await session.execute(stmt)).scalar_one_or_none()
    if review is None:
        raise HTTPException(status_code=404, detail="Review not found")
    return review


@router.get("", response_model=Page[ReviewDetail])
async def list_reviews(
    book_id: int | None = Query(None, alias="bookId"),
    user_id: int | None = Query(None, alias="userId"),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_session),
):
    conditions = []
    if book_id is not None:
        conditions.append(Review.book_id == book_id)
    if user_id is not None:
        conditions.append(Review.user_id == user_id)

    stmt = select(Review).options(selectinload(Review.book), selectinload(Review.user))
    count_stmt = select(func.count(Review.id))
    for condition in conditions:
        stmt = stmt.where(condition)
        count_stmt = count_stmt.where(condition)

    window = params.window
    stmt = stmt.order_by(Review.created_at.desc(), Review.id.desc()).offset(window.offset).limit(window.limit)
    reviews = (await session.execute(stmt)).scalars().all()
    total = (await session.execute(count_stmt)).scalar_one()
    return Page[ReviewDetail](
        data=[ReviewDetail.model_validate(r) for r in reviews],
        pagination=params.pagination(total),
    )


@router.get("/stats", response_model=DataEnvelope[GlobalReviewStats])
async def review_stats(session: AsyncSession = Depends(get_session)):
    ratings = (await session.execute(select(Review.rating))).scalars().all()
    summary = summarize_ratings(ratings, descending=False, with_percentage=False)
    return DataEnvelope[GlobalReviewStats](
        data=GlobalReviewStats(
            average_rating=summary.average,
            total_reviews=summary.count,
            max_rating=summary.maximum,
            min_rating=summary.minimum,
            rating_distribution=[RatingCount(rating=b.rating, count=b.count) for b in summary.distribution],
        )
    )


@router.get("/my", response_model=MyReviewsPage)
async def my_reviews(
    user: User = Depends(require_current_user),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_session),
):
    window = params.window
    reviews = await session.execute(
        select(Review)
        .where(Review.user_id == user.id)
        .options(selectinload(Review.book).selectinload(Book.genres))
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(window.offset)
        .limit(window.limit)
    )
    ratings = (await session.execute(select(Review.rating).where(Review.user_id == user.id))).scalars().all()
    return MyReviewsPage(
        data=[MyReview.model_validate(r) for r in reviews.scalars()],
        pagination=params.pagination(len(ratings)),
        stats=UserReviewStats(total_reviews=len(ratings), average_rating=average_rating(ratings)),
    )


@router.get("/{review_id}", response_model=DataEnvelope[ReviewDetail])
async def get_review(review_id: int, session: AsyncSession = Depends(get_session)):
    review = await _load_review(session, review_id)
    return DataEnvelope[ReviewDetail](data=ReviewDetail.model_validate(review))


@router.post("", response_model=MessageEnvelope[ReviewDetail], status_code=201)
async def create_review(
    data: ReviewCreate,
    user: User = Depends(require_current_user),
    session: AsyncSession = Depends(get_session),
):
    existing = await session.execute(
        select(Review.id).where(Review.book_id == data.book_id, Review.user_id == user.id)
    )
    if existing.scalar_one_or_none() is not None:
        logger.info("User %s tried to review book %s twice", user.id, data.book_id)
        raise HTTPException(status_code=409, detail="You have already reviewed this book")

    book = await session.get(Book, data.book_id)
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found")

    review = Review(
        book_id=data.book_id,
        user_id=user.id,
        rating=data.rating,
        comment=data.comment,
    )
    session.add(review)
    await session.commit()
    review = await _load_review(session, review.id)
    return MessageEnvelope[ReviewDetail](message="Review created successfully", data=ReviewDetail.model_validate(review))


@router.put("/{review_id}", response_model=MessageEnvelope[ReviewDetail])
async def update_review(
    review_id: int,
    data: ReviewUpdate,
    user: User = Depends(require_current_user),
    session: AsyncSession = Depends(get_session),
):
    review = await _load_review(session, review_id)
    ensure_owner(review.user_id, user, "You can only update your own reviews")
    updates = data.model_dump(exclude_unset=True)
    if updates.get("rating", 0) is None:
        # rating is required on the row; an explicit null leaves it unchanged
        updates.pop("rating")
    for key, value in updates.items():
        setattr(review, key, value)
    await session.commit()
    review = await _load_review(session, review_id)
    return MessageEnvelope[ReviewDetail](message="Review updated successfully", data=ReviewDetail.model_validate(review))


@router.delete("/{review_id}", response_model=Message)
async def delete_review(
    review_id: int,
    user: User = Depends(require_current_user),
    session: AsyncSession = Depends(get_session),
):
    review = await _load_review(session, review_id)
    ensure_owner(review.user_id, user, "You can only delete your own reviews")
    await session.delete(review)
    await session.commit()
    return Message(message="Review deleted successfully")
