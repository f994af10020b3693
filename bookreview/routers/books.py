import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bookreview.database import get_session
from bookreview.dependencies import require_current_user
from bookreview.models import Book, BookGenre, Genre, Review, User
from bookreview.pagination import PageParams, page_params
from bookreview.schemas.book import (
    BookCreate,
    BookDetail,
    BookResponse,
    BookReviewsPage,
    BookReviewStats,
    BookUpdate,
    GenreCount,
    ReviewStats,
)
from bookreview.schemas.common import BookSummary, DataEnvelope, Message, MessageEnvelope, Page, RatingCount, RatingShare
from bookreview.schemas.review import ReviewWithUser
from bookreview.services.ratings import average_rating, group_ratings, summarize_ratings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/books", tags=["books"])

RECENT_REVIEWS = 5


async def _load_book(session: AsyncSession, book_id: int) -> Book:
    stmt = (
        select(Book)
        .where(Book.id == book_id)
        .options(selectinload(Book.genres))
        .execution_options(populate_existing=True)
    )
    book = (await session.execute(stmt)).scalar_one_or_none()
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found")
    return book


async def _resolve_genres(session: AsyncSession, names: list[str]) -> list[Genre]:
    unique = list(dict.fromkeys(names))
    result = await session.execute(select(Genre).where(Genre.name.in_(unique)))
    existing = {g.name: g for g in result.scalars()}
    genres = []
    for name in unique:
        genre = existing.get(name)
        if genre is None:
            genre = Genre(name=name)
            session.add(genre)
        genres.append(genre)
    return genres


async def _ratings_by_book(session: AsyncSession, book_ids: list[int]) -> dict[int, list[float]]:
    if not book_ids:
        return {}
    result = await session.execute(
        select(Review.book_id, Review.rating).where(Review.book_id.in_(book_ids))
    )
    return group_ratings(result.all())


def _with_rating(book: Book, ratings: list[float]) -> BookResponse:
    return BookResponse.model_validate(book).model_copy(
        update={"review_count": len(ratings), "average_rating": average_rating(ratings)}
    )


async def _rated_page(session: AsyncSession, books: list[Book]) -> list[BookResponse]:
    ratings = await _ratings_by_book(session, [b.id for b in books])
    return [_with_rating(book, ratings.get(book.id, [])) for book in books]


@router.get("", response_model=Page[BookResponse])
async def list_books(
    genre: str | None = Query(None, description="Only books carrying this genre label"),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_session),
):
    stmt = select(Book).options(selectinload(Book.genres))
    count_stmt = select(func.count(Book.id))
    if genre:
        condition = Book.genres.any(Genre.name == genre)
        stmt = stmt.where(condition)
        count_stmt = count_stmt.where(condition)

    window = params.window
    stmt = stmt.order_by(Book.created_at.desc(), Book.id.desc()).offset(window.offset).limit(window.limit)
    books = (await session.execute(stmt)).scalars().all()
    total = (await session.execute(count_stmt)).scalar_one()
    return Page[BookResponse](data=await _rated_page(session, books), pagination=params.pagination(total))


@router.get("/search", response_model=Page[BookResponse])
async def search_books(
    q: str = Query(..., min_length=1, max_length=100, description="Title/author substring or exact genre"),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_session),
):
    term = q.strip()
    if not term:
        raise HTTPException(status_code=400, detail="Search query is required")
    condition = or_(
        Book.title.icontains(term, autoescape=True),
        Book.author.icontains(term, autoescape=True),
        Book.genres.any(Genre.name == term),
    )
    window = params.window
    stmt = (
        select(Book)
        .where(condition)
        .options(selectinload(Book.genres))
        .order_by(Book.created_at.desc(), Book.id.desc())
        .offset(window.offset)
        .limit(window.limit)
    )
    books = (await session.execute(stmt)).scalars().all()
    total = (await session.execute(select(func.count(Book.id)).where(condition))).scalar_one()
    return Page[BookResponse](data=await _rated_page(session, books), pagination=params.pagination(total))


@router.get("/genres", response_model=DataEnvelope[list[GenreCount]])
async def list_genres(session: AsyncSession = Depends(get_session)):
    count = func.count(BookGenre.book_id)
    stmt = (
        select(Genre.name, count)
        .join(BookGenre, BookGenre.genre_id == Genre.id)
        .group_by(Genre.name)
        .order_by(count.desc(), Genre.name)
    )
    result = await session.execute(stmt)
    return DataEnvelope[list[GenreCount]](data=[GenreCount(genre=name, count=n) for name, n in result.all()])


@router.get("/{book_id}", response_model=DataEnvelope[BookDetail])
async def get_book(book_id: int, session: AsyncSession = Depends(get_session)):
    book = await _load_book(session, book_id)

    ratings = (await session.execute(select(Review.rating).where(Review.book_id == book_id))).scalars().all()
    summary = summarize_ratings(ratings, descending=True)

    recent = await session.execute(
        select(Review)
        .where(Review.book_id == book_id)
        .options(selectinload(Review.user))
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(RECENT_REVIEWS)
    )

    book_dict = _with_rating(book, list(ratings)).model_dump()
    book_dict["reviews"] = [ReviewWithUser.model_validate(r) for r in recent.scalars()]
    book_dict["review_stats"] = ReviewStats(
        total_reviews=summary.count,
        average_rating=summary.average,
        rating_distribution=[
            RatingShare(rating=b.rating, count=b.count, percentage=b.percentage)
            for b in summary.distribution
        ],
    )
    return DataEnvelope[BookDetail](data=BookDetail(**book_dict))


@router.get("/{book_id}/reviews", response_model=BookReviewsPage)
async def list_book_reviews(
    book_id: int,
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_session),
):
    book = await _load_book(session, book_id)

    window = params.window
    reviews = await session.execute(
        select(Review)
        .where(Review.book_id == book_id)
        .options(selectinload(Review.user))
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(window.offset)
        .limit(window.limit)
    )
    ratings = (await session.execute(select(Review.rating).where(Review.book_id == book_id))).scalars().all()
    summary = summarize_ratings(ratings, descending=True, with_percentage=False)

    return BookReviewsPage(
        data=[ReviewWithUser.model_validate(r) for r in reviews.scalars()],
        book=BookSummary.model_validate(book),
        pagination=params.pagination(summary.count),
        stats=BookReviewStats(
            total_reviews=summary.count,
            average_rating=summary.average,
            rating_distribution=[RatingCount(rating=b.rating, count=b.count) for b in summary.distribution],
        ),
    )


@router.post("", response_model=MessageEnvelope[BookResponse], status_code=201)
async def create_book(
    data: BookCreate,
    user: User = Depends(require_current_user),
    session: AsyncSession = Depends(get_session),
):
    book = Book(title=data.title, author=data.author, published=data.published)
    book.genres = await _resolve_genres(session, data.genre)
    session.add(book)
    await session.commit()
    book = await _load_book(session, book.id)
    logger.info("User %s created book %s", user.id, book.id)
    return MessageEnvelope[BookResponse](message="Book created successfully", data=_with_rating(book, []))


@router.put("/{book_id}", response_model=MessageEnvelope[BookResponse])
async def update_book(
    book_id: int,
    data: BookUpdate,
    user: User = Depends(require_current_user),
    session: AsyncSession = Depends(get_session),
):
    book = await _load_book(session, book_id)
    updates = data.model_dump(exclude_unset=True)
    genre_names = updates.pop("genre", None)
    for key, value in updates.items():
        if value is None:
            continue
        setattr(book, key, value)
    if genre_names:
        book.genres = await _resolve_genres(session, genre_names)
    await session.commit()

    book = await _load_book(session, book_id)
    ratings = await _ratings_by_book(session, [book_id])
    return MessageEnvelope[BookResponse](
        message="Book updated successfully", data=_with_rating(book, ratings.get(book_id, []))
    )


@router.delete("/{book_id}", response_model=Message)
async def delete_book(
    book_id: int,
    user: User = Depends(require_current_user),
    session: AsyncSession = Depends(get_session),
):
    book = await _load_book(session, book_id)
    await session.delete(book)
    await session.commit()
    logger.info("User %s deleted book %s", user.id, book_id)
    return Message(message="Book deleted successfully")
