import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bookreview.database import get_session
from bookreview.dependencies import ensure_owner, require_current_user
from bookreview.models import Review, User
from bookreview.pagination import PageParams, page_params
from bookreview.schemas.common import DataEnvelope, Message, MessageEnvelope, Page
from bookreview.schemas.review import ReviewWithBook
from bookreview.schemas.user import UserCreate, UserDetail, UserResponse, UserUpdate, UserWithCount
from bookreview.services import accounts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


async def _get_user_or_404(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


async def _with_counts(session: AsyncSession, users: list[User]) -> list[UserWithCount]:
    counts = await accounts.review_counts(session, [u.id for u in users])
    return [
        UserWithCount.model_validate(u).model_copy(update={"review_count": counts.get(u.id, 0)})
        for u in users
    ]


@router.get("", response_model=Page[UserWithCount])
async def list_users(
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_session),
):
    window = params.window
    stmt = select(User).order_by(User.created_at.desc(), User.id.desc()).offset(window.offset).limit(window.limit)
    users = (await session.execute(stmt)).scalars().all()
    total = (await session.execute(select(func.count(User.id)))).scalar_one()
    return Page[UserWithCount](data=await _with_counts(session, users), pagination=params.pagination(total))


@router.get("/search", response_model=Page[UserWithCount])
async def search_users(
    q: str = Query(..., min_length=1, max_length=100, description="Name or email substring"),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_session),
):
    term = q.strip()
    if not term:
        raise HTTPException(status_code=400, detail="Search query is required")
    condition = or_(User.name.icontains(term, autoescape=True), User.email.icontains(term, autoescape=True))
    window = params.window
    stmt = (
        select(User)
        .where(condition)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset(window.offset)
        .limit(window.limit)
    )
    users = (await session.execute(stmt)).scalars().all()
    total = (await session.execute(select(func.count(User.id)).where(condition))).scalar_one()
    return Page[UserWithCount](data=await _with_counts(session, users), pagination=params.pagination(total))


@router.get("/{user_id}", response_model=DataEnvelope[UserDetail])
async def get_user(user_id: int, session: AsyncSession = Depends(get_session)):
    user = await _get_user_or_404(session, user_id)
    reviews = await session.execute(
        select(Review)
        .where(Review.user_id == user_id)
        .options(selectinload(Review.book))
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    user_dict = UserResponse.model_validate(user).model_dump()
    user_dict["reviews"] = [ReviewWithBook.model_validate(r) for r in reviews.scalars()]
    return DataEnvelope[UserDetail](data=UserDetail(**user_dict))


@router.post("", response_model=MessageEnvelope[UserResponse], status_code=201)
async def create_user(data: UserCreate, session: AsyncSession = Depends(get_session)):
    user = await accounts.create_user(session, data)
    return MessageEnvelope[UserResponse](message="User created successfully", data=UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=MessageEnvelope[UserResponse])
async def update_user(
    user_id: int,
    data: UserUpdate,
    current_user: User = Depends(require_current_user),
    session: AsyncSession = Depends(get_session),
):
    user = await _get_user_or_404(session, user_id)
    ensure_owner(user.id, current_user, "You can only update your own account")
    updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    if "email" in updates:
        await accounts.ensure_email_available(session, updates["email"], user_id=user.id)
    for key, value in updates.items():
        setattr(user, key, value)
    await session.commit()
    await session.refresh(user)
    return MessageEnvelope[UserResponse](message="User updated successfully", data=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=Message)
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_current_user),
    session: AsyncSession = Depends(get_session),
):
    user = await _get_user_or_404(session, user_id)
    ensure_owner(user.id, current_user, "You can only delete your own account")
    await session.delete(user)
    await session.commit()
    logger.info("Deleted user %s and their reviews", user_id)
    return Message(message="User deleted successfully")
